"""
Content type detection from the first bytes of a stream, following the
WHATWG MIME sniffing algorithm (https://mimesniff.spec.whatwg.org/).
"""

import dataclasses
import typing

# Maximum number of bytes considered by detect_content_type
SNIFF_LEN = 512

TEXT_UTF8 = 'text/plain; charset=utf-8'
OCTET_STREAM = 'application/octet-stream'

# Whitespace bytes skipped before markup signatures
_WHITESPACE = b'\t\n\x0c\r '

# Bytes that terminate an HTML tag name
_TAG_TERMINATORS = b' >'

# Bytes that identify binary (non-text) data
_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0b] + list(range(0x0e, 0x1b)) +
    list(range(0x1c, 0x20))
)


class Signature(typing.Protocol):
    """
    A content type signature.
    """

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        """
        Returns the content type if the data matches the signature, None
        otherwise.
        """


@dataclasses.dataclass(frozen=True)
class ExactSig:
    """
    Matches data starting with a fixed byte sequence.
    """

    prefix: bytes
    content_type: str

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        if data.startswith(self.prefix):
            return self.content_type

        return None


@dataclasses.dataclass(frozen=True)
class MaskedSig:
    """
    Matches data against a pattern after applying a mask to each byte.
    If skip_ws is set, leading whitespace is ignored.
    """

    mask: bytes
    pattern: bytes
    content_type: str
    skip_ws: bool = False

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        if self.skip_ws:
            data = data[first_non_ws:]

        if len(data) < len(self.pattern):
            return None

        for mask_byte, pat_byte, data_byte in zip(self.mask, self.pattern,
            data):
            if data_byte & mask_byte != pat_byte:
                return None

        return self.content_type


@dataclasses.dataclass(frozen=True)
class HTMLSig:
    """
    Matches an HTML tag (case-insensitive, after leading whitespace) followed
    by a tag-terminating byte.
    """

    tag: bytes

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        data = data[first_non_ws:]
        tag_len = len(self.tag)

        if len(data) < tag_len + 1:
            return None

        if data[:tag_len].upper() != self.tag:
            return None

        if data[tag_len] not in _TAG_TERMINATORS:
            return None

        return 'text/html; charset=utf-8'


class MP4Sig:
    """
    Matches an ISO base media file (MP4) by its ftyp box.
    """

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        if len(data) < 12:
            return None

        box_size = int.from_bytes(data[:4], 'big')
        if len(data) < box_size or box_size % 4 != 0:
            return None

        if data[4:8] != b'ftyp':
            return None

        for pos in range(8, box_size, 4):
            if pos == 12:
                # Skip the minor version
                continue

            if data[pos:pos + 3] == b'mp4':
                return 'video/mp4'

        return None


class TextSig:
    """
    Matches any data without binary bytes. Must be the last signature.
    """

    def match(self, data: bytes, first_non_ws: int) -> str | None:
        for byte in data[first_non_ws:]:
            if byte in _BINARY_BYTES:
                return None

        return TEXT_UTF8


SIGNATURES: list[Signature] = [
    HTMLSig(b'<!DOCTYPE HTML'),
    HTMLSig(b'<HTML'),
    HTMLSig(b'<HEAD'),
    HTMLSig(b'<SCRIPT'),
    HTMLSig(b'<IFRAME'),
    HTMLSig(b'<H1'),
    HTMLSig(b'<DIV'),
    HTMLSig(b'<FONT'),
    HTMLSig(b'<TABLE'),
    HTMLSig(b'<A'),
    HTMLSig(b'<STYLE'),
    HTMLSig(b'<TITLE'),
    HTMLSig(b'<B'),
    HTMLSig(b'<BODY'),
    HTMLSig(b'<BR'),
    HTMLSig(b'<P'),
    HTMLSig(b'<!--'),
    MaskedSig(b'\xff\xff\xff\xff\xff', b'<?xml', 'text/xml; charset=utf-8',
        skip_ws=True),
    ExactSig(b'%PDF-', 'application/pdf'),
    ExactSig(b'%!PS-Adobe-', 'application/postscript'),

    # Byte order marks
    MaskedSig(b'\xff\xff\x00\x00', b'\xfe\xff\x00\x00',
        'text/plain; charset=utf-16be'),
    MaskedSig(b'\xff\xff\x00\x00', b'\xff\xfe\x00\x00',
        'text/plain; charset=utf-16le'),
    ExactSig(b'\xef\xbb\xbf', TEXT_UTF8),

    # Images
    ExactSig(b'\x00\x00\x01\x00', 'image/x-icon'),
    ExactSig(b'\x00\x00\x02\x00', 'image/x-icon'),
    ExactSig(b'BM', 'image/bmp'),
    ExactSig(b'GIF87a', 'image/gif'),
    ExactSig(b'GIF89a', 'image/gif'),
    MaskedSig(b'\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff\xff\xff',
        b'RIFF\x00\x00\x00\x00WEBPVP', 'image/webp'),
    ExactSig(b'\x89PNG\r\n\x1a\n', 'image/png'),
    ExactSig(b'\xff\xd8\xff', 'image/jpeg'),

    # Audio and video
    MaskedSig(b'\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff',
        b'FORM\x00\x00\x00\x00AIFF', 'audio/aiff'),
    MaskedSig(b'\xff\xff\xff', b'ID3', 'audio/mpeg'),
    MaskedSig(b'\xff\xff\xff\xff\xff', b'OggS\x00', 'application/ogg'),
    MaskedSig(b'\xff\xff\xff\xff\xff\xff\xff\xff', b'MThd\x00\x00\x00\x06',
        'audio/midi'),
    MaskedSig(b'\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff',
        b'RIFF\x00\x00\x00\x00AVI ', 'video/avi'),
    MaskedSig(b'\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff',
        b'RIFF\x00\x00\x00\x00WAVE', 'audio/wave'),
    MP4Sig(),
    ExactSig(b'\x1a\x45\xdf\xa3', 'video/webm'),

    # Fonts
    ExactSig(b'OTTO', 'font/otf'),
    ExactSig(b'ttcf', 'font/collection'),
    ExactSig(b'wOFF', 'font/woff'),
    ExactSig(b'wOF2', 'font/woff2'),

    # Archives
    ExactSig(b'\x1f\x8b\x08', 'application/x-gzip'),
    ExactSig(b'PK\x03\x04', 'application/zip'),
    ExactSig(b'Rar!\x1a\x07\x00', 'application/x-rar-compressed'),
    ExactSig(b'Rar!\x1a\x07\x01\x00', 'application/x-rar-compressed'),

    ExactSig(b'\x00asm', 'application/wasm'),

    TextSig(),
]


def detect_content_type(data: bytes) -> str:
    """
    Returns the content type of the given data, determined from at most its
    first SNIFF_LEN bytes. Always returns a valid MIME type; if no specific
    type is recognized, application/octet-stream is returned.
    """

    data = data[:SNIFF_LEN]

    first_non_ws = 0
    while first_non_ws < len(data) and data[first_non_ws] in _WHITESPACE:
        first_non_ws += 1

    for signature in SIGNATURES:
        content_type = signature.match(data, first_non_ws)
        if content_type is not None:
            return content_type

    return OCTET_STREAM
