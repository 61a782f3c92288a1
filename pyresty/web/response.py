"""
HTTP response formatting
"""

from http import HTTPStatus
import dataclasses
import typing


# Allowed formats for an HTTP response
HTTPResponseData: typing.TypeAlias = typing.Iterable[bytes] | typing.BinaryIO

# Default content type of text responses
TEXT_CONTENT_TYPE = 'text/plain; charset=utf-8'

# Size of the chunks read from a stream when copying it to the client
STREAM_CHUNK_SIZE = 64 * 1024


def status_phrase(status: int) -> str:
    """
    Returns the standard reason phrase of the given status code, or a generic
    phrase if the code is not registered.
    """

    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown Status"


def status_line(status: int) -> str:
    """
    Formats the status line for the WSGI start_response function.
    """

    return f"{status} {status_phrase(status)}"


class HTTPResponse(typing.Protocol):
    """
    A response to an HTTP request.
    """

    @property
    def status(self) -> int:
        """
        Response status
        """

    @property
    def content_type(self) -> str:
        """
        Response content-type
        """

    @property
    def extra_headers(self) -> dict[str, str]:
        """
        Extra response headers (not including Content-Type or Content-Length)
        """

    def get_data(self) -> tuple[int, HTTPResponseData]:
        """
        Get the response data, either as a iterable of byte strings, or an open
        file.

        The returned integer is the size, in bytes, of the entire reply; it can
        be negative if the size is not known.
        """


@dataclasses.dataclass(frozen=True)
class HTTPTextResponse:
    """
    A text response to an HTTP request.
    """

    # The response text
    text: str

    # The response status
    status: int = HTTPStatus.OK

    # The response content type (plain text by default); should indicate UTF-8
    # charset
    content_type: str = TEXT_CONTENT_TYPE

    # The response extra headers (usually not needed)
    extra_headers: dict[str, str] = dataclasses.field(default_factory=dict)

    def get_data(self) -> tuple[int, HTTPResponseData]:
        """
        Return the response as bytes.
        """

        data = self.text.encode('utf-8')
        return len(data), [data]

    @classmethod
    def status_page(cls, status: int, text: str = '',
        extra_headers: dict[str, str] | None = None) -> typing.Self:
        """
        Returns a plain text response for the given status. If the text is not
        provided or is blank, the standard status phrase is used.
        """

        if not text:
            text = status_phrase(status)

        if extra_headers is None:
            extra_headers = {}

        return cls(text, status, extra_headers=extra_headers)


@dataclasses.dataclass(frozen=True)
class HTTPStreamResponse:
    """
    A response whose body is copied from a binary stream, optionally preceded
    by data that was already read from it.
    """

    # The stream to copy; will be closed once the response is sent
    reader: typing.BinaryIO

    # The body content type
    content_type: str

    # The body size (negative if not known)
    content_length: int = -1

    # The response status
    status: int = HTTPStatus.OK

    # Data read from the stream before the response was built
    head: bytes = b''

    # The response extra headers (usually not needed)
    extra_headers: dict[str, str] = dataclasses.field(default_factory=dict)

    def get_data(self) -> tuple[int, HTTPResponseData]:
        """
        Return an iterable over the response body.
        """

        return self.content_length, StreamBody(self.reader, self.head)


class StreamBody:
    """
    WSGI response iterable copying a stream: yields the head data, then the
    rest of the stream in chunks. The stream is closed when the copy finishes
    or when the iterable is closed, even if it was never iterated (WSGI
    servers always call close on the response iterable).
    """

    def __init__(self, reader: typing.BinaryIO, head: bytes = b'') -> None:
        self._reader = reader
        self._head = head

    def __iter__(self) -> typing.Iterator[bytes]:
        try:
            if self._head:
                yield self._head

            while True:
                chunk = self._reader.read(STREAM_CHUNK_SIZE)
                if not chunk:
                    break

                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        close_func = getattr(self._reader, 'close', None)
        if close_func is not None:
            close_func()


class HTTPBaseError(Exception):
    """
    An exception with an attached HTTP response. If this exception is thrown
    by a view or an action, the attached response is returned to the client.
    """

    response: HTTPResponse

    def __init__(self, response: HTTPResponse):
        status = response.status
        super().__init__(status_line(status))
        self.response = response


class HTTPError(HTTPBaseError):
    """
    Typical HTTP response error. Takes a status and an optional error message
    that will be returned as plain text.
    """

    def __init__(self, status: int, message: str = ''):
        response = HTTPTextResponse.status_page(status, message)

        super().__init__(response)
