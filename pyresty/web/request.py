"""
HTTP request decoding
"""

from http import HTTPStatus
from urllib.parse import parse_qs
import dataclasses
import io
import typing

from .response import HTTPError


class RequestBodyWrapper(io.IOBase):
    """
    Wraps the wsgi.input file object to ensure that all available data from the
    request, and no more, is read.
    """

    def __init__(self, file_obj: typing.BinaryIO, length: int) -> None:
        super().__init__()
        self._file_obj = file_obj
        self._length = max(0, length)
        self._remaining = self._length

    @property
    def length(self) -> int:
        """
        Size of the request body, as announced by the client.
        """

        return self._length

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1, /) -> bytes:
        """
        Read size bytes from the input and return them. If the size is not
        specified or negative, returns the rest of the input.
        This may return less data than expected if the request body was
        truncated or if no data is available.
        """

        if size < 0:
            size = self._remaining

        return b''.join(self._read_bytes(size))

    def close(self) -> None:
        for _ in self._read_bytes(self._remaining):
            pass

        super().close()

    def _read_bytes(self, size: int) -> typing.Iterable[bytes]:
        """
        Yields parts of the remaining data in the request body, until the
        request size was read. This may return a short read if the request
        body was truncated.
        """

        while size > 0 and self._remaining > 0:
            data = self._file_obj.read(min(self._remaining, size))
            if not data:
                # Truncated request body
                self._remaining = 0
                break

            data_len = len(data)
            self._remaining -= data_len
            size -= data_len
            yield data


@dataclasses.dataclass(frozen=True)
class HTTPRequest:
    """
    Represents an HTTP request.
    """

    # Request method, upper case
    method: str

    # Part of the URL that indicates the resource within the application
    path: str

    # Request headers, case-normalized (title case with dashes)
    headers: dict[str, str]

    # Query string, as a dictionary of value lists (in the order they appear)
    query: dict[str, list[str]]

    # Request body
    body: RequestBodyWrapper

    # Remote address
    remote_addr: str

    # Path parameters, set by the mux when a route matches
    path_params: dict[str, str | int] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_req(cls, environ: dict[str, typing.Any]) -> typing.Self:
        """
        Creates a request object from the specified request environment.
        An HTTPError is raised if the request has invalid headers.
        """

        raw_length = environ.get('CONTENT_LENGTH', '')
        try:
            content_length = int(raw_length) if raw_length else 0
        except ValueError:
            content_length = -1

        body = RequestBodyWrapper(environ.get('wsgi.input', io.BytesIO()),
            content_length)

        if content_length < 0:
            body.close()
            raise HTTPError(HTTPStatus.BAD_REQUEST, "Bad Content-Length header")

        method: str = environ['REQUEST_METHOD'].upper()

        path: str = environ.get('PATH_INFO', '') or '/'

        remote_addr = environ.get('REMOTE_ADDR', '')

        headers = {}
        for key, value in environ.items():
            parts = key.split('_')
            if parts[0] != 'HTTP':
                continue

            key = '-'.join(part.title() for part in parts[1:])
            headers[key] = value

        if environ.get('CONTENT_TYPE'):
            headers['Content-Type'] = environ['CONTENT_TYPE']

        query = parse_qs(environ.get('QUERY_STRING', ''),
            keep_blank_values=True)

        return cls(method, path, headers, query, body, remote_addr)

    def drain_request_body(self) -> None:
        """
        Finishes reading the request body, if any.
        """

        self.body.close()
