"""
Access to the request parameters (path, query string and body) given to
actions and validation steps.
"""

import dataclasses
import io
import json
import typing

from .config import DEFAULT_MAX_BODY_SIZE
from .web import HTTPRequest

T = typing.TypeVar('T')


class BodyDecodeError(ValueError):
    """
    Raised when the request body can not be read or decoded.
    """


class ParamHandler(typing.Protocol):
    """
    Read-only access to the parameters of a request.
    """

    def param(self, key: str) -> str:
        """
        Returns the value of a path parameter ('' if absent).
        """

    def query(self, key: str) -> str:
        """
        Returns the first value of a query parameter ('' if absent).
        """

    def queries(self, key: str) -> list[str]:
        """
        Returns all values of a query parameter ([] if absent).
        """

    def scan_body(self, target_type: typing.Callable[..., T] | None = None
        ) -> T | typing.Any:
        """
        Decodes the request body as JSON. If a target type is given, the
        decoded value is converted into it (see decode_json_body). Raises a
        BodyDecodeError if the body can not be read or decoded.
        """


def decode_json_body(data: bytes, target_type: typing.Callable[..., T] | None
    ) -> T | typing.Any:
    """
    Decodes a JSON document and converts it into the target type:
     - no target type: the decoded value is returned as-is
     - a dataclass: the decoded object is passed as keyword arguments
     - any other callable: the decoded value is passed as the only argument
    """

    try:
        value = json.loads(data.decode('utf-8'))
    except UnicodeDecodeError as err:
        raise BodyDecodeError(f"Request body is not valid UTF-8: {err}"
            ) from err
    except json.JSONDecodeError as err:
        raise BodyDecodeError(f"Invalid JSON request body: {err}") from err

    if target_type is None:
        return value

    is_dataclass = dataclasses.is_dataclass(target_type)
    if is_dataclass and not isinstance(value, dict):
        raise BodyDecodeError(f"Expected a JSON object, got "
            f"{type(value).__name__}")

    try:
        if is_dataclass:
            return target_type(**value)

        return target_type(value)
    except (TypeError, ValueError) as err:
        raise BodyDecodeError(f"Cannot convert request body: {err}") from err


class RequestParams:
    """
    Parameter handler backed by an HTTP request. The body is read on the first
    scan_body call and kept, so that it can be decoded again.
    """

    def __init__(self, request: HTTPRequest,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE) -> None:
        self._request = request
        self._max_body_size = max_body_size
        self._body_data: bytes | None = None

    def param(self, key: str) -> str:
        value = self._request.path_params.get(key)
        if value is None:
            return ''

        return str(value)

    def query(self, key: str) -> str:
        values = self.queries(key)
        if values:
            return values[0]

        return ''

    def queries(self, key: str) -> list[str]:
        return list(self._request.query.get(key, []))

    def scan_body(self, target_type: typing.Callable[..., T] | None = None
        ) -> T | typing.Any:
        if self._body_data is None:
            self._body_data = self._read_body()

        return decode_json_body(self._body_data, target_type)

    def _read_body(self) -> bytes:
        """
        Reads the whole request body, checking its size.
        """

        body = self._request.body
        if body.length > self._max_body_size:
            raise BodyDecodeError(f"Request body too large ({body.length} "
                f"bytes, maximum {self._max_body_size})")

        try:
            data = body.read()
        except (OSError, ValueError) as err:
            raise BodyDecodeError(f"Cannot read request body: {err}") from err

        if len(data) != body.length:
            raise BodyDecodeError("Truncated request body")

        return data

    def __repr__(self) -> str:
        return (f"<{self.__class__.__name__} {self._request.method} "
            f"{self._request.path}>")


@dataclasses.dataclass
class ParamBuilder:
    """
    Synthetic parameter handler, built from explicit values instead of a
    request. Used to call actions and validation steps directly (in tests, for
    instance). Operations whose values were not provided are programming
    errors and fail with an AssertionError.
    """

    # Path parameters
    params: dict[str, str] | None = None

    # Query parameters; a value may be a single string or a list of strings
    query_values: dict[str, str | list[str]] | None = None

    # Request body
    body: bytes | typing.BinaryIO | None = None

    def param(self, key: str) -> str:
        if self.params is None:
            raise AssertionError("This parameter handler does not support "
                "path parameters")

        if key not in self.params:
            raise AssertionError(f"This parameter handler does not have path "
                f"parameter {key!r}")

        return self.params[key]

    def query(self, key: str) -> str:
        values = self.queries(key)
        if values:
            return values[0]

        return ''

    def queries(self, key: str) -> list[str]:
        if self.query_values is None:
            raise AssertionError("This parameter handler does not support "
                "query parameters")

        value = self.query_values.get(key, [])
        if isinstance(value, str):
            return [value]

        return list(value)

    def scan_body(self, target_type: typing.Callable[..., T] | None = None
        ) -> T | typing.Any:
        if self.body is None:
            raise AssertionError("This parameter handler does not support "
                "body scanning")

        if isinstance(self.body, bytes):
            reader: typing.BinaryIO = io.BytesIO(self.body)
        else:
            reader = self.body

        try:
            data = reader.read()
        except (OSError, ValueError) as err:
            raise BodyDecodeError(f"Cannot read request body: {err}") from err

        return decode_json_body(data, target_type)


def single_param(key: str, value: typing.Any) -> ParamBuilder:
    """
    Returns a parameter handler that only holds one path parameter. The value
    is converted to a string.
    """

    return ParamBuilder(params={key: str(value)})
