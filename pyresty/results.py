"""
Values returned by actions. An action returns a (result, status) pair where
the result is one of:
 - EMPTY: no body
 - Text: a plain text body
 - Resource: a binary stream with a known content type (and possibly length)
 - RawStream: a binary stream whose content type is detected from its start
 - JSONValue: any JSON-serializable value (dataclass instances included)
A status code of 0 or less lets the dispatcher choose the status.
"""

from http import HTTPStatus
import dataclasses
import enum
import typing

from .web import status_phrase


class Empty(enum.Enum):
    """
    Result without any body.
    """

    EMPTY = enum.auto()

    def __repr__(self) -> str:
        return 'EMPTY'


EMPTY = Empty.EMPTY


@dataclasses.dataclass(frozen=True)
class Text:
    """
    Plain text result, sent as UTF-8.
    """

    text: str


@dataclasses.dataclass(frozen=True)
class Resource:
    """
    Streaming resource: the body is copied from the reader without being
    loaded in memory. The Content-Length header is only sent if
    content_length is positive.
    """

    content_type: str
    content_length: int
    reader: typing.BinaryIO


@dataclasses.dataclass(frozen=True)
class RawStream:
    """
    Binary stream whose content type is unknown; it is detected from the first
    bytes of the stream.
    """

    reader: typing.BinaryIO


@dataclasses.dataclass(frozen=True)
class JSONValue:
    """
    Structured value, serialized as JSON.
    """

    value: typing.Any


Result: typing.TypeAlias = Empty | Text | Resource | RawStream | JSONValue

# Return value of an action
ActionReturn: typing.TypeAlias = tuple[Result, int]


def status_error(status: int) -> ActionReturn:
    """
    Returns the standard text of the given status, with that status.
    """

    return Text(status_phrase(status)), status


def status_not_found() -> ActionReturn:
    return status_error(HTTPStatus.NOT_FOUND)


def status_bad_request() -> ActionReturn:
    return status_error(HTTPStatus.BAD_REQUEST)


def status_internal_server_error() -> ActionReturn:
    return status_error(HTTPStatus.INTERNAL_SERVER_ERROR)


def status_ok(result: Result | None = None) -> ActionReturn:
    """
    Returns the result with an OK status, or an empty No Content result if
    there is no result.
    """

    if result is None or result is EMPTY:
        return EMPTY, HTTPStatus.NO_CONTENT

    return result, HTTPStatus.OK
