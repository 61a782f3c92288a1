"""
Action dispatching: runs the validation steps of an action, calls it, and
converts its result into an HTTP response.
"""

from http import HTTPStatus
import dataclasses
import json
import logging
import typing

from .config import Settings
from .context import RequestContext
from .params import ParamHandler, RequestParams
from .results import Empty, JSONValue, RawStream, Resource, Result, Text
from .sniff import SNIFF_LEN, detect_content_type
from .validation import ActionHandle, ActionLike, ErrorList, ValidationRegistry
from .web import HTTPBaseError, HTTPRequest, HTTPResponse, HTTPStreamResponse
from .web import HTTPTextResponse

LOGGER = logging.getLogger(__name__)

JSON_CONTENT_TYPE = 'application/json; charset=utf-8'

# Type of a view function accepted by the mux
ActionView: typing.TypeAlias = typing.Callable[[HTTPRequest], HTTPResponse]


def internal_error() -> HTTPResponse:
    """
    Returns the response sent when an action or a validation step fails.
    """

    return HTTPTextResponse.status_page(HTTPStatus.INTERNAL_SERVER_ERROR)


def json_response(value: typing.Any, status: int) -> HTTPResponse:
    """
    Serializes a value as compact JSON. Dataclass instances are converted to
    dictionaries. Raises a TypeError or a ValueError if the value can not be
    serialized.
    """

    text = json.dumps(value, separators=(',', ':'), ensure_ascii=False,
        allow_nan=False, default=_json_default)

    return HTTPTextResponse(text, status, JSON_CONTENT_TYPE)


def _json_default(value: typing.Any) -> typing.Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)

    raise TypeError(f"Object of type {type(value).__name__} is not JSON "
        f"serializable")


@dataclasses.dataclass(frozen=True)
class ActionDispatcher:
    """
    Wraps actions into views that can be registered in the mux.
    """

    registry: ValidationRegistry = dataclasses.field(
        default_factory=ValidationRegistry)
    settings: Settings = dataclasses.field(default_factory=Settings)

    def wrap(self, action: ActionLike) -> ActionView:
        """
        Registers the action and returns a view that dispatches requests to it.
        """

        handle = self.registry.register(action)

        def _action_view(request: HTTPRequest) -> HTTPResponse:
            return self.dispatch(handle, request)

        _action_view.__qualname__ = f'action_view[{handle.name}]'

        return _action_view

    def dispatch(self, handle: ActionHandle, request: HTTPRequest
        ) -> HTTPResponse:
        """
        Validates the request, calls the action and returns its converted
        result.
        """

        params = RequestParams(request, self.settings.max_body_size)
        ctx = RequestContext.with_timeout(self.settings.request_timeout)

        return self.run(handle, params, ctx)

    def run(self, handle: ActionHandle, params: ParamHandler,
        ctx: RequestContext) -> HTTPResponse:
        """
        Validates the parameters, calls the action and returns its converted
        result. HTTPBaseError exceptions raised by the action are propagated;
        any other failure results in an Internal Server Error response.
        """

        response = self.validate(handle, params, ctx)
        if response is not None:
            return response

        try:
            returned = handle(params, ctx)
        except HTTPBaseError:
            raise
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Error executing action %s", handle)
            return internal_error()

        if not (isinstance(returned, tuple) and len(returned) == 2
            and isinstance(returned[1], int)):
            LOGGER.error("Action %s returned %r instead of a (result, status) "
                "pair", handle, returned)
            return internal_error()

        result, status = returned

        return self.convert(handle, result, status)

    def validate(self, handle: ActionHandle, params: ParamHandler,
        ctx: RequestContext) -> HTTPResponse | None:
        """
        Runs the validation steps of the action, in registration order.
        Returns None if the request is valid (or if the action has no
        validation steps), or the response to send otherwise:
         - a Bad Request response listing the collected messages if the steps
           added errors;
         - an Internal Server Error response if a step raised an exception.
           The remaining steps are not executed in that case.
        """

        steps = self.registry.get_validators(handle)
        if steps is None:
            return None

        errors = ErrorList()
        for step in steps:
            try:
                step(params, ctx, errors)
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception("Error executing validation function %r for "
                    "%s", step, handle)
                if errors.has_error():
                    LOGGER.debug("Discarded validation errors for %s: %r",
                        handle, errors.errors)
                return internal_error()

        if errors.has_error():
            return json_response(errors.to_json(), HTTPStatus.BAD_REQUEST)

        return None

    def convert(self, handle: ActionHandle, result: Result, status: int
        ) -> HTTPResponse:
        """
        Converts an action result into an HTTP response. A status of 0 or less
        is replaced by No Content for empty results and OK for the others.
        """

        if isinstance(result, Empty):
            if status <= 0:
                status = HTTPStatus.NO_CONTENT

            return HTTPTextResponse('', status)

        if status <= 0:
            status = HTTPStatus.OK

        if isinstance(result, Text):
            return HTTPTextResponse(result.text, status)

        if isinstance(result, Resource):
            content_length = result.content_length
            if content_length <= 0:
                content_length = -1

            return HTTPStreamResponse(result.reader, result.content_type,
                content_length, status)

        if isinstance(result, RawStream):
            return self._sniff_stream(handle, result.reader, status)

        if isinstance(result, JSONValue):
            try:
                return json_response(result.value, status)
            except (TypeError, ValueError):
                LOGGER.exception("Cannot serialize the result of action %s",
                    handle)
                return internal_error()

        LOGGER.error("Action %s returned unsupported result %r", handle,
            result)
        return internal_error()

    @staticmethod
    def _sniff_stream(handle: ActionHandle, reader: typing.BinaryIO,
        status: int) -> HTTPResponse:
        """
        Reads the beginning of a stream to detect its content type, and returns
        a response sending the whole stream. An empty stream results in a No
        Content response.
        """

        try:
            head = reader.read(SNIFF_LEN)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Error reading from the stream returned by %s",
                handle)
            return internal_error()

        if not head:
            reader.close()
            return HTTPTextResponse('', HTTPStatus.NO_CONTENT)

        return HTTPStreamResponse(reader, detect_content_type(head),
            status=status, head=head)


def handle_action(action: ActionLike,
    registry: ValidationRegistry | None = None,
    settings: Settings | None = None) -> ActionView:
    """
    Converts an action into a stand-alone view. The validation steps are
    looked up in the given registry (an empty one if not specified).
    """

    if registry is None:
        registry = ValidationRegistry()

    if settings is None:
        settings = Settings()

    return ActionDispatcher(registry, settings).wrap(action)
