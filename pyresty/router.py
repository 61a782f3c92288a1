"""
Router: registers actions for a method and a URL pattern, wrapping them with
the action dispatcher before handing them to the mux.
"""

import dataclasses
import typing

from .action import ActionDispatcher
from .config import Settings
from .validation import ActionHandle, ActionLike, ValidationRegistry
from .validation import ValidationStep
from .web import Mux, WSGIApp
from .web.routing import StartFunc
from .web.response import HTTPResponseData

ActionDecorator: typing.TypeAlias = typing.Callable[[ActionLike], ActionHandle]


@dataclasses.dataclass(frozen=True)
class Router:
    """
    Allows actions to be associated with a method and a URL pattern. Each
    registration method can be used directly:

    router.get('/api/items/:id', get_item).post('/api/items', add_item)

    or as a decorator, in which case the decorated function is replaced by its
    action handle:

    @router.get('/api/items/:id')
    def get_item(params, ctx):
        ...

    The router is itself a WSGI application.
    """

    registry: ValidationRegistry = dataclasses.field(
        default_factory=ValidationRegistry)
    settings: Settings = dataclasses.field(default_factory=Settings.from_env)
    _mux: Mux = dataclasses.field(default_factory=Mux)

    @property
    def dispatcher(self) -> ActionDispatcher:
        return ActionDispatcher(self.registry, self.settings)

    @typing.overload
    def route(self, method: str, path: str) -> ActionDecorator:
        raise NotImplementedError("Overload stub")

    @typing.overload
    def route(self, method: str, path: str, action: ActionLike) -> 'Router':
        raise NotImplementedError("Overload stub")

    def route(self, method: str, path: str, action: ActionLike | None = None
        ) -> 'Router | ActionDecorator':
        """
        Registers an action for the given method and path. Returns the router
        if the action is given, or a decorator otherwise.
        """

        if action is not None:
            self._add_route(method, path, action)
            return self

        def _route_inner(action: ActionLike) -> ActionHandle:
            return self._add_route(method, path, action)

        return _route_inner

    def get(self, path: str, action: ActionLike | None = None) -> typing.Any:
        """
        Adds a route with the GET method.
        """

        return self.route('GET', path, action)

    def post(self, path: str, action: ActionLike | None = None) -> typing.Any:
        """
        Adds a route with the POST method.
        """

        return self.route('POST', path, action)

    def put(self, path: str, action: ActionLike | None = None) -> typing.Any:
        """
        Adds a route with the PUT method.
        """

        return self.route('PUT', path, action)

    def delete(self, path: str, action: ActionLike | None = None
        ) -> typing.Any:
        """
        Adds a route with the DELETE method.
        """

        return self.route('DELETE', path, action)

    def head(self, path: str, action: ActionLike | None = None) -> typing.Any:
        """
        Adds a route with the HEAD method.
        """

        return self.route('HEAD', path, action)

    def patch(self, path: str, action: ActionLike | None = None) -> typing.Any:
        """
        Adds a route with the PATCH method.
        """

        return self.route('PATCH', path, action)

    def options(self, path: str, action: ActionLike | None = None
        ) -> typing.Any:
        """
        Adds a route with the OPTIONS method.
        """

        return self.route('OPTIONS', path, action)

    def add_validator(self, action: ActionLike, step: ValidationStep) -> None:
        """
        Adds a validation step to an action (registered in the router or not).
        """

        self.registry.add_validator(action, step)

    def validator(self, action: ActionLike) -> typing.Callable[
        [ValidationStep], ValidationStep]:
        """
        Decorator form of add_validator.
        """

        return self.registry.validator(action)

    def get_wsgi_app(self) -> WSGIApp:
        """
        Returns the WSGI entry point, after checking that routes were
        registered and configuring logging.
        """

        return self._mux.get_wsgi_app()

    def __call__(self, environ: dict[str, typing.Any],
        start_response: StartFunc) -> HTTPResponseData:
        """
        WSGI entry point; the request is handled by the mux.
        """

        return self._mux.wsgi_app(environ, start_response)

    def _add_route(self, method: str, path: str, action: ActionLike
        ) -> ActionHandle:
        """
        Registers the action and adds its wrapped view to the mux.
        """

        handle = self.registry.register(action)
        self._mux.handle(method, path, self.dispatcher.wrap(handle))

        return handle
