"""
Matches requests to the registered views, by path pattern and method.
"""

from http import HTTPStatus
import dataclasses
import logging
import re
import typing

from ..log_conf import configure_logging
from .request import HTTPRequest
from .response import HTTPBaseError, HTTPResponse, HTTPTextResponse
from .response import HTTPResponseData, status_line

LOGGER = logging.getLogger(__name__)

# Methods accepted by the mux
METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'HEAD', 'PATCH', 'OPTIONS')


@dataclasses.dataclass(frozen=True)
class URLMatcher:
    """
    Matches a URL to find the associated view. The matching pattern is a string
    containing placeholders. These placeholders are extracted from a matching
    URL and returned into a dictionary.
     - A {name} placeholder in the middle of the URL will match any non-/
       characters (1 character minimum)
     - A {name} placeholder at the very end of the URL will match any
       characters (including zero characters)
     - A {name:d} placeholder will match a positive integer; the extracted
       result will be provided as an int instead of a string.
     - A :name placeholder following a / will match a single, non-empty path
       segment, wherever it appears.
    """

    # Regular expression used to match a URL against the view
    pattern: typing.Pattern[str]

    # Placeholder names, in the order they appear in the URL. Their value
    # is True iff the placeholder accepts an integer value.
    placeholders: dict[str, bool]

    PLACEHOLDER_RE = re.compile(r'{(.*?)}|(?<=/):([^/]*)')
    IDENT_RE = re.compile(r'^([a-zA-Z_][a-zA-Z0-9_]*)(:d)?$')
    SEGMENT_IDENT_RE = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')

    @classmethod
    def from_pattern(cls, pattern: str) -> typing.Self:
        """
        Creates a matcher from the provided pattern.
        """

        placeholders: dict[str, bool] = {}
        regex_parts: list[str] = ['^']

        if len(pattern) < 1 or pattern[0] != '/':
            raise ValueError("URL patterns must start with /")

        cls._parse_pattern_into(pattern, placeholders, regex_parts)

        regex_parts.append('$')

        compiled_pattern = re.compile(''.join(regex_parts))

        return cls(compiled_pattern, placeholders)

    def match(self, url: str) -> dict[str, str | int] | None:
        """
        Matches a URL path against the pattern. If successful, returns a
        dictionary containing the placeholder values (possibly empty if there
        are not placeholders!)
        Returns None if the URL did not match the pattern.
        """

        match = self.pattern.match(url)
        if match is None:
            return None

        result: dict[str, str | int] = {}
        for key, value in match.groupdict().items():
            if self.placeholders[key]:
                result[key] = int(value, 10)
            else:
                result[key] = value

        return result

    @classmethod
    def _parse_pattern_into(cls, pattern: str, placeholders: dict[str, bool],
        regex_parts: list[str]) -> None:
        """
        Parse the provided pattern string, and fills the provided parameters
        """

        pat_len = len(pattern)

        # Start position of the last fixed part
        fixed_pos = 0

        for match in cls.PLACEHOLDER_RE.finditer(pattern):
            braced_ident, segment_ident = match.groups()

            if braced_ident is not None:
                ident_match = cls.IDENT_RE.match(braced_ident)
                if ident_match is None:
                    raise ValueError(f"Invalid placeholder {braced_ident!r}")
                ident, suffix = ident_match.groups()
            else:
                if cls.SEGMENT_IDENT_RE.match(segment_ident) is None:
                    raise ValueError(f"Invalid placeholder {segment_ident!r}")
                ident, suffix = segment_ident, None

            # Add the fixed part (text before the placeholder)
            start, end = match.span()
            regex_parts.append(re.escape(pattern[fixed_pos:start]))

            # Validate and add the placeholder
            if ident in placeholders:
                raise ValueError(f"Placeholder {ident!r} used multiple times")

            if suffix:
                # Integer matching
                regex_parts.append(rf'(?P<{ident}>\d{{1,20}})')
                placeholders[ident] = True
            else:
                if end == pat_len and braced_ident is not None:
                    # String matching all
                    regex_parts.append(rf'(?P<{ident}>.*)')
                else:
                    # String matching 1+ non-slash
                    regex_parts.append(rf'(?P<{ident}>[^/]+)')
                placeholders[ident] = False

            fixed_pos = end

        # Add the fixed part at the end of the string
        regex_parts.append(re.escape(pattern[fixed_pos:]))


# Type of a function that can be used as a view. The path parameters are
# available in request.path_params.
ViewCallable: typing.TypeAlias = typing.Callable[[HTTPRequest], HTTPResponse]


@dataclasses.dataclass(frozen=True)
class Route:
    """
    Associates a URL matcher and a method with a view function, so that a
    request can be dispatched to the appropriate function.
    """

    method: str
    matcher: URLMatcher
    view_func: ViewCallable

    # Pattern the matcher was created from
    pattern: str

    def dispatch(self, request: HTTPRequest) -> HTTPResponse | None:
        """
        Checks if the request’s method and URL match the route, and if that is
        the case, dispatches the request (with the path parameters attached)
        into the view function. The view response is returned.

        If the method or the URL does not match, None is returned.
        """

        if request.method != self.method:
            return None

        values = self.matcher.match(request.path)
        if values is None:
            return None

        request = dataclasses.replace(request, path_params=values)

        return self.view_func(request)

    def check_url(self, path: str) -> bool:
        """
        Returns True iff the provided URL matches the route pattern.
        """

        # The return value of match can be a false value (empty dict) in case of
        # a successful match, compare to None instead
        return self.matcher.match(path) is not None

    @classmethod
    def create(cls, method: str, pattern: str, view_func: ViewCallable
        ) -> 'Route':
        """
        Creates and returns a Route object for the given method and pattern.
        """

        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported method {method!r}")

        return cls(method, URLMatcher.from_pattern(pattern), view_func, pattern)


# Type of the WSGI entry point start_response function
StartFunc: typing.TypeAlias = typing.Callable[[str, list[tuple[str, str]]],
    typing.Any]

# Type of a WSGI application
WSGIApp: typing.TypeAlias = typing.Callable[[dict[str, typing.Any], StartFunc],
    HTTPResponseData]


@dataclasses.dataclass(frozen=True)
class Mux:
    """
    Associates views with a method and a URL pattern.
    Once the views are registered, an HTTP request can be dispatched to the
    appropriate view and its result returned back.
    This also provides a directly usable WSGI entry point.
    """

    # Registered routes, in registration order
    _routes: list[Route] = dataclasses.field(default_factory=list)

    def get_wsgi_app(self) -> WSGIApp:
        """
        Returns the WSGI entry point callable that will handle the requests.
        This checks that at least one route was registered.
        """

        if not self._routes:
            raise AssertionError("No routes are registered.")

        configure_logging()

        return self.wsgi_app

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Tries all registered routes to handle the request, and returns the
        response.
        If some routes match the path but not the method, a Method Not Allowed
        response is returned. If nothing is found, a Not Found response is
        returned.
        """

        for route in self._routes:
            response = route.dispatch(request)
            if response is not None:
                return response

        allowed = self.allowed_methods(request.path)
        if allowed:
            return HTTPTextResponse.status_page(HTTPStatus.METHOD_NOT_ALLOWED,
                extra_headers={'Allow': ', '.join(allowed)})

        return HTTPTextResponse.status_page(HTTPStatus.NOT_FOUND)

    def allowed_methods(self, path: str) -> list[str]:
        """
        Returns the methods of the routes matching a path (within the
        application), in registration order.
        """

        methods: list[str] = []
        for route in self._routes:
            if route.method not in methods and route.check_url(path):
                methods.append(route.method)

        return methods

    def handle(self, method: str, pattern: str, view_func: ViewCallable
        ) -> Route:
        """
        Registers a view function for a method and a pattern.
        Returns the registered Route object.
        """

        route = Route.create(method, pattern, view_func)
        self._routes.append(route)

        LOGGER.debug("Registered route %s %s", route.method, pattern)

        return route

    def wsgi_app(self, environ: dict[str, typing.Any],
        start_response: StartFunc) -> HTTPResponseData:
        """
        WSGI entry point. Parses the request, dispatches it, and returns the
        response.
        """

        request: HTTPRequest | None = None

        try:
            request = HTTPRequest.from_req(environ)
            response = self.dispatch(request)
        except HTTPBaseError as err:
            response = err.response
        finally:
            if request is not None:
                request.drain_request_body()

        headers = [
            ('Content-Type', response.content_type),
        ]

        for key, value in response.extra_headers.items():
            headers.append((key, value))

        content_length, data = response.get_data()
        if content_length >= 0:
            headers.append(('Content-Length', str(content_length)))

        start_response(status_line(response.status), headers)
        return data
