"""
Module entry point; runs a router with the development server
"""

from wsgiref.simple_server import make_server
import argparse
import importlib
import logging

from .router import Router

LOGGER = logging.getLogger(__name__)


def run() -> None:
    """
    Development tools entry point
    """

    parser = argparse.ArgumentParser(prog='python3 -m pyresty',
        description="pyresty development tools")

    sub = parser.add_subparsers(title="Available commands", metavar='command',
        required=True)

    serve_p = sub.add_parser('serve',
        help="Serve a router with the wsgiref development server")
    serve_p.add_argument('target',
        help="Router to serve, as module:attribute")
    serve_p.add_argument('--host', default='127.0.0.1',
        help="Address to listen on (default: %(default)s)")
    serve_p.add_argument('-p', '--port', type=int, default=8000,
        help="Port to listen on (default: %(default)s)")
    serve_p.set_defaults(func=_serve)

    args = parser.parse_args()

    args.func(args)


def load_router(target: str) -> Router:
    """
    Imports a router designated by a module:attribute string.
    """

    mod_name, sep, attr_name = target.partition(':')
    if not sep or not mod_name or not attr_name:
        raise ValueError(f"Invalid target {target!r}, expected "
            "module:attribute")

    module = importlib.import_module(mod_name)

    try:
        router = getattr(module, attr_name)
    except AttributeError:
        raise ValueError(f"Module {mod_name!r} has no attribute "
            f"{attr_name!r}") from None

    if not isinstance(router, Router):
        raise ValueError(f"{target} is not a Router")

    return router


def _serve(args: argparse.Namespace) -> None:
    """
    Serves the router until interrupted.
    """

    router = load_router(args.target)
    app = router.get_wsgi_app()

    with make_server(args.host, args.port, app) as server:
        LOGGER.info("Serving %s on http://%s:%d/", args.target, args.host,
            args.port)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            LOGGER.info("Interrupted, exiting")


if __name__ == '__main__':
    run()
