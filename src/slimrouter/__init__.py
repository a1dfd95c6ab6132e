"""
=============================================================================
SLIMROUTER - A MINIMAL HTTP ROUTER
=============================================================================

Maps (method, path) pairs to handler functions, with `{name}` placeholders
bound into an args mapping. Unmatched requests get a fixed 404.

    from slimrouter import App

    app = App()

    @app.get("/hello/{name}")
    def hello(request, response, args):
        return response.write(f"Hello, {args['name']}")

    app.serve()

Package layout:

    slimrouter/
    ├── app.py        App: registration surface + WSGI callable
    ├── config.py     ServerConfig
    ├── http/         Request, Response, RouteTable, Dispatcher
    ├── core/         Transports, development server, access log
    └── handlers/     CORS policy, demo routes

=============================================================================
"""

from .app import App, create_app
from .config import ServerConfig
from .http import (
    Dispatcher,
    Request,
    Response,
    ResponseAlreadySentError,
    RouteTable,
)

__version__ = "1.0.0"

__all__ = [
    "App",
    "create_app",
    "ServerConfig",
    "Dispatcher",
    "Request",
    "Response",
    "ResponseAlreadySentError",
    "RouteTable",
    "__version__",
]
