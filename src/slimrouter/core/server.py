"""
=============================================================================
DEVELOPMENT SERVER
=============================================================================

Serves a WSGI application with the standard library's wsgiref. HTTP wire
parsing, keep-alive and error pages all belong to wsgiref; this module only
picks the server class and routes wsgiref's own chatter into logging.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   make_server(app, host, port, threaded)                            │
    │        │                                                             │
    │        ├── threaded=False → WSGIServer           (one at a time)    │
    │        └── threaded=True  → ThreadingWSGIServer  (thread/request)   │
    │                                                                      │
    │   handler_class = LoggingRequestHandler                             │
    │        log_message → logger.debug    (access log is ours)           │
    └─────────────────────────────────────────────────────────────────────┘

Not meant for production: put a real WSGI server (gunicorn, uWSGI, ...) in
front of App instead.

=============================================================================
"""

from socketserver import ThreadingMixIn
from typing import Callable
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer
from wsgiref.simple_server import make_server as _wsgiref_make_server
import logging


logger = logging.getLogger(__name__)


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """WSGIServer that handles each request on a new daemon thread."""

    daemon_threads = True


class LoggingRequestHandler(WSGIRequestHandler):
    """Request handler that logs through `logging` instead of stderr."""

    def log_message(self, format, *args):
        logger.debug(f"{self.address_string()} {format % args}")

    def log_error(self, format, *args):
        logger.error(f"{self.address_string()} {format % args}")


def make_server(
    app: Callable,
    host: str = "127.0.0.1",
    port: int = 8080,
    threaded: bool = False,
) -> WSGIServer:
    """
    Create (but do not start) a development server for a WSGI app.

    Args:
        app: WSGI callable
        host: Interface to bind
        port: Port to bind (0 lets the OS pick one)
        threaded: Serve each request on its own thread

    Returns:
        The bound server; call serve_forever() on it
    """
    server_class = ThreadingWSGIServer if threaded else WSGIServer
    server = _wsgiref_make_server(
        host,
        port,
        app,
        server_class=server_class,
        handler_class=LoggingRequestHandler,
    )
    logger.debug(f"Bound {server_class.__name__} to {host}:{server.server_port}")
    return server
