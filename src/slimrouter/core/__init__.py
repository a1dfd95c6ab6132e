"""
=============================================================================
HOSTING COMPONENTS
=============================================================================

Everything between the router and the outside world:

- transport.py   Request construction from WSGI environs, response flush
                 targets (WSGITransport, BufferedTransport)
- server.py      wsgiref-based development server
- access_log.py  One log line per exchange

=============================================================================
"""

from .access_log import AccessLogger, RequestLog
from .server import LoggingRequestHandler, ThreadingWSGIServer, make_server
from .transport import BufferedTransport, WSGITransport, request_from_environ

__all__ = [
    "AccessLogger",
    "RequestLog",
    "LoggingRequestHandler",
    "ThreadingWSGIServer",
    "make_server",
    "BufferedTransport",
    "WSGITransport",
    "request_from_environ",
]
