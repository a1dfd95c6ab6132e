"""
=============================================================================
HTTP MODEL AND ROUTING
=============================================================================

The request/response value objects and the router that connects them.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  request.py   Request, body parsing, form decoding helpers          │
    │  response.py  Response, header multi-map, Transport, flush          │
    │  router.py    RouteTable, Route, Dispatcher, pattern compilation    │
    └─────────────────────────────────────────────────────────────────────┘

Nothing in this package touches sockets: a transport (see slimrouter.core)
feeds Requests in and receives flushed Responses.

=============================================================================
"""

from .request import Request, JSONValue, ParsedBody, parse_form, parse_multipart
from .response import (
    Response,
    ResponseAlreadySentError,
    Transport,
    json_response,
    not_found,
    reason_phrase,
)
from .router import (
    Dispatcher,
    Handler,
    Route,
    RouteMatch,
    RouteTable,
    compile_pattern,
    normalize_path,
)

__all__ = [
    # Request
    "Request",
    "JSONValue",
    "ParsedBody",
    "parse_form",
    "parse_multipart",

    # Response
    "Response",
    "ResponseAlreadySentError",
    "Transport",
    "json_response",
    "not_found",
    "reason_phrase",

    # Routing
    "Dispatcher",
    "Handler",
    "Route",
    "RouteMatch",
    "RouteTable",
    "compile_pattern",
    "normalize_path",
]
