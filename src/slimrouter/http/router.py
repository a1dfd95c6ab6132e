"""
=============================================================================
URL ROUTER
=============================================================================

Matches an incoming method + path to a registered handler, binds named
path parameters, invokes the handler and flushes its response.

- Static paths: /api/users
- Placeholders: /api/users/{id}, /posts/{slug}/comments/{cid}
- Method-based routing: GET, POST, PUT, PATCH, DELETE

=============================================================================
ROUTING FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /api/users/42/?verbose=1                                      │
    │        │                                                             │
    │        ▼  normalize: drop "?..." and trailing "/"                   │
    │   GET /api/users/42                                                 │
    │        │                                                             │
    │        ▼  1. exact lookup in table["GET"]                           │
    │   miss                                                               │
    │        │                                                             │
    │        ▼  2. scan placeholder patterns, registration order          │
    │   ┌──────────────────────────────────────────────────────────────┐  │
    │   │ /hello/{name}       → no                                     │  │
    │   │ /api/users/{id}     → MATCH  {"id": "42"}   ← first wins     │  │
    │   │ /api/{kind}/{id}    → (never tried)                          │  │
    │   └──────────────────────────────────────────────────────────────┘  │
    │        │                                                             │
    │        ▼                                                             │
    │   handler(request, response, {"id": "42"})                          │
    │        │                                                             │
    │        ▼                                                             │
    │   response.send(transport)   ← exactly once                         │
    │                                                                      │
    │   No match at all → 404, body "404 - Not Found"                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PATTERN COMPILATION
=============================================================================

    Pattern:  /users/{id}/posts/{post_id}
                      │           │
                      ▼           ▼
    Regex:    /users/([^/]+)/posts/([^/]+)        (used with re.fullmatch)
    Names:    ["id", "post_id"]

    Literal text is re.escape()d, so "/v1.0/{x}" matches a literal dot.
    Captures are bound to names by position.

=============================================================================
FIRST MATCH, NOT BEST MATCH
=============================================================================

Placeholder patterns are tried in the order they were registered and the
first full match wins. Given:

    app.get("/items/{id}", show_item)
    app.get("/items/new",  new_item_form)

a request for /items/new reaches new_item_form, because the exact lookup
runs BEFORE the placeholder scan. But with:

    app.get("/items/{id}",     show_item)
    app.get("/items/{id}/{x}", ...)
    app.get("/{kind}/{id}",    generic)

a request for /items/7 goes to show_item simply because it was registered
before generic. Order of registration is part of the routing contract.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple
import logging
import re

from .request import Request
from .response import Response, Transport, not_found


logger = logging.getLogger(__name__)


# =============================================================================
# TYPE ALIASES
# =============================================================================

# Handler: takes (request, response, path params), returns a response.
# Returning None means "I mutated the response I was given".
Handler = Callable[[Request, Response, Dict[str, str]], Optional[Response]]

# A {name} placeholder: anything except "/" and braces between braces
PLACEHOLDER_PATTERN = re.compile(r"\{([^/{}]+)\}")

# What a placeholder matches in a request path: one segment, never empty
SEGMENT_REGEX = "([^/]+)"


def has_placeholder(pattern: str) -> bool:
    return PLACEHOLDER_PATTERN.search(pattern) is not None


def compile_pattern(pattern: str) -> Tuple["re.Pattern[str]", List[str]]:
    """
    Compile a path template into a regex and its ordered placeholder names.

    Args:
        pattern: Path template, e.g. "/api/users/{id}"

    Returns:
        Tuple of (compiled regex for re.fullmatch, placeholder names)

    Example:
        >>> regex, names = compile_pattern("/hello/{name}")
        >>> regex.fullmatch("/hello/world").groups()
        ('world',)
        >>> names
        ['name']
    """
    names: List[str] = []
    parts: List[str] = []
    position = 0

    for match in PLACEHOLDER_PATTERN.finditer(pattern):
        parts.append(re.escape(pattern[position:match.start()]))
        parts.append(SEGMENT_REGEX)
        names.append(match.group(1))
        position = match.end()

    parts.append(re.escape(pattern[position:]))
    return re.compile("".join(parts)), names


def normalize_path(uri: str) -> str:
    """
    Reduce a request URI to the path the route table is keyed on.

        "/api/users?page=2" → "/api/users"
        "/api/users/"       → "/api/users"
        "/api/users//"      → "/api/users/"   (only ONE slash is dropped)
        "/"                 → "/"
        ""                  → "/"
        "/?x=1"             → "/"
    """
    path = uri.split("?", 1)[0]
    if path.endswith("/"):
        path = path[:-1]
    return path or "/"


@dataclass
class Route:
    """
    A (method, pattern) pair bound to a handler.

    The regex and the placeholder names are compiled once, when the route
    is registered. Static routes have no regex at all.
    """

    method: str
    pattern: str
    handler: Handler

    _regex: Optional["re.Pattern[str]"] = field(default=None, init=False, repr=False)
    _param_names: List[str] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        if has_placeholder(self.pattern):
            self._regex, self._param_names = compile_pattern(self.pattern)

    @property
    def is_dynamic(self) -> bool:
        return self._regex is not None

    @property
    def param_names(self) -> List[str]:
        return list(self._param_names)

    def match(self, path: str) -> Optional[Dict[str, str]]:
        """
        Match a normalized path against this route's placeholders.

        Returns:
            Parameter binding if the whole path matches, None otherwise.
            Static routes never match here; they are found by exact lookup.
        """
        if self._regex is None:
            return None
        found = self._regex.fullmatch(path)
        if found is None:
            return None
        return dict(zip(self._param_names, found.groups()))


@dataclass
class RouteMatch:
    """
    Result of a successful resolution.

    Example:
        Pattern: /hello/{name}
        Path:    /hello/world
        Result:  RouteMatch(route=<Route>, params={"name": "world"})
    """

    route: Route
    params: Dict[str, str]


class RouteTable:
    """
    Method → (pattern → route) register.

    =========================================================================
    LIFECYCLE
    =========================================================================

    Filled during application setup, read-only once requests flow. There is
    no removal. Registering the same (method, pattern) twice replaces the
    handler but keeps the pattern's original position in scan order, and
    logs a warning.

    Because the table is not modified while serving, concurrent dispatches
    can read it without locking.

    =========================================================================
    """

    def __init__(self):
        self._routes: Dict[str, Dict[str, Route]] = {}

    def register(self, method: str, pattern: str, handler: Handler) -> Route:
        """
        Store a handler under (method, pattern).

        The pattern is stored exactly as given: no trailing-slash trimming,
        no case folding.

        Args:
            method: HTTP method, e.g. "GET"
            pattern: Path template
            handler: Callable taking (request, response, params)

        Returns:
            The registered Route
        """
        by_pattern = self._routes.setdefault(method, {})
        if pattern in by_pattern:
            logger.warning(f"Route {method} {pattern} registered twice; the later handler wins")

        route = Route(method=method, pattern=pattern, handler=handler)
        by_pattern[pattern] = route
        logger.debug(f"Registered route {method} {pattern}")
        return route

    def lookup_exact(self, method: str, path: str) -> Optional[Route]:
        """
        Find the literal route whose pattern string equals path exactly.

        Placeholder patterns never match here, even when a client sends the
        template text itself ("/hello/{name}"); those go through the scan.
        """
        route = self._routes.get(method, {}).get(path)
        if route is None or route.is_dynamic:
            return None
        return route

    def iterate(self, method: str) -> Iterator[Route]:
        """
        Yield the placeholder-bearing routes of a method, in registration order.

        This is a generator: each call starts a fresh scan, and the scan
        stops as soon as the caller stops asking.
        """
        for route in self._routes.get(method, {}).values():
            if route.is_dynamic:
                yield route

    def routes(self) -> List[Route]:
        """All routes, grouped by method, in registration order."""
        return [route for by_pattern in self._routes.values() for route in by_pattern.values()]

    def __len__(self) -> int:
        return sum(len(by_pattern) for by_pattern in self._routes.values())

    def __contains__(self, key: Tuple[str, str]) -> bool:
        method, pattern = key
        return pattern in self._routes.get(method, {})


class Dispatcher:
    """
    Resolves, invokes and flushes.

    =========================================================================
    FAILURE SEMANTICS
    =========================================================================

    The dispatcher itself does not fail: an unknown route is a 404 response,
    not an exception. A handler that raises is a different story; its
    exception leaves dispatch() untouched and it is up to the transport to
    turn it into an error response.

    =========================================================================
    """

    def __init__(self, table: RouteTable):
        self.table = table

    def resolve(self, method: str, uri: str) -> Optional[RouteMatch]:
        """
        Find the route for a method and URI.

        Args:
            method: HTTP method (case-sensitive)
            uri: Request URI; query string and trailing "/" are ignored

        Returns:
            RouteMatch if found, None otherwise
        """
        path = normalize_path(uri)

        # Exact lookup first: a literal pattern beats any placeholder
        route = self.table.lookup_exact(method, path)
        if route is not None:
            return RouteMatch(route=route, params={})

        for route in self.table.iterate(method):
            params = route.match(path)
            if params is not None:
                return RouteMatch(route=route, params=params)

        return None

    def dispatch(self, request: Request, response: Optional[Response] = None) -> Response:
        """
        Route a request and return the handler's response.

        Matched path parameters are passed to the handler AND stored on the
        request as attributes.

        Args:
            request: The inbound request
            response: Response to hand to the handler (fresh one if omitted)

        Returns:
            The response to flush
        """
        response = response if response is not None else Response()

        match = self.resolve(request.method, request.uri)
        if match is None:
            logger.debug(f"No route for {request.method} {request.path}")
            return not_found(response)

        for name, value in match.params.items():
            request.with_attribute(name, value)

        result = match.route.handler(request, response, dict(match.params))
        return result if result is not None else response

    def run(self, request: Request, transport: Transport, response: Optional[Response] = None) -> Response:
        """
        Dispatch, then flush the response to the transport.

        Returns:
            The response that was sent
        """
        response = self.dispatch(request, response)
        response.send(transport)
        return response
