"""
=============================================================================
TRANSPORTS
=============================================================================

The boundary between the router and whatever actually speaks HTTP.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        TRANSPORT BOUNDARY                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   IN  (hosting runtime → router)                                    │
    │       method, full URI, headers, raw body, form fields              │
    │       → request_from_environ(environ) → Request                     │
    │                                                                      │
    │   OUT (router → hosting runtime)                                    │
    │       Response.send(transport)                                      │
    │         send_status(200, "OK")                                      │
    │         send_header("Content-Type", "application/json")             │
    │         send_body(b"...")                                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Two transports ship with the package:

- WSGITransport: hands the flushed response to a WSGI start_response.
- BufferedTransport: keeps everything in memory and can render the raw
  HTTP/1.1 message. Used by the CLI's one-shot request mode and by tests.

=============================================================================
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
import sys

from ..http.request import Request, parse_form


# start_response(status, headers) as defined by PEP 3333
StartResponse = Callable[[str, List[Tuple[str, str]]], Any]


class BufferedTransport:
    """
    In-memory transport.

    Records what a response flushed, in order:

        transport = BufferedTransport()
        response.send(transport)

        transport.status    # 404
        transport.headers   # [("Content-Type", "text/plain")]
        transport.body      # b"404 - Not Found"
    """

    def __init__(self):
        self.status: Optional[int] = None
        self.reason: str = ""
        self.headers: List[Tuple[str, str]] = []
        self.body: bytes = b""
        self.flush_count = 0

    def send_status(self, status: int, reason: str) -> None:
        self.status = status
        self.reason = reason

    def send_header(self, name: str, value: str) -> None:
        self.headers.append((name, value))

    def send_body(self, body: bytes) -> None:
        self.body = body
        self.flush_count += 1

    def header_values(self, name: str) -> List[str]:
        return [value for header, value in self.headers if header == name]

    def to_bytes(self) -> bytes:
        """
        Render the recorded response as a raw HTTP/1.1 message.

        =====================================================================
        SERIALIZATION FORMAT
        =====================================================================

            HTTP/1.1 200 OK\\r\\n          ← Status line
            Content-Type: text/plain\\r\\n  ← One line per header value
            \\r\\n                          ← Empty line (separator)
            Hello, world                  ← Body bytes

        =====================================================================
        """
        lines = [f"HTTP/1.1 {self.status} {self.reason}".rstrip()]
        for name, value in self.headers:
            lines.append(f"{name}: {value}")
        lines.append("")
        return "\r\n".join(lines).encode("utf-8") + b"\r\n" + self.body


class WSGITransport:
    """
    Transport that flushes into a WSGI start_response callable.

    start_response is called from send_body, i.e. once the status and all
    headers are known. The WSGI application then returns body_iterable().
    """

    def __init__(self, start_response: StartResponse):
        self._start_response = start_response
        self._status = "200 OK"
        self._headers: List[Tuple[str, str]] = []
        self._body = b""

    def send_status(self, status: int, reason: str) -> None:
        # WSGI insists on "NNN reason"; HTTP allows an empty reason
        self._status = f"{status} {reason or 'Unknown'}"

    def send_header(self, name: str, value: str) -> None:
        self._headers.append((name, value))

    def send_body(self, body: bytes) -> None:
        self._body = body
        self._start_response(self._status, list(self._headers))

    def body_iterable(self) -> List[bytes]:
        return [self._body]


# =============================================================================
# WSGI ENVIRON → REQUEST
# =============================================================================

def request_from_environ(environ: Dict[str, Any]) -> Request:
    """
    Build a Request from a PEP 3333 environ.

    =====================================================================
    ENVIRON MAPPING
    =====================================================================

        REQUEST_METHOD                    → method
        PATH_INFO (+ "?" QUERY_STRING)    → uri
        HTTP_*, CONTENT_TYPE,
        CONTENT_LENGTH                    → headers
        wsgi.input (CONTENT_LENGTH bytes) → body
        QUERY_STRING                      → query params (via Request)
        REMOTE_ADDR, REMOTE_PORT          → client_address

    The server already decoded PATH_INFO; it is re-encoded as latin-1 →
    utf-8 so non-ASCII paths come out as the client sent them.
    =====================================================================
    """
    method = environ.get("REQUEST_METHOD", "GET")

    path = _wsgi_path(environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")) or "/"
    query = environ.get("QUERY_STRING", "")
    uri = f"{path}?{query}" if query else path

    headers = _environ_headers(environ)
    body = _read_body(environ)

    content_type = headers.get("content-type", "")
    form = parse_form(body, content_type) if content_type else None

    try:
        port = int(environ.get("REMOTE_PORT", 0) or 0)
    except ValueError:
        port = 0

    return Request(
        method=method,
        uri=uri,
        headers=headers,
        body=body,
        form=form,
        client_address=(environ.get("REMOTE_ADDR", ""), port),
    )


def _wsgi_path(value: str) -> str:
    try:
        return value.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return value


def _environ_headers(environ: Dict[str, Any]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            # HTTP_X_REQUESTED_WITH → x-requested-with
            headers[key[5:].replace("_", "-").lower()] = value
    if environ.get("CONTENT_TYPE"):
        headers["content-type"] = environ["CONTENT_TYPE"]
    if environ.get("CONTENT_LENGTH"):
        headers["content-length"] = environ["CONTENT_LENGTH"]
    return headers


def _read_body(environ: Dict[str, Any]) -> bytes:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    if length <= 0:
        return b""
    stream = environ.get("wsgi.input")
    if stream is None:
        return b""
    return stream.read(length)


def write_raw(transport: BufferedTransport, stream=None) -> None:
    """Write a buffered response to a binary stream (stdout by default)."""
    stream = stream if stream is not None else sys.stdout.buffer
    stream.write(transport.to_bytes())
    stream.flush()
