"""
=============================================================================
HTTP RESPONSE
=============================================================================

Accumulates the output of one exchange and flushes it to the transport
exactly once.

=============================================================================
RESPONSE LIFECYCLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     RESPONSE LIFECYCLE                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Dispatcher creates      Handler mutates         send() flushes    │
    │   Response()      ─────►  with_status(201)  ─────► status line      │
    │                           with_header(...)         header lines     │
    │                           write("...")             body bytes       │
    │                                                                      │
    │   After send() the response is SEALED: every mutator raises         │
    │   ResponseAlreadySentError.                                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
HEADER MULTI-MAP
=============================================================================

Headers are stored as an ordered mapping of name → list of values:

    with_header("Content-Type", "application/json")
        {"Content-Type": ["application/json"]}

    with_added_header("Set-Cookie", "a=1")
    with_added_header("Set-Cookie", "b=2")
        {"Content-Type": ["application/json"], "Set-Cookie": ["a=1", "b=2"]}

    with_header("Set-Cookie", "c=3")        # overwrites ALL prior values
        {"Content-Type": ["application/json"], "Set-Cookie": ["c=3"]}

On flush every value becomes its own header line:

    Set-Cookie: a=1
    Set-Cookie: b=2

Header names are case-sensitive here: "X-Id" and "x-id" are two entries.
Overwriting keeps the name's original position in the flush order.

=============================================================================
"""

from http import HTTPStatus
from typing import Dict, List, Optional, Protocol, Union
import json


class ResponseAlreadySentError(RuntimeError):
    """Raised when a response is mutated or flushed after it was sent."""


class Transport(Protocol):
    """
    The output side of the hosting runtime.

    A response is flushed by calling send_status once, send_header once per
    header value, then send_body once.
    """

    def send_status(self, status: int, reason: str) -> None:
        ...

    def send_header(self, name: str, value: str) -> None:
        ...

    def send_body(self, body: bytes) -> None:
        ...


def reason_phrase(status: int) -> str:
    """
    Get the standard reason phrase for a status code.

    Unknown codes (e.g. 299) get an empty phrase rather than an error;
    HTTP/1.1 allows the reason phrase to be empty.
    """
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


class Response:
    """
    Represents the HTTP response for one exchange.

    =========================================================================
    CHAINABLE MUTATORS
    =========================================================================

    Every mutator returns self, so a handler can build its response in one
    expression:

        def create_user(request, response, args):
            return (response
                .with_status(201)
                .with_header("Content-Type", "application/json")
                .write('{"status": "success"}'))

    get_body() also returns self, which keeps the familiar two-step form:

        response.get_body().write("Hello")

    =========================================================================
    """

    def __init__(self, status: int = 200):
        self._status = status
        self._headers: Dict[str, List[str]] = {}
        self._body = bytearray()
        self._sent = False

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def status(self) -> int:
        """Current status code (defaults to 200)."""
        return self._status

    @property
    def reason_phrase(self) -> str:
        return reason_phrase(self._status)

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"HTTP/1.1 {self._status} {self.reason_phrase}".rstrip()

    @property
    def headers(self) -> Dict[str, List[str]]:
        """A copy of the header multi-map."""
        return {name: list(values) for name, values in self._headers.items()}

    @property
    def body(self) -> bytes:
        """The buffered body, as bytes."""
        return bytes(self._body)

    @property
    def text(self) -> str:
        return self._body.decode("utf-8", errors="replace")

    @property
    def is_sent(self) -> bool:
        return self._sent

    def get_header(self, name: str) -> List[str]:
        """
        Get all values for a header name.

        Returns an empty list when the header was never set.
        """
        return list(self._headers.get(name, []))

    def get_header_line(self, name: str) -> str:
        """Get the values of a header joined with ", "."""
        return ", ".join(self._headers.get(name, []))

    def has_header(self, name: str) -> bool:
        return name in self._headers

    def get_body(self) -> "Response":
        """Return self so callers can write `response.get_body().write(...)`."""
        return self

    # =========================================================================
    # MUTATORS
    # =========================================================================

    def with_status(self, status: int) -> "Response":
        """
        Set the status code, replacing any previous value.

        Args:
            status: Integer status code (HTTPStatus members work too)

        Returns:
            Self for method chaining
        """
        self._ensure_open()
        self._status = int(status)
        return self

    def with_header(self, name: str, value: str) -> "Response":
        """
        Set a header, replacing every value previously stored under name.

        Args:
            name: Header name (case-sensitive)
            value: Header value

        Returns:
            Self for method chaining
        """
        self._ensure_open()
        self._headers[name] = [str(value)]
        return self

    def with_added_header(self, name: str, value: str) -> "Response":
        """
        Append a value to a header, keeping earlier values.

        Used for headers that legitimately repeat (Set-Cookie, Vary, ...).
        """
        self._ensure_open()
        self._headers.setdefault(name, []).append(str(value))
        return self

    def without_header(self, name: str) -> "Response":
        self._ensure_open()
        self._headers.pop(name, None)
        return self

    def write(self, content: Union[str, bytes]) -> "Response":
        """
        Append content to the body buffer.

        Strings are encoded as UTF-8.

        Args:
            content: Text or bytes to append

        Returns:
            Self for method chaining
        """
        self._ensure_open()
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._body.extend(content)
        return self

    # =========================================================================
    # FLUSH
    # =========================================================================

    def send(self, transport: Transport) -> None:
        """
        Flush the response to the transport.

        =====================================================================
        FLUSH ORDER
        =====================================================================

            1. send_status(404, "Not Found")
            2. send_header(name, value)   ← once per VALUE, in map order
            3. send_body(b"...")          ← the whole buffer, verbatim

        =====================================================================

        Raises:
            ResponseAlreadySentError: If the response was already sent.
        """
        self._ensure_open()
        self._sent = True

        transport.send_status(self._status, self.reason_phrase)
        for name, values in self._headers.items():
            for value in values:
                transport.send_header(name, value)
        transport.send_body(bytes(self._body))

    def _ensure_open(self) -> None:
        if self._sent:
            raise ResponseAlreadySentError("Response has already been sent")

    def __repr__(self) -> str:
        return f"<Response {self._status} headers={len(self._headers)} body={len(self._body)}B>"


def not_found(response: Optional[Response] = None) -> Response:
    """
    The fixed response for an unmatched route.

    Plain text body, no custom headers of its own. When a response is passed
    in, the 404 is written into it, so headers set before routing survive.
    """
    response = response if response is not None else Response()
    return response.with_status(HTTPStatus.NOT_FOUND).write("404 - Not Found")


def json_response(
    data: object,
    status: int = 200,
    response: Optional[Response] = None,
) -> Response:
    """
    Write a JSON body with the hard-coded JSON content type.

    Args:
        data: Any JSON-serializable value
        status: Status code to set
        response: Response to write into (a fresh one if omitted)

    Returns:
        The response, for chaining
    """
    response = response if response is not None else Response()
    return (response
        .with_status(status)
        .with_header("Content-Type", "application/json")
        .write(json.dumps(data)))
