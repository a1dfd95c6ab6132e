"""
=============================================================================
HTTP REQUEST
=============================================================================

The inbound side of one exchange. Wire parsing is the hosting runtime's job;
a Request is built from what the runtime already decoded (method, URI,
headers, raw body, and for form posts the field map).

=============================================================================
WHAT A REQUEST CARRIES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        REQUEST CONTENTS                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   method        "POST"                  (case as received)          │
    │   uri           "/api/users?notify=1"   (path + query string)       │
    │   headers       {"content-type": ...}   (names lower-cased)         │
    │   body          b'{"name": "Ada"}'      (raw bytes)                 │
    │   query_params  {"notify": "1"}         (last value wins)           │
    │   parsed body   {"name": "Ada"}         (see BODY PARSING)          │
    │   attributes    {"id": "42"}            (path params + handler data)│
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
BODY PARSING
=============================================================================

Parsing happens ONCE, at construction, and only for methods that carry a
body (POST, PUT, PATCH, DELETE). The Content-Type decides:

    application/json                   → json.loads(body), kept only if it
                                         is an object or an array
    application/x-www-form-urlencoded  → the transport's field map
    multipart/form-data                → the transport's field map
    anything else                      → None

Invalid JSON does not raise: the parsed body is simply None, and handlers
that care can still look at the raw bytes.

=============================================================================
"""

from dataclasses import dataclass, field
from email.parser import BytesParser
from email.policy import HTTP
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlsplit
import json


# =============================================================================
# TYPE ALIASES
# =============================================================================

# The dynamic JSON shape used for parsed bodies and attribute values
JSONValue = Union[None, str, int, float, bool, List[Any], Dict[str, Any]]

# A parsed body is a JSON object/array, a form field map, or nothing
ParsedBody = Union[Dict[str, Any], List[Any], None]


BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPES = frozenset({
    "application/x-www-form-urlencoded",
    "multipart/form-data",
})


@dataclass
class Request:
    """
    Represents one inbound HTTP exchange.

    =========================================================================
    ATTRIBUTES VS. QUERY PARAMS
    =========================================================================

    Query params come from the URI and never change.

    Attributes are a mutable side channel. The dispatcher stores matched
    path parameters there, so a handler for "/users/{id}" can read either
    its third argument or request.get_attribute("id"):

        def get_user(request, response, args):
            assert args["id"] == request.get_attribute("id")

    =========================================================================
    """

    method: str = "GET"
    uri: str = "/"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    query_params: Optional[Dict[str, str]] = None
    form: Optional[Dict[str, Any]] = field(default=None, repr=False)
    client_address: Tuple[str, int] = ("", 0)

    _attributes: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    _parsed_body: ParsedBody = field(default=None, init=False, repr=False)

    def __post_init__(self):
        # HTTP header names are case-insensitive; normalize once
        self.headers = {name.lower(): value for name, value in self.headers.items()}

        if self.query_params is None:
            self.query_params = dict(parse_qsl(urlsplit(self.uri).query, keep_blank_values=True))

        if self.method in BODY_METHODS:
            self._parsed_body = self._parse_body()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def path(self) -> str:
        """The URI up to (not including) the first "?"."""
        return self.uri.split("?", 1)[0]

    @property
    def content_type(self) -> str:
        """
        The Content-Type media type without parameters, lower-cased.

        "application/json; charset=utf-8" → "application/json"
        """
        return self.headers.get("content-type", "").split(";")[0].strip().lower()

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def get_method(self) -> str:
        return self.method

    def get_uri(self) -> str:
        return self.uri

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    def get_query_params(self) -> Dict[str, str]:
        return dict(self.query_params)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get one query parameter.

        Example:
            # URI: /api/posts?page=2
            request.get_query("page")         # "2"
            request.get_query("limit", "10")  # "10"
        """
        return self.query_params.get(name, default)

    def get_parsed_body(self) -> ParsedBody:
        """The body decoded at construction (see BODY PARSING above)."""
        return self._parsed_body

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def with_attribute(self, name: str, value: Any) -> "Request":
        """
        Store an attribute (last write wins).

        Returns:
            Self for method chaining
        """
        self._attributes[name] = value
        return self

    # =========================================================================
    # BODY PARSING
    # =========================================================================

    def _parse_body(self) -> ParsedBody:
        content_type = self.content_type

        if content_type == JSON_CONTENT_TYPE:
            return _decode_json(self.body)

        if content_type in FORM_CONTENT_TYPES:
            return dict(self.form) if self.form is not None else {}

        return None


def _decode_json(body: bytes) -> ParsedBody:
    if not body:
        return None
    try:
        data = json.loads(body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    # Scalars ("42", "true") are not a usable body
    if isinstance(data, (dict, list)):
        return data
    return None


# =============================================================================
# FORM DECODING (used by transports)
# =============================================================================
#
# These turn a raw form body into the field map a Request expects. They
# belong to the transport side: a Request never decodes forms itself.
#
# =============================================================================

def parse_form(body: bytes, content_type_header: str) -> Optional[Dict[str, str]]:
    """
    Decode a form body according to its Content-Type header.

    Args:
        body: Raw request body
        content_type_header: Full Content-Type header (with parameters)

    Returns:
        Field map, or None if the content type is not a form type
    """
    media_type = content_type_header.split(";")[0].strip().lower()

    if media_type == "application/x-www-form-urlencoded":
        return dict(parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True))

    if media_type == "multipart/form-data":
        return parse_multipart(body, content_type_header)

    return None


def parse_multipart(body: bytes, content_type_header: str) -> Dict[str, str]:
    """
    Decode the text fields of a multipart/form-data body.

    =====================================================================
    MULTIPART LAYOUT
    =====================================================================

        Content-Type: multipart/form-data; boundary=XyZ

        --XyZ
        Content-Disposition: form-data; name="title"

        Hello
        --XyZ
        Content-Disposition: form-data; name="photo"; filename="a.png"
        Content-Type: image/png

        <binary>
        --XyZ--

    The boundary lives in the Content-Type header, so the header is glued
    back on top of the body and the whole thing is handed to the email
    parser, which already understands MIME multipart.

    File parts (those with a filename) are skipped: only plain fields end
    up in the field map.
    =====================================================================
    """
    document = b"Content-Type: " + content_type_header.encode("latin-1") + b"\r\n\r\n" + body
    message = BytesParser(policy=HTTP).parsebytes(document)

    fields: Dict[str, str] = {}
    if not message.is_multipart():
        return fields

    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if not name or part.get_filename():
            continue
        payload = part.get_payload(decode=True) or b""
        charset = part.get_content_charset() or "utf-8"
        fields[name] = payload.decode(charset, errors="replace")

    return fields
