"""
=============================================================================
CORS (Cross-Origin Resource Sharing) POLICY
=============================================================================

Adds CORS headers before routing, so every response (404s included)
carries them, and answers OPTIONS preflights without touching the router.

=============================================================================
ORIGIN DECISION
=============================================================================

    ┌──────────────────────────────────┬──────────────────────────────────┐
    │ Request                          │ Access-Control-Allow-Origin      │
    ├──────────────────────────────────┼──────────────────────────────────┤
    │ Origin in allowed_origins        │ <origin> (echoed)                │
    │ development, Origin present      │ <origin> (echoed)                │
    │ development, no Origin           │ *                                │
    │ anything else                    │ (header absent)                  │
    └──────────────────────────────────┴──────────────────────────────────┘

The remaining headers are sent unconditionally:

    Access-Control-Allow-Methods      GET, POST, PUT, DELETE, OPTIONS
    Access-Control-Allow-Headers      Content-Type, Authorization, X-Requested-With
    Access-Control-Allow-Credentials  true
    Access-Control-Max-Age            3600

With credentials allowed the browser rejects "*" for real requests, which
is why known origins are echoed instead. The "*" fallback only helps
tools that send no Origin at all.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import List, Optional
import logging

from ..config import DEFAULT_CORS_ORIGINS, ServerConfig
from ..http.request import Request
from ..http.response import Response


logger = logging.getLogger(__name__)


@dataclass
class CORSPolicy:
    """
    CORS header policy.

    Example:
        policy = CORSPolicy(allowed_origins=["https://blog.example.com"])

        response = Response()
        policy.apply(request, response)
    """

    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    development: bool = False
    allow_methods: List[str] = field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: List[str] = field(
        default_factory=lambda: ["Content-Type", "Authorization", "X-Requested-With"]
    )
    allow_credentials: bool = True
    max_age: int = 3600

    @classmethod
    def from_config(cls, config: ServerConfig) -> "CORSPolicy":
        return cls(
            allowed_origins=list(config.cors_allowed_origins),
            development=config.is_development,
        )

    def allowed_origin(self, origin: str) -> Optional[str]:
        """
        Value for Access-Control-Allow-Origin, or None to omit the header.

        Args:
            origin: The request's Origin header ("" when absent)
        """
        if origin and origin in self.allowed_origins:
            return origin
        if self.development:
            return origin or "*"
        return None

    def apply(self, request: Request, response: Response) -> Response:
        """
        Write the CORS headers for a request into a response.

        Returns:
            The same response, for chaining
        """
        origin = request.get_header("origin")
        allow_origin = self.allowed_origin(origin)

        if allow_origin is not None:
            response.with_header("Access-Control-Allow-Origin", allow_origin)
            if allow_origin != "*":
                response.with_header("Vary", "Origin")
        elif origin:
            logger.debug(f"Origin {origin} not allowed")

        response.with_header("Access-Control-Allow-Methods", ", ".join(self.allow_methods))
        response.with_header("Access-Control-Allow-Headers", ", ".join(self.allow_headers))
        if self.allow_credentials:
            response.with_header("Access-Control-Allow-Credentials", "true")
        response.with_header("Access-Control-Max-Age", str(self.max_age))
        return response

    def preflight(self, request: Request) -> Optional[Response]:
        """
        Answer an OPTIONS request.

        Returns:
            A 200 response with CORS headers and an empty body for OPTIONS,
            None for every other method (route normally)
        """
        if request.method != "OPTIONS":
            return None
        return self.apply(request, Response(200))
