"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the application and its development server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION PRIORITY                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. CLI arguments        python -m slimrouter --port 3000          │
    │          ▼                                                           │
    │   2. Environment          HTTP_PORT=3000 python -m slimrouter       │
    │          ▼                                                           │
    │   3. Defaults             ServerConfig()                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Configuration is validated eagerly (validate()), so a typo in a port or
log level fails at startup instead of on the first request.

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import List


VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_LOG_FORMATS = ("text", "json")
VALID_ENVIRONMENTS = ("development", "production")

DEFAULT_CORS_ORIGINS = [
    "http://localhost:4321",
    "http://localhost:3000",
]


@dataclass
class ServerConfig:
    """
    Configuration for the application.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK     host, port, threaded
    LOGGING     log_level, log_format
    CORS        cors_enabled, cors_allowed_origins
    IDENTITY    environment, server_name

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces (containers)
    """

    port: int = 8080

    threaded: bool = False
    """
    Serve each request on its own thread.
    The route table is read-only while serving, so this is safe.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    log_format: str = "text"
    """
    Access log format: 'text' (Apache style) or 'json'.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CORS
    # ─────────────────────────────────────────────────────────────────────

    cors_enabled: bool = False

    cors_allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    """
    Origins echoed back in Access-Control-Allow-Origin.
    In development every origin is accepted.
    """

    # ─────────────────────────────────────────────────────────────────────
    # IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    environment: str = "production"

    server_name: str = "slimrouter/1.0"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST              Server host (default: 127.0.0.1)
        HTTP_PORT              Server port (default: 8080)
        HTTP_THREADED          "1"/"true" to serve requests on threads
        HTTP_LOG_LEVEL         Logging level (default: INFO)
        HTTP_LOG_FORMAT        Access log format (default: text)
        ENVIRONMENT            development | production (default: production)
        CORS_ENABLED           "1"/"true" to add CORS headers
        CORS_ALLOWED_ORIGINS   Comma-separated origin list

        =====================================================================
        """
        origins = os.getenv("CORS_ALLOWED_ORIGINS")
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            threaded=_env_flag("HTTP_THREADED"),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
            environment=os.getenv("ENVIRONMENT", "production"),
            cors_enabled=_env_flag("CORS_ENABLED"),
            cors_allowed_origins=(
                [origin.strip() for origin in origins.split(",") if origin.strip()]
                if origins is not None
                else list(DEFAULT_CORS_ORIGINS)
            ),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid setting found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if self.log_format not in VALID_LOG_FORMATS:
            raise ValueError(f"Invalid log_format: {self.log_format}. Use 'text' or 'json'.")

        if self.environment not in VALID_ENVIRONMENTS:
            raise ValueError(f"Invalid environment: {self.environment}")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")
