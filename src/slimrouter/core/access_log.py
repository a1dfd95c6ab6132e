"""
=============================================================================
ACCESS LOG
=============================================================================

One log line per flushed exchange, written after the response went out.

=============================================================================
LOG FORMATS
=============================================================================

    text (Apache-like, human readable):

        127.0.0.1 - - [19/Oct/2026:10:02:11 +0000] "GET /hello/ada" 200 11 0.41ms

    json (for log aggregators):

        {"method": "GET", "path": "/hello/ada", "status_code": 200, ...}

The logger is namespaced ("slimrouter.access") so it can be routed or
silenced on its own:

    logging.getLogger("slimrouter.access").setLevel(logging.WARNING)

=============================================================================
"""

from dataclasses import asdict, dataclass
from typing import Iterable, Optional
import json
import logging
import time

from ..http.request import Request
from ..http.response import Response


logger = logging.getLogger("slimrouter.access")


@dataclass
class RequestLog:
    """Structured log entry for one exchange."""

    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """
    Emits RequestLog entries.

    Args:
        log_format: "text" or "json"
        log_level: Level the entries are logged at
        skip_paths: Paths that are never logged (noisy probes)
    """

    def __init__(
        self,
        log_format: str = "text",
        log_level: int = logging.INFO,
        skip_paths: Optional[Iterable[str]] = None,
    ):
        self.log_format = log_format
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def build_entry(self, request: Request, response: Response, duration_ms: float) -> RequestLog:
        query = request.uri.split("?", 1)[1] if "?" in request.uri else ""
        return RequestLog(
            method=request.method,
            path=request.path,
            query=query,
            client_ip=request.client_address[0],
            user_agent=request.get_header("user-agent") or "-",
            status_code=response.status,
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def log(self, request: Request, response: Response, duration_ms: float) -> Optional[RequestLog]:
        """
        Log one exchange.

        Returns:
            The entry that was logged, or None for skipped paths
        """
        if request.path in self.skip_paths:
            return None

        entry = self.build_entry(request, response, duration_ms)
        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())
        return entry

    def log_failure(self, request: Request, error: Exception, duration_ms: float) -> None:
        """Log an exchange whose handler raised; the caller re-raises."""
        logger.error(
            f"Request failed: {request.method} {request.path} "
            f"- {type(error).__name__}: {error} ({duration_ms:.2f}ms)"
        )
