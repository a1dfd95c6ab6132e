"""
pytest configuration and fixtures.
"""

from io import BytesIO
from typing import Any, Callable, Dict, List, Optional, Tuple
from wsgiref.util import setup_testing_defaults
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from slimrouter import App, ServerConfig
from slimrouter.core import BufferedTransport
from slimrouter.http import Request, Response


def make_environ(
    method: str = "GET",
    path: str = "/",
    query: str = "",
    body: bytes = b"",
    content_type: str = "",
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Build a PEP 3333 environ the way a WSGI server would."""
    environ: Dict[str, Any] = {
        "REQUEST_METHOD": method,
        "PATH_INFO": path,
        "QUERY_STRING": query,
        "wsgi.input": BytesIO(body),
    }
    if body:
        environ["CONTENT_LENGTH"] = str(len(body))
    if content_type:
        environ["CONTENT_TYPE"] = content_type
    for name, value in (headers or {}).items():
        environ["HTTP_" + name.upper().replace("-", "_")] = value
    setup_testing_defaults(environ)
    return environ


class StartResponseRecorder:
    """Records what a WSGI app passes to start_response."""

    def __init__(self):
        self.calls: List[Tuple[str, List[Tuple[str, str]]]] = []

    def __call__(self, status: str, headers: List[Tuple[str, str]], exc_info=None):
        self.calls.append((status, headers))

    @property
    def status(self) -> str:
        return self.calls[-1][0]

    @property
    def headers(self) -> List[Tuple[str, str]]:
        return self.calls[-1][1]


def call_wsgi(app: Callable, environ: Dict[str, Any]) -> Tuple[StartResponseRecorder, bytes]:
    """Run a WSGI app and return (start_response recorder, joined body)."""
    recorder = StartResponseRecorder()
    body = b"".join(app(environ, recorder))
    return recorder, body


@pytest.fixture
def config() -> ServerConfig:
    """Default test configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        log_level="WARNING",
    )


@pytest.fixture
def transport() -> BufferedTransport:
    """In-memory transport recording the flushed response."""
    return BufferedTransport()


@pytest.fixture
def app(config: ServerConfig) -> App:
    """App with a couple of test routes."""
    app = App(config)

    @app.get("/test")
    def test_route(request: Request, response: Response, args: Dict[str, str]) -> Response:
        return response.with_header("Content-Type", "application/json").write('{"status": "ok"}')

    @app.get("/hello/{name}")
    def hello_route(request: Request, response: Response, args: Dict[str, str]) -> Response:
        return response.write(f"Hello, {args['name']}")

    return app
