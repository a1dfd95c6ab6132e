"""
=============================================================================
APPLICATION
=============================================================================

App ties the pieces together: one RouteTable, one Dispatcher, an optional
CORS policy and the access log. It is also a WSGI application, so any WSGI
server can host it.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   1. TRANSPORT IN                                                    │
    │      └── request_from_environ(environ) → Request                    │
    │                                                                      │
    │   2. CORS (if enabled)                                               │
    │      └── OPTIONS → 200 + CORS headers, flushed, routing skipped     │
    │                                                                      │
    │   3. DISPATCH                                                        │
    │      ├── exact pattern lookup                                        │
    │      ├── ordered scan of {placeholder} patterns                      │
    │      ├── handler(request, response, args)                            │
    │      └── no match → 404 "404 - Not Found"                            │
    │                                                                      │
    │   3b. CORS headers written into whatever response dispatch returned │
    │                                                                      │
    │   4. FLUSH (exactly once)                                            │
    │      └── status → headers → body onto the transport                 │
    │                                                                      │
    │   5. ACCESS LOG                                                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
USAGE
=============================================================================

    app = App()

    @app.get("/hello/{name}")
    def hello(request, response, args):
        return response.write(f"Hello, {args['name']}")

    app.post("/api/users", create_user)   # non-decorator form, chainable

    app.serve()                           # wsgiref development server

=============================================================================
"""

from typing import Any, Callable, Dict, Iterable, Optional
import logging
import time

from .config import ServerConfig
from .core.access_log import AccessLogger
from .core.server import make_server
from .core.transport import WSGITransport, request_from_environ
from .handlers.cors import CORSPolicy
from .handlers.demo import register_demo_routes
from .http.request import Request
from .http.response import Response, Transport
from .http.router import Dispatcher, Handler, RouteTable


logger = logging.getLogger(__name__)


class App:
    """
    Routing application and WSGI callable.

    Args:
        config: Application configuration. Defaults are used if omitted.
        cors: CORS policy. When omitted, one is built from the config if
            config.cors_enabled is set.
    """

    def __init__(self, config: Optional[ServerConfig] = None, cors: Optional[CORSPolicy] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._table = RouteTable()
        self._dispatcher = Dispatcher(self._table)

        if cors is None and self.config.cors_enabled:
            cors = CORSPolicy.from_config(self.config)
        self.cors = cors

        self.access_log = AccessLogger(log_format=self.config.log_format)

    @property
    def table(self) -> RouteTable:
        return self._table

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def map(self, method: str, pattern: str, handler: Optional[Handler] = None):
        """
        Register a handler for (method, pattern).

        With a handler, registers it and returns the app (chainable). Without
        one, returns a decorator:

            app.map("GET", "/users", list_users)

            @app.map("GET", "/users/{id}")
            def get_user(request, response, args): ...
        """
        if handler is not None:
            self._table.register(method, pattern, handler)
            return self

        def decorator(func: Handler) -> Handler:
            self._table.register(method, pattern, func)
            return func

        return decorator

    def get(self, pattern: str, handler: Optional[Handler] = None):
        """Register a GET route."""
        return self.map("GET", pattern, handler)

    def post(self, pattern: str, handler: Optional[Handler] = None):
        """Register a POST route."""
        return self.map("POST", pattern, handler)

    def put(self, pattern: str, handler: Optional[Handler] = None):
        """Register a PUT route."""
        return self.map("PUT", pattern, handler)

    def patch(self, pattern: str, handler: Optional[Handler] = None):
        """Register a PATCH route."""
        return self.map("PATCH", pattern, handler)

    def delete(self, pattern: str, handler: Optional[Handler] = None):
        """Register a DELETE route."""
        return self.map("DELETE", pattern, handler)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, request: Request, transport: Transport) -> Response:
        """
        Process one request and flush the response to the transport.

        Returns:
            The response that was sent
        """
        start = time.perf_counter()

        try:
            response = self.cors.preflight(request) if self.cors else None
            if response is None:
                response = self._dispatcher.dispatch(request, Response())
                # Handlers may return a response of their own
                if self.cors:
                    self.cors.apply(request, response)
            response.send(transport)
        except Exception as e:
            self.access_log.log_failure(request, e, (time.perf_counter() - start) * 1000)
            raise

        self.access_log.log(request, response, (time.perf_counter() - start) * 1000)
        return response

    def __call__(self, environ: Dict[str, Any], start_response: Callable) -> Iterable[bytes]:
        """WSGI entry point."""
        request = request_from_environ(environ)
        transport = WSGITransport(start_response)

        try:
            self.handle(request, transport)
        except Exception as e:
            logger.exception(f"Handler error for {request.method} {request.path}: {e}")
            raise

        return transport.body_iterable()

    # =========================================================================
    # DEVELOPMENT SERVER
    # =========================================================================

    def serve(self, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """
        Serve the app with the wsgiref development server (blocking).

        Args:
            host: Override config host.
            port: Override config port.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()

        server = make_server(self, self.config.host, self.config.port, self.config.threaded)
        logger.info(f"{self.config.server_name} listening on http://{self.config.host}:{server.server_port}")
        self.print_routes()

        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            server.server_close()
            logger.info("Server stopped")

    def print_routes(self) -> None:
        """
        Print all registered routes.

        Example output:
            Registered Routes:
            ------------------------------------------------------------
              GET      /
              GET      /hello/{name}
              POST     /api/echo
            ------------------------------------------------------------
        """
        print("\nRegistered Routes:")
        print("-" * 60)
        for route in self._table.routes():
            print(f"  {route.method:8} {route.pattern}")
        print("-" * 60)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("slimrouter").setLevel(level)


def create_app(config: Optional[ServerConfig] = None, demo_routes: bool = True) -> App:
    """
    Build an App from config (environment variables when omitted).

    Args:
        config: Application configuration
        demo_routes: Register the demo routes
    """
    app = App(config or ServerConfig.from_env())
    if demo_routes:
        register_demo_routes(app)
    return app
