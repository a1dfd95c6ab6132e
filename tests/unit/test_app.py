"""
Unit tests for App: registration, WSGI hosting, demo routes and the CLI.
"""

import json
import logging

import pytest

from slimrouter import App, ServerConfig, create_app
from slimrouter.__main__ import main
from slimrouter.core import BufferedTransport, make_server, ThreadingWSGIServer
from slimrouter.handlers import CORSPolicy
from slimrouter.http import Request, Response

from conftest import call_wsgi, make_environ


class TestRegistration:
    """Tests for route registration."""

    def test_decorator_form(self, app: App):
        """Test that decorators register and return the function."""
        @app.put("/users/{id}")
        def update_user(request, response, args):
            return response.write(args["id"])

        assert ("PUT", "/users/{id}") in app.table
        assert callable(update_user)

    def test_chaining(self):
        """Test that passing a handler returns the app."""
        handler = lambda req, resp, args: resp
        app = App().get("/a", handler).post("/a", handler).patch("/a", handler).delete("/a", handler)

        assert isinstance(app, App)
        assert [route.method for route in app.table.routes()] == ["GET", "POST", "PATCH", "DELETE"]

    def test_invalid_config_fails_fast(self):
        """Test that App validates its config."""
        with pytest.raises(ValueError):
            App(ServerConfig(port=-5))

    def test_cors_disabled_by_default(self):
        """Test that no CORS policy is built unless enabled."""
        assert App().cors is None
        assert App(ServerConfig(cors_enabled=True)).cors is not None


class TestHandle:
    """Tests for App.handle with a buffered transport."""

    def test_routes_and_flushes(self, app: App, transport: BufferedTransport):
        """Test a matched request."""
        response = app.handle(Request(uri="/hello/ada"), transport)

        assert transport.status == 200
        assert transport.body == b"Hello, ada"
        assert transport.flush_count == 1
        assert response.is_sent

    def test_not_found(self, app: App, transport: BufferedTransport):
        """Test an unmatched request."""
        app.handle(Request(method="DELETE", uri="/nowhere"), transport)

        assert transport.status == 404
        assert transport.reason == "Not Found"
        assert transport.headers == []
        assert transport.body == b"404 - Not Found"

    def test_access_log(self, app: App, transport: BufferedTransport, caplog):
        """Test that every exchange is logged on the access logger."""
        with caplog.at_level(logging.INFO, logger="slimrouter.access"):
            app.handle(Request(uri="/hello/ada?x=1"), transport)

        assert '"GET /hello/ada" 200 10' in caplog.text

    def test_failed_exchange_is_logged(self, app: App, transport: BufferedTransport, caplog):
        """Test that a raising handler still gets an access-log line."""
        @app.get("/boom")
        def boom(request, response, args):
            raise RuntimeError("kaboom")

        with caplog.at_level(logging.ERROR, logger="slimrouter.access"):
            with pytest.raises(RuntimeError):
                app.handle(Request(uri="/boom"), transport)

        assert "Request failed: GET /boom - RuntimeError: kaboom" in caplog.text
        assert transport.flush_count == 0

    def test_cors_headers_on_handler_returned_response(self, transport: BufferedTransport):
        """Test that CORS headers reach a response the handler built itself."""
        app = App(cors=CORSPolicy(development=True))
        app.get("/teapot", lambda req, resp, args: Response(418).write("short"))

        app.handle(Request(uri="/teapot"), transport)

        assert transport.status == 418
        assert transport.body == b"short"
        assert transport.header_values("Access-Control-Allow-Origin") == ["*"]
        assert transport.header_values("Access-Control-Max-Age") == ["3600"]


class TestWSGI:
    """Tests for App as a WSGI application."""

    def test_get(self, app: App):
        """Test a routed GET through the WSGI interface."""
        recorder, body = call_wsgi(app, make_environ("GET", "/test"))

        assert recorder.status == "200 OK"
        assert recorder.headers == [("Content-Type", "application/json")]
        assert json.loads(body) == {"status": "ok"}

    def test_trailing_slash_and_query(self, app: App):
        """Test normalization through the WSGI interface."""
        recorder, body = call_wsgi(app, make_environ("GET", "/hello/ada/", query="lang=en"))

        assert recorder.status == "200 OK"
        assert body == b"Hello, ada"

    def test_not_found(self, app: App):
        """Test the 404 through the WSGI interface."""
        recorder, body = call_wsgi(app, make_environ("GET", "/missing"))

        assert recorder.status == "404 Not Found"
        assert body == b"404 - Not Found"

    def test_handler_error_is_logged_and_raised(self, app: App, caplog):
        """Test that handler exceptions reach the WSGI server."""
        @app.get("/boom")
        def boom(request, response, args):
            raise RuntimeError("kaboom")

        with caplog.at_level(logging.ERROR, logger="slimrouter.app"):
            with pytest.raises(RuntimeError, match="kaboom"):
                call_wsgi(app, make_environ("GET", "/boom"))

        assert "Handler error for GET /boom" in caplog.text


class TestDemoRoutes:
    """Tests for the demo routes registered by create_app."""

    def setup_method(self):
        self.app = create_app(ServerConfig(), demo_routes=True)

    def test_welcome(self):
        """Test the root route."""
        recorder, body = call_wsgi(self.app, make_environ("GET", "/"))

        assert recorder.status == "200 OK"
        assert body.startswith(b"Welcome to slimrouter")

    def test_hello(self):
        """Test the greeting route."""
        _, body = call_wsgi(self.app, make_environ("GET", "/hello/world"))

        assert body == b"Hello, world"

    def test_hello_with_template_text(self, transport: BufferedTransport):
        """Test that the literal "/hello/{name}" path is greeted, not a 500."""
        self.app.handle(Request(uri="/hello/{name}"), transport)

        assert transport.status == 200
        assert transport.body == b"Hello, {name}"

    def test_echo(self):
        """Test that the echo route returns the parsed JSON body."""
        environ = make_environ("POST", "/api/echo", body=b'{"name": "Ada"}', content_type="application/json")
        recorder, body = call_wsgi(self.app, environ)

        assert ("Content-Type", "application/json") in recorder.headers
        assert json.loads(body) == {"received": {"name": "Ada"}}

    def test_without_demo_routes(self):
        """Test that create_app can start empty."""
        assert len(create_app(ServerConfig(), demo_routes=False).table) == 0


class TestServer:
    """Tests for the wsgiref development server factory."""

    def test_make_server_binds(self, app: App):
        """Test binding to an OS-assigned port."""
        server = make_server(app, "127.0.0.1", 0)
        try:
            assert server.server_port > 0
            assert server.get_app() is app
        finally:
            server.server_close()

    def test_threaded_server(self, app: App):
        """Test the threading server variant."""
        server = make_server(app, "127.0.0.1", 0, threaded=True)
        try:
            assert isinstance(server, ThreadingWSGIServer)
            assert server.daemon_threads
        finally:
            server.server_close()


class TestCLI:
    """Tests for python -m slimrouter."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("HTTP_PORT", "HTTP_LOG_LEVEL", "HTTP_LOG_FORMAT", "ENVIRONMENT",
                     "CORS_ENABLED", "CORS_ALLOWED_ORIGINS"):
            monkeypatch.delenv(name, raising=False)

    def test_routes(self, capsys):
        """Test printing the route table."""
        assert main(["--routes"]) == 0

        out = capsys.readouterr().out
        assert "GET      /hello/{name}" in out
        assert "POST     /api/echo" in out

    def test_one_shot_request(self, capsys):
        """Test dispatching a single request from the command line."""
        assert main(["--request", "GET /hello/ada"]) == 0

        assert capsys.readouterr().out == "HTTP/1.1 200 OK\r\n\r\nHello, ada"

    def test_one_shot_not_found(self, capsys):
        """Test the 404 from the command line."""
        main(["--request", "DELETE /nowhere"])

        assert capsys.readouterr().out.endswith("\r\n\r\n404 - Not Found")

    def test_one_shot_method_is_case_sensitive(self, capsys):
        """Test that a lower-case method is passed through and misses."""
        main(["--request", "get /hello/ada"])

        assert capsys.readouterr().out.startswith("HTTP/1.1 404 Not Found\r\n")

    def test_one_shot_with_cors(self, capsys):
        """Test that CLI flags reach the app config."""
        main(["--cors", "--env", "development", "--request", "OPTIONS /api/echo"])

        out = capsys.readouterr().out
        assert out.startswith("HTTP/1.1 200 OK\r\n")
        assert "Access-Control-Allow-Origin: *\r\n" in out

    def test_invalid_port(self):
        """Test that config errors exit through argparse."""
        with pytest.raises(SystemExit):
            main(["--port", "99999", "--routes"])
