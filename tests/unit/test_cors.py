"""
Unit tests for the CORS policy.
"""

from slimrouter import App, ServerConfig
from slimrouter.core import BufferedTransport
from slimrouter.handlers.cors import CORSPolicy
from slimrouter.http.request import Request
from slimrouter.http.response import Response


def make_request(method: str = "GET", origin: str = "") -> Request:
    headers = {"Origin": origin} if origin else {}
    return Request(method=method, uri="/api", headers=headers)


class TestAllowedOrigin:
    """Tests for the origin decision."""

    def test_listed_origin_is_echoed(self):
        """Test that a known origin is echoed back."""
        policy = CORSPolicy(allowed_origins=["https://blog.example.com"])

        assert policy.allowed_origin("https://blog.example.com") == "https://blog.example.com"

    def test_unknown_origin_in_production(self):
        """Test that unknown origins get no header outside development."""
        policy = CORSPolicy(allowed_origins=["https://blog.example.com"])

        assert policy.allowed_origin("https://evil.example.com") is None
        assert policy.allowed_origin("") is None

    def test_development_echoes_any_origin(self):
        """Test the permissive development policy."""
        policy = CORSPolicy(allowed_origins=[], development=True)

        assert policy.allowed_origin("https://anything.test") == "https://anything.test"

    def test_development_without_origin_is_wildcard(self):
        """Test the "*" fallback when no Origin header was sent."""
        policy = CORSPolicy(development=True)

        assert policy.allowed_origin("") == "*"

    def test_default_origins(self):
        """Test the local development origins allowed by default."""
        policy = CORSPolicy()

        assert policy.allowed_origin("http://localhost:4321") == "http://localhost:4321"
        assert policy.allowed_origin("http://localhost:3000") == "http://localhost:3000"


class TestApply:
    """Tests for writing CORS headers."""

    def test_headers_for_allowed_origin(self):
        """Test the full header set."""
        policy = CORSPolicy(allowed_origins=["http://localhost:4321"])
        response = policy.apply(make_request(origin="http://localhost:4321"), Response())

        assert response.get_header("Access-Control-Allow-Origin") == ["http://localhost:4321"]
        assert response.get_header("Vary") == ["Origin"]
        assert response.get_header("Access-Control-Allow-Methods") == ["GET, POST, PUT, DELETE, OPTIONS"]
        assert response.get_header("Access-Control-Allow-Headers") == [
            "Content-Type, Authorization, X-Requested-With"
        ]
        assert response.get_header("Access-Control-Allow-Credentials") == ["true"]
        assert response.get_header("Access-Control-Max-Age") == ["3600"]

    def test_disallowed_origin_still_gets_method_headers(self):
        """Test that only Allow-Origin depends on the origin."""
        policy = CORSPolicy(allowed_origins=[])
        response = policy.apply(make_request(origin="https://evil.example.com"), Response())

        assert not response.has_header("Access-Control-Allow-Origin")
        assert response.has_header("Access-Control-Allow-Methods")
        assert response.has_header("Access-Control-Max-Age")

    def test_from_config(self):
        """Test building a policy from ServerConfig."""
        config = ServerConfig(environment="development", cors_allowed_origins=["https://a.test"])
        policy = CORSPolicy.from_config(config)

        assert policy.allowed_origins == ["https://a.test"]
        assert policy.development is True


class TestPreflight:
    """Tests for OPTIONS handling."""

    def test_options_short_circuits(self):
        """Test that OPTIONS gets 200, CORS headers and an empty body."""
        policy = CORSPolicy(allowed_origins=["http://localhost:3000"])
        response = policy.preflight(make_request("OPTIONS", origin="http://localhost:3000"))

        assert response.status == 200
        assert response.body == b""
        assert response.get_header("Access-Control-Allow-Origin") == ["http://localhost:3000"]

    def test_other_methods_are_routed(self):
        """Test that non-OPTIONS requests are left to the router."""
        assert CORSPolicy().preflight(make_request("GET")) is None

    def test_app_preflight_skips_routing(self):
        """Test that the app answers OPTIONS without consulting routes."""
        calls = []
        app = App(ServerConfig(cors_enabled=True, environment="development"))
        app.map("OPTIONS", "/api", lambda req, resp, args: calls.append(args))
        transport = BufferedTransport()

        app.handle(make_request("OPTIONS"), transport)

        assert calls == []
        assert transport.status == 200
        assert transport.header_values("Access-Control-Allow-Origin") == ["*"]
        assert transport.body == b""

    def test_app_404_carries_cors_headers(self):
        """Test that CORS headers survive an unmatched route."""
        app = App(ServerConfig(cors_enabled=True, cors_allowed_origins=["https://a.test"]))
        transport = BufferedTransport()

        app.handle(make_request("GET", origin="https://a.test"), transport)

        assert transport.status == 404
        assert transport.body == b"404 - Not Found"
        assert transport.header_values("Access-Control-Allow-Origin") == ["https://a.test"]
