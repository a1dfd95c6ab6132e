"""
Demo routes.

Registered by `python -m slimrouter` so a fresh install has something to
answer:

    GET  /               welcome text
    GET  /hello/{name}   "Hello, <name>"
    POST /api/echo       echoes the parsed request body as JSON
"""

from typing import Dict

from ..http.request import Request
from ..http.response import Response, json_response


WELCOME_TEXT = (
    "Welcome to slimrouter, a lightweight routing framework. "
    'Try <a href="/hello/world">/hello/world</a>.'
)


def welcome(request: Request, response: Response, args: Dict[str, str]) -> Response:
    return response.with_header("Content-Type", "text/html; charset=utf-8").write(WELCOME_TEXT)


def hello(request: Request, response: Response, args: Dict[str, str]) -> Response:
    return response.write(f"Hello, {args['name']}")


def echo(request: Request, response: Response, args: Dict[str, str]) -> Response:
    """Echo the parsed body (JSON object/array or form fields)."""
    return json_response({"received": request.get_parsed_body()}, response=response)


def register_demo_routes(app) -> None:
    """Attach the demo routes to an App."""
    app.get("/", welcome)
    app.get("/hello/{name}", hello)
    app.post("/api/echo", echo)
