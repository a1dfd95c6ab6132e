"""
=============================================================================
SLIMROUTER CLI ENTRY POINT
=============================================================================

    # Serve the demo routes on localhost:8080
    python -m slimrouter

    # Custom port, all interfaces
    python -m slimrouter --host 0.0.0.0 --port 3000

    # CORS headers, development origin policy
    python -m slimrouter --cors --env development

    # Print the route table and exit
    python -m slimrouter --routes

    # Run one request through the router and print the raw response
    python -m slimrouter --request "GET /hello/world"

CLI arguments override environment variables (see ServerConfig.from_env),
which override the defaults.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .app import create_app
from .config import VALID_ENVIRONMENTS, VALID_LOG_FORMATS, VALID_LOG_LEVELS, ServerConfig
from .core.transport import BufferedTransport, write_raw
from .http.request import Request


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slimrouter",
        description="Minimal HTTP router with a WSGI development server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m slimrouter                           # Serve on 127.0.0.1:8080
  python -m slimrouter --port 3000               # Custom port
  python -m slimrouter --cors --env development  # Permissive CORS
  python -m slimrouter --request "GET /hello/ada"
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--threaded",
        action="store_true",
        default=None,
        help="Handle each request on its own thread"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FEATURE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=VALID_LOG_LEVELS,
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=VALID_LOG_FORMATS,
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--cors",
        action="store_true",
        default=None,
        help="Add CORS headers and answer OPTIONS preflights"
    )

    parser.add_argument(
        "--env",
        choices=VALID_ENVIRONMENTS,
        default=None,
        help="Environment; development accepts every CORS origin"
    )

    # ─────────────────────────────────────────────────────────────────────
    # ONE-SHOT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--routes",
        action="store_true",
        help="Print the route table and exit"
    )

    parser.add_argument(
        "--request",
        metavar='"METHOD URI"',
        default=None,
        help="Dispatch a single request and write the raw response to stdout"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"slimrouter {__version__}"
    )

    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then CLI overrides."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.threaded is not None:
        config.threaded = args.threaded
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format
    if args.cors is not None:
        config.cors_enabled = args.cors
    if args.env is not None:
        config.environment = args.env

    return config


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app = create_app(build_config(args))
    except ValueError as e:
        parser.error(str(e))

    if args.routes:
        app.print_routes()
        return 0

    if args.request:
        method, _, uri = args.request.strip().partition(" ")
        transport = BufferedTransport()
        app.handle(Request(method=method, uri=uri.strip() or "/"), transport)
        write_raw(transport)
        return 0

    app.serve()
    return 0


if __name__ == "__main__":
    sys.exit(main())
