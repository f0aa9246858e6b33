"""
=============================================================================
STATIC SERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 127.0.0.1:8080, log to ./server.log
    python -m statichttp

    # Another port and document root
    python -m statichttp --port 3000 --root ./public

    # Cap concurrency with a pool of 16 workers and a 10s read timeout
    python -m statichttp --workers 16 --timeout 10

Environment variables (see ServerConfig.from_env) provide the defaults;
command-line arguments override them.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig
from .server import StaticHTTPServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statichttp",
        description="Minimal HTTP/1.0 static file server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m statichttp                        # Serve . on 127.0.0.1:8080
  python -m statichttp --port 3000            # Custom port
  python -m statichttp --root ./public        # Custom document root
  python -m statichttp --workers 16           # Bounded worker pool
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=defaults.timeout,
        help="Per-connection read/write timeout in seconds (default: none)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.document_root,
        help="Document root (default: current working directory)"
    )

    parser.add_argument(
        "--allow-traversal",
        action="store_true",
        help="Follow '..' in request paths even out of the document root"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY AND LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.max_workers,
        help="Use a pool of N worker threads (default: one thread per connection)"
    )

    parser.add_argument(
        "--log-file",
        default=defaults.log_file,
        help=f"Request log file (default: {defaults.log_file})"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Diagnostic logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"statichttp {__version__}"
    )

    return parser


def config_from_args(argv=None) -> ServerConfig:
    """Environment first, then command-line overrides."""
    defaults = ServerConfig.from_env()
    args = build_parser(defaults).parse_args(argv)

    return ServerConfig(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        document_root=args.root,
        confine_to_root=not args.allow_traversal,
        max_workers=args.workers,
        log_file=args.log_file,
        log_level=args.log_level,
    )


def main(argv=None):
    try:
        config = config_from_args(argv)
        server = StaticHTTPServer(config)
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
