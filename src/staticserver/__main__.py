"""
=============================================================================
STATIC SERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 127.0.0.1:8000
    python -m staticserver

    # Serve ./public on all interfaces
    python -m staticserver --root ./public --host 0.0.0.0 --port 3000

    # No directory listings, no index file
    python -m staticserver --no-listing --index ""

Flags override STATICSERVER_* environment variables, which override the
defaults (see config.py).

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig, LOG_LEVELS, LOG_FORMATS
from .server import StaticServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Minimal HTTP/1.1 static file server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticserver                        # Serve . on 127.0.0.1:8000
  python -m staticserver --root ./public        # Serve ./public
  python -m staticserver --host 0.0.0.0 -p 80   # Listen on all interfaces
  python -m staticserver --no-listing           # 404 for directories without index
        """
    )

    # Defaults are None so unset flags fall through to environment/defaults

    parser.add_argument("--host", "-H", default=None,
                        help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=None,
                        help="Port to listen on, 0 picks a free one (default: 8000)")
    parser.add_argument("--root", "-r", default=None,
                        help="Directory to serve (default: current directory)")
    parser.add_argument("--index", "-i", dest="index_filename", default=None,
                        help='Index file for directories, "" to disable (default: index.html)')
    parser.add_argument("--no-listing", dest="enable_directory_listing",
                        action="store_const", const=False, default=None,
                        help="Disable directory listings")
    parser.add_argument("--timeout", "-t", dest="read_timeout", type=float, default=None,
                        help="Seconds to wait for the request line (default: 5)")
    parser.add_argument("--max-workers", "-w", type=int, default=None,
                        help="Maximum concurrent connections (default: unbounded)")
    parser.add_argument("--log-level", "-l", type=str.upper, choices=LOG_LEVELS, default=None,
                        help="Logging level (default: INFO)")
    parser.add_argument("--log-format", choices=LOG_FORMATS, default=None,
                        help="Access log format (default: text)")
    parser.add_argument("--version", "-v", action="version",
                        version=f"staticserver {__version__}")
    return parser


def load_config(argv=None) -> ServerConfig:
    """
    Resolve configuration from CLI flags and the environment.

    Raises:
        ValueError: Invalid environment value or setting.
    """
    args = build_parser().parse_args(argv)

    config = ServerConfig.from_env().override(**vars(args))
    config.validate()
    return config


def main(argv=None) -> int:
    try:
        config = load_config(argv)
    except ValueError as e:
        print(f"staticserver: configuration error: {e}", file=sys.stderr)
        return 2

    StaticServer(config).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
