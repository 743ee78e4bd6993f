"""
=============================================================================
QUICKAPI CLI ENTRY POINT
=============================================================================

Runs a demonstration endpoint that echoes what it receives.

=============================================================================
USAGE
=============================================================================

    python -m quickapi

    python -m quickapi --port 3000

    python -m quickapi --host 127.0.0.1 --log-level DEBUG

    curl -X POST -d 'name=Ada&lang=en' 'http://localhost:8080/echo?x=1'

Defaults come from the environment (HTTP_HOST, HTTP_PORT, HTTP_BACKLOG,
HTTP_LOG_LEVEL), command-line flags override them.

=============================================================================
"""

import argparse
import json
import logging
import sys
import threading

from . import __version__
from .config import LOG_LEVELS, ServerConfig
from .http import Request
from .server import create_server


logger = logging.getLogger("quickapi")


def echo(request: Request):
    """
    Demonstration callback.

    OPTIONS gets the CORS preflight reply; every other method gets a JSON
    description of the request.
    """
    if request.method == "OPTIONS":
        request.send_options()
        return

    request.send_text(json.dumps({
        "method": request.method,
        "url": request.url,
        "version": request.version,
        "headers": request.headers,
        "query": request.get_parameters_from_url(),
        "form": request.get_parameters_from_body(),
        "body": request.get_text_from_body(),
    }, ensure_ascii=False))


def setup_logging(level: str):
    """Configure root logging for the CLI."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv=None):
    """
    Main CLI entry point.

    - --host, -H: Bind address
    - --port, -p: Port
    - --log-level, -l: Logging verbosity
    - --version, -v: Show version
    """
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser = argparse.ArgumentParser(
        prog="quickapi",
        description="Minimal embeddable HTTP endpoint (echo demo)",
    )
    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        type=str.upper,
        default=defaults.log_level.upper(),
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"QuickAPI {__version__}",
    )

    args = parser.parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        backlog=defaults.backlog,
        log_level=args.log_level,
    )

    setup_logging(config.log_level)

    try:
        create_server(config.port, echo, config)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        # The accept loop runs on a daemon thread; keep the process alive.
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, exiting")

    return 0


if __name__ == "__main__":
    sys.exit(main())
