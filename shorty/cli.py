"""Command line entry point for the shorty server.

Usage:
    shorty [--redirFile PATH] [--port PORT] [--host HOST] [--log-level LEVEL]

Example:
    shorty --redirFile /var/lib/shorty/redirs.json --port 8081
"""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from shorty.core.exceptions import PersistenceError
from shorty.core.setting import Settings
from shorty.main import create_app

logger = logging.getLogger(__name__)


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Flags left unset fall back to the environment / .env settings.
    """
    parser = argparse.ArgumentParser(
        prog="shorty",
        description="Minimal URL-shortening redirect service"
    )
    parser.add_argument(
        "--redirFile",
        dest="redirect_file",
        default=None,
        help="The path to the file to use as persistent storage (default: redirs.json)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Which port to start the HTTP server on (default: 8080)"
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Interface to bind to (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: INFO)"
    )
    return parser.parse_args(args)


def build_settings(parsed: argparse.Namespace) -> Settings:
    overrides = {
        "REDIRECT_FILE": parsed.redirect_file,
        "PORT": parsed.port,
        "HOST": parsed.host,
        "LOG_LEVEL": parsed.log_level,
    }
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def main(args: list[str] | None = None) -> int:
    """Start the server.

    Returns:
        Exit code: 0 on clean shutdown, 1 if the redirect file cannot be loaded.
    """
    app_settings = build_settings(parse_args(args))
    logging.basicConfig(
        level=app_settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        app = create_app(app_settings)
    except PersistenceError as e:
        logger.critical(f"Could not read redirect file, {e}")
        return 1

    logger.info(f"Starting http server on port {app_settings.PORT}")
    uvicorn.run(app, host=app_settings.HOST, port=app_settings.PORT, log_level=app_settings.LOG_LEVEL.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
