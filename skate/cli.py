"""
Command line entry point.

Usage:
    skate help                 Print usage and quit
    skate init                 Create a new skate.json interactively
    skate on [options]         Start the presentation server
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import uvicorn

from skate.config import ConfigError, load_settings
from skate.internal import load_env_file
from skate.main import create_app
from skate.project import init_project

_log = logging.getLogger(__name__)

LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skate",
        description="Serve HTML slides and keep every viewer on the same slide.",
    )
    actions = parser.add_subparsers(dest="action", metavar="<action>")

    actions.add_parser("help", help="Print this message and quit")
    actions.add_parser("init", help="Create a new skate presentation interactively")

    on = actions.add_parser("on", help="Start the presentation server")
    on.add_argument(
        "--config",
        type=str,
        default=None,
        help="The path to the config file (default: ./skate.json).",
    )
    on.add_argument(
        "--port",
        type=int,
        default=None,
        help="The port to serve the presentation on (default: 3000).",
    )
    on.add_argument(
        "--password",
        type=str,
        default=None,
        help="The password for switching slides (overrides config file password).",
    )
    on.add_argument(
        "--control",
        action="store_true",
        default=False,
        help="Allow viewers to move between slides locally (overrides config file control).",
    )
    on.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="The interface to listen on.",
    )
    on.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="info",
        help="Logging verbosity for the server.",
    )
    return parser


def _serve(args: argparse.Namespace) -> int:
    try:
        if os.path.exists(".env"):
            load_env_file(".env")
    except (OSError, ValueError) as e:
        _log.error(f"Failed to load .env: {e}")
        return 1

    try:
        settings = load_settings(
            config_path=args.config,
            port=args.port,
            password=args.password,
            control=args.control,
        )
    except ConfigError as e:
        _log.error(str(e))
        return 1

    app = create_app(settings)
    print(f"Listening on http://localhost:{settings.port}")
    # No server-initiated pings: keepalive cadence is left to the viewers.
    uvicorn.run(
        app,
        host=args.host,
        port=settings.port,
        log_level=args.log_level,
        ws_ping_interval=None,
        ws_ping_timeout=None,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(args, "log_level", "info").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.action == "init":
        try:
            config_path = init_project(Path.cwd())
        except ConfigError as e:
            _log.error(str(e))
            return 1
        print(f"Created config file at {config_path}. Make your slides and {parser.prog} on!")
        return 0

    if args.action == "on":
        return _serve(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
