"""Serve command - runs the newsroom HTTP server."""

from __future__ import annotations

import argparse
import sys

from pydantic import BaseModel

from storyflam.archs.config import LOG_LEVELS
from storyflam.archs.transports.http import HTTPConfig, NewsroomServer

from .common import add_settings_arguments, configure_logging, load_settings


class ServerArgs(BaseModel):
    """Validated arguments for the serve command."""

    host: str
    port: int
    log_level: str
    database_url: str
    cors_origins: list[str]


def setup_parser(parser: argparse.ArgumentParser) -> None:
    """Configure arguments for the serve command.

    Host, port and log level default to the loaded settings when omitted.
    """
    add_settings_arguments(parser)
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=list(LOG_LEVELS),
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--cors-origins",
        type=str,
        nargs="+",
        default=["*"],
        help="Allowed CORS origins (default: *)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output (sets log level to debug)",
    )


def main(args: argparse.Namespace) -> int:
    """Execute the serve command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 = success, non-0 = error)
    """
    settings = load_settings(args)

    log_level = "debug" if args.verbose else (args.log_level or settings.log_level)
    configure_logging(log_level)

    server_args = ServerArgs(
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=log_level,
        database_url=settings.database_url,
        cors_origins=args.cors_origins,
    )

    engine = settings.create_engine()
    config = HTTPConfig(
        host=server_args.host,
        port=server_args.port,
        log_level=server_args.log_level,
        cors_origins=server_args.cors_origins,
    )
    server = NewsroomServer(engine=engine, config=config, lock_config=settings.lock)

    print("=" * 60)
    print("StoryFlam Newsroom Server Starting")
    print("=" * 60)
    print(f"Database:       {'in-memory' if settings.uses_memory_store else server_args.database_url}")
    print(f"Host:           {server.host}")
    print(f"Port:           {server.port}")
    print(f"Lock timeout:   {settings.lock.lock_timeout:g}s")
    print(f"Sweep interval: {settings.lock.sweep_interval:g}s")
    print(f"Health:         {server.health_url}")
    print("=" * 60)
    print()

    try:
        server.run()
    except KeyboardInterrupt:
        print("\n\nServer stopped by user")
        return 0
    except Exception as e:
        print(f"\n\nError starting server: {e}", file=sys.stderr)
        return 1
    return 0
