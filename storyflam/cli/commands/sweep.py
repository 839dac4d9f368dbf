"""Sweep command - clears stale edit locks once, for cron-style deployments."""

from __future__ import annotations

import argparse
import asyncio

from storyflam.archs.config import NewsroomSettings
from storyflam.archs.newsroom import SQLDatabaseEngine, StoryLockService

from .common import add_settings_arguments, configure_logging, load_settings


def setup_parser(parser: argparse.ArgumentParser) -> None:
    add_settings_arguments(parser)
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output (sets log level to debug)",
    )


async def run_sweep(settings: NewsroomSettings) -> int:
    """Run one cleanup pass against the configured database.

    Returns:
        Number of locks cleared
    """
    engine = settings.create_engine()
    try:
        service = StoryLockService(engine=engine, lock_timeout=settings.lock.lock_timeout)
        return await service.cleanup_stale_locks()
    finally:
        if isinstance(engine, SQLDatabaseEngine):
            await engine.dispose()


def main(args: argparse.Namespace) -> int:
    settings = load_settings(args)
    configure_logging("debug" if args.verbose else settings.log_level)

    cleared = asyncio.run(run_sweep(settings))
    print(f"Cleared {cleared} stale edit lock(s)")
    return 0
