"""Helpers shared by the CLI subcommands."""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from storyflam.archs.config import NewsroomSettings


def add_settings_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML settings file",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help='Async SQLAlchemy URL, or "memory" for the in-memory store',
    )


def load_settings(args: argparse.Namespace) -> NewsroomSettings:
    """Load .env, then settings from --config and the environment.

    Command line flags win over both.
    """
    load_dotenv()
    settings = NewsroomSettings.load(args.config)
    if args.database_url:
        settings.database_url = args.database_url
    return settings


def configure_logging(log_level: str) -> None:
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,  # Override any existing configuration
    )
