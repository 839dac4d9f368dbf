"""StoryFlam CLI - Main dispatcher with serve and sweep commands."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from storyflam.cli.commands import serve, sweep


def create_parser() -> argparse.ArgumentParser:
    """Create the main CLI parser with subcommands.

    Returns:
        Configured ArgumentParser with all subcommands
    """
    parser = argparse.ArgumentParser(
        prog="storyflam",
        description="StoryFlam newsroom server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=False,
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the newsroom HTTP server",
    )
    serve.setup_parser(serve_parser)
    serve_parser.set_defaults(func=serve.main)

    sweep_parser = subparsers.add_parser(
        "sweep",
        help="Clear stale edit locks once and exit",
    )
    sweep.setup_parser(sweep_parser)
    sweep_parser.set_defaults(func=sweep.main)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI main entry point.

    Args:
        argv: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 = success, non-0 = error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
