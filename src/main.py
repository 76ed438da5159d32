# src/main.py — v3
"""CLI entry point: inspect a document cache directory.

Usage:
    cascache status [directory]
    cascache check [directory]

The directory defaults to CASCACHE_CACHE_DIRECTORY from the environment/.env.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from cascache.config.settings import ConfigurationError, Settings
from cascache.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNUSABLE = 1
EXIT_POLLUTED = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        _setup_logging(args.verbose)
    except (ConfigurationError, ValidationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="cascache",
        description=f"cascache v{__version__} - preprocessing cache for document pipelines",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- status ---
    p_status = subparsers.add_parser(
        "status", help="Report whether a cache directory is usable",
    )
    p_status.add_argument(
        "directory", type=Path, nargs="?", default=None,
        help="Cache directory (default: from settings)",
    )
    p_status.set_defaults(func=_cmd_status)

    # --- check ---
    p_check = subparsers.add_parser(
        "check", help="Create the cache directory if needed and check it for foreign files",
    )
    p_check.add_argument(
        "directory", type=Path, nargs="?", default=None,
        help="Cache directory (default: from settings)",
    )
    p_check.set_defaults(func=_cmd_check)

    return parser


def _cmd_status(args: argparse.Namespace) -> int:
    """Print the state of a cache directory without modifying it."""
    from cascache.cache.detector import detect
    from cascache.cache.guard import find_polluting_entries

    directory = _resolve_directory(args.directory)
    polluting = find_polluting_entries(directory)
    verdict = detect(directory)

    print(f"\nCache directory {directory}:")
    print(f"  Exists:            {directory.is_dir()}")
    print(f"  Type system:       {'present' if verdict.has_schema else 'missing'}")
    print(f"  Cached documents:  {verdict.document_count}")
    print(f"  Foreign entries:   {len(polluting)}")
    for entry in polluting:
        print(f"    - {entry.name}")

    if polluting:
        print("  State:             polluted")
        return EXIT_POLLUTED
    if verdict.usable:
        print("  State:             usable")
        return EXIT_OK
    print("  State:             unusable")
    return EXIT_UNUSABLE


def _cmd_check(args: argparse.Namespace) -> int:
    """Run the directory guard, creating the directory if absent."""
    from cascache.cache.guard import PollutedCacheError, ensure_clean

    directory = _resolve_directory(args.directory)
    try:
        ensure_clean(directory)
    except PollutedCacheError as exc:
        print(str(exc))
        for entry in exc.polluting_entries:
            print(f"  - {entry.name}")
        return EXIT_POLLUTED

    print(f"Cache directory {directory} is clean")
    return EXIT_OK


def _resolve_directory(directory: Path | None) -> Path:
    if directory is not None:
        return directory.expanduser()
    return Settings().cache_directory.expanduser()


def _setup_logging(verbose: bool) -> None:
    """Configure logging from settings; -v forces DEBUG."""
    from cascache.logging.logger import setup_logging

    settings = Settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file.expanduser()) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
