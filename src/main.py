# src/main.py — v2
"""CLI entry point — health and fingerprint commands.

Usage:
    autopost health
    autopost fingerprint <image> [<image> ...]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from autopost.version import __version__

logger = logging.getLogger(__name__)

EXIT_PARTIAL = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="autopost",
        description=f"autopost v{__version__}: analysis cache and cleanup tools",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- health ---
    p_health = subparsers.add_parser(
        "health", help="Check the shared cache tier and print the health report",
    )
    p_health.set_defaults(func=_cmd_health)

    # --- fingerprint ---
    p_fp = subparsers.add_parser(
        "fingerprint", help="Print the cache key of an ordered set of images",
    )
    p_fp.add_argument("files", type=Path, nargs="+", help="Image files, in upload order")
    p_fp.set_defaults(func=_cmd_fingerprint)

    return parser


async def _cmd_health(args: argparse.Namespace) -> int:
    """Print the health report as JSON, logging as configured in Settings."""
    from autopost.api.facade import build_optimizer
    from autopost.config.settings import load_settings
    from autopost.logging.logger import setup_logging_from_settings

    overrides = {"log_level": "DEBUG"} if args.verbose else {}
    settings = load_settings(**overrides)
    # Logs go to stderr; stdout carries the report.
    setup_logging_from_settings(settings, stream=sys.stderr)

    optimizer = build_optimizer(settings)
    try:
        report = await optimizer.health()
    finally:
        await optimizer.close()

    print(report.model_dump_json(indent=2))
    return 0 if report.ready_for_production else EXIT_PARTIAL


async def _cmd_fingerprint(args: argparse.Namespace) -> int:
    """Print the fingerprint of the given files."""
    from autopost.cache.fingerprint import derive_fingerprint, short_fingerprint

    missing = [f for f in args.files if not f.is_file()]
    if missing:
        for path in missing:
            logger.error("File not found: %s", path)
        return 1

    buffers = [f.read_bytes() for f in args.files]
    fingerprint = derive_fingerprint(buffers)
    print(f"Images:      {len(buffers)}")
    print(f"Fingerprint: {fingerprint}")
    print(f"Short:       {short_fingerprint(fingerprint)}")
    return 0


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger("redis").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
