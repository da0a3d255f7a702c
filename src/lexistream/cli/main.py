from __future__ import annotations

import argparse
import logging

from rich.console import Console

from lexistream.application.services.lookup_cache import LookupCache
from lexistream.cli.commands import lookup_cmd, parse_cmd, web_cmd
from lexistream.cli.context import CLIContext
from lexistream.core.config import load_settings
from lexistream.core.errors import LexiStreamError
from lexistream.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lexistream",
        description="Incremental dictionary-entry extraction from streamed markdown",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    parse_cmd.register(subparsers)
    lookup_cmd.register(subparsers)
    web_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        settings = load_settings()
        ctx = CLIContext(
            settings=settings,
            console=console,
            cache=LookupCache(max_entries=settings.cache_max_entries),
        )
        return handler(args, ctx)
    except LexiStreamError as exc:
        logger.error(str(exc))
        return 1
