from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from lexistream.application.services.lookup_service import LookupService, LookupUpdate
from lexistream.cli.context import CLIContext
from lexistream.cli.render import entry_table
from lexistream.core.errors import ValidationError
from lexistream.infrastructure.importers.json_entry_importer import JsonFileFallback
from lexistream.infrastructure.sources.replay_source import replay_chunks


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("lookup", help="Run a full streamed lookup with fallback")
    parser.add_argument("term")
    parser.add_argument("--markdown", required=True, help="Markdown model output served as the stream")
    parser.add_argument("--fallback-json", help="JSON record(s) used when the stream is unusable")
    parser.add_argument("--chunk-size", type=int)
    parser.add_argument("--delay", type=float, help="Seconds between fragments")
    parser.set_defaults(handler=run)


def _existing(raw: str, label: str) -> Path:
    path = Path(raw).expanduser().resolve()
    if not path.is_file():
        raise ValidationError(f"{label} not found: {path}")
    return path


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    markdown = _existing(args.markdown, "Markdown file").read_text(encoding="utf-8")
    fallback = JsonFileFallback(_existing(args.fallback_json, "Fallback JSON")) if args.fallback_json else None

    service = LookupService(ctx.cache, fallback=fallback, settings=ctx.settings)
    source = replay_chunks(
        markdown,
        args.chunk_size or ctx.settings.chunk_size,
        ctx.settings.chunk_delay_s if args.delay is None else args.delay,
    )

    async def consume() -> LookupUpdate | None:
        last: LookupUpdate | None = None
        async for update in service.stream(args.term, source):
            if not update.final:
                ctx.console.print(
                    f"[dim]partial[/dim] {', '.join(update.snapshot.present_fields())}"
                )
            last = update
        return last

    final = asyncio.run(consume())
    if final is None:
        return 1
    ctx.console.print(entry_table(final.snapshot, title=f"{args.term} ({final.origin})"))
    return 0
