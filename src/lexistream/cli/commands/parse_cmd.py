from __future__ import annotations

import argparse
from pathlib import Path

from rich.panel import Panel

from lexistream.cli.context import CLIContext
from lexistream.cli.render import entry_table
from lexistream.core.errors import ValidationError
from lexistream.domain.models.entry import EntrySnapshot
from lexistream.infrastructure.parsers.snapshot_emitter import EntryStream
from lexistream.infrastructure.sources.replay_source import split_chunks


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("parse", help="Replay a markdown entry chunk by chunk")
    parser.add_argument("file", help="Markdown model output to replay")
    parser.add_argument("--chunk-size", type=int, help="Fragment size in characters")
    parser.add_argument("--show-all", action="store_true", help="Print every emitted snapshot in full")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    path = Path(args.file).expanduser().resolve()
    if not path.is_file():
        raise ValidationError(f"Markdown file not found: {path}")

    text = path.read_text(encoding="utf-8")
    chunk_size = args.chunk_size or ctx.settings.chunk_size
    chunks = split_chunks(text, chunk_size)

    stream = EntryStream()
    previous = EntrySnapshot.empty()
    for idx, chunk in enumerate(chunks, start=1):
        snapshot = stream.feed(chunk)
        if snapshot is None:
            continue
        if args.show_all:
            ctx.console.print(entry_table(snapshot, title=f"Chunk {idx}/{len(chunks)}"))
        else:
            changed = [
                name for name in snapshot.present_fields()
                if getattr(snapshot, name) != getattr(previous, name)
            ]
            ctx.console.print(f"[dim]chunk {idx}/{len(chunks)}[/dim] updated: {', '.join(changed)}")
        previous = snapshot

    final = stream.finalize()
    ctx.console.print(entry_table(final, title="Final entry"))
    ctx.console.print(
        Panel.fit(
            "\n".join(
                [
                    f"Chunks: {len(chunks)}",
                    f"Notifications: {stream.emitter.emitted}",
                    f"Fields: {', '.join(final.present_fields()) or '(none)'}",
                    f"Missing required: {', '.join(final.missing(ctx.settings.required_fields)) or '(none)'}",
                ]
            ),
            title="Parse Summary",
        )
    )
    return 0
