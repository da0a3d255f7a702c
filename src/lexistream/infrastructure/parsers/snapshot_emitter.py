from __future__ import annotations

from lexistream.domain.models.entry import EntrySnapshot
from lexistream.infrastructure.parsers.markdown_stream_parser import MarkdownStreamParser


class SnapshotEmitter:
    """Passes a snapshot through only when it differs from the last one passed."""

    def __init__(self) -> None:
        self._last = EntrySnapshot.empty()
        self._emitted = 0

    @property
    def last(self) -> EntrySnapshot:
        return self._last

    @property
    def emitted(self) -> int:
        return self._emitted

    def observe(self, snapshot: EntrySnapshot) -> EntrySnapshot | None:
        if snapshot == self._last:
            return None
        self._last = snapshot
        self._emitted += 1
        return snapshot


class EntryStream:
    """One parser plus one emitter: the per-lookup unit the orchestrator drives."""

    def __init__(self, parser: MarkdownStreamParser | None = None) -> None:
        self.parser = parser or MarkdownStreamParser()
        self.emitter = SnapshotEmitter()

    def feed(self, chunk: str) -> EntrySnapshot | None:
        return self.emitter.observe(self.parser.add_chunk(chunk))

    def finalize(self) -> EntrySnapshot:
        return self.parser.finalize()
