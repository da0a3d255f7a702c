from __future__ import annotations

import logging

from lexistream.core.errors import ParserFinalizedError
from lexistream.domain.models.entry import EntrySnapshot
from lexistream.infrastructure.parsers.section_rules import extract_entry

logger = logging.getLogger(__name__)


class MarkdownStreamParser:
    """
    Accumulates a streamed markdown entry and re-derives it on every chunk.

    The whole buffer is re-scanned each time, so the result only depends on
    the buffer contents and never on how the text was split into chunks.
    One instance serves exactly one streamed lookup.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._chunk_count = 0
        self._finalized = False

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def chunk_count(self) -> int:
        return self._chunk_count

    @property
    def finalized(self) -> bool:
        return self._finalized

    def add_chunk(self, text: str) -> EntrySnapshot:
        if not isinstance(text, str):
            raise TypeError(f"Chunk must be str, got {type(text).__name__}")
        if self._finalized:
            raise ParserFinalizedError("Parser already finalized; start a new parser per lookup")

        self._buffer += text
        self._chunk_count += 1
        snapshot = self.snapshot()
        logger.debug(
            "chunk %d (+%d chars, buffer %d): fields=%s",
            self._chunk_count,
            len(text),
            len(self._buffer),
            ",".join(snapshot.present_fields()) or "-",
        )
        return snapshot

    def snapshot(self) -> EntrySnapshot:
        return extract_entry(self._buffer)

    def finalize(self) -> EntrySnapshot:
        """Authoritative extraction of the full buffer, unterminated last line included."""
        self._finalized = True
        return extract_entry(self._buffer, final=True)
