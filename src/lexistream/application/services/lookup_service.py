from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Awaitable, Callable

from lexistream.application.services.lookup_cache import LookupCache
from lexistream.core.config import Settings
from lexistream.core.errors import IncompleteEntryError, LookupFailedError
from lexistream.core.keys import normalize_lookup_key
from lexistream.domain.models.entry import EntrySnapshot
from lexistream.infrastructure.parsers.snapshot_emitter import EntryStream

logger = logging.getLogger(__name__)

ChunkSource = AsyncIterable[str]
FallbackRetriever = Callable[[str], Awaitable[EntrySnapshot]]

ORIGIN_STREAM = "stream"
ORIGIN_FALLBACK = "fallback"
ORIGIN_CACHE = "cache"


@dataclass(frozen=True, slots=True)
class LookupUpdate:
    term: str
    snapshot: EntrySnapshot
    final: bool
    origin: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "term": self.term,
            "final": self.final,
            "origin": self.origin,
            "entry": self.snapshot.to_dict(),
        }


class LookupService:
    """
    Drives one streamed lookup per call.

    Partial snapshots are yielded as they change; the sequence always ends
    with exactly one final update. When the stream breaks, times out, or
    finishes without the required fields, the final update comes from the
    non-streaming fallback instead.
    """

    def __init__(
        self,
        cache: LookupCache,
        fallback: FallbackRetriever | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.cache = cache
        self.fallback = fallback
        self.settings = settings or Settings()

    async def stream(self, term: str, source: ChunkSource) -> AsyncIterator[LookupUpdate]:
        _validate_term(term)

        cached = self.cache.get(term)
        if cached is not None:
            logger.debug("cache hit for %r", term)
            await _close_source(source)
            yield LookupUpdate(term=term, snapshot=cached.entry, final=True, origin=ORIGIN_CACHE)
            return

        entry_stream = EntryStream()
        cause: Exception | None = None
        final: EntrySnapshot | None = None
        try:
            async with contextlib.aclosing(self._pull(entry_stream, source)) as snapshots:
                async for snapshot in snapshots:
                    logger.debug("update for %r: %s", term, ",".join(snapshot.present_fields()))
                    yield LookupUpdate(term=term, snapshot=snapshot, final=False, origin=ORIGIN_STREAM)
            final = entry_stream.finalize()
            missing = final.missing(self.settings.required_fields)
            if missing:
                raise IncompleteEntryError(missing)
        except IncompleteEntryError as exc:
            cause = exc
            logger.info("Streamed entry for %r incomplete: %s", term, exc)
        except asyncio.TimeoutError as exc:
            cause = exc
            logger.warning(
                "Stream for %r timed out after %.1fs", term, self.settings.stream_timeout_s
            )
        except Exception as exc:
            cause = exc
            logger.warning("Stream for %r failed: %s", term, exc)

        if cause is None and final is not None:
            self.cache.put(term, final, origin=ORIGIN_STREAM)
            yield LookupUpdate(term=term, snapshot=final, final=True, origin=ORIGIN_STREAM)
            return

        entry = await self._retrieve_fallback(term, cause)
        self.cache.put(term, entry, origin=ORIGIN_FALLBACK)
        yield LookupUpdate(term=term, snapshot=entry, final=True, origin=ORIGIN_FALLBACK)

    async def lookup(self, term: str, source: ChunkSource) -> LookupUpdate:
        last: LookupUpdate | None = None
        async for update in self.stream(term, source):
            last = update
        if last is None:
            raise LookupFailedError(f"Lookup for {term!r} produced no result")
        return last

    async def _pull(self, entry_stream: EntryStream, source: ChunkSource) -> AsyncIterator[EntrySnapshot]:
        iterator = source.__aiter__()
        timeout = self.settings.stream_timeout_s
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout > 0 else None
        try:
            while True:
                try:
                    if deadline is None:
                        chunk = await iterator.__anext__()
                    else:
                        remaining = deadline - loop.time()
                        if remaining <= 0:
                            raise asyncio.TimeoutError()
                        chunk = await asyncio.wait_for(iterator.__anext__(), remaining)
                except StopAsyncIteration:
                    return
                snapshot = entry_stream.feed(chunk)
                if snapshot is not None:
                    yield snapshot
        finally:
            await _close_source(iterator)

    async def _retrieve_fallback(self, term: str, cause: Exception | None) -> EntrySnapshot:
        if self.fallback is None:
            raise LookupFailedError(
                f"Streaming lookup for {term!r} failed and no fallback is configured"
            ) from cause

        logger.info("Using non-streaming retrieval for %r", term)
        try:
            entry = await self.fallback(term)
        except Exception as exc:
            raise LookupFailedError(f"Fallback retrieval for {term!r} failed: {exc}") from exc

        missing = entry.missing(self.settings.required_fields)
        if missing:
            raise LookupFailedError(
                f"Fallback entry for {term!r} is missing: {', '.join(missing)}"
            ) from IncompleteEntryError(missing)
        return entry


def _validate_term(term: str) -> None:
    """Reject blank terms before any transport work starts."""
    normalize_lookup_key(term)


async def _close_source(source: object) -> None:
    aclose = getattr(source, "aclose", None)
    if aclose is not None:
        await aclose()
