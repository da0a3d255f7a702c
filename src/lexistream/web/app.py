from __future__ import annotations

import contextlib
import json
import logging
from typing import Any, AsyncIterator, Iterator

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from lexistream.application.services.lookup_cache import LookupCache
from lexistream.application.services.lookup_service import FallbackRetriever, LookupService
from lexistream.core.config import Settings, load_settings
from lexistream.core.errors import LexiStreamError, ValidationError
from lexistream.core.keys import normalize_lookup_key
from lexistream.core.time import now_utc_iso
from lexistream.domain.models.entry import EntrySnapshot
from lexistream.infrastructure.importers.json_entry_importer import (
    EntryJsonError,
    load_entry_from_json,
)
from lexistream.infrastructure.parsers.snapshot_emitter import EntryStream
from lexistream.infrastructure.sources.replay_source import replay_chunks, split_chunks

logger = logging.getLogger(__name__)


class ParseRequest(BaseModel):
    text: str
    chunk_size: int | None = None


class LookupRequest(BaseModel):
    term: str
    text: str
    chunk_size: int | None = None
    fallback: dict[str, Any] | None = None


_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _sse_event(event: str, payload: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, ensure_ascii=True)}\n\n"


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="lexistream", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    cache = LookupCache(max_entries=settings.cache_max_entries)

    def _chunks(text: str, chunk_size: int | None) -> list[str]:
        try:
            return split_chunks(text, chunk_size or settings.chunk_size)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.post("/api/parse")
    def api_parse(req: ParseRequest) -> dict[str, Any]:
        stream = EntryStream()
        for chunk in _chunks(req.text, req.chunk_size):
            stream.feed(chunk)
        final = stream.finalize()
        return {
            "ok": True,
            "notifications": stream.emitter.emitted,
            "missing": list(final.missing(settings.required_fields)),
            "entry": final.to_dict(),
        }

    @app.post("/api/parse/stream")
    def api_parse_stream(req: ParseRequest) -> StreamingResponse:
        chunks = _chunks(req.text, req.chunk_size)

        def iterator() -> Iterator[str]:
            stream = EntryStream()
            seq = 0
            for idx, chunk in enumerate(chunks, start=1):
                snapshot = stream.feed(chunk)
                if snapshot is None:
                    continue
                seq += 1
                yield _sse_event("snapshot", _payload(snapshot, seq, chunk_index=idx))
            seq += 1
            yield _sse_event("final", _payload(stream.finalize(), seq, chunk_index=len(chunks)))
            yield _sse_event("done", {"ok": True, "notifications": stream.emitter.emitted})

        return StreamingResponse(iterator(), media_type="text/event-stream", headers=_SSE_HEADERS)

    @app.post("/api/lookup/stream")
    def api_lookup_stream(req: LookupRequest) -> StreamingResponse:
        try:
            normalize_lookup_key(req.term)
            fallback_entry = load_entry_from_json(req.fallback) if req.fallback is not None else None
        except (ValidationError, EntryJsonError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        chunk_size = req.chunk_size or settings.chunk_size
        if chunk_size <= 0:
            raise HTTPException(status_code=400, detail=f"chunk_size must be positive, got {chunk_size}")

        service = LookupService(
            cache,
            fallback=_fixed_fallback(fallback_entry) if fallback_entry is not None else None,
            settings=settings,
        )

        async def iterator() -> AsyncIterator[str]:
            seq = 0
            try:
                source = replay_chunks(req.text, chunk_size, settings.chunk_delay_s)
                async with contextlib.aclosing(service.stream(req.term, source)) as updates:
                    async for update in updates:
                        seq += 1
                        payload = update.to_dict()
                        payload.update({"event_seq": seq, "emitted_at": now_utc_iso()})
                        yield _sse_event("final" if update.final else "snapshot", payload)
                yield _sse_event("done", {"ok": True})
            except LexiStreamError as exc:
                logger.warning("Lookup stream for %r failed: %s", req.term, exc)
                yield _sse_event("error", {"ok": False, "error": str(exc)})

        return StreamingResponse(iterator(), media_type="text/event-stream", headers=_SSE_HEADERS)

    @app.get("/api/lookup/recent")
    def api_lookup_recent(limit: int = Query(default=20, ge=1, le=500)) -> dict[str, Any]:
        terms = cache.recent_terms(limit=limit)
        return {"count": len(terms), "terms": terms}

    return app


def _payload(snapshot: EntrySnapshot, seq: int, *, chunk_index: int) -> dict[str, Any]:
    return {
        "event_seq": seq,
        "chunk_index": chunk_index,
        "emitted_at": now_utc_iso(),
        "entry": snapshot.to_dict(),
    }


def _fixed_fallback(entry: EntrySnapshot) -> FallbackRetriever:
    """Fallback that answers with the record supplied in the request body."""

    async def retrieve(_term: str) -> EntrySnapshot:
        return entry

    return retrieve
