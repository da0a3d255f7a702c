from __future__ import annotations

import asyncio
from typing import AsyncIterator

from lexistream.core.errors import ValidationError


def split_chunks(text: str, chunk_size: int) -> list[str]:
    """Cut ``text`` into fixed-size fragments regardless of line or markup boundaries."""
    if chunk_size <= 0:
        raise ValidationError(f"chunk_size must be positive, got {chunk_size}")
    return [text[i : i + chunk_size] for i in range(0, len(text), chunk_size)]


async def replay_chunks(text: str, chunk_size: int, delay_s: float = 0.0) -> AsyncIterator[str]:
    """Replay a prepared model response as an asynchronous fragment stream."""
    for chunk in split_chunks(text, chunk_size):
        if delay_s > 0:
            await asyncio.sleep(delay_s)
        yield chunk
