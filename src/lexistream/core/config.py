from __future__ import annotations

import os
from dataclasses import dataclass

from lexistream.core.errors import ConfigurationError
from lexistream.domain.models.entry import ENTRY_FIELDS

DEFAULT_REQUIRED_FIELDS = ("headword", "meaning")


@dataclass(frozen=True)
class Settings:
    chunk_size: int = 24
    chunk_delay_s: float = 0.0
    stream_timeout_s: float = 60.0
    cache_max_entries: int = 256
    required_fields: tuple[str, ...] = DEFAULT_REQUIRED_FIELDS


def load_settings() -> Settings:
    chunk_size = _read_int_env("LEXISTREAM_CHUNK_SIZE", 24)
    if chunk_size <= 0:
        raise ConfigurationError("LEXISTREAM_CHUNK_SIZE must be positive")

    chunk_delay_s = _read_float_env("LEXISTREAM_CHUNK_DELAY_S", 0.0)
    stream_timeout_s = _read_float_env("LEXISTREAM_STREAM_TIMEOUT_S", 60.0)
    if chunk_delay_s < 0 or stream_timeout_s < 0:
        raise ConfigurationError("Delays and timeouts must not be negative")

    cache_max_entries = _read_int_env("LEXISTREAM_CACHE_MAX_ENTRIES", 256)
    if cache_max_entries <= 0:
        raise ConfigurationError("LEXISTREAM_CACHE_MAX_ENTRIES must be positive")

    return Settings(
        chunk_size=chunk_size,
        chunk_delay_s=chunk_delay_s,
        stream_timeout_s=stream_timeout_s,
        cache_max_entries=cache_max_entries,
        required_fields=_read_fields_env("LEXISTREAM_REQUIRED_FIELDS", DEFAULT_REQUIRED_FIELDS),
    )


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def _read_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def _read_fields_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    fields = tuple(part.strip() for part in raw.split(",") if part.strip())
    unknown = [f for f in fields if f not in ENTRY_FIELDS]
    if unknown:
        raise ConfigurationError(f"{name} names unknown entry fields: {', '.join(unknown)}")
    return fields
