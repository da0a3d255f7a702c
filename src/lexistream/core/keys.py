from __future__ import annotations

from lexistream.core.errors import ValidationError


def normalize_lookup_key(term: str) -> str:
    """Cache key for a lookup term: trimmed and case-folded."""
    key = str(term or "").strip().casefold()
    if not key:
        raise ValidationError("Lookup term must not be blank")
    return key
