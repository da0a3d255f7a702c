from __future__ import annotations

import pytest

from lexistream.application.services.lookup_cache import LookupCache
from lexistream.core.errors import ValidationError
from lexistream.core.keys import normalize_lookup_key
from lexistream.domain.models.entry import EntrySnapshot


def test_normalize_lookup_key() -> None:
    assert normalize_lookup_key("  Fatigué ") == "fatigué"
    assert normalize_lookup_key("STRASSE") == normalize_lookup_key("strasse")
    with pytest.raises(ValidationError):
        normalize_lookup_key("   ")


def test_cache_get_uses_normalized_keys() -> None:
    cache = LookupCache()
    entry = EntrySnapshot(headword="chat", meaning="cat")
    cache.put(" Chat ", entry)

    hit = cache.get("CHAT")
    assert hit is not None
    assert hit.entry == entry
    assert hit.term == "Chat"
    assert hit.origin == "stream"
    assert "chat" in cache
    assert "" not in cache
    assert cache.get("chien") is None


def test_cache_evicts_least_recently_used() -> None:
    cache = LookupCache(max_entries=2)
    cache.put("a", EntrySnapshot(headword="a"))
    cache.put("b", EntrySnapshot(headword="b"))
    cache.get("a")
    cache.put("c", EntrySnapshot(headword="c"))

    assert len(cache) == 2
    assert "b" not in cache
    assert "a" in cache and "c" in cache


def test_recent_terms_most_recent_first() -> None:
    cache = LookupCache()
    for term in ("un", "deux", "trois"):
        cache.put(term, EntrySnapshot(headword=term))
    cache.put("UN", EntrySnapshot(headword="un"))

    assert cache.recent_terms() == ["UN", "trois", "deux"]
    assert cache.recent_terms(limit=1) == ["UN"]


def test_cache_clear_and_invalid_size() -> None:
    cache = LookupCache()
    cache.put("a", EntrySnapshot(headword="a"))
    cache.clear()
    assert len(cache) == 0

    with pytest.raises(ValidationError):
        LookupCache(max_entries=0)
