from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass

from lexistream.core.errors import ValidationError
from lexistream.core.keys import normalize_lookup_key
from lexistream.core.time import now_utc_iso
from lexistream.domain.models.entry import EntrySnapshot


@dataclass(frozen=True, slots=True)
class CachedLookup:
    term: str
    entry: EntrySnapshot
    origin: str
    stored_at: str


class LookupCache:
    """
    Completed lookups for one application session.

    - keys are lookup terms trimmed and case-folded
    - least recently used entries are evicted beyond ``max_entries``
    - thread-safe; the web app can serve lookups concurrently
    """

    def __init__(self, max_entries: int = 256) -> None:
        if max_entries <= 0:
            raise ValidationError(f"max_entries must be positive, got {max_entries}")
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._items: OrderedDict[str, CachedLookup] = OrderedDict()

    def get(self, term: str) -> CachedLookup | None:
        key = normalize_lookup_key(term)
        with self._lock:
            item = self._items.get(key)
            if item is not None:
                self._items.move_to_end(key)
            return item

    def put(self, term: str, entry: EntrySnapshot, origin: str = "stream") -> CachedLookup:
        key = normalize_lookup_key(term)
        item = CachedLookup(term=term.strip(), entry=entry, origin=origin, stored_at=now_utc_iso())
        with self._lock:
            self._items[key] = item
            self._items.move_to_end(key)
            while len(self._items) > self.max_entries:
                self._items.popitem(last=False)
        return item

    def recent_terms(self, limit: int = 20) -> list[str]:
        """Most recently stored or read terms first."""
        with self._lock:
            items = list(self._items.values())
        return [item.term for item in reversed(items)][: max(0, limit)]

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __contains__(self, term: object) -> bool:
        if not isinstance(term, str) or not term.strip():
            return False
        with self._lock:
            return normalize_lookup_key(term) in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
