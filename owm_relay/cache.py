"""In-memory freshness cache with per-entry TTL and lazy eviction."""

import copy
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional

from owm_relay.relay_types import ContentKind
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="relay/freshness_cache")


@dataclass(frozen=True)
class CacheEntry:
    """One cached upstream response."""
    key: str
    payload: Any  # parsed JSON structure or raw image bytes
    content_kind: ContentKind
    stored_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        """Return True while the entry is younger than its TTL."""
        return now - self.stored_at < self.ttl


class FreshnessCache:
    """Thread-safe, TTL-aware key/value store backing the relay gateway.

    Stale entries are dropped on the lookup that finds them; there is no
    background sweep. `max_entries` adds an LRU cap; when it is None the
    cache grows with the number of distinct keys requested.
    """

    def __init__(self, max_entries: int | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize an empty cache with an optional size cap and a clock (seconds)."""
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive or None")
        logger.debug("Initializing FreshnessCache (max_entries=%s)", max_entries)
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return a copy of the fresh entry under `key`, or None if missing/stale."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_fresh(self._clock()):
                self._entries.pop(key, None)
                logger.debug("Evicted stale entry %s", key)
                return None
            self._entries.move_to_end(key)
        return CacheEntry(
            key=entry.key,
            payload=copy.deepcopy(entry.payload),
            content_kind=entry.content_kind,
            stored_at=entry.stored_at,
            ttl=entry.ttl,
        )

    def put(self, key: str, payload: Any, content_kind: ContentKind, ttl: float) -> None:
        """Store `payload` under `key`, replacing whatever was there."""
        entry = CacheEntry(
            key=key,
            payload=copy.deepcopy(payload),
            content_kind=content_kind,
            stored_at=self._clock(),
            ttl=ttl,
        )
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Evicted least recently used entry %s", evicted)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
