"""In-memory TTL cache for composed rates search responses."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from staysearch.config import settings

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    stored_at: float
    payload: Any


class ResultCache:
    """
    Process-local cache keyed by canonical search key.

    Expired entries are ignored on read but left in place; `purge_expired` is run
    periodically by the background scheduler. When `max_entries` is set the
    oldest-stored entry is evicted on overflow.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int | None = None,
    ):
        self.ttl_seconds = settings.result_cache_ttl if ttl_seconds is None else ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self.ttl_seconds:
            return None
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        # Re-insert so dict order tracks write time for eviction
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(stored_at=self._clock(), payload=payload)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now - e.stored_at > self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info(f"Result cache: {len(expired)} expired entries removed")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
