"""In-memory, TTL-bounded cache of extracted pages.

Keys are normalised request URLs (exact string match).  An entry expires a
fixed number of seconds after it was stored; expired entries are dropped
lazily on lookup and swept in bulk at most once per ``check_period``.
All access goes through a single lock, so concurrent writers for the same
key resolve as last-write-wins and readers never see a half-built entry.
"""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from typing import Callable

import structlog

from pagescope.config import settings
from pagescope.scraper.models import PageData

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    value: PageData
    expires_at: float
    size: int


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    entry_count: int
    approximate_value_bytes: int


class ResultCache:
    """Thread-safe TTL cache mapping URLs to :class:`PageData`."""

    def __init__(
        self,
        ttl: float | None = None,
        check_period: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = settings.cache_ttl if ttl is None else ttl
        self.check_period = (
            settings.cache_check_period if check_period is None else check_period
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._last_sweep = clock()

    # ------------------------------------------------------------------
    # Internal helpers (call with the lock held)
    # ------------------------------------------------------------------
    def _sweep(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        if expired:
            logger.debug("cache.evicted", count=len(expired))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get(self, key: str) -> PageData | None:
        """Return the live value for *key*, counting a hit or a miss."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at <= now:
                del self._entries[key]
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def put(self, key: str, value: PageData) -> None:
        size = len(json.dumps(value.to_dict()).encode("utf-8"))
        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self.check_period:
                self._sweep(now)
            self._entries[key] = CacheEntry(value=value, expires_at=now + self.ttl, size=size)

    def stats(self) -> CacheStats:
        with self._lock:
            self._sweep(self._clock())
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                entry_count=len(self._entries),
                approximate_value_bytes=sum(e.size for e in self._entries.values()),
            )

    def clear(self) -> None:
        """Drop every entry and reset the hit/miss counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._last_sweep = self._clock()
        logger.info("cache.cleared")

    def __len__(self) -> int:
        return self.stats().entry_count
