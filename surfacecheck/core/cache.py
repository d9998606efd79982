"""In-process TTL caches for upstream results."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar

from .logger import get_logger

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    value: T
    expires_at: float


class TTLCache(Generic[T]):
    """
    Thread-safe read-through cache with a fixed time-to-live.

    Expired entries are dropped on read. When the store is full, expired
    entries go first, then the entry closest to expiry.
    """

    def __init__(
        self,
        name: str,
        ttl_seconds: float,
        max_entries: int = 2048,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self.logger = get_logger(f"cache.{name}")

    def get(self, key: str) -> Optional[T]:
        """Return the cached value for ``key`` or None on miss/expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: T) -> None:
        with self._lock:
            now = self._clock()
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._make_room(now)
            self._entries[key] = CacheEntry(value=value, expires_at=now + self.ttl_seconds)
        self.logger.debug(f"Cached {key} for {self.ttl_seconds}s")

    def _make_room(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for k in expired:
            del self._entries[k]
        if len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k].expires_at)
            del self._entries[oldest]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self._hits, "misses": self._misses}


class ResultCache:
    """The two caches the engine owns: combined upstream rounds and the KEV catalog."""

    CATALOG_KEY = "kev"

    def __init__(
        self,
        result_ttl_seconds: float = 300,
        catalog_ttl_seconds: float = 21600,
        max_entries: int = 2048,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.results: TTLCache = TTLCache("results", result_ttl_seconds, max_entries, clock)
        self.catalog: TTLCache = TTLCache("catalog", catalog_ttl_seconds, 4, clock)

    @staticmethod
    def result_key(domain: str, ip: Optional[str]) -> str:
        return f"{domain}|{ip or '-'}"
