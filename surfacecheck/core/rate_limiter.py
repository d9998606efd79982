"""Window-counter admission control for callers and upstream sources."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .logger import get_logger


@dataclass
class WindowEntry:
    """Request count for one key within its current window."""
    count: int
    reset_at: float  # clock seconds


@dataclass(frozen=True)
class AdmitResult:
    """Outcome of one admission attempt."""
    allowed: bool
    remaining: int
    reset_in_ms: int


class SlidingWindowLimiter:
    """
    Fixed-size window counter keyed by identity.

    The first admission after a window expires opens a new window with
    count 1. Once count reaches the maximum, further admissions are refused
    until the window resets. Expired keys are evicted lazily on writes once
    the store grows past ``eviction_threshold``.
    """

    def __init__(
        self,
        eviction_threshold: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize limiter.

        Args:
            eviction_threshold: Store size above which expired keys are swept
            clock: Monotonic clock in seconds (injectable for tests)
        """
        self.eviction_threshold = eviction_threshold
        self._clock = clock
        self._entries: Dict[str, WindowEntry] = {}
        self._stats: Dict[str, Dict[str, int]] = {}
        self._lock = threading.Lock()

    def admit(self, key: str, window_ms: int, max_count: int) -> AdmitResult:
        """
        Try to admit one request for ``key``.

        Args:
            key: Identity (caller IP or upstream source name)
            window_ms: Window length in milliseconds
            max_count: Maximum admissions per window

        Returns:
            AdmitResult with remaining allowance and time to reset
        """
        with self._lock:
            now = self._clock()
            self._evict_expired(now)

            entry = self._entries.get(key)
            if entry is None or entry.reset_at <= now:
                if max_count < 1:
                    self._count(key, "blocked")
                    return AdmitResult(False, 0, window_ms)
                self._entries[key] = WindowEntry(count=1, reset_at=now + window_ms / 1000.0)
                self._count(key, "acquired")
                return AdmitResult(True, max_count - 1, window_ms)

            reset_in_ms = max(1, int((entry.reset_at - now) * 1000))
            if entry.count >= max_count:
                self._count(key, "blocked")
                return AdmitResult(False, 0, reset_in_ms)

            entry.count += 1
            self._count(key, "acquired")
            return AdmitResult(True, max_count - entry.count, reset_in_ms)

    def _count(self, key: str, field: str) -> None:
        stats = self._stats.setdefault(key, {"acquired": 0, "blocked": 0})
        stats[field] += 1

    def _evict_expired(self, now: float) -> None:
        """Drop expired keys and their statistics once the store exceeds the threshold (lock held)."""
        if len(self._entries) <= self.eviction_threshold and len(self._stats) <= self.eviction_threshold:
            return
        expired = [key for key, entry in self._entries.items() if entry.reset_at <= now]
        for key in expired:
            del self._entries[key]
        # Refused keys never open a window, so they have stats but no entry
        for key in [key for key in self._stats if key not in self._entries]:
            del self._stats[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self, key: Optional[str] = None) -> Dict:
        """Get admission statistics for one key or all keys."""
        with self._lock:
            if key:
                return dict(self._stats.get(key, {"acquired": 0, "blocked": 0}))
            return {k: dict(v) for k, v in self._stats.items()}

    def reset(self) -> None:
        """Forget all windows and statistics."""
        with self._lock:
            self._entries.clear()
            self._stats.clear()


class RateLimiter:
    """
    Caller-facing limiter: one window per (endpoint, caller) pair.

    Endpoints are configured with requests-per-window; unknown endpoints
    fall back to ``default_limit``.
    """

    def __init__(
        self,
        window_seconds: int = 60,
        default_limit: int = 10,
        eviction_threshold: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_ms = int(window_seconds * 1000)
        self.default_limit = default_limit
        self._limits: Dict[str, int] = {}
        self._store = SlidingWindowLimiter(eviction_threshold=eviction_threshold, clock=clock)
        self.logger = get_logger("rate_limiter")

    def configure(self, endpoint: str, max_requests: int) -> None:
        self._limits[endpoint] = int(max_requests)
        self.logger.debug(f"Configured caller limit for {endpoint}: {max_requests}/window")

    def configure_from_dict(self, limits: Dict[str, int]) -> None:
        """Configure endpoint limits from a dictionary of endpoint -> max requests."""
        for endpoint, max_requests in limits.items():
            self.configure(endpoint, max_requests)

    def limit_for(self, endpoint: str) -> int:
        return self._limits.get(endpoint, self.default_limit)

    def admit(self, caller: str, endpoint: str = "quickcheck") -> AdmitResult:
        """Admit one request from ``caller`` to ``endpoint``."""
        result = self._store.admit(f"{endpoint}:{caller}", self.window_ms, self.limit_for(endpoint))
        if not result.allowed:
            self.logger.warning_with_data(
                "Caller rate limit exceeded",
                {"endpoint": endpoint, "caller": caller, "reset_in_ms": result.reset_in_ms},
            )
        return result

    @property
    def store(self) -> SlidingWindowLimiter:
        return self._store


class UpstreamBudget:
    """
    Process-wide call budget per upstream source, independent of callers.

    Keeps third-party fair-use ceilings regardless of caller volume. An
    exhausted budget is reported as a refusal, never raised.
    """

    def __init__(
        self,
        budgets: Optional[Dict[str, int]] = None,
        window_seconds: int = 60,
        default_budget: int = 30,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_ms = int(window_seconds * 1000)
        self.default_budget = default_budget
        self._budgets: Dict[str, int] = dict(budgets or {})
        self._store = SlidingWindowLimiter(clock=clock)
        self.logger = get_logger("upstream_budget")

    def configure(self, source: str, calls_per_window: int) -> None:
        self._budgets[source] = int(calls_per_window)

    def budget_for(self, source: str) -> int:
        return self._budgets.get(source, self.default_budget)

    def try_acquire(self, source: str) -> bool:
        """Consume one call from the source's budget; False when exhausted."""
        result = self._store.admit(source, self.window_ms, self.budget_for(source))
        if not result.allowed:
            self.logger.warning_with_data(
                "Upstream budget exhausted",
                {"source": source, "reset_in_ms": result.reset_in_ms},
            )
        return result.allowed

    def get_stats(self, source: Optional[str] = None) -> Dict:
        return self._store.get_stats(source)
