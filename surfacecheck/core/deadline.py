"""Per-request deadline shared by every DNS and HTTP call."""

import time
from typing import Callable


class Deadline:
    """
    Absolute point in time after which no new work should start.

    Calls take ``deadline.cap(timeout)`` as their effective timeout so a
    single slow source can never outlive the request that asked for it.
    """

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def cap(self, timeout: float, floor: float = 0.05) -> float:
        """Return ``timeout`` shortened to the time left, never below ``floor``."""
        return max(floor, min(timeout, self.remaining()))

    def __repr__(self) -> str:
        return f"<Deadline(remaining={self.remaining():.2f}s)>"
