"""Simple per-user rate limiting."""

from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

WINDOW_SECONDS = 60.0


class RateLimiter:
    """Sliding one-minute window of accepted messages per user."""

    def __init__(
        self, limit_per_minute: int, clock: Callable[[], float] = time.time
    ) -> None:
        self.limit = limit_per_minute
        self._clock = clock
        self._events: Dict[int, Deque[float]] = defaultdict(deque)

    def _prune(self, user_id: int, now: float) -> Deque[float]:
        events = self._events[user_id]
        while events and events[0] <= now - WINDOW_SECONDS:
            events.popleft()
        return events

    def allow(self, user_id: int) -> bool:
        """Record an event and return whether it stays under limit."""
        if self.limit <= 0:
            return True
        now = self._clock()
        events = self._prune(user_id, now)
        if len(events) >= self.limit:
            return False
        events.append(now)
        return True

    def retry_after(self, user_id: int) -> float:
        """Seconds until the user may send again (0 when allowed now)."""
        now = self._clock()
        events = self._prune(user_id, now)
        if self.limit <= 0 or len(events) < self.limit:
            return 0.0
        return max(events[0] + WINDOW_SECONDS - now, 0.0)
