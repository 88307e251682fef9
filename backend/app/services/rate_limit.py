from __future__ import annotations

import math
import time
from collections import deque


class SimpleRateLimiter:
    """Sliding-window limiter keyed by caller (login email/IP)."""

    def __init__(self, *, max_events: int, window_seconds: int, clock=time.monotonic) -> None:
        self.max_events = max_events
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: dict[str, deque[float]] = {}

    def _prune(self, key: str, now: float) -> deque[float]:
        events = self._events.get(key)
        if events is None:
            return deque()
        while events and events[0] <= now - self.window_seconds:
            events.popleft()
        if not events:
            del self._events[key]
        return events

    def __len__(self) -> int:
        return len(self._events)

    def allow(self, key: str) -> bool:
        now = self._clock()
        events = self._prune(key, now)
        if len(events) >= self.max_events:
            return False
        events.append(now)
        self._events[key] = events
        return True

    def retry_after(self, key: str) -> int:
        """Whole seconds until the next attempt for key would be allowed."""
        now = self._clock()
        events = self._prune(key, now)
        if len(events) < self.max_events:
            return 0
        return max(1, math.ceil(events[0] + self.window_seconds - now))
