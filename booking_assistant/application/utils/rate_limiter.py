from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from booking_assistant.application.exceptions import RateLimitExceededError

CHAT_SCOPE = "chat"
BOOKING_SCOPE = "booking"
AVAILABILITY_SCOPE = "availability"
GENERAL_SCOPE = "general"

SWEEP_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class RateLimit:
    max_requests: int
    window_seconds: float
    message: str = "Too many requests from this IP, please try again later"


class RateLimiter:
    """
    Sliding-window request counters per (scope, client key).

    Scopes without a configured limit pass through. Buckets whose window has
    gone quiet are swept periodically so idle clients do not accumulate.
    """

    def __init__(
        self,
        limits: dict[str, RateLimit],
        exempt_keys: Iterable[str] = (),
        now: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limits = dict(limits)
        self._exempt = frozenset(exempt_keys)
        self._now = now
        self._buckets: dict[tuple[str, str], deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = now()
        self._logger = logging.getLogger(__name__)

    def hit(self, scope: str, key: str) -> None:
        """Count one request. Raises RateLimitExceededError when the window is full."""
        limit = self._limits.get(scope)
        if limit is None or limit.max_requests <= 0 or key in self._exempt:
            return

        now = self._now()
        with self._lock:
            self._sweep(now)
            bucket = self._buckets.setdefault((scope, key), deque())
            while bucket and now - bucket[0] >= limit.window_seconds:
                bucket.popleft()
            if len(bucket) >= limit.max_requests:
                retry_after = max(1, math.ceil(limit.window_seconds - (now - bucket[0])))
                self._logger.warning("Rate limit exceeded for %s", key, extra={"reason": scope})
                raise RateLimitExceededError(limit.message, retry_after=retry_after)
            bucket.append(now)

    def active_count(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < SWEEP_INTERVAL_SECONDS:
            return
        self._last_sweep = now
        for bucket_key in list(self._buckets):
            window = self._limits[bucket_key[0]].window_seconds
            bucket = self._buckets[bucket_key]
            if not bucket or now - bucket[-1] >= window:
                del self._buckets[bucket_key]
