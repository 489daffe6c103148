"""An in-process token-bucket rate limiter."""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable

from airkit.limiter import Entry, Limiter, Resource


class TokenBucket:
    """Refills ``limit`` tokens per second up to ``burst``; each request takes one.

    The bucket starts full. A limit of ``math.inf`` admits everything and a
    limit of zero or less admits nothing. ``clock`` returns seconds.
    """

    def __init__(
        self,
        limit: float,
        burst: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._burst = burst
        self._clock = clock
        self._tokens = 0.0
        self._last: float | None = None
        self._lock = threading.Lock()

    def _advance(self, now: float) -> None:
        if self._limit <= 0:
            delta = 0.0
        elif self._last is None or math.isinf(self._limit):
            delta = math.inf
        else:
            delta = max(0.0, now - self._last) * self._limit
        self._tokens = min(self._tokens + delta, float(self._burst))
        self._last = now

    def allow(self) -> bool:
        with self._lock:
            if math.isinf(self._limit) and self._limit > 0:
                return True
            self._advance(self._clock())
            if self._burst >= 1 and self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def set_limit(self, limit: float) -> None:
        with self._lock:
            self._advance(self._clock())
            self._limit = limit

    def set_burst(self, burst: int) -> None:
        with self._lock:
            self._advance(self._clock())
            self._burst = burst


class TokenBucketLimiter(Limiter):
    """One token bucket per resource: ``limit`` per second, ``burst`` capacity."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._buckets: dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def _bucket(self, resource: Resource) -> TokenBucket:
        with self._lock:
            bucket = self._buckets.get(resource.name)
            if not isinstance(bucket, TokenBucket):
                bucket = TokenBucket(resource.limit, resource.burst, clock=self._clock)
                self._buckets[resource.name] = bucket
            return bucket

    def check(self, resource: Resource) -> Entry:
        return Entry(allowed=self._bucket(resource).allow())

    def set_limit(self, resource: Resource) -> None:
        self._bucket(resource).set_limit(resource.limit)

    def set_burst(self, resource: Resource) -> None:
        self._bucket(resource).set_burst(resource.burst)

    def set_window(self, resource: Resource) -> None:
        """Token buckets have no window; nothing changes."""