"""An in-process leaky-bucket rate limiter."""

import threading
import time
from collections.abc import Callable
from typing import Any

from airkit.limiter import Entry, Limiter, Resource

_NS_PER_SECOND = 1_000_000_000


def _to_ns(seconds: float) -> int:
    return round(seconds * _NS_PER_SECOND)


class LeakyBucket:
    """Admits up to ``volume`` queued requests draining at ``rate`` per ``per`` seconds.

    ``clock`` returns the current time in seconds.
    """

    def __init__(
        self,
        rate: int,
        volume: int,
        *,
        per: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._per_ns = _to_ns(per)
        self._clock = clock
        self._lock = threading.Lock()
        self._volume = volume
        self._current = 0
        self._last: int | None = None
        self._interval_ns = 0
        self.set_rate(rate)

    def allow(self) -> bool:
        with self._lock:
            now = _to_ns(self._clock())
            last, self._last = self._last, now

            if last is not None:
                elapsed = now - last
                leaked = abs(elapsed) // self._interval_ns
                self._current = max(self._current - (leaked if elapsed >= 0 else -leaked), 0)

            if self._current >= self._volume:
                return False
            self._current += 1
            return True

    def set_rate(self, rate: int) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        interval = self._per_ns // rate
        if interval <= 0:
            raise ValueError("rate is too high for the period")
        with self._lock:
            self._interval_ns = interval

    def set_volume(self, volume: int) -> None:
        with self._lock:
            self._volume = volume


class LeakyBucketLimiter(Limiter):
    """One leaky bucket per resource: ``limit`` is the rate, ``burst`` the volume.

    Keyword options (``per``, ``clock``) are passed to every bucket.
    """

    def __init__(self, **bucket_options: Any) -> None:
        self._bucket_options = bucket_options
        self._buckets: dict[str, LeakyBucket] = {}
        self._lock = threading.Lock()

    def _bucket(self, resource: Resource) -> LeakyBucket:
        with self._lock:
            bucket = self._buckets.get(resource.name)
            if not isinstance(bucket, LeakyBucket):
                bucket = LeakyBucket(resource.limit, resource.burst, **self._bucket_options)
                self._buckets[resource.name] = bucket
            return bucket

    def check(self, resource: Resource) -> Entry:
        return Entry(allowed=self._bucket(resource).allow())

    def set_limit(self, resource: Resource) -> None:
        self._bucket(resource).set_rate(resource.limit)

    def set_burst(self, resource: Resource) -> None:
        self._bucket(resource).set_volume(resource.burst)

    def set_window(self, resource: Resource) -> None:
        """Leaky buckets have no window; nothing changes."""