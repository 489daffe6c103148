"""A sliding-log rate limiter whose log is a Redis sorted set."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from airkit.limiter import Entry, Limiter, Resource

_US_PER_SECOND = 1_000_000


class RedisClient(Protocol):
    """The Redis commands the log uses (as named by redis-py)."""

    def zremrangebyscore(self, name: str, min: Any, max: Any) -> Any: ...

    def zcount(self, name: str, min: Any, max: Any) -> int: ...

    def zadd(self, name: str, mapping: Mapping[Any, float]) -> Any: ...


def _to_us(seconds: float) -> int:
    return round(seconds * _US_PER_SECOND)


class RedisSlidingLog:
    """Admits at most ``limit`` requests in any ``window`` seconds.

    Each admitted request is logged with its time in microseconds.
    ``clock`` returns unix time in seconds.
    """

    def __init__(
        self,
        limit: int,
        window: float,
        client: RedisClient,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self._limit = limit
        self._window_us = _to_us(window)
        self._clock = clock
        self._lock = threading.Lock()

    def allow(self, key: str) -> bool:
        """Log a request at ``key`` if the window has room. Errors from Redis propagate."""
        with self._lock:
            window_us = self._window_us
            limit = self._limit

        end = _to_us(self._clock())
        begin = end - window_us

        self.client.zremrangebyscore(key, "0", str(begin - 1))
        count = int(self.client.zcount(key, str(begin), str(end)))
        if count >= limit:
            return False

        self.client.zadd(key, {str(end): float(end)})
        return True

    def set_limit(self, limit: int) -> None:
        with self._lock:
            self._limit = limit

    def set_window(self, window: float) -> None:
        """Set the window length in seconds."""
        with self._lock:
            self._window_us = _to_us(window)


class RedisSlidingLogLimiter(Limiter):
    """One Redis sliding log per resource, keyed by the resource name.

    ``limit`` and ``window`` configure each log; a Redis failure yields a
    rejecting entry that carries the error.
    """

    def __init__(self, client: RedisClient, *, clock: Callable[[], float] = time.time) -> None:
        self.client = client
        self._clock = clock
        self._logs: dict[str, RedisSlidingLog] = {}
        self._lock = threading.Lock()

    def _log(self, resource: Resource) -> RedisSlidingLog:
        with self._lock:
            log = self._logs.get(resource.name)
            if not isinstance(log, RedisSlidingLog):
                log = RedisSlidingLog(
                    int(resource.limit), resource.window, self.client, clock=self._clock
                )
                self._logs[resource.name] = log
            return log

    def check(self, resource: Resource) -> Entry:
        try:
            allowed = self._log(resource).allow(resource.name)
        except Exception as exc:
            return Entry(allowed=False, error=exc)
        return Entry(allowed=allowed)

    def set_limit(self, resource: Resource) -> None:
        self._log(resource).set_limit(int(resource.limit))

    def set_burst(self, resource: Resource) -> None:
        """Sliding logs have no burst; nothing changes."""

    def set_window(self, resource: Resource) -> None:
        self._log(resource).set_window(resource.window)