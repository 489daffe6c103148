"""A leaky-bucket rate limiter whose state lives in Redis."""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

from airkit.limiter import Entry, Limiter, Resource

LEAKY_BUCKET_SCRIPT = """\
local key           = KEYS[1]
local volume        = tonumber(KEYS[2])
local rate          = tonumber(KEYS[3])
local request_count = tonumber(KEYS[4])
local current_time  = tonumber(KEYS[5])
local ttl = math.floor((volume / rate) * 2)

-- when the volume drains in under a second, hold the state for one second
if ttl < 1 then
    ttl = 1
end

if tonumber(redis.call('exists', key)) == 0 then
    redis.call('hset', key, 'last_time', current_time)
    redis.call('hset', key, 'count', 0)
end

-- leaked since the last call: elapsed seconds times the outflow rate
local last_time     = tonumber(redis.call('hget', key, 'last_time'))
local current_count = tonumber(redis.call('hget', key, 'count'))
local leak_count    = (current_time - last_time) * rate
local remain_count  = current_count + request_count - leak_count
if remain_count <= 0 then
    remain_count = 0
end

redis.call('hset', key, 'volume', volume)
redis.call('hset', key, 'rate', rate)
redis.call('hset', key, 'last_time', current_time)
redis.call('expire', key, ttl)

if remain_count > volume then
    redis.call('hset', key, 'count', volume)
    return 0
end

redis.call('hset', key, 'count', remain_count)

return 1
"""


class RedisClient(Protocol):
    """The Redis command the bucket uses (as named by redis-py)."""

    def eval(self, script: str, numkeys: int, *keys_and_args: Any) -> Any: ...


def _is_one(result: Any) -> bool:
    if isinstance(result, (bytes, bytearray)):
        result = bytes(result).decode("utf-8", "replace")
    return str(result) == "1"


class RedisLeakyBucket:
    """A bucket of ``volume`` requests leaking ``rate`` per second, kept in a Redis hash.

    ``clock`` returns unix time in seconds; whole seconds are sent to Redis.
    """

    def __init__(
        self,
        rate: int,
        volume: int,
        client: RedisClient,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self._rate = rate
        self._volume = volume
        self._clock = clock
        self._lock = threading.Lock()

    def allow(self, key: str, request_count: int) -> bool:
        """Add ``request_count`` to the bucket at ``key``; False if it overflows.

        Errors from Redis propagate.
        """
        with self._lock:
            rate = self._rate
            volume = self._volume
        now = math.floor(self._clock())
        result = self.client.eval(
            LEAKY_BUCKET_SCRIPT, 5, key, volume, rate, request_count, now
        )
        return _is_one(result)

    def set_rate(self, rate: int) -> None:
        with self._lock:
            self._rate = rate

    def set_volume(self, volume: int) -> None:
        with self._lock:
            self._volume = volume


class RedisLeakyBucketLimiter(Limiter):
    """One Redis leaky bucket per resource, keyed by the resource name.

    ``limit`` is the rate and ``burst`` the volume; a Redis failure yields
    a rejecting entry that carries the error.
    """

    def __init__(self, client: RedisClient, *, clock: Callable[[], float] = time.time) -> None:
        self.client = client
        self._clock = clock
        self._buckets: dict[str, RedisLeakyBucket] = {}
        self._lock = threading.Lock()

    def _bucket(self, resource: Resource) -> RedisLeakyBucket:
        with self._lock:
            bucket = self._buckets.get(resource.name)
            if not isinstance(bucket, RedisLeakyBucket):
                bucket = RedisLeakyBucket(
                    resource.limit, resource.burst, self.client, clock=self._clock
                )
                self._buckets[resource.name] = bucket
            return bucket

    def check(self, resource: Resource) -> Entry:
        try:
            allowed = self._bucket(resource).allow(resource.name, 1)
        except Exception as exc:
            return Entry(allowed=False, error=exc)
        return Entry(allowed=allowed)

    def set_limit(self, resource: Resource) -> None:
        self._bucket(resource).set_rate(resource.limit)

    def set_burst(self, resource: Resource) -> None:
        self._bucket(resource).set_volume(resource.burst)

    def set_window(self, resource: Resource) -> None:
        """Leaky buckets have no window; nothing changes."""