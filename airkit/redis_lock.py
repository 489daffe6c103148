"""A distributed lock kept in Redis."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Protocol

from airkit.lock import ClientNilError, Locker, UnlockError

LOCK_LUA = (
    'if redis.call("GET", KEYS[1]) == ARGV[1] then '
    'redis.call("DEL", KEYS[1]) return 1 else return 0 end'
)


class RedisClient(Protocol):
    """The Redis commands the lock uses (as named by redis-py)."""

    def set(self, name: str, value: Any, px: int | None = None, nx: bool = False) -> Any: ...

    def pttl(self, name: str) -> int: ...

    def eval(self, script: str, numkeys: int, *keys_and_args: Any) -> Any: ...


def _set_options(duration: float) -> dict[str, Any]:
    if duration <= 0:
        return {"nx": True}
    return {"nx": True, "px": max(1, round(duration * 1000))}


class RedisLock(Locker):
    """A lock taken with SET NX and released by a compare-and-delete script."""

    def __init__(self, client: RedisClient, *, sleep: Callable[[float], Any] = time.sleep) -> None:
        if client is None:
            raise ClientNilError()
        self.client = client
        self._sleep = sleep

    def lock(self, key: str, random: object, duration: float, tries: int) -> bool:
        """Try up to ``tries`` times, waiting out the holder's TTL between tries.

        Errors from SET propagate; a failed TTL lookup just moves on to the
        next try.
        """
        options = _set_options(duration)
        for _ in range(tries):
            if self.client.set(key, random, **options):
                return True
            try:
                wait_ms = self.client.pttl(key)
            except Exception:
                continue
            if wait_ms > 0:
                self._sleep(wait_ms / 1000)
        return False

    def unlock(self, key: str, random: object) -> None:
        """Delete ``key`` if ``random`` owns it; raise UnlockError otherwise."""
        result = self.client.eval(LOCK_LUA, 1, key, random)
        if result == 0:
            raise UnlockError()