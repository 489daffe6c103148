"""A read-through cache in Redis with a virtual expiry refreshed in the background."""

from __future__ import annotations

import json
import logging
import math
import threading
import time
import uuid
from collections.abc import Callable
from typing import Any, Protocol

from airkit.cache import CacheData, Cacher, handle_load
from airkit.lock import ClientNilError, Locker

_log = logging.getLogger(__name__)

_LOCK_SECONDS = 10.0


class RedisClient(Protocol):
    """The Redis commands the cache uses (as named by redis-py)."""

    def get(self, name: str) -> Any: ...

    def set(self, name: str, value: Any, px: int | None = None) -> Any: ...


class RedisCache(Cacher):
    """Caches JSON-serialisable data; stale data is served while a refresh runs."""

    def __init__(
        self,
        client: RedisClient,
        locker: Locker,
        *,
        tries: int = 3,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if client is None:
            raise ClientNilError("redis is nil")
        if locker is None:
            raise ValueError("locker is nil")
        self.client = client
        self.locker = locker
        self.tries = tries
        self._clock = clock

    def get_data(self, key: str, ttl: float, virtual_ttl: float, loader: Callable[[], Any]) -> Any:
        """Return the cached value, loading it when absent.

        Past its virtual expiry the cached value is still returned while a
        background thread reloads it. Returns None if the cache was empty
        and the load lock could not be taken.
        """
        record = self._get_cache(key)
        if record.expire_at == 0 or record.data == "":
            return self.flush_cache(key, ttl, virtual_ttl, loader)

        value = json.loads(record.data)
        if self._clock() < record.expire_at:
            return value

        threading.Thread(
            target=self._refresh, args=(key, ttl, virtual_ttl, loader), daemon=True
        ).start()
        return value

    def flush_cache(self, key: str, ttl: float, virtual_ttl: float, loader: Callable[[], Any]) -> Any:
        """Load under a lock, store and return the data; None if the lock is busy."""
        lock_key = "LOCK::" + key
        token = uuid.uuid4().hex
        if not self.locker.lock(lock_key, token, _LOCK_SECONDS, self.tries):
            return None
        try:
            data = handle_load(loader)
            payload = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
            self._set_cache(key, payload, ttl, virtual_ttl)
            return data
        finally:
            try:
                self.locker.unlock(lock_key, token)
            except Exception:
                _log.debug("releasing %s failed", lock_key, exc_info=True)

    def _refresh(self, key: str, ttl: float, virtual_ttl: float, loader: Callable[[], Any]) -> None:
        try:
            self.flush_cache(key, ttl, virtual_ttl, loader)
        except Exception:
            _log.debug("background refresh of %s failed", key, exc_info=True)

    def _get_cache(self, key: str) -> CacheData:
        raw = self.client.get(key)
        if raw is None:
            return CacheData()
        if isinstance(raw, (bytes, bytearray)):
            raw = bytes(raw).decode("utf-8")
        if raw == "":
            return CacheData()
        return CacheData.from_json(raw)

    def _set_cache(self, key: str, value: str, ttl: float, virtual_ttl: float) -> None:
        record = CacheData(expire_at=math.floor(self._clock() + virtual_ttl), data=value)
        if ttl > 0:
            self.client.set(key, record.to_json(), px=max(1, round(ttl * 1000)))
        else:
            self.client.set(key, record.to_json())