import threading

import pytest

from airkit.cache import CacheData, LoadError
from airkit.lock import ClientNilError, Locker
from airkit.redis_cache import RedisCache

NOW = 1000.0


class FakeRedis:
    def __init__(self, value=None):
        self.value = value
        self.gets = []
        self.sets = []

    def get(self, name):
        self.gets.append(name)
        return self.value

    def set(self, name, value, px=None):
        self.sets.append((name, value, px))
        return True


class FakeLocker(Locker):
    def __init__(self, result=True):
        self.result = result
        self.locks = []
        self.unlocks = []
        self.unlocked = threading.Event()

    def lock(self, key, random, duration, tries):
        self.locks.append((key, duration, tries))
        return self.result

    def unlock(self, key, random):
        self.unlocks.append(key)
        self.unlocked.set()


def make_cache(value=None, lock_result=True, tries=1):
    client = FakeRedis(value)
    locker = FakeLocker(lock_result)
    cache = RedisCache(client, locker, tries=tries, clock=lambda: NOW)
    return cache, client, locker


def test_new_without_redis():
    with pytest.raises(ClientNilError):
        RedisCache(None, FakeLocker())


def test_new_without_locker():
    with pytest.raises(ValueError):
        RedisCache(FakeRedis(), None)


def test_new_success():
    cache = RedisCache(FakeRedis(), FakeLocker(), tries=3)
    assert cache.tries == 3


def test_cache_missing_loads_and_stores():
    cache, client, locker = make_cache(value="")
    result = cache.get_data("key", 2.0, 1.0, lambda: {"a": "a"})
    assert result == {"a": "a"}
    assert locker.locks == [("LOCK::key", 10.0, 1)]
    assert locker.unlocks == ["LOCK::key"]
    assert len(client.sets) == 1
    name, stored, px = client.sets[0]
    assert name == "key"
    assert px == 2000
    assert CacheData.from_json(stored) == CacheData(expire_at=1001, data='{"a":"a"}')


def test_cache_none_reply_counts_as_missing():
    cache, client, _ = make_cache(value=None)
    assert cache.get_data("key", 2.0, 1.0, lambda: [1, 2]) == [1, 2]
    assert len(client.sets) == 1


def test_cache_expired_serves_stale_and_refreshes():
    cache, client, locker = make_cache(value='{"ExpireAt":1,"Data":"{\\"a\\":\\"a\\"}"}')
    result = cache.get_data("key", 2.0, 1.0, lambda: {"a": "b"})
    assert result == {"a": "a"}
    assert locker.unlocked.wait(5)
    assert len(locker.locks) == 1
    assert CacheData.from_json(client.sets[0][1]).data == '{"a":"b"}'


def test_cache_fresh_is_returned_without_loading():
    cache, client, locker = make_cache(value=b'{"ExpireAt":2000,"Data":"{\\"a\\":\\"a\\"}"}')
    assert cache.get_data("key", 2.0, 1.0, lambda: {"a": "b"}) == {"a": "a"}
    assert locker.locks == []
    assert client.sets == []


def test_lock_busy_returns_none():
    cache, client, locker = make_cache(lock_result=False)
    assert cache.flush_cache("key", 2.0, 1.0, lambda: {"a": "a"}) is None
    assert client.sets == []
    assert locker.unlocks == []


def test_loader_failure_releases_lock():
    def loader():
        raise RuntimeError("boom")

    cache, client, locker = make_cache()
    with pytest.raises(LoadError):
        cache.flush_cache("key", 2.0, 1.0, loader)
    assert locker.unlocks == ["LOCK::key"]
    assert client.sets == []


def test_zero_ttl_stores_without_expiry():
    cache, client, _ = make_cache()
    cache.flush_cache("key", 0, 5.0, lambda: "x")
    assert client.sets[0][2] is None
    assert CacheData.from_json(client.sets[0][1]).expire_at == 1005