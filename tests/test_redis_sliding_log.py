import pytest

from airkit.limiter import Resource
from airkit.redis_sliding_log import RedisSlidingLog, RedisSlidingLogLimiter


class FakeSortedSets:
    """An in-memory stand-in for the sorted-set commands of a Redis client."""

    def __init__(self):
        self.sets = {}

    def _members(self, name):
        return self.sets.setdefault(name, {})

    def zremrangebyscore(self, name, min, max):
        low, high = float(min), float(max)
        members = self._members(name)
        doomed = [m for m, score in members.items() if low <= score <= high]
        for member in doomed:
            del members[member]
        return len(doomed)

    def zcount(self, name, min, max):
        low, high = float(min), float(max)
        return sum(1 for score in self._members(name).values() if low <= score <= high)

    def zadd(self, name, mapping):
        members = self._members(name)
        added = sum(1 for member in mapping if member not in members)
        members.update(mapping)
        return added


class FailingRedis:
    def zremrangebyscore(self, name, min, max):
        raise ConnectionError("down")

    def zcount(self, name, min, max):
        raise ConnectionError("down")

    def zadd(self, name, mapping):
        raise ConnectionError("down")


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def logged(client, key, clock):
    return client.zcount(key, "0", str(round(clock.now * 1_000_000)))


def test_window_not_changed():
    key = "sliding_log_1"
    clock = FakeClock()
    client = FakeSortedSets()
    log = RedisSlidingLog(1, 3.0, client, clock=clock)

    assert log.allow(key) is True
    assert logged(client, key, clock) == 1

    assert log.allow(key) is False
    assert logged(client, key, clock) == 1

    clock.now += 4
    assert log.allow(key) is True
    assert logged(client, key, clock) == 1
    assert log.allow(key) is False
    assert logged(client, key, clock) == 1


def test_change_limit():
    key = "sliding_log_2"
    clock = FakeClock()
    client = FakeSortedSets()
    log = RedisSlidingLog(1, 3.0, client, clock=clock)

    assert log.allow(key) is True
    assert logged(client, key, clock) == 1
    assert log.allow(key) is False
    assert logged(client, key, clock) == 1

    clock.now += 1
    log.set_limit(2)
    assert log.allow(key) is True
    assert logged(client, key, clock) == 2


def test_change_window():
    key = "sliding_log_3"
    clock = FakeClock()
    client = FakeSortedSets()
    log = RedisSlidingLog(1, 3.0, client, clock=clock)

    assert log.allow(key) is True
    assert logged(client, key, clock) == 1

    clock.now += 2
    assert log.allow(key) is False
    assert logged(client, key, clock) == 1

    log.set_window(1e-9)
    assert log.allow(key) is True
    assert logged(client, key, clock) == 1


def test_allow_propagates_errors():
    log = RedisSlidingLog(1, 1.0, FailingRedis(), clock=FakeClock())
    with pytest.raises(ConnectionError):
        log.allow("key")


def test_limiter_check_and_settings():
    clock = FakeClock()
    limiter = RedisSlidingLogLimiter(FakeSortedSets(), clock=clock)
    resource = Resource(name="test", limit=1, window=1.0)

    entry = limiter.check(resource)
    assert entry.error is None
    assert entry.allowed is True
    assert limiter.check(resource).allowed is False

    limiter.set_limit(Resource(name="test", limit=2, window=1.0))
    assert limiter.check(resource).allowed is True
    assert limiter.check(resource).allowed is False

    clock.now += 0.5
    limiter.set_window(Resource(name="test", limit=2, window=0.25))
    assert limiter.check(resource).allowed is True


def test_limiter_set_burst_is_ignored():
    limiter = RedisSlidingLogLimiter(FakeSortedSets(), clock=FakeClock())
    resource = Resource(name="test", limit=1, window=1.0)
    assert limiter.check(resource).allowed is True
    limiter.set_burst(Resource(name="test", limit=1, burst=100, window=1.0))
    assert limiter.check(resource).allowed is False


def test_limiter_error_goes_into_entry():
    limiter = RedisSlidingLogLimiter(FailingRedis(), clock=FakeClock())
    entry = limiter.check(Resource(name="test", limit=1, window=1.0))
    assert entry.allowed is False
    assert isinstance(entry.error, ConnectionError)


def test_limiter_resources_are_independent():
    client = FakeSortedSets()
    limiter = RedisSlidingLogLimiter(client, clock=FakeClock())
    first = Resource(name="test1", limit=1, window=1.0)
    second = Resource(name="test2", limit=1, window=1.0)
    assert limiter.check(first).allowed is True
    assert limiter.check(first).allowed is False
    assert limiter.check(second).allowed is True
    assert sorted(client.sets) == ["test1", "test2"]