import pytest

from airkit.cache import CacheData, Cacher, LoadError, handle_load


def test_to_json_wire_format():
    record = CacheData(expire_at=1, data='{"a":"a"}')
    assert record.to_json() == '{"ExpireAt":1,"Data":"{\\"a\\":\\"a\\"}"}'


def test_json_roundtrip():
    record = CacheData(expire_at=1700000000, data='{"k":[1,2]}')
    assert CacheData.from_json(record.to_json()) == record


def test_from_json_is_case_insensitive():
    record = CacheData.from_json('{"expireat": 5, "data": "x"}')
    assert record == CacheData(expire_at=5, data="x")


def test_from_json_missing_fields_are_zero():
    assert CacheData.from_json("{}") == CacheData()


def test_from_json_rejects_wrong_types():
    with pytest.raises(ValueError):
        CacheData.from_json('{"ExpireAt": "soon"}')


def test_from_json_rejects_non_object():
    with pytest.raises(ValueError):
        CacheData.from_json("[]")


def test_handle_load_returns_value():
    payload = {"a": "a"}
    assert handle_load(lambda: payload) is payload


def test_handle_load_wraps_failures():
    original = RuntimeError("boom")

    def loader():
        raise original

    with pytest.raises(LoadError) as info:
        handle_load(loader)
    assert info.value.__cause__ is original
    assert "boom" in str(info.value)


def test_handle_load_keeps_load_errors():
    original = LoadError("already wrapped")

    def loader():
        raise original

    with pytest.raises(LoadError) as info:
        handle_load(loader)
    assert info.value is original


def test_cacher_is_abstract():
    with pytest.raises(TypeError):
        Cacher()