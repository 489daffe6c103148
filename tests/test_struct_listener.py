import logging

import pytest

from airkit.struct_listener import (
    ChangeEvent,
    ConfigChange,
    ConfigInitError,
    FullChangeEvent,
    StructChangeListener,
)

LOGGER = "airkit.struct_listener"
JSON_CONTENT = '{"a":"a"}'


class FakeNamespace:
    def __init__(self, values):
        self.values = values

    def get_value(self, key):
        return self.values.get(key, "")


class FakeClient:
    def __init__(self, configs):
        self.configs = configs
        self.requested = []

    def get_config(self, namespace):
        self.requested.append(namespace)
        return self.configs.get(namespace)


def content(value):
    return {"content": ConfigChange(new_value=value)}


def test_on_change_unknown_namespace():
    listener = StructChangeListener({})
    listener.on_change(ChangeEvent())
    with pytest.raises(KeyError):
        listener.get_config("")


@pytest.mark.parametrize(
    "namespace, changes, message",
    [
        ("", content(JSON_CONTENT), "ext is empty"),
        ("conf.json", {}, "content not exists"),
        ("conf.json", content(5), "not a string"),
    ],
)
def test_on_change_failures_keep_value(caplog, namespace, changes, message):
    listener = StructChangeListener({})
    listener.set_config(namespace, {"a": ""})
    with caplog.at_level(logging.ERROR, logger=LOGGER):
        listener.on_change(ChangeEvent(namespace=namespace, changes=changes))
    assert listener.get_config(namespace) == {"a": ""}
    assert message in caplog.text


@pytest.mark.parametrize(
    "factory, expected",
    [(None, {"a": "a"}), (lambda data: data["a"].upper(), "A")],
)
def test_on_change_updates_value(factory, expected):
    listener = StructChangeListener({"conf.json": factory})
    listener.set_config("conf.json", {"a": "old"})
    listener.on_change(ChangeEvent(namespace="conf.json", changes=content(JSON_CONTENT)))
    assert listener.get_config("conf.json") == expected


def test_on_newest_change_leaves_config():
    listener = StructChangeListener({})
    listener.set_config("conf.json", {"a": "a"})
    listener.on_newest_change(
        FullChangeEvent(namespace="conf.json", changes={"content": "{}"}, notification_id=7)
    )
    assert listener.get_config("conf.json") == {"a": "a"}
    assert listener.latest_notification_id == 7


def test_init_config_success():
    client = FakeClient({"conf.json": FakeNamespace({"content": JSON_CONTENT})})
    listener = StructChangeListener({"conf.json": None})
    listener.init_config(client)
    assert listener.get_config("conf.json") == {"a": "a"}
    assert client.requested == ["conf.json"]


@pytest.mark.parametrize(
    "namespace, configs, match",
    [
        ("conf.json", {}, "conf nil"),
        ("conf.json", {"conf.json": FakeNamespace({})}, "content empty"),
        ("conf.abc", {"conf.abc": FakeNamespace({"content": "{}"})}, "ext illegal"),
    ],
)
def test_init_config_failures(namespace, configs, match):
    listener = StructChangeListener({namespace: None})
    with pytest.raises(ConfigInitError, match=match):
        listener.init_config(FakeClient(configs))