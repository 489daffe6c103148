"""Configuration-change listeners that keep decoded namespace content."""

import dataclasses
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from airkit.confparse import extract_conf

_log = logging.getLogger(__name__)

_CONTENT = "content"


@dataclasses.dataclass
class ConfigChange:
    """One changed key of a namespace."""

    old_value: Any = None
    new_value: Any = None


@dataclasses.dataclass
class ChangeEvent:
    """The keys of a namespace that changed."""

    namespace: str = ""
    changes: dict[str, ConfigChange] = dataclasses.field(default_factory=dict)
    notification_id: int = 0


@dataclasses.dataclass
class FullChangeEvent:
    """The complete new content of a namespace."""

    namespace: str = ""
    changes: dict[str, Any] = dataclasses.field(default_factory=dict)
    notification_id: int = 0


class NamespaceConfig(Protocol):
    def get_value(self, key: str) -> str: ...


class ConfigClient(Protocol):
    def get_config(self, namespace: str) -> NamespaceConfig | None: ...


class Listener(ABC):
    """Receives configuration changes and loads initial configuration."""

    @abstractmethod
    def on_change(self, event: ChangeEvent) -> None:
        """Handle changed keys."""

    @abstractmethod
    def on_newest_change(self, event: FullChangeEvent) -> None:
        """Handle a full namespace update."""

    @abstractmethod
    def init_config(self, client: ConfigClient) -> None:
        """Load the initial configuration from ``client``."""


class ConfigInitError(Exception):
    """Raised when a namespace's initial configuration cannot be loaded."""


class StructChangeListener(Listener):
    """Keeps the decoded ``content`` of each namespace.

    ``namespace_conf`` maps a namespace to an optional factory that turns
    the decoded content into the stored value.
    """

    def __init__(self, namespace_conf: Mapping[str, Callable[[Any], Any] | None] | None = None) -> None:
        self._namespace_conf = dict(namespace_conf or {})
        self._namespaces: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._latest_notification_id = 0

    @property
    def latest_notification_id(self) -> int:
        """The notification id of the last full update seen."""
        return self._latest_notification_id

    def _build(self, namespace: str, content: str) -> Any:
        decoded = extract_conf(namespace, content)
        factory = self._namespace_conf.get(namespace)
        return decoded if factory is None else factory(decoded)

    def on_change(self, event: ChangeEvent) -> None:
        """Re-decode a loaded namespace whose content changed; errors are logged."""
        with self._lock:
            if event.namespace not in self._namespaces:
                return

        change = event.changes.get(_CONTENT)
        if change is None:
            _log.error("struct listener %s: content not exists", event.namespace)
            return
        if not isinstance(change.new_value, str):
            _log.error("struct listener %s: content is not a string", event.namespace)
            return

        try:
            value = self._build(event.namespace, change.new_value)
        except Exception as exc:
            _log.error("struct listener %s: %s", event.namespace, exc)
            return
        self.set_config(event.namespace, value)

    def on_newest_change(self, event: FullChangeEvent) -> None:
        """Note the event's notification id; stored values are left as they are."""
        with self._lock:
            self._latest_notification_id = event.notification_id

    def init_config(self, client: ConfigClient) -> None:
        """Load every configured namespace, raising ConfigInitError on failure."""
        for namespace in self._namespace_conf:
            conf = client.get_config(namespace)
            if conf is None:
                raise ConfigInitError(f"{namespace} conf nil")
            content = conf.get_value(_CONTENT)
            if not content:
                raise ConfigInitError(f"{namespace} content empty")
            try:
                value = self._build(namespace, content)
            except Exception as exc:
                raise ConfigInitError(f"{namespace}: {exc}") from exc
            self.set_config(namespace, value)

    def get_config(self, namespace: str) -> Any:
        """Return the stored value of ``namespace``; KeyError if none."""
        with self._lock:
            return self._namespaces[namespace]

    def set_config(self, namespace: str, value: Any) -> None:
        with self._lock:
            self._namespaces[namespace] = value