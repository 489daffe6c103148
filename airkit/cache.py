"""Cache records and the interface of a read-through cache."""

from __future__ import annotations

import dataclasses
import json
import traceback
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")


class LoadError(Exception):
    """Raised when a loader fails while filling the cache."""


@dataclasses.dataclass
class CacheData:
    """A stored record: a virtual expiry (unix seconds) and the JSON payload."""

    expire_at: int = 0
    data: str = ""

    def to_json(self) -> str:
        return json.dumps(
            {"ExpireAt": self.expire_at, "Data": self.data},
            separators=(",", ":"),
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> CacheData:
        """Parse a record; field names match case-insensitively."""
        raw = json.loads(text)
        if not isinstance(raw, dict):
            raise ValueError("cache record is not a JSON object")
        fields = {str(key).lower(): value for key, value in raw.items()}
        expire_at = fields.get("expireat")
        data = fields.get("data")
        if expire_at is None:
            expire_at = 0
        if data is None:
            data = ""
        if isinstance(expire_at, bool) or not isinstance(expire_at, int):
            raise ValueError("ExpireAt must be an integer")
        if not isinstance(data, str):
            raise ValueError("Data must be a string")
        return cls(expire_at=expire_at, data=data)


class Cacher(ABC):
    """A cache that loads missing or stale data through a loader."""

    @abstractmethod
    def get_data(self, key: str, ttl: float, virtual_ttl: float, loader: Callable[[], Any]) -> Any:
        """Return cached data, loading and storing it when absent.

        ``ttl`` is the store's expiry in seconds, ``virtual_ttl`` the age
        after which the data is refreshed in the background.
        """

    @abstractmethod
    def flush_cache(self, key: str, ttl: float, virtual_ttl: float, loader: Callable[[], Any]) -> Any:
        """Load fresh data, store it and return it."""


def handle_load(loader: Callable[[], T]) -> T:
    """Run ``loader``; any failure comes out as LoadError with its traceback."""
    try:
        return loader()
    except LoadError:
        raise
    except Exception as exc:
        raise LoadError(f"{exc!r}\n{traceback.format_exc()}") from exc