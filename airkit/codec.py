"""Encoders and decoders for request and response bodies."""

import json
from abc import ABC, abstractmethod
from typing import Any


class Codec(ABC):
    """Turns values into body bytes and back."""

    @abstractmethod
    def encode(self, data: Any) -> bytes:
        """Serialise ``data`` to bytes."""

    @abstractmethod
    def decode(self, raw: bytes | str) -> Any:
        """Parse ``raw`` into a value."""


class JsonCodec(Codec):
    """Compact UTF-8 JSON."""

    def encode(self, data: object) -> bytes:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    def decode(self, raw: bytes | str) -> object:
        return json.loads(raw)