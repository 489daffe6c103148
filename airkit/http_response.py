"""Handlers for HTTP responses."""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from typing import Any

from airkit.codec import Codec


class Response(ABC):
    """Consumes the reply to a request."""

    @abstractmethod
    def handle_response(self, response: Any) -> None:
        """Read ``response`` (anything with ``read()``) and keep its result."""


@dataclasses.dataclass
class DataResponse(Response):
    """Reads the whole body and, when ``body`` is set, decodes it with ``codec``.

    The received object is kept in ``response`` and its bytes in ``raw``.
    """

    body: Any = None
    codec: Codec | None = None
    response: Any = dataclasses.field(default=None, init=False)
    raw: bytes = dataclasses.field(default=b"", init=False)

    def handle_response(self, response: Any) -> None:
        if self.codec is None:
            raise ValueError("data response codec is not set")

        raw = response.read()
        close = getattr(response, "close", None)
        if close is not None:
            close()

        self.response = response
        self.raw = raw

        if self.body is not None:
            self.body = self.codec.decode(raw)