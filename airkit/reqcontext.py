"""Request-scoped values carried through a call chain."""

from __future__ import annotations

import enum
from collections.abc import Hashable
from types import MappingProxyType
from typing import Any


class _Key(enum.Enum):
    LOG_ID = enum.auto()
    LOG_CONTAINER = enum.auto()
    TRACE_ID = enum.auto()
    RESPONSE_WRITER = enum.auto()


class Context:
    """An immutable bag of request-scoped values.

    ``with_value`` never changes the receiver; it returns a new context
    that sees every value of its parent plus the new one.
    """

    __slots__ = ("_values",)

    def __init__(self, values: dict[Hashable, Any] | None = None) -> None:
        self._values = MappingProxyType(dict(values or {}))

    def with_value(self, key: Hashable, value: Any) -> Context:
        """Return a child context holding ``value`` under ``key``."""
        return Context({**self._values, key: value})

    def value(self, key: Hashable) -> Any:
        """Return the value stored under ``key``, or None."""
        return self._values.get(key)

    def __repr__(self) -> str:
        return f"Context({dict(self._values)!r})"


_BACKGROUND = Context()


def background() -> Context:
    """Return the empty root context."""
    return _BACKGROUND


def _string_value(ctx: Context, key: _Key) -> str:
    found = ctx.value(key)
    return found if isinstance(found, str) else ""


def with_log_id(ctx: Context, val: Any) -> Context:
    """Attach a log id."""
    return ctx.with_value(_Key.LOG_ID, val)


def value_log_id(ctx: Context) -> str:
    """Return the log id, or "" when absent or not a string."""
    return _string_value(ctx, _Key.LOG_ID)


def with_trace_id(ctx: Context, val: Any) -> Context:
    """Attach a trace id."""
    return ctx.with_value(_Key.TRACE_ID, val)


def value_trace_id(ctx: Context) -> str:
    """Return the trace id, or "" when absent or not a string."""
    return _string_value(ctx, _Key.TRACE_ID)


def with_log_container(ctx: Context, val: Any) -> Context:
    """Attach a log field container."""
    return ctx.with_value(_Key.LOG_CONTAINER, val)


def value_log_container(ctx: Context) -> Any:
    """Return the log field container, or None."""
    return ctx.value(_Key.LOG_CONTAINER)


def with_response_writer(ctx: Context, val: Any) -> Context:
    """Attach a response writer."""
    return ctx.with_value(_Key.RESPONSE_WRITER, val)


def value_response_writer(ctx: Context) -> Any:
    """Return the response writer, or None."""
    return ctx.value(_Key.RESPONSE_WRITER)