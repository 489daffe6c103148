"""An in-process sliding-window rate limiter."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable

from airkit.limiter import Entry, Limiter, Resource

_NS_PER_SECOND = 1_000_000_000


def _to_ns(seconds: float) -> int:
    return round(seconds * _NS_PER_SECOND)


class SlidingWindow:
    """Admits at most ``limit`` requests in any ``window`` seconds.

    ``clock`` returns the current time in seconds.
    """

    def __init__(
        self,
        limit: int,
        window: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._window_ns = _to_ns(window)
        self._clock = clock
        self._requests: deque[int] = deque()
        self._lock = threading.Lock()

    def allow(self) -> bool:
        with self._lock:
            now = _to_ns(self._clock())

            if len(self._requests) < self._limit:
                self._requests.append(now)
                return True

            if not self._requests:
                return False

            # The oldest admitted request is still inside the window.
            if now - self._window_ns < self._requests[0]:
                return False

            self._requests.popleft()
            self._requests.append(now)
            return True

    def set_limit(self, limit: int) -> None:
        with self._lock:
            self._limit = limit

    def set_window(self, window: float) -> None:
        """Set the window length in seconds."""
        with self._lock:
            self._window_ns = _to_ns(window)


def burst_to_window(burst: int) -> float:
    """Read a burst as a window of that many milliseconds; return seconds."""
    return burst / 1000


class SlidingWindowLimiter(Limiter):
    """One sliding window per resource: ``limit`` requests per ``burst`` milliseconds."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: dict[str, SlidingWindow] = {}
        self._lock = threading.Lock()

    def _window(self, resource: Resource) -> SlidingWindow:
        with self._lock:
            window = self._windows.get(resource.name)
            if not isinstance(window, SlidingWindow):
                window = SlidingWindow(
                    resource.limit, burst_to_window(resource.burst), clock=self._clock
                )
                self._windows[resource.name] = window
            return window

    def check(self, resource: Resource) -> Entry:
        return Entry(allowed=self._window(resource).allow())

    def set_limit(self, resource: Resource) -> None:
        self._window(resource).set_limit(resource.limit)

    def set_burst(self, resource: Resource) -> None:
        self._window(resource).set_window(burst_to_window(resource.burst))

    def set_window(self, resource: Resource) -> None:
        """The window follows ``burst``; ``window`` is not used."""