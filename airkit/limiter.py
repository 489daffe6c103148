"""The interface shared by rate limiters."""

import dataclasses
from abc import ABC, abstractmethod


@dataclasses.dataclass
class Resource:
    """A limited resource; ``window`` is in seconds."""

    name: str
    limit: int = 0
    burst: int = 0
    window: float = 0.0


@dataclasses.dataclass
class Entry:
    """The outcome of one check against a limiter."""

    allowed: bool
    error: BaseException | None = None
    finished: bool = dataclasses.field(default=False, compare=False)

    def finish(self) -> None:
        """Mark the admitted request as done."""
        self.finished = True


class Limiter(ABC):
    """Admits or rejects requests per named resource.

    The ``set_*`` methods apply the matching field of the resource to the
    resource's own limiter.
    """

    @abstractmethod
    def check(self, resource: Resource) -> Entry:
        """Decide whether a request for ``resource`` may proceed."""

    @abstractmethod
    def set_limit(self, resource: Resource) -> None:
        """Apply ``resource.limit``."""

    @abstractmethod
    def set_burst(self, resource: Resource) -> None:
        """Apply ``resource.burst``."""

    @abstractmethod
    def set_window(self, resource: Resource) -> None:
        """Apply ``resource.window``."""