"""The interface of a distributed lock."""

from __future__ import annotations

from abc import ABC, abstractmethod


class LockError(Exception):
    """Base class of lock failures."""


class ClientNilError(LockError):
    """Raised when a lock is built without a backing client."""

    def __init__(self, message: str = "client is nil") -> None:
        super().__init__(message)


class UnlockError(LockError):
    """Raised when a lock is not held by the given owner."""

    def __init__(self, message: str = "unlock fail") -> None:
        super().__init__(message)


class Locker(ABC):
    """A lock identified by key and owned by a random token."""

    @abstractmethod
    def lock(self, key: str, random: object, duration: float, tries: int) -> bool:
        """Try up to ``tries`` times to take ``key`` for ``duration`` seconds."""

    @abstractmethod
    def unlock(self, key: str, random: object) -> None:
        """Release ``key`` if ``random`` still owns it, else raise UnlockError."""