"""
Collaborator protocols and in-memory implementations.

The pipeline only calls these interfaces; persistence is the host
application's concern. Any method may return an awaitable instead of a value
(e.g. a Redis-backed store); the async pipeline awaits it, the sync pipeline
rejects it.

In-memory implementations are thread-safe and suitable for a single process
and for tests.
"""

import hashlib
import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Protocol, TypeVar, Union, runtime_checkable

T = TypeVar("T")
MaybeAwaitable = Union[T, Awaitable[T]]


@runtime_checkable
class RateLimiter(Protocol):
    """
    Protocol for rate limiters consulted before generation.

    check() both tests and consumes one request from the window.
    """

    def check(
        self, identifier: str, max_requests: int, window_ms: int
    ) -> MaybeAwaitable[bool]:
        """
        Record a request for ``identifier``.

        Returns:
            True if the request is allowed, False if the limit is exhausted
        """
        ...


@runtime_checkable
class CollisionStore(Protocol):
    """
    Protocol for the set of identifiers already handed out.

    A separate has() then add() is not atomic: two generators sharing a
    store can both see an identifier as free. Stores that can claim an
    identifier in one step should also define
    ``add_if_absent(identifier) -> bool``, which the generator prefers.
    """

    def has(self, identifier: str) -> MaybeAwaitable[bool]:
        ...

    def add(self, identifier: str) -> MaybeAwaitable[None]:
        ...

    def remove(self, identifier: str) -> MaybeAwaitable[None]:
        ...


@runtime_checkable
class RevocationList(Protocol):
    """Protocol for revoked identifiers, consulted during verification."""

    def is_revoked(self, identifier: str) -> MaybeAwaitable[bool]:
        ...

    def revoke(self, identifier: str) -> MaybeAwaitable[None]:
        ...

    def unrevoke(self, identifier: str) -> MaybeAwaitable[None]:
        ...


@dataclass
class _Window:
    count: int
    reset_at_ms: float


class InMemoryRateLimiter:
    """
    Fixed-window rate limiter keyed by identifier.

    Example:
        >>> limiter = InMemoryRateLimiter()
        >>> limiter.check("user-1", max_requests=1, window_ms=60_000)
        True
        >>> limiter.check("user-1", max_requests=1, window_ms=60_000)
        False
    """

    def __init__(self) -> None:
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, identifier: str, max_requests: int, window_ms: int) -> bool:
        now_ms = time.time() * 1000
        with self._lock:
            window = self._windows.get(identifier)
            if window is None or now_ms > window.reset_at_ms:
                self._windows[identifier] = _Window(count=1, reset_at_ms=now_ms + window_ms)
                return True
            if window.count >= max_requests:
                return False
            window.count += 1
            return True

    def reset(self, identifier: str = "global") -> None:
        with self._lock:
            self._windows.pop(identifier, None)


class InMemoryCollisionStore:
    """Thread-safe set of issued identifiers."""

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def has(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._seen

    def add(self, identifier: str) -> None:
        with self._lock:
            self._seen.add(identifier)

    def add_if_absent(self, identifier: str) -> bool:
        """Record ``identifier`` unless present; True if it was added."""
        with self._lock:
            if identifier in self._seen:
                return False
            self._seen.add(identifier)
            return True

    def remove(self, identifier: str) -> None:
        with self._lock:
            self._seen.discard(identifier)

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


class InMemoryRevocationList:
    """
    Thread-safe revocation list.

    Only SHA-256 digests of revoked identifiers are kept, so a dump of the
    list does not leak live tokens.
    """

    def __init__(self) -> None:
        self._revoked: set[str] = set()
        self._lock = threading.Lock()

    @staticmethod
    def _digest(identifier: str) -> str:
        return hashlib.sha256(identifier.encode("utf-8")).hexdigest()

    def is_revoked(self, identifier: str) -> bool:
        with self._lock:
            return self._digest(identifier) in self._revoked

    def revoke(self, identifier: str) -> None:
        with self._lock:
            self._revoked.add(self._digest(identifier))

    def unrevoke(self, identifier: str) -> None:
        with self._lock:
            self._revoked.discard(self._digest(identifier))
