"""
Shared state for generation and verification.

An IdentifierContext owns everything that is mutable across calls: the
counter, the entropy pool and the collaborators. Generators receive one
explicitly; the module-level helpers fall back to a lazily created default.
"""

import inspect
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from sigid.core.exceptions import IdentifierError
from sigid.core.security.audit import AuditSink, LoggingAuditSink
from sigid.core.security.counters import MonotonicCounter
from sigid.core.security.entropy import EntropyPool
from sigid.core.security.stores import (
    CollisionStore,
    InMemoryCollisionStore,
    InMemoryRateLimiter,
    InMemoryRevocationList,
    RateLimiter,
    RevocationList,
)


@dataclass
class IdentifierContext:
    """
    Injected state bundle.

    Any collaborator may be swapped for a host implementation, including
    one whose methods return awaitables (use the async API with those).

    Example:
        >>> context = IdentifierContext(collision_store=InMemoryCollisionStore())
        >>> generator = IdentifierGenerator(context)
    """

    counter: MonotonicCounter = field(default_factory=MonotonicCounter)
    entropy_pool: EntropyPool = field(default_factory=EntropyPool)
    rate_limiter: RateLimiter = field(default_factory=InMemoryRateLimiter)
    collision_store: CollisionStore = field(default_factory=InMemoryCollisionStore)
    revocation_list: RevocationList = field(default_factory=InMemoryRevocationList)
    audit_sink: AuditSink = field(default_factory=LoggingAuditSink)


_default_context: Optional[IdentifierContext] = None
_default_lock = threading.Lock()


def get_default_context() -> IdentifierContext:
    """Process-wide context used when callers do not pass one."""
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = IdentifierContext()
        return _default_context


def reset_default_context() -> None:
    """Drop the default context (useful for tests)."""
    global _default_context
    with _default_lock:
        _default_context = None


def resolve(value: Any, operation: str) -> Any:
    """
    Return a collaborator result in the synchronous pipeline.

    Raises:
        IdentifierError: If the collaborator returned an awaitable
    """
    if inspect.isawaitable(value):
        if inspect.iscoroutine(value):
            value.close()
        raise IdentifierError(
            f"{operation} returned an awaitable; use the async API with asynchronous collaborators",
            operation=operation,
        )
    return value


async def aresolve(value: Any) -> Any:
    """Await a collaborator result if it is awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value
