"""
Shared, concurrency-safe state and collaborator interfaces.

Public API:
    - MonotonicCounter: atomically incremented counter
    - EntropyPool: pooled random blocks
    - RateLimiter, CollisionStore, RevocationList: collaborator protocols
    - InMemoryRateLimiter, InMemoryCollisionStore, InMemoryRevocationList
    - AuditEvent, AuditSink, LoggingAuditSink, create_audit_event
"""

from sigid.core.security.audit import (
    AuditEvent,
    AuditSink,
    LoggingAuditSink,
    create_audit_event,
    hash_identifier,
)
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

__all__ = [
    "AuditEvent",
    "AuditSink",
    "CollisionStore",
    "EntropyPool",
    "InMemoryCollisionStore",
    "InMemoryRateLimiter",
    "InMemoryRevocationList",
    "LoggingAuditSink",
    "MonotonicCounter",
    "RateLimiter",
    "RevocationList",
    "create_audit_event",
    "hash_identifier",
]
