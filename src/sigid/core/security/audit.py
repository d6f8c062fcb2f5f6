"""
Audit events for generate / verify / revoke actions.

Events never carry the identifier itself, only a short SHA-256 fingerprint.
The default sink writes through the ``sigid.audit`` logger; hosts can inject
any object implementing AuditSink (database, SIEM forwarder, ...).
"""

import hashlib
import logging
import time
from typing import Any, Literal, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from sigid.core.security.stores import MaybeAwaitable

AuditAction = Literal["generate", "verify", "revoke", "unrevoke"]

audit_logger = logging.getLogger("sigid.audit")


class AuditEvent(BaseModel):
    """A single audited action."""

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(description="Epoch milliseconds")
    action: AuditAction
    id_hash: str = Field(description="First 16 hex chars of SHA-256(identifier)")
    success: bool
    metadata: Optional[dict[str, Any]] = None


@runtime_checkable
class AuditSink(Protocol):
    """Protocol for audit event consumers."""

    def log(self, event: AuditEvent) -> MaybeAwaitable[None]:
        ...


class LoggingAuditSink:
    """Audit sink that writes one log record per event."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or audit_logger

    def log(self, event: AuditEvent) -> None:
        status = "SUCCESS" if event.success else "FAILURE"
        if event.metadata:
            self.logger.info(
                "%s | %s | id=%s | %s",
                event.action.upper(),
                status,
                event.id_hash,
                event.metadata,
            )
        else:
            self.logger.info("%s | %s | id=%s", event.action.upper(), status, event.id_hash)


def hash_identifier(identifier: str) -> str:
    """Short SHA-256 fingerprint of an identifier for logs and audit events."""
    return hashlib.sha256(identifier.encode("utf-8")).hexdigest()[:16]


def create_audit_event(
    action: AuditAction,
    identifier: str,
    success: bool,
    metadata: dict[str, Any] | None = None,
) -> AuditEvent:
    """Build an event for ``identifier`` stamped with the current time."""
    return AuditEvent(
        timestamp=int(time.time() * 1000),
        action=action,
        id_hash=hash_identifier(identifier),
        success=success,
        metadata=metadata or None,
    )
