"""
Result models for parsing and verification.

ParsedIdentifier is a derived, read-only view computed on demand from an
(identifier, config) pair. It is never persisted and nothing maps an
identifier back to the config that produced it.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from sigid.core.config.models import Algorithm, Mode


class DecodedMetadata(BaseModel):
    """
    Metadata fields recovered from the fixed-width fragment.

    Fields are only populated when the corresponding flag is set in the
    config used for parsing.
    """

    model_config = ConfigDict(frozen=True)

    has_timestamp: bool = False
    timestamp_ms: Optional[int] = None
    counter: Optional[int] = None
    has_expiry: bool = False
    expires_at_ms: Optional[int] = None
    is_expired: Optional[bool] = None
    geo_region: Optional[str] = None
    device_hash: Optional[str] = Field(
        default=None,
        description="12 hex chars embedded at generation"
    )
    device_matches: Optional[bool] = Field(
        default=None,
        description="Whether device_hash matches the configured device_id"
    )
    custom_metadata: Optional[dict[str, Any]] = None
    hidden_data: Optional[str] = None


class ParsedIdentifier(BaseModel):
    """
    Components of an identifier taken apart with its configuration.

    Example:
        >>> parsed = parse_id("USER-Q2M8...", {"length": 16, "prefix": "USER"})
        >>> parsed.prefix
        'USER'
    """

    model_config = ConfigDict(frozen=True)

    full_id: str
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    core_id: str = Field(description="Core payload with metadata stripped")
    content: str = Field(description="Core payload followed by metadata")
    checksums: list[str] = Field(default_factory=list)
    total_length: int
    content_length: int = Field(
        description="Total length minus the separators inserted at generation"
    )
    core_length: int
    separator_count: int = 0
    metadata: DecodedMetadata = Field(default_factory=DecodedMetadata)
    algorithm: Algorithm
    mode: Mode


class VerificationReason(str, Enum):
    """Why a verification passed or failed."""

    OK = "ok"
    REVOKED = "revoked"
    MALFORMED = "malformed"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    EXPIRED = "expired"
    TIMESTAMP_INVALID = "timestamp_invalid"
    DEVICE_MISMATCH = "device_mismatch"
    GEO_MISMATCH = "geo_mismatch"
    ORIGINAL_MISMATCH = "original_mismatch"
    CONFIGURATION_ERROR = "configuration_error"
    ERROR = "error"


class VerificationResult(BaseModel):
    """Outcome of check_id(). Truthy when the identifier is valid."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    reason: VerificationReason
    detail: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid

    @classmethod
    def ok(cls) -> "VerificationResult":
        return cls(valid=True, reason=VerificationReason.OK)

    @classmethod
    def fail(cls, reason: VerificationReason, detail: str | None = None) -> "VerificationResult":
        return cls(valid=False, reason=reason, detail=detail)
