"""
Configuration data models for sigid.

These models define the full set of identifier generation parameters, with
shape validation and type safety via Pydantic. Cross-field checks that need
the length budget (missing secrets, positions out of bounds, insufficient
length) live in sigid.core.ids.layout and raise ConfigurationError.
"""

from enum import Enum
from collections.abc import Mapping
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sigid.core.exceptions import ConfigurationError


class Algorithm(str, Enum):
    """Hash algorithm used for payload derivation and checksums."""

    SHA256 = "sha256"
    SHA512 = "sha512"
    SHA3_256 = "sha3-256"
    SHA3_512 = "sha3-512"
    BLAKE2B512 = "blake2b512"
    SHAKE256 = "shake256"
    # Simulated, hash-based stand-ins. Not post-quantum cryptography.
    KYBER768 = "kyber768"
    DILITHIUM3 = "dilithium3"

    @property
    def is_simulated(self) -> bool:
        return self in (Algorithm.KYBER768, Algorithm.DILITHIUM3)


class Mode(str, Enum):
    """Payload generation strategy."""

    RANDOM = "random"
    HASH = "hash"
    HMAC = "hmac"
    HYBRID = "hybrid"
    HMAC_HASH = "hmac-hash"
    MEMORY_HARD = "memory-hard"

    @property
    def requires_secret(self) -> bool:
        return self in (Mode.HMAC, Mode.HMAC_HASH, Mode.MEMORY_HARD)


class CaseStyle(str, Enum):
    """Case transform applied to the core payload."""

    UPPER = "upper"
    LOWER = "lower"
    MIXED = "mixed"


class AuditLevel(str, Enum):
    """How much detail generation audit events carry."""

    NONE = "none"
    MINIMAL = "minimal"
    FULL = "full"


class VerificationMethod(str, Enum):
    """Individual checks for multi-factor verification."""

    CHECKSUM = "checksum"
    TIMESTAMP = "timestamp"
    EXPIRY = "expiry"
    DEVICE = "device"
    GEO = "geo"


ChecksumPosition = Union[Literal["start", "middle", "end"], list[int]]


class RateLimitOptions(BaseModel):
    """
    Rate limiting applied before generation starts.

    The limiter itself is a collaborator; these options are passed to it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_requests: int = Field(
        default=100,
        ge=1,
        description="Maximum requests per window"
    )
    window_ms: int = Field(
        default=60_000,
        ge=1,
        description="Window size in milliseconds"
    )
    identifier: str = Field(
        default="global",
        description="Rate limit key (IP, user, tenant, ...)"
    )


class AuditOptions(BaseModel):
    """Audit logging for generate/verify/revoke actions."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(
        default=False,
        description="Send audit events to the audit sink"
    )
    level: AuditLevel = Field(
        default=AuditLevel.MINIMAL,
        description="'full' adds generation parameters to events"
    )


class SecurityOptions(BaseModel):
    """
    Advanced options: entropy tuning, embedded metadata and collaborators.

    Metadata fields are appended to the core payload as fixed-width fragments
    in this order: timestamp, counter, expiry, geo, device, custom.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enhance_entropy: bool = Field(
        default=False,
        description="Draw three extra random blocks in random mode"
    )
    memory_hard: bool = Field(
        default=False,
        description="Use 100,000 PBKDF2 iterations instead of 10,000"
    )
    double_hash: bool = Field(
        default=False,
        description="Hash the digest a second time in hash modes"
    )
    avoid_ambiguous_chars: bool = Field(
        default=False,
        description="Use an alphabet without 0/O, 1/l/I and similar"
    )
    enforce_charset: Optional[str] = Field(
        default=None,
        description="Custom alphabet for the core payload"
    )
    reseed: bool = Field(
        default=False,
        description="Mix 32 extra random bytes in random mode"
    )

    timestamp_embed: bool = Field(default=False, description="Embed creation time")
    counter_embed: bool = Field(default=False, description="Embed monotonic counter")
    ttl: Optional[int] = Field(
        default=None,
        description="Time-to-live in seconds (zero or negative expires immediately)"
    )
    embed_expiry: bool = Field(default=False, description="Embed now + ttl")
    embed_geo: bool = Field(default=False, description="Embed geographic region")
    geo_region: str = Field(default="", description="Region identifier to embed")
    device_binding: bool = Field(default=False, description="Embed device hash")
    device_id: str = Field(default="", description="Device identifier to bind")
    custom_metadata: Optional[Any] = Field(
        default=None,
        description="JSON object embedded verbatim (base64url)"
    )
    custom_metadata_max_size: int = Field(
        default=1024,
        ge=1,
        description="Maximum serialized size of custom metadata in bytes"
    )
    compress_metadata: bool = Field(
        default=False,
        description="Gzip custom metadata before encoding"
    )

    steganography: bool = Field(
        default=False,
        description="Hide a short marker inside the body (obfuscation only)"
    )
    hidden_data: str = Field(default="", description="Marker text to hide")

    rate_limit: Optional[RateLimitOptions] = Field(
        default=None,
        description="Check the rate limiter before generating"
    )
    collision_detection: bool = Field(
        default=False,
        description="Regenerate on collision with previously issued identifiers"
    )
    check_revocation: bool = Field(
        default=False,
        description="Consult the revocation list during verification"
    )
    audit: AuditOptions = Field(default_factory=AuditOptions)
    verify_methods: list[VerificationMethod] = Field(
        default_factory=list,
        description="Explicit multi-factor checks; empty means standard verification"
    )

    @property
    def has_metadata(self) -> bool:
        return (
            self.timestamp_embed
            or self.counter_embed
            or self.embed_expiry
            or self.embed_geo
            or self.device_binding
            or self.custom_metadata is not None
        )


class IdentifierConfig(BaseModel):
    """
    Full set of identifier generation parameters.

    The same configuration must be supplied again to parse or verify an
    identifier: nothing about it is embedded in the identifier itself.

    Example:
        >>> config = IdentifierConfig(length=20, checksum=True, checksum_count=2)
        >>> config.mode
        <Mode.RANDOM: 'random'>
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    length: int = Field(
        default=32,
        ge=1,
        description="Total length excluding prefix, suffix and separators"
    )
    algorithm: Algorithm = Field(default=Algorithm.SHA256)
    mode: Mode = Field(default=Mode.RANDOM)
    case: CaseStyle = Field(default=CaseStyle.UPPER)
    separator: str = Field(default="", description="Separator string")
    separator_length: int = Field(
        default=8,
        ge=1,
        description="Characters between separators"
    )
    checksum: bool = Field(default=False, description="Embed checksum blocks")
    checksum_count: int = Field(default=1, ge=1, description="Number of checksum blocks")
    checksum_length: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Hex characters per checksum block"
    )
    checksum_position: ChecksumPosition = Field(
        default="end",
        description="'start', 'middle', 'end' or one offset per block"
    )
    prefix: str = Field(default="")
    suffix: str = Field(default="")
    secret: str = Field(default="", description="Key for HMAC and memory-hard modes")
    salt: str = Field(default="", description="Per-identifier salt")
    pepper: str = Field(default="", description="Global pepper, stored externally")
    allow_overflow: bool = Field(
        default=False,
        description="Floor the core at 8 characters and let the identifier grow "
        "instead of rejecting an insufficient length"
    )
    strict: bool = Field(
        default=False,
        description="Turn advisory warnings into configuration errors"
    )
    security: SecurityOptions = Field(default_factory=SecurityOptions)

    @field_validator("checksum_position")
    @classmethod
    def validate_checksum_position(cls, v: ChecksumPosition) -> ChecksumPosition:
        """Validate explicit offsets are non-negative and non-decreasing."""
        if isinstance(v, list):
            if not v:
                raise ValueError("checksum_position list must not be empty")
            if any(p < 0 for p in v):
                raise ValueError("checksum_position offsets must be non-negative")
            if any(b < a for a, b in zip(v, v[1:])):
                raise ValueError("checksum_position offsets must be in ascending order")
        return v

    @property
    def checksum_total_length(self) -> int:
        """Characters consumed by all checksum blocks (0 when disabled)."""
        if not self.checksum:
            return 0
        return self.checksum_count * self.checksum_length


ConfigLike = Union[IdentifierConfig, Mapping[str, Any]]


def as_config(value: ConfigLike | None = None) -> IdentifierConfig:
    """
    Coerce a mapping (or None) into an IdentifierConfig.

    Raises:
        ConfigurationError: If the mapping does not validate
    """
    if value is None:
        return IdentifierConfig()
    if isinstance(value, IdentifierConfig):
        return value
    try:
        return IdentifierConfig.model_validate(dict(value))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid identifier configuration: {e}") from e
