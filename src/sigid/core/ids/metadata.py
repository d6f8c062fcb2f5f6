"""
Metadata embedder and decoder.

Each enabled feature contributes a fixed-width fragment appended to the core
payload, always in this order:

    timestamp  9   epoch ms, base36
    counter    6   monotonic counter mod 36**6, base36
    expiry     9   now + ttl, epoch ms, base36
    geo        8   region (6 UTF-8 bytes, NUL padded), base64url
    device    12   HMAC-SHA256(secret, device_id) hex, SHA-256 without secret
    custom     *   canonical JSON, optional gzip, base64url without padding

There is no self-describing header: decoding relies on the same flags being
supplied again, so a mismatched config yields wrong values, not an error.
"""

import base64
import binascii
import gzip
import hashlib
import hmac
import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass

from sigid.core.config.models import IdentifierConfig, SecurityOptions
from sigid.core.exceptions import ConfigurationError, MalformedIdentifierError
from sigid.core.ids.charset import from_base36, to_base36
from sigid.core.ids.models import DecodedMetadata
from sigid.core.security.counters import MonotonicCounter

logger = logging.getLogger(__name__)

TIMESTAMP_WIDTH = 9
COUNTER_WIDTH = 6
EXPIRY_WIDTH = 9
GEO_WIDTH = 8
DEVICE_WIDTH = 12

GEO_BYTES = 6
COUNTER_MODULUS = 36**COUNTER_WIDTH
MAX_INSTANT_MS = 36**TIMESTAMP_WIDTH - 1


@dataclass(frozen=True)
class MetadataPlan:
    """
    Per-feature widths, known before any payload is generated.

    The custom fragment depends only on the configured object, so it is
    encoded once here and reused verbatim by build_metadata().
    """

    timestamp: int = 0
    counter: int = 0
    expiry: int = 0
    geo: int = 0
    device: int = 0
    custom: int = 0
    custom_fragment: str = ""

    @property
    def total(self) -> int:
        return self.timestamp + self.counter + self.expiry + self.geo + self.device + self.custom

    def widths(self) -> dict[str, int]:
        """Enabled features and their widths, in embedding order."""
        ordered = {
            "timestamp": self.timestamp,
            "counter": self.counter,
            "expiry": self.expiry,
            "geo": self.geo,
            "device": self.device,
            "custom": self.custom,
        }
        return {name: width for name, width in ordered.items() if width}


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _unb64url(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def now_ms() -> int:
    return int(time.time() * 1000)


def encode_geo(region: str) -> str:
    """Region as 8 base64url chars (6 UTF-8 bytes, truncated or NUL padded)."""
    raw = region.encode("utf-8")[:GEO_BYTES].ljust(GEO_BYTES, b"\x00")
    return _b64url(raw)


def decode_geo(fragment: str) -> str:
    # Truncation may split a multi-byte character; drop the partial tail.
    return _unb64url(fragment).rstrip(b"\x00").decode("utf-8", errors="ignore")


def device_fingerprint(device_id: str, secret: str = "") -> str:
    """First 12 hex chars of HMAC-SHA256(secret, device_id), or SHA-256 without a secret."""
    if secret:
        digest = hmac.new(secret.encode("utf-8"), device_id.encode("utf-8"), hashlib.sha256)
        return digest.hexdigest()[:DEVICE_WIDTH]
    return hashlib.sha256(device_id.encode("utf-8")).hexdigest()[:DEVICE_WIDTH]


def encode_custom_metadata(value: object, max_size: int, compress: bool = False) -> str:
    """
    Serialize a JSON object to a base64url fragment.

    Serialization is canonical (sorted keys, compact separators) and gzip
    runs with a fixed mtime, so the same object always yields the same
    fragment and therefore the same width.

    Raises:
        ConfigurationError: If value is not a mapping, is not JSON
            serializable, or its serialized JSON exceeds max_size bytes
    """
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"Custom metadata must be a JSON object, got {type(value).__name__}"
        )
    try:
        raw = json.dumps(
            dict(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Custom metadata is not JSON serializable: {e}") from e

    if len(raw) > max_size:
        raise ConfigurationError(
            f"Custom metadata is {len(raw)} bytes, exceeds limit of {max_size} bytes",
            size=len(raw),
            max_size=max_size,
        )
    if compress:
        raw = gzip.compress(raw, mtime=0)
    return _b64url(raw)


def decode_custom_metadata(fragment: str, compress: bool = False) -> dict[str, object]:
    """
    Inverse of encode_custom_metadata().

    Raises:
        MalformedIdentifierError: If the fragment does not decode to a JSON object
    """
    try:
        raw = _unb64url(fragment)
        if compress:
            raw = gzip.decompress(raw)
        value = json.loads(raw.decode("utf-8"))
    except (binascii.Error, OSError, EOFError, UnicodeDecodeError, ValueError) as e:
        raise MalformedIdentifierError(f"Custom metadata fragment is corrupt: {e}") from e
    if not isinstance(value, dict):
        raise MalformedIdentifierError("Custom metadata fragment is not a JSON object")
    return value


def plan_metadata(security: SecurityOptions) -> MetadataPlan:
    """
    Compute the width of every enabled metadata feature.

    Raises:
        ConfigurationError: If a feature is enabled without the value it embeds
    """
    if security.embed_expiry and security.ttl is None:
        raise ConfigurationError("ttl is required when embed_expiry is enabled")
    if security.embed_geo and not security.geo_region:
        raise ConfigurationError("geo_region is required when embed_geo is enabled")
    if security.device_binding and not security.device_id:
        raise ConfigurationError("device_id is required when device_binding is enabled")

    custom_fragment = ""
    if security.custom_metadata is not None:
        custom_fragment = encode_custom_metadata(
            security.custom_metadata,
            security.custom_metadata_max_size,
            security.compress_metadata,
        )

    return MetadataPlan(
        timestamp=TIMESTAMP_WIDTH if security.timestamp_embed else 0,
        counter=COUNTER_WIDTH if security.counter_embed else 0,
        expiry=EXPIRY_WIDTH if security.embed_expiry else 0,
        geo=GEO_WIDTH if security.embed_geo else 0,
        device=DEVICE_WIDTH if security.device_binding else 0,
        custom=len(custom_fragment),
        custom_fragment=custom_fragment,
    )


def build_metadata(
    config: IdentifierConfig,
    plan: MetadataPlan,
    counter: MonotonicCounter,
    now: int | None = None,
) -> str:
    """
    Build the metadata fragment for one identifier.

    Args:
        config: Generation config
        plan: Widths from plan_metadata(config.security)
        counter: Counter consumed when counter_embed is set
        now: Epoch milliseconds (defaults to the current time)
    """
    security = config.security
    now = now_ms() if now is None else now
    parts: list[str] = []

    if plan.timestamp:
        parts.append(to_base36(min(now, MAX_INSTANT_MS), TIMESTAMP_WIDTH))
    if plan.counter:
        parts.append(to_base36(counter.next() % COUNTER_MODULUS, COUNTER_WIDTH))
    if plan.expiry:
        ttl = security.ttl or 0
        expires_at = min(max(now + ttl * 1000, 0), MAX_INSTANT_MS)
        parts.append(to_base36(expires_at, EXPIRY_WIDTH))
    if plan.geo:
        parts.append(encode_geo(security.geo_region))
    if plan.device:
        parts.append(device_fingerprint(security.device_id, config.secret))
    if plan.custom:
        parts.append(plan.custom_fragment)

    fragment = "".join(parts)
    if len(fragment) != plan.total:
        raise RuntimeError(
            f"Metadata fragment is {len(fragment)} chars, planned {plan.total}"
        )
    return fragment


def decode_metadata(
    fragment: str,
    config: IdentifierConfig,
    plan: MetadataPlan,
    now: int | None = None,
) -> DecodedMetadata:
    """
    Decode a metadata fragment using the widths from ``plan``.

    Raises:
        MalformedIdentifierError: If the fragment has the wrong length or a
            field does not decode
    """
    if len(fragment) != plan.total:
        raise MalformedIdentifierError(
            f"Metadata fragment is {len(fragment)} chars, expected {plan.total}"
        )

    security = config.security
    now = now_ms() if now is None else now
    fields: dict[str, object] = {}
    pos = 0

    def take(width: int) -> str:
        nonlocal pos
        piece = fragment[pos : pos + width]
        pos += width
        return piece

    try:
        if plan.timestamp:
            fields["has_timestamp"] = True
            fields["timestamp_ms"] = from_base36(take(plan.timestamp))
        if plan.counter:
            fields["counter"] = from_base36(take(plan.counter))
        if plan.expiry:
            expires_at = from_base36(take(plan.expiry))
            fields["has_expiry"] = True
            fields["expires_at_ms"] = expires_at
            fields["is_expired"] = now >= expires_at
        if plan.geo:
            fields["geo_region"] = decode_geo(take(plan.geo))
        if plan.device:
            device_hash = take(plan.device)
            fields["device_hash"] = device_hash
            if security.device_id:
                expected = device_fingerprint(security.device_id, config.secret)
                fields["device_matches"] = hmac.compare_digest(device_hash, expected)
        if plan.custom:
            fields["custom_metadata"] = decode_custom_metadata(
                take(plan.custom), security.compress_metadata
            )
    except (ValueError, binascii.Error) as e:
        raise MalformedIdentifierError(f"Metadata fragment does not decode: {e}") from e

    return DecodedMetadata(**fields)
