"""
Parsing, extraction and verification.

Parsing undoes generation step by step for the same config:

    unwrap prefix/suffix -> strip separators -> strip marker
        -> split checksums -> split core/metadata -> decode metadata

Extraction functions (extract_*, parse_id) raise MalformedIdentifierError or
ConfigurationError. Verification functions never raise: check_id() returns a
VerificationResult with a reason code and verify_id() returns its boolean.

Example:
    >>> from sigid.core.ids import generate_id, parse_id, verify_id
    >>> config = {"length": 20, "checksum": True}
    >>> identifier = generate_id(config)
    >>> verify_id(identifier, config)
    True
    >>> parse_id(identifier, config).core_length
    19
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sigid.core.config.models import ConfigLike, IdentifierConfig, VerificationMethod, as_config
from sigid.core.exceptions import (
    ConfigurationError,
    IdentifierError,
    MalformedIdentifierError,
)
from sigid.core.ids.checksum import checksums_match, split_checksums
from sigid.core.ids.context import IdentifierContext, aresolve, get_default_context, resolve
from sigid.core.ids.crypto import timing_safe_equal
from sigid.core.ids.formatter import decode_marker, extract_marker, strip_separators, unwrap
from sigid.core.ids.layout import IdentifierPlan, plan_identifier
from sigid.core.ids.metadata import decode_geo, decode_metadata, encode_geo, now_ms
from sigid.core.ids.models import (
    DecodedMetadata,
    ParsedIdentifier,
    VerificationReason,
    VerificationResult,
)
from sigid.core.security.audit import AuditEvent, create_audit_event

logger = logging.getLogger(__name__)

# Embedded timestamps may run ahead of the verifier's clock by this much.
TIMESTAMP_SKEW_MS = 60_000


@dataclass(frozen=True)
class _Parts:
    plan: IdentifierPlan
    content: str
    core: str
    metadata_fragment: str
    checksums: list[str]
    marker: str
    separator_count: int


def _decompose(identifier: str, plan: IdentifierPlan) -> _Parts:
    config = plan.config
    framed = unwrap(identifier, config.prefix, config.suffix, config.separator)
    separator_count = 0
    if config.separator:
        # Joints added by wrap() count too; separators inside prefix or suffix do not.
        separator_count = framed.count(config.separator) + bool(config.prefix) + bool(config.suffix)
    body = strip_separators(framed, config.separator)

    if len(body) != plan.body_length:
        raise MalformedIdentifierError(
            f"Identifier body is {len(body)} characters, expected {plan.body_length}",
            actual=len(body),
            expected=plan.body_length,
        )

    marker = ""
    if plan.marker_length:
        body, marker = extract_marker(body, plan.marker_length)

    content, checksums = split_checksums(body, plan.checksum_spans)
    return _Parts(
        plan=plan,
        content=content,
        core=content[: plan.core_length],
        metadata_fragment=content[plan.core_length :],
        checksums=checksums,
        marker=marker,
        separator_count=separator_count,
    )


def _parts(identifier: str, config: ConfigLike) -> _Parts:
    return _decompose(identifier, plan_identifier(as_config(config)))


def extract_core_id(identifier: str, config: ConfigLike) -> str:
    """
    Recover the core payload (metadata and checksums removed).

    Raises:
        MalformedIdentifierError: If the identifier does not fit the config
        ConfigurationError: If the config itself is invalid
    """
    return _parts(identifier, config).core


def extract_content(identifier: str, config: ConfigLike) -> str:
    """Recover core payload followed by the metadata fragment."""
    return _parts(identifier, config).content


def extract_checksums(identifier: str, config: ConfigLike) -> list[str]:
    """Checksum blocks in insertion order (empty when checksums are disabled)."""
    return _parts(identifier, config).checksums


def _decode(parts: _Parts, now: int | None = None) -> DecodedMetadata:
    plan = parts.plan
    decoded = decode_metadata(parts.metadata_fragment, plan.config, plan.metadata, now=now)
    if parts.marker:
        decoded = decoded.model_copy(update={"hidden_data": decode_marker(parts.marker)})
    return decoded


def parse_id(identifier: str, config: ConfigLike) -> ParsedIdentifier:
    """
    Take an identifier apart and decode its metadata.

    Pure apart from the expiry flag, which is evaluated against the current
    time.

    Raises:
        MalformedIdentifierError: If the identifier does not fit the config
        ConfigurationError: If the config itself is invalid
    """
    parts = _parts(identifier, config)
    cfg = parts.plan.config
    return ParsedIdentifier(
        full_id=identifier,
        prefix=cfg.prefix or None,
        suffix=cfg.suffix or None,
        core_id=parts.core,
        content=parts.content,
        checksums=parts.checksums,
        total_length=len(identifier),
        content_length=len(identifier) - parts.separator_count * len(cfg.separator),
        core_length=len(parts.core),
        separator_count=parts.separator_count,
        metadata=_decode(parts),
        algorithm=cfg.algorithm,
        mode=cfg.mode,
    )


def verify_checksum(identifier: str, config: ConfigLike) -> bool:
    """
    Recompute and compare every checksum block.

    True when checksums are disabled in ``config``. Never raises.
    """
    try:
        cfg = as_config(config)
        if not cfg.checksum:
            return True
        return _checksum_ok(_parts(identifier, cfg))
    except (IdentifierError, ValueError) as e:
        logger.debug("Checksum verification failed: %s", e)
        return False


def _checksum_ok(parts: _Parts) -> bool:
    config = parts.plan.config
    return checksums_match(
        parts.content,
        parts.checksums,
        config.checksum_count,
        config.checksum_length,
        config.algorithm,
        config.secret,
    )


# -----------------------------------------------------------------------------
# Individual verification checks
# -----------------------------------------------------------------------------

_Check = Callable[[_Parts, DecodedMetadata, int], Optional[VerificationResult]]


def _check_checksum(parts: _Parts, metadata: DecodedMetadata, now: int) -> VerificationResult | None:
    if parts.plan.config.checksum and not _checksum_ok(parts):
        return VerificationResult.fail(VerificationReason.CHECKSUM_MISMATCH)
    return None


def _check_timestamp(parts: _Parts, metadata: DecodedMetadata, now: int) -> VerificationResult | None:
    if metadata.timestamp_ms is not None and metadata.timestamp_ms > now + TIMESTAMP_SKEW_MS:
        return VerificationResult.fail(
            VerificationReason.TIMESTAMP_INVALID, "timestamp is in the future"
        )
    return None


def _check_expiry(parts: _Parts, metadata: DecodedMetadata, now: int) -> VerificationResult | None:
    if metadata.is_expired:
        return VerificationResult.fail(VerificationReason.EXPIRED)
    return None


def _check_device(parts: _Parts, metadata: DecodedMetadata, now: int) -> VerificationResult | None:
    if parts.plan.metadata.device and metadata.device_matches is not True:
        return VerificationResult.fail(VerificationReason.DEVICE_MISMATCH)
    return None


def _check_geo(parts: _Parts, metadata: DecodedMetadata, now: int) -> VerificationResult | None:
    if not parts.plan.metadata.geo:
        return None
    # Compare against the region as it round-trips through the 6-byte field.
    expected = decode_geo(encode_geo(parts.plan.config.security.geo_region))
    embedded = metadata.geo_region or ""
    if not hmac.compare_digest(embedded.encode("utf-8"), expected.encode("utf-8")):
        return VerificationResult.fail(VerificationReason.GEO_MISMATCH)
    return None


_METHOD_CHECKS: dict[VerificationMethod, _Check] = {
    VerificationMethod.CHECKSUM: _check_checksum,
    VerificationMethod.TIMESTAMP: _check_timestamp,
    VerificationMethod.EXPIRY: _check_expiry,
    VerificationMethod.DEVICE: _check_device,
    VerificationMethod.GEO: _check_geo,
}

_STANDARD_CHECKS: tuple[_Check, ...] = (_check_checksum, _check_expiry, _check_device)


def _evaluate(
    identifier: str,
    config: IdentifierConfig,
    revoked: bool,
    original_id: str | None,
    now: int | None,
) -> VerificationResult:
    """Run the verification checks; raises on malformed input or bad config."""
    if revoked:
        return VerificationResult.fail(VerificationReason.REVOKED)

    now = now_ms() if now is None else now
    parts = _decompose(identifier, plan_identifier(config))
    metadata = _decode(parts, now=now)

    methods = config.security.verify_methods
    checks = [_METHOD_CHECKS[m] for m in methods] if methods else list(_STANDARD_CHECKS)
    for check in checks:
        failure = check(parts, metadata, now)
        if failure is not None:
            return failure

    if not methods and original_id is not None and not timing_safe_equal(identifier, original_id):
        return VerificationResult.fail(VerificationReason.ORIGINAL_MISMATCH)

    return VerificationResult.ok()


def _failure_from(error: Exception) -> VerificationResult:
    if isinstance(error, ConfigurationError):
        return VerificationResult.fail(VerificationReason.CONFIGURATION_ERROR, str(error))
    if isinstance(error, MalformedIdentifierError):
        return VerificationResult.fail(VerificationReason.MALFORMED, str(error))
    return VerificationResult.fail(VerificationReason.ERROR, f"{type(error).__name__}: {error}")


def _verify_event(identifier: str, result: VerificationResult) -> AuditEvent:
    metadata = None if result.valid else {"reason": result.reason.value}
    return create_audit_event("verify", identifier, result.valid, metadata)


def check_id(
    identifier: str,
    config: ConfigLike,
    *,
    original_id: str | None = None,
    context: IdentifierContext | None = None,
    now: int | None = None,
) -> VerificationResult:
    """
    Verify an identifier and report why it failed.

    Checks run in order: revocation (when check_revocation is set), then
    either the configured verify_methods or the standard checks (checksum,
    expiry, device binding, and original_id equality when given).

    Never raises. Malformed input, bad configuration and collaborator
    failures all become a failed result.

    Args:
        identifier: Identifier to verify
        config: The config used at generation time
        original_id: Expected identifier, compared in constant time
        context: Collaborators (defaults to the process-wide context)
        now: Epoch milliseconds used for expiry checks
    """
    context = context or get_default_context()
    try:
        cfg = as_config(config)
        revoked = False
        if cfg.security.check_revocation:
            revoked = bool(
                resolve(context.revocation_list.is_revoked(identifier), "RevocationList.is_revoked")
            )
        result = _evaluate(identifier, cfg, revoked, original_id, now)
        if cfg.security.audit.enabled:
            resolve(context.audit_sink.log(_verify_event(identifier, result)), "AuditSink.log")
        return result
    except Exception as e:  # verification is total over all inputs
        logger.debug("Verification failed: %s", e)
        return _failure_from(e)


async def acheck_id(
    identifier: str,
    config: ConfigLike,
    *,
    original_id: str | None = None,
    context: IdentifierContext | None = None,
    now: int | None = None,
) -> VerificationResult:
    """
    Async check_id(): awaits asynchronous collaborators.

    Cancellation propagates to the caller.
    """
    context = context or get_default_context()
    try:
        cfg = as_config(config)
        revoked = False
        if cfg.security.check_revocation:
            revoked = bool(await aresolve(context.revocation_list.is_revoked(identifier)))
        result = _evaluate(identifier, cfg, revoked, original_id, now)
        if cfg.security.audit.enabled:
            await aresolve(context.audit_sink.log(_verify_event(identifier, result)))
        return result
    except Exception as e:  # verification is total over all inputs
        logger.debug("Verification failed: %s", e)
        return _failure_from(e)


def verify_id(
    identifier: str,
    config: ConfigLike,
    *,
    original_id: str | None = None,
    context: IdentifierContext | None = None,
) -> bool:
    """Boolean form of check_id(). Never raises."""
    return check_id(identifier, config, original_id=original_id, context=context).valid


async def averify_id(
    identifier: str,
    config: ConfigLike,
    *,
    original_id: str | None = None,
    context: IdentifierContext | None = None,
) -> bool:
    """Boolean form of acheck_id(). Never raises."""
    result = await acheck_id(identifier, config, original_id=original_id, context=context)
    return result.valid


# -----------------------------------------------------------------------------
# Revocation
# -----------------------------------------------------------------------------


def _audits(config: ConfigLike | None) -> bool:
    return config is not None and as_config(config).security.audit.enabled


def revoke_id(
    identifier: str,
    *,
    config: ConfigLike | None = None,
    context: IdentifierContext | None = None,
) -> None:
    """
    Add an identifier to the revocation list.

    Verification only consults the list when ``check_revocation`` is set.
    An audit event is emitted when ``config`` enables auditing.
    """
    context = context or get_default_context()
    resolve(context.revocation_list.revoke(identifier), "RevocationList.revoke")
    logger.info("Revoked identifier")
    if _audits(config):
        resolve(
            context.audit_sink.log(create_audit_event("revoke", identifier, True)),
            "AuditSink.log",
        )


def unrevoke_id(
    identifier: str,
    *,
    config: ConfigLike | None = None,
    context: IdentifierContext | None = None,
) -> None:
    """Remove an identifier from the revocation list."""
    context = context or get_default_context()
    resolve(context.revocation_list.unrevoke(identifier), "RevocationList.unrevoke")
    if _audits(config):
        resolve(
            context.audit_sink.log(create_audit_event("unrevoke", identifier, True)),
            "AuditSink.log",
        )


async def arevoke_id(
    identifier: str,
    *,
    config: ConfigLike | None = None,
    context: IdentifierContext | None = None,
) -> None:
    """Async revoke_id()."""
    context = context or get_default_context()
    await aresolve(context.revocation_list.revoke(identifier))
    if _audits(config):
        await aresolve(context.audit_sink.log(create_audit_event("revoke", identifier, True)))


async def aunrevoke_id(
    identifier: str,
    *,
    config: ConfigLike | None = None,
    context: IdentifierContext | None = None,
) -> None:
    """Async unrevoke_id()."""
    context = context or get_default_context()
    await aresolve(context.revocation_list.unrevoke(identifier))
    if _audits(config):
        await aresolve(context.audit_sink.log(create_audit_event("unrevoke", identifier, True)))
