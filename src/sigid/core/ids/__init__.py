"""
Identifier construction and verification pipeline.

Identifiers are built from a core payload, optional fixed-width metadata,
checksum blocks at configurable positions, an optional steganographic
marker, separators and prefix/suffix framing. The same configuration must be
supplied again to parse or verify them.

Public API:
    Generation:
        - IdentifierGenerator: Pipeline bound to an IdentifierContext
        - generate_id / agenerate_id: Generate with the default context
        - generate_random_salt: Fresh hex salt for the salt option

    Parsing:
        - parse_id: Take an identifier apart and decode its metadata
        - extract_core_id: Core payload only
        - extract_content: Core payload plus metadata
        - extract_checksums: Checksum blocks in insertion order

    Verification (never raises):
        - verify_checksum: Recompute and compare checksum blocks
        - check_id / acheck_id: Full verification with a reason code
        - verify_id / averify_id: Boolean form of check_id

    Revocation:
        - revoke_id / unrevoke_id (and async forms)

    Models:
        - ParsedIdentifier, DecodedMetadata
        - VerificationResult, VerificationReason
        - IdentifierContext: Injected shared state

Example:
    >>> from sigid.core.ids import generate_id, verify_id, extract_core_id
    >>> config = {"length": 16, "prefix": "USER", "separator": "_"}
    >>> identifier = generate_id(config)
    >>> len(extract_core_id(identifier, config))
    16
"""

from sigid.core.ids.checksum import compute_checksums, insert_checksums, split_checksums
from sigid.core.ids.context import IdentifierContext, get_default_context, reset_default_context
from sigid.core.ids.crypto import generate_random_salt
from sigid.core.ids.generator import (
    MAX_COLLISION_RETRIES,
    IdentifierGenerator,
    agenerate_id,
    generate_id,
)
from sigid.core.ids.layout import IdentifierPlan, Span, checksum_spans, plan_identifier
from sigid.core.ids.models import (
    DecodedMetadata,
    ParsedIdentifier,
    VerificationReason,
    VerificationResult,
)
from sigid.core.ids.parser import (
    acheck_id,
    arevoke_id,
    aunrevoke_id,
    averify_id,
    check_id,
    extract_checksums,
    extract_content,
    extract_core_id,
    parse_id,
    revoke_id,
    unrevoke_id,
    verify_checksum,
    verify_id,
)

__all__ = [
    # Generation
    "IdentifierGenerator",
    "MAX_COLLISION_RETRIES",
    "agenerate_id",
    "generate_id",
    "generate_random_salt",
    # Layout and checksums
    "IdentifierPlan",
    "Span",
    "checksum_spans",
    "compute_checksums",
    "insert_checksums",
    "plan_identifier",
    "split_checksums",
    # Parsing
    "extract_checksums",
    "extract_content",
    "extract_core_id",
    "parse_id",
    # Verification
    "acheck_id",
    "averify_id",
    "check_id",
    "verify_checksum",
    "verify_id",
    # Revocation
    "arevoke_id",
    "aunrevoke_id",
    "revoke_id",
    "unrevoke_id",
    # Models
    "DecodedMetadata",
    "IdentifierContext",
    "ParsedIdentifier",
    "VerificationReason",
    "VerificationResult",
    "get_default_context",
    "reset_default_context",
]
