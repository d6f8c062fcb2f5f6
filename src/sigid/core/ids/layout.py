"""
Identifier layout: length budget and checksum spans.

plan_identifier() is the single place where a config is turned into concrete
sizes and offsets. Generation and parsing both work from the same
IdentifierPlan, so insertion and extraction can never disagree about where
a checksum block lives.

Body layout for a plan (before separators and framing):

    content  = core (core_length) + metadata (metadata.total)
    checksummed = content with checksum blocks inserted at checksum_spans
    body     = checksummed with the marker halves embedded (if enabled)
"""

import logging
from dataclasses import dataclass

from sigid.core.config.models import ChecksumPosition, IdentifierConfig
from sigid.core.exceptions import ConfigurationError, InsufficientLengthError
from sigid.core.ids.charset import (
    BASE36_DIGITS,
    BASE64URL,
    HEX_DIGITS,
    MIN_RECOMMENDED_ALPHABET,
    select_alphabet,
)
from sigid.core.ids.formatter import MARKER_LENGTH, apply_case
from sigid.core.ids.metadata import MetadataPlan, plan_metadata

logger = logging.getLogger(__name__)

MIN_LENGTH = 8
MIN_CORE_LENGTH = 8
MAX_RECOMMENDED_LENGTH = 256
MAX_RECOMMENDED_SEPARATOR = 3


@dataclass(frozen=True)
class Span:
    """A run of ``length`` characters starting at ``offset``."""

    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class IdentifierPlan:
    """
    Concrete sizes and offsets derived from an IdentifierConfig.

    Attributes:
        config: The validated config
        alphabet: Payload alphabet (before the case transform)
        effective_length: Requested length after the floor at MIN_LENGTH
        metadata: Per-feature metadata widths
        core_length: Characters of core payload
        checksum_spans: Final offset of every checksum block in the
            checksummed string
        marker_length: Characters of steganographic marker (0 or 8)
    """

    config: IdentifierConfig
    alphabet: str
    effective_length: int
    metadata: MetadataPlan
    core_length: int
    checksum_spans: tuple[Span, ...]
    marker_length: int

    @property
    def content_length(self) -> int:
        return self.core_length + self.metadata.total

    @property
    def checksum_length(self) -> int:
        return sum(span.length for span in self.checksum_spans)

    @property
    def body_length(self) -> int:
        """Length of the identifier without separators and framing."""
        return self.content_length + self.checksum_length + self.marker_length


def checksum_spans(
    position: ChecksumPosition,
    content_length: int,
    count: int,
    block_length: int,
) -> tuple[Span, ...]:
    """
    Offsets of checksum blocks in the checksummed string.

    Block ``i`` starts at ``base_i + i * block_length`` where the base is 0
    for ``start``, ``content_length // 2`` for ``middle``, ``content_length``
    for ``end``, or the i-th declared offset. The ``i * block_length`` term
    accounts for the blocks already inserted to its left, so the same spans
    serve insertion (left to right) and extraction.

    Example:
        >>> checksum_spans([2, 5], content_length=10, count=2, block_length=3)
        (Span(offset=2, length=3), Span(offset=8, length=3))
    """
    if isinstance(position, list):
        bases = list(position)
    elif position == "start":
        bases = [0] * count
    elif position == "middle":
        bases = [content_length // 2] * count
    else:
        bases = [content_length] * count
    return tuple(Span(base + i * block_length, block_length) for i, base in enumerate(bases))


def _advise(config: IdentifierConfig, message: str) -> None:
    if config.strict:
        raise ConfigurationError(message)
    logger.warning(message)


def body_charset(config: IdentifierConfig, alphabet: str, metadata: MetadataPlan) -> set[str]:
    """Every character that can appear in an identifier body under ``config``."""
    chars = set(apply_case(alphabet, config.case))
    security = config.security
    if metadata.timestamp or metadata.counter or metadata.expiry:
        chars.update(BASE36_DIGITS)
    if metadata.geo or metadata.custom or security.steganography:
        chars.update(BASE64URL)
    if metadata.device:
        chars.update(HEX_DIGITS)
    if config.checksum:
        chars.update(HEX_DIGITS.upper())
    return chars


def _validate_separator(config: IdentifierConfig, alphabet: str, metadata: MetadataPlan) -> None:
    separator = config.separator
    if not separator:
        return
    if len(separator) > MAX_RECOMMENDED_SEPARATOR:
        _advise(
            config,
            f"Separator {separator!r} is longer than {MAX_RECOMMENDED_SEPARATOR} characters",
        )
    overlap = sorted(set(separator) & body_charset(config, alphabet, metadata))
    if overlap:
        raise ConfigurationError(
            f"Separator {separator!r} contains characters that can occur in the "
            f"identifier body: {''.join(overlap)!r}",
            separator=separator,
        )


def _validate_case_mapping(config: IdentifierConfig, alphabet: str) -> None:
    # The core is cased after encoding, so every symbol must case-map 1:1.
    unstable = [ch for ch in alphabet if len(apply_case(ch, config.case)) != 1]
    if unstable:
        raise ConfigurationError(
            f"Alphabet characters {''.join(unstable)!r} change length under "
            f"case={config.case.value!r}",
            characters=unstable,
            case=config.case.value,
        )


def _validate_positions(config: IdentifierConfig, content_length: int) -> None:
    position = config.checksum_position
    if not isinstance(position, list):
        return
    if len(position) != config.checksum_count:
        raise ConfigurationError(
            f"checksum_position lists {len(position)} offsets but checksum_count "
            f"is {config.checksum_count}"
        )
    out_of_bounds = [p for p in position if p >= content_length]
    if out_of_bounds:
        raise ConfigurationError(
            f"Checksum positions {out_of_bounds} are out of bounds for content "
            f"length {content_length}",
            positions=out_of_bounds,
            content_length=content_length,
        )


def plan_identifier(config: IdentifierConfig) -> IdentifierPlan:
    """
    Validate ``config`` and compute its layout.

    All configuration errors surface here, before any cryptographic work.
    Advisory warnings (short or very long length, small alphabet, long
    separator) are logged, or raised when ``config.strict`` is set.

    Raises:
        ConfigurationError: If the config cannot produce a valid identifier
        InsufficientLengthError: If metadata, checksums and marker leave
            fewer than MIN_CORE_LENGTH core characters
    """
    security = config.security

    if config.mode.requires_secret and not config.secret:
        raise ConfigurationError(
            f"Secret is required for mode: {config.mode.value}", mode=config.mode.value
        )

    alphabet = select_alphabet(security.avoid_ambiguous_chars, security.enforce_charset)
    _validate_case_mapping(config, alphabet)
    if len(alphabet) < MIN_RECOMMENDED_ALPHABET:
        _advise(
            config,
            f"Alphabet has {len(alphabet)} symbols; at least "
            f"{MIN_RECOMMENDED_ALPHABET} are recommended for adequate entropy",
        )

    effective_length = config.length
    if effective_length < MIN_LENGTH:
        _advise(config, f"Length {config.length} is below the minimum of {MIN_LENGTH}")
        effective_length = MIN_LENGTH
    elif effective_length > MAX_RECOMMENDED_LENGTH:
        _advise(
            config,
            f"Length {config.length} is unusually long (over {MAX_RECOMMENDED_LENGTH})",
        )

    if security.steganography and not security.hidden_data:
        raise ConfigurationError("hidden_data is required when steganography is enabled")

    metadata = plan_metadata(security)
    _validate_separator(config, alphabet, metadata)

    checksum_total = config.checksum_total_length
    marker_length = MARKER_LENGTH if security.steganography else 0
    core_length = effective_length - metadata.total - checksum_total - marker_length

    if core_length < MIN_CORE_LENGTH:
        if not config.allow_overflow:
            raise InsufficientLengthError(
                requested_length=effective_length,
                metadata_length=metadata.total,
                checksum_length=checksum_total,
                marker_length=marker_length,
                minimum_core_length=MIN_CORE_LENGTH,
            )
        logger.warning(
            "Core payload floored at %d characters; identifier will exceed length %d",
            MIN_CORE_LENGTH,
            effective_length,
        )
        core_length = MIN_CORE_LENGTH

    content_length = core_length + metadata.total
    spans: tuple[Span, ...] = ()
    if config.checksum:
        _validate_positions(config, content_length)
        spans = checksum_spans(
            config.checksum_position,
            content_length,
            config.checksum_count,
            config.checksum_length,
        )

    return IdentifierPlan(
        config=config,
        alphabet=alphabet,
        effective_length=effective_length,
        metadata=metadata,
        core_length=core_length,
        checksum_spans=spans,
        marker_length=marker_length,
    )
