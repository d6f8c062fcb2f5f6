"""
Formatting steps applied after checksums: steganographic marker, separators
and prefix/suffix framing. The case transform lives here too, although it
runs earlier, on the core payload only.

Every ``embed``/``insert``/``wrap`` function has an exact left inverse here
for the same arguments.
"""

import base64
import binascii

from sigid.core.config.models import CaseStyle
from sigid.core.exceptions import MalformedIdentifierError

MARKER_BYTES = 6
MARKER_LENGTH = 8


def apply_case(text: str, case: CaseStyle) -> str:
    """Upper- or lower-case ``text``; ``mixed`` leaves it unchanged."""
    if case == CaseStyle.UPPER:
        return text.upper()
    if case == CaseStyle.LOWER:
        return text.lower()
    return text


def insert_separators(content: str, separator: str, stride: int) -> str:
    """
    Join ``stride``-sized runs of ``content`` with ``separator``.

    Example:
        >>> insert_separators("ABCDEFGHIJ", "-", 4)
        'ABCD-EFGH-IJ'
    """
    if not separator:
        return content
    return separator.join(content[i : i + stride] for i in range(0, len(content), stride))


def strip_separators(text: str, separator: str) -> str:
    if not separator:
        return text
    return text.replace(separator, "")


def wrap(content: str, prefix: str, suffix: str, separator: str) -> str:
    """Attach prefix and suffix, each joined by one separator occurrence."""
    if prefix:
        content = f"{prefix}{separator}{content}"
    if suffix:
        content = f"{content}{separator}{suffix}"
    return content


def unwrap(identifier: str, prefix: str, suffix: str, separator: str) -> str:
    """
    Remove the framing added by wrap().

    Raises:
        MalformedIdentifierError: If the expected prefix or suffix is missing
    """
    body = identifier
    if prefix:
        head = prefix + separator
        if not body.startswith(head):
            raise MalformedIdentifierError(f"Identifier does not start with {head!r}")
        body = body[len(head) :]
    if suffix:
        tail = separator + suffix
        if not body.endswith(tail):
            raise MalformedIdentifierError(f"Identifier does not end with {tail!r}")
        body = body[: len(body) - len(tail)]
    return body


def encode_marker(hidden_data: str) -> str:
    """8-char base64url marker from the first 6 UTF-8 bytes of ``hidden_data``."""
    raw = hidden_data.encode("utf-8")[:MARKER_BYTES].ljust(MARKER_BYTES, b"\x00")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_marker(marker: str) -> str:
    """
    Raises:
        MalformedIdentifierError: If the marker is not valid base64url
    """
    try:
        raw = base64.urlsafe_b64decode(marker)
    except (binascii.Error, ValueError) as e:
        raise MalformedIdentifierError(f"Steganographic marker is corrupt: {e}") from e
    return raw.rstrip(b"\x00").decode("utf-8", errors="ignore")


def _marker_cuts(body_length: int) -> tuple[int, int]:
    return body_length // 3, 2 * body_length // 3


def embed_marker(body: str, marker: str) -> str:
    """
    Hide ``marker`` in two halves at one and two thirds of ``body``.

    This is obfuscation, not security: anyone with the config can read it.
    """
    half = len(marker) // 2
    first, second = _marker_cuts(len(body))
    return body[:first] + marker[:half] + body[first:second] + marker[half:] + body[second:]


def extract_marker(text: str, marker_length: int = MARKER_LENGTH) -> tuple[str, str]:
    """
    Inverse of embed_marker().

    Returns:
        Tuple of (body, marker)
    """
    half = marker_length // 2
    rest = marker_length - half
    body_length = len(text) - marker_length
    if body_length < 0:
        raise MalformedIdentifierError("Identifier is too short to carry a marker")
    first, second = _marker_cuts(body_length)
    marker = text[first : first + half] + text[second + half : second + half + rest]
    body = text[:first] + text[first + half : second + half] + text[second + marker_length :]
    return body, marker
