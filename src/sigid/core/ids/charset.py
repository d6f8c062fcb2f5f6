"""
Alphabets and big-integer base encoding.

The core payload is produced by treating raw bytes as a big unsigned integer
and writing it in the base of the chosen alphabet. Metadata fragments use
fixed encodings (base36, hex, base64url) defined here as well, so the
separator check can tell which characters may appear in an identifier body.
"""

import secrets
import string
from collections import Counter

from sigid.core.exceptions import ConfigurationError

ALPHANUMERIC = string.ascii_uppercase + string.ascii_lowercase + string.digits

# No 0/O/o, 1/l/I/i
UNAMBIGUOUS = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789abcdefghjkmnpqrstuvwxyz"

BASE36_DIGITS = string.digits + string.ascii_lowercase
HEX_DIGITS = "0123456789abcdef"
BASE64URL = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-_"

MIN_RECOMMENDED_ALPHABET = 16


def select_alphabet(avoid_ambiguous: bool = False, enforce_charset: str | None = None) -> str:
    """
    Pick the payload alphabet.

    A custom alphabet wins over the ambiguity flag.

    Raises:
        ConfigurationError: If the custom alphabet has duplicates or fewer
            than two symbols
    """
    if enforce_charset:
        validate_alphabet(enforce_charset)
        return enforce_charset
    if avoid_ambiguous:
        return UNAMBIGUOUS
    return ALPHANUMERIC


def validate_alphabet(alphabet: str) -> None:
    """
    Reject alphabets that cannot encode unambiguously.

    Size below MIN_RECOMMENDED_ALPHABET is only advisory and is reported by
    the layout planner, not here.
    """
    if len(alphabet) < 2:
        raise ConfigurationError(
            f"Alphabet must contain at least 2 symbols, got {len(alphabet)}",
            alphabet=alphabet,
        )
    duplicates = sorted(ch for ch, n in Counter(alphabet).items() if n > 1)
    if duplicates:
        raise ConfigurationError(
            f"Alphabet contains duplicate characters: {''.join(duplicates)!r}",
            duplicates=duplicates,
        )


def encode_bytes(data: bytes, alphabet: str, target_length: int) -> str:
    """
    Encode bytes as exactly ``target_length`` characters of ``alphabet``.

    The bytes are read as a big-endian unsigned integer and written
    most-significant digit first. When the integer runs out of digits the
    result is left-padded with securely drawn symbols (not the zero symbol,
    which would bias the leading characters). When it has more digits than
    needed, the rightmost ``target_length`` are kept.

    Example:
        >>> encode_bytes(b"\\xff", "0123456789", 3)
        '255'
    """
    if target_length <= 0:
        return ""

    base = len(alphabet)
    num = int.from_bytes(data, "big")
    digits: list[str] = []

    while num > 0 and len(digits) < target_length:
        num, rem = divmod(num, base)
        digits.append(alphabet[rem])

    while len(digits) < target_length:
        digits.append(alphabet[secrets.randbelow(base)])

    return "".join(reversed(digits))


def to_base36(value: int, width: int) -> str:
    """
    Zero-padded lowercase base36 of exactly ``width`` characters.

    Raises:
        ValueError: If value is negative or does not fit in width
    """
    if value < 0:
        raise ValueError(f"Cannot encode negative value {value} in base36")
    digits: list[str] = []
    while value > 0:
        value, rem = divmod(value, 36)
        digits.append(BASE36_DIGITS[rem])
    if len(digits) > width:
        raise ValueError(f"Value does not fit in {width} base36 characters")
    return "".join(reversed(digits)).rjust(width, "0")


def from_base36(text: str) -> int:
    """Inverse of to_base36. Raises ValueError on non-base36 input."""
    if not text or any(ch not in BASE36_DIGITS for ch in text):
        raise ValueError(f"Not a lowercase base36 string: {text!r}")
    return int(text, 36)
