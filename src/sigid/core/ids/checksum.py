"""
Checksum blocks: compute, insert, split and verify.

Block ``i`` is the first ``block_length`` hex characters, uppercased, of
HMAC(secret, content + str(i)) or, without a secret, hash(content + str(i)).
Placement always goes through layout spans so that insert and split stay
exact inverses.
"""

from collections.abc import Sequence

from sigid.core.config.models import Algorithm
from sigid.core.exceptions import MalformedIdentifierError
from sigid.core.ids.crypto import hash_data, hmac_sign, timing_safe_equal
from sigid.core.ids.layout import Span


def compute_checksums(
    content: str,
    count: int,
    block_length: int,
    algorithm: Algorithm,
    secret: str = "",
) -> list[str]:
    """
    Compute ``count`` checksum blocks over ``content``.

    Example:
        >>> blocks = compute_checksums("ABCDEFGH", 2, 4, Algorithm.SHA256)
        >>> [len(b) for b in blocks]
        [4, 4]
    """
    blocks = []
    for i in range(count):
        data = content + str(i)
        digest = hmac_sign(data, secret, algorithm) if secret else hash_data(data, algorithm)
        blocks.append(digest.hex()[:block_length].upper())
    return blocks


def insert_checksums(content: str, blocks: Sequence[str], spans: Sequence[Span]) -> str:
    """Insert ``blocks`` left to right at their span offsets."""
    if len(blocks) != len(spans):
        raise ValueError(f"Got {len(blocks)} checksum blocks for {len(spans)} spans")
    result = content
    for block, span in zip(blocks, spans):
        if len(block) != span.length:
            raise ValueError(f"Checksum block {block!r} does not fit span of {span.length}")
        if span.offset > len(result):
            raise ValueError(f"Checksum offset {span.offset} is past end of {len(result)}")
        result = result[: span.offset] + block + result[span.offset :]
    return result


def split_checksums(text: str, spans: Sequence[Span]) -> tuple[str, list[str]]:
    """
    Inverse of insert_checksums().

    Returns:
        Tuple of (content, blocks)

    Raises:
        MalformedIdentifierError: If a span does not fit inside ``text``
    """
    blocks: list[str] = []
    pieces: list[str] = []
    cursor = 0
    for span in spans:
        if span.end > len(text):
            raise MalformedIdentifierError(
                f"Checksum span {span.offset}:{span.end} exceeds identifier body of {len(text)}"
            )
        pieces.append(text[cursor : span.offset])
        blocks.append(text[span.offset : span.end])
        cursor = span.end
    pieces.append(text[cursor:])
    return "".join(pieces), blocks


def checksums_match(
    content: str,
    blocks: Sequence[str],
    count: int,
    block_length: int,
    algorithm: Algorithm,
    secret: str = "",
) -> bool:
    """
    Recompute expected blocks and compare each in constant time.

    Fails closed: a wrong block count or any single mismatch is False.
    """
    if len(blocks) != count:
        return False
    expected = compute_checksums(content, count, block_length, algorithm, secret)
    results = [timing_safe_equal(got.upper(), want) for got, want in zip(blocks, expected)]
    return all(results)
