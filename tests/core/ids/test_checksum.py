"""
Tests for checksum computation, placement and comparison.
"""

import hashlib
import hmac

import pytest

from sigid.core.config.models import Algorithm
from sigid.core.exceptions import MalformedIdentifierError
from sigid.core.ids.checksum import (
    checksums_match,
    compute_checksums,
    insert_checksums,
    split_checksums,
)
from sigid.core.ids.layout import Span


class TestComputeChecksums:
    """Tests for compute_checksums."""

    def test_unkeyed_matches_hash_of_content_and_index(self):
        blocks = compute_checksums("ABCDEFGH", 2, 4, Algorithm.SHA256)
        assert blocks == [
            hashlib.sha256(b"ABCDEFGH0").hexdigest()[:4].upper(),
            hashlib.sha256(b"ABCDEFGH1").hexdigest()[:4].upper(),
        ]

    def test_keyed_uses_hmac(self):
        blocks = compute_checksums("ABCDEFGH", 1, 6, Algorithm.SHA256, secret="k")
        expected = hmac.new(b"k", b"ABCDEFGH0", hashlib.sha256).hexdigest()[:6].upper()
        assert blocks == [expected]

    def test_uppercase_hex(self):
        for block in compute_checksums("xyz", 3, 8, Algorithm.SHA512):
            assert set(block) <= set("0123456789ABCDEF")

    @pytest.mark.parametrize("algorithm", list(Algorithm))
    def test_every_algorithm_supports_max_length(self, algorithm):
        [block] = compute_checksums("content", 1, 64, algorithm, secret="s")
        assert len(block) == 64

    def test_blocks_differ_by_index(self):
        a, b = compute_checksums("ABCDEFGH", 2, 16, Algorithm.SHA256)
        assert a != b


class TestInsertAndSplit:
    """Tests for insert_checksums / split_checksums."""

    def test_insert_at_end(self):
        assert insert_checksums("ABCD", ["X", "Y"], [Span(4, 1), Span(5, 1)]) == "ABCDXY"

    def test_insert_block_count_mismatch(self):
        with pytest.raises(ValueError, match="2 checksum blocks for 1 spans"):
            insert_checksums("ABCD", ["X", "Y"], [Span(4, 1)])

    def test_insert_wrong_block_length(self):
        with pytest.raises(ValueError, match="does not fit"):
            insert_checksums("ABCD", ["XY"], [Span(0, 1)])

    def test_insert_past_end(self):
        with pytest.raises(ValueError, match="past end"):
            insert_checksums("ABCD", ["X"], [Span(9, 1)])

    def test_split(self):
        content, blocks = split_checksums("01aa234bb56789", [Span(2, 2), Span(7, 2)])
        assert content == "0123456789"
        assert blocks == ["aa", "bb"]

    def test_split_no_spans(self):
        assert split_checksums("ABCD", []) == ("ABCD", [])

    def test_split_span_out_of_range(self):
        with pytest.raises(MalformedIdentifierError, match="exceeds identifier body"):
            split_checksums("ABC", [Span(2, 2)])


class TestChecksumsMatch:
    """Tests for checksums_match."""

    def test_matching(self):
        blocks = compute_checksums("ABCDEFGH", 2, 2, Algorithm.SHA256, "k")
        assert checksums_match("ABCDEFGH", blocks, 2, 2, Algorithm.SHA256, "k")

    def test_lowercase_blocks_accepted(self):
        blocks = [b.lower() for b in compute_checksums("ABCDEFGH", 1, 4, Algorithm.SHA256)]
        assert checksums_match("ABCDEFGH", blocks, 1, 4, Algorithm.SHA256)

    def test_wrong_secret(self):
        blocks = compute_checksums("ABCDEFGH", 1, 8, Algorithm.SHA256, "k")
        assert not checksums_match("ABCDEFGH", blocks, 1, 8, Algorithm.SHA256, "other")

    def test_content_changed(self):
        blocks = compute_checksums("ABCDEFGH", 1, 8, Algorithm.SHA256)
        assert not checksums_match("ABCDEFGX", blocks, 1, 8, Algorithm.SHA256)

    def test_wrong_block_count_fails_closed(self):
        blocks = compute_checksums("ABCDEFGH", 2, 4, Algorithm.SHA256)
        assert not checksums_match("ABCDEFGH", blocks[:1], 2, 4, Algorithm.SHA256)

    def test_one_bad_block_fails(self):
        good, other = compute_checksums("ABCDEFGH", 2, 4, Algorithm.SHA256)
        bad = "0000" if other != "0000" else "1111"
        assert not checksums_match("ABCDEFGH", [good, bad], 2, 4, Algorithm.SHA256)

    def test_truncated_block_fails(self):
        [block] = compute_checksums("ABCDEFGH", 1, 4, Algorithm.SHA256)
        assert not checksums_match("ABCDEFGH", [block[:3]], 1, 4, Algorithm.SHA256)
