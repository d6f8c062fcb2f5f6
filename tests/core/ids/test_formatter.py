"""
Tests for case, separators, framing and the steganographic marker.
"""

import pytest

from sigid.core.config.models import CaseStyle
from sigid.core.exceptions import MalformedIdentifierError
from sigid.core.ids.formatter import (
    MARKER_LENGTH,
    apply_case,
    decode_marker,
    embed_marker,
    encode_marker,
    extract_marker,
    insert_separators,
    strip_separators,
    unwrap,
    wrap,
)


class TestApplyCase:
    """Tests for apply_case."""

    def test_upper(self):
        assert apply_case("aBc1", CaseStyle.UPPER) == "ABC1"

    def test_lower(self):
        assert apply_case("aBc1", CaseStyle.LOWER) == "abc1"

    def test_mixed_unchanged(self):
        assert apply_case("aBc1", CaseStyle.MIXED) == "aBc1"


class TestSeparators:
    """Tests for insert_separators / strip_separators."""

    def test_chunks_by_stride(self):
        assert insert_separators("ABCDEFGHIJ", "-", 4) == "ABCD-EFGH-IJ"

    def test_exact_multiple_has_no_trailing_separator(self):
        assert insert_separators("ABCDEFGH", "-", 4) == "ABCD-EFGH"

    def test_multi_char_separator(self):
        assert insert_separators("ABCDEF", "::", 2) == "AB::CD::EF"

    def test_no_separator(self):
        assert insert_separators("ABCDEF", "", 2) == "ABCDEF"

    def test_strip_inverts_insert(self):
        content = "ABCDEFGHIJKLMNOPQRS"
        assert strip_separators(insert_separators(content, "~", 5), "~") == content


class TestFraming:
    """Tests for wrap / unwrap."""

    def test_prefix_and_suffix(self):
        assert wrap("CORE", "USER", "X", "-") == "USER-CORE-X"

    def test_prefix_without_separator(self):
        assert wrap("CORE", "USER", "", "") == "USERCORE"

    def test_empty_framing(self):
        assert wrap("CORE", "", "", "-") == "CORE"

    def test_unwrap_inverts_wrap(self):
        assert unwrap(wrap("A-B-C", "pre", "suf", "-"), "pre", "suf", "-") == "A-B-C"

    def test_unwrap_missing_prefix(self):
        with pytest.raises(MalformedIdentifierError, match="does not start with"):
            unwrap("ORDER-CORE", "USER", "", "-")

    def test_unwrap_missing_suffix(self):
        with pytest.raises(MalformedIdentifierError, match="does not end with"):
            unwrap("CORE-X", "", "Y", "-")

    def test_prefix_requires_separator_occurrence(self):
        with pytest.raises(MalformedIdentifierError):
            unwrap("USERCORE", "USER", "", "-")


class TestMarker:
    """Tests for the steganographic marker."""

    def test_marker_is_eight_chars(self):
        assert len(encode_marker("hello")) == MARKER_LENGTH
        assert len(encode_marker("")) == MARKER_LENGTH

    def test_marker_round_trip(self):
        assert decode_marker(encode_marker("tenant")) == "tenant"

    def test_marker_truncated_to_six_bytes(self):
        assert decode_marker(encode_marker("tenant-42")) == "tenant"

    def test_embed_positions(self):
        body = "ABCDEFGHI"
        assert embed_marker(body, "1234wxyz") == "ABC1234DEFwxyzGHI"

    def test_extract_inverts_embed(self):
        for body in ("", "A", "ABCDEFGHIJ", "0123456789ABCDEFGHIJK"):
            marker = encode_marker("x")
            assert extract_marker(embed_marker(body, marker)) == (body, marker)

    def test_extract_too_short(self):
        with pytest.raises(MalformedIdentifierError, match="too short"):
            extract_marker("ABC")

    def test_corrupt_marker(self):
        with pytest.raises(MalformedIdentifierError, match="corrupt"):
            decode_marker("ab")
