"""
Tests for the entropy pool.
"""

import threading
from unittest.mock import patch

import pytest

from sigid.core.security import EntropyPool


class TestEntropyPoolBounds:
    """Tests for pool sizing."""

    def test_prefilled_to_max(self):
        pool = EntropyPool(min_size=2, max_size=5)
        assert len(pool) == 5

    def test_no_prefill(self):
        pool = EntropyPool(min_size=2, max_size=5, prefill=False)
        assert len(pool) == 0

    def test_invalid_bounds(self):
        with pytest.raises(ValueError, match="Invalid pool bounds"):
            EntropyPool(min_size=10, max_size=5)

    def test_refill_is_idempotent(self):
        pool = EntropyPool(min_size=2, max_size=5)
        assert pool.refill() == 0
        assert pool.refill() == 0
        assert len(pool) == 5

    def test_refill_tops_up(self):
        pool = EntropyPool(min_size=0, max_size=5)
        pool.take(16)
        pool.take(16)
        assert pool.refill() == 2


class TestEntropyPoolTake:
    """Tests for withdrawing bytes."""

    def test_take_length(self):
        pool = EntropyPool(min_size=1, max_size=3)
        assert len(pool.take(10)) == 10
        assert len(pool.take(64)) == 64

    def test_take_consumes_block(self):
        pool = EntropyPool(min_size=0, max_size=3)
        pool.take(8)
        assert len(pool) == 2

    def test_blocks_never_reused(self):
        pool = EntropyPool(min_size=0, max_size=10)
        draws = [pool.take(64) for _ in range(10)]
        assert len(set(draws)) == 10

    def test_large_request_bypasses_pool(self):
        pool = EntropyPool(min_size=1, max_size=3)
        data = pool.take(200)
        assert len(data) == 200
        assert len(pool) == 3

    def test_low_water_mark_triggers_refill(self):
        pool = EntropyPool(min_size=3, max_size=4)
        pool.take(8)
        pool.take(8)
        # Below min_size (2 < 3): next take refills to max before withdrawing
        pool.take(8)
        assert len(pool) == 3

    def test_empty_pool_falls_back_to_direct_draw(self):
        pool = EntropyPool(min_size=0, max_size=1, prefill=False)
        with patch("sigid.core.security.entropy.secrets.token_bytes", return_value=b"z" * 8) as tb:
            assert pool.take(8) == b"z" * 8
        tb.assert_called_once_with(8)

    def test_concurrent_takes_stay_in_bounds(self):
        pool = EntropyPool(min_size=2, max_size=8)
        errors: list[Exception] = []

        def worker():
            try:
                for _ in range(200):
                    assert len(pool.take(32)) == 32
                    assert 0 <= len(pool) <= 8
            except Exception as e:  # pragma: no cover - surfaced below
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []


class TestEntropyPoolMix:
    """Tests for mixing caller-supplied bytes."""

    def test_mix_keeps_size_bounded(self):
        pool = EntropyPool(min_size=1, max_size=3)
        pool.mix(b"extra entropy")
        assert len(pool) <= 3

    def test_mix_adds_block_when_room(self):
        pool = EntropyPool(min_size=0, max_size=3)
        pool.take(8)
        pool.take(8)
        pool.mix(b"x")
        # One block consumed as the mixing base, one mixed block added
        assert len(pool) == 1
