"""
Tests for payload generation strategies and the simulated algorithms.
"""

import logging
from unittest.mock import Mock, patch

import pytest

from sigid.core.config.models import Algorithm, IdentifierConfig, Mode
from sigid.core.ids import crypto, generate_random_salt
from sigid.core.ids.charset import ALPHANUMERIC, UNAMBIGUOUS
from sigid.core.ids.payload import PayloadGenerator
from sigid.core.ids.simulated import (
    SIMULATED_SIGNATURE_LENGTH,
    simulated_key,
    simulated_signature,
)
from sigid.core.security import EntropyPool


@pytest.fixture
def payloads():
    return PayloadGenerator(EntropyPool(min_size=2, max_size=4))


class TestModes:
    """Every mode produces exactly the requested length."""

    @pytest.mark.parametrize("mode", list(Mode))
    @pytest.mark.parametrize("length", [1, 8, 31, 90])
    def test_length_and_alphabet(self, payloads, mode, length):
        config = IdentifierConfig(mode=mode, secret="s3cret")
        result = payloads.generate(config, UNAMBIGUOUS, length, embed_data="meta")
        assert len(result) == length
        assert set(result) <= set(UNAMBIGUOUS)

    def test_zero_length(self, payloads):
        assert payloads.generate(IdentifierConfig(), ALPHANUMERIC, 0) == ""

    def test_random_mode_varies(self, payloads):
        config = IdentifierConfig()
        results = {payloads.generate(config, ALPHANUMERIC, 24) for _ in range(20)}
        assert len(results) == 20

    def test_hmac_mode_is_not_deterministic(self, payloads):
        config = IdentifierConfig(mode="hmac", secret="k", salt="s", pepper="p")
        a = payloads.generate(config, ALPHANUMERIC, 24, "meta")
        b = payloads.generate(config, ALPHANUMERIC, 24, "meta")
        assert a != b

    @pytest.mark.parametrize(
        "algorithm", [a for a in Algorithm if not a.is_simulated]
    )
    def test_hash_mode_every_algorithm(self, payloads, algorithm):
        config = IdentifierConfig(mode="hash", algorithm=algorithm, security={"double_hash": True})
        assert len(payloads.generate(config, ALPHANUMERIC, 40)) == 40


class TestEntropySources:
    """Tests for where random bytes come from."""

    def test_random_mode_draws_twice_length(self):
        pool = Mock()
        pool.take.return_value = b"\x01" * 64
        PayloadGenerator(pool).generate(IdentifierConfig(), ALPHANUMERIC, 16)
        pool.take.assert_called_once_with(32)

    def test_enhanced_entropy_draws_three_extra_blocks(self):
        pool = Mock()
        pool.take.return_value = b"\x01" * 64
        config = IdentifierConfig(security={"enhance_entropy": True})
        PayloadGenerator(pool).generate(config, ALPHANUMERIC, 16)
        assert pool.take.call_count == 4

    def test_reseed_adds_direct_draw(self):
        pool = Mock()
        pool.take.return_value = b"\x01" * 32
        config = IdentifierConfig(security={"reseed": True})
        with patch("sigid.core.ids.payload.random_bytes", return_value=b"\x02" * 32) as rb:
            PayloadGenerator(pool).generate(config, ALPHANUMERIC, 16)
        rb.assert_called_once_with(32)

    def test_hash_mode_uses_one_block(self):
        pool = Mock()
        pool.take.return_value = b"\x01" * 64
        PayloadGenerator(pool).generate(IdentifierConfig(mode="hash"), ALPHANUMERIC, 16)
        pool.take.assert_called_once_with(64)


class TestKeyedModes:
    """Tests for key selection in HMAC-based modes."""

    def test_pepper_uses_derived_key(self, payloads):
        config = IdentifierConfig(mode="hmac", secret="k", pepper="p", salt="s")
        with patch(
            "sigid.core.ids.payload.effective_key", wraps=crypto.effective_key
        ) as key_fn:
            payloads.generate(config, ALPHANUMERIC, 16)
        key_fn.assert_called_once_with("k", "s", "p", Algorithm.SHA256)

    def test_effective_key_without_pepper_is_raw_secret(self):
        assert crypto.effective_key("k", "s", "", Algorithm.SHA256) == b"k"

    def test_derived_key_length(self):
        assert len(crypto.derive_key("k", "s", "p", Algorithm.SHA512)) == 32

    def test_derived_key_depends_on_pepper(self):
        a = crypto.derive_key("k", "", "p1", Algorithm.SHA256)
        b = crypto.derive_key("k", "", "p2", Algorithm.SHA256)
        assert a != b

    def test_random_salt(self):
        salt = generate_random_salt()
        assert len(salt) == 64
        int(salt, 16)
        assert salt != generate_random_salt()
        assert len(generate_random_salt(8)) == 16

    def test_random_salt_feeds_key_derivation(self):
        a = crypto.derive_key("k", generate_random_salt(), "p", Algorithm.SHA256)
        b = crypto.derive_key("k", generate_random_salt(), "p", Algorithm.SHA256)
        assert a != b

    def test_hybrid_uses_hmac_with_secret(self, payloads):
        config = IdentifierConfig(mode="hybrid", secret="k")
        with patch.object(payloads, "_hmac", wraps=payloads._hmac) as hmac_mode:
            result = payloads.generate(config, ALPHANUMERIC, 9)
        assert len(result) == 9
        hmac_mode.assert_called_once()
        assert hmac_mode.call_args.args[3] == 4

    def test_hybrid_uses_hash_without_secret(self, payloads):
        config = IdentifierConfig(mode="hybrid")
        with patch.object(payloads, "_hash", wraps=payloads._hash) as hash_mode:
            payloads.generate(config, ALPHANUMERIC, 10)
        hash_mode.assert_called_once()


class TestMemoryHard:
    """Tests for memory-hard derivation."""

    def test_standard_iterations(self, payloads):
        config = IdentifierConfig(mode="memory-hard", secret="k")
        with patch(
            "sigid.core.ids.payload.memory_hard_derive", return_value=b"\x05" * 64
        ) as derive:
            payloads.generate(config, ALPHANUMERIC, 16, "meta")
        data, secret, iterations = derive.call_args.args
        assert secret == "k"
        assert iterations == 10_000
        assert data.endswith("meta")
        assert len(data) == 128 + 4

    def test_memory_hard_flag_iterations(self, payloads):
        config = IdentifierConfig(mode="memory-hard", secret="k", security={"memory_hard": True})
        with patch(
            "sigid.core.ids.payload.memory_hard_derive", return_value=b"\x05" * 64
        ) as derive:
            payloads.generate(config, ALPHANUMERIC, 16)
        assert derive.call_args.args[2] == 100_000

    def test_pbkdf2_output_length(self):
        assert len(crypto.memory_hard_derive("data", "k", 1000)) == 64


class TestSimulatedAlgorithms:
    """Tests for the labeled post-quantum simulation."""

    def test_signature_length(self):
        sig = simulated_signature(b"data", Algorithm.KYBER768)
        assert len(sig) == SIMULATED_SIGNATURE_LENGTH

    def test_logs_simulation_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="sigid.core.ids.simulated"):
            simulated_signature(b"data", Algorithm.DILITHIUM3)
        assert "simulation" in caplog.text
        assert "no post-quantum security" in caplog.text

    def test_rejects_real_algorithm(self):
        with pytest.raises(ValueError, match="not a simulated algorithm"):
            simulated_signature(b"data", Algorithm.SHA256)

    def test_deterministic_for_explicit_key(self):
        key = simulated_key(Algorithm.DILITHIUM3)
        sig = simulated_signature(b"data", Algorithm.DILITHIUM3, key=key)
        assert sig == simulated_signature(b"data", Algorithm.DILITHIUM3, key=key)
        assert sig != simulated_signature(b"other", Algorithm.DILITHIUM3, key=key)

    def test_fresh_key_per_call(self):
        first = simulated_signature(b"data", Algorithm.KYBER768)
        assert first != simulated_signature(b"data", Algorithm.KYBER768)

    @pytest.mark.parametrize("algorithm", [Algorithm.KYBER768, Algorithm.DILITHIUM3])
    def test_payload_routes_through_simulation(self, payloads, algorithm):
        config = IdentifierConfig(mode="hash", algorithm=algorithm)
        with patch(
            "sigid.core.ids.payload.simulated_signature", wraps=simulated_signature
        ) as sim:
            result = payloads.generate(config, ALPHANUMERIC, 20)
        assert len(result) == 20
        sim.assert_called_once()

    def test_random_mode_skips_simulation(self, payloads):
        config = IdentifierConfig(algorithm="kyber768")
        with patch("sigid.core.ids.payload.simulated_signature") as sim:
            payloads.generate(config, ALPHANUMERIC, 20)
        sim.assert_not_called()
