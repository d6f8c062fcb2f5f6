"""
Core payload generation strategies.

Every mode starts from fresh random bytes, so no mode is deterministic; the
secret only changes how those bytes are mixed. Dispatch is flat over
IdentifierConfig.mode:

    random       2 x length random bytes (+ 3 blocks enhanced, + 32 bytes reseed)
    hash         hash(random64 + metadata), optionally hashed again
    hmac         HMAC(key, random64 + salt + metadata)
    hybrid       first half random, second half hmac (with secret) or hash
    hmac-hash    HMAC(key, hash(random64 + metadata))
    memory-hard  PBKDF2-HMAC-SHA512(hex(random64) + metadata, secret)

``key`` is the HKDF-derived key when a pepper is set, else the raw secret.
With a simulated algorithm name the digest additionally runs through the
labeled simulation in sigid.core.ids.simulated.
"""

import logging
from typing import Callable

from sigid.core.config.models import IdentifierConfig, Mode
from sigid.core.ids.charset import encode_bytes
from sigid.core.ids.crypto import (
    MEMORY_HARD_ITERATIONS,
    STANDARD_ITERATIONS,
    effective_key,
    hash_data,
    hmac_sign,
    memory_hard_derive,
    random_bytes,
)
from sigid.core.ids.simulated import simulated_signature
from sigid.core.security.entropy import EntropyPool

logger = logging.getLogger(__name__)

RANDOM_BLOCK_SIZE = 64
ENHANCED_EXTRA_BLOCKS = 3
RESEED_BYTES = 32


class PayloadGenerator:
    """
    Produces core payload strings for a config.

    Random blocks are drawn from the injected entropy pool; draws larger
    than a pool block go straight to the CSPRNG.

    Example:
        >>> generator = PayloadGenerator(EntropyPool())
        >>> len(generator.generate(IdentifierConfig(), ALPHANUMERIC, 16))
        16
    """

    def __init__(self, entropy_pool: EntropyPool) -> None:
        self.entropy_pool = entropy_pool
        self._strategies: dict[Mode, Callable[[IdentifierConfig, str, str, int, str], str]] = {
            Mode.RANDOM: self._random,
            Mode.HASH: self._hash,
            Mode.HMAC: self._hmac,
            Mode.HYBRID: self._hybrid,
            Mode.HMAC_HASH: self._hmac_hash,
            Mode.MEMORY_HARD: self._memory_hard,
        }

    def generate(
        self,
        config: IdentifierConfig,
        alphabet: str,
        length: int,
        embed_data: str = "",
        extra: str = "",
    ) -> str:
        """
        Generate ``length`` payload characters.

        Args:
            config: Validated generation config
            alphabet: Payload alphabet
            length: Number of characters to produce
            embed_data: Metadata fragment mixed into derived modes
            extra: Additional input, e.g. a collision-retry fragment
        """
        if length <= 0:
            return ""
        strategy = self._strategies[config.mode]
        return strategy(config, alphabet, embed_data, length, extra)

    def _block(self) -> bytes:
        return self.entropy_pool.take(RANDOM_BLOCK_SIZE)

    def _finish(self, config: IdentifierConfig, digest: bytes) -> bytes:
        if config.algorithm.is_simulated:
            return simulated_signature(digest, config.algorithm)
        return digest

    def _digest(self, config: IdentifierConfig, data: bytes) -> bytes:
        digest = hash_data(data, config.algorithm)
        if config.security.double_hash:
            digest = hash_data(digest, config.algorithm)
        return digest

    def _key(self, config: IdentifierConfig) -> bytes:
        return effective_key(config.secret, config.salt, config.pepper, config.algorithm)

    def _random(
        self, config: IdentifierConfig, alphabet: str, embed_data: str, length: int, extra: str
    ) -> str:
        data = self.entropy_pool.take(length * 2)
        if config.security.enhance_entropy:
            for _ in range(ENHANCED_EXTRA_BLOCKS):
                data += self._block()
        if config.security.reseed:
            data += random_bytes(RESEED_BYTES)
        if extra:
            data += extra.encode("utf-8")
        return encode_bytes(data, alphabet, length)

    def _hash(
        self, config: IdentifierConfig, alphabet: str, embed_data: str, length: int, extra: str
    ) -> str:
        data = self._block() + (embed_data + extra).encode("utf-8")
        digest = self._finish(config, self._digest(config, data))
        return encode_bytes(digest, alphabet, length)

    def _hmac(
        self, config: IdentifierConfig, alphabet: str, embed_data: str, length: int, extra: str
    ) -> str:
        data = self._block() + (config.salt + embed_data + extra).encode("utf-8")
        digest = self._finish(config, hmac_sign(data, self._key(config), config.algorithm))
        return encode_bytes(digest, alphabet, length)

    def _hybrid(
        self, config: IdentifierConfig, alphabet: str, embed_data: str, length: int, extra: str
    ) -> str:
        first_length = (length + 1) // 2
        first = self._random(config, alphabet, embed_data, first_length, extra)
        derive = self._hmac if config.secret else self._hash
        second = derive(config, alphabet, embed_data, length - first_length, extra)
        return first + second

    def _hmac_hash(
        self, config: IdentifierConfig, alphabet: str, embed_data: str, length: int, extra: str
    ) -> str:
        data = self._block() + (embed_data + extra).encode("utf-8")
        inner = self._digest(config, data)
        digest = self._finish(config, hmac_sign(inner, self._key(config), config.algorithm))
        return encode_bytes(digest, alphabet, length)

    def _memory_hard(
        self, config: IdentifierConfig, alphabet: str, embed_data: str, length: int, extra: str
    ) -> str:
        iterations = (
            MEMORY_HARD_ITERATIONS if config.security.memory_hard else STANDARD_ITERATIONS
        )
        logger.debug("Memory-hard derivation with %d iterations", iterations)
        data = self._block().hex() + embed_data + extra
        digest = self._finish(config, memory_hard_derive(data, config.secret, iterations))
        return encode_bytes(digest, alphabet, length)
