"""
SIMULATION ONLY: hash-based stand-ins for post-quantum algorithm names.

``kyber768`` and ``dilithium3`` are accepted as algorithm names for
compatibility, but no lattice cryptography happens here. The payload is a
signature-shaped SHAKE-256/BLAKE2b digest under a throwaway random key. It is
exactly as strong as the hash construction and carries no post-quantum
guarantee; treat it like ``hash`` mode. Nothing verifies these digests
later: they only feed the payload encoding.
"""

import hashlib
import logging
import secrets

from sigid.core.config.models import Algorithm

logger = logging.getLogger(__name__)

SIMULATED_SIGNATURE_LENGTH = 64

# Key sizes loosely echo the real schemes; they mean nothing cryptographically.
_KEY_SIZES = {Algorithm.KYBER768: 96, Algorithm.DILITHIUM3: 128}
_STRETCH_ROUNDS = {Algorithm.KYBER768: 3, Algorithm.DILITHIUM3: 5}


def simulated_key(algorithm: Algorithm) -> bytes:
    """Throwaway random key stretched with SHAKE-256 and BLAKE2b."""
    key_size = _KEY_SIZES[algorithm]
    key = hashlib.shake_256(secrets.token_bytes(key_size * 2)).digest(key_size)
    for i in range(_STRETCH_ROUNDS[algorithm]):
        shake = hashlib.shake_256()
        shake.update(key)
        shake.update(f"round-{i}-{algorithm.value}".encode("ascii"))
        shake.update(secrets.token_bytes(32))
        key = shake.digest(key_size)
    return hashlib.blake2b(key + algorithm.value.encode("ascii")).digest()[:key_size]


def simulated_signature(data: bytes, algorithm: Algorithm, key: bytes | None = None) -> bytes:
    """
    Signature-shaped digest of ``data``. Not a signature.

    Args:
        data: Bytes to "sign"
        algorithm: KYBER768 or DILITHIUM3
        key: Key from simulated_key(); a fresh one is drawn when omitted

    Raises:
        ValueError: If algorithm is not one of the simulated names
    """
    if not algorithm.is_simulated:
        raise ValueError(f"{algorithm.value} is not a simulated algorithm")

    logger.warning(
        "Algorithm %s is a hash-based simulation and provides no post-quantum security",
        algorithm.value,
    )
    if key is None:
        key = simulated_key(algorithm)

    first = hashlib.shake_256(data + key).digest(SIMULATED_SIGNATURE_LENGTH)
    second = hashlib.blake2b(first + key + data).digest()
    shake = hashlib.shake_256()
    shake.update(second)
    shake.update(algorithm.value.encode("ascii"))
    shake.update(key[:32])
    return shake.digest(SIMULATED_SIGNATURE_LENGTH)

