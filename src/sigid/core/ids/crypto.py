"""
Thin wrappers over the cryptographic primitives used by the pipeline.

Hashing, HMAC, PBKDF2 and the CSPRNG come from the standard library; HKDF
comes from the ``cryptography`` package. Nothing here implements a primitive
itself.
"""

import hashlib
import hmac
import secrets
from typing import Any, Callable, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from sigid.core.config.models import Algorithm

BytesLike = Union[bytes, str]

HKDF_INFO = b"sigid-v1"
DERIVED_KEY_LENGTH = 32
MEMORY_HARD_ITERATIONS = 100_000
STANDARD_ITERATIONS = 10_000
MEMORY_HARD_KEY_LENGTH = 64
SHAKE_DIGEST_LENGTH = 64


def _to_bytes(data: BytesLike) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


def random_bytes(length: int) -> bytes:
    """Cryptographically secure random bytes."""
    return secrets.token_bytes(length)


def generate_random_salt(length: int = 32) -> str:
    """Random hex salt of ``length`` bytes."""
    return secrets.token_hex(length)


def hash_data(data: BytesLike, algorithm: Algorithm) -> bytes:
    """
    Digest ``data`` with ``algorithm``.

    SHAKE-256 (and the simulated post-quantum names) produce 64 bytes.
    """
    raw = _to_bytes(data)
    if algorithm == Algorithm.SHA256:
        return hashlib.sha256(raw).digest()
    if algorithm == Algorithm.SHA512:
        return hashlib.sha512(raw).digest()
    if algorithm == Algorithm.SHA3_256:
        return hashlib.sha3_256(raw).digest()
    if algorithm == Algorithm.SHA3_512:
        return hashlib.sha3_512(raw).digest()
    if algorithm == Algorithm.BLAKE2B512:
        return hashlib.blake2b(raw).digest()
    return hashlib.shake_256(raw).digest(SHAKE_DIGEST_LENGTH)


def _hmac_digestmod(algorithm: Algorithm) -> Callable[..., Any]:
    if algorithm == Algorithm.SHA256:
        return hashlib.sha256
    if algorithm == Algorithm.SHA512:
        return hashlib.sha512
    if algorithm == Algorithm.SHA3_512:
        return hashlib.sha3_512
    if algorithm == Algorithm.BLAKE2B512:
        return hashlib.blake2b
    # SHAKE has no fixed block digest for HMAC; SHA3-256 stands in.
    return hashlib.sha3_256


def hmac_sign(data: BytesLike, key: BytesLike, algorithm: Algorithm) -> bytes:
    """HMAC of ``data`` under ``key``."""
    return hmac.new(_to_bytes(key), _to_bytes(data), _hmac_digestmod(algorithm)).digest()


def derive_key(secret: str, salt: str, pepper: str, algorithm: Algorithm) -> bytes:
    """
    HKDF over ``secret ‖ pepper`` with ``salt`` as the HKDF salt.

    Returns a 32-byte key used in place of the raw secret for payload HMACs.
    """
    hash_algorithm: hashes.HashAlgorithm
    if algorithm in (Algorithm.SHA512, Algorithm.BLAKE2B512):
        hash_algorithm = hashes.SHA512()
    else:
        hash_algorithm = hashes.SHA256()

    hkdf = HKDF(
        algorithm=hash_algorithm,
        length=DERIVED_KEY_LENGTH,
        salt=salt.encode("utf-8") if salt else None,
        info=HKDF_INFO,
    )
    return hkdf.derive((secret + pepper).encode("utf-8"))


def effective_key(secret: str, salt: str, pepper: str, algorithm: Algorithm) -> bytes:
    """Derived key when a pepper is present, otherwise the raw secret."""
    if pepper:
        return derive_key(secret, salt, pepper, algorithm)
    return secret.encode("utf-8")


def memory_hard_derive(data: BytesLike, secret: str, iterations: int) -> bytes:
    """PBKDF2-HMAC-SHA512 stretching of ``data`` keyed by ``secret``."""
    return hashlib.pbkdf2_hmac(
        "sha512",
        _to_bytes(data),
        secret.encode("utf-8"),
        iterations,
        dklen=MEMORY_HARD_KEY_LENGTH,
    )


def timing_safe_equal(a: str, b: str) -> bool:
    """Constant-time string comparison; length mismatch is simply False."""
    if len(a) != len(b):
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
