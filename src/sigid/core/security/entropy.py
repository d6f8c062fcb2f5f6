"""
Entropy pool: pre-drawn random blocks to cut per-call CSPRNG overhead.

The pool is a latency optimization only. Any draw it cannot serve (pool
empty, request larger than a block) falls back to a direct CSPRNG read, so
correctness never depends on it.
"""

import hashlib
import logging
import secrets
import threading
from collections import deque

logger = logging.getLogger(__name__)

BLOCK_SIZE = 64
MIN_POOL_SIZE = 10
MAX_POOL_SIZE = 50


class EntropyPool:
    """
    Bounded buffer of random blocks with a low-water-mark refill policy.

    Refill and withdraw are serialized by a lock; refill is idempotent and
    safe to call redundantly. Pool size always stays within [0, max_size].

    Attributes:
        min_size: Low-water mark that triggers a refill
        max_size: Upper bound on pooled blocks
        block_size: Bytes per pooled block
    """

    def __init__(
        self,
        min_size: int = MIN_POOL_SIZE,
        max_size: int = MAX_POOL_SIZE,
        block_size: int = BLOCK_SIZE,
        prefill: bool = True,
    ) -> None:
        if min_size < 0 or max_size < 1 or min_size > max_size:
            raise ValueError(
                f"Invalid pool bounds: min_size={min_size}, max_size={max_size}"
            )
        self.min_size = min_size
        self.max_size = max_size
        self.block_size = block_size
        self._blocks: deque[bytes] = deque()
        self._lock = threading.Lock()
        if prefill:
            self.refill()

    def __len__(self) -> int:
        with self._lock:
            return len(self._blocks)

    def refill(self) -> int:
        """
        Top the pool up to max_size.

        Returns:
            Number of blocks added
        """
        with self._lock:
            return self._refill_locked()

    def _refill_locked(self) -> int:
        added = 0
        while len(self._blocks) < self.max_size:
            self._blocks.append(secrets.token_bytes(self.block_size))
            added += 1
        return added

    def take(self, length: int) -> bytes:
        """
        Withdraw ``length`` random bytes.

        Served from one pooled block when ``length`` fits in a block,
        otherwise drawn directly from the CSPRNG. A withdrawn block is never
        handed out twice.
        """
        if length > self.block_size:
            return secrets.token_bytes(length)

        with self._lock:
            if len(self._blocks) < self.min_size:
                self._refill_locked()
            block = self._blocks.popleft() if self._blocks else None

        if block is None:
            logger.debug("Entropy pool empty, drawing directly")
            return secrets.token_bytes(length)
        return block[:length]

    def mix(self, additional: bytes) -> None:
        """
        Fold caller-supplied bytes into a new pooled block.

        The new block is SHA-512(pooled block ‖ additional), so mixed-in data
        never lowers the entropy of what the pool hands out.
        """
        base = self.take(self.block_size)
        mixed = hashlib.sha512(base + additional).digest()[: self.block_size]
        with self._lock:
            if len(self._blocks) < self.max_size:
                self._blocks.append(mixed)
