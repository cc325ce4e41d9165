"""Deterministic byte stream derived from a seed by SHA-256 in counter mode."""

from __future__ import annotations

import hashlib
import math


class HashStream:
    """
    Infinite pseudo-random byte stream.

    Block ``i`` is ``SHA256(seed || u64_be(i))``; blocks are concatenated in
    order. Two streams built from the same seed yield the same bytes on every
    platform.

    Example
    -------
    >>> s = HashStream(b"seed")
    >>> len(s.read(40))
    40
    """

    BLOCK_SIZE = 32

    def __init__(self, seed: bytes) -> None:
        self._seed = bytes(seed)
        self._counter = 0
        self._pending = b""

    def _next_block(self) -> bytes:
        block = hashlib.sha256(self._seed + self._counter.to_bytes(8, "big")).digest()
        self._counter += 1
        return block

    def read(self, n: int) -> bytes:
        if n < 0:
            raise ValueError(f"cannot read {n} bytes")
        while len(self._pending) < n:
            self._pending += self._next_block()
        out, self._pending = self._pending[:n], self._pending[n:]
        return out

    def next_uint(self, n_bytes: int) -> int:
        """Next ``n_bytes`` as a big-endian unsigned integer."""
        return int.from_bytes(self.read(n_bytes), "big")

    def next_u16(self) -> int:
        return self.next_uint(2)

    def next_angle(self) -> float:
        """Angle in ``[0, 2*pi)`` with 24 bits of resolution."""
        return 2.0 * math.pi * self.next_uint(3) / float(1 << 24)


__all__ = ["HashStream"]
