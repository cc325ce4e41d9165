"""Canonical state digests.

The digest of an ``N``-qubit state is::

    SHA256(b"QKSTATE1" || u8 N || amp[0] || amp[1] || ... || amp[2**N - 1])

where each amplitude is written as two little-endian IEEE-754 binary64
values ``(real, imag)`` and negative zero is written as positive zero. The
digest is independent of thread count, platform and memory layout. Amplitudes
are fed to the hash in blocks, so hashing needs no full-size copy of the
state.
"""

from __future__ import annotations

import hashlib
from typing import Optional, Union

import numpy as np
import torch

from questkit.backend.amplitudes import AmplitudeBuffer
from questkit.core.config import BLOCK_AMPLITUDES

DIGEST_DOMAIN = b"QKSTATE1"
DIGEST_SIZE = 32


def canonical_amplitude_bytes(state: Union[torch.Tensor, np.ndarray]) -> bytes:
    """
    Serialize a flat complex state as little-endian ``(re, im)`` float64 pairs.

    Accepts a torch tensor or a numpy array. ``-0.0`` is mapped to ``+0.0``;
    all other bit patterns are kept.
    """
    if isinstance(state, torch.Tensor):
        state = state.detach().to(torch.complex128).cpu().numpy()
    state = np.asarray(state, dtype=np.complex128)
    if state.ndim != 1:
        raise ValueError(f"expected a flat state vector, got shape {state.shape}")
    arr = np.empty((state.shape[0], 2), dtype="<f8")
    arr[:, 0] = state.real
    arr[:, 1] = state.imag
    # IEEE-754: -0.0 + 0.0 == +0.0
    arr += 0.0
    return arr.tobytes()


def state_digest(
    state: Union[torch.Tensor, AmplitudeBuffer],
    n_qubits: Optional[int] = None,
) -> bytes:
    """
    Return the 32-byte digest of a state vector.

    Args:
        state: Flat complex tensor of length ``2**n_qubits`` or an
            :class:`AmplitudeBuffer`.
        n_qubits: Register width; inferred from the length when omitted.

    Raises:
        ValueError: If the length is not ``2**n_qubits``.
    """
    if isinstance(state, AmplitudeBuffer):
        n_qubits = state.n_qubits
        state = state.tensor

    dim = state.shape[-1]
    if n_qubits is None:
        n_qubits = dim.bit_length() - 1
    if dim != 1 << n_qubits:
        raise ValueError(
            f"state length {dim} does not match 2**n_qubits = {1 << n_qubits}"
        )

    h = hashlib.sha256()
    h.update(DIGEST_DOMAIN)
    h.update(bytes([n_qubits]))
    for lo in range(0, dim, BLOCK_AMPLITUDES):
        h.update(canonical_amplitude_bytes(state[lo : lo + BLOCK_AMPLITUDES]))
    return h.digest()


def digest_hex(digest: bytes, length: Optional[int] = None) -> str:
    """Hex form of a digest, optionally shortened for log lines."""
    text = digest.hex()
    return text if length is None else text[:length]


def amplitudes_from_bytes(data: bytes) -> np.ndarray:
    """Inverse of :func:`canonical_amplitude_bytes` as a complex128 array."""
    if len(data) % 16 != 0:
        raise ValueError(f"amplitude data length {len(data)} is not a multiple of 16")
    pairs = np.frombuffer(data, dtype="<f8").reshape(-1, 2)
    out = np.empty(pairs.shape[0], dtype=np.complex128)
    out.real = pairs[:, 0]
    out.imag = pairs[:, 1]
    return out


__all__ = [
    "DIGEST_DOMAIN",
    "DIGEST_SIZE",
    "canonical_amplitude_bytes",
    "state_digest",
    "digest_hex",
    "amplitudes_from_bytes",
]
