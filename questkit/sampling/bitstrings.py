"""Bitstring sampling utilities for quantum states."""

from __future__ import annotations

import hashlib
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import torch

OUTCOME_DOMAIN = b"questkit.outcome"


def _indices_to_bitstrings(
    indices: torch.Tensor,
    n_qubits: int,
    qubits: Optional[Sequence[int]] = None,
) -> torch.Tensor:
    """
    Convert integer outcome indices into bitstrings.

    Parameters
    ----------
    indices:
        Integer tensor of shape (..., n_shots) with values in [0, 2**n_qubits).
    n_qubits:
        Total number of qubits in the underlying system.
    qubits:
        Optional subsequence of qubit indices (0-based) to keep in the
        output bitstrings. If None, all qubits [0, ..., n_qubits-1] are kept.

    Returns
    -------
    torch.Tensor
        Integer tensor of shape (..., n_shots, len(qubits)) with bits
        in {0, 1}. Qubit index 0 corresponds to the least-significant bit
        of the outcome index.
    """
    if qubits is None:
        qubits_tuple: Tuple[int, ...] = tuple(range(n_qubits))
    else:
        qubits_tuple = tuple(int(q) for q in qubits)
    if not qubits_tuple:
        raise ValueError("qubits must be non-empty if provided.")

    if indices.dtype != torch.int64:
        indices = indices.to(torch.int64)

    expanded_shape = indices.shape + (len(qubits_tuple),)
    result = torch.empty(expanded_shape, dtype=torch.int64, device=indices.device)

    for k, q in enumerate(qubits_tuple):
        if q < 0 or q >= n_qubits:
            raise ValueError(
                f"Requested qubit index {q} is out of bounds for n_qubits={n_qubits}."
            )
        result[..., k] = (indices >> q) & 1

    return result


def sample_indices(
    probs: torch.Tensor,
    n_shots: int,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """
    Draw ``n_shots`` basis-state indices from a 1D probability vector.

    Raises
    ------
    ValueError
        If ``n_shots`` is not positive or the distribution has no mass.
    """
    if probs.dim() != 1:
        raise ValueError("probs must be a 1D tensor.")
    if n_shots <= 0:
        raise ValueError("n_shots must be a positive integer.")
    total = probs.sum()
    if not total > 0:
        raise ValueError("Probability distribution has zero total mass.")
    return torch.multinomial(
        probs / total,
        num_samples=n_shots,
        replacement=True,
        generator=generator,
    )


def sample_from_probs(
    probs: torch.Tensor,
    n_qubits: int,
    n_shots: int,
    qubits: Optional[Sequence[int]] = None,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """
    Sample bitstrings from a probability distribution over computational
    basis states.

    Parameters
    ----------
    probs:
        Tensor of shape (dim,) with dim = 2**n_qubits.
    n_qubits:
        Total number of qubits for this distribution.
    n_shots:
        Number of measurement shots to draw.
    qubits:
        Optional subsequence of qubit indices to retain in the output.
    generator:
        Optional torch.Generator to control randomness for reproducibility.

    Returns
    -------
    torch.Tensor
        Integer tensor of shape (n_shots, len(qubits)) with values in {0, 1}.
    """
    dim = probs.shape[-1]
    if dim != 2 ** n_qubits:
        raise ValueError(
            f"probs last dimension {dim} does not match 2**n_qubits={2**n_qubits}."
        )
    indices = sample_indices(probs, n_shots, generator=generator)
    return _indices_to_bitstrings(indices, n_qubits=n_qubits, qubits=qubits)


def sample_bitstrings_state(
    state: torch.Tensor,
    n_qubits: int,
    n_shots: int,
    qubits: Optional[Sequence[int]] = None,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """Sample bitstrings from a pure statevector via the Born rule."""
    dim = state.shape[-1]
    if dim != 2 ** n_qubits:
        raise ValueError(
            f"State dimension {dim} does not match 2**n_qubits={2**n_qubits}."
        )
    probs = state.abs() ** 2
    return sample_from_probs(
        probs=probs,
        n_qubits=n_qubits,
        n_shots=n_shots,
        qubits=qubits,
        generator=generator,
    )


def outcome_draw(digest: bytes) -> float:
    """
    Uniform number in ``[0, 1)`` derived from a state digest.

    ``u = (u64_be(SHA256(b"questkit.outcome" || digest)[:8]) >> 11) / 2**53``

    Only the top 53 bits are used so the quotient is exact and stays below 1.
    """
    h = hashlib.sha256(OUTCOME_DOMAIN + bytes(digest)).digest()
    return (int.from_bytes(h[:8], "big") >> 11) / float(1 << 53)


def sample_outcome(probs, u: float) -> Tuple[int, float]:
    """
    Inverse-CDF pick of one basis state.

    The cumulative sum runs over ascending basis index; the chosen index is
    the first whose cumulative probability exceeds ``u`` times the total
    mass, so zero-probability states are never picked.

    Returns
    -------
    (index, probability)
    """
    if isinstance(probs, torch.Tensor):
        probs = probs.detach().cpu().numpy()
    p = np.asarray(probs, dtype=np.float64)
    if p.ndim != 1 or p.size == 0:
        raise ValueError("probs must be a non-empty 1D array.")
    if not 0.0 <= u < 1.0:
        raise ValueError(f"u must be in [0, 1), got {u}")
    cdf = np.cumsum(p)
    total = cdf[-1]
    if not total > 0:
        raise ValueError("Probability distribution has zero total mass.")
    index = int(np.searchsorted(cdf, u * total, side="right"))
    index = min(index, p.size - 1)
    return index, float(p[index])


def bitstring_counts(
    indices: torch.Tensor,
    n_qubits: int,
) -> Dict[str, int]:
    """
    Count sampled basis indices as bitstrings.

    Keys are written most significant qubit first (``'10'`` is qubit 1 set,
    qubit 0 clear).
    """
    counts: Dict[str, int] = {}
    for value in indices.reshape(-1).tolist():
        key = format(int(value), f"0{n_qubits}b")
        counts[key] = counts.get(key, 0) + 1
    return counts


__all__ = [
    "OUTCOME_DOMAIN",
    "sample_indices",
    "sample_from_probs",
    "sample_bitstrings_state",
    "outcome_draw",
    "sample_outcome",
    "bitstring_counts",
]
