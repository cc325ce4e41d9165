"""State-vector engine.

Gates are applied in place to an :class:`~questkit.backend.amplitudes.AmplitudeBuffer`.

For a gate on ``k`` targets and ``c`` controls over ``N`` qubits, the
``2**(N-k-c)`` amplitude tuples that pass the control predicate are
enumerated by inserting zero bits at every target and control position into
a compressed counter and OR-ing in the control mask. Tuple ``t`` then covers
flat indices ``base[t] + offset[j]`` for ``j`` in ``[0, 2**k)``, where
``offset[j]`` places the bits of ``j`` on the target qubits (``targets[0]``
is the most significant local bit).

Each worker range is processed in blocks of at most ``MAX_BLOCK_AMPLITUDES``
amplitudes, so gather and scatter temporaries stay bounded for any ``N``.

The local matrix is applied on the float64 view of the buffer with separate
multiply, add and subtract steps in a fixed column order. Every amplitude is
therefore produced by the same IEEE-754 operation sequence no matter how the
tuple range is chunked, and results are bitwise identical for any thread
count.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import torch

from ..core.config import BLOCK_AMPLITUDES
from ..diagnostics import assert_normalized, is_debug_enabled
from ..gates.catalog import get_gate
from ..logging import get_logger
from .amplitudes import AmplitudeBuffer
from .scheduler import ExecutionScheduler

logger = get_logger(__name__)

# Amplitudes one worker gathers per block; bounds the per-block temporaries.
MAX_BLOCK_AMPLITUDES = BLOCK_AMPLITUDES


def _validate_qubits(
    n_qubits: int, targets: Sequence[int], controls: Sequence[int]
) -> None:
    if len(targets) == 0:
        raise ValueError("a gate needs at least one target qubit")
    for q in (*targets, *controls):
        if not 0 <= q < n_qubits:
            raise ValueError(f"qubit index {q} out of range [0, {n_qubits})")
    if len(set(targets)) != len(targets):
        raise ValueError(f"duplicate target qubits: {tuple(targets)}")
    if len(set(controls)) != len(controls):
        raise ValueError(f"duplicate control qubits: {tuple(controls)}")
    if set(targets) & set(controls):
        raise ValueError(
            f"targets {tuple(targets)} and controls {tuple(controls)} overlap"
        )


def target_offsets(targets: Sequence[int]) -> torch.Tensor:
    """
    Flat-index offsets of the ``2**k`` local basis states of ``targets``.

    Bit ``k-1-b`` of the local index ``j`` selects qubit ``targets[b]``.
    """
    k = len(targets)
    offsets = []
    for j in range(1 << k):
        off = 0
        for b, q in enumerate(targets):
            if (j >> (k - 1 - b)) & 1:
                off |= 1 << q
        offsets.append(off)
    return torch.tensor(offsets, dtype=torch.int64)


def base_indices(
    lo: int,
    hi: int,
    positions: Sequence[int],
    control_mask: int = 0,
) -> torch.Tensor:
    """
    Expand compressed counters ``[lo, hi)`` into flat base indices.

    A zero bit is inserted at each of ``positions`` (ascending), then
    ``control_mask`` is OR-ed in. The result is strictly increasing.
    """
    base = torch.arange(lo, hi, dtype=torch.int64)
    for p in sorted(positions):
        low = base & ((1 << p) - 1)
        base = ((base >> p) << (p + 1)) | low
    if control_mask:
        base = base | control_mask
    return base


def _split_matrix(matrix: torch.Tensor) -> Tuple[List[List[float]], List[List[float]]]:
    matrix = matrix.to(torch.complex128)
    return matrix.real.tolist(), matrix.imag.tolist()


def _apply_rows(
    view: torch.Tensor,
    idx: torch.Tensor,
    m_re: List[List[float]],
    m_im: List[List[float]],
) -> None:
    """Multiply the gathered tuples by the matrix and scatter them back."""
    re = view[idx, 0]
    im = view[idx, 1]
    d = len(m_re)
    cols_re = [re[:, c] for c in range(d)]
    cols_im = [im[:, c] for c in range(d)]

    out_re = []
    out_im = []
    for r in range(d):
        acc_re: Optional[torch.Tensor] = None
        acc_im: Optional[torch.Tensor] = None
        for c in range(d):
            a, b = m_re[r][c], m_im[r][c]
            if a == 0.0 and b == 0.0:
                continue
            x, y = cols_re[c], cols_im[c]
            if b == 0.0:
                t_re = x * a
                t_im = y * a
            elif a == 0.0:
                t_re = -(y * b)
                t_im = x * b
            else:
                t_re = x * a - y * b
                t_im = y * a + x * b
            if acc_re is None:
                acc_re, acc_im = t_re, t_im
            else:
                acc_re = acc_re + t_re
                acc_im = acc_im + t_im
        if acc_re is None:
            acc_re = torch.zeros_like(cols_re[0])
            acc_im = torch.zeros_like(cols_im[0])
        out_re.append(acc_re)
        out_im.append(acc_im)

    view[idx, 0] = torch.stack(out_re, dim=1)
    view[idx, 1] = torch.stack(out_im, dim=1)


def apply_matrix(
    state: torch.Tensor,
    matrix: torch.Tensor,
    targets: Sequence[int],
    controls: Sequence[int] = (),
    scheduler: Optional[ExecutionScheduler] = None,
) -> None:
    """
    Apply a ``2**k x 2**k`` matrix to ``targets`` of ``state`` in place.

    Args:
        state: Flat complex128 state vector of length ``2**n_qubits``.
        matrix: Local matrix; ``targets[0]`` is its most significant bit.
        targets: Target qubits (0 = least significant bit of the index).
        controls: Qubits that must all be 1 for the matrix to act.
        scheduler: Splits the tuple range across threads. ``None`` runs on
            the calling thread.

    Raises:
        ValueError: On bad qubit indices, overlaps, a matrix of the wrong
            shape, or a non-complex128 state.
    """
    if state.dtype != torch.complex128 or state.dim() != 1:
        raise ValueError(
            f"state must be a flat complex128 tensor, got {state.dtype} "
            f"with shape {tuple(state.shape)}"
        )
    n_qubits = state.shape[0].bit_length() - 1
    if 1 << n_qubits != state.shape[0]:
        raise ValueError(f"state length {state.shape[0]} is not a power of 2")

    targets = tuple(int(t) for t in targets)
    controls = tuple(int(c) for c in controls)
    _validate_qubits(n_qubits, targets, controls)

    d = 1 << len(targets)
    if tuple(matrix.shape) != (d, d):
        raise ValueError(
            f"matrix for {len(targets)} target(s) must have shape ({d}, {d}), "
            f"got {tuple(matrix.shape)}"
        )

    m_re, m_im = _split_matrix(matrix)
    offsets = target_offsets(targets)
    positions = targets + controls
    control_mask = 0
    for c in controls:
        control_mask |= 1 << c
    total = 1 << (n_qubits - len(positions))
    view = torch.view_as_real(state)

    block = max(1, MAX_BLOCK_AMPLITUDES // d)

    def step(lo: int, hi: int) -> None:
        for start in range(lo, hi, block):
            base = base_indices(start, min(start + block, hi), positions, control_mask)
            idx = base.unsqueeze(1) + offsets.unsqueeze(0)
            _apply_rows(view, idx, m_re, m_im)

    with torch.no_grad():
        if scheduler is None:
            step(0, total)
        else:
            scheduler.run(total, step)


def apply_gate_op(
    buffer: AmplitudeBuffer,
    op,
    scheduler: Optional[ExecutionScheduler] = None,
) -> None:
    """Apply one catalog gate op to ``buffer`` in place."""
    spec = get_gate(op.name)
    if len(op.targets) != spec.n_targets:
        raise ValueError(
            f"gate {spec.name} acts on {spec.n_targets} target(s), "
            f"got {len(op.targets)}"
        )
    matrix = spec.matrix(tuple(op.params))
    apply_matrix(buffer.tensor, matrix, op.targets, op.controls, scheduler)
    if is_debug_enabled():
        assert_normalized(buffer.tensor)


def run_circuit(
    buffer: AmplitudeBuffer,
    circuit,
    scheduler: Optional[ExecutionScheduler] = None,
) -> int:
    """
    Apply every gate of ``circuit`` to ``buffer`` in order.

    The buffer must already have ``circuit.n_qubits`` qubits. Returns the
    number of gates applied.
    """
    if circuit.n_qubits != buffer.n_qubits:
        raise ValueError(
            f"circuit has {circuit.n_qubits} qubits but the register has "
            f"{buffer.n_qubits}"
        )
    count = 0
    for op in circuit.ops:
        apply_gate_op(buffer, op, scheduler)
        count += 1
    logger.debug("Applied %d gates on %d qubits", count, buffer.n_qubits)
    return count


def measure_qubit(
    buffer: AmplitudeBuffer,
    qubit: int,
    generator: Optional[torch.Generator] = None,
) -> int:
    """
    Projectively measure one qubit and collapse the state.

    The surviving half is renormalized. Returns the outcome (0 or 1).
    """
    n = buffer.n_qubits
    if not 0 <= qubit < n:
        raise ValueError(f"qubit index {qubit} out of range [0, {n})")

    state = buffer.tensor
    with torch.no_grad():
        indices = torch.arange(buffer.dim, dtype=torch.int64)
        is_one = ((indices >> qubit) & 1).bool()
        probs = state.abs() ** 2
        p1 = float(probs[is_one].sum().item())
        u = float(torch.rand(1, generator=generator, dtype=torch.float64).item())
        outcome = 1 if u < p1 else 0
        p = p1 if outcome == 1 else 1.0 - p1
        discard = ~is_one if outcome == 1 else is_one
        state[discard] = 0.0
        if p > 0.0:
            state.div_(p ** 0.5)
    return outcome


def measure_all(
    buffer: AmplitudeBuffer,
    generator: Optional[torch.Generator] = None,
) -> int:
    """Measure every qubit; the register collapses to the observed basis state."""
    with torch.no_grad():
        probs = buffer.probabilities()
        index = int(torch.multinomial(probs, 1, generator=generator).item())
        buffer.tensor.zero_()
        buffer.tensor[index] = 1.0
    return index


def measure_probs(buffer: AmplitudeBuffer) -> torch.Tensor:
    """Return basis-state probabilities without disturbing the state."""
    return buffer.probabilities()


__all__ = [
    "apply_matrix",
    "apply_gate_op",
    "run_circuit",
    "measure_qubit",
    "measure_all",
    "measure_probs",
    "base_indices",
    "target_offsets",
]
