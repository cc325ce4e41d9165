"""Core circuit IR types and simulation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import torch

from questkit.backend.amplitudes import AmplitudeBuffer
from questkit.backend.scheduler import ExecutionScheduler
from questkit.backend.statevector import run_circuit
from questkit.core.config import HARD_MAX_QUBITS
from questkit.gates.catalog import get_gate, inverse_op


@dataclass(frozen=True)
class GateOp:
    """
    A single gate application in a quantum circuit.

    Attributes
    ----------
    name:
        Canonical catalog gate name, e.g. "H", "RZ", "CNOT".
    targets:
        Target qubit indices. For multi-qubit gates ``targets[0]`` is the
        most significant bit of the gate matrix (the control of CNOT).
    controls:
        Extra control qubits; the gate acts only where all of them are 1.
    params:
        Float parameters (rotation angles in radians), empty for fixed gates.
    """

    name: str
    targets: Tuple[int, ...]
    controls: Tuple[int, ...] = ()
    params: Tuple[float, ...] = ()

    @property
    def qubits(self) -> Tuple[int, ...]:
        """All qubits touched by this op: controls first, then targets."""
        return self.controls + self.targets


class QuantumCircuit:
    """
    Ordered list of gate applications on ``n_qubits``.

    Gates are validated against the catalog when added, so a circuit that
    exists is always executable on a register of matching width.
    """

    def __init__(self, n_qubits: int) -> None:
        if n_qubits <= 0:
            raise ValueError("QuantumCircuit requires n_qubits >= 1.")
        if n_qubits > HARD_MAX_QUBITS:
            raise ValueError(
                f"QuantumCircuit supports at most {HARD_MAX_QUBITS} qubits, "
                f"got {n_qubits}."
            )

        self._n_qubits = int(n_qubits)
        self._ops: List[GateOp] = []

    @property
    def n_qubits(self) -> int:
        """Return the number of qubits in this circuit."""
        return self._n_qubits

    @property
    def ops(self) -> Tuple[GateOp, ...]:
        """Return a read-only tuple of all gate operations."""
        return tuple(self._ops)

    def add_gate(
        self,
        name: str,
        targets: Sequence[int],
        params: Optional[Sequence[float]] = None,
        controls: Optional[Sequence[int]] = None,
    ) -> GateOp:
        """
        Append a gate application to the circuit.

        Parameters
        ----------
        name:
            A catalog gate name (case-insensitive; CX, CCX and P are
            accepted as aliases).
        targets:
            Target qubit indices, as many as the gate's arity.
        params:
            Numeric parameters; required for RX, RY, RZ and PHASE.
        controls:
            Optional additional control qubits.

        Raises
        ------
        ValueError
            On an unknown gate, wrong arity or parameter count, an
            out-of-range or repeated qubit, or a non-finite parameter.
        """
        spec = get_gate(name)

        t_tuple = tuple(int(q) for q in targets)
        c_tuple = tuple(int(q) for q in controls) if controls else ()
        p_tuple = tuple(float(p) for p in params) if params else ()

        if len(t_tuple) != spec.n_targets:
            raise ValueError(
                f"Gate {spec.name} acts on {spec.n_targets} target(s), "
                f"got {len(t_tuple)}."
            )
        if len(p_tuple) != spec.n_params:
            raise ValueError(
                f"Gate {spec.name} requires {spec.n_params} parameter(s), "
                f"got {len(p_tuple)}."
            )
        for p in p_tuple:
            if not math.isfinite(p):
                raise ValueError(f"Gate {spec.name} parameter must be finite, got {p}.")
        for q in t_tuple + c_tuple:
            if q < 0 or q >= self._n_qubits:
                raise ValueError(
                    f"Qubit index {q} is out of range for this circuit "
                    f"(n_qubits={self._n_qubits})."
                )
        if len(set(t_tuple + c_tuple)) != len(t_tuple) + len(c_tuple):
            raise ValueError(
                f"Gate {spec.name} uses a qubit more than once "
                f"(targets={t_tuple}, controls={c_tuple})."
            )

        op = GateOp(name=spec.name, targets=t_tuple, controls=c_tuple, params=p_tuple)
        self._ops.append(op)
        return op

    def extend(self, other: "QuantumCircuit") -> None:
        """Append all ops of ``other`` (which must have the same width)."""
        if other.n_qubits != self._n_qubits:
            raise ValueError(
                f"cannot extend a {self._n_qubits}-qubit circuit with a "
                f"{other.n_qubits}-qubit one"
            )
        self._ops.extend(other.ops)

    def copy(self) -> "QuantumCircuit":
        """Return a copy of this circuit."""
        new = QuantumCircuit(self._n_qubits)
        new._ops.extend(self._ops)
        return new

    def inverse(self) -> "QuantumCircuit":
        """Return the circuit that undoes this one (reversed, each gate inverted)."""
        new = QuantumCircuit(self._n_qubits)
        new._ops.extend(inverse_op(op) for op in reversed(self._ops))
        return new

    def __len__(self) -> int:
        """Return the number of gate operations in this circuit."""
        return len(self._ops)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QuantumCircuit):
            return NotImplemented
        return self._n_qubits == other._n_qubits and self._ops == other._ops

    def __repr__(self) -> str:
        return f"QuantumCircuit(n_qubits={self._n_qubits}, gates={len(self._ops)})"

    def num_gates(self) -> int:
        """Return the number of gate operations in this circuit."""
        return len(self._ops)

    def gate_counts(self) -> Dict[str, int]:
        """Return a dictionary mapping gate names to their counts."""
        counts: Dict[str, int] = {}
        for op in self._ops:
            counts[op.name] = counts.get(op.name, 0) + 1
        return counts

    def depth(self) -> int:
        """
        Number of sequential layers if gates on disjoint qubits (targets and
        controls) run in parallel.
        """
        if not self._ops:
            return 0

        qubit_layer = [0] * self._n_qubits
        max_layer = 0

        for op in self._ops:
            earliest = 0
            for q in op.qubits:
                if qubit_layer[q] > earliest:
                    earliest = qubit_layer[q]

            layer = earliest + 1
            for q in op.qubits:
                qubit_layer[q] = layer

            if layer > max_layer:
                max_layer = layer

        return max_layer

    def simulate_state(
        self,
        scheduler: Optional[ExecutionScheduler] = None,
    ) -> torch.Tensor:
        """
        Simulate this circuit from the all-zero state.

        Returns
        -------
        state:
            complex128 tensor of shape (2**n_qubits,).
        """
        buffer = AmplitudeBuffer(self._n_qubits)
        run_circuit(buffer, self, scheduler)
        return buffer.tensor


__all__ = ["GateOp", "QuantumCircuit"]
