"""Fixed gate catalog.

Each gate has a stable one-byte wire id used by the circuit codec, an arity
(number of target qubits), a parameter count and an exact inverse. The ids
are part of the circuit wire format and must never be reassigned.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Callable, Dict, Optional, Tuple

import torch

from . import standard as std


@dataclass(frozen=True)
class GateSpec:
    """
    Catalog entry for one named gate.

    Attributes
    ----------
    gate_id:
        Wire identifier (u8).
    name:
        Canonical upper-case gate name.
    n_targets:
        Number of target qubits the matrix acts on.
    n_params:
        Number of float parameters (rotation angles, in radians).
    factory:
        Callable building the matrix from the parameters.
    inverse_name:
        Name of the gate that undoes this one. Parametrized gates invert by
        negating their angle, so their inverse is themselves.
    """

    gate_id: int
    name: str
    n_targets: int
    n_params: int
    factory: Callable[..., torch.Tensor]
    inverse_name: str

    @property
    def dim(self) -> int:
        return 1 << self.n_targets

    def matrix(self, params: Tuple[float, ...] = ()) -> torch.Tensor:
        if len(params) != self.n_params:
            raise ValueError(
                f"Gate {self.name} requires {self.n_params} parameter(s), "
                f"got {len(params)}."
            )
        if self.n_params == 0:
            return _fixed_matrix(self.name)
        return self.factory(*params)

    def inverse_params(self, params: Tuple[float, ...]) -> Tuple[float, ...]:
        return tuple(-p for p in params)


_SPECS: Tuple[GateSpec, ...] = (
    GateSpec(0x01, "I", 1, 0, std.I, "I"),
    GateSpec(0x02, "X", 1, 0, std.X, "X"),
    GateSpec(0x03, "Y", 1, 0, std.Y, "Y"),
    GateSpec(0x04, "Z", 1, 0, std.Z, "Z"),
    GateSpec(0x05, "H", 1, 0, std.H, "H"),
    GateSpec(0x06, "S", 1, 0, std.S, "SDG"),
    GateSpec(0x07, "SDG", 1, 0, std.SDG, "S"),
    GateSpec(0x08, "T", 1, 0, std.T, "TDG"),
    GateSpec(0x09, "TDG", 1, 0, std.TDG, "T"),
    GateSpec(0x10, "RX", 1, 1, std.RX, "RX"),
    GateSpec(0x11, "RY", 1, 1, std.RY, "RY"),
    GateSpec(0x12, "RZ", 1, 1, std.RZ, "RZ"),
    GateSpec(0x13, "PHASE", 1, 1, std.PHASE, "PHASE"),
    GateSpec(0x20, "CNOT", 2, 0, std.CNOT, "CNOT"),
    GateSpec(0x21, "CZ", 2, 0, std.CZ, "CZ"),
    GateSpec(0x22, "SWAP", 2, 0, std.SWAP, "SWAP"),
    GateSpec(0x30, "TOFFOLI", 3, 0, std.TOFFOLI, "TOFFOLI"),
)

GATES_BY_ID: Dict[int, GateSpec] = {spec.gate_id: spec for spec in _SPECS}
GATES_BY_NAME: Dict[str, GateSpec] = {spec.name: spec for spec in _SPECS}

_ALIASES: Dict[str, str] = {
    "CX": "CNOT",
    "CCX": "TOFFOLI",
    "CCNOT": "TOFFOLI",
    "P": "PHASE",
    "S_DAG": "SDG",
    "T_DAG": "TDG",
}


@lru_cache(maxsize=None)
def _fixed_matrix(name: str) -> torch.Tensor:
    return GATES_BY_NAME[name].factory()


def normalize_gate_name(name: str) -> str:
    """Upper-case a gate name and resolve common aliases (CX, CCX, P)."""
    n = name.strip().upper()
    return _ALIASES.get(n, n)


def get_gate(name: str) -> GateSpec:
    """
    Look up a gate by name.

    Raises
    ------
    ValueError
        If the gate is not in the catalog.
    """
    spec = GATES_BY_NAME.get(normalize_gate_name(name))
    if spec is None:
        raise ValueError(
            f"Unsupported gate name {name!r}. "
            f"Supported gates: {sorted(GATES_BY_NAME)}."
        )
    return spec


def get_gate_by_id(gate_id: int) -> Optional[GateSpec]:
    """Return the catalog entry for a wire id, or None if unknown."""
    return GATES_BY_ID.get(gate_id)


def inverse_op(op):
    """
    Return the gate op that exactly undoes ``op``.

    S and T map to their adjoints, rotations and PHASE negate their angle,
    every other catalog gate is self-inverse. Targets and controls are kept.
    """
    spec = get_gate(op.name)
    return replace(
        op,
        name=spec.inverse_name,
        params=spec.inverse_params(tuple(op.params)),
    )


__all__ = [
    "GateSpec",
    "GATES_BY_ID",
    "GATES_BY_NAME",
    "normalize_gate_name",
    "get_gate",
    "get_gate_by_id",
    "inverse_op",
]
