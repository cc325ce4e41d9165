"""Quantum gate implementations."""

from .catalog import (
    GATES_BY_ID,
    GATES_BY_NAME,
    GateSpec,
    get_gate,
    get_gate_by_id,
    inverse_op,
    normalize_gate_name,
)
from .standard import (
    CNOT,
    CZ,
    PHASE,
    RX,
    RY,
    RZ,
    SDG,
    SWAP,
    TDG,
    TOFFOLI,
    H,
    I,
    S,
    T,
    X,
    Y,
    Z,
    dagger,
    is_unitary,
)

__all__ = [
    "I",
    "X",
    "Y",
    "Z",
    "H",
    "S",
    "SDG",
    "T",
    "TDG",
    "RX",
    "RY",
    "RZ",
    "PHASE",
    "CNOT",
    "CZ",
    "SWAP",
    "TOFFOLI",
    "dagger",
    "is_unitary",
    "GateSpec",
    "GATES_BY_ID",
    "GATES_BY_NAME",
    "get_gate",
    "get_gate_by_id",
    "inverse_op",
    "normalize_gate_name",
]
