"""questkit - a deterministic PyTorch state-vector engine for transaction execution."""

__version__ = "0.1.0"

# Boundary API
from . import api

# Backend operations
from .backend import (
    AmplitudeBuffer,
    ExecutionScheduler,
    apply_gate_op,
    apply_matrix,
    check_allocation,
    measure_all,
    measure_probs,
    measure_qubit,
    run_circuit,
)

# Circuit IR
from .circuit import GateOp, QuantumCircuit

# Configuration
from .core import EngineConfig, default_config

# Diagnostics
from .diagnostics import (
    OperationStats,
    Profiler,
    assert_normalized,
    debug_context,
    is_debug_enabled,
    set_debug_enabled,
    state_norm,
)

# Errors
from .errors import (
    InvalidHandle,
    InvalidTransaction,
    MalformedCircuit,
    OutOfMemory,
    QuestKitError,
)

# Gates
from .gates import (
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
    GateSpec,
    H,
    I,
    S,
    T,
    X,
    Y,
    Z,
    dagger,
    get_gate,
    inverse_op,
    is_unitary,
)

# Hashing
from .hashing import digest_hex, state_digest

# I/O
from .io import ExecutionResult, decode_circuit, decode_result, encode_circuit

# Logging
from .logging import configure_logging, get_logger, set_log_level

# Sampling
from .sampling import (
    bitstring_counts,
    outcome_draw,
    sample_bitstrings_state,
    sample_from_probs,
    sample_outcome,
)

# Sessions
from .session import Session, open_session

# Transactions
from .transaction import HashStream, TransactionCircuit, map_transaction

__all__ = [
    "__version__",
    # API
    "api",
    # Backend
    "AmplitudeBuffer",
    "ExecutionScheduler",
    "apply_matrix",
    "apply_gate_op",
    "run_circuit",
    "measure_qubit",
    "measure_all",
    "measure_probs",
    "check_allocation",
    # Circuit IR
    "GateOp",
    "QuantumCircuit",
    # Config
    "EngineConfig",
    "default_config",
    # Diagnostics
    "state_norm",
    "assert_normalized",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
    "OperationStats",
    "Profiler",
    # Errors
    "QuestKitError",
    "OutOfMemory",
    "MalformedCircuit",
    "InvalidTransaction",
    "InvalidHandle",
    # Gates
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
    "get_gate",
    "inverse_op",
    # Hashing
    "state_digest",
    "digest_hex",
    # I/O
    "decode_circuit",
    "encode_circuit",
    "ExecutionResult",
    "decode_result",
    # Logging
    "get_logger",
    "set_log_level",
    "configure_logging",
    # Sampling
    "sample_from_probs",
    "sample_bitstrings_state",
    "sample_outcome",
    "outcome_draw",
    "bitstring_counts",
    # Sessions
    "Session",
    "open_session",
    # Transactions
    "HashStream",
    "TransactionCircuit",
    "map_transaction",
]
