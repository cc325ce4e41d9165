"""Backend implementations for quantum state operations."""

from .amplitudes import (
    AMPLITUDE_DTYPE,
    AmplitudeBuffer,
    allocate_zero_state,
    check_allocation,
    required_bytes,
    workspace_bytes,
)
from .scheduler import ExecutionScheduler
from .statevector import (
    apply_gate_op,
    apply_matrix,
    measure_all,
    measure_probs,
    measure_qubit,
    run_circuit,
)

__all__ = [
    "AMPLITUDE_DTYPE",
    "AmplitudeBuffer",
    "allocate_zero_state",
    "check_allocation",
    "required_bytes",
    "workspace_bytes",
    "ExecutionScheduler",
    "apply_matrix",
    "apply_gate_op",
    "run_circuit",
    "measure_qubit",
    "measure_all",
    "measure_probs",
]
