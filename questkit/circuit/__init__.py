"""Circuit IR for questkit."""

from .core import GateOp, QuantumCircuit

__all__ = ["GateOp", "QuantumCircuit"]
