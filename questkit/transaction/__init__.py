"""Transaction to circuit mapping."""

from .mapper import (
    MAX_DATA_SIZE,
    MAX_QUBITS,
    MAX_SENDER_SIZE,
    MIN_QUBITS,
    MIN_SENDER_SIZE,
    TransactionCircuit,
    instruction_names,
    map_transaction,
    sender_seed,
    transaction_qubits,
)
from .stream import HashStream

__all__ = [
    "HashStream",
    "TransactionCircuit",
    "map_transaction",
    "transaction_qubits",
    "sender_seed",
    "instruction_names",
    "MAX_DATA_SIZE",
    "MIN_SENDER_SIZE",
    "MAX_SENDER_SIZE",
    "MIN_QUBITS",
    "MAX_QUBITS",
]
