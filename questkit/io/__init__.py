"""Binary I/O for circuits and execution results."""

from .binary import decode_circuit, encode_circuit
from .result import (
    RESULT_KIND_CIRCUIT,
    RESULT_KIND_TRANSACTION,
    ExecutionResult,
    decode_result,
)
from .schema import circuit_wire_schema, result_wire_schema

__all__ = [
    "decode_circuit",
    "encode_circuit",
    "ExecutionResult",
    "decode_result",
    "RESULT_KIND_TRANSACTION",
    "RESULT_KIND_CIRCUIT",
    "circuit_wire_schema",
    "result_wire_schema",
]
