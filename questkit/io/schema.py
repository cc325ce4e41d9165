"""Binary wire formats for circuits and execution results.

Both formats are little-endian and versioned by a single byte after a
4-byte magic.

Circuit format (version 1):
    header, 12 bytes
        magic       4s   b"QKCT"
        version     u8   1
        n_qubits    u8   >= 1
        reserved    u16  0
        gate_count  u32
    gate record, repeated gate_count times
        gate_id     u8   catalog id
        n_targets   u8   must equal the gate's arity
        n_controls  u8
        n_params    u8   must equal the gate's parameter count
        targets     n_targets  x u8
        controls    n_controls x u8
        params      n_params   x f64 (finite)

Result format (version 1):
    header, 64 bytes
        magic               4s   b"QKRS"
        version             u8   1
        kind                u8   1 = transaction, 2 = circuit
        n_qubits            u8
        flags               u8   bit 0: state section present
        gate_count          u32
        outcome             u64  sampled basis-state index
        outcome_probability f64
        digest              32s  state digest
        state_len           u32  number of amplitudes that follow
    state, state_len x (f64 real, f64 imag)

Qubit ordering convention:
    Qubit 0 is the least significant bit of a basis-state index.
"""

from __future__ import annotations

import struct
from typing import Any, Dict

CIRCUIT_MAGIC = b"QKCT"
CIRCUIT_VERSION = 1
CIRCUIT_HEADER = struct.Struct("<4sBBHI")
GATE_RECORD_HEADER = struct.Struct("<BBBB")
PARAM = struct.Struct("<d")

RESULT_MAGIC = b"QKRS"
RESULT_VERSION = 1
RESULT_HEADER = struct.Struct("<4sBBBBIQd32sI")

RESULT_KIND_TRANSACTION = 1
RESULT_KIND_CIRCUIT = 2
RESULT_KINDS = (RESULT_KIND_TRANSACTION, RESULT_KIND_CIRCUIT)

FLAG_STATE_PRESENT = 0x01

DIGEST_SIZE = 32
AMPLITUDE_SIZE = 16


def circuit_wire_schema() -> Dict[str, Any]:
    """
    Return a structural description of the circuit wire format.

    Field entries are ``(offset, size, type)``; record fields after the
    fixed 4-byte record header have variable offsets and are listed in
    order.
    """
    return {
        "magic": CIRCUIT_MAGIC,
        "version": CIRCUIT_VERSION,
        "byte_order": "little",
        "header": {
            "magic": (0, 4, "bytes"),
            "version": (4, 1, "u8"),
            "n_qubits": (5, 1, "u8"),
            "reserved": (6, 2, "u16"),
            "gate_count": (8, 4, "u32"),
        },
        "gate_record": {
            "gate_id": (0, 1, "u8"),
            "n_targets": (1, 1, "u8"),
            "n_controls": (2, 1, "u8"),
            "n_params": (3, 1, "u8"),
            "targets": (None, "n_targets", "u8[]"),
            "controls": (None, "n_controls", "u8[]"),
            "params": (None, "n_params", "f64[]"),
        },
    }


def result_wire_schema() -> Dict[str, Any]:
    """Return a structural description of the result wire format."""
    return {
        "magic": RESULT_MAGIC,
        "version": RESULT_VERSION,
        "byte_order": "little",
        "header": {
            "magic": (0, 4, "bytes"),
            "version": (4, 1, "u8"),
            "kind": (5, 1, "u8"),
            "n_qubits": (6, 1, "u8"),
            "flags": (7, 1, "u8"),
            "gate_count": (8, 4, "u32"),
            "outcome": (12, 8, "u64"),
            "outcome_probability": (20, 8, "f64"),
            "digest": (28, 32, "bytes"),
            "state_len": (60, 4, "u32"),
        },
        "state": (64, "state_len", "(f64, f64)[]"),
    }
