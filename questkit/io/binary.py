"""Binary circuit codec.

See :mod:`questkit.io.schema` for the byte layout. Decoding is total: every
input either yields a :class:`QuantumCircuit` or raises
:class:`MalformedCircuit`, and nothing is allocated or executed on the way.
The register width is not checked against any memory bound here; that is
the allocator's job when the circuit is run.
"""

from __future__ import annotations

import math

from questkit.circuit import QuantumCircuit
from questkit.errors import MalformedCircuit
from questkit.gates.catalog import get_gate, get_gate_by_id
from questkit.logging import get_logger

from .schema import (
    CIRCUIT_HEADER,
    CIRCUIT_MAGIC,
    CIRCUIT_VERSION,
    GATE_RECORD_HEADER,
    PARAM,
)

logger = get_logger(__name__)


def _reject(message: str) -> MalformedCircuit:
    logger.warning("Rejected circuit: %s", message)
    return MalformedCircuit(message)


def decode_circuit(data: bytes) -> QuantumCircuit:
    """
    Decode a circuit from its wire form.

    Parameters
    ----------
    data:
        bytes, bytearray or memoryview holding exactly one encoded circuit.

    Returns
    -------
    QuantumCircuit

    Raises
    ------
    MalformedCircuit
        On bad magic, unsupported version, non-zero reserved field, zero
        qubits, truncation, unknown gate id, arity or parameter-count
        mismatch, out-of-range, repeated or overlapping qubits, non-finite
        parameters, or trailing bytes.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise _reject(f"circuit data must be bytes-like, got {type(data).__name__}")
    buf = bytes(data)

    if len(buf) < CIRCUIT_HEADER.size:
        raise _reject(
            f"truncated header: {len(buf)} bytes, need {CIRCUIT_HEADER.size}"
        )
    magic, version, n_qubits, reserved, gate_count = CIRCUIT_HEADER.unpack_from(buf, 0)
    if magic != CIRCUIT_MAGIC:
        raise _reject(f"bad magic {magic!r}")
    if version != CIRCUIT_VERSION:
        raise _reject(f"unsupported version {version}")
    if reserved != 0:
        raise _reject(f"reserved header field must be 0, got {reserved}")
    if n_qubits == 0:
        raise _reject("circuit must have at least one qubit")

    circuit = QuantumCircuit(n_qubits)
    pos = CIRCUIT_HEADER.size

    for index in range(gate_count):
        if pos + GATE_RECORD_HEADER.size > len(buf):
            raise _reject(f"truncated record header for gate {index}")
        gate_id, n_targets, n_controls, n_params = GATE_RECORD_HEADER.unpack_from(
            buf, pos
        )
        pos += GATE_RECORD_HEADER.size

        spec = get_gate_by_id(gate_id)
        if spec is None:
            raise _reject(f"gate {index}: unknown gate id 0x{gate_id:02x}")
        if n_targets != spec.n_targets:
            raise _reject(
                f"gate {index}: {spec.name} takes {spec.n_targets} target(s), "
                f"record has {n_targets}"
            )
        if n_params != spec.n_params:
            raise _reject(
                f"gate {index}: {spec.name} takes {spec.n_params} parameter(s), "
                f"record has {n_params}"
            )

        body = n_targets + n_controls + n_params * PARAM.size
        if pos + body > len(buf):
            raise _reject(f"truncated body for gate {index}")

        targets = tuple(buf[pos : pos + n_targets])
        pos += n_targets
        controls = tuple(buf[pos : pos + n_controls])
        pos += n_controls
        params = []
        for _ in range(n_params):
            (value,) = PARAM.unpack_from(buf, pos)
            pos += PARAM.size
            if not math.isfinite(value):
                raise _reject(f"gate {index}: non-finite parameter {value}")
            params.append(value)

        for q in targets + controls:
            if q >= n_qubits:
                raise _reject(
                    f"gate {index}: qubit {q} out of range for {n_qubits} qubits"
                )
        if len(set(targets)) != len(targets):
            raise _reject(f"gate {index}: duplicate targets {targets}")
        if len(set(controls)) != len(controls):
            raise _reject(f"gate {index}: duplicate controls {controls}")
        if set(targets) & set(controls):
            raise _reject(
                f"gate {index}: targets {targets} overlap controls {controls}"
            )

        try:
            circuit.add_gate(spec.name, targets, params, controls)
        except ValueError as exc:
            raise _reject(f"gate {index}: {exc}") from exc

    if pos != len(buf):
        raise _reject(f"{len(buf) - pos} trailing byte(s) after {gate_count} gates")

    logger.debug("Decoded circuit: %d qubits, %d gates", n_qubits, gate_count)
    return circuit


def encode_circuit(circuit: QuantumCircuit) -> bytes:
    """
    Encode a circuit into its wire form.

    ``decode_circuit(encode_circuit(c)) == c`` for every circuit.
    """
    parts = [
        CIRCUIT_HEADER.pack(
            CIRCUIT_MAGIC, CIRCUIT_VERSION, circuit.n_qubits, 0, len(circuit)
        )
    ]
    for op in circuit.ops:
        spec = get_gate(op.name)
        parts.append(
            GATE_RECORD_HEADER.pack(
                spec.gate_id, len(op.targets), len(op.controls), len(op.params)
            )
        )
        parts.append(bytes(op.targets))
        parts.append(bytes(op.controls))
        parts.extend(PARAM.pack(p) for p in op.params)
    return b"".join(parts)


__all__ = ["decode_circuit", "encode_circuit"]
