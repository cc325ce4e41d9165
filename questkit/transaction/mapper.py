"""Map a transaction ``(data, sender)`` onto a quantum circuit.

The mapping is a pure function of the two byte strings:

1. ``sender_seed = SHA256(b"questkit.sender" || sender)`` seeds a
   :class:`HashStream` that supplies rotation angles.
2. The register width grows with the data size:
   ``clamp(bit_length(8 * len(data)), MIN_QUBITS, MAX_QUBITS)``.
3. A preamble puts every qubit in superposition (H) and gives it a
   sender-dependent phase (RZ).
4. Each 32-byte data chunk ``i`` is expanded to
   ``SHA256(sender_seed || u32_be(i) || chunk)``, read as eight 4-byte
   instructions ``(selector, a, b, angle_byte)``.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from questkit.circuit import QuantumCircuit
from questkit.errors import InvalidTransaction
from questkit.logging import get_logger

from .stream import HashStream

logger = get_logger(__name__)

SENDER_DOMAIN = b"questkit.sender"
MAX_DATA_SIZE = 64 * 1024
MIN_SENDER_SIZE = 1
MAX_SENDER_SIZE = 64
MIN_QUBITS = 4
MAX_QUBITS = 12
CHUNK_SIZE = 32
INSTRUCTION_SIZE = 4

_BYTES_LIKE = (bytes, bytearray, memoryview)


@dataclass(frozen=True)
class TransactionCircuit:
    """A mapped transaction: the circuit plus the hashes it was derived from."""

    circuit: QuantumCircuit
    sender_seed: bytes
    data_digest: bytes

    @property
    def n_qubits(self) -> int:
        return self.circuit.n_qubits


def transaction_qubits(data_size: int) -> int:
    """Register width used for ``data_size`` bytes of transaction data."""
    return max(MIN_QUBITS, min(MAX_QUBITS, (8 * data_size).bit_length()))


def sender_seed(sender: bytes) -> bytes:
    return hashlib.sha256(SENDER_DOMAIN + bytes(sender)).digest()


def _rotation_angle(angle_byte: int, stream: HashStream) -> float:
    # 8 bits from the data, 16 from the sender stream
    value = (angle_byte << 16) | stream.next_u16()
    return 2.0 * math.pi * value / float(1 << 24)


def _second_qubit(a: int, b: int, n: int) -> Tuple[int, int]:
    qa = a % n
    qb = (qa + 1 + b % (n - 1)) % n
    return qa, qb


def _one_qubit(name: str) -> Callable:
    def emit(circuit, a, b, angle_byte, stream):
        circuit.add_gate(name, [a % circuit.n_qubits])

    return emit


def _rotation(name: str) -> Callable:
    def emit(circuit, a, b, angle_byte, stream):
        circuit.add_gate(
            name, [a % circuit.n_qubits], [_rotation_angle(angle_byte, stream)]
        )

    return emit


def _two_qubit(name: str) -> Callable:
    def emit(circuit, a, b, angle_byte, stream):
        circuit.add_gate(name, _second_qubit(a, b, circuit.n_qubits))

    return emit


def _toffoli(circuit, a, b, angle_byte, stream):
    n = circuit.n_qubits
    qa, qb = _second_qubit(a, b, n)
    rest = [q for q in range(n) if q not in (qa, qb)]
    qc = rest[angle_byte % len(rest)]
    circuit.add_gate("TOFFOLI", [qa, qb, qc])


# Selector byte modulo len(INSTRUCTION_SET) picks the instruction.
INSTRUCTION_SET: Tuple[Tuple[str, Callable], ...] = (
    ("H", _one_qubit("H")),
    ("X", _one_qubit("X")),
    ("Y", _one_qubit("Y")),
    ("Z", _one_qubit("Z")),
    ("S", _one_qubit("S")),
    ("T", _one_qubit("T")),
    ("RX", _rotation("RX")),
    ("RY", _rotation("RY")),
    ("RZ", _rotation("RZ")),
    ("PHASE", _rotation("PHASE")),
    ("CNOT", _two_qubit("CNOT")),
    ("CZ", _two_qubit("CZ")),
    ("SWAP", _two_qubit("SWAP")),
    ("TOFFOLI", _toffoli),
)


def _check_bytes(name: str, value, lo: int, hi: int) -> bytes:
    if not isinstance(value, _BYTES_LIKE):
        logger.warning("Rejected transaction: %s is %s", name, type(value).__name__)
        raise InvalidTransaction(
            f"{name} must be bytes-like, got {type(value).__name__}"
        )
    value = bytes(value)
    if not lo <= len(value) <= hi:
        logger.warning("Rejected transaction: %s has %d bytes", name, len(value))
        raise InvalidTransaction(
            f"{name} must be {lo}..{hi} bytes long, got {len(value)}"
        )
    return value


def map_transaction(data: bytes, sender: bytes) -> TransactionCircuit:
    """
    Build the circuit for one transaction.

    Parameters
    ----------
    data:
        Transaction payload, 1 to ``MAX_DATA_SIZE`` bytes.
    sender:
        Sender identifier, ``MIN_SENDER_SIZE`` to ``MAX_SENDER_SIZE`` bytes.

    Returns
    -------
    TransactionCircuit

    Raises
    ------
    InvalidTransaction
        If either argument is not bytes-like or is out of bounds.
    """
    data = _check_bytes("data", data, 1, MAX_DATA_SIZE)
    sender = _check_bytes("sender", sender, MIN_SENDER_SIZE, MAX_SENDER_SIZE)

    seed = sender_seed(sender)
    stream = HashStream(seed)
    n = transaction_qubits(len(data))
    circuit = QuantumCircuit(n)

    for q in range(n):
        circuit.add_gate("H", [q])
    for q in range(n):
        circuit.add_gate("RZ", [q], [stream.next_angle()])

    for index, start in enumerate(range(0, len(data), CHUNK_SIZE)):
        chunk = data[start : start + CHUNK_SIZE]
        h = hashlib.sha256(seed + index.to_bytes(4, "big") + chunk).digest()
        for off in range(0, len(h), INSTRUCTION_SIZE):
            selector, a, b, angle_byte = h[off : off + INSTRUCTION_SIZE]
            _, emit = INSTRUCTION_SET[selector % len(INSTRUCTION_SET)]
            emit(circuit, a, b, angle_byte, stream)

    logger.debug(
        "Mapped transaction: %d data bytes -> %d qubits, %d gates",
        len(data),
        n,
        len(circuit),
    )
    return TransactionCircuit(
        circuit=circuit,
        sender_seed=seed,
        data_digest=hashlib.sha256(data).digest(),
    )


def instruction_names() -> Dict[int, str]:
    """Selector residue -> gate name, for diagnostics."""
    return {i: name for i, (name, _) in enumerate(INSTRUCTION_SET)}


__all__ = [
    "TransactionCircuit",
    "map_transaction",
    "transaction_qubits",
    "sender_seed",
    "instruction_names",
    "INSTRUCTION_SET",
    "MAX_DATA_SIZE",
    "MIN_SENDER_SIZE",
    "MAX_SENDER_SIZE",
    "MIN_QUBITS",
    "MAX_QUBITS",
]
