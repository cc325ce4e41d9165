"""Execution result records and their wire form."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from questkit.backend.amplitudes import AmplitudeBuffer
from questkit.hashing.digest import (
    amplitudes_from_bytes,
    canonical_amplitude_bytes,
    state_digest,
)
from questkit.sampling.bitstrings import outcome_draw, sample_outcome

from .schema import (
    AMPLITUDE_SIZE,
    FLAG_STATE_PRESENT,
    RESULT_HEADER,
    RESULT_KIND_CIRCUIT,
    RESULT_KIND_TRANSACTION,
    RESULT_KINDS,
    RESULT_MAGIC,
    RESULT_VERSION,
)


@dataclass(frozen=True)
class ExecutionResult:
    """
    Outcome of one transaction or circuit execution.

    Attributes
    ----------
    kind:
        ``RESULT_KIND_TRANSACTION`` or ``RESULT_KIND_CIRCUIT``.
    n_qubits:
        Width of the simulated register.
    gate_count:
        Number of gates applied.
    outcome:
        Basis-state index sampled from the final state. The draw is derived
        from ``digest`` so identical states give identical outcomes.
    outcome_probability:
        Born probability of ``outcome``.
    digest:
        32-byte state digest.
    state:
        Final amplitudes as a complex128 array, or None when the register was
        too wide to embed.
    """

    kind: int
    n_qubits: int
    gate_count: int
    outcome: int
    outcome_probability: float
    digest: bytes
    state: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_buffer(
        cls,
        buffer: AmplitudeBuffer,
        kind: int,
        gate_count: int,
        state_max_qubits: int,
    ) -> "ExecutionResult":
        """Summarize the current contents of ``buffer``."""
        digest = state_digest(buffer)
        outcome, probability = sample_outcome(
            buffer.probabilities(), outcome_draw(digest)
        )
        state = None
        if buffer.n_qubits <= state_max_qubits:
            state = buffer.copy().numpy()
        return cls(
            kind=kind,
            n_qubits=buffer.n_qubits,
            gate_count=gate_count,
            outcome=outcome,
            outcome_probability=probability,
            digest=digest,
            state=state,
        )

    @property
    def is_transaction(self) -> bool:
        return self.kind == RESULT_KIND_TRANSACTION

    @property
    def outcome_bits(self) -> str:
        """Outcome as a bitstring, most significant qubit first."""
        return format(self.outcome, f"0{self.n_qubits}b")

    def to_bytes(self) -> bytes:
        flags = 0
        body = b""
        state_len = 0
        if self.state is not None:
            flags |= FLAG_STATE_PRESENT
            body = canonical_amplitude_bytes(self.state)
            state_len = len(self.state)
        header = RESULT_HEADER.pack(
            RESULT_MAGIC,
            RESULT_VERSION,
            self.kind,
            self.n_qubits,
            flags,
            self.gate_count,
            self.outcome,
            self.outcome_probability,
            self.digest,
            state_len,
        )
        return header + body


def decode_result(data: bytes) -> ExecutionResult:
    """
    Parse a result buffer produced by :meth:`ExecutionResult.to_bytes`.

    Raises
    ------
    ValueError
        If the buffer is truncated, has the wrong magic, version or kind, or
        its state section does not match the header.
    """
    buf = bytes(data)
    if len(buf) < RESULT_HEADER.size:
        raise ValueError(f"truncated result header: {len(buf)} bytes")
    (
        magic,
        version,
        kind,
        n_qubits,
        flags,
        gate_count,
        outcome,
        probability,
        digest,
        state_len,
    ) = RESULT_HEADER.unpack_from(buf, 0)
    if magic != RESULT_MAGIC:
        raise ValueError(f"bad result magic {magic!r}")
    if version != RESULT_VERSION:
        raise ValueError(f"unsupported result version {version}")
    if kind not in RESULT_KINDS:
        raise ValueError(f"unknown result kind {kind}")

    body = buf[RESULT_HEADER.size :]
    state = None
    if flags & FLAG_STATE_PRESENT:
        if state_len != 1 << n_qubits:
            raise ValueError(
                f"state_len {state_len} does not match 2**{n_qubits} amplitudes"
            )
        if len(body) != state_len * AMPLITUDE_SIZE:
            raise ValueError(
                f"state section is {len(body)} bytes, "
                f"expected {state_len * AMPLITUDE_SIZE}"
            )
        state = amplitudes_from_bytes(body)
    elif state_len != 0 or body:
        raise ValueError("state section present without the state flag")

    return ExecutionResult(
        kind=kind,
        n_qubits=n_qubits,
        gate_count=gate_count,
        outcome=outcome,
        outcome_probability=probability,
        digest=digest,
        state=state,
    )


__all__ = [
    "ExecutionResult",
    "decode_result",
    "RESULT_KIND_TRANSACTION",
    "RESULT_KIND_CIRCUIT",
]
