"""Complex amplitude buffer backing a simulated register.

The buffer is a flat ``torch.complex128`` tensor of length ``2**n_qubits``.
Index bit ``i`` is qubit ``i``: qubit 0 is the least significant bit of the
computational basis index.
"""

from __future__ import annotations

import torch

from ..core.config import (
    BLOCK_AMPLITUDES,
    BYTES_PER_AMPLITUDE,
    DEFAULT_MAX_QUBITS,
    DEFAULT_MEMORY_LIMIT,
    WORKSPACE_BYTES_PER_AMPLITUDE,
)
from ..errors import OutOfMemory
from ..logging import get_logger

logger = get_logger(__name__)

AMPLITUDE_DTYPE = torch.complex128


def required_bytes(n_qubits: int) -> int:
    """Bytes needed to store ``2**n_qubits`` complex128 amplitudes."""
    return BYTES_PER_AMPLITUDE << n_qubits


def workspace_bytes(n_qubits: int, num_threads: int = 1) -> int:
    """
    Upper bound on gate-kernel temporaries for an ``n_qubits`` register.

    Each worker holds at most one block of ``BLOCK_AMPLITUDES`` amplitudes
    in flight, and no more amplitudes than the register has.
    """
    in_flight = min(1 << n_qubits, max(1, num_threads) * BLOCK_AMPLITUDES)
    return WORKSPACE_BYTES_PER_AMPLITUDE * in_flight


def is_allocation_failure(exc: BaseException) -> bool:
    """True for allocator errors raised by Python or by torch's CPU allocator."""
    if isinstance(exc, MemoryError):
        return True
    return isinstance(exc, RuntimeError) and "allocate" in str(exc)


def check_allocation(
    n_qubits: int,
    max_qubits: int = DEFAULT_MAX_QUBITS,
    memory_limit: int = DEFAULT_MEMORY_LIMIT,
    reserved_bytes: int = 0,
) -> None:
    """
    Validate a register width against the configured bounds.

    ``reserved_bytes`` is memory the caller holds alongside the new buffer
    (the register being replaced, gate workspace) and counts against
    ``memory_limit`` too.

    Raises
    ------
    ValueError
        If ``n_qubits < 1``.
    OutOfMemory
        If the register is wider than ``max_qubits`` or its buffer plus
        ``reserved_bytes`` would exceed ``memory_limit`` bytes.
    """
    if n_qubits < 1:
        raise ValueError(f"n_qubits must be >= 1, got {n_qubits}")
    if n_qubits > max_qubits:
        logger.warning(
            "Refusing %d-qubit register (max_qubits=%d)", n_qubits, max_qubits
        )
        raise OutOfMemory(
            f"{n_qubits} qubits exceeds the configured maximum of {max_qubits}"
        )
    needed = required_bytes(n_qubits) + reserved_bytes
    if needed > memory_limit:
        logger.warning(
            "Refusing %d-qubit register: %d bytes > memory_limit=%d",
            n_qubits,
            needed,
            memory_limit,
        )
        raise OutOfMemory(
            f"{n_qubits} qubits need {needed} bytes "
            f"({reserved_bytes} reserved), memory limit is {memory_limit} bytes"
        )


def allocate_zero_state(
    n_qubits: int,
    max_qubits: int = DEFAULT_MAX_QUBITS,
    memory_limit: int = DEFAULT_MEMORY_LIMIT,
) -> torch.Tensor:
    """
    Allocate a fresh ``|0...0>`` vector after checking the bounds.

    Allocator failures from torch are reported as :class:`OutOfMemory`.
    """
    check_allocation(n_qubits, max_qubits, memory_limit)
    try:
        state = torch.zeros(1 << n_qubits, dtype=AMPLITUDE_DTYPE)
    except (RuntimeError, MemoryError) as exc:
        raise OutOfMemory(
            f"could not allocate {required_bytes(n_qubits)} bytes "
            f"for {n_qubits} qubits"
        ) from exc
    state[0] = 1.0
    return state


class AmplitudeBuffer:
    """
    Owned, contiguous complex128 state vector.

    A buffer always holds a valid state: construction and :meth:`resize`
    allocate the new tensor completely before it replaces the old one.

    Example
    -------
    >>> buf = AmplitudeBuffer(2)
    >>> buf[0]
    (1+0j)
    >>> len(buf)
    4
    """

    def __init__(
        self,
        n_qubits: int,
        max_qubits: int = DEFAULT_MAX_QUBITS,
        memory_limit: int = DEFAULT_MEMORY_LIMIT,
    ) -> None:
        self.max_qubits = max_qubits
        self.memory_limit = memory_limit
        self._state = allocate_zero_state(n_qubits, max_qubits, memory_limit)
        self._n_qubits = n_qubits

    @property
    def n_qubits(self) -> int:
        return self._n_qubits

    @property
    def dim(self) -> int:
        return 1 << self._n_qubits

    @property
    def tensor(self) -> torch.Tensor:
        """The live amplitude tensor. Writes through it mutate the buffer."""
        return self._state

    def __len__(self) -> int:
        return self.dim

    def __getitem__(self, index: int) -> complex:
        return complex(self._state[self._check_index(index)].item())

    def __setitem__(self, index: int, value: complex) -> None:
        self._state[self._check_index(index)] = complex(value)

    def _check_index(self, index: int) -> int:
        if not 0 <= index < self.dim:
            raise IndexError(f"amplitude index {index} out of range [0, {self.dim})")
        return index

    def __repr__(self) -> str:
        return f"AmplitudeBuffer(n_qubits={self._n_qubits})"

    def reset(self) -> None:
        """Set the state to ``|0...0>``."""
        self._state.zero_()
        self._state[0] = 1.0

    def resize(self, n_qubits: int) -> None:
        """
        Replace the register with a fresh ``|0...0>`` of ``n_qubits`` qubits.

        The current state is kept if the new allocation fails.
        """
        if n_qubits == self._n_qubits:
            self.reset()
            return
        new_state = allocate_zero_state(n_qubits, self.max_qubits, self.memory_limit)
        logger.debug("Resized register %d -> %d qubits", self._n_qubits, n_qubits)
        self._state = new_state
        self._n_qubits = n_qubits

    def load(self, amplitudes: torch.Tensor) -> None:
        """
        Overwrite the state with ``amplitudes`` (same length, copied).

        Raises
        ------
        ValueError
            If the length does not match the register.
        """
        amplitudes = torch.as_tensor(amplitudes)
        if amplitudes.shape != (self.dim,):
            raise ValueError(
                f"expected {self.dim} amplitudes, got shape {tuple(amplitudes.shape)}"
            )
        self._state.copy_(amplitudes.to(AMPLITUDE_DTYPE))

    def copy(self) -> torch.Tensor:
        """Return a detached copy of the amplitudes."""
        return self._state.clone()

    def probabilities(self) -> torch.Tensor:
        """Return ``|amplitude|**2`` for every basis state (float64)."""
        return self._state.abs().square_()

    def norm(self) -> float:
        return float(torch.linalg.vector_norm(self._state).item())


__all__ = [
    "AMPLITUDE_DTYPE",
    "AmplitudeBuffer",
    "allocate_zero_state",
    "check_allocation",
    "required_bytes",
    "workspace_bytes",
    "is_allocation_failure",
]
