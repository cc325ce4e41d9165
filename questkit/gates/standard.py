"""Standard quantum gate matrices.

All factories return complex128 tensors by default: the engine hashes final
states bit-for-bit, and the unitarity acceptance bound (1e-10) is below what
complex64 can resolve.

Multi-qubit matrices are ordered with the first listed qubit as the most
significant bit of the local index, e.g. for CNOT on (control, target) the
basis order is |c t> = |00>, |01>, |10>, |11>.
"""

from __future__ import annotations

import cmath
import math
from typing import Optional

import torch

DEFAULT_DTYPE = torch.complex128


def _resolve(
    dtype: Optional[torch.dtype], device: Optional[torch.device]
) -> tuple[torch.dtype, torch.device]:
    if dtype is None:
        dtype = DEFAULT_DTYPE
    if device is None:
        device = torch.device("cpu")
    return dtype, device


def _matrix(rows, dtype, device) -> torch.Tensor:
    dtype, device = _resolve(dtype, device)
    return torch.tensor(rows, dtype=dtype, device=device)


def I(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Identity gate (single-qubit)."""
    dtype, device = _resolve(dtype, device)
    return torch.eye(2, dtype=dtype, device=device)


def X(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-X gate (bit-flip, NOT gate)."""
    return _matrix([[0.0, 1.0], [1.0, 0.0]], dtype, device)


def Y(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-Y gate."""
    return _matrix([[0.0, -1.0j], [1.0j, 0.0]], dtype, device)


def Z(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-Z gate (phase-flip)."""
    return _matrix([[1.0, 0.0], [0.0, -1.0]], dtype, device)


def H(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    Hadamard gate.

    Maps |0> to (|0> + |1>)/sqrt(2), the canonical superposition gate.
    """
    sqrt2_inv = 1.0 / math.sqrt(2.0)
    return _matrix(
        [[sqrt2_inv, sqrt2_inv], [sqrt2_inv, -sqrt2_inv]], dtype, device
    )


def S(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """S gate (phase gate, sqrt(Z))."""
    return _matrix([[1.0, 0.0], [0.0, 1.0j]], dtype, device)


def SDG(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Adjoint of the S gate."""
    return _matrix([[1.0, 0.0], [0.0, -1.0j]], dtype, device)


def T(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """T gate (pi/8 gate, sqrt(S))."""
    return _matrix([[1.0, 0.0], [0.0, cmath.exp(1.0j * math.pi / 4.0)]], dtype, device)


def TDG(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Adjoint of the T gate."""
    return _matrix([[1.0, 0.0], [0.0, cmath.exp(-1.0j * math.pi / 4.0)]], dtype, device)


def RX(
    theta: float,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Rotation gate around X-axis: RX(theta) = exp(-i theta X / 2).

    Matrix form:
        [[cos(theta/2), -i sin(theta/2)],
         [-i sin(theta/2), cos(theta/2)]]
    """
    half = float(theta) / 2.0
    c, s = math.cos(half), math.sin(half)
    return _matrix([[c, -1.0j * s], [-1.0j * s, c]], dtype, device)


def RY(
    theta: float,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Rotation gate around Y-axis: RY(theta) = exp(-i theta Y / 2).

    Matrix form:
        [[cos(theta/2), -sin(theta/2)],
         [sin(theta/2), cos(theta/2)]]
    """
    half = float(theta) / 2.0
    c, s = math.cos(half), math.sin(half)
    return _matrix([[c, -s], [s, c]], dtype, device)


def RZ(
    theta: float,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Rotation gate around Z-axis: RZ(theta) = exp(-i theta Z / 2).

    Matrix form:
        [[exp(-i theta/2), 0],
         [0, exp(i theta/2)]]
    """
    half = float(theta) / 2.0
    return _matrix(
        [[cmath.exp(-1.0j * half), 0.0], [0.0, cmath.exp(1.0j * half)]],
        dtype,
        device,
    )


def PHASE(
    theta: float,
    dtype: torch.dtype | None = None,
    device: torch.device | None = None,
) -> torch.Tensor:
    """Phase shift: leaves |0> alone and maps |1> to exp(i theta)|1>."""
    return _matrix([[1.0, 0.0], [0.0, cmath.exp(1.0j * float(theta))]], dtype, device)


def CNOT(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    Controlled-NOT on (control, target).

    |00> -> |00>, |01> -> |01>, |10> -> |11>, |11> -> |10>
    """
    return _matrix(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
            [0.0, 0.0, 1.0, 0.0],
        ],
        dtype,
        device,
    )


def CZ(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Controlled-Z; symmetric in its two qubits."""
    return _matrix(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 1.0, 0.0],
            [0.0, 0.0, 0.0, -1.0],
        ],
        dtype,
        device,
    )


def SWAP(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Exchange the states of two qubits."""
    return _matrix(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 1.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype,
        device,
    )


def TOFFOLI(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Doubly-controlled NOT on (control_a, control_b, target)."""
    dtype, device = _resolve(dtype, device)
    matrix = torch.eye(8, dtype=dtype, device=device)
    matrix[6, 6] = 0.0
    matrix[7, 7] = 0.0
    matrix[6, 7] = 1.0
    matrix[7, 6] = 1.0
    return matrix


def dagger(matrix: torch.Tensor) -> torch.Tensor:
    """Return the conjugate transpose of a (..., n, n) matrix."""
    return matrix.conj().transpose(-1, -2).contiguous()


def is_unitary(matrix: torch.Tensor, atol: float = 1e-10) -> bool:
    """
    Check if a matrix is unitary within a given tolerance.

    A matrix U is unitary if U^dagger U = I.

    Args:
        matrix: Tensor of shape (..., n, n) representing one or more matrices.
        atol: Absolute tolerance for the check.

    Returns:
        True if the matrix is unitary (within tolerance), False otherwise.
    """
    if matrix.dim() < 2 or matrix.shape[-1] != matrix.shape[-2]:
        return False

    product = torch.matmul(dagger(matrix), matrix)

    n = matrix.shape[-1]
    identity = torch.eye(n, dtype=matrix.dtype, device=matrix.device)
    if product.ndim > 2:
        identity = identity.expand(product.shape)

    diff = torch.abs(product - identity)
    return bool(torch.all(diff < atol).item())
