"""Pytest configuration and shared fixtures for questkit tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- Helpers for building random states and reference unitaries
"""

import os

import numpy as np
import pytest
import torch


def _seed() -> int:
    return int(os.environ.get("TEST_RNG_SEED", "0"))


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    return np.random.default_rng(_seed())


@pytest.fixture(scope="function")
def torch_rng() -> torch.Generator:
    """Provide a deterministic CPU torch RNG for tests."""
    generator = torch.Generator(device="cpu")
    generator.manual_seed(_seed())
    return generator


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds(rng: np.random.Generator, torch_rng: torch.Generator) -> None:
    """Auto-use fixture to set global random seeds for reproducibility."""
    np.random.seed(_seed())
    torch.manual_seed(_seed())


@pytest.fixture(autouse=True)
def _debug_off():
    """Keep debug mode off unless a test turns it on explicitly."""
    from questkit.diagnostics import debug_context

    with debug_context(False):
        yield


def random_state(n_qubits: int, generator: torch.Generator) -> torch.Tensor:
    """Random normalized complex128 state of 2**n_qubits amplitudes."""
    dim = 1 << n_qubits
    re = torch.randn(dim, generator=generator, dtype=torch.float64)
    im = torch.randn(dim, generator=generator, dtype=torch.float64)
    state = torch.complex(re, im)
    return state / torch.linalg.vector_norm(state)


def dense_unitary(n_qubits, matrix, targets, controls=()):
    """Full 2**n x 2**n operator for ``matrix`` on ``targets`` with ``controls``.

    Built column by column from the basis-state definition, independently of
    the engine's index arithmetic.
    """
    dim = 1 << n_qubits
    k = len(targets)
    target_mask = 0
    for t in targets:
        target_mask |= 1 << t
    full = torch.zeros(dim, dim, dtype=torch.complex128)
    for col in range(dim):
        if any(not (col >> c) & 1 for c in controls):
            full[col, col] = 1.0
            continue
        j = 0
        for b, t in enumerate(targets):
            j |= ((col >> t) & 1) << (k - 1 - b)
        cleared = col & ~target_mask
        for r in range(1 << k):
            row = cleared
            for b, t in enumerate(targets):
                row |= ((r >> (k - 1 - b)) & 1) << t
            full[row, col] += matrix[r, j]
    return full


@pytest.fixture
def state_factory(torch_rng: torch.Generator):
    """Callable ``n_qubits -> random normalized state`` using the seeded RNG."""

    def make(n_qubits: int) -> torch.Tensor:
        return random_state(n_qubits, torch_rng)

    return make


@pytest.fixture
def reference_unitary():
    """The :func:`dense_unitary` builder, for engine cross-checks."""
    return dense_unitary
