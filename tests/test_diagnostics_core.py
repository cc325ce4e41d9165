"""Tests for core diagnostic functions."""

import pytest
import torch

from questkit.backend.amplitudes import AmplitudeBuffer
from questkit.diagnostics import (
    assert_normalized,
    state_norm,
)


def test_state_norm_and_assert_normalized() -> None:
    state = torch.tensor([1.0, 0.0], dtype=torch.complex128)
    n = state_norm(state)
    assert n.shape == ()
    assert torch.allclose(n, torch.tensor(1.0, dtype=torch.float64))

    # Should not raise
    assert_normalized(state)


def test_assert_normalized_raises_for_non_unit_state() -> None:
    state = torch.tensor([2.0, 0.0], dtype=torch.complex128)
    with pytest.raises(ValueError, match="not normalized"):
        assert_normalized(state)


def test_assert_normalized_default_tolerance_is_tight() -> None:
    state = torch.tensor([1.0 + 1e-8, 0.0], dtype=torch.complex128)
    with pytest.raises(ValueError):
        assert_normalized(state)
    assert_normalized(state, atol=1e-6)


def test_assert_normalized_rejects_nan() -> None:
    state = torch.tensor([float("nan"), 0.0], dtype=torch.complex128)
    with pytest.raises(ValueError, match="non-finite"):
        assert_normalized(state)


def test_state_norm_batched() -> None:
    s = 2.0 ** -0.5
    states = torch.tensor([[1.0, 0.0], [0.0, 1.0], [s, s]], dtype=torch.complex128)
    norms = state_norm(states)
    assert norms.shape == (3,)
    assert torch.allclose(norms, torch.ones(3, dtype=torch.float64), atol=1e-12)


def test_state_norm_rejects_scalar() -> None:
    with pytest.raises(ValueError):
        state_norm(torch.tensor(1.0 + 0j))


def test_buffer_norm_matches(state_factory) -> None:
    buf = AmplitudeBuffer(3)
    buf.load(state_factory(3))
    assert abs(buf.norm() - state_norm(buf.tensor).item()) < 1e-12

