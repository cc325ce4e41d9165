"""Tests for bitstring sampling and outcome selection."""

import hashlib
from types import SimpleNamespace

import numpy as np
import pytest
import torch

from questkit.sampling import (
    bitstring_counts,
    outcome_draw,
    sample_bitstrings_state,
    sample_from_probs,
    sample_outcome,
)
from questkit.sampling import bitstrings
from questkit.sampling.bitstrings import sample_indices


def plus_state():
    return torch.tensor([1.0, 1.0], dtype=torch.complex128) / 2.0 ** 0.5


class TestBornSampling:
    def test_fifty_fifty_split(self, torch_rng):
        indices = sample_indices(plus_state().abs() ** 2, 20000, generator=torch_rng)
        ones = int(indices.sum())
        # 5 sigma around 10000
        assert 9650 <= ones <= 10350

    def test_deterministic_state_always_same_outcome(self, torch_rng):
        probs = torch.tensor([0.0, 0.0, 1.0, 0.0], dtype=torch.float64)
        indices = sample_indices(probs, 100, generator=torch_rng)
        assert torch.all(indices == 2)

    def test_same_generator_seed_same_samples(self):
        probs = torch.full((8,), 1 / 8, dtype=torch.float64)
        a = sample_indices(probs, 50, torch.Generator().manual_seed(3))
        b = sample_indices(probs, 50, torch.Generator().manual_seed(3))
        assert torch.equal(a, b)

    def test_bitstrings_shape_and_order(self, torch_rng):
        probs = torch.tensor([0.0, 1.0, 0.0, 0.0], dtype=torch.float64)
        bits = sample_from_probs(probs, n_qubits=2, n_shots=3, generator=torch_rng)
        assert bits.shape == (3, 2)
        # index 1 -> qubit 0 set, qubit 1 clear
        assert bits.tolist() == [[1, 0]] * 3

    def test_bitstrings_qubit_subset(self, torch_rng):
        state = torch.zeros(8, dtype=torch.complex128)
        state[0b101] = 1.0
        bits = sample_bitstrings_state(state, 3, 2, qubits=[2], generator=torch_rng)
        assert bits.tolist() == [[1], [1]]

    def test_invalid_arguments(self):
        probs = torch.tensor([0.5, 0.5], dtype=torch.float64)
        with pytest.raises(ValueError):
            sample_indices(probs, 0)
        with pytest.raises(ValueError):
            sample_indices(torch.zeros(2, dtype=torch.float64), 1)
        with pytest.raises(ValueError):
            sample_from_probs(probs, n_qubits=2, n_shots=1)

    def test_bitstring_counts(self):
        counts = bitstring_counts(torch.tensor([0, 3, 3, 2]), n_qubits=2)
        assert counts == {"00": 1, "11": 2, "10": 1}


class TestOutcome:
    def test_inverse_cdf_selection(self):
        probs = np.array([0.0, 0.5, 0.0, 0.5])
        assert sample_outcome(probs, 0.0) == (1, 0.5)
        assert sample_outcome(probs, 0.49) == (1, 0.5)
        assert sample_outcome(probs, 0.5) == (3, 0.5)
        assert sample_outcome(probs, 0.999999) == (3, 0.5)

    def test_never_picks_zero_probability_tail(self):
        probs = np.array([0.25, 0.75, 0.0, 0.0])
        index, p = sample_outcome(probs, 0.9999999999)
        assert index == 1
        assert p == 0.75

    def test_accepts_tensors(self):
        probs = torch.tensor([1.0, 0.0], dtype=torch.float64)
        assert sample_outcome(probs, 0.3) == (0, 1.0)

    def test_u_out_of_range(self):
        with pytest.raises(ValueError):
            sample_outcome(np.array([1.0]), 1.0)

    def test_outcome_draw_definition(self):
        digest = bytes(32)
        h = hashlib.sha256(b"questkit.outcome" + digest).digest()
        expected = (int.from_bytes(h[:8], "big") >> 11) / 2.0**53
        assert outcome_draw(digest) == expected
        assert 0.0 <= outcome_draw(digest) < 1.0

    def test_outcome_draw_stays_below_one(self, monkeypatch):
        class AllOnes:
            def digest(self):
                return b"\xff" * 32

        fake = SimpleNamespace(sha256=lambda data: AllOnes())
        monkeypatch.setattr(bitstrings, "hashlib", fake)
        u = outcome_draw(bytes(32))
        assert u == (2**53 - 1) / 2.0**53
        assert u < 1.0
        assert sample_outcome(np.array([0.25, 0.75]), u) == (1, 0.75)
