"""Tests for canonical state digests."""

import hashlib
import struct

import numpy as np
import pytest
import torch

from questkit.backend.amplitudes import AmplitudeBuffer
from questkit.core.config import BLOCK_AMPLITUDES
from questkit.hashing import (
    amplitudes_from_bytes,
    canonical_amplitude_bytes,
    digest_hex,
    state_digest,
)


def test_zero_state_digest_layout():
    expected = hashlib.sha256(
        b"QKSTATE1" + bytes([1]) + struct.pack("<4d", 1.0, 0.0, 0.0, 0.0)
    ).digest()
    assert state_digest(AmplitudeBuffer(1)) == expected


def test_digest_is_32_bytes():
    assert len(state_digest(AmplitudeBuffer(3))) == 32


def test_amplitudes_serialized_in_index_order():
    state = torch.tensor([0.6, 0.8j], dtype=torch.complex128)
    assert canonical_amplitude_bytes(state) == struct.pack("<4d", 0.6, 0.0, 0.0, 0.8)


def test_negative_zero_canonicalized():
    re = torch.tensor([1.0, -0.0], dtype=torch.float64)
    im = torch.tensor([-0.0, -0.0], dtype=torch.float64)
    signed = torch.complex(re, im)
    plain = torch.tensor([1.0, 0.0], dtype=torch.complex128)
    assert canonical_amplitude_bytes(signed) == canonical_amplitude_bytes(plain)
    assert state_digest(signed) == state_digest(plain)


def test_tensor_and_buffer_agree(state_factory):
    buf = AmplitudeBuffer(4)
    buf.load(state_factory(4))
    assert state_digest(buf) == state_digest(buf.tensor, 4)
    assert state_digest(buf) == state_digest(buf.tensor.numpy())


def test_small_change_changes_digest(state_factory):
    state = state_factory(3)
    other = state.clone()
    other[5] = torch.complex(
        torch.tensor(np.nextafter(other[5].real.item(), 2.0), dtype=torch.float64),
        other[5].imag,
    )
    assert state_digest(state) != state_digest(other)


def test_block_hashing_matches_whole_vector(state_factory):
    state = state_factory(BLOCK_AMPLITUDES.bit_length() + 1)
    n_qubits = state.shape[0].bit_length() - 1
    expected = hashlib.sha256(
        b"QKSTATE1" + bytes([n_qubits]) + canonical_amplitude_bytes(state)
    ).digest()
    assert state_digest(state) == expected


def test_h_on_one_qubit_golden():
    # Both amplitudes are 1.0 / math.sqrt(2.0).
    amp = 0.7071067811865475
    state = torch.tensor([amp, amp], dtype=torch.complex128)
    assert state_digest(state) == bytes.fromhex(
        "75d8880ba19704336f040fb678de87d80c2b34ab48a87d6a033abc5aea3ef1e1"
    )


def test_declared_width_must_match_length():
    state = torch.tensor([1.0, 0.0], dtype=torch.complex128)
    with pytest.raises(ValueError):
        state_digest(state, n_qubits=2)


def test_amplitude_bytes_roundtrip(state_factory):
    state = state_factory(3)
    back = amplitudes_from_bytes(canonical_amplitude_bytes(state))
    assert np.array_equal(back, state.numpy())


def test_digest_hex():
    digest = bytes(range(32))
    assert digest_hex(digest) == digest.hex()
    assert digest_hex(digest, 8) == "00010203"
