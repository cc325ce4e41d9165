"""Tests for the transaction mapper."""

import hashlib

import pytest

from questkit.errors import InvalidTransaction
from questkit.io import encode_circuit
from questkit.transaction import (
    MAX_DATA_SIZE,
    HashStream,
    instruction_names,
    map_transaction,
    sender_seed,
    transaction_qubits,
)


class TestHashStream:
    def test_first_block_definition(self):
        stream = HashStream(b"seed")
        expected = hashlib.sha256(b"seed" + (0).to_bytes(8, "big")).digest()
        assert stream.read(32) == expected

    def test_reads_are_contiguous(self):
        a = HashStream(b"k")
        b = HashStream(b"k")
        joined = a.read(5) + a.read(40) + a.read(3)
        assert joined == b.read(48)

    def test_angle_range(self):
        stream = HashStream(b"angles")
        for _ in range(100):
            assert 0.0 <= stream.next_angle() < 6.283185307179587

    def test_negative_read(self):
        with pytest.raises(ValueError):
            HashStream(b"x").read(-1)


class TestQubitCount:
    @pytest.mark.parametrize(
        "size, expected",
        [(1, 4), (2, 5), (4, 6), (32, 9), (64, 10), (128, 11), (256, 12), (65536, 12)],
    )
    def test_width_from_data_size(self, size, expected):
        assert transaction_qubits(size) == expected


class TestMapping:
    def test_deterministic(self):
        a = map_transaction(b"transfer 10 to bob", b"alice")
        b = map_transaction(bytearray(b"transfer 10 to bob"), memoryview(b"alice"))
        assert a.circuit == b.circuit
        assert encode_circuit(a.circuit) == encode_circuit(b.circuit)
        assert a.sender_seed == b.sender_seed
        assert a.data_digest == hashlib.sha256(b"transfer 10 to bob").digest()

    @pytest.mark.parametrize(
        "data, sender, n_qubits, n_gates, expected",
        [
            (
                b"transfer 10 to bob",
                b"alice",
                8,
                24,
                "08eebc2304fa0f818ee6aa406f6695490067202fa291097238cd13f17c1c2e25",
            ),
            (
                b"abcdefghijklmnopqrstuvwxyz0123456789ABCD",
                b"bob",
                9,
                34,
                "73f5f2bd7fe6a4e610ff9a5672f2386aabfb7cf2095154bb83f4ac85acbd9a5b",
            ),
        ],
    )
    def test_golden_encoding(self, data, sender, n_qubits, n_gates, expected):
        mapped = map_transaction(data, sender)
        assert mapped.n_qubits == n_qubits
        assert len(mapped.circuit) == n_gates
        encoded = encode_circuit(mapped.circuit)
        assert hashlib.sha256(encoded).hexdigest() == expected

    def test_sender_seed_definition(self):
        assert sender_seed(b"alice") == hashlib.sha256(b"questkit.sender" + b"alice").digest()

    def test_sender_changes_circuit(self):
        a = map_transaction(b"payload", b"alice")
        b = map_transaction(b"payload", b"bob")
        assert a.circuit != b.circuit

    def test_data_changes_circuit(self):
        a = map_transaction(b"payload-1", b"alice")
        b = map_transaction(b"payload-2", b"alice")
        assert a.circuit != b.circuit

    @pytest.mark.parametrize("size", [1, 31, 32, 33, 100])
    def test_structure(self, size):
        mapped = map_transaction(bytes(range(size)), b"s")
        n = mapped.n_qubits
        ops = mapped.circuit.ops
        chunks = -(-size // 32)
        assert len(ops) == 2 * n + 8 * chunks
        assert [op.name for op in ops[:n]] == ["H"] * n
        assert [op.targets for op in ops[:n]] == [(q,) for q in range(n)]
        assert all(op.name == "RZ" for op in ops[n : 2 * n])
        for op in ops:
            assert len(set(op.targets + op.controls)) == len(op.targets + op.controls)
            assert all(0 <= q < n for q in op.targets)

    def test_instruction_set_covers_catalog_families(self):
        names = set(instruction_names().values())
        assert {"H", "RZ", "CNOT", "TOFFOLI"} <= names

    def test_max_size_accepted(self):
        mapped = map_transaction(b"\x00" * MAX_DATA_SIZE, b"s" * 64)
        assert mapped.n_qubits == 12


class TestValidation:
    @pytest.mark.parametrize(
        "data, sender",
        [
            (b"", b"alice"),
            (b"\x00" * (MAX_DATA_SIZE + 1), b"alice"),
            (b"data", b""),
            (b"data", b"s" * 65),
            ("data", b"alice"),
            (b"data", "alice"),
            (None, b"alice"),
        ],
    )
    def test_rejected(self, data, sender):
        with pytest.raises(InvalidTransaction):
            map_transaction(data, sender)

    def test_error_code(self):
        with pytest.raises(InvalidTransaction) as excinfo:
            map_transaction(b"", b"x")
        assert excinfo.value.code == 3
