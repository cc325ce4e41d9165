"""Tests for the handle-based engine interface."""

import pytest

import questkit
from questkit import EngineConfig, api
from questkit.backend import ExecutionScheduler
from questkit.errors import InvalidHandle, InvalidTransaction, MalformedCircuit, QuestKitError
from questkit.io import RESULT_KIND_CIRCUIT, RESULT_KIND_TRANSACTION, decode_result, encode_circuit
from questkit.circuit import QuantumCircuit


@pytest.fixture(autouse=True)
def _restore_thread_default(monkeypatch):
    monkeypatch.setattr(api, "_default_threads", None)


@pytest.fixture
def handle():
    h = api.initialize()
    yield h
    if h in api._sessions:
        api.finalize(h)


def test_version():
    assert api.version() == "questkit-" + questkit.__version__


class TestHandles:
    def test_initialize_and_finalize(self):
        before = api.active_handles()
        h = api.initialize()
        assert isinstance(h, int) and h > 0
        assert api.active_handles() == before + 1
        api.finalize(h)
        assert api.active_handles() == before

    def test_handles_are_unique(self):
        a = api.initialize()
        b = api.initialize()
        try:
            assert a != b
        finally:
            api.finalize(a)
            api.finalize(b)

    def test_finalized_handle_is_invalid(self):
        h = api.initialize()
        api.finalize(h)
        with pytest.raises(InvalidHandle):
            api.calc_state_hash(h)
        with pytest.raises(InvalidHandle):
            api.execute_transaction(h, b"x", b"y")
        with pytest.raises(InvalidHandle):
            api.finalize(h)

    def test_unknown_handle(self):
        with pytest.raises(InvalidHandle) as excinfo:
            api.simulate_circuit(10**9, b"")
        assert excinfo.value.code == 4
        assert isinstance(excinfo.value, QuestKitError)


class TestExecution:
    def test_execute_transaction(self, handle):
        res = api.execute_transaction(handle, b"\x01\x02\x03", b"sender")
        result = decode_result(res.data)
        assert result.kind == RESULT_KIND_TRANSACTION
        assert result.digest == api.calc_state_hash(handle)
        assert len(res) == len(res.data)
        api.free_result(res)

    def test_simulate_circuit(self, handle):
        circuit = QuantumCircuit(2)
        circuit.add_gate("X", [1])
        res = api.simulate_circuit(handle, encode_circuit(circuit))
        result = decode_result(res.data)
        assert result.kind == RESULT_KIND_CIRCUIT
        assert result.outcome == 2
        assert res.result.outcome == 2
        api.free_result(res)

    def test_errors_propagate(self, handle):
        with pytest.raises(MalformedCircuit):
            api.simulate_circuit(handle, b"not a circuit")
        with pytest.raises(InvalidTransaction):
            api.execute_transaction(handle, b"", b"sender")

    def test_same_input_same_hash_on_fresh_handles(self):
        a = api.initialize()
        b = api.initialize()
        try:
            res_a = api.execute_transaction(a, b"payload", b"s")
            res_b = api.execute_transaction(b, b"payload", b"s")
            assert res_a.data == res_b.data
            assert api.calc_state_hash(a) == api.calc_state_hash(b)
            api.free_result(res_a)
            api.free_result(res_b)
        finally:
            api.finalize(a)
            api.finalize(b)

    def test_golden_hadamard_hash(self, handle):
        circuit = QuantumCircuit(1)
        circuit.add_gate("H", [0])
        api.free_result(api.simulate_circuit(handle, encode_circuit(circuit)))
        assert api.calc_state_hash(handle) == bytes.fromhex(
            "75d8880ba19704336f040fb678de87d80c2b34ab48a87d6a033abc5aea3ef1e1"
        )

    def test_golden_transaction(self, handle):
        res = api.execute_transaction(handle, b"transfer 10 to bob", b"alice")
        expected = bytes.fromhex(
            "43fa79c6fe2945755c6356d6003c19156778e321e1411c45bb5908005073ab37"
        )
        assert res.result.digest == expected
        assert decode_result(res.data).digest == expected
        assert api.calc_state_hash(handle) == expected
        api.free_result(res)

    def test_execute_batch(self, handle):
        batch = [(b"transfer 10 to bob", b"alice"), (b"x", b"y")]
        buffers = api.execute_batch(handle, batch)
        singles = []
        for data, sender in batch:
            h = api.initialize()
            try:
                singles.append(api.execute_transaction(h, data, sender))
            finally:
                api.finalize(h)
        assert [b.data for b in buffers] == [s.data for s in singles]
        assert api.calc_state_hash(handle) == buffers[-1].result.digest
        assert api.session_statistics(handle)["batches_executed"] == 1
        for res in buffers + singles:
            api.free_result(res)

    def test_statistics(self, handle):
        api.free_result(api.execute_transaction(handle, b"x", b"y"))
        stats = api.session_statistics(handle)
        assert stats["transactions_executed"] == 1


class TestResultBuffers:
    def test_data_unavailable_after_free(self, handle):
        res = api.execute_transaction(handle, b"x", b"y")
        api.free_result(res)
        assert res.released
        with pytest.raises(InvalidHandle):
            res.data
        with pytest.raises(InvalidHandle):
            res.result

    def test_double_free(self, handle):
        res = api.execute_transaction(handle, b"x", b"y")
        api.free_result(res)
        with pytest.raises(InvalidHandle):
            api.free_result(res)

    @pytest.mark.parametrize("obj", [None, b"bytes", 3])
    def test_foreign_object(self, obj):
        with pytest.raises(InvalidHandle):
            api.free_result(obj)

    def test_result_outlives_session(self):
        h = api.initialize()
        res = api.execute_transaction(h, b"x", b"y")
        api.finalize(h)
        assert decode_result(res.data).kind == RESULT_KIND_TRANSACTION
        api.free_result(res)


class TestThreadCount:
    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            api.set_thread_count(0)

    def test_applies_to_later_sessions_only(self):
        h_old = api.initialize()
        try:
            api.set_thread_count(3)
            assert api.get_thread_count() == 3
            h_new = api.initialize()
            try:
                assert api.session_statistics(h_new)["num_threads"] == 3
                assert api.session_statistics(h_old)["num_threads"] == 1
            finally:
                api.finalize(h_new)
        finally:
            api.finalize(h_old)

    def test_thread_count_does_not_change_hash(self, monkeypatch):
        splits = []
        original = ExecutionScheduler.partition

        def recording(self, total):
            ranges = original(self, total)
            splits.append(len(ranges))
            return ranges

        monkeypatch.setattr(ExecutionScheduler, "partition", recording)
        a = api.initialize(EngineConfig(num_threads=1))
        b = api.initialize(EngineConfig(num_threads=4, min_chunk_size=1))
        try:
            data = bytes(range(256)) * 4
            res_a = api.execute_transaction(a, data, b"s")
            del splits[:]
            res_b = api.execute_transaction(b, data, b"s")
            # 12 qubits: even three-target gates leave 512 tuples to split.
            assert splits and set(splits) == {4}
            assert res_a.data == res_b.data
            assert api.calc_state_hash(a) == api.calc_state_hash(b)
            api.free_result(res_a)
            api.free_result(res_b)
        finally:
            api.finalize(a)
            api.finalize(b)
