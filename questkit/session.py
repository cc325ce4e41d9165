"""Simulation sessions.

A :class:`Session` owns one amplitude buffer, one execution scheduler and one
profiler. All state-touching methods hold the session lock, so a session
never runs two simulations at once; independent sessions share nothing and
may run in parallel.

A failed call leaves the previous state untouched: inputs are decoded or
mapped first, the new register is allocated and simulated off to the side,
and only a completed run replaces the session's buffer.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import torch

from .backend.amplitudes import (
    AmplitudeBuffer,
    check_allocation,
    is_allocation_failure,
    required_bytes,
    workspace_bytes,
)
from .backend.scheduler import ExecutionScheduler
from .backend.statevector import measure_all, measure_qubit, run_circuit
from .circuit import QuantumCircuit
from .core.config import EngineConfig, default_config
from .diagnostics.profiler import Profiler
from .errors import InvalidHandle, InvalidTransaction, OutOfMemory
from .hashing.digest import digest_hex, state_digest
from .io.binary import decode_circuit
from .io.result import RESULT_KIND_CIRCUIT, RESULT_KIND_TRANSACTION, ExecutionResult
from .logging import get_logger
from .sampling.bitstrings import sample_indices
from .transaction.mapper import TransactionCircuit, map_transaction

logger = get_logger(__name__)


class Session:
    """
    One independent simulated register.

    Parameters
    ----------
    config:
        Engine settings captured for the lifetime of the session. Defaults
        to :func:`questkit.core.config.default_config`.

    Example
    -------
    >>> with Session() as s:
    ...     result = s.execute_transaction(b"payload", b"alice")
    ...     len(s.state_hash())
    32
    """

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config if config is not None else default_config()
        self._lock = threading.Lock()
        self._buffer = AmplitudeBuffer(
            self.config.initial_qubits,
            max_qubits=self.config.max_qubits,
            memory_limit=self.config.memory_limit,
        )
        self._scheduler = ExecutionScheduler(
            self.config.num_threads, self.config.min_chunk_size
        )
        self._profiler = Profiler()
        self._closed = False
        self._transactions = 0
        self._circuits = 0
        self._gates = 0
        self._batches = 0
        logger.debug(
            "Session opened: %d thread(s), max %d qubits",
            self.config.num_threads,
            self.config.max_qubits,
        )

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"n_qubits={self._buffer.n_qubits}"
        return f"Session({state}, num_threads={self.config.num_threads})"

    # A session is the sole owner of its buffer and worker pool.
    def __copy__(self):
        raise TypeError("Session objects cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("Session objects cannot be copied")

    def __reduce__(self):
        raise TypeError("Session objects cannot be pickled")

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def n_qubits(self) -> int:
        return self._buffer.n_qubits

    @property
    def num_threads(self) -> int:
        return self.config.num_threads

    @property
    def profiler(self) -> Profiler:
        return self._profiler

    def _check_open(self) -> None:
        if self._closed:
            raise InvalidHandle("session has been closed")

    def _reserve(self, n_qubits: int) -> None:
        # The live register stays allocated until the run succeeds, and the
        # result summary needs about one register's worth of float64 scratch.
        reserved = max(required_bytes(self._buffer.n_qubits), required_bytes(n_qubits))
        reserved += workspace_bytes(n_qubits, self.config.num_threads)
        check_allocation(
            n_qubits,
            max_qubits=self.config.max_qubits,
            memory_limit=self.config.memory_limit,
            reserved_bytes=reserved,
        )

    def _simulate(
        self, circuit: QuantumCircuit, kind: int
    ) -> Tuple[AmplitudeBuffer, ExecutionResult]:
        # Caller holds the lock. Returns the filled buffer and its result
        # without touching the session state.
        self._reserve(circuit.n_qubits)
        try:
            fresh = AmplitudeBuffer(
                circuit.n_qubits,
                max_qubits=self.config.max_qubits,
                memory_limit=self.config.memory_limit,
            )
            with self._profiler.profile("run_circuit"):
                applied = run_circuit(fresh, circuit, self._scheduler)
            result = ExecutionResult.from_buffer(
                fresh, kind, applied, self.config.result_state_max_qubits
            )
        except OutOfMemory:
            raise
        except (RuntimeError, MemoryError) as exc:
            if not is_allocation_failure(exc):
                raise
            logger.warning(
                "Allocation failed while simulating %d qubits: %s",
                circuit.n_qubits,
                exc,
            )
            raise OutOfMemory(
                f"ran out of memory simulating {circuit.n_qubits} qubits"
            ) from exc
        logger.info(
            "%s on %d qubits, %d gates -> %s",
            "Transaction" if kind == RESULT_KIND_TRANSACTION else "Circuit",
            circuit.n_qubits,
            applied,
            digest_hex(result.digest, 16),
        )
        return fresh, result

    def _run(self, circuit: QuantumCircuit, kind: int) -> ExecutionResult:
        fresh, result = self._simulate(circuit, kind)
        self._buffer = fresh
        self._gates += result.gate_count
        return result

    def run_circuit(self, circuit: QuantumCircuit) -> ExecutionResult:
        """
        Simulate an already-built circuit from ``|0...0>``.

        Raises
        ------
        OutOfMemory
            If the circuit's register exceeds the configured bounds.
        InvalidHandle
            If the session is closed.
        """
        with self._lock:
            self._check_open()
            with self._profiler.profile("simulate_circuit"):
                result = self._run(circuit, RESULT_KIND_CIRCUIT)
            self._circuits += 1
            return result

    def simulate_circuit(self, circuit_bytes: bytes) -> ExecutionResult:
        """
        Decode and simulate a circuit in wire form.

        Raises
        ------
        MalformedCircuit
            If the bytes do not decode.
        OutOfMemory
            If the circuit's register exceeds the configured bounds.
        InvalidHandle
            If the session is closed.
        """
        with self._lock:
            self._check_open()
            with self._profiler.profile("simulate_circuit"):
                with self._profiler.profile("decode_circuit"):
                    circuit = decode_circuit(circuit_bytes)
                result = self._run(circuit, RESULT_KIND_CIRCUIT)
            self._circuits += 1
            return result

    def execute_transaction(self, data: bytes, sender: bytes) -> ExecutionResult:
        """
        Map a transaction onto a circuit and simulate it.

        Raises
        ------
        InvalidTransaction
            If ``data`` or ``sender`` is out of bounds.
        OutOfMemory
            If the mapped register exceeds the configured bounds.
        InvalidHandle
            If the session is closed.
        """
        with self._lock:
            self._check_open()
            with self._profiler.profile("execute_transaction"):
                with self._profiler.profile("map_transaction"):
                    mapped = map_transaction(data, sender)
                result = self._run(mapped.circuit, RESULT_KIND_TRANSACTION)
            self._transactions += 1
            return result

    def execute_batch(
        self, transactions: Iterable[Tuple[bytes, bytes]]
    ) -> List[ExecutionResult]:
        """
        Execute ``(data, sender)`` pairs in order, each from ``|0...0>``.

        Every transaction is mapped before any is simulated, so one invalid
        entry rejects the whole batch with the session state untouched. On
        success the session holds the state of the last transaction and the
        results are returned in input order.

        Raises
        ------
        InvalidTransaction
            If any entry is not a ``(data, sender)`` pair or is out of bounds.
        OutOfMemory
            If a mapped register exceeds the configured bounds.
        InvalidHandle
            If the session is closed.
        """
        items = list(transactions)
        with self._lock:
            self._check_open()
            if not items:
                return []
            with self._profiler.profile("execute_batch"):
                with self._profiler.profile("map_transaction"):
                    mapped = [self._map_entry(i, entry) for i, entry in enumerate(items)]
                results: List[ExecutionResult] = []
                last = None
                for tx in mapped:
                    # Only the newest register is kept alive between runs.
                    last = None
                    last, result = self._simulate(tx.circuit, RESULT_KIND_TRANSACTION)
                    results.append(result)
                self._buffer = last
            self._gates += sum(r.gate_count for r in results)
            self._transactions += len(results)
            self._batches += 1
            logger.info("Batch of %d transactions executed", len(results))
            return results

    @staticmethod
    def _map_entry(index: int, entry) -> TransactionCircuit:
        try:
            data, sender = entry
        except (TypeError, ValueError):
            logger.warning("Rejected batch entry %d: not a (data, sender) pair", index)
            raise InvalidTransaction(
                f"batch entry {index} must be a (data, sender) pair"
            ) from None
        return map_transaction(data, sender)

    def state_hash(self) -> bytes:
        """32-byte digest of the current state."""
        with self._lock:
            self._check_open()
            with self._profiler.profile("state_hash"):
                return state_digest(self._buffer)

    def amplitudes(self) -> torch.Tensor:
        """Copy of the current amplitudes."""
        with self._lock:
            self._check_open()
            return self._buffer.copy()

    def probabilities(self) -> torch.Tensor:
        with self._lock:
            self._check_open()
            return self._buffer.probabilities()

    def sample(
        self,
        n_shots: int,
        generator: Optional[torch.Generator] = None,
    ) -> torch.Tensor:
        """Draw ``n_shots`` basis indices from the current state without collapsing it."""
        with self._lock:
            self._check_open()
            return sample_indices(self._buffer.probabilities(), n_shots, generator)

    def measure(
        self,
        qubit: Optional[int] = None,
        generator: Optional[torch.Generator] = None,
    ) -> int:
        """
        Measure one qubit, or the whole register when ``qubit`` is None.

        The state collapses accordingly.
        """
        with self._lock:
            self._check_open()
            with self._profiler.profile("measure"):
                if qubit is None:
                    return measure_all(self._buffer, generator)
                return measure_qubit(self._buffer, qubit, generator)

    def reset(self, n_qubits: Optional[int] = None) -> None:
        """Return to ``|0...0>``, optionally changing the register width."""
        with self._lock:
            self._check_open()
            if n_qubits is None:
                self._buffer.reset()
            else:
                self._reserve(n_qubits)
                self._buffer.resize(n_qubits)

    def statistics(self) -> Dict[str, Any]:
        """Counters, register info and profiler timings for this session."""
        with self._lock:
            return {
                "n_qubits": self._buffer.n_qubits,
                "num_threads": self.config.num_threads,
                "transactions_executed": self._transactions,
                "batches_executed": self._batches,
                "circuits_simulated": self._circuits,
                "gates_applied": self._gates,
                "closed": self._closed,
                "operations": self._profiler.snapshot(),
            }

    def close(self) -> None:
        """Release the worker pool. Closing twice is a no-op."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._scheduler.close()
        logger.debug("Session closed")


def open_session(config: Union[EngineConfig, None] = None, **overrides: Any) -> Session:
    """Open a session from ``config`` (or the environment) with field overrides."""
    if config is None:
        config = EngineConfig.from_env(**overrides)
    elif overrides:
        config = config.replace(**overrides)
    return Session(config)


__all__ = ["Session", "open_session"]
