"""Handle-based engine interface.

Sessions are addressed by opaque integer handles and results are returned
as :class:`ResultBuffer` objects that the caller releases with
:func:`free_result`. This mirrors the status-code boundary of the engine for
hosts that cannot hold Python objects directly; Python callers can use
:class:`questkit.session.Session` instead.

Example
-------
>>> h = initialize()
>>> res = execute_transaction(h, b"\\x01\\x02", b"sender")
>>> len(res.data) > 64
True
>>> free_result(res)
>>> finalize(h)
"""

from __future__ import annotations

import itertools
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from . import __version__
from .core.config import EngineConfig
from .errors import InvalidHandle
from .io.result import ExecutionResult
from .logging import get_logger
from .session import Session

logger = get_logger(__name__)

_sessions: Dict[int, Session] = {}
_sessions_lock = threading.Lock()
_handle_counter = itertools.count(1)
_default_threads: Optional[int] = None


class ResultBuffer:
    """
    Serialized result owned by the caller until :func:`free_result`.

    Reading :attr:`data` after release raises :class:`InvalidHandle`.
    """

    __slots__ = ("_data", "_result", "_released", "_lock")

    def __init__(self, result: ExecutionResult) -> None:
        self._result = result
        self._data = result.to_bytes()
        self._released = False
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        status = "released" if self._released else f"{len(self._data)} bytes"
        return f"ResultBuffer({status})"

    @property
    def released(self) -> bool:
        return self._released

    @property
    def data(self) -> bytes:
        if self._released:
            raise InvalidHandle("result buffer has been freed")
        return self._data

    @property
    def result(self) -> ExecutionResult:
        if self._released:
            raise InvalidHandle("result buffer has been freed")
        return self._result

    def __len__(self) -> int:
        return len(self.data)

    def _release(self) -> None:
        with self._lock:
            if self._released:
                raise InvalidHandle("result buffer was already freed")
            self._released = True
            self._data = b""
            self._result = None


def _lookup(handle: int) -> Session:
    with _sessions_lock:
        session = _sessions.get(handle)
    if session is None:
        logger.warning("Unknown session handle %r", handle)
        raise InvalidHandle(f"unknown or finalized session handle {handle!r}")
    return session


def set_thread_count(n: int) -> None:
    """
    Set the worker count for sessions initialized after this call.

    Existing sessions keep the count they were created with.

    Raises:
        ValueError: If ``n < 1``.
    """
    if n < 1:
        raise ValueError(f"thread count must be >= 1, got {n}")
    global _default_threads
    _default_threads = int(n)
    logger.info("Default thread count set to %d", n)


def get_thread_count() -> int:
    """Thread count the next :func:`initialize` will use."""
    if _default_threads is not None:
        return _default_threads
    return EngineConfig.from_env().num_threads


def initialize(config: Optional[EngineConfig] = None) -> int:
    """
    Open a session and return its handle.

    Raises:
        OutOfMemory: If the initial register cannot be allocated.
    """
    if config is None:
        overrides = {}
        if _default_threads is not None:
            overrides["num_threads"] = _default_threads
        config = EngineConfig.from_env(**overrides)
    session = Session(config)
    with _sessions_lock:
        handle = next(_handle_counter)
        _sessions[handle] = session
    logger.debug("Initialized session handle %d", handle)
    return handle


def finalize(handle: int) -> None:
    """
    Close a session and invalidate its handle.

    Raises:
        InvalidHandle: If the handle is unknown or already finalized.
    """
    with _sessions_lock:
        session = _sessions.pop(handle, None)
    if session is None:
        logger.warning("Finalize on unknown session handle %r", handle)
        raise InvalidHandle(f"unknown or finalized session handle {handle!r}")
    session.close()
    logger.debug("Finalized session handle %d", handle)


def execute_transaction(handle: int, data: bytes, sender: bytes) -> ResultBuffer:
    """Run a transaction on the session behind ``handle``."""
    return ResultBuffer(_lookup(handle).execute_transaction(data, sender))


def execute_batch(
    handle: int, transactions: Iterable[Tuple[bytes, bytes]]
) -> List[ResultBuffer]:
    """
    Run ``(data, sender)`` pairs in order on the session behind ``handle``.

    Returns one result buffer per transaction, in input order; each must be
    released with :func:`free_result`.
    """
    return [ResultBuffer(r) for r in _lookup(handle).execute_batch(transactions)]


def simulate_circuit(handle: int, circuit_bytes: bytes) -> ResultBuffer:
    """Run an encoded circuit on the session behind ``handle``."""
    return ResultBuffer(_lookup(handle).simulate_circuit(circuit_bytes))


def free_result(result: ResultBuffer) -> None:
    """
    Release a result buffer.

    Raises:
        InvalidHandle: If ``result`` is not a live :class:`ResultBuffer`.
    """
    if not isinstance(result, ResultBuffer):
        logger.warning("free_result on foreign object %s", type(result).__name__)
        raise InvalidHandle(f"not a result buffer: {type(result).__name__}")
    result._release()


def calc_state_hash(handle: int) -> bytes:
    """32-byte digest of the session's current state."""
    return _lookup(handle).state_hash()


def session_statistics(handle: int) -> dict:
    return _lookup(handle).statistics()


def active_handles() -> int:
    """Number of sessions currently open through this module."""
    with _sessions_lock:
        return len(_sessions)


def version() -> str:
    return f"questkit-{__version__}"


__all__ = [
    "ResultBuffer",
    "set_thread_count",
    "get_thread_count",
    "initialize",
    "finalize",
    "execute_transaction",
    "execute_batch",
    "simulate_circuit",
    "free_result",
    "calc_state_hash",
    "session_statistics",
    "active_handles",
    "version",
]
