"""Data-parallel execution of one gate step.

The scheduler splits the tuple range of a gate into contiguous chunks and
runs them on a thread pool. :meth:`ExecutionScheduler.run` returns only after
every chunk has finished, which is the barrier between consecutive gates.
Chunks touch disjoint amplitude sets, so no locking is needed inside a step.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Tuple

from ..core.config import DEFAULT_MIN_CHUNK_SIZE
from ..logging import get_logger

logger = get_logger(__name__)

Range = Tuple[int, int]


class ExecutionScheduler:
    """
    Fixed-size worker pool for per-gate parallelism.

    Parameters
    ----------
    num_threads:
        Maximum number of chunks a gate step is split into.
    min_chunk_size:
        Smallest chunk handed to a worker. Steps too small to give every
        chunk this many tuples use fewer chunks, down to one chunk run on
        the calling thread.
    """

    def __init__(
        self,
        num_threads: int = 1,
        min_chunk_size: int = DEFAULT_MIN_CHUNK_SIZE,
    ) -> None:
        if num_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {num_threads}")
        if min_chunk_size < 1:
            raise ValueError(f"min_chunk_size must be >= 1, got {min_chunk_size}")
        self.num_threads = num_threads
        self.min_chunk_size = min_chunk_size
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()
        self._closed = False

    def __repr__(self) -> str:
        return (
            f"ExecutionScheduler(num_threads={self.num_threads}, "
            f"min_chunk_size={self.min_chunk_size})"
        )

    def partition(self, total: int) -> List[Range]:
        """
        Split ``[0, total)`` into contiguous ascending ranges.

        At most ``num_threads`` ranges are produced and, when there is more
        than one, each holds at least ``min_chunk_size`` items. Range sizes
        differ by at most one.
        """
        if total < 0:
            raise ValueError(f"total must be >= 0, got {total}")
        if total == 0:
            return []
        n_chunks = min(self.num_threads, max(1, total // self.min_chunk_size))
        base, extra = divmod(total, n_chunks)
        ranges: List[Range] = []
        lo = 0
        for i in range(n_chunks):
            hi = lo + base + (1 if i < extra else 0)
            ranges.append((lo, hi))
            lo = hi
        return ranges

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._closed:
                raise RuntimeError("scheduler has been closed")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.num_threads,
                    thread_name_prefix="questkit-worker",
                )
            return self._executor

    def run(self, total: int, fn: Callable[[int, int], None]) -> None:
        """
        Call ``fn(lo, hi)`` for every range of :meth:`partition` and wait.

        All ranges are joined before returning, including when one of them
        fails; the exception of the first failing range (in range order) is
        then re-raised.
        """
        ranges = self.partition(total)
        if not ranges:
            return
        if len(ranges) == 1:
            lo, hi = ranges[0]
            fn(lo, hi)
            return

        pool = self._pool()
        futures: List[Future] = [pool.submit(fn, lo, hi) for lo, hi in ranges]
        wait(futures)
        for future in futures:
            exc = future.exception()
            if exc is not None:
                raise exc

    def close(self) -> None:
        """Shut down the worker pool. Further parallel runs raise RuntimeError."""
        with self._lock:
            executor, self._executor = self._executor, None
            self._closed = True
        if executor is not None:
            executor.shutdown(wait=True)
            logger.debug("Scheduler pool shut down")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "ExecutionScheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["ExecutionScheduler"]
