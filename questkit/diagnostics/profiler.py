"""Lightweight wall-clock profiler for engine operations."""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Optional


@dataclass
class OperationStats:
    """Accumulated timings for one named operation, in seconds."""

    count: int = 0
    total_time: float = 0.0
    min_time: float = 0.0
    max_time: float = 0.0
    last_call: float = 0.0

    @property
    def avg_time(self) -> float:
        return self.total_time / self.count if self.count else 0.0

    def record(self, duration: float, finished_at: float) -> None:
        if self.count == 0:
            self.min_time = duration
            self.max_time = duration
        else:
            self.min_time = min(self.min_time, duration)
            self.max_time = max(self.max_time, duration)
        self.count += 1
        self.total_time += duration
        self.last_call = finished_at

    def as_dict(self) -> Dict[str, float]:
        return {
            "count": self.count,
            "total_time": self.total_time,
            "min_time": self.min_time,
            "max_time": self.max_time,
            "avg_time": self.avg_time,
        }


class Profiler:
    """
    Per-operation timing statistics.

    Thread-safe; a disabled profiler records nothing but still runs the
    profiled block.

    Example
    -------
    >>> profiler = Profiler()
    >>> with profiler.profile("simulate_circuit"):
    ...     pass
    >>> profiler.get("simulate_circuit").count
    1
    """

    def __init__(self, enabled: bool = True) -> None:
        self._stats: Dict[str, OperationStats] = {}
        self._lock = threading.Lock()
        self._enabled = bool(enabled)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def record(self, name: str, duration: float) -> None:
        """Add one observation of ``duration`` seconds for ``name``."""
        if not self._enabled:
            return
        with self._lock:
            stats = self._stats.setdefault(name, OperationStats())
            stats.record(duration, time.time())

    @contextmanager
    def profile(self, name: str) -> Iterator[None]:
        """Time the enclosed block; failed calls are recorded too."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(name, time.perf_counter() - start)

    def get(self, name: str) -> Optional[OperationStats]:
        """Return a copy of the stats for ``name``, or None if never recorded."""
        with self._lock:
            stats = self._stats.get(name)
            if stats is None:
                return None
            return OperationStats(
                count=stats.count,
                total_time=stats.total_time,
                min_time=stats.min_time,
                max_time=stats.max_time,
                last_call=stats.last_call,
            )

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        """Return all stats as nested plain dictionaries."""
        with self._lock:
            return {name: s.as_dict() for name, s in sorted(self._stats.items())}

    def reset(self) -> None:
        with self._lock:
            self._stats.clear()


__all__ = ["OperationStats", "Profiler"]
