"""Diagnostics, debugging and profiling utilities for questkit."""

from .core import NORM_ATOL, assert_normalized, state_norm
from .debug_mode import (
    debug_context,
    is_debug_enabled,
    set_debug_enabled,
)
from .profiler import OperationStats, Profiler

__all__ = [
    "NORM_ATOL",
    "state_norm",
    "assert_normalized",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
    "OperationStats",
    "Profiler",
]
