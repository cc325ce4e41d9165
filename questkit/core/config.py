"""Engine configuration.

An :class:`EngineConfig` is an immutable value passed into a session at
construction time. The session captures it once; changing the process-wide
default later (see :func:`questkit.api.set_thread_count`) only affects
sessions initialized afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace as dc_replace
from typing import Any, Dict, Mapping, Optional

# 25 qubits = 2**25 complex128 amplitudes = 512 MiB.
DEFAULT_MAX_QUBITS = 25
BYTES_PER_AMPLITUDE = 16

# Gate kernels work through at most this many amplitudes per worker at a time.
BLOCK_AMPLITUDES = 1 << 16
# Index and float64 temporaries held per amplitude of an in-flight block.
WORKSPACE_BYTES_PER_AMPLITUDE = 128
DEFAULT_WORKSPACE_THREADS = 16

# A run holds the live register and its replacement at the same time.
DEFAULT_MEMORY_LIMIT = 2 * BYTES_PER_AMPLITUDE * (1 << DEFAULT_MAX_QUBITS) + (
    DEFAULT_WORKSPACE_THREADS * BLOCK_AMPLITUDES * WORKSPACE_BYTES_PER_AMPLITUDE
)
DEFAULT_MIN_CHUNK_SIZE = 4096
DEFAULT_RESULT_STATE_MAX_QUBITS = 10

# Register width is stored in a single byte on the wire.
HARD_MAX_QUBITS = 255

_ENV_VARS: Dict[str, str] = {
    "num_threads": "QUESTKIT_NUM_THREADS",
    "max_qubits": "QUESTKIT_MAX_QUBITS",
    "memory_limit": "QUESTKIT_MEMORY_LIMIT",
    "min_chunk_size": "QUESTKIT_MIN_CHUNK",
    "result_state_max_qubits": "QUESTKIT_RESULT_STATE_QUBITS",
}


@dataclass(frozen=True)
class EngineConfig:
    """
    Settings for one simulation session.

    Attributes
    ----------
    num_threads:
        Number of worker threads the execution scheduler may use per gate.
    max_qubits:
        Largest register a session will allocate.
    memory_limit:
        Upper bound in bytes for everything one run holds: the current
        register, the register being simulated and the gate workspace of
        every worker thread.
    min_chunk_size:
        Smallest number of amplitude tuples handed to one worker. Gates with
        fewer tuples than ``2 * min_chunk_size`` run on the calling thread.
    result_state_max_qubits:
        Result buffers embed the full amplitude vector only for registers up
        to this width.
    initial_qubits:
        Register width allocated when a session is opened.
    """

    num_threads: int = 1
    max_qubits: int = DEFAULT_MAX_QUBITS
    memory_limit: int = DEFAULT_MEMORY_LIMIT
    min_chunk_size: int = DEFAULT_MIN_CHUNK_SIZE
    result_state_max_qubits: int = DEFAULT_RESULT_STATE_MAX_QUBITS
    initial_qubits: int = 1

    def __post_init__(self) -> None:
        if self.num_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {self.num_threads}")
        if not 1 <= self.max_qubits <= HARD_MAX_QUBITS:
            raise ValueError(
                f"max_qubits must be in [1, {HARD_MAX_QUBITS}], got {self.max_qubits}"
            )
        if self.memory_limit < 2 * BYTES_PER_AMPLITUDE:
            raise ValueError(
                f"memory_limit must allow at least one qubit, got {self.memory_limit}"
            )
        if self.min_chunk_size < 1:
            raise ValueError(
                f"min_chunk_size must be >= 1, got {self.min_chunk_size}"
            )
        if self.result_state_max_qubits < 0:
            raise ValueError(
                "result_state_max_qubits must be >= 0, "
                f"got {self.result_state_max_qubits}"
            )
        if not 1 <= self.initial_qubits <= self.max_qubits:
            raise ValueError(
                f"initial_qubits must be in [1, max_qubits={self.max_qubits}], "
                f"got {self.initial_qubits}"
            )

    def replace(self, **changes: Any) -> "EngineConfig":
        """Return a copy of this config with the given fields changed."""
        return dc_replace(self, **changes)

    def as_dict(self) -> Dict[str, int]:
        """Return the config as a plain dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "EngineConfig":
        """
        Build a config from ``QUESTKIT_*`` environment variables.

        Unset variables fall back to the dataclass defaults; explicit keyword
        overrides win over the environment.

        Raises
        ------
        ValueError
            If a variable is set to something that is not an integer.
        """
        if environ is None:
            environ = os.environ

        values: Dict[str, Any] = {}
        for field_name, var in _ENV_VARS.items():
            raw = environ.get(var)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[field_name] = int(raw)
            except ValueError:
                raise ValueError(f"{var} must be an integer, got {raw!r}") from None

        values.update(overrides)
        return cls(**values)


def default_config() -> EngineConfig:
    """Return the configuration described by the current environment."""
    return EngineConfig.from_env()


__all__ = [
    "EngineConfig",
    "default_config",
    "DEFAULT_MAX_QUBITS",
    "DEFAULT_MEMORY_LIMIT",
    "BYTES_PER_AMPLITUDE",
    "BLOCK_AMPLITUDES",
    "WORKSPACE_BYTES_PER_AMPLITUDE",
    "HARD_MAX_QUBITS",
]
