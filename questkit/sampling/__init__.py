"""Sampling and measurement utilities for quantum states."""

from .bitstrings import (
    OUTCOME_DOMAIN,
    bitstring_counts,
    outcome_draw,
    sample_bitstrings_state,
    sample_from_probs,
    sample_indices,
    sample_outcome,
)

__all__ = [
    "OUTCOME_DOMAIN",
    "sample_indices",
    "sample_from_probs",
    "sample_bitstrings_state",
    "outcome_draw",
    "sample_outcome",
    "bitstring_counts",
]
