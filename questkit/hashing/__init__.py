"""State hashing."""

from .digest import (
    DIGEST_DOMAIN,
    DIGEST_SIZE,
    amplitudes_from_bytes,
    canonical_amplitude_bytes,
    digest_hex,
    state_digest,
)

__all__ = [
    "DIGEST_DOMAIN",
    "DIGEST_SIZE",
    "canonical_amplitude_bytes",
    "state_digest",
    "digest_hex",
    "amplitudes_from_bytes",
]
