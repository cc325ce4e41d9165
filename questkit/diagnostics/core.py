"""Core diagnostic functions for amplitude buffers."""

from __future__ import annotations

import torch

# Acceptance bound for unitarity checks on complex128 states.
NORM_ATOL = 1e-10


def state_norm(state: torch.Tensor) -> torch.Tensor:
    """
    Compute the L2 norm of a quantum state tensor.

    Parameters
    ----------
    state:
        Complex tensor with shape (..., dim).

    Returns
    -------
    torch.Tensor
        Real tensor with shape (...) giving the norm for each batch
        element.

    Raises
    ------
    ValueError
        If state has fewer than 1 dimension.
    """
    if state.dim() < 1:
        raise ValueError("state_norm expects a tensor with at least 1 dimension.")

    norm_sq = (state.conj() * state).sum(dim=-1).real
    return torch.sqrt(norm_sq)


def assert_normalized(
    state: torch.Tensor,
    atol: float = NORM_ATOL,
) -> None:
    """
    Assert that a statevector has norm ~1 within a tolerance.

    Parameters
    ----------
    state:
        Complex statevector tensor (..., dim).
    atol:
        Absolute tolerance for |norm - 1|.

    Raises
    ------
    ValueError
        If the state is not normalized within the tolerance.
    """
    norms = state_norm(state)
    if not torch.all(torch.isfinite(norms)):
        raise ValueError("State norm contains non-finite values.")

    if not torch.allclose(norms, torch.ones_like(norms), atol=atol, rtol=0.0):
        raise ValueError(
            f"State is not normalized within tolerance {atol}. "
            f"Norms found: {norms.detach().cpu().tolist()}"
        )

