"""Tests for the gate catalog."""

import math

import pytest
import torch

from questkit.circuit import GateOp
from questkit.gates import GATES_BY_ID, GATES_BY_NAME, get_gate, get_gate_by_id, inverse_op
from questkit.gates.standard import is_unitary


def test_ids_and_names_are_unique():
    assert len(GATES_BY_ID) == len(GATES_BY_NAME)
    for gate_id, spec in GATES_BY_ID.items():
        assert 0 <= gate_id <= 0xFF
        assert GATES_BY_NAME[spec.name] is spec


@pytest.mark.parametrize("name", sorted(GATES_BY_NAME))
def test_catalog_matrices_are_unitary(name):
    spec = GATES_BY_NAME[name]
    params = tuple(0.37 * (i + 1) for i in range(spec.n_params))
    matrix = spec.matrix(params)
    assert matrix.shape == (spec.dim, spec.dim)
    assert matrix.dtype == torch.complex128
    assert is_unitary(matrix, atol=1e-10)


@pytest.mark.parametrize("name", sorted(GATES_BY_NAME))
def test_inverse_matrix_undoes_gate(name):
    spec = GATES_BY_NAME[name]
    params = tuple(1.1 for _ in range(spec.n_params))
    op = GateOp(name=name, targets=tuple(range(spec.n_targets)), params=params)
    inv = inverse_op(op)
    inv_spec = get_gate(inv.name)
    product = inv_spec.matrix(inv.params) @ spec.matrix(params)
    assert torch.allclose(product, torch.eye(spec.dim, dtype=torch.complex128), atol=1e-12)


def test_inverse_op_pairs():
    assert inverse_op(GateOp("S", (0,))).name == "SDG"
    assert inverse_op(GateOp("TDG", (1,))).name == "T"
    rz = inverse_op(GateOp("RZ", (0,), (2,), (0.5,)))
    assert rz.name == "RZ"
    assert rz.params == (-0.5,)
    assert rz.controls == (2,)


def test_aliases_resolve():
    assert get_gate("cx").name == "CNOT"
    assert get_gate("CCX").name == "TOFFOLI"
    assert get_gate("p").name == "PHASE"


def test_unknown_gate_raises():
    with pytest.raises(ValueError, match="Unsupported gate"):
        get_gate("FOO")
    assert get_gate_by_id(0xEE) is None


def test_wrong_param_count_raises():
    with pytest.raises(ValueError):
        get_gate("RX").matrix(())
    with pytest.raises(ValueError):
        get_gate("H").matrix((math.pi,))


def test_fixed_matrices_are_cached():
    assert get_gate("H").matrix() is get_gate("H").matrix()
