import numpy as np
import pytest

from corrofem.constrainer import Constrainer
from corrofem.dofspace import DofSpace


@pytest.fixture
def dofspace():
    space = DofSpace(["c"], [0])
    space.add_dofs(range(5), 0)
    space.sync_dofs([0, 5])
    return space


def test_assemble_values_and_shapes(dofspace):
    con = Constrainer(dofspace)
    con.add_constraint(0, 1, 2.0)
    con.add_constraint(0, [3], 4.0)
    state = np.array([0.0, 0.5, 0.0, 1.0, 0.0])
    system = con.assemble(0, state)
    assert system.constrained_dofs == (1, 3)
    np.testing.assert_allclose(system.con_values, [2.0 - 0.5, 4.0 - 1.0])
    assert system.con_mat.shape == (5, 2)
    assert system.uncon_mat.shape == (5, 3)
    assert system.constrained_size == 3


def test_expand_reconstructs_full_vector(dofspace):
    con = Constrainer(dofspace)
    con.add_constraint(0, [0, 4], 7.0)
    system = con.assemble(0, np.zeros(5))
    full = system.expand([1.0, 2.0, 3.0])
    np.testing.assert_allclose(full[[0, 4]], system.con_values)
    np.testing.assert_allclose(full[[1, 2, 3]], [1.0, 2.0, 3.0])


def test_matrices_partition_identity(dofspace):
    con = Constrainer(dofspace)
    con.add_constraint(0, [2], 1.0)
    system = con.assemble(0, np.zeros(5))
    combined = (system.con_mat @ system.con_mat.T + system.uncon_mat @ system.uncon_mat.T).toarray()
    np.testing.assert_allclose(combined, np.eye(5))


def test_double_constraint_same_value_ok_different_raises(dofspace):
    con = Constrainer(dofspace)
    con.add_constraint(0, 1, 3.0)
    con.add_constraint(0, 1, 3.0)
    assert con.constraints[0] == {1: 3.0}
    with pytest.raises(ValueError, match="doubly constrained"):
        con.add_constraint(0, 1, 4.0)


def test_version_increments_only_on_change(dofspace):
    con = Constrainer(dofspace)
    con.add_constraint(0, 1, 1.0)
    first = con.assemble(0, np.zeros(5))
    second = con.assemble(0, np.ones(5))
    assert first.version == second.version == 1
    con.mark_changed(0)
    third = con.assemble(0, np.zeros(5))
    assert third.version == 2


def test_changed_constraints_without_mark_raise(dofspace):
    con = Constrainer(dofspace)
    con.add_constraint(0, 1, 1.0)
    con.assemble(0, np.zeros(5))
    con.add_constraint(0, 2, 1.0)
    with pytest.raises(RuntimeError):
        con.assemble(0, np.zeros(5))


def test_set_zero_clears(dofspace):
    con = Constrainer(dofspace)
    con.add_constraint(0, [0, 1], 1.0)
    con.set_zero(0)
    con.mark_changed(0)
    system = con.assemble(0, np.zeros(5))
    assert system.constrained_dofs == ()
    assert system.constrained_size == 5


def test_constraint_outside_local_range_raises(dofspace):
    con = Constrainer(dofspace)
    con.add_constraint(0, 9, 1.0)
    with pytest.raises(ValueError, match="outside the local range"):
        con.assemble(0, np.zeros(10))