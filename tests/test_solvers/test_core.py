import dataclasses

import numpy as np
import pytest

from optcore.exceptions import AsymmetricMatrixError, DimensionMismatchError, ModelError
from optcore.solvers.core import (
    Constraint,
    LPModel,
    QPModel,
    Relation,
    Sense,
    SolveResult,
    SolverOptions,
    Status,
    Variable,
    VarType,
)


def test_relation_accepts_double_equals():
    assert Relation("==") is Relation.EQ
    assert Relation("<=") is Relation.LE
    with pytest.raises(ValueError):
        Relation("<")


def test_binary_variable_bounds_are_clamped():
    var = Variable(0, lower=-3.0, upper=5.0, kind=VarType.BINARY)
    assert var.lower == 0.0
    assert var.upper == 1.0
    assert var.is_integral


def test_variable_rejects_crossed_bounds():
    with pytest.raises(ModelError):
        Variable(0, lower=2.0, upper=1.0)


def test_constraint_violation():
    con = Constraint([1.0, 1.0], Relation.GE, 2.0)
    assert con.violation([1.0, 1.0]) == 0.0
    assert con.violation([0.5, 0.5]) == pytest.approx(1.0)
    assert not con.coefficients.flags.writeable


def test_lp_model_rejects_wrong_constraint_length():
    model = LPModel(objective=[1.0, 2.0])
    with pytest.raises(DimensionMismatchError):
        model.add_constraint([1.0, 2.0, 3.0], "<=", 1.0)


def test_lp_model_rejects_empty_objective():
    with pytest.raises(DimensionMismatchError):
        LPModel(objective=[])


def test_from_matrix_builds_rows_and_flags():
    model = LPModel.from_matrix(
        objective=[1.0, 2.0, 3.0],
        matrix=[[1.0, 1.0, 1.0], [1.0, 0.0, -1.0]],
        rhs=[10.0, 0.0],
        relations=["<=", "="],
        lower=[-1.0, 0.0, 0.0],
        upper=[np.inf, 4.0, np.inf],
        integer=[0],
        binary=[2],
        sense=Sense.MAXIMIZE,
    )
    assert model.n_constraints == 2
    assert [con.relation for con in model.constraints] == [Relation.LE, Relation.EQ]
    assert model.variables[0].kind is VarType.INTEGER
    assert model.variables[2].kind is VarType.BINARY
    assert model.integer_indices == [0, 2]
    assert np.allclose(model.lower_bounds, [-1.0, 0.0, 0.0])
    assert np.allclose(model.upper_bounds, [np.inf, 4.0, 1.0])
    assert np.allclose(model.minimization_objective, [-1.0, -2.0, -3.0])


def test_from_matrix_shape_checks():
    with pytest.raises(DimensionMismatchError):
        LPModel.from_matrix([1.0, 1.0], matrix=[[1.0, 1.0]], rhs=[1.0, 2.0])
    with pytest.raises(DimensionMismatchError):
        LPModel.from_matrix([1.0, 1.0], matrix=[[1.0, 1.0, 1.0]], rhs=[1.0])
    with pytest.raises(DimensionMismatchError):
        LPModel.from_matrix([1.0, 1.0], matrix=[[1.0, 1.0]], rhs=[1.0], integer=[2])


def test_evaluate_and_max_violation():
    model = LPModel(objective=[1.0, -1.0], sense=Sense.MAXIMIZE)
    model.add_constraint([1.0, 1.0], "<=", 1.0)
    assert model.evaluate([2.0, 0.5]) == pytest.approx(1.5)
    assert model.max_violation([2.0, 0.5]) == pytest.approx(1.5)
    assert model.max_violation([-0.25, 0.0]) == pytest.approx(0.25)
    assert model.max_violation([0.5, 0.5]) == 0.0


def test_constraint_matrix_without_constraints():
    mat, rels, rhs = LPModel(objective=[1.0, 2.0]).constraint_matrix()
    assert mat.shape == (0, 2)
    assert rels == []
    assert rhs.shape == (0,)


def test_qp_model_rejects_asymmetric_q():
    with pytest.raises(AsymmetricMatrixError):
        QPModel(Q=[[1.0, 1.0], [0.0, 1.0]], c=[0.0, 0.0])


def test_qp_model_dimension_checks():
    with pytest.raises(DimensionMismatchError):
        QPModel(Q=np.eye(2), c=[0.0, 0.0, 0.0])
    with pytest.raises(DimensionMismatchError):
        QPModel(Q=np.eye(2), c=[0.0, 0.0], A_eq=[[1.0, 1.0, 1.0]], b_eq=[1.0])
    with pytest.raises(DimensionMismatchError):
        QPModel(Q=np.eye(2), c=[0.0, 0.0], A_ineq=[[1.0, 1.0]], b_ineq=[1.0, 2.0])


def test_qp_constraint_rows_order():
    model = QPModel(
        Q=np.eye(2),
        c=[0.0, 0.0],
        A_eq=[[1.0, 1.0]],
        b_eq=[1.0],
        A_ineq=[[1.0, -1.0]],
        b_ineq=[0.0],
        lower=[0.0, -np.inf],
        upper=[np.inf, 3.0],
    )
    normals, rhs = model.constraint_rows()
    assert model.meq == 1
    assert np.allclose(normals, [[1.0, 1.0], [1.0, -1.0], [1.0, 0.0], [0.0, -1.0]])
    assert np.allclose(rhs, [1.0, 0.0, 0.0, -3.0])


def test_from_quadprog_splits_equalities():
    Amat = np.array([[1.0, 1.0, 0.0], [1.0, 0.0, 1.0]])
    model = QPModel.from_quadprog(2 * np.eye(2), [1.0, 2.0], Amat, [1.0, 0.0, 0.0], meq=1)
    assert model.meq == 1
    assert np.allclose(model.c, [-1.0, -2.0])
    assert np.allclose(model.A_eq, [[1.0, 1.0]])
    assert np.allclose(model.A_ineq, np.eye(2))
    assert model.evaluate([1.0, 0.0]) == pytest.approx(0.0)


def test_solver_options_validation():
    with pytest.raises(ModelError):
        SolverOptions(iteration_limit=0)
    with pytest.raises(ModelError):
        SolverOptions(tolerance=0.0)
    with pytest.raises(ModelError):
        SolverOptions(pivot_rule="steepest")


def test_solver_options_coerce():
    assert SolverOptions.coerce(None) == SolverOptions()
    opts = SolverOptions(iteration_limit=5)
    assert SolverOptions.coerce(opts) is opts
    assert SolverOptions.coerce({"pivot_rule": "dantzig"}).pivot_rule == "dantzig"
    with pytest.raises(TypeError):
        SolverOptions.coerce({"max_iter": 10})
    assert SolverOptions().limit(7) == 7
    assert opts.limit(7) == 5


def test_solve_result_is_immutable():
    x = np.array([1.0, 2.0])
    result = SolveResult(status=Status.OPTIMAL, objective=3.0, x=x, iterations=1)
    x[0] = 10.0
    assert result.x[0] == 1.0
    assert not result.x.flags.writeable
    assert result.success
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.objective = 0.0
