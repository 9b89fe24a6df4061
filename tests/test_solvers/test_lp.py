from types import SimpleNamespace

import numpy as np
import pytest

from optcore.exceptions import OptimizationError
from optcore.models.finance import portfolio_allocation
from optcore.solvers.core import LPModel, Sense, SolverOptions, Status
from optcore.solvers.lp import linprog_reference, solve_lp, solve_relaxation


def _canonical(sense=Sense.MAXIMIZE):
    objective = [3.0, 5.0] if sense is Sense.MAXIMIZE else [-3.0, -5.0]
    model = LPModel(objective=objective, sense=sense)
    model.add_constraint([1.0, 2.0], "<=", 4.0)
    model.add_constraint([3.0, 2.0], "<=", 6.0)
    return model


@pytest.mark.parametrize("rule", ["bland", "dantzig"])
def test_simplex_canonical_example(rule):
    result = solve_lp(_canonical(), {"pivot_rule": rule})
    assert result.status is Status.OPTIMAL
    assert np.allclose(result.x, [1.0, 1.5], atol=1e-9)
    assert pytest.approx(10.5, rel=1e-9) == result.objective


def test_minimize_form_reports_negated_objective():
    result = solve_lp(_canonical(Sense.MINIMIZE))
    assert result.status is Status.OPTIMAL
    assert pytest.approx(-10.5, rel=1e-9) == result.objective


def test_simplex_infeasible_equalities():
    model = LPModel(objective=[1.0])
    model.add_constraint([1.0], "=", 5.0)
    model.add_constraint([1.0], "=", 10.0)
    result = solve_lp(model)
    assert result.status is Status.INFEASIBLE
    assert result.x is None
    assert result.objective is None


def test_simplex_infeasible_bounds_and_rows():
    model = LPModel(objective=[1.0])
    model.add_constraint([1.0], ">=", 1.0)
    model.add_constraint([1.0], "<=", 0.0)
    assert solve_lp(model).status is Status.INFEASIBLE


def test_simplex_unbounded_problem():
    model = LPModel(objective=[-1.0, 0.0])
    model.add_constraint([1.0, -1.0], "<=", 1.0)
    result = solve_lp(model)
    assert result.status is Status.UNBOUNDED
    assert result.x is None


def test_simplex_unbounded_without_constraints():
    assert solve_lp(LPModel(objective=[-1.0])).status is Status.UNBOUNDED


def test_simplex_trivial_solution_no_constraints():
    result = solve_lp(LPModel(objective=[2.0, 3.0]))
    assert result.status is Status.OPTIMAL
    assert np.allclose(result.x, 0.0)
    assert result.objective == 0.0
    assert result.iterations == 0


def test_simplex_handles_equalities():
    model = LPModel(objective=[1.0, 1.0])
    model.add_constraint([1.0, 1.0], "=", 1.0)
    result = solve_lp(model)
    assert result.status is Status.OPTIMAL
    assert pytest.approx(1.0, rel=1e-9) == result.objective
    assert pytest.approx(1.0, rel=1e-9) == np.sum(result.x)


def test_simplex_greater_equal_rows():
    model = LPModel(objective=[1.0, 1.0])
    model.add_constraint([1.0, 2.0], ">=", 4.0)
    model.add_constraint([3.0, 1.0], ">=", 6.0)
    result = solve_lp(model)
    assert result.status is Status.OPTIMAL
    assert np.allclose(result.x, [1.6, 1.2], atol=1e-9)
    assert pytest.approx(2.8, rel=1e-9) == result.objective


def test_simplex_redundant_equalities():
    model = LPModel(objective=[1.0, 0.0])
    model.add_constraint([1.0, 1.0], "=", 2.0)
    model.add_constraint([2.0, 2.0], "=", 4.0)
    result = solve_lp(model)
    assert result.status is Status.OPTIMAL
    assert np.allclose(result.x, [0.0, 2.0], atol=1e-9)


def test_simplex_upper_bounds():
    model = LPModel.from_matrix([-1.0, -2.0], upper=[1.0, 2.0])
    result = solve_lp(model)
    assert result.status is Status.OPTIMAL
    assert np.allclose(result.x, [1.0, 2.0])
    assert pytest.approx(-5.0) == result.objective


def test_simplex_negative_lower_bound():
    model = LPModel.from_matrix([1.0], lower=[-2.0], upper=[3.0])
    result = solve_lp(model)
    assert result.status is Status.OPTIMAL
    assert pytest.approx(-2.0) == result.x[0]


def test_simplex_free_variable():
    model = LPModel.from_matrix([1.0], matrix=[[1.0]], rhs=[-3.0], relations=">=", lower=-np.inf)
    result = solve_lp(model)
    assert result.status is Status.OPTIMAL
    assert pytest.approx(-3.0) == result.x[0]


def test_bland_rule_terminates_on_degenerate_problem():
    # Beale's cycling example.
    model = LPModel(objective=[-0.75, 20.0, -0.5, 6.0])
    model.add_constraint([0.25, -8.0, -1.0, 9.0], "<=", 0.0)
    model.add_constraint([0.5, -12.0, -0.5, 3.0], "<=", 0.0)
    model.add_constraint([0.0, 0.0, 1.0, 0.0], "<=", 1.0)
    result = solve_lp(model)
    assert result.status is Status.OPTIMAL
    assert pytest.approx(-1.25, rel=1e-9) == result.objective


def test_iteration_limit():
    result = solve_lp(portfolio_allocation(), SolverOptions(iteration_limit=1))
    assert result.status is Status.ITERATION_LIMIT
    assert result.x is None
    assert result.iterations == 1


def test_portfolio_allocation_optimum():
    model = portfolio_allocation()
    result = solve_lp(model)
    assert result.status is Status.OPTIMAL
    assert np.allclose(result.x, [2e6, 4e6, 0.0, 4e6], rtol=1e-9, atol=1e-3)
    assert pytest.approx(820_000.0, rel=1e-9) == result.objective
    assert model.max_violation(result.x) <= 1e-6


def test_portfolio_allocation_minimize_form():
    model = portfolio_allocation()
    model.objective = -model.objective
    model.sense = Sense.MINIMIZE
    result = solve_lp(model)
    assert result.status is Status.OPTIMAL
    assert pytest.approx(-820_000.0, rel=1e-9) == result.objective


def test_solve_does_not_modify_model():
    model = _canonical()
    objective = model.objective.copy()
    rows = [con.coefficients.copy() for con in model.constraints]
    solve_lp(model)
    assert np.array_equal(model.objective, objective)
    for con, row in zip(model.constraints, rows):
        assert np.array_equal(con.coefficients, row)


def test_solve_is_deterministic():
    first = solve_lp(portfolio_allocation())
    second = solve_lp(portfolio_allocation())
    assert np.array_equal(first.x, second.x)
    assert first.iterations == second.iterations


def test_solve_relaxation_overrides_bounds():
    model = _canonical()
    result = solve_relaxation(model, np.zeros(2), np.array([np.inf, 1.0]))
    assert result.status is Status.OPTIMAL
    assert np.allclose(result.x, [4.0 / 3.0, 1.0])
    crossed = solve_relaxation(model, np.array([2.0, 0.0]), np.array([1.0, np.inf]))
    assert crossed.status is Status.INFEASIBLE


def test_random_lp_not_improved_by_feasible_points(rng):
    for _ in range(5):
        n, m = 4, 6
        G = rng.standard_normal((m, n))
        c = rng.standard_normal(n)
        model = LPModel.from_matrix(c, matrix=G, rhs=np.ones(m), upper=np.full(n, 5.0))
        result = solve_lp(model)
        assert result.status is Status.OPTIMAL
        assert model.max_violation(result.x) <= 1e-7
        samples = rng.uniform(0.0, 5.0, size=(200, n))
        for point in samples:
            if model.max_violation(point) == 0.0:
                assert result.objective <= model.evaluate(point) + 1e-9


def test_simplex_matches_scipy(rng):
    pytest.importorskip("scipy")
    for _ in range(5):
        c = rng.standard_normal(3)
        G = rng.standard_normal((4, 3))
        model = LPModel.from_matrix(c, matrix=G, rhs=np.ones(4), upper=np.full(3, 10.0))
        ours = solve_lp(model)
        reference = linprog_reference(model)
        assert ours.status is Status.OPTIMAL
        assert reference.status is Status.OPTIMAL
        assert pytest.approx(reference.objective, rel=1e-6, abs=1e-7) == ours.objective


def test_scipy_reference_reports_solver_errors(monkeypatch):
    pytest.importorskip("scipy")
    from optcore.solvers import lp as lp_module

    def failing_milp(**kwargs):
        return SimpleNamespace(status=4, x=None, fun=None, message="HiGHS Status 4: Solve error")

    monkeypatch.setattr(lp_module, "_scipy_milp", failing_milp)
    with pytest.raises(OptimizationError, match="solver error"):
        linprog_reference(_canonical())


def test_scipy_reference_uses_zero_mip_gap(monkeypatch):
    pytest.importorskip("scipy")
    from optcore.solvers import lp as lp_module

    seen = {}
    real_milp = lp_module._scipy_milp

    def recording_milp(**kwargs):
        seen.update(kwargs["options"])
        return real_milp(**kwargs)

    monkeypatch.setattr(lp_module, "_scipy_milp", recording_milp)
    result = linprog_reference(_canonical(), time_limit=10.0)
    assert result.status is Status.OPTIMAL
    assert seen == {"mip_rel_gap": 0.0, "time_limit": 10.0}
