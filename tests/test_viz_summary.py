"""Tests for result summary and comparison utilities."""

import io

import numpy as np
import pytest

from optcore.models.finance import capital_budgeting, portfolio_allocation
from optcore.solvers.core import SolveResult, Status
from optcore.solvers.lp import solve_lp
from optcore.solvers.mip import solve_mip
from optcore.viz.summary import (
    compare_results,
    print_result_summary,
    result_summary,
)


def test_result_summary_failure():
    """Test summary of a result without a point."""
    result = SolveResult(status=Status.INFEASIBLE, objective=None, x=None, iterations=3)
    summary = result_summary(result)

    assert summary["status"] == "infeasible"
    assert summary["objective"] is None
    assert summary["iterations"] == 3
    assert summary["variables"] == {}
    assert "nodes" not in summary


def test_result_summary_uses_model_names():
    """Test that variable names come from the model."""
    model = portfolio_allocation()
    summary = result_summary(solve_lp(model), model)

    assert summary["status"] == "optimal"
    assert list(summary["variables"]) == ["growth", "value", "bond", "money_market"]
    assert summary["variables"]["value"] == pytest.approx(4e6)


def test_result_summary_integer_values():
    """Test that integer variables are reported as ints."""
    model = capital_budgeting()
    summary = result_summary(solve_mip(model), model)

    assert summary["nodes"] >= 1
    assert summary["variables"]["project_7"] == 1
    assert isinstance(summary["variables"]["project_1"], int)


def test_result_summary_explicit_names():
    result = SolveResult(status=Status.OPTIMAL, objective=1.0, x=np.array([1.0, 0.0]), iterations=1)
    summary = result_summary(result, names=["a", "b"])
    assert summary["variables"] == {"a": 1.0, "b": 0.0}

    with pytest.raises(ValueError):
        result_summary(result, names=["a"])


def test_print_result_summary():
    """Test printing a result summary."""
    model = capital_budgeting()
    result = solve_mip(model)

    output = io.StringIO()
    print_result_summary(result, model, file=output)
    text = output.getvalue()

    assert "Status: optimal" in text
    assert "Objective Value: 1099" in text
    assert "Nodes:" in text
    assert "project_2: 1" in text


def test_compare_results_identical():
    result = solve_lp(portfolio_allocation())
    comparison = compare_results(result, result)

    assert comparison["same_status"] is True
    assert comparison["objective_diff"] == 0.0
    assert comparison["max_x_diff"] == 0.0
    assert comparison["equivalent"] is True


def test_compare_results_different():
    first = SolveResult(status=Status.OPTIMAL, objective=1.0, x=np.array([1.0]), iterations=1)
    second = SolveResult(status=Status.OPTIMAL, objective=2.0, x=np.array([2.0]), iterations=1)
    failed = SolveResult(status=Status.INFEASIBLE, objective=None, x=None, iterations=0)

    comparison = compare_results(first, second)
    assert comparison["objective_diff"] == pytest.approx(1.0)
    assert comparison["max_x_diff"] == pytest.approx(1.0)
    assert comparison["equivalent"] is False

    comparison = compare_results(first, failed)
    assert comparison["same_status"] is False
    assert comparison["objective_diff"] is None
    assert comparison["equivalent"] is False
