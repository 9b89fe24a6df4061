"""
Example: solving the classic finance models with optcore.

Runs the portfolio allocation LP, the mean-variance portfolio QP, the
integer cashflow matching program and the binary capital budgeting program,
printing each result.
"""

import numpy as np

from optcore import (
    Status,
    capital_budgeting,
    cashflow_matching,
    is_kkt_optimal,
    portfolio_allocation,
    portfolio_risk,
    print_result_summary,
    solve_lp,
    solve_mip,
    solve_qp,
)


def example_portfolio_allocation():
    """Example: maximize expected return of a four-class allocation."""
    print("=" * 60)
    print("Example 1: Linear Programming - Portfolio Allocation")
    print("=" * 60)

    model = portfolio_allocation(initial=10e6)
    result = solve_lp(model)
    print_result_summary(result, model)
    print()


def example_portfolio_risk():
    """Example: mean-variance trade-off with long-only weights."""
    print("=" * 60)
    print("Example 2: Quadratic Programming - Portfolio Risk")
    print("=" * 60)

    model = portfolio_risk()
    result = solve_qp(model)
    print_result_summary(result, model, names=["stock_1", "stock_2", "stock_3"])
    if result.status == Status.OPTIMAL:
        print(f"Max Objective Value: {-result.objective:.6f}")
        print(f"KKT optimal: {is_kkt_optimal(model, result.x, result.multipliers)}")
    print()


def example_cashflow_matching():
    """Example: cheapest whole-number bond portfolio covering liabilities."""
    print("=" * 60)
    print("Example 3: Integer Programming - Cashflow Matching")
    print("=" * 60)

    model = cashflow_matching()
    result = solve_mip(model)
    print_result_summary(result, model)
    if result.x is not None:
        coverage = np.array([con.activity(result.x) - con.rhs for con in model.constraints])
        print(f"Smallest surplus over requirements: {coverage.min():.2f}")
    print()


def example_capital_budgeting():
    """Example: binary project selection under a budget."""
    print("=" * 60)
    print("Example 4: Binary Programming - Capital Budgeting")
    print("=" * 60)

    model = capital_budgeting()
    result = solve_mip(model)
    print_result_summary(result, model)
    print()


def main():
    """Run all examples."""
    print("\n" + "=" * 60)
    print("optcore finance examples")
    print("=" * 60 + "\n")

    example_portfolio_allocation()
    example_portfolio_risk()
    example_cashflow_matching()
    example_capital_budgeting()

    print("=" * 60)
    print("All examples completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    main()
