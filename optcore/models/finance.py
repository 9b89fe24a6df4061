"""Finance model builders: portfolio allocation and risk, cashflow matching, capital budgeting."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from optcore.solvers.core import LPModel, QPModel, Sense, Variable, VarType

ASSET_CLASSES = ("growth", "value", "bond", "money_market")
ASSET_RETURNS = (0.25, 0.055, 0.033, 0.025)

STOCK_RETURNS = (0.005, 0.0075, 0.02)
STOCK_COVARIANCE = (
    (0.01, 0.003, 0.003),
    (0.003, 0.01, 0.003),
    (0.003, 0.003, 0.01),
)

BOND_PRICES = (104.76, 113.23, 83.29, 192.65, 87.78)
# Row t holds the cashflow of every bond in period t.
BOND_CASHFLOWS = (
    (1.5, 3.0, 3.0, 5.0, 3.5),
    (1.5, 3.0, 3.0, 5.0, 3.5),
    (1.5, 3.0, 3.0, 5.0, 3.5),
    (1.5, 3.0, 3.0, 5.0, 3.5),
    (101.5, 3.0, 5.0, 5.0, 3.5),
    (0.0, 103.0, 3.0, 5.0, 3.5),
    (0.0, 0.0, 103.0, 5.0, 3.5),
    (0.0, 0.0, 0.0, 105.0, 103.5),
)
CASH_REQUIREMENTS = (1e4, 2e4, 1e4, 2e4, 5e4, 7e4, 3e4, 15e4)

PROJECT_CASHFLOWS = (50.0, 85.0, 43.0, 25.0, 94.0, 34.0, 840.0, 80.0)
PROJECT_COSTS = (30.0, 20.0, 20.0, 10.0, 40.0, 20.0, 20.0, 15.0)


def portfolio_allocation(
    initial: float = 10e6,
    returns: Sequence[float] = ASSET_RETURNS,
    max_share: float = 0.4,
) -> LPModel:
    """
    Expected-return maximizing allocation of ``initial`` over four asset classes.

    Constraints: growth plus bond at most half of ``initial``; the weighted
    risk budget ``4 x1 + 2 x2 + 2 x3 + x4 <= 2 initial``; no class above
    ``max_share`` of ``initial``; everything invested.
    """

    variables = [Variable(i, name=name) for i, name in enumerate(ASSET_CLASSES)]
    model = LPModel(objective=returns, variables=variables, sense=Sense.MAXIMIZE)
    model.add_constraint([1, 0, 1, 0], "<=", 0.5 * initial, name="growth_plus_bond")
    model.add_constraint([4, 2, 2, 1], "<=", 2 * initial, name="risk_budget")
    for i, name in enumerate(ASSET_CLASSES):
        row = np.zeros(4)
        row[i] = 1.0
        model.add_constraint(row, "<=", max_share * initial, name=f"max_{name}")
    model.add_constraint([1, 1, 1, 1], "=", initial, name="fully_invested")
    return model


def portfolio_risk(
    expected: Sequence[float] = STOCK_RETURNS,
    covariance: Optional[np.ndarray] = None,
) -> QPModel:
    """
    Mean-variance portfolio: maximize ``d^T w - w^T Cov w`` over long-only weights summing to one.

    Built in ``solve.QP`` form with ``Dmat = 2 Cov`` and the budget row as the
    single equality.
    """

    d = np.asarray(expected, dtype=float)
    cov = np.asarray(STOCK_COVARIANCE if covariance is None else covariance, dtype=float)
    n = d.shape[0]
    amat = np.vstack([np.ones(n), np.eye(n)]).T
    bvec = np.concatenate([[1.0], np.zeros(n)])
    return QPModel.from_quadprog(2 * cov, d, amat, bvec, meq=1)


def cashflow_matching(
    prices: Sequence[float] = BOND_PRICES,
    cashflows: Sequence[Sequence[float]] = BOND_CASHFLOWS,
    requirements: Sequence[float] = CASH_REQUIREMENTS,
) -> LPModel:
    """
    Cheapest whole-number bond portfolio whose cashflows cover every period's requirement.
    """

    prices = np.asarray(prices, dtype=float)
    variables = [
        Variable(i, kind=VarType.INTEGER, name=f"bond_{i + 1}") for i in range(prices.shape[0])
    ]
    model = LPModel(objective=prices, variables=variables)
    for period, (row, need) in enumerate(zip(cashflows, requirements), start=1):
        model.add_constraint(row, ">=", need, name=f"period_{period}")
    return model


def capital_budgeting(
    cashflows: Sequence[float] = PROJECT_CASHFLOWS,
    costs: Sequence[float] = PROJECT_COSTS,
    budget: float = 100.0,
) -> LPModel:
    """
    Select projects maximizing total cashflow within ``budget``.

    Linking rules: project 3 requires project 4 (``x3 - x4 <= 0``) and
    projects 2 and 4 exclude each other (``x2 + x4 <= 1``).
    """

    n = len(cashflows)
    variables = [Variable(i, kind=VarType.BINARY, name=f"project_{i + 1}") for i in range(n)]
    model = LPModel(objective=cashflows, variables=variables, sense=Sense.MAXIMIZE)
    model.add_constraint(costs, "<=", budget, name="budget")
    requires = np.zeros(n)
    requires[2], requires[3] = 1.0, -1.0
    model.add_constraint(requires, "<=", 0.0, name="project_3_requires_4")
    exclusive = np.zeros(n)
    exclusive[1], exclusive[3] = 1.0, 1.0
    model.add_constraint(exclusive, "<=", 1.0, name="project_2_or_4")
    return model


__all__ = [
    "portfolio_allocation",
    "portfolio_risk",
    "cashflow_matching",
    "capital_budgeting",
]
