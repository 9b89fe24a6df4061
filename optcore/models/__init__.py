"""Model builders for the classic small finance optimization problems."""

from .finance import (
    capital_budgeting,
    cashflow_matching,
    portfolio_allocation,
    portfolio_risk,
)

__all__ = [
    "portfolio_allocation",
    "portfolio_risk",
    "cashflow_matching",
    "capital_budgeting",
]
