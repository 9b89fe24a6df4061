"""optcore - owned linear, mixed-integer and quadratic programming solvers."""

__version__ = "0.1.0"

from .exceptions import (
    AsymmetricMatrixError,
    DimensionMismatchError,
    ModelError,
    NotPositiveDefiniteError,
    OptimizationError,
    SingularMatrixError,
)
from .logging import configure_logging, get_logger, set_log_level

# Model builders
from .models import (
    capital_budgeting,
    cashflow_matching,
    portfolio_allocation,
    portfolio_risk,
)

# Solvers
from .solvers import (
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
    cholesky_factor,
    is_kkt_optimal,
    kkt_residuals,
    linprog_reference,
    solve_linear_system,
    solve_lp,
    solve_mip,
    solve_qp,
)

# Reporting
from .viz import compare_results, print_result_summary, result_summary

__all__ = [
    "__version__",
    # Errors
    "OptimizationError",
    "ModelError",
    "DimensionMismatchError",
    "AsymmetricMatrixError",
    "SingularMatrixError",
    "NotPositiveDefiniteError",
    # Logging
    "get_logger",
    "set_log_level",
    "configure_logging",
    # Models
    "Status",
    "Sense",
    "Relation",
    "VarType",
    "Variable",
    "Constraint",
    "LPModel",
    "QPModel",
    "SolverOptions",
    "SolveResult",
    # Solvers
    "solve_linear_system",
    "cholesky_factor",
    "solve_lp",
    "solve_mip",
    "solve_qp",
    "linprog_reference",
    "kkt_residuals",
    "is_kkt_optimal",
    # Builders
    "portfolio_allocation",
    "portfolio_risk",
    "cashflow_matching",
    "capital_budgeting",
    # Reporting
    "result_summary",
    "print_result_summary",
    "compare_results",
]
