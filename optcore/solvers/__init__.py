"""
Owned solvers for linear, mixed-integer and quadratic programs.

This subpackage provides a dense linear algebra kernel, a two-phase simplex
method, depth-first branch-and-bound for integer and binary variables, and a
Goldfarb–Idnani active-set method for strictly convex QPs. Every solver takes
a model plus optional :class:`SolverOptions` and returns an immutable
:class:`SolveResult`.

The modules are NumPy-first; SciPy is only used by
:func:`linprog_reference` for cross-checking when it is installed.
"""

from . import core, kkt, linalg, lp, mip, qp
from .core import (
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
from .kkt import is_kkt_optimal, kkt_residuals
from .linalg import cholesky_factor, cholesky_solve, solve_linear_system, solve_triangular
from .lp import linprog_reference, solve_lp
from .mip import solve_mip
from .qp import solve_qp

__all__ = [
    "core",
    "kkt",
    "linalg",
    "lp",
    "mip",
    "qp",
    # Core types
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
    # Kernel
    "solve_linear_system",
    "solve_triangular",
    "cholesky_factor",
    "cholesky_solve",
    # Algorithms
    "solve_lp",
    "solve_mip",
    "solve_qp",
    "linprog_reference",
    "kkt_residuals",
    "is_kkt_optimal",
]
