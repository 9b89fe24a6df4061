"""
Linear programming: two-phase tableau simplex and an optional SciPy reference.

Models are converted to the standard equality form

```
    minimize    c^T z
    subject to  A z = b,  b >= 0
                z >= 0
```

Lower bounds are handled by shifting variables, free variables are
represented as the difference of two nonnegative variables, and finite upper
bounds become explicit ``<=`` rows. ``<=`` rows receive a slack column and
``>=`` rows a surplus column. Rows whose slack can start in the basis do so;
every other row gets an artificial variable whose sum is minimized in
Phase I.

Pivoting rules (``SolverOptions.pivot_rule``):

- ``"bland"`` (default): the entering column is the smallest index with a
  negative reduced cost and ratio-test ties leave by smallest basic variable
  index. This rule cannot cycle.
- ``"dantzig"``: the most negative reduced cost enters (ties: smallest
  index) and ratio-test ties leave by smallest row index.

Example:
    >>> from optcore.solvers.core import LPModel, Sense
    >>> from optcore.solvers.lp import solve_lp
    >>> model = LPModel(objective=[3.0, 5.0], sense=Sense.MAXIMIZE)
    >>> model.add_constraint([1.0, 2.0], "<=", 4.0)
    >>> model.add_constraint([3.0, 2.0], "<=", 6.0)
    >>> result = solve_lp(model)
    >>> result.status
    <Status.OPTIMAL: 'optimal'>
    >>> result.x  # Optimal point (x1, x2) = (1, 1.5)
    array([1. , 1.5])

References:
    - Bertsimas & Tsitsiklis, *Introduction to Linear Optimization*, 1997.
    - Bland, "New finite pivoting rules for the simplex method", 1977.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from optcore.exceptions import OptimizationError, SingularMatrixError
from optcore.logging import get_logger

from .core import (
    DEFAULT_LP_ITERATION_LIMIT,
    LPModel,
    Relation,
    Sense,
    SolverOptions,
    SolveResult,
    Status,
)
from .linalg import solve_linear_system

try:
    from scipy.optimize import Bounds, LinearConstraint, milp as _scipy_milp

    SCIPY_AVAILABLE = True
except Exception:  # pragma: no cover - SciPy is optional
    SCIPY_AVAILABLE = False
    _scipy_milp = None

logger = get_logger(__name__)

# scipy.optimize.milp status codes; 4 is a solver error.
_MILP_STATUSES = {
    0: Status.OPTIMAL,
    1: Status.ITERATION_LIMIT,
    2: Status.INFEASIBLE,
    3: Status.UNBOUNDED,
}


@dataclass
class _StandardFormLP:
    A: np.ndarray
    b: np.ndarray
    c: np.ndarray
    transform: np.ndarray
    shift: np.ndarray
    base_var_count: int
    slack_basis: Dict[int, int]


def _convert_to_standard(
    model: LPModel,
    lower: np.ndarray,
    upper: np.ndarray,
) -> _StandardFormLP:
    c = model.minimization_objective
    n = c.shape[0]

    shift = np.zeros(n)
    columns: List[np.ndarray] = []
    for i in range(n):
        col_pos = np.zeros(n)
        col_pos[i] = 1.0
        columns.append(col_pos)
        if np.isfinite(lower[i]):
            shift[i] = lower[i]
        else:
            col_neg = np.zeros(n)
            col_neg[i] = -1.0
            columns.append(col_neg)

    transform = np.column_stack(columns)
    base_var_count = transform.shape[1]

    rows: List[np.ndarray] = []
    rhs: List[float] = []
    relations: List[Relation] = []
    mat, rels, vec = model.constraint_matrix()
    if mat.shape[0]:
        shifted = vec - mat @ shift
        rows.extend(mat @ transform)
        rhs.extend(shifted)
        relations.extend(rels)
    for idx in range(n):
        if np.isfinite(upper[idx]):
            rows.append(transform[idx, :].copy())
            rhs.append(upper[idx] - shift[idx])
            relations.append(Relation.LE)

    m = len(rows)
    n_slack = sum(1 for rel in relations if rel is not Relation.EQ)
    a_mat = np.zeros((m, base_var_count + n_slack))
    b_vec = np.array(rhs, dtype=float)
    slack_basis: Dict[int, int] = {}
    slack_col = base_var_count
    for r in range(m):
        a_mat[r, :base_var_count] = rows[r]
        sign = 0.0
        if relations[r] is Relation.LE:
            sign = 1.0
        elif relations[r] is Relation.GE:
            sign = -1.0
        if sign:
            a_mat[r, slack_col] = sign
        if b_vec[r] < 0:
            a_mat[r, :] *= -1
            b_vec[r] *= -1
            sign = -sign
        if sign > 0:
            slack_basis[r] = slack_col
        if relations[r] is not Relation.EQ:
            slack_col += 1

    c_std = np.concatenate([transform.T @ c, np.zeros(n_slack)])
    return _StandardFormLP(
        A=a_mat,
        b=b_vec,
        c=c_std,
        transform=transform,
        shift=shift,
        base_var_count=base_var_count,
        slack_basis=slack_basis,
    )


def _pivot(tableau: np.ndarray, row: int, col: int) -> None:
    tableau[row] /= tableau[row, col]
    column = tableau[:, col].copy()
    column[row] = 0.0
    tableau -= np.outer(column, tableau[row])


def _set_objective(tableau: np.ndarray, basis: List[int], cost: np.ndarray) -> None:
    """Write the reduced-cost row for ``cost`` given the current basis."""

    objective = np.zeros(tableau.shape[1])
    objective[: cost.shape[0]] = cost
    for row, col in enumerate(basis):
        if objective[col] != 0.0:
            objective -= objective[col] * tableau[row]
    tableau[-1] = objective


def _select_entering(reduced: np.ndarray, tol: float, rule: str) -> Optional[int]:
    candidates = np.flatnonzero(reduced < -tol)
    if candidates.size == 0:
        return None
    if rule == "bland":
        return int(candidates[0])
    return int(candidates[np.argmin(reduced[candidates])])


def _select_leaving(
    tableau: np.ndarray,
    basis: List[int],
    entering: int,
    tol: float,
    rule: str,
) -> Optional[int]:
    column = tableau[:-1, entering]
    positive = np.flatnonzero(column > tol)
    if positive.size == 0:
        return None
    rhs = np.maximum(tableau[:-1, -1][positive], 0.0)
    ratios = rhs / column[positive]
    best = float(ratios.min())
    ties = positive[ratios <= best + tol * max(1.0, abs(best))]
    if rule == "bland":
        return int(min(ties, key=lambda r: basis[r]))
    return int(ties[0])


def _run_simplex(
    tableau: np.ndarray,
    basis: List[int],
    n_eligible: int,
    limit: int,
    tol: float,
    rule: str,
) -> Tuple[Status, int]:
    pivots = 0
    while True:
        entering = _select_entering(tableau[-1, :n_eligible], tol, rule)
        if entering is None:
            return Status.OPTIMAL, pivots
        if pivots >= limit:
            return Status.ITERATION_LIMIT, pivots
        leaving = _select_leaving(tableau, basis, entering, tol, rule)
        if leaving is None:
            return Status.UNBOUNDED, pivots
        _pivot(tableau, leaving, entering)
        basis[leaving] = entering
        pivots += 1


def _drive_out_artificials(
    tableau: np.ndarray,
    basis: List[int],
    n_cols: int,
    tol: float,
) -> List[int]:
    """Pivot zero-valued artificials out of the basis; return the rows to keep."""

    keep = []
    for row in range(len(basis)):
        if basis[row] >= n_cols:
            candidates = np.flatnonzero(np.abs(tableau[row, :n_cols]) > tol)
            if candidates.size == 0:
                logger.debug("Dropping redundant constraint row %d", row)
                continue
            col = int(candidates[0])
            _pivot(tableau, row, col)
            basis[row] = col
        keep.append(row)
    return keep


def _basic_solution(
    standard: _StandardFormLP,
    tableau: np.ndarray,
    basis: List[int],
    rows: List[int],
    tol: float,
) -> np.ndarray:
    z = np.zeros(standard.A.shape[1])
    z[basis] = tableau[:-1, -1]
    if basis:
        # Basic values recomputed from A and b; the tableau carries rounding error.
        try:
            refreshed = solve_linear_system(standard.A[np.ix_(rows, basis)], standard.b[rows])
        except SingularMatrixError:
            logger.debug("Final basis is numerically singular; keeping tableau values")
        else:
            scale = max(1.0, float(np.max(np.abs(standard.b), initial=0.0)))
            if np.all(refreshed >= -tol * scale):
                z[basis] = refreshed
    return np.maximum(z, 0.0)


def _failure(status: Status, iterations: int, message: str) -> SolveResult:
    return SolveResult(status=status, objective=None, x=None, iterations=iterations, message=message)


def solve_relaxation(
    model: LPModel,
    lower: np.ndarray,
    upper: np.ndarray,
    options: Optional[SolverOptions] = None,
) -> SolveResult:
    """
    Solve ``model`` as a continuous LP with the given variable bounds.

    Integrality flags are ignored and the model's own bounds are replaced by
    ``lower``/``upper``. The model is not modified.
    """

    opts = SolverOptions.coerce(options)
    tol = opts.tolerance
    limit = opts.limit(DEFAULT_LP_ITERATION_LIMIT)
    lower = np.asarray(lower, dtype=float)
    upper = np.asarray(upper, dtype=float)
    if np.any(lower > upper + tol):
        return _failure(Status.INFEASIBLE, 0, "Variable bounds are inconsistent")

    standard = _convert_to_standard(model, lower, upper)
    m, n_cols = standard.A.shape
    art_rows = [r for r in range(m) if r not in standard.slack_basis]
    n_art = len(art_rows)

    tableau = np.zeros((m + 1, n_cols + n_art + 1))
    tableau[:m, :n_cols] = standard.A
    tableau[:m, -1] = standard.b
    basis = [0] * m
    for row, col in standard.slack_basis.items():
        basis[row] = col
    for k, row in enumerate(art_rows):
        tableau[row, n_cols + k] = 1.0
        basis[row] = n_cols + k

    pivots = 0
    rows = list(range(m))
    if n_art:
        cost = np.zeros(n_cols + n_art)
        cost[n_cols:] = 1.0
        _set_objective(tableau, basis, cost)
        status, used = _run_simplex(tableau, basis, n_cols + n_art, limit, tol, opts.pivot_rule)
        pivots += used
        if status is not Status.OPTIMAL:
            logger.warning("Phase I stopped after %d pivots: %s", pivots, status.value)
            return _failure(status, pivots, f"Phase I failed: {status.value}")
        infeasibility = -tableau[-1, -1]
        scale = max(1.0, float(np.max(standard.b, initial=0.0)))
        logger.debug("Phase I finished after %d pivots (infeasibility %.3e)", used, infeasibility)
        if infeasibility > tol * scale:
            return _failure(
                Status.INFEASIBLE,
                pivots,
                "Problem infeasible (Phase I objective > 0)",
            )
        rows = _drive_out_artificials(tableau, basis, n_cols, tol)
        basis = [basis[r] for r in rows]
        tableau = tableau[rows + [m]]
        tableau = np.hstack([tableau[:, :n_cols], tableau[:, -1:]])

    _set_objective(tableau, basis, standard.c)
    status, used = _run_simplex(tableau, basis, n_cols, limit - pivots, tol, opts.pivot_rule)
    pivots += used
    logger.debug("Phase II finished after %d pivots: %s", used, status.value)
    if status is Status.UNBOUNDED:
        return _failure(status, pivots, "Objective is unbounded on the feasible region")
    if status is not Status.OPTIMAL:
        logger.warning("Simplex iteration limit reached after %d pivots", pivots)
        return _failure(status, pivots, "Maximum iterations exceeded")

    z = _basic_solution(standard, tableau, basis, rows, tol)
    x = standard.shift + standard.transform @ z[: standard.base_var_count]
    return SolveResult(
        status=Status.OPTIMAL,
        objective=model.evaluate(x),
        x=x,
        iterations=pivots,
        message="Optimal solution found",
    )


def solve_lp(model: LPModel, options=None) -> SolveResult:
    """
    Solve the continuous LP described by ``model``.

    Integrality flags are ignored, so this also returns the LP relaxation of
    a mixed-integer model. ``options`` may be a :class:`SolverOptions` or a
    mapping of its fields.
    """

    return solve_relaxation(model, model.lower_bounds, model.upper_bounds, options)


def linprog_reference(model: LPModel, time_limit: Optional[float] = None) -> SolveResult:
    """
    Solve ``model`` with SciPy's HiGHS interface if SciPy is installed.

    Integrality flags are honored and the MIP gap is zero, so the reported
    optimum is exact up to HiGHS' feasibility tolerances. Intended for
    cross-checking results.

    Raises:
        ImportError: If SciPy is not installed.
        OptimizationError: If HiGHS reports a solver error.
    """

    if not SCIPY_AVAILABLE:  # pragma: no cover - depends on SciPy
        raise ImportError("linprog_reference requires SciPy")

    mat, rels, vec = model.constraint_matrix()
    constraints = []
    if mat.shape[0]:
        lo = np.array([rhs if rel is not Relation.LE else -np.inf for rel, rhs in zip(rels, vec)])
        hi = np.array([rhs if rel is not Relation.GE else np.inf for rel, rhs in zip(rels, vec)])
        constraints.append(LinearConstraint(mat, lo, hi))
    integrality = np.array([1 if var.is_integral else 0 for var in model.variables])
    options = {"mip_rel_gap": 0.0}
    if time_limit is not None:
        options["time_limit"] = time_limit
    res = _scipy_milp(
        c=model.minimization_objective,
        constraints=constraints or None,
        integrality=integrality,
        bounds=Bounds(model.lower_bounds, model.upper_bounds),
        options=options,
    )
    if res.status not in _MILP_STATUSES:
        raise OptimizationError(f"SciPy reference solver error: {res.message}")
    status = _MILP_STATUSES[res.status]
    if status is not Status.OPTIMAL or res.x is None:
        return _failure(status, 0, str(res.message))
    fun = float(res.fun)
    return SolveResult(
        status=status,
        objective=-fun if model.sense is Sense.MAXIMIZE else fun,
        x=np.asarray(res.x, dtype=float),
        iterations=0,
        message=str(res.message),
    )


__all__ = ["solve_lp", "solve_relaxation", "linprog_reference"]
