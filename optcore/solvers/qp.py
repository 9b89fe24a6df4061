"""
Quadratic programming via the Goldfarb–Idnani dual active-set method.

Solves

```
    minimize    0.5 x^T Q x + c^T x
    subject to  N_i x  = b_i   (i < meq)
                N_i x >= b_i   (i >= meq)
```

for positive definite ``Q``. The method starts at the unconstrained minimizer
and adds violated constraints one at a time, keeping the iterate optimal for
the constraints in the working set. Let ``Q = L L^T`` and ``J = L^{-T}``; for
the active normals ``N_A`` the QR factorization ``J^T N_A = Q_1 R`` yields the
primal step direction ``z = J (I - Q_1 Q_1^T) J^T n_p`` and the dual direction
``r = R^{-1} Q_1^T J^T n_p`` for an added constraint ``n_p``.

References:
    - Goldfarb & Idnani, "A numerically stable dual method for solving
      strictly convex quadratic programs", Math. Programming 27 (1983).
    - Nocedal & Wright, *Numerical Optimization*, 2nd edition, 2006.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np

from optcore.exceptions import NotPositiveDefiniteError, SingularMatrixError
from optcore.logging import get_logger

from .core import DEFAULT_QP_ITERATION_LIMIT, QPModel, SolverOptions, SolveResult, Status
from .linalg import cholesky_factor, cholesky_solve, solve_triangular

logger = get_logger(__name__)


def _step_directions(
    j_mat: np.ndarray,
    active_normals: np.ndarray,
    normal: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, float]:
    """Return the primal direction, the dual direction and ``|Q_2^T d|``."""

    d = j_mat.T @ normal
    if active_normals.shape[0] == 0:
        return j_mat @ d, np.zeros(0), float(np.linalg.norm(d))
    q1, r_mat = np.linalg.qr(j_mat.T @ active_normals.T)
    projected = q1.T @ d
    w = d - q1 @ projected
    z = j_mat @ w
    r = solve_triangular(r_mat, projected, lower=False)
    return z, r, float(np.linalg.norm(w))


def _result(
    status: Status,
    model: QPModel,
    x: Optional[np.ndarray],
    nit: int,
    message: str,
    active: List[int],
    signs: List[float],
    u: np.ndarray,
    m_total: int,
) -> SolveResult:
    multipliers = np.zeros(m_total)
    for pos, idx in enumerate(active):
        multipliers[idx] = signs[pos] * u[pos]
    return SolveResult(
        status=status,
        objective=None if x is None else model.evaluate(x),
        x=x,
        iterations=nit,
        message=message,
        multipliers=multipliers,
        active_set=tuple(active),
    )


def solve_qp(model: QPModel, options=None) -> SolveResult:
    """
    Solve a strictly convex quadratic program.

    Returns status ``NOT_POSITIVE_DEFINITE`` when ``Q`` admits no Cholesky
    factor, ``INFEASIBLE`` when the constraints are inconsistent and
    ``ITERATION_LIMIT`` after too many add/drop steps. ``multipliers`` follow
    the row order of :meth:`QPModel.constraint_rows` and are nonnegative for
    inequality rows.
    """

    opts = SolverOptions.coerce(options)
    tol = opts.tolerance
    limit = opts.limit(DEFAULT_QP_ITERATION_LIMIT)
    n = model.n_variables
    normals, rhs = model.constraint_rows()
    m_total = rhs.shape[0]
    meq = model.meq

    try:
        factor = cholesky_factor(model.Q)
        j_mat = solve_triangular(factor, np.eye(n), lower=True).T
    except (NotPositiveDefiniteError, SingularMatrixError) as exc:
        return SolveResult(
            status=Status.NOT_POSITIVE_DEFINITE,
            objective=None,
            x=None,
            iterations=0,
            message=str(exc),
        )

    x = -cholesky_solve(factor, model.c)
    active: List[int] = []
    signs: List[float] = []
    u = np.zeros(0)
    nit = 0

    def feasibility_tol(idx: int) -> float:
        return tol * max(1.0, abs(rhs[idx]))

    def signed_normals() -> np.ndarray:
        if not active:
            return np.zeros((0, n))
        return np.array([s * normals[idx] for s, idx in zip(signs, active)])

    pending_eq = list(range(meq))
    while True:
        # Pick the next constraint: equalities in order, then the most violated inequality.
        if pending_eq:
            p = pending_eq.pop(0)
            residual = normals[p] @ x - rhs[p]
            sign = -1.0 if residual > 0 else 1.0
        else:
            slack = normals[meq:] @ x - rhs[meq:]
            for idx in active:
                if idx >= meq:
                    slack[idx - meq] = np.inf
            if slack.size == 0:
                break
            p = meq + int(np.argmin(slack))
            if slack[p - meq] >= -feasibility_tol(p):
                break
            sign = 1.0
        normal = sign * normals[p]
        bound = sign * rhs[p]
        u_plus = np.append(u, 0.0)

        while True:
            if nit >= limit:
                logger.warning("Active-set iteration limit of %d reached", limit)
                return _result(
                    Status.ITERATION_LIMIT, model, x, nit,
                    "Maximum iterations exceeded", active, signs, u_plus[:-1], m_total,
                )
            nit += 1
            z, r, w_norm = _step_directions(j_mat, signed_normals(), normal)
            violation = normal @ x - bound

            # Partial step: largest dual step keeping active inequality multipliers >= 0.
            t1 = np.inf
            drop = None
            for pos, idx in enumerate(active):
                if idx >= meq and r[pos] > tol:
                    ratio = u_plus[pos] / r[pos]
                    if ratio < t1:
                        t1 = ratio
                        drop = pos

            dependent = w_norm <= tol * max(1.0, float(np.linalg.norm(j_mat.T @ normal)))
            t2 = np.inf if dependent else -violation / float(z @ normal)

            if p < meq and dependent and abs(violation) <= feasibility_tol(p):
                logger.debug("Skipping redundant equality row %d", p)
                break
            if not np.isfinite(t1) and not np.isfinite(t2):
                return _result(
                    Status.INFEASIBLE, model, None, nit,
                    f"Constraints are inconsistent (row {p} cannot be satisfied)",
                    active, signs, u_plus[:-1], m_total,
                )

            step = min(t1, t2)
            if np.isfinite(t2):
                x = x + step * z
            u_plus[:-1] -= step * r
            u_plus[-1] += step

            if t2 <= t1:
                active.append(p)
                signs.append(sign)
                u = u_plus
                logger.debug("Added row %d to the active set (step %.3e)", p, step)
                break

            logger.debug("Dropped row %d from the active set", active[drop])
            del active[drop]
            del signs[drop]
            u_plus = np.delete(u_plus, drop)

    return _result(
        Status.OPTIMAL, model, x, nit,
        "KKT conditions satisfied", active, signs, u, m_total,
    )


__all__ = ["solve_qp"]
