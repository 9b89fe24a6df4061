"""
Karush-Kuhn-Tucker diagnostics for quadratic programs.
"""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np

from .core import QPModel


def kkt_residuals(
    model: QPModel,
    x: np.ndarray,
    multipliers: Optional[np.ndarray] = None,
) -> Dict[str, float]:
    """
    Compute norms of KKT residuals for ``model`` at ``x``.

    ``multipliers`` follow the row order of :meth:`QPModel.constraint_rows`
    (``None`` means all zero). Stationarity is measured as
    ``||Q x + c - N^T lambda||_inf``.
    """

    x = np.asarray(x, dtype=float).reshape(-1)
    normals, rhs = model.constraint_rows()
    meq = model.meq
    lam = (
        np.zeros(rhs.shape[0])
        if multipliers is None
        else np.asarray(multipliers, dtype=float).reshape(-1)
    )

    stationarity = model.Q @ x + model.c - normals.T @ lam
    residual = normals @ x - rhs

    primal_eq = float(np.linalg.norm(residual[:meq], ord=np.inf)) if meq else 0.0
    slack = residual[meq:]
    mu = lam[meq:]
    primal_ineq = float(np.max(-slack, initial=0.0))
    dual_feasibility = float(np.max(-mu, initial=0.0))
    complementary = float(np.max(np.abs(slack * mu), initial=0.0))

    return {
        "primal_eq": primal_eq,
        "primal_ineq": primal_ineq,
        "dual": float(np.linalg.norm(stationarity, ord=np.inf)),
        "dual_feasibility": dual_feasibility,
        "complementary": complementary,
    }


def is_kkt_optimal(
    model: QPModel,
    x: np.ndarray,
    multipliers: Optional[np.ndarray] = None,
    tol: float = 1e-6,
) -> bool:
    """
    Return True if all KKT residuals are below ``tol``.
    """

    residuals = kkt_residuals(model, x, multipliers)
    return all(value <= tol for value in residuals.values())


__all__ = ["kkt_residuals", "is_kkt_optimal"]
