"""
Dense linear algebra kernel used by the solvers.

The routines are written out explicitly (Gaussian elimination with partial
pivoting, Cholesky, triangular substitution) so that singularity and
definiteness are detected with the solver's own thresholds instead of
whatever LAPACK happens to report. Problem sizes in this package are small
(tens of rows), so the row-oriented NumPy loops are fast enough.

All functions are pure: inputs are never modified.
"""

from __future__ import annotations

import numpy as np

from optcore.exceptions import (
    DimensionMismatchError,
    NotPositiveDefiniteError,
    SingularMatrixError,
)

PIVOT_RTOL = 1e-10
CHOLESKY_RTOL = 1e-14


def _square(matrix: np.ndarray, what: str) -> np.ndarray:
    arr = np.array(matrix, dtype=float)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise DimensionMismatchError(f"{what} must be square, got shape {arr.shape}")
    return arr


def _rhs(rhs: np.ndarray, n: int) -> tuple[np.ndarray, bool]:
    arr = np.array(rhs, dtype=float)
    if arr.ndim not in (1, 2) or arr.shape[0] != n:
        raise DimensionMismatchError(f"Right-hand side must have {n} rows, got shape {arr.shape}")
    is_vector = arr.ndim == 1
    return (arr.reshape(n, 1) if is_vector else arr), is_vector


def symmetrize(matrix: np.ndarray) -> np.ndarray:
    """
    Return the symmetric part of ``matrix``.

    Removes small asymmetries due to floating-point error by returning
    ``0.5 * (matrix + matrix.T)``.
    """

    return 0.5 * (matrix + matrix.T)


def is_symmetric(matrix: np.ndarray, tol: float = 1e-10) -> bool:
    arr = np.asarray(matrix, dtype=float)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        return False
    scale = max(1.0, float(np.max(np.abs(arr), initial=0.0)))
    return bool(np.all(np.abs(arr - arr.T) <= tol * scale))


def solve_linear_system(matrix: np.ndarray, rhs: np.ndarray, rtol: float = PIVOT_RTOL) -> np.ndarray:
    """
    Solve ``A x = b`` by Gaussian elimination with partial pivoting.

    Args:
        matrix: Square coefficient matrix ``A``.
        rhs: Right-hand side vector, or a matrix whose columns are solved
            simultaneously.
        rtol: Pivots with magnitude at or below ``rtol * ||A||_inf`` are
            treated as zero.

    Returns:
        Solution with the same shape as ``rhs``.

    Raises:
        SingularMatrixError: If ``A`` has no numerically unique solution.
        DimensionMismatchError: If the shapes are incompatible.
    """

    a = _square(matrix, "Coefficient matrix")
    n = a.shape[0]
    b, is_vector = _rhs(rhs, n)
    scale = float(np.linalg.norm(a, ord=np.inf)) if n else 0.0
    threshold = rtol * scale

    for k in range(n):
        pivot_row = k + int(np.argmax(np.abs(a[k:, k])))
        pivot = a[pivot_row, k]
        if abs(pivot) <= threshold or pivot == 0.0:
            raise SingularMatrixError(f"Matrix is singular (pivot {pivot:.3e} in column {k})")
        if pivot_row != k:
            a[[k, pivot_row]] = a[[pivot_row, k]]
            b[[k, pivot_row]] = b[[pivot_row, k]]
        factors = a[k + 1 :, k] / pivot
        a[k + 1 :, k:] -= np.outer(factors, a[k, k:])
        b[k + 1 :] -= np.outer(factors, b[k])

    x = _back_substitute(a, b)
    return x[:, 0] if is_vector else x


def _back_substitute(upper: np.ndarray, b: np.ndarray) -> np.ndarray:
    n = upper.shape[0]
    x = np.zeros_like(b)
    for k in range(n - 1, -1, -1):
        x[k] = (b[k] - upper[k, k + 1 :] @ x[k + 1 :]) / upper[k, k]
    return x


def _forward_substitute(lower: np.ndarray, b: np.ndarray) -> np.ndarray:
    n = lower.shape[0]
    x = np.zeros_like(b)
    for k in range(n):
        x[k] = (b[k] - lower[k, :k] @ x[:k]) / lower[k, k]
    return x


def solve_triangular(tri: np.ndarray, rhs: np.ndarray, lower: bool = True) -> np.ndarray:
    """Solve ``T x = b`` for a lower (or upper) triangular ``T``."""

    t = _square(tri, "Triangular matrix")
    n = t.shape[0]
    b, is_vector = _rhs(rhs, n)
    if n and np.any(np.diag(t) == 0.0):
        raise SingularMatrixError("Triangular matrix has a zero diagonal entry")
    x = _forward_substitute(t, b) if lower else _back_substitute(t, b)
    return x[:, 0] if is_vector else x


def cholesky_factor(matrix: np.ndarray, rtol: float = CHOLESKY_RTOL) -> np.ndarray:
    """
    Compute the lower-triangular Cholesky factor ``L`` with ``M = L L^T``.

    Only the lower triangle of ``matrix`` is read.

    Raises:
        NotPositiveDefiniteError: If a diagonal pivot is not strictly
            positive (at or below ``rtol`` times the largest diagonal entry).
    """

    m = _square(matrix, "Matrix")
    n = m.shape[0]
    scale = float(np.max(np.abs(np.diag(m)), initial=0.0))
    threshold = rtol * scale
    factor = np.zeros_like(m)
    for j in range(n):
        row = factor[j, :j]
        pivot = m[j, j] - row @ row
        if not pivot > threshold:
            raise NotPositiveDefiniteError(
                f"Matrix is not positive definite (pivot {pivot:.3e} at column {j})"
            )
        factor[j, j] = np.sqrt(pivot)
        factor[j + 1 :, j] = (m[j + 1 :, j] - factor[j + 1 :, :j] @ row) / factor[j, j]
    return factor


def cholesky_solve(factor: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    """Solve ``(L L^T) x = b`` given the Cholesky factor ``L``."""

    y = solve_triangular(factor, rhs, lower=True)
    return solve_triangular(np.asarray(factor).T, y, lower=False)


__all__ = [
    "PIVOT_RTOL",
    "symmetrize",
    "is_symmetric",
    "solve_linear_system",
    "solve_triangular",
    "cholesky_factor",
    "cholesky_solve",
]
