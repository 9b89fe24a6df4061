"""
Exception hierarchy for optcore.

Only programmer errors and kernel failures are raised. Solver outcomes such
as infeasibility or unboundedness are reported through
:class:`optcore.solvers.core.Status` instead.
"""

from __future__ import annotations

import numpy as np


class OptimizationError(Exception):
    """Base class for all optcore errors."""


class ModelError(OptimizationError, ValueError):
    """Raised when a model or solver option is malformed."""


class DimensionMismatchError(ModelError):
    """Raised when constraint and variable counts are inconsistent."""


class AsymmetricMatrixError(ModelError):
    """Raised when a quadratic term is not symmetric."""


class SingularMatrixError(OptimizationError, np.linalg.LinAlgError):
    """Raised when a linear system has no unique solution."""


class NotPositiveDefiniteError(OptimizationError, np.linalg.LinAlgError):
    """Raised when a Cholesky pivot is not strictly positive."""


__all__ = [
    "OptimizationError",
    "ModelError",
    "DimensionMismatchError",
    "AsymmetricMatrixError",
    "SingularMatrixError",
    "NotPositiveDefiniteError",
]
