"""
Core model, option and result containers shared by the solvers.

Linear models are described constraint by constraint: every
:class:`Constraint` carries one coefficient per variable, a relation
(``<=``, ``>=`` or ``=``) and a right-hand side. Variables carry their bounds
and an integrality flag. Quadratic models follow the ``solve.QP`` style
convention of minimizing ``0.5 x^T Q x + c^T x`` subject to equality rows
``A_eq x = b_eq`` and inequality rows ``A_ineq x >= b_ineq``.

All validation happens at construction time so that the solvers never start
iterating on a malformed model.

References:
    - Bertsimas & Tsitsiklis, *Introduction to Linear Optimization*, 1997.
    - Goldfarb & Idnani, "A numerically stable dual method for solving
      strictly convex quadratic programs", Math. Programming 27 (1983).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from optcore.exceptions import AsymmetricMatrixError, DimensionMismatchError, ModelError

DEFAULT_LP_ITERATION_LIMIT = 10_000
DEFAULT_MIP_NODE_LIMIT = 100_000
DEFAULT_QP_ITERATION_LIMIT = 10_000
DEFAULT_TOLERANCE = 1e-9
DEFAULT_INTEGRALITY_TOLERANCE = 1e-6

SYMMETRY_TOLERANCE = 1e-10

PIVOT_RULES = ("bland", "dantzig")


class Status(Enum):
    """Solution status for optimization routines."""

    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    ITERATION_LIMIT = "iteration_limit"
    NOT_POSITIVE_DEFINITE = "not_positive_definite"


class Sense(Enum):
    """Optimization direction of a linear model."""

    MINIMIZE = "min"
    MAXIMIZE = "max"


class VarType(Enum):
    """Integrality class of a variable."""

    CONTINUOUS = "continuous"
    INTEGER = "integer"
    BINARY = "binary"


class Relation(Enum):
    """Relation between a constraint's activity and its right-hand side."""

    LE = "<="
    GE = ">="
    EQ = "="

    @classmethod
    def _missing_(cls, value):
        if value == "==":
            return cls.EQ
        return None


@dataclass(frozen=True)
class Variable:
    """Decision variable with bounds and an integrality flag."""

    index: int
    lower: float = 0.0
    upper: float = np.inf
    kind: VarType = VarType.CONTINUOUS
    name: Optional[str] = None

    def __post_init__(self) -> None:
        kind = VarType(self.kind)
        lower = float(self.lower)
        upper = float(self.upper)
        if kind is VarType.BINARY:
            lower = max(lower, 0.0)
            upper = min(upper, 1.0)
        if np.isnan(lower) or np.isnan(upper):
            raise ModelError(f"Variable {self.index} has NaN bounds")
        if lower > upper:
            raise ModelError(
                f"Variable {self.index} has lower bound {lower} above upper bound {upper}"
            )
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    @property
    def is_integral(self) -> bool:
        return self.kind is not VarType.CONTINUOUS


@dataclass(frozen=True)
class Constraint:
    """Linear constraint ``coefficients . x  (relation)  rhs``."""

    coefficients: np.ndarray
    relation: Relation
    rhs: float
    name: Optional[str] = None

    def __post_init__(self) -> None:
        coeffs = np.array(self.coefficients, dtype=float).reshape(-1)
        if not np.all(np.isfinite(coeffs)) or not np.isfinite(self.rhs):
            raise ModelError("Constraint data must be finite")
        coeffs.setflags(write=False)
        object.__setattr__(self, "coefficients", coeffs)
        object.__setattr__(self, "relation", Relation(self.relation))
        object.__setattr__(self, "rhs", float(self.rhs))

    def activity(self, x: np.ndarray) -> float:
        return float(self.coefficients @ np.asarray(x, dtype=float))

    def violation(self, x: np.ndarray) -> float:
        """Return how far ``x`` is from satisfying the constraint (0 if satisfied)."""
        gap = self.activity(x) - self.rhs
        if self.relation is Relation.LE:
            return max(gap, 0.0)
        if self.relation is Relation.GE:
            return max(-gap, 0.0)
        return abs(gap)


def _index_list(indices: Optional[Iterable[int]], n: int, what: str) -> List[int]:
    if indices is None:
        return []
    out = []
    for idx in indices:
        idx = int(idx)
        if not 0 <= idx < n:
            raise DimensionMismatchError(f"{what} index {idx} out of range for {n} variables")
        out.append(idx)
    return out


def _bound_vector(values, n: int, fill: float, what: str) -> np.ndarray:
    if values is None:
        return np.full(n, fill)
    arr = np.asarray(values, dtype=float)
    if arr.ndim == 0:
        return np.full(n, float(arr))
    arr = arr.reshape(-1)
    if arr.shape[0] != n:
        raise DimensionMismatchError(f"{what} has length {arr.shape[0]}, expected {n}")
    return arr.copy()


@dataclass
class LPModel:
    """
    Linear (or mixed-integer linear) program.

    The objective is minimized when ``sense`` is :attr:`Sense.MINIMIZE` and
    maximized otherwise; solvers always work on the minimization form and
    report the objective in the caller's sense.

    Example:
        >>> model = LPModel(objective=[3.0, 5.0], sense=Sense.MAXIMIZE)
        >>> model.add_constraint([1.0, 2.0], "<=", 4.0)
        >>> model.add_constraint([3.0, 2.0], "<=", 6.0)
        >>> model.n_constraints
        2
    """

    objective: np.ndarray
    constraints: List[Constraint] = field(default_factory=list)
    variables: Optional[List[Variable]] = None
    sense: Sense = Sense.MINIMIZE

    def __post_init__(self) -> None:
        objective = np.array(self.objective, dtype=float).reshape(-1)
        if objective.shape[0] == 0:
            raise DimensionMismatchError("Linear program must contain at least one variable")
        if not np.all(np.isfinite(objective)):
            raise ModelError("Objective coefficients must be finite")
        self.objective = objective
        self.sense = Sense(self.sense)
        n = objective.shape[0]
        if self.variables is None:
            self.variables = [Variable(i) for i in range(n)]
        else:
            self.variables = list(self.variables)
        if len(self.variables) != n:
            raise DimensionMismatchError(
                f"{len(self.variables)} variables declared for {n} objective coefficients"
            )
        for position, var in enumerate(self.variables):
            if var.index != position:
                raise DimensionMismatchError(
                    f"Variable at position {position} has index {var.index}"
                )
        constraints = list(self.constraints)
        self.constraints = []
        for con in constraints:
            self._append(con)

    @classmethod
    def from_matrix(
        cls,
        objective: Sequence[float],
        matrix: Optional[np.ndarray] = None,
        rhs: Optional[Sequence[float]] = None,
        relations: Union[str, Relation, Sequence[Union[str, Relation]], None] = "<=",
        lower=None,
        upper=None,
        integer: Optional[Iterable[int]] = None,
        binary: Optional[Iterable[int]] = None,
        sense: Sense = Sense.MINIMIZE,
    ) -> "LPModel":
        """
        Build a model from a dense constraint matrix.

        ``relations`` is either a single relation applied to every row or one
        relation per row. ``integer`` and ``binary`` list variable indices
        carrying the corresponding integrality flag.
        """

        model = cls(objective=objective, sense=sense)
        n = model.n_variables
        if matrix is not None:
            mat = np.asarray(matrix, dtype=float)
            if mat.ndim == 1:
                mat = mat.reshape(1, -1)
            if mat.ndim != 2 or mat.shape[1] != n:
                raise DimensionMismatchError(f"Constraint matrix must have {n} columns")
            if rhs is None:
                raise DimensionMismatchError("Constraint matrix given without right-hand side")
            rhs_vec = np.asarray(rhs, dtype=float).reshape(-1)
            if rhs_vec.shape[0] != mat.shape[0]:
                raise DimensionMismatchError(
                    f"{rhs_vec.shape[0]} right-hand sides for {mat.shape[0]} constraints"
                )
            if relations is None or isinstance(relations, (str, Relation)):
                rel_list = [relations or Relation.LE] * mat.shape[0]
            else:
                rel_list = list(relations)
                if len(rel_list) == 1:
                    rel_list = rel_list * mat.shape[0]
            if len(rel_list) != mat.shape[0]:
                raise DimensionMismatchError(
                    f"{len(rel_list)} relations for {mat.shape[0]} constraints"
                )
            for row, rel, value in zip(mat, rel_list, rhs_vec):
                model.add_constraint(row, rel, value)
        elif rhs is not None:
            raise DimensionMismatchError("Right-hand side given without constraint matrix")

        model.set_bounds(lower=lower, upper=upper)
        model.set_integer(integer)
        model.set_binary(binary)
        return model

    def _append(self, con: Constraint) -> None:
        if con.coefficients.shape[0] != self.n_variables:
            raise DimensionMismatchError(
                f"Constraint has {con.coefficients.shape[0]} coefficients, "
                f"expected {self.n_variables}"
            )
        self.constraints.append(con)

    def add_constraint(
        self,
        coefficients: Sequence[float],
        relation: Union[str, Relation],
        rhs: float,
        name: Optional[str] = None,
    ) -> Constraint:
        con = Constraint(coefficients, Relation(relation), rhs, name)
        self._append(con)
        return con

    def set_bounds(self, lower=None, upper=None) -> None:
        """Replace variable bounds; ``None`` keeps the current values."""

        lb = _bound_vector(lower, self.n_variables, 0.0, "lower") if lower is not None else None
        ub = _bound_vector(upper, self.n_variables, np.inf, "upper") if upper is not None else None
        updated = []
        for var in self.variables:
            updated.append(
                Variable(
                    var.index,
                    var.lower if lb is None else lb[var.index],
                    var.upper if ub is None else ub[var.index],
                    var.kind,
                    var.name,
                )
            )
        self.variables = updated

    def _set_kind(self, indices: Optional[Iterable[int]], kind: VarType) -> None:
        for idx in _index_list(indices, self.n_variables, kind.value):
            var = self.variables[idx]
            self.variables[idx] = Variable(var.index, var.lower, var.upper, kind, var.name)

    def set_integer(self, indices: Optional[Iterable[int]]) -> None:
        self._set_kind(indices, VarType.INTEGER)

    def set_binary(self, indices: Optional[Iterable[int]]) -> None:
        self._set_kind(indices, VarType.BINARY)

    @property
    def n_variables(self) -> int:
        return int(self.objective.shape[0])

    @property
    def n_constraints(self) -> int:
        return len(self.constraints)

    @property
    def lower_bounds(self) -> np.ndarray:
        return np.array([var.lower for var in self.variables], dtype=float)

    @property
    def upper_bounds(self) -> np.ndarray:
        return np.array([var.upper for var in self.variables], dtype=float)

    @property
    def integer_indices(self) -> List[int]:
        return [var.index for var in self.variables if var.is_integral]

    @property
    def has_integers(self) -> bool:
        return any(var.is_integral for var in self.variables)

    @property
    def minimization_objective(self) -> np.ndarray:
        """Objective coefficients of the equivalent minimization problem."""
        if self.sense is Sense.MAXIMIZE:
            return -self.objective
        return self.objective.copy()

    def constraint_matrix(self) -> Tuple[np.ndarray, List[Relation], np.ndarray]:
        n = self.n_variables
        if not self.constraints:
            return np.zeros((0, n)), [], np.zeros(0)
        mat = np.vstack([con.coefficients for con in self.constraints])
        rhs = np.array([con.rhs for con in self.constraints], dtype=float)
        return mat, [con.relation for con in self.constraints], rhs

    def evaluate(self, x: np.ndarray) -> float:
        """Objective value of ``x`` in the model's own sense."""
        return float(self.objective @ np.asarray(x, dtype=float))

    def max_violation(self, x: np.ndarray) -> float:
        """Largest constraint or bound violation of ``x``."""
        x = np.asarray(x, dtype=float)
        worst = 0.0
        for con in self.constraints:
            worst = max(worst, con.violation(x))
        worst = max(worst, float(np.max(self.lower_bounds - x, initial=0.0)))
        worst = max(worst, float(np.max(x - self.upper_bounds, initial=0.0)))
        return worst


def _matrix_block(mat, n: int, what: str) -> np.ndarray:
    if mat is None:
        return np.zeros((0, n))
    arr = np.asarray(mat, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    if arr.ndim != 2 or arr.shape[1] != n:
        raise DimensionMismatchError(f"{what} must have {n} columns")
    return arr.copy()


def _rhs_block(vec, rows: int, what: str) -> np.ndarray:
    if vec is None:
        if rows:
            raise DimensionMismatchError(f"{what} is required when its matrix has rows")
        return np.zeros(0)
    arr = np.asarray(vec, dtype=float).reshape(-1)
    if arr.shape[0] != rows:
        raise DimensionMismatchError(f"{what} has length {arr.shape[0]}, expected {rows}")
    return arr.copy()


@dataclass
class QPModel:
    """
    Convex quadratic program ``min 0.5 x^T Q x + c^T x``.

    Equality rows ``A_eq x = b_eq`` come first, followed by the inequality
    rows ``A_ineq x >= b_ineq``; finite ``lower``/``upper`` entries become
    additional inequality rows appended after ``A_ineq``.
    """

    Q: np.ndarray
    c: np.ndarray
    A_eq: Optional[np.ndarray] = None
    b_eq: Optional[np.ndarray] = None
    A_ineq: Optional[np.ndarray] = None
    b_ineq: Optional[np.ndarray] = None
    lower: Optional[np.ndarray] = None
    upper: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        c = np.array(self.c, dtype=float).reshape(-1)
        n = c.shape[0]
        if n == 0:
            raise DimensionMismatchError("Quadratic program must contain at least one variable")
        q = np.array(self.Q, dtype=float)
        if q.shape != (n, n):
            raise DimensionMismatchError(f"Q has shape {q.shape}, expected {(n, n)}")
        scale = max(1.0, float(np.max(np.abs(q), initial=0.0)))
        if not np.allclose(q, q.T, rtol=0.0, atol=SYMMETRY_TOLERANCE * scale):
            raise AsymmetricMatrixError("Q must be symmetric")
        self.Q = 0.5 * (q + q.T)
        self.c = c
        self.A_eq = _matrix_block(self.A_eq, n, "A_eq")
        self.b_eq = _rhs_block(self.b_eq, self.A_eq.shape[0], "b_eq")
        self.A_ineq = _matrix_block(self.A_ineq, n, "A_ineq")
        self.b_ineq = _rhs_block(self.b_ineq, self.A_ineq.shape[0], "b_ineq")
        self.lower = None if self.lower is None else _bound_vector(self.lower, n, -np.inf, "lower")
        self.upper = None if self.upper is None else _bound_vector(self.upper, n, np.inf, "upper")
        if self.lower is not None and self.upper is not None and np.any(self.lower > self.upper):
            raise ModelError("Lower bounds must not exceed upper bounds")

    @classmethod
    def from_quadprog(
        cls,
        Dmat: np.ndarray,
        dvec: Sequence[float],
        Amat: Optional[np.ndarray] = None,
        bvec: Optional[Sequence[float]] = None,
        meq: int = 0,
    ) -> "QPModel":
        """
        Build a model from ``solve.QP`` arguments.

        ``solve.QP`` minimizes ``-d^T x + 0.5 x^T D x`` subject to
        ``A^T x >= b`` where the first ``meq`` columns of ``A`` are
        equalities.
        """

        dvec = np.asarray(dvec, dtype=float).reshape(-1)
        if Amat is None:
            return cls(Q=Dmat, c=-dvec)
        amat = np.asarray(Amat, dtype=float)
        if amat.ndim == 1:
            amat = amat.reshape(-1, 1)
        rows = amat.T
        bvec = np.zeros(rows.shape[0]) if bvec is None else np.asarray(bvec, dtype=float).reshape(-1)
        if bvec.shape[0] != rows.shape[0]:
            raise DimensionMismatchError(
                f"{bvec.shape[0]} right-hand sides for {rows.shape[0]} constraints"
            )
        if not 0 <= meq <= rows.shape[0]:
            raise DimensionMismatchError(f"meq={meq} outside 0..{rows.shape[0]}")
        return cls(
            Q=Dmat,
            c=-dvec,
            A_eq=rows[:meq],
            b_eq=bvec[:meq],
            A_ineq=rows[meq:],
            b_ineq=bvec[meq:],
        )

    @property
    def n_variables(self) -> int:
        return int(self.c.shape[0])

    @property
    def meq(self) -> int:
        return int(self.A_eq.shape[0])

    def constraint_rows(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Stack all constraints as ``N x >= b`` rows, equalities first.

        Bound rows follow the general inequalities: ``x_i >= lower_i`` for
        every finite lower bound, then ``-x_i >= -upper_i`` for every finite
        upper bound.
        """

        n = self.n_variables
        blocks = [self.A_eq, self.A_ineq]
        rhs = [self.b_eq, self.b_ineq]
        if self.lower is not None:
            mask = np.isfinite(self.lower)
            blocks.append(np.eye(n)[mask])
            rhs.append(self.lower[mask])
        if self.upper is not None:
            mask = np.isfinite(self.upper)
            blocks.append(-np.eye(n)[mask])
            rhs.append(-self.upper[mask])
        return np.vstack(blocks), np.concatenate(rhs)

    def evaluate(self, x: np.ndarray) -> float:
        x = np.asarray(x, dtype=float)
        return float(0.5 * x @ (self.Q @ x) + self.c @ x)


@dataclass(frozen=True)
class SolverOptions:
    """
    Solver configuration.

    ``iteration_limit`` of ``None`` selects the per-solver default: simplex
    pivots for LPs, explored nodes for branch-and-bound and add/drop steps for
    the QP solver.
    """

    iteration_limit: Optional[int] = None
    tolerance: float = DEFAULT_TOLERANCE
    integrality_tolerance: float = DEFAULT_INTEGRALITY_TOLERANCE
    pivot_rule: str = "bland"

    def __post_init__(self) -> None:
        if self.iteration_limit is not None and int(self.iteration_limit) < 1:
            raise ModelError("iteration_limit must be positive")
        if not self.tolerance > 0.0:
            raise ModelError("tolerance must be positive")
        if not 0.0 < self.integrality_tolerance < 0.5:
            raise ModelError("integrality_tolerance must lie in (0, 0.5)")
        if self.pivot_rule not in PIVOT_RULES:
            raise ModelError(f"pivot_rule must be one of {PIVOT_RULES}")

    @classmethod
    def coerce(cls, options: Union["SolverOptions", Mapping[str, object], None]) -> "SolverOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        known = {f.name for f in fields(cls)}
        unknown = set(options) - known
        if unknown:
            raise TypeError(f"Unknown solver options: {sorted(unknown)}")
        return cls(**options)

    def limit(self, default: int) -> int:
        return default if self.iteration_limit is None else int(self.iteration_limit)


@dataclass(frozen=True)
class SolveResult:
    """
    Outcome of a single solve call.

    Attributes:
        status: Enumeration describing solver exit.
        objective: Objective value at ``x`` in the model's sense (``None``
            when no point is available).
        x: Variable values (``None`` when no point is available).
        iterations: Simplex pivots, branch-and-bound nodes or active-set
            steps performed.
        message: Human-readable string explaining the status.
        multipliers: Lagrange multipliers of the QP constraint rows.
        active_set: Indices of the QP rows active at ``x``.
        nodes: Branch-and-bound nodes explored.
    """

    status: Status
    objective: Optional[float]
    x: Optional[np.ndarray]
    iterations: int
    message: str = ""
    multipliers: Optional[np.ndarray] = None
    active_set: Optional[Tuple[int, ...]] = None
    nodes: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("x", "multipliers"):
            value = getattr(self, name)
            if value is not None:
                arr = np.array(value, dtype=float)
                arr.setflags(write=False)
                object.__setattr__(self, name, arr)

    @property
    def success(self) -> bool:
        return self.status is Status.OPTIMAL


__all__ = [
    "DEFAULT_LP_ITERATION_LIMIT",
    "DEFAULT_MIP_NODE_LIMIT",
    "DEFAULT_QP_ITERATION_LIMIT",
    "DEFAULT_TOLERANCE",
    "DEFAULT_INTEGRALITY_TOLERANCE",
    "Status",
    "Sense",
    "VarType",
    "Relation",
    "Variable",
    "Constraint",
    "LPModel",
    "QPModel",
    "SolverOptions",
    "SolveResult",
]
