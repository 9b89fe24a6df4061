"""
Branch-and-bound for mixed-integer linear programs.

Every node of the search tree is the LP relaxation of the model with some
integer variables' bounds tightened. The search is depth-first: the node
stack is local to one solve call, the model itself is shared read-only.

Branching picks the most fractional integer variable (ties: smallest index)
and creates the children ``x_j <= floor(v)`` and ``x_j >= ceil(v)``; the
ceiling child is explored first. A node is pruned as soon as its relaxation
bound cannot beat the incumbent.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from optcore.logging import get_logger

from .core import (
    DEFAULT_MIP_NODE_LIMIT,
    LPModel,
    Sense,
    SolverOptions,
    SolveResult,
    Status,
)
from .lp import solve_lp, solve_relaxation

logger = get_logger(__name__)


@dataclass
class BranchNode:
    """
    Search-tree node.

    ``bounds`` only holds the variables tightened on the path from the root;
    ``bound`` is the parent's relaxation objective (minimization form), a
    valid lower bound for everything below this node.
    """

    model: LPModel
    bounds: Dict[int, Tuple[float, float]] = field(default_factory=dict)
    bound: float = -np.inf
    depth: int = 0

    def effective_bounds(self, lower: np.ndarray, upper: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        lo = lower.copy()
        hi = upper.copy()
        for idx, (lb, ub) in self.bounds.items():
            lo[idx] = lb
            hi[idx] = ub
        return lo, hi

    def child(self, index: int, lower: float, upper: float, bound: float) -> "BranchNode":
        bounds = dict(self.bounds)
        bounds[index] = (lower, upper)
        return BranchNode(self.model, bounds, bound, self.depth + 1)


def _integral_bounds(model: LPModel, tol: float) -> Tuple[np.ndarray, np.ndarray]:
    lower = model.lower_bounds
    upper = model.upper_bounds
    for idx in model.integer_indices:
        if np.isfinite(lower[idx]):
            lower[idx] = math.ceil(lower[idx] - tol)
        if np.isfinite(upper[idx]):
            upper[idx] = math.floor(upper[idx] + tol)
    return lower, upper


def _branching_variable(x: np.ndarray, indices: List[int], tol: float) -> Optional[int]:
    """Most fractional integer variable; the smallest index wins ties."""

    best = None
    best_distance = tol
    for idx in indices:
        frac = x[idx] - math.floor(x[idx])
        distance = min(frac, 1.0 - frac)
        if distance > best_distance:
            best = idx
            best_distance = distance
    return best


def _cannot_improve(value: float, incumbent: float, tol: float) -> bool:
    if not np.isfinite(incumbent):
        return False
    return value >= incumbent - tol * max(1.0, abs(incumbent))


def _rounded_point(model: LPModel, x: np.ndarray, indices: List[int], tol: float) -> np.ndarray:
    """Round the integer components of ``x`` unless that breaks a constraint."""

    candidate = np.array(x, dtype=float)
    candidate[indices] = np.round(candidate[indices])
    scale = max([1.0] + [abs(con.rhs) for con in model.constraints])
    allowed = max(model.max_violation(x), tol * scale)
    if model.max_violation(candidate) > allowed:
        logger.debug("Rounding the incumbent violates a constraint; keeping relaxation values")
        return np.array(x, dtype=float)
    return candidate


def solve_mip(model: LPModel, options=None) -> SolveResult:
    """
    Solve a mixed-integer linear program by depth-first branch-and-bound.

    ``options.iteration_limit`` caps the number of explored nodes (default
    100,000). When the cap is reached the best incumbent is returned with
    status ``ITERATION_LIMIT``; without an incumbent the status is
    ``INFEASIBLE``. A node whose relaxation hits the simplex pivot limit
    leaves its subtree unexplored, so the search then ends with
    ``ITERATION_LIMIT`` and the incumbent (if any) instead of claiming
    optimality or infeasibility. Models without integer variables are solved
    directly by the simplex method.
    """

    opts = SolverOptions.coerce(options)
    if not model.has_integers:
        return solve_lp(model, opts)

    tol = opts.tolerance
    int_tol = opts.integrality_tolerance
    node_limit = opts.limit(DEFAULT_MIP_NODE_LIMIT)
    # Node relaxations use the simplex defaults; the cap applies to nodes.
    lp_options = SolverOptions(
        tolerance=tol,
        integrality_tolerance=int_tol,
        pivot_rule=opts.pivot_rule,
    )
    sign = -1.0 if model.sense is Sense.MAXIMIZE else 1.0
    int_indices = model.integer_indices
    base_lower, base_upper = _integral_bounds(model, tol)

    stack: List[BranchNode] = [BranchNode(model)]
    incumbent_x: Optional[np.ndarray] = None
    incumbent = np.inf
    nodes = 0
    pivots = 0
    limit_hit = False
    truncated = False

    while stack:
        node = stack.pop()
        if _cannot_improve(node.bound, incumbent, tol):
            continue
        if nodes >= node_limit:
            limit_hit = True
            break
        nodes += 1

        lower, upper = node.effective_bounds(base_lower, base_upper)
        relaxation = solve_relaxation(model, lower, upper, lp_options)
        pivots += relaxation.iterations

        if relaxation.status is Status.UNBOUNDED:
            if node.depth == 0:
                return SolveResult(
                    status=Status.UNBOUNDED,
                    objective=None,
                    x=None,
                    iterations=nodes,
                    message="LP relaxation is unbounded",
                    nodes=nodes,
                )
            continue
        if relaxation.status is Status.ITERATION_LIMIT:
            logger.warning(
                "Node relaxation at depth %d hit the pivot limit; subtree left unexplored",
                node.depth,
            )
            truncated = True
            continue
        if relaxation.status is not Status.OPTIMAL:
            continue

        x = relaxation.x
        value = sign * relaxation.objective
        if _cannot_improve(value, incumbent, tol):
            logger.debug("Pruned node at depth %d (bound %.6g)", node.depth, value)
            continue

        branch = _branching_variable(x, int_indices, int_tol)
        if branch is None:
            candidate = _rounded_point(model, x, int_indices, tol)
            incumbent_x = candidate
            incumbent = sign * model.evaluate(candidate)
            logger.debug("New incumbent %.6g at depth %d (node %d)", incumbent, node.depth, nodes)
            continue

        v = x[branch]
        lo, hi = lower[branch], upper[branch]
        down = node.child(branch, lo, float(math.floor(v)), value)
        up = node.child(branch, float(math.ceil(v)), hi, value)
        # Depth-first with the ceiling branch popped first.
        stack.append(down)
        stack.append(up)

    logger.debug("Branch-and-bound explored %d nodes (%d simplex pivots)", nodes, pivots)
    if limit_hit:
        logger.warning("Branch-and-bound node limit of %d reached", node_limit)
        if incumbent_x is None:
            return SolveResult(
                status=Status.INFEASIBLE,
                objective=None,
                x=None,
                iterations=nodes,
                message="Node limit reached before an integer solution was found",
                nodes=nodes,
            )
        return SolveResult(
            status=Status.ITERATION_LIMIT,
            objective=model.evaluate(incumbent_x),
            x=incumbent_x,
            iterations=nodes,
            message="Node limit reached; returning best integer solution",
            nodes=nodes,
        )
    if truncated:
        return SolveResult(
            status=Status.ITERATION_LIMIT,
            objective=None if incumbent_x is None else model.evaluate(incumbent_x),
            x=incumbent_x,
            iterations=nodes,
            message="A node relaxation hit the pivot limit; search incomplete",
            nodes=nodes,
        )
    if incumbent_x is None:
        return SolveResult(
            status=Status.INFEASIBLE,
            objective=None,
            x=None,
            iterations=nodes,
            message="No integer-feasible solution exists",
            nodes=nodes,
        )
    return SolveResult(
        status=Status.OPTIMAL,
        objective=model.evaluate(incumbent_x),
        x=incumbent_x,
        iterations=nodes,
        message="Optimal integer solution found",
        nodes=nodes,
    )


__all__ = ["BranchNode", "solve_mip"]
