"""Solve result summary and comparison utilities.

This module turns a :class:`~optcore.solvers.core.SolveResult` into
plain data or human-readable text. Solvers never print; callers decide how
to present results.
"""

from __future__ import annotations

import sys
from typing import IO, Any, Dict, List, Optional, Sequence, Union

import numpy as np

from optcore.solvers.core import LPModel, QPModel, SolveResult

Model = Union[LPModel, QPModel]


def _variable_names(
    n: int,
    model: Optional[Model],
    names: Optional[Sequence[str]],
) -> List[str]:
    if names is not None:
        if len(names) != n:
            raise ValueError(f"Expected {n} names, got {len(names)}")
        return list(names)
    if isinstance(model, LPModel):
        return [var.name or f"x{var.index + 1}" for var in model.variables]
    return [f"x{i + 1}" for i in range(n)]


def _integral_flags(n: int, model: Optional[Model]) -> List[bool]:
    if isinstance(model, LPModel):
        return [var.is_integral for var in model.variables]
    return [False] * n


def result_summary(
    result: SolveResult,
    model: Optional[Model] = None,
    names: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """
    Generate a summary dictionary for a solve result.

    Parameters
    ----------
    result:
        Result to summarize.
    model:
        Model that produced ``result``; supplies variable names and
        integrality flags when given.
    names:
        Explicit variable names, overriding those of ``model``.

    Returns
    -------
    Dict[str, Any]
        Dictionary containing:
        - status: str
        - objective: float or None
        - iterations: int
        - message: str
        - variables: Dict[str, float | int] (empty when no point is available)
    """
    variables: Dict[str, Any] = {}
    if result.x is not None:
        n = result.x.shape[0]
        labels = _variable_names(n, model, names)
        flags = _integral_flags(n, model)
        for label, value, integral in zip(labels, result.x, flags):
            variables[label] = int(round(value)) if integral else float(value)

    summary: Dict[str, Any] = {
        "status": result.status.value,
        "objective": result.objective,
        "iterations": result.iterations,
        "message": result.message,
        "variables": variables,
    }
    if result.nodes is not None:
        summary["nodes"] = result.nodes
    return summary


def print_result_summary(
    result: SolveResult,
    model: Optional[Model] = None,
    names: Optional[Sequence[str]] = None,
    file: Optional[IO[str]] = None,
) -> None:
    """
    Pretty-print a result summary to stdout or a file.

    This is a utility function for human-readable output, so it uses print()
    intentionally. For programmatic access, use result_summary() instead.
    """
    if file is None:
        file = sys.stdout

    summary = result_summary(result, model, names)

    print(f"Status: {summary['status']}", file=file)
    if summary["objective"] is not None:
        print(f"Objective Value: {summary['objective']:.6g}", file=file)
    print(f"Iterations: {summary['iterations']}", file=file)
    if "nodes" in summary:
        print(f"Nodes: {summary['nodes']}", file=file)
    for label, value in summary["variables"].items():
        print(f"{label}: {value}", file=file)


def compare_results(
    first: SolveResult,
    second: SolveResult,
    atol: float = 1e-9,
) -> Dict[str, Any]:
    """
    Compare two results and return differences.

    Returns
    -------
    Dict[str, Any]
        Dictionary containing:
        - same_status: bool
        - objective_diff: float or None
        - max_x_diff: float or None
        - equivalent: bool (same status, objectives and points within ``atol``)
    """
    objective_diff = None
    if first.objective is not None and second.objective is not None:
        objective_diff = abs(first.objective - second.objective)

    max_x_diff = None
    if first.x is not None and second.x is not None and first.x.shape == second.x.shape:
        max_x_diff = float(np.max(np.abs(first.x - second.x), initial=0.0))

    same_status = first.status is second.status
    equivalent = same_status
    if first.objective is not None or second.objective is not None:
        equivalent = equivalent and objective_diff is not None and objective_diff <= atol
    if first.x is not None or second.x is not None:
        equivalent = equivalent and max_x_diff is not None and max_x_diff <= atol

    return {
        "same_status": same_status,
        "objective_diff": objective_diff,
        "max_x_diff": max_x_diff,
        "equivalent": equivalent,
    }
