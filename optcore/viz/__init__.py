"""Reporting utilities for solve results.

This module provides:
- Result summaries as plain dictionaries
- Human-readable result printing
- Result comparison
"""

from .summary import (
    compare_results,
    print_result_summary,
    result_summary,
)

__all__ = [
    "result_summary",
    "print_result_summary",
    "compare_results",
]
