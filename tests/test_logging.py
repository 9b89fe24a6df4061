"""Tests for logging utilities."""

import logging
from io import StringIO

from optcore.logging import (
    configure_logging,
    get_logger,
    set_log_level,
)
from optcore.solvers.core import LPModel
from optcore.solvers.lp import solve_lp


def test_get_logger_returns_logger():
    logger = get_logger("test_module")
    assert isinstance(logger, logging.Logger)
    assert logger.name.startswith("optcore.")


def test_get_logger_caching():
    assert get_logger("test_module") is get_logger("test_module")


def test_get_logger_keeps_package_names():
    assert get_logger("optcore.solvers.lp").name == "optcore.solvers.lp"
    assert get_logger().name == "optcore"


def test_get_logger_different_modules():
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")
    assert logger1 is not logger2
    assert logger1.name != logger2.name


def test_set_log_level_string():
    logger = get_logger("test_module")

    set_log_level("DEBUG")
    assert logger.level == logging.DEBUG

    set_log_level("ERROR")
    assert logger.level == logging.ERROR

    set_log_level(logging.WARNING)
    assert logger.level == logging.WARNING


def test_configure_logging_writes_to_stream():
    stream = StringIO()
    configure_logging(level=logging.DEBUG, stream=stream)
    try:
        logger = get_logger("test_module")
        logger.debug("Debug message")
        assert "Debug message" in stream.getvalue()
        assert "[DEBUG]" in stream.getvalue()
    finally:
        configure_logging(level=logging.WARNING)


def test_simplex_logs_phase_transitions_at_debug():
    stream = StringIO()
    configure_logging(level=logging.DEBUG, stream=stream)
    try:
        model = LPModel(objective=[1.0, 1.0])
        model.add_constraint([1.0, 1.0], "=", 1.0)
        solve_lp(model)
        output = stream.getvalue()
        assert "Phase I finished" in output
        assert "Phase II finished" in output
    finally:
        configure_logging(level=logging.WARNING)


def test_iteration_limit_logged_as_warning():
    stream = StringIO()
    configure_logging(level=logging.WARNING, stream=stream)
    model = LPModel(objective=[1.0, 1.0])
    model.add_constraint([1.0, 1.0], "=", 1.0)
    model.add_constraint([1.0, -1.0], "=", 0.0)
    solve_lp(model, {"iteration_limit": 1})
    assert "[WARNING]" in stream.getvalue()
    configure_logging(level=logging.WARNING)


def test_logger_does_not_propagate():
    assert get_logger("test_module").propagate is False
