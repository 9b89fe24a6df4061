"""Package loggers for optcore.

Every module obtains its logger through :func:`get_logger`, which places it
under the ``optcore`` namespace with a single stderr handler. Solvers report
phase changes, incumbents and active-set updates at DEBUG and hitting an
iteration cap at WARNING, so a default setup stays quiet unless a solve was
cut short.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional

PACKAGE = "optcore"

_FORMAT = '[%(levelname)s] %(name)s: %(message)s'

_level = logging.WARNING
_registry: dict[str, logging.Logger] = {}


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def _attach_handler(
    logger: logging.Logger,
    level: int,
    stream: Optional[IO[str]] = None,
    fmt: Optional[str] = None,
) -> None:
    handler = logging.StreamHandler(sys.stderr if stream is None else stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt or _FORMAT))
    logger.addHandler(handler)


def _qualified(name: Optional[str]) -> str:
    if not name or name == PACKAGE:
        return PACKAGE
    if name.startswith(PACKAGE + "."):
        return name
    return f"{PACKAGE}.{name}"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the cached optcore logger for ``name``.

    Names outside the package namespace are prefixed with ``optcore.``, so
    ``get_logger(__name__)`` inside the package and ``get_logger("demo")``
    in a script both land under the same tree. The first call configures a
    stderr handler at the current package level and disables propagation.

    Example:
        >>> from optcore.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("Phase I finished after %d pivots", 3)
    """
    qualified = _qualified(name)
    cached = _registry.get(qualified)
    if cached is not None:
        return cached

    logger = logging.getLogger(qualified)
    if not logger.handlers:
        logger.setLevel(_level)
        _attach_handler(logger, _level)
        logger.propagate = False

    _registry[qualified] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Change the level of every optcore logger and of loggers created later.

    ``level`` is a ``logging`` constant or its name (``"DEBUG"``, ``"INFO"``, ...).
    """
    global _level
    _level = _coerce_level(level)
    for logger in _registry.values():
        logger.setLevel(_level)
        for handler in logger.handlers:
            handler.setLevel(_level)


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Route every optcore logger to one stream with one format.

    Existing handlers are replaced. Loggers created afterwards pick up
    ``level`` but keep the default stderr handler.

    Example:
        >>> import io, logging
        >>> from optcore.logging import configure_logging
        >>> configure_logging(level=logging.DEBUG, stream=io.StringIO())
    """
    global _level
    _level = _coerce_level(level)
    for logger in _registry.values():
        logger.setLevel(_level)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        _attach_handler(logger, _level, stream, format_string)
