"""Logging for ``statement_ledger``.

Library modules only call ``get_logger("statement_ledger.<module>")`` and log
``event:phase key=value`` messages; until an entrypoint calls
:func:`configure_logging` the package logger carries a ``NullHandler`` and
stays silent.

``configure_logging`` installs one ``StreamHandler`` on the package logger.
The level comes from the argument, then ``STATEMENT_LEDGER_LOG_LEVEL``, then
INFO. SQLAlchemy's engine/pool loggers and Alembic's runtime logger are held at
WARNING unless the package runs at DEBUG, so a store-backed CLI run does not
interleave SQL echo with the statement output.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "statement_ledger"
_LEVEL_ENV = "STATEMENT_LEDGER_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_DEPENDENCY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "alembic.runtime")

_handler: logging.Handler | None = None


def _parse_level(level: int | str | None) -> tuple[int, str | None]:
    """Return ``(level, rejected)``; ``rejected`` is the unusable input, if any."""

    if isinstance(level, int):
        return level, None
    raw = level if level is not None else os.getenv(_LEVEL_ENV)
    if raw is None or not raw.strip():
        return logging.INFO, None
    name = raw.strip().upper()
    if name.isdigit():
        return int(name), None
    numeric = logging.getLevelNamesMapping().get(name)
    if numeric is None:
        return logging.INFO, raw
    return numeric, None


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach the package handler once; later calls are no-ops.

    ``stream`` defaults to the ``sys.stderr`` current at call time.
    """

    global _handler
    if _handler is not None:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved, rejected = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    _handler = handler

    dep_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in _DEPENDENCY_LOGGERS:
        logging.getLogger(name).setLevel(dep_level)

    if rejected is not None:
        logger.warning("logging:invalid_level value=%r using=INFO", rejected)


def reset_logging() -> None:
    """Detach the package handler so ``configure_logging`` can run again."""

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging"]
