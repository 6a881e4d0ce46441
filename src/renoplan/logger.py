"""Renoplan logging: what the optimizer decided, and what it looked at to decide it.

Verbosity 1 reports decisions (dates assigned, tasks compressed, groups
dissolved). Verbosity 2 adds the checks behind them (CPM values, dropped
advisor suggestions), indented under the decision they led to. Warnings are
always shown and carry a ``warning:`` prefix so they stand out in CLI output.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from typing import Any, TextIO

CHANGES_LEVEL = 25  # Between INFO (20) and WARNING (30)
CHECKS_LEVEL = 15  # Between DEBUG (10) and INFO (20)

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0
VERBOSITY_DEBUG = 3

_LEVEL_FOR_VERBOSITY = (logging.WARNING, CHANGES_LEVEL, CHECKS_LEVEL, logging.DEBUG)

_PREFIXES = {
    logging.DEBUG: "    debug: ",
    CHECKS_LEVEL: "  ",
    CHANGES_LEVEL: "",
    logging.WARNING: "warning: ",
    logging.ERROR: "error: ",
}


class RenoplanLogger(logging.Logger):
    """Logger with one method per verbosity level of the optimizer."""

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a scheduling decision (verbosity 1)."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a value or candidate the engine examined (verbosity 2)."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)

    def diagnostics(self, messages: Iterable[str]) -> None:
        """Log result warnings (cycles, infeasible limits, dissolved groups) one per line."""
        for message in messages:
            self.warning(message)


class _LevelPrefixFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        prefix = _PREFIXES.get(record.levelno, f"{record.levelname.lower()}: ")
        return prefix + super().format(record)


def verbosity_level(verbosity: int) -> int:
    """Logging level for a CLI verbosity, clamped to the supported range."""
    return _LEVEL_FOR_VERBOSITY[max(VERBOSITY_SILENT, min(verbosity, VERBOSITY_DEBUG))]


def get_logger() -> RenoplanLogger:
    """The shared ``renoplan`` logger."""
    logging.setLoggerClass(RenoplanLogger)
    logger = logging.getLogger("renoplan")
    assert isinstance(logger, RenoplanLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Route renoplan logging to a stream at the given verbosity.

    Args:
        verbosity: 0=warnings only, 1=decisions, 2=checks, 3=debug
        stream: Output stream (defaults to sys.stderr)
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(verbosity_level(verbosity))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(_LevelPrefixFormatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and restore propagation so pytest's caplog sees records."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
    logger.propagate = True
