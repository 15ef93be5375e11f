"""
Logging setup — one format for every module.

Console output only; the deployment collects stdout.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - [PID:%(process)d] - %(message)s"


def setup_logging(level: str | int = logging.INFO) -> None:
    """
    Configure the root logger.

    Quiets SQLAlchemy and aiosqlite below WARNING; their INFO output is per-statement.
    """
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, usually called with __name__."""
    return logging.getLogger(name)


__all__ = ("LOG_FORMAT", "setup_logging", "get_logger")
