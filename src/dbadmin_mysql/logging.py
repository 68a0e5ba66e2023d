"""
Package logger of dbadmin_mysql.

The dialect runs inside a host application, which owns the logging setup. This module
only gives the package logger a console handler when nothing else has configured one,
and reads its level from the ``DBADMIN_LOG_LEVEL`` environment variable. Uncaught
exceptions are left to the host.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__.split(".")[0])

log_format = logging.Formatter("[%(asctime)s][%(levelname)s]: %(message)s")


def env_log_level(default: str = "INFO") -> int:
    """
    Level named by ``DBADMIN_LOG_LEVEL``.

    Unknown names fall back to ``default``.
    """
    name = os.getenv("DBADMIN_LOG_LEVEL", default).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.getLevelName(default.upper())


def attach_default_handler(target: logging.Logger) -> bool:
    """
    Give a logger a console handler unless it already has handlers.

    Returns:
        True if a handler was added.
    """
    if target.handlers:
        return False
    handler = logging.StreamHandler()
    handler.setFormatter(log_format)
    target.addHandler(handler)
    return True


attach_default_handler(logger)
logger.setLevel(env_log_level())
