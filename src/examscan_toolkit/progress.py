"""
Module: progress

Purpose:
    Progress reporting for the long-running batch operations. Callers pass
    an optional callback receiving (current, total, label); the engine never
    prints progress itself.

Key Functions:
    - report(): Invoke a callback if one was given
    - logging_progress(): Callback that forwards progress to a logger
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

ProgressCallback = Callable[[int, int, str], None]


def report(
    callback: Optional[ProgressCallback],
    current: int,
    total: int,
    label: str,
) -> None:
    """Forward a progress update to ``callback`` when set."""
    if callback is not None:
        callback(current, total, label)


def logging_progress(
    logger: logging.Logger,
    level: int = logging.INFO,
) -> ProgressCallback:
    """
    Build a callback that logs every update.

    Example:
        >>> cb = logging_progress(logging.getLogger("print-run"))
        >>> cb(1, 3, "Doe, Jane")
    """
    def _callback(current: int, total: int, label: str) -> None:
        logger.log(level, f"[{current}/{total}] {label}")

    return _callback
