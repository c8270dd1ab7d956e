"""
Module: workspace

Purpose:
    Scoped scratch workspace for one print run, ingest run or feedback
    render. The directory tree is removed on every exit path.

Key Functions:
    - scratch_workspace(): Context manager yielding a Workspace

Key Classes:
    - Workspace: Root directory plus named subdirectories

Dependencies:
    - tempfile (std)

Used By:
    - printing.controller, scanning.controller, feedback.composer
"""

from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Workspace:
    """
    Scratch directory owned by one operation.

    Example:
        >>> with scratch_workspace(None, "print") as ws:
        ...     qr_dir = ws.subdir("qr")
    """

    root: Path

    def subdir(self, name: str) -> Path:
        """Create (if needed) and return a named subdirectory."""
        path = self.root / name
        path.mkdir(parents=True, exist_ok=True)
        return path


@contextmanager
def scratch_workspace(data_root: Optional[Path], label: str) -> Iterator[Workspace]:
    """
    Acquire a fresh scratch directory under ``data_root``.

    Args:
        data_root: Parent directory, or None for the system temp dir
        label: Short label used in the directory name

    Yields:
        Workspace rooted at a new empty directory
    """
    if data_root is not None:
        data_root.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory(
        prefix=f"examscan-{label}-",
        dir=str(data_root) if data_root else None,
    ) as tmp:
        logger.debug(f"Acquired workspace {tmp}")
        try:
            yield Workspace(Path(tmp))
        finally:
            logger.debug(f"Releasing workspace {tmp}")
