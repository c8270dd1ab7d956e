"""
Module: storage.file_locking

Purpose:
    Locked JSON snapshot access for the record store, so two processes
    ingesting into the same data root never interleave a save.

Key Functions:
    - read_json_locked(): Read a JSON document under a shared lock
    - update_json_locked(): Read-modify-write a JSON document under an exclusive lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - storage.records: RecordStore.save() / RecordStore.load()
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict

import portalocker

logger = logging.getLogger(__name__)

JsonDict = Dict[str, Any]


def read_json_locked(path: Path) -> JsonDict:
    """
    Read a JSON document while holding a shared lock.

    Args:
        path: Snapshot file

    Returns:
        Parsed document, empty dict for an empty file

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the content is not valid JSON
    """
    with open(path, "r", encoding="utf-8") as f:
        portalocker.lock(f, portalocker.LOCK_SH)
        try:
            content = f.read()
        finally:
            portalocker.unlock(f)

    if not content.strip():
        return {}
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Corrupt snapshot {path}: {e}") from e


def update_json_locked(
    path: Path,
    modifier: Callable[[JsonDict], JsonDict],
) -> JsonDict:
    """
    Apply ``modifier`` to the stored document and write the result back.

    The exclusive lock is held from read to write. A missing file is
    created and presented to the modifier as an empty dict.

    Example:
        >>> update_json_locked(path, lambda doc: {**doc, "exams": exams})
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)

    with open(path, "r+", encoding="utf-8") as f:
        portalocker.lock(f, portalocker.LOCK_EX)
        try:
            content = f.read()
            current = json.loads(content) if content.strip() else {}
            updated = modifier(current)
            f.seek(0)
            f.truncate()
            json.dump(updated, f, indent=2, ensure_ascii=False)
        finally:
            portalocker.unlock(f)

    logger.debug(f"Wrote snapshot {path.name}")
    return updated
