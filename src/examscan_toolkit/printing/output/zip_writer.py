"""
Module: printing.output.zip_writer

Purpose:
    Package the personalized copies of a print run as one ZIP archive,
    with the roster sheet first when one was produced.

    Archive layout:
        <course>_<exam>.zip
        ├── 000-studentslist.pdf   # when the exam prints a list
        ├── 10-5-2.pdf
        ├── 11-5-2.pdf
        └── ...

Key Functions:
    - write_archive(): Main entry point

Dependencies:
    - zipfile (std)

Used By:
    - printing.controller: ARCHIVE output mode
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from examscan_toolkit.errors import ExternalFailure

from ..assembler import PersonalizedCopy

logger = logging.getLogger(__name__)


def write_archive(
    output_path: Path,
    copies: Sequence[PersonalizedCopy],
    *,
    student_list: Optional[Path] = None,
) -> Tuple[Path, List[ExternalFailure]]:
    """
    Write the personalized copies into a ZIP archive.

    A copy whose file has gone missing is reported and skipped; the
    archive is still written.

    Args:
        output_path: Path of the .zip file (suffix added if missing)
        copies: Copies in roster order
        student_list: Roster sheet PDF placed first in the archive

    Returns:
        (archive path, per-copy failures)

    Raises:
        ExternalFailure: If the archive itself cannot be created
    """
    if output_path.suffix != ".zip":
        output_path = output_path.with_suffix(".zip")
    output_path.parent.mkdir(parents=True, exist_ok=True)

    failures: List[ExternalFailure] = []
    logger.info(f"Creating archive at {output_path}")

    try:
        with zipfile.ZipFile(output_path, "w", zipfile.ZIP_DEFLATED) as zf:
            if student_list is not None:
                zf.write(student_list, arcname=student_list.name)
            for copy in copies:
                if not copy.path.exists():
                    failure = ExternalFailure(copy.filename, "file missing, not added to archive")
                    logger.error(str(failure))
                    failures.append(failure)
                    continue
                zf.write(copy.path, arcname=copy.filename)
    except OSError as e:
        raise ExternalFailure(output_path.name, f"could not create archive: {e}") from e

    return output_path, failures
