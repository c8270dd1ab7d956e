"""
Module: printing.output.merge

Purpose:
    Concatenate the personalized copies of a print run into one PDF,
    roster sheet first when present.

Key Functions:
    - merge_documents(): Main entry point

Dependencies:
    - fitz (PyMuPDF): Page import

Used By:
    - printing.controller: MERGED output mode
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Tuple

import fitz  # PyMuPDF

from examscan_toolkit.errors import ExternalFailure

logger = logging.getLogger(__name__)


def merge_documents(
    documents: Sequence[Path],
    output_path: Path,
) -> Tuple[Path, int, List[ExternalFailure]]:
    """
    Merge PDFs in order into ``output_path``.

    Unreadable or missing inputs are reported and skipped.

    Returns:
        (merged path, total page count, per-document failures)

    Raises:
        ExternalFailure: If no input could be merged
    """
    if output_path.suffix != ".pdf":
        output_path = output_path.with_suffix(".pdf")
    output_path.parent.mkdir(parents=True, exist_ok=True)

    failures: List[ExternalFailure] = []
    merged = fitz.open()
    try:
        for path in documents:
            if not path.exists():
                failures.append(ExternalFailure(path.name, "file missing, not merged"))
                continue
            try:
                with fitz.open(str(path)) as doc:
                    merged.insert_pdf(doc)
            except (fitz.FileDataError, RuntimeError) as e:
                logger.error(f"Could not merge {path.name}: {e}")
                failures.append(ExternalFailure(path.name, f"unreadable PDF: {e}"))

        page_count = merged.page_count
        if page_count == 0:
            raise ExternalFailure(output_path.name, "no readable documents to merge")
        merged.save(str(output_path), garbage=3, deflate=True)
    finally:
        merged.close()

    logger.info(f"Merged {len(documents) - len(failures)} documents ({page_count} pages) into {output_path.name}")
    return output_path, page_count, failures
