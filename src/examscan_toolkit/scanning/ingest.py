"""
Module: scanning.ingest

Purpose:
    Turn a directory of scanned page images into decoded scan entries.
    Listing is lexicographic by filename; that order decides which scan
    wins when two files decode to the same page.

    Per-file anomalies never abort the batch: malformed names, unknown
    students, course mismatches, superseded duplicates and anonymous scans
    without a plain sibling are counted as ignored and reported.

Key Functions:
    - list_scan_files(): Image files of a batch, sorted by name
    - detect_duplex(): Batch-level duplex flag from "b" page tokens
    - decode_batch(): Parse, validate and pair anonymous captures

Key Classes:
    - ScanEntry: One page to persist (plain scan + optional anonymous capture)
    - DecodedBatch: Entries plus ignored count and errors
    - IngestReport: Outcome of an ingest run

Dependencies:
    - core.codec: Scan filename decoding
    - ports.RosterSource: Student existence checks

Used By:
    - scanning.controller
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from examscan_toolkit.core.codec import decode_filename
from examscan_toolkit.core.models import DuplexSide, Exam, Page, PageIdentifier
from examscan_toolkit.errors import (
    DuplicateScan,
    ExamToolkitError,
    ParseError,
    ResourceError,
    UnknownStudent,
)
from examscan_toolkit.ports import RosterSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanEntry:
    """
    A plain page scan, with its anonymized capture when one was found.

    Attributes:
        identifier: Decoded identifier (logical page, anonymous flag cleared)
        path: Plain scan image
        anonymous_path: Anonymized capture of the same page, if any
    """

    identifier: PageIdentifier
    path: Path
    anonymous_path: Optional[Path] = None

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass
class DecodedBatch:
    """Result of decoding a batch listing."""

    duplex: bool
    entries: List[ScanEntry] = field(default_factory=list)
    ignored: int = 0
    errors: List[ExamToolkitError] = field(default_factory=list)

    def ignore(self, error: ExamToolkitError) -> None:
        logger.warning(f"Ignoring scan: {error}")
        self.ignored += 1
        self.errors.append(error)


@dataclass(frozen=True)
class IngestReport:
    """
    Outcome of an ingest run (immutable).

    Attributes:
        success: False when the run aborted or had nothing to process
        message: Human readable summary
        matched: Pages persisted
        ignored: Scans skipped
        errors: Per-scan errors, plus the aborting error if any
        pages: Persisted pages, in processing order
    """

    success: bool
    message: str
    matched: int = 0
    ignored: int = 0
    errors: Tuple[ExamToolkitError, ...] = ()
    pages: Tuple[Page, ...] = ()

    def as_tuple(self) -> Tuple[bool, str, int, int]:
        """(success, message, matched, ignored) as returned to drivers."""
        return (self.success, self.message, self.matched, self.ignored)


def list_scan_files(batch_dir: Path, extensions: Iterable[str]) -> List[Path]:
    """
    Image files directly inside ``batch_dir``, sorted by filename.

    Example:
        >>> [p.name for p in list_scan_files(Path("batch"), (".png",))]
        ['10-5-1.png', '10-5-1_a.png', '10-5-1b.png']
    """
    allowed = {ext.lower() for ext in extensions}
    files = [
        p for p in batch_dir.iterdir()
        if p.is_file() and p.suffix.lower() in allowed
    ]
    return sorted(files, key=lambda p: p.name)


def detect_duplex(files: Sequence[Path]) -> bool:
    """
    True when any well-formed scan name carries a back-face page token.

    Names the codec rejects never vote, so a stray file cannot renumber
    the pages of a single sided batch.
    """
    for path in files:
        try:
            identifier = decode_filename(path.name, duplex=True)
        except ParseError:
            continue
        if identifier.side is DuplexSide.BACK:
            return True
    return False


def decode_batch(
    files: Sequence[Path],
    exam: Exam,
    roster: RosterSource,
    *,
    duplex: bool,
) -> DecodedBatch:
    """
    Decode a batch listing into scan entries.

    Anonymous captures only attach to the plain scan of the same page; they
    never produce an entry of their own. When two plain scans decode to the
    same page the later one in listing order wins and the earlier one is
    counted as ignored.

    Args:
        files: Scan files in listing order
        exam: Exam being ingested
        roster: User lookup for normal-mode validation
        duplex: Batch-level duplex flag

    Returns:
        DecodedBatch with one entry per page, in listing order of the winners
    """
    batch = DecodedBatch(duplex=duplex)
    plain: Dict[Tuple[int, int, int], ScanEntry] = {}
    anonymous: Dict[Tuple[int, int, int], Path] = {}

    for path in files:
        try:
            identifier = decode_filename(path.name, duplex=duplex)
        except ParseError as e:
            batch.ignore(e)
            continue

        if exam.mode.validates_students:
            problem = _validation_problem(identifier, exam, roster)
            if problem is not None:
                batch.ignore(UnknownStudent(path.name, problem))
                continue

        key = identifier.key
        if identifier.anonymous:
            if key in anonymous:
                batch.ignore(DuplicateScan(anonymous[key].name, path.name))
            anonymous[key] = path
            continue

        if key in plain:
            batch.ignore(DuplicateScan(plain.pop(key).filename, path.name))
        plain[key] = ScanEntry(identifier=identifier.as_plain(), path=path)

    for key, entry in plain.items():
        batch.entries.append(replace(entry, anonymous_path=anonymous.pop(key, None)))

    for path in anonymous.values():
        batch.ignore(ResourceError(f"Anonymous scan {path.name} has no plain page scan"))

    logger.info(
        f"Decoded {len(files)} scans: {len(batch.entries)} pages, {batch.ignored} ignored"
        f"{' (duplex)' if duplex else ''}"
    )
    return batch


def _validation_problem(identifier: PageIdentifier, exam: Exam, roster: RosterSource) -> Optional[str]:
    if roster.get_user(identifier.student_id) is None:
        return f"unknown student {identifier.student_id}"
    if identifier.course_id != exam.course_id:
        return f"course {identifier.course_id} does not match exam course {exam.course_id}"
    return None
