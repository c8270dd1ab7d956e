"""
Module: identifiers

Purpose:
    Provides the PageIdentifier dataclass - the value printed as a QR mark on
    every personalized page and recovered from scanned page filenames.

Key Classes:
    - DuplexSide: Which face of a printed sheet a page is on
    - PageIdentifier: (student, course, logical page) plus transport flags

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - core.codec: Canonical string and filename encoding
    - printing.header: QR content
    - scanning.ingest: Decoded scan entries
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class DuplexSide(str, Enum):
    """Face of a printed sheet."""

    FRONT = "front"
    BACK = "back"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class PageIdentifier:
    """
    Identity of one logical exam page.

    Attributes:
        student_id: Student id (0 for blank filler copies)
        course_id: Course the exam belongs to
        page: Logical page number, 1-based, assigned before duplex expansion
        side: Duplex face the page was printed/scanned on
        anonymous: True for the anonymized capture of a page
        attempt_id: Attempt id for answer-sheet identifiers
        rotated: True for the upside-down QR printed at the page bottom

    Invariants:
        - student_id >= 0, course_id >= 0
        - page >= 1
        - attempt_id is None or > 0

    Example:
        >>> PageIdentifier(10, 5, 1).student_id
        10
    """

    student_id: int
    course_id: int
    page: int
    side: DuplexSide = DuplexSide.NONE
    anonymous: bool = False
    attempt_id: Optional[int] = None
    rotated: bool = False

    def __post_init__(self) -> None:
        """Validate identifier on construction."""
        if self.student_id < 0:
            raise ValueError(f"student_id cannot be negative: {self.student_id}")
        if self.course_id < 0:
            raise ValueError(f"course_id cannot be negative: {self.course_id}")
        if self.page < 1:
            raise ValueError(f"page must be >= 1: {self.page}")
        if self.attempt_id is not None and self.attempt_id <= 0:
            raise ValueError(f"attempt_id must be positive: {self.attempt_id}")

    @property
    def is_answer_sheet(self) -> bool:
        return self.attempt_id is not None

    @property
    def key(self) -> tuple[int, int, int]:
        """(student, course, page) - the fields that survive every transport."""
        return (self.student_id, self.course_id, self.page)

    def as_rotated(self) -> PageIdentifier:
        """Copy flagged for the rotated bottom QR."""
        return replace(self, rotated=True)

    def as_plain(self) -> PageIdentifier:
        """Copy with the anonymous and rotated flags cleared."""
        return replace(self, anonymous=False, rotated=False)
