"""
Module: records

Purpose:
    Grading-side records created and updated by the scan reconciler:
    submissions, drafts and pages, plus the comment and rubric records the
    response composer reads.

Key Classes:
    - Submission: One per (exam, student)
    - Draft: One grading pass over a submission
    - Page: One stored scan per (submission, student, logical page)
    - Comment: Positioned annotation on a page (read-only input)
    - RubricCriterion, RubricLevel: Rubric definition (read-only input)

Dependencies:
    - dataclasses (std)
    - datetime (std)
    - enum (std)

Used By:
    - storage.records: Record indices
    - scanning.reconcile: Upserts
    - feedback.composer: Feedback rendering
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Optional, Tuple


class SubmissionStatus(IntEnum):
    MISSING = 0
    SUBMITTED = 10
    GRADING = 15
    GRADED = 18
    PUBLISHED = 20


class CommentFormat(IntEnum):
    """Discriminator of a positioned comment."""

    TEXT = 1
    MARK = 2
    CHECK = 3
    CROSS = 4


@dataclass(frozen=True)
class Submission:
    """
    One exam submission of one student.

    Attributes:
        id: Submission id
        exam_id: Exam the submission belongs to
        student_id: Student (or synthetic key in training modes)
        status: Lifecycle status
        grade: Current grade, defaults to the exam minimum
        created_at: Creation time
        modified_at: Time of the most recent page touch
        teacher: Last acting user
        sort: Random key used to shuffle grading order
    """

    id: int
    exam_id: int
    student_id: int
    status: SubmissionStatus
    grade: float
    created_at: datetime
    modified_at: datetime
    teacher: int
    sort: int
    general_feedback: Optional[str] = None


@dataclass(frozen=True)
class Draft:
    """One grading pass over a submission."""

    id: int
    exam_id: int
    submission_id: int
    teacher: int
    grade: float
    sort: int
    created_at: datetime
    modified_at: datetime
    status: SubmissionStatus = SubmissionStatus.SUBMITTED
    quality_control: bool = False
    group_id: int = 0
    general_feedback: Optional[str] = None


@dataclass(frozen=True)
class Page:
    """
    A stored scan of one logical page.

    The upsert key is (submission_id, student_id, page).
    """

    id: int
    submission_id: int
    student_id: int
    page: int
    file: str
    file_anonymous: Optional[str]
    created_at: datetime
    modified_at: datetime
    teacher: int

    @property
    def key(self) -> Tuple[int, int, int]:
        return (self.submission_id, self.student_id, self.page)


@dataclass(frozen=True)
class RubricCriterion:
    """Rubric row of one exam; its levels reference it by id."""

    id: int
    exam_id: int
    description: str
    sort_order: int = 0


@dataclass(frozen=True)
class RubricLevel:
    id: int
    criterion_id: int
    score: float
    definition: str


@dataclass(frozen=True)
class Comment:
    """
    Positioned annotation on a page.

    Attributes:
        pos_x, pos_y: Normalized position in [0, 1] from the top-left corner
        page_no: Logical page number the comment sits on
        format: Text note, rubric mark or one of the two icon glyphs
        level_id: Rubric level for MARK comments
    """

    id: int
    draft_id: int
    page_no: int
    pos_x: float
    pos_y: float
    raw_text: str = ""
    format: CommentFormat = CommentFormat.TEXT
    level_id: Optional[int] = None
    marker_id: int = 0

    def __post_init__(self) -> None:
        """Validate position on construction."""
        if not 0.0 <= self.pos_x <= 1.0 or not 0.0 <= self.pos_y <= 1.0:
            raise ValueError(
                f"Comment position must be normalized to [0, 1]: ({self.pos_x}, {self.pos_y})"
            )
