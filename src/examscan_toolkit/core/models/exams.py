"""
Module: exams

Purpose:
    Exam-side data models: the printable exam, the course it belongs to,
    users and their enrolments, and the ephemeral projections (StudentInfo,
    TemplateRef) used while assembling personalized documents.

Key Classes:
    - ExamMode: Closed set of grading modes (normal, training, peer review)
    - ExamStatus: Print lifecycle status
    - Exam: Printable assessment
    - Course, Category, User, Enrolment: Roster records
    - StudentInfo: One roster slot in a print run
    - TemplateRef: One uploaded template PDF

Dependencies:
    - dataclasses (std)
    - datetime (std)
    - enum (std)
    - pathlib (std)

Used By:
    - printing.roster, printing.assembler, printing.controller
    - scanning.reconcile, scanning.ingest
    - storage.records
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Optional, Tuple


class ExamMode(str, Enum):
    """Grading mode of an exam; selects how drafts are seeded."""

    NORMAL = "normal"
    MARKER_TRAINING = "marker-training"
    STUDENT_TRAINING = "student-training"
    PEER_REVIEW = "peer-review"

    @property
    def validates_students(self) -> bool:
        """Only normal exams cross-check scanned student and course ids."""
        return self is ExamMode.NORMAL


class ExamStatus(str, Enum):
    DRAFT = "draft"
    SENT_TO_PRINT = "sent-to-print"


@dataclass(frozen=True)
class Exam:
    """
    Printable assessment (immutable).

    Attributes:
        id: Exam id
        course_id: Owning course
        name: Exam title printed in headers
        total_pages: Pages in the template document
        extra_sheets: Blank pages appended to every copy
        extra_exams: Spare blank copies appended after the real students
        duplex: Print on both sides of each sheet
        header_qr: Inject the personalized identifier header
        print_list: Produce a roster/signature sheet
        template_files: Blob hashes of the uploaded template documents
        enrolments: Comma separated enrolment methods overriding the default
        mode: Grading mode
        quality_control: Sample one in four submissions for a second draft
        grade_min: Default grade for new submissions and drafts
        download_rubric_pdf: Append the rubric table to feedback documents
        total_students: Students counted when the print order was created

    Example:
        >>> exam = Exam(id=1, course_id=5, name="Midterm", total_pages=2)
        >>> exam.copy_pages
        2
    """

    id: int
    course_id: int
    name: str
    total_pages: int
    extra_sheets: int = 0
    extra_exams: int = 0
    duplex: bool = False
    header_qr: bool = True
    print_list: bool = False
    status: ExamStatus = ExamStatus.DRAFT
    exam_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    printed_at: Optional[datetime] = None
    template_files: Tuple[str, ...] = ()
    enrolments: Optional[str] = None
    mode: ExamMode = ExamMode.NORMAL
    quality_control: bool = False
    grade_min: float = 0.0
    download_rubric_pdf: bool = False
    total_students: int = 0

    def __post_init__(self) -> None:
        """Validate exam on construction."""
        if self.total_pages < 0:
            raise ValueError(f"total_pages cannot be negative: {self.total_pages}")
        if self.extra_sheets < 0:
            raise ValueError(f"extra_sheets cannot be negative: {self.extra_sheets}")
        if self.extra_exams < 0:
            raise ValueError(f"extra_exams cannot be negative: {self.extra_exams}")

    @property
    def copy_pages(self) -> int:
        """Physical pages in one personalized copy (template + extra sheets)."""
        return self.total_pages + self.extra_sheets

    @property
    def sheets_per_copy(self) -> int:
        """Printed sheets per copy, halved when printing on both sides."""
        if self.duplex:
            return math.ceil(self.copy_pages / 2)
        return self.copy_pages


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    idnumber: str = ""


@dataclass(frozen=True)
class Course:
    id: int
    fullname: str
    shortname: str
    category_id: int = 0


@dataclass(frozen=True)
class User:
    """Person known to the roster."""

    id: int
    first_name: str
    last_name: str
    id_number: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    picture_hash: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# Capabilities granted through an enrolment
CAP_SUBMIT = "submit"
CAP_GRADE = "grade"
CAP_SUPERVISE = "supervisegrading"
CAP_DOWNLOAD_EXAM = "downloadexam"
CAP_RECEIVE_NOTIFICATION = "receivenotification"


@dataclass(frozen=True)
class Enrolment:
    """A user enrolled in a course through one enrolment method."""

    user_id: int
    course_id: int
    method: str = "manual"
    capabilities: FrozenSet[str] = field(default_factory=lambda: frozenset({CAP_SUBMIT}))

    def has(self, capability: str) -> bool:
        return capability in self.capabilities


@dataclass(frozen=True)
class StudentInfo:
    """
    One slot in a print run.

    Attributes:
        id: Student id, 0 for blank filler copies
        name: Display name printed in the header
        id_number: Institutional id number
        picture: Path to the student photo, if resolvable
    """

    id: int
    name: str
    id_number: str = ""
    picture: Optional[Path] = None

    @property
    def is_filler(self) -> bool:
        return self.id == 0


@dataclass(frozen=True)
class TemplateRef:
    """Template document fetched from blob storage into the workspace."""

    blob_hash: str
    filename: str
    path: Path
