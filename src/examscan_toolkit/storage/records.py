"""
Module: storage.records

Purpose:
    In-memory record store with explicit indices, persisted as a single
    JSON snapshot. Owns exams, courses, categories, users, enrolments,
    submissions, drafts, pages, comments and rubric definitions.

    The page index is keyed by (submission_id, student_id, page) and is
    last-write-wins: writing a page under an existing key replaces its file
    references in place and keeps the original page id.

Key Classes:
    - RecordStore: Record tables, indices and snapshot persistence

Dependencies:
    - storage.file_locking: portalocker-guarded snapshot I/O
    - core.utils.serialization: Record (de)serialization

Used By:
    - printing.controller, scanning.reconcile, feedback.composer
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from examscan_toolkit.core.models import (
    CAP_SUBMIT,
    Category,
    Comment,
    Course,
    Draft,
    Enrolment,
    Exam,
    Page,
    RubricCriterion,
    RubricLevel,
    Submission,
    User,
)
from examscan_toolkit.core.utils import record_from_dict, record_to_dict
from examscan_toolkit.errors import NotFoundError
from examscan_toolkit.ports import RosterSource

from .file_locking import read_json_locked, update_json_locked

logger = logging.getLogger(__name__)

PageKey = Tuple[int, int, int]
SCHEMA_VERSION = 1

# Snapshot table name -> record type, in load order
_TABLES = (
    ("categories", Category),
    ("courses", Course),
    ("users", User),
    ("exams", Exam),
    ("submissions", Submission),
    ("drafts", Draft),
    ("pages", Page),
    ("comments", Comment),
    ("rubric_criteria", RubricCriterion),
    ("rubric_levels", RubricLevel),
)


class RecordStore(RosterSource):
    """
    Record tables with explicit lookup indices.

    Example:
        >>> store = RecordStore()
        >>> store.put_course(Course(id=5, fullname="Algebra", shortname="ALG"))
        >>> store.get_course(5).shortname
        'ALG'
    """

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[int, Any]] = {name: {} for name, _ in _TABLES}
        self._enrolments: List[Enrolment] = []
        self._next_ids: Dict[str, int] = {}
        self._submission_index: Dict[Tuple[int, int], int] = {}
        self._page_index: Dict[PageKey, int] = {}

    # ─────────────────────────────────────────────────────────────────────
    # Reference data
    # ─────────────────────────────────────────────────────────────────────

    def put_category(self, category: Category) -> Category:
        return self._put("categories", category)

    def get_category(self, category_id: int) -> Category:
        return self._get("categories", category_id, "Category")

    def put_course(self, course: Course) -> Course:
        return self._put("courses", course)

    def get_course(self, course_id: int) -> Course:
        return self._get("courses", course_id, "Course")

    def put_user(self, user: User) -> User:
        return self._put("users", user)

    def get_user(self, user_id: int) -> Optional[User]:
        return self._tables["users"].get(user_id)

    def put_exam(self, exam: Exam) -> Exam:
        """Insert or replace an exam (exams are created externally)."""
        return self._put("exams", exam)

    def get_exam(self, exam_id: int) -> Exam:
        return self._get("exams", exam_id, "Exam")

    def exams(self) -> List[Exam]:
        return sorted(self._tables["exams"].values(), key=lambda e: e.id)

    def add_enrolment(self, enrolment: Enrolment) -> Enrolment:
        self._enrolments.append(enrolment)
        return enrolment

    def enrolments(self, course_id: int) -> List[Enrolment]:
        return [e for e in self._enrolments if e.course_id == course_id]

    def users_with_capability(self, course_id: int, capability: str) -> List[User]:
        """Distinct enrolled users holding a capability, in enrolment order."""
        seen = set()
        users = []
        for enrolment in self.enrolments(course_id):
            if not enrolment.has(capability) or enrolment.user_id in seen:
                continue
            user = self.get_user(enrolment.user_id)
            if user is None:
                continue
            seen.add(enrolment.user_id)
            users.append(user)
        return users

    def has_capability(self, course_id: int, user_id: int, capability: str) -> bool:
        return any(
            e.user_id == user_id and e.has(capability)
            for e in self.enrolments(course_id)
        )

    def count_students(self, course_id: int) -> int:
        """Distinct users enrolled with the submit capability."""
        return len(self.users_with_capability(course_id, CAP_SUBMIT))

    # ─────────────────────────────────────────────────────────────────────
    # Submissions and drafts
    # ─────────────────────────────────────────────────────────────────────

    def find_submission(self, exam_id: int, student_id: int) -> Optional[Submission]:
        submission_id = self._submission_index.get((exam_id, student_id))
        if submission_id is None:
            return None
        return self._tables["submissions"][submission_id]

    def get_submission(self, submission_id: int) -> Submission:
        return self._get("submissions", submission_id, "Submission")

    def insert_submission(self, submission: Submission) -> Submission:
        """
        Insert a new submission, assigning its id.

        Raises:
            ValueError: If (exam, student) already has a submission
        """
        key = (submission.exam_id, submission.student_id)
        if key in self._submission_index:
            raise ValueError(f"Submission already exists for exam/student {key}")
        submission = replace(submission, id=self._allocate("submissions"))
        self._tables["submissions"][submission.id] = submission
        self._submission_index[key] = submission.id
        return submission

    def update_submission(self, submission: Submission) -> Submission:
        self._get("submissions", submission.id, "Submission")
        self._tables["submissions"][submission.id] = submission
        return submission

    def submissions_for_exam(self, exam_id: int) -> List[Submission]:
        return sorted(
            (s for s in self._tables["submissions"].values() if s.exam_id == exam_id),
            key=lambda s: s.id,
        )

    def insert_draft(self, draft: Draft) -> Draft:
        draft = replace(draft, id=self._allocate("drafts"))
        self._tables["drafts"][draft.id] = draft
        return draft

    def get_draft(self, draft_id: int) -> Draft:
        return self._get("drafts", draft_id, "Draft")

    def drafts_for_submission(self, submission_id: int) -> List[Draft]:
        return sorted(
            (d for d in self._tables["drafts"].values() if d.submission_id == submission_id),
            key=lambda d: d.id,
        )

    def count_quality_control_drafts(self, exam_id: int) -> int:
        return sum(
            1 for d in self._tables["drafts"].values()
            if d.exam_id == exam_id and d.quality_control
        )

    # ─────────────────────────────────────────────────────────────────────
    # Pages
    # ─────────────────────────────────────────────────────────────────────

    @property
    def page_index(self) -> Mapping[PageKey, Page]:
        """Read-only view of the page index keyed by (submission, student, page)."""
        pages = self._tables["pages"]
        return MappingProxyType({key: pages[pid] for key, pid in self._page_index.items()})

    def find_page(self, key: PageKey) -> Optional[Page]:
        page_id = self._page_index.get(key)
        if page_id is None:
            return None
        return self._tables["pages"][page_id]

    def insert_page(self, page: Page) -> Page:
        """
        Insert a page under a new key, assigning its id.

        Raises:
            ValueError: If the key is already indexed
        """
        if page.key in self._page_index:
            raise ValueError(f"Page already indexed at {page.key}")
        page = replace(page, id=self._allocate("pages"))
        self._tables["pages"][page.id] = page
        self._page_index[page.key] = page.id
        return page

    def update_page(self, page: Page) -> Page:
        """Replace the page stored under ``page.key`` (same id, new values)."""
        existing_id = self._page_index.get(page.key)
        if existing_id is None or existing_id != page.id:
            raise NotFoundError(f"No page indexed at {page.key} with id {page.id}")
        self._tables["pages"][page.id] = page
        return page

    def pages_for(self, submission_id: int, student_id: int) -> List[Page]:
        """Pages of a submission for one student, ordered by page number."""
        return sorted(
            (
                p for p in self._tables["pages"].values()
                if p.submission_id == submission_id and p.student_id == student_id
            ),
            key=lambda p: p.page,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Comments and rubric
    # ─────────────────────────────────────────────────────────────────────

    def add_comment(self, comment: Comment) -> Comment:
        return self._put("comments", comment)

    def comments_for_draft(self, draft_id: int) -> List[Comment]:
        """Comments of a draft on real pages, ordered by page then id."""
        return sorted(
            (
                c for c in self._tables["comments"].values()
                if c.draft_id == draft_id and c.page_no > 0
            ),
            key=lambda c: (c.page_no, c.id),
        )

    def add_rubric_criterion(self, criterion: RubricCriterion) -> RubricCriterion:
        return self._put("rubric_criteria", criterion)

    def add_rubric_level(self, level: RubricLevel) -> RubricLevel:
        return self._put("rubric_levels", level)

    def get_rubric_level(self, level_id: int) -> Optional[RubricLevel]:
        return self._tables["rubric_levels"].get(level_id)

    def get_rubric_criterion(self, criterion_id: int) -> Optional[RubricCriterion]:
        return self._tables["rubric_criteria"].get(criterion_id)

    def rubric(self, exam_id: int) -> List[Tuple[RubricCriterion, List[RubricLevel]]]:
        """Criteria of an exam by sort order, each with its levels by ascending score."""
        criteria = sorted(
            (c for c in self._tables["rubric_criteria"].values() if c.exam_id == exam_id),
            key=lambda c: (c.sort_order, c.id),
        )
        levels = list(self._tables["rubric_levels"].values())
        return [
            (
                criterion,
                sorted((l for l in levels if l.criterion_id == criterion.id), key=lambda l: l.score),
            )
            for criterion in criteria
        ]

    def max_score(self, criterion_id: int) -> float:
        scores = [
            l.score for l in self._tables["rubric_levels"].values()
            if l.criterion_id == criterion_id
        ]
        return max(scores, default=0.0)

    # ─────────────────────────────────────────────────────────────────────
    # Persistence
    # ─────────────────────────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "schema_version": SCHEMA_VERSION,
            "saved_at": datetime.now().isoformat(),
            "next_ids": dict(self._next_ids),
            "enrolments": [record_to_dict(e) for e in self._enrolments],
        }
        for name, _ in _TABLES:
            data[name] = [record_to_dict(r) for _, r in sorted(self._tables[name].items())]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RecordStore:
        version = data.get("schema_version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise ValueError(f"Unsupported snapshot schema version: {version}")

        store = cls()
        for name, record_type in _TABLES:
            for raw in data.get(name, []):
                record = record_from_dict(record_type, raw)
                store._tables[name][record.id] = record
        for raw in data.get("enrolments", []):
            store._enrolments.append(record_from_dict(Enrolment, raw))

        store._next_ids = {k: int(v) for k, v in data.get("next_ids", {}).items()}
        store._rebuild_indices()
        return store

    def save(self, path: Path) -> None:
        """Write the snapshot under an exclusive file lock."""
        snapshot = self.to_dict()
        update_json_locked(path, lambda _previous: snapshot)
        logger.info(f"Saved record store to {path}")

    @classmethod
    def load(cls, path: Path) -> RecordStore:
        """
        Load a snapshot written by save().

        Raises:
            FileNotFoundError: If the snapshot does not exist
            ValueError: If the snapshot is corrupt or from another schema
        """
        store = cls.from_dict(read_json_locked(path))
        logger.info(f"Loaded record store from {path}")
        return store

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    def _put(self, table: str, record: Any) -> Any:
        self._tables[table][record.id] = record
        self._next_ids[table] = max(self._next_ids.get(table, 0), record.id)
        return record

    def _get(self, table: str, record_id: int, label: str) -> Any:
        record = self._tables[table].get(record_id)
        if record is None:
            raise NotFoundError(f"{label} {record_id} not found")
        return record

    def _allocate(self, table: str) -> int:
        current = max(self._next_ids.get(table, 0), max(self._tables[table], default=0))
        self._next_ids[table] = current + 1
        return current + 1

    def _rebuild_indices(self) -> None:
        self._submission_index = {
            (s.exam_id, s.student_id): s.id
            for s in self._tables["submissions"].values()
        }
        self._page_index = {p.key: p.id for p in self._tables["pages"].values()}
