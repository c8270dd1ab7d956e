"""
Module: scanning.reconcile

Purpose:
    Persist decoded scans as submissions and pages.

    Submissions are keyed by (exam, student) and created on first touch,
    seeding grading drafts according to the exam mode. Pages are upserted
    in the record store's page index keyed by (submission, student, page):
    an existing page keeps its id and receives the new file references.
    The submission always reflects the most recent page touch.

Key Classes:
    - SubmissionReconciler: Submission lookup/creation, draft seeding, page upsert

Dependencies:
    - storage.RecordStore: Records and page index
    - ports.BlobStore: Page image storage

Used By:
    - scanning.controller
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from examscan_toolkit.core.codec import anonymous_counterpart
from examscan_toolkit.core.models import (
    CAP_GRADE,
    CAP_SUBMIT,
    CAP_SUPERVISE,
    Draft,
    Exam,
    ExamMode,
    Page,
    Submission,
    SubmissionStatus,
)
from examscan_toolkit.errors import NotImplementedMode
from examscan_toolkit.ports import BlobKey, BlobStore
from examscan_toolkit.storage import RecordStore

logger = logging.getLogger(__name__)

PAGES_AREA = "pages"
SORT_KEY_MAX = 9999999

# One quality-control draft per this many students
QC_SAMPLE_RATIO = 4


class SubmissionReconciler:
    """
    Reconcile scanned pages into the record store.

    Args:
        store: Record store
        blobs: Blob store receiving the page images
        rng: Source of submission and draft sort keys
        clock: Timestamp source

    Example:
        >>> reconciler = SubmissionReconciler(store, blobs, rng=random.Random(1))
        >>> page = reconciler.reconcile(exam, 10, 1, Path("10-5-1.png"), None, actor_id=2)
        >>> page.page
        1
    """

    def __init__(
        self,
        store: RecordStore,
        blobs: BlobStore,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.blobs = blobs
        self.rng = rng or random.Random()
        self.clock = clock

    def reconcile(
        self,
        exam: Exam,
        student_id: int,
        page_no: int,
        plain: Path,
        anonymous: Optional[Path],
        actor_id: int,
    ) -> Page:
        """
        Store one page scan and upsert its records.

        Args:
            exam: Exam the scan belongs to
            student_id: Student (or synthetic key in training modes)
            page_no: Logical page number
            plain: Plain scan image
            anonymous: Anonymized capture, None when absent
            actor_id: User running the ingest

        Returns:
            The inserted or updated Page

        Raises:
            NotImplementedMode: For peer review exams
        """
        submission = self.get_or_create_submission(exam, student_id, actor_id)
        page = self.store_page(exam, submission, page_no, plain, anonymous, actor_id)
        self.store.update_submission(
            replace(submission, teacher=page.teacher, modified_at=page.modified_at)
        )
        return page

    # ─────────────────────────────────────────────────────────────────────
    # Submissions and drafts
    # ─────────────────────────────────────────────────────────────────────

    def get_or_create_submission(self, exam: Exam, student_id: int, actor_id: int) -> Submission:
        existing = self.store.find_submission(exam.id, student_id)
        if existing is not None:
            return existing

        if exam.mode is ExamMode.PEER_REVIEW:
            raise NotImplementedMode(f"Peer review submissions are not supported (exam {exam.id})")

        now = self.clock()
        submission = self.store.insert_submission(
            Submission(
                id=0,
                exam_id=exam.id,
                student_id=student_id,
                status=SubmissionStatus.SUBMITTED,
                grade=exam.grade_min,
                created_at=now,
                modified_at=now,
                teacher=actor_id,
                sort=self._sort_key(),
            )
        )
        drafts = self.seed_drafts(exam, submission)
        logger.debug(
            f"Created submission {submission.id} for student {student_id} "
            f"with {len(drafts)} draft(s)"
        )
        return submission

    def seed_drafts(self, exam: Exam, submission: Submission) -> List[Draft]:
        """
        Create the grading drafts of a new submission.

        NORMAL: one unassigned draft, plus a quality-control draft while the
        exam has fewer than ceil(students / 4) of them.
        MARKER_TRAINING: one draft per grader, supervisors excluded.
        STUDENT_TRAINING: one draft per enrolled submitter.

        Raises:
            NotImplementedMode: For peer review exams
        """
        if exam.mode is ExamMode.NORMAL:
            drafts = [self._draft(exam, submission, teacher=0)]
            if exam.quality_control:
                students = exam.total_students or self.store.count_students(exam.course_id)
                quota = math.ceil(students / QC_SAMPLE_RATIO)
                if quota > self.store.count_quality_control_drafts(exam.id):
                    drafts.append(self._draft(exam, submission, teacher=0, quality_control=True))
            return drafts

        if exam.mode is ExamMode.MARKER_TRAINING:
            graders = [
                user for user in self.store.users_with_capability(exam.course_id, CAP_GRADE)
                if not self.store.has_capability(exam.course_id, user.id, CAP_SUPERVISE)
            ]
            return [self._draft(exam, submission, teacher=user.id) for user in graders]

        if exam.mode is ExamMode.STUDENT_TRAINING:
            submitters = self.store.users_with_capability(exam.course_id, CAP_SUBMIT)
            return [self._draft(exam, submission, teacher=user.id) for user in submitters]

        raise NotImplementedMode(f"Draft seeding is not implemented for {exam.mode.value} exams")

    def _draft(
        self,
        exam: Exam,
        submission: Submission,
        *,
        teacher: int,
        quality_control: bool = False,
    ) -> Draft:
        now = self.clock()
        return self.store.insert_draft(
            Draft(
                id=0,
                exam_id=exam.id,
                submission_id=submission.id,
                teacher=teacher,
                grade=exam.grade_min,
                sort=self._sort_key(),
                created_at=now,
                modified_at=now,
                quality_control=quality_control,
            )
        )

    def _sort_key(self) -> int:
        return self.rng.randint(1, SORT_KEY_MAX)

    # ─────────────────────────────────────────────────────────────────────
    # Pages
    # ─────────────────────────────────────────────────────────────────────

    def store_page(
        self,
        exam: Exam,
        submission: Submission,
        page_no: int,
        plain: Path,
        anonymous: Optional[Path],
        actor_id: int,
    ) -> Page:
        """
        Store the page images and upsert the page record.

        The plain scan is stored under its own filename, the anonymized
        capture under the "_a" variant of that filename. Whatever was
        stored at either location before is replaced.

        Raises:
            FileNotFoundError: If a scan file vanished before storage
        """
        plain_blob = self.blobs.store_file(BlobKey(PAGES_AREA, exam.id, plain.name), plain)
        anonymous_hash: Optional[str] = None
        if anonymous is not None:
            anonymous_blob = self.blobs.store_file(
                BlobKey(PAGES_AREA, exam.id, anonymous_counterpart(plain.name)),
                anonymous,
            )
            anonymous_hash = anonymous_blob.hash

        now = self.clock()
        key = (submission.id, submission.student_id, page_no)
        existing = self.store.find_page(key)
        if existing is not None:
            page = self.store.update_page(
                replace(
                    existing,
                    file=plain_blob.hash,
                    file_anonymous=anonymous_hash,
                    modified_at=now,
                    teacher=actor_id,
                )
            )
            logger.debug(f"Updated page {page.id} at {key} from {plain.name}")
            return page

        page = self.store.insert_page(
            Page(
                id=0,
                submission_id=submission.id,
                student_id=submission.student_id,
                page=page_no,
                file=plain_blob.hash,
                file_anonymous=anonymous_hash,
                created_at=now,
                modified_at=now,
                teacher=actor_id,
            )
        )
        logger.debug(f"Inserted page {page.id} at {key} from {plain.name}")
        return page
