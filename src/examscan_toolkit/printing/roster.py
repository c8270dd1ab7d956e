"""
Module: printing.roster

Purpose:
    Resolve who gets a personalized copy and which template backs it.
    Filters course enrolments by the enrolment-method allow-list, projects
    users into StudentInfo slots (plus blank filler copies), fetches the
    exam's PDF templates and assigns them round-robin.

Key Functions:
    - enrol_methods(): Effective enrolment-method allow-list for an exam
    - build_roster(): Ordered StudentInfo list
    - student_picture_path(): Picture repository path for an id number
    - fetch_templates(): PDF templates fetched into the workspace
    - assign_templates(): Round-robin template assignment

Key Classes:
    - Roster: Ordered slots plus the count of real students

Dependencies:
    - ports: RosterSource, BlobStore
    - core.models: Exam, StudentInfo, TemplateRef

Used By:
    - printing.controller
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from examscan_toolkit.config import EngineConfig
from examscan_toolkit.core.models import CAP_SUBMIT, Exam, StudentInfo, TemplateRef, User
from examscan_toolkit.errors import NoStudents, NoTemplate, NotFoundError
from examscan_toolkit.ports import BlobStore, RosterSource

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 65
FILLER_NAME = "." * 78


@dataclass(frozen=True)
class Roster:
    """
    Ordered print slots.

    Attributes:
        students: Real students first, then blank filler copies
        real_count: Number of real students
    """

    students: Tuple[StudentInfo, ...]
    real_count: int

    @property
    def filler_count(self) -> int:
        return len(self.students) - self.real_count

    def __len__(self) -> int:
        return len(self.students)


def enrol_methods(exam: Exam, config: EngineConfig) -> Tuple[str, ...]:
    """
    Enrolment methods whose students are printed.

    The exam's own list wins over the configured default; a value of one
    character or less counts as unset.

    Example:
        >>> enrol_methods(Exam(1, 5, "Final", 2, enrolments="manual,self"), EngineConfig())
        ('manual', 'self')
    """
    if exam.enrolments and len(exam.enrolments) > 1:
        return tuple(m.strip() for m in exam.enrolments.split(",") if m.strip())
    return config.enrol_includes


def display_name(user: User) -> str:
    """Header name: "Last, First" truncated to the header width."""
    return f"{user.last_name}, {user.first_name}"[:MAX_NAME_LENGTH]


def student_picture_path(id_number: str, picture_dir: Optional[Path]) -> Optional[Path]:
    """
    Location of a student photo in the picture repository.

    Photos are sharded by the last two digits of the id number, so id
    number 12345 lives at ``<picture_dir>/5/4/user12345.png``.

    Returns:
        The expected path, or None without a repository or usable id number
    """
    id_number = (id_number or "").strip()
    if picture_dir is None or len(id_number) < 2:
        return None
    reversed_id = id_number[::-1]
    return picture_dir / reversed_id[0] / reversed_id[1] / f"user{id_number}.png"


def resolve_picture(
    user: User,
    config: EngineConfig,
    blobs: Optional[BlobStore],
    avatar_dir: Optional[Path],
) -> Optional[Path]:
    """Picture repository first, then the stored avatar, then the default picture."""
    path = student_picture_path(user.id_number, config.picture_dir)
    if path is not None and path.exists():
        return path

    if user.picture_hash and blobs is not None and avatar_dir is not None:
        try:
            return blobs.fetch_to_path(user.picture_hash, avatar_dir, prefix=f"u{user.id}")
        except NotFoundError:
            logger.warning(f"Avatar {user.picture_hash} of user {user.id} is missing from storage")

    return config.default_picture


def build_roster(
    exam: Exam,
    roster: RosterSource,
    config: EngineConfig,
    *,
    blobs: Optional[BlobStore] = None,
    avatar_dir: Optional[Path] = None,
) -> Roster:
    """
    Build the ordered list of print slots for an exam.

    Only enrolments holding the submit capability are printed, and those
    outside the allow-list are skipped; a user enrolled through
    several methods keeps the first accepted enrolment. ``exam.extra_exams``
    blank copies are appended after the real students.

    Args:
        exam: Exam being printed
        roster: Enrolment and user lookup
        config: Engine configuration
        blobs: Blob store used to fetch avatars (optional)
        avatar_dir: Workspace directory receiving fetched avatars

    Returns:
        Roster with real students first

    Raises:
        NoStudents: If no enrolment passes the filter
    """
    allowed = set(enrol_methods(exam, config))
    slots: Dict[int, StudentInfo] = {}

    for enrolment in roster.enrolments(exam.course_id):
        if enrolment.method not in allowed or enrolment.user_id in slots:
            continue
        if not enrolment.has(CAP_SUBMIT):
            continue
        user = roster.get_user(enrolment.user_id)
        if user is None:
            logger.warning(f"Enrolment references unknown user {enrolment.user_id}")
            continue
        slots[user.id] = StudentInfo(
            id=user.id,
            name=display_name(user),
            id_number=user.id_number,
            picture=resolve_picture(user, config, blobs, avatar_dir),
        )

    if not slots:
        raise NoStudents(
            f"No students to print for exam {exam.id} "
            f"(course {exam.course_id}, enrolments {sorted(allowed)})"
        )

    students: List[StudentInfo] = list(slots.values())
    students.extend(
        StudentInfo(id=0, name=FILLER_NAME, id_number="", picture=config.default_picture)
        for _ in range(exam.extra_exams)
    )

    logger.info(
        f"Roster for exam {exam.id}: {len(slots)} students + {exam.extra_exams} blank copies"
    )
    return Roster(students=tuple(students), real_count=len(slots))


def fetch_templates(exam: Exam, blobs: BlobStore, dest_dir: Path) -> List[TemplateRef]:
    """
    Fetch the exam's PDF templates into the workspace.

    Non-PDF attachments are skipped.

    Raises:
        NoTemplate: If the exam has no PDF template
    """
    templates: List[TemplateRef] = []
    for blob_hash in exam.template_files:
        try:
            blob = blobs.get(blob_hash)
        except NotFoundError:
            logger.warning(f"Template {blob_hash} of exam {exam.id} is missing from storage")
            continue
        if not blob.is_pdf:
            logger.debug(f"Skipping non-PDF attachment {blob.filename} ({blob.mimetype})")
            continue
        path = blobs.fetch_to_path(blob_hash, dest_dir, prefix=f"{len(templates)}-")
        templates.append(TemplateRef(blob_hash=blob_hash, filename=blob.filename, path=path))

    if not templates:
        raise NoTemplate(f"Exam {exam.id} has no PDF template associated")

    logger.debug(f"Fetched {len(templates)} template(s) for exam {exam.id}")
    return templates


def assign_templates(
    students: Sequence[StudentInfo],
    templates: Sequence[TemplateRef],
) -> List[Tuple[StudentInfo, TemplateRef]]:
    """
    Pair every slot with a template, cycling through the templates.

    Example:
        >>> pairs = assign_templates(roster.students, [form_a, form_b])
        >>> [t.filename for _, t in pairs[:3]]
        ['form-a.pdf', 'form-b.pdf', 'form-a.pdf']
    """
    if not templates:
        raise NoTemplate("No templates to assign")
    return [(student, templates[i % len(templates)]) for i, student in enumerate(students)]
