"""
Module: printing.controller

Purpose:
    Orchestrate a print run.
    Validate → Resolve roster & templates → Assemble copies → Output

    Exactly one output mode per run: send every copy to a printer, package
    the copies as a ZIP archive, or merge them into one PDF. The roster
    sheet goes first in every mode when the exam asks for one. After the
    run the exam is marked as sent to print.

Key Functions:
    - generate_personalized_exam(): Main entry point

Key Classes:
    - OutputMode: PRINT / ARCHIVE / MERGED
    - GenerationResult: Outcome of a run

Dependencies:
    - printing.roster, printing.assembler, printing.student_list
    - printing.output: Archive and merged outputs
    - printing.spooler, printing.notifications
    - workspace: Scratch directory for the run

Used By:
    - examscan_toolkit: Public API
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from examscan_toolkit.config import EngineConfig
from examscan_toolkit.core.models import CAP_DOWNLOAD_EXAM, Course, Exam, ExamStatus
from examscan_toolkit.core.utils import clean_filename
from examscan_toolkit.errors import ExternalFailure, NotFoundError, ValidationError
from examscan_toolkit.ports import BlobStore, Notifier, PrintSpooler
from examscan_toolkit.progress import ProgressCallback, report
from examscan_toolkit.storage import RecordStore
from examscan_toolkit.workspace import scratch_workspace

from .assembler import PersonalizedCopy, assemble_copy
from .header import HeaderContext
from .notifications import send_print_order_notification
from .output import merge_documents, write_archive
from .roster import assign_templates, build_roster, fetch_templates
from .spooler import LpSpooler
from .student_list import STUDENT_LIST_FILENAME, render_student_list

logger = logging.getLogger(__name__)


class OutputMode(str, Enum):
    """Destination of a print run."""

    PRINT = "print"
    ARCHIVE = "archive"
    MERGED = "merged"


@dataclass(frozen=True)
class GenerationResult:
    """
    Outcome of a print run (immutable).

    Attributes:
        exam_id: Exam printed
        mode: Output mode used
        artifact: Archive or merged PDF, None when printing
        documents: File names of the personalized copies, in roster order
        pages_per_copy: Physical page count of each copy
        students: Real students in the roster
        print_log: Spooler output per submitted file (PRINT mode)
        errors: Per-item failures; the run itself completed

    Example:
        >>> result = generate_personalized_exam(7, OutputMode.ARCHIVE, config=cfg, store=store,
        ...                                     blobs=blobs, requester_id=2, output_dir=out)
        >>> result.artifact.name
        'ALG_Final-exam.zip'
    """

    exam_id: int
    mode: OutputMode
    artifact: Optional[Path]
    documents: Tuple[str, ...]
    pages_per_copy: Tuple[int, ...]
    students: int
    print_log: Tuple[str, ...] = ()
    errors: Tuple[ExternalFailure, ...] = ()

    @property
    def success(self) -> bool:
        return not self.errors


def exam_output_name(course: Course, exam: Exam) -> str:
    """
    Base name of the archive / merged PDF.

    Example:
        >>> exam_output_name(Course(5, "Algebra", "ALG 1/2"), Exam(7, 5, "Final exam", 2))
        'ALG-1-2_Final-exam'
    """
    return f"{clean_filename(course.shortname, slash=True)}_{clean_filename(exam.name, slash=True)}"


def generate_personalized_exam(
    exam_id: int,
    mode: OutputMode,
    print_target: Optional[str] = None,
    *,
    config: EngineConfig,
    store: RecordStore,
    blobs: BlobStore,
    requester_id: int,
    output_dir: Optional[Path] = None,
    spooler: Optional[PrintSpooler] = None,
    notifier: Optional[Notifier] = None,
    attempt_id: Optional[int] = None,
    progress: Optional[ProgressCallback] = None,
) -> GenerationResult:
    """
    Generate the personalized copies of an exam and deliver them.

    Args:
        exam_id: Exam to print
        mode: Output mode
        print_target: Printer name (PRINT mode)
        config: Engine configuration
        store: Record store
        blobs: Blob store holding templates and avatars
        requester_id: User placing the order (needs the download capability)
        output_dir: Destination of the archive / merged PDF
        spooler: Print spooler, defaults to LpSpooler
        notifier: Notified about PRINT runs when given
        attempt_id: Print answer-sheet identifiers for this attempt
        progress: Progress callback

    Returns:
        GenerationResult

    Raises:
        NotFoundError: Exam, course, category or requester missing
        ValidationError: Capability missing, printing disabled, no printer
            or no output directory
        NoStudents, NoTemplate: Nothing to print
    """
    start_time = time.perf_counter()

    # 1. Structural preconditions, before any side effect
    exam = store.get_exam(exam_id)
    requester = store.get_user(requester_id)
    if requester is None:
        raise NotFoundError(f"User {requester_id} not found")
    if not store.has_capability(exam.course_id, requester_id, CAP_DOWNLOAD_EXAM):
        raise ValidationError(f"User {requester_id} cannot download exam {exam.id}")

    if mode is OutputMode.PRINT:
        if not config.printing_enabled or not print_target:
            raise ValidationError(f"Printing is not enabled or printer name was absent: {print_target!r}")
        spooler = spooler or LpSpooler(config)
    elif output_dir is None:
        raise ValidationError(f"Output mode {mode.value} needs an output directory")

    course = store.get_course(exam.course_id)
    store.get_category(course.category_id)

    logger.info(f"Starting print run for exam {exam.id} ({course.shortname}) in {mode.value} mode")
    report(progress, 0, 1, "Setting up printing")

    errors: List[ExternalFailure] = []
    print_log: List[str] = []
    artifact: Optional[Path] = None

    with scratch_workspace(config.data_root, f"print-{exam.id}") as ws:
        # 2. Roster and templates
        templates = fetch_templates(exam, blobs, ws.subdir("templates"))
        roster = build_roster(exam, store, config, blobs=blobs, avatar_dir=ws.subdir("u"))
        logo = config.logo_path if config.include_logo else None

        pdf_dir = ws.subdir("pdf")
        student_list: Optional[Path] = None
        if exam.print_list:
            student_list = render_student_list(
                pdf_dir / STUDENT_LIST_FILENAME,
                roster.students,
                exam_name=exam.name,
                course_name=course.fullname,
                exam_date=exam.exam_date,
                logo=logo,
            )

        # 3. One personalized copy per slot
        copies: List[PersonalizedCopy] = []
        pairs = assign_templates(roster.students, templates)
        for index, (student, template) in enumerate(pairs, start=1):
            report(progress, index, len(pairs), student.name)
            context = HeaderContext(
                exam_name=exam.name,
                course_name=course.fullname,
                course_id=course.id,
                total_pages=exam.total_pages or None,
                duplex=exam.duplex,
                logo=logo,
                attempt_id=attempt_id,
                qr_box_size=config.qr_box_size,
                qr_border=config.qr_border,
            )
            copies.append(
                assemble_copy(
                    student,
                    template,
                    context,
                    pdf_dir,
                    extra_sheets=exam.extra_sheets,
                    header=exam.header_qr,
                    blank_page_size=config.page_size,
                )
            )
        logger.info(f"Assembled {len(copies)} personalized copies")

        # 4. Output
        if mode is OutputMode.PRINT:
            files = ([student_list] if student_list else []) + [c.path for c in copies]
            for index, path in enumerate(files, start=1):
                report(progress, index, len(files), f"Printing {path.name}")
                result = spooler.submit(print_target, path)
                if result is None:
                    failure = ExternalFailure(path.name, f"problems printing on {print_target}")
                    logger.error(str(failure))
                    errors.append(failure)
                else:
                    print_log.append(result)
        elif mode is OutputMode.ARCHIVE:
            artifact, failures = write_archive(
                output_dir / f"{exam_output_name(course, exam)}.zip",
                copies,
                student_list=student_list,
            )
            errors.extend(failures)
        else:
            documents = ([student_list] if student_list else []) + [c.path for c in copies]
            try:
                artifact, _, failures = merge_documents(
                    documents,
                    output_dir / f"{exam_output_name(course, exam)}.pdf",
                )
            except ExternalFailure as e:
                logger.error(f"Merged output failed: {e}")
                errors.append(e)
            else:
                errors.extend(failures)

    # 5. Mark as sent to print
    store.put_exam(replace(exam, status=ExamStatus.SENT_TO_PRINT, printed_at=datetime.now()))

    if mode is OutputMode.PRINT and notifier is not None:
        failure = send_print_order_notification(exam, course, requester, store, notifier)
        if failure is not None:
            errors.append(failure)

    elapsed = time.perf_counter() - start_time
    logger.info(f"Print run for exam {exam.id} completed in {elapsed:.2f}s with {len(errors)} error(s)")

    return GenerationResult(
        exam_id=exam.id,
        mode=mode,
        artifact=artifact,
        documents=tuple(c.filename for c in copies),
        pages_per_copy=tuple(c.page_count for c in copies),
        students=roster.real_count,
        print_log=tuple(print_log),
        errors=tuple(errors),
    )
