"""
Module: feedback.composer

Purpose:
    Build the response document a student receives for one grading draft:
    every stored page scan as a full A4 background, in page order, with the
    draft's positioned comments drawn over it, then the rubric table when
    the exam exports it.

    Comment positions are normalized to [0, 1] from the top-left corner of
    the page image.

        TEXT  → blue text annotation
        MARK  → yellow annotation "criterion: score/max", level, comment
        CHECK → green check glyph
        CROSS → red cross glyph

Key Functions:
    - compose_feedback(): Main entry point
    - response_filename(): response_{exam}_{draft}.pdf
    - mark_text(): Annotation content of a rubric mark

Dependencies:
    - reportlab: PDF drawing and annotations
    - feedback.rubric: Rubric table page

Used By:
    - examscan_toolkit: Public API
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from examscan_toolkit.config import EngineConfig
from examscan_toolkit.core.models import Comment, CommentFormat, Page
from examscan_toolkit.errors import NoPages, NoSubmission, NotFoundError
from examscan_toolkit.ports import BlobKey, BlobStore
from examscan_toolkit.storage import RecordStore
from examscan_toolkit.workspace import scratch_workspace

from .rubric import draw_rubric_page, format_score, rubric_rows

logger = logging.getLogger(__name__)

RESPONSE_AREA = "response"
A4_WIDTH, A4_HEIGHT = A4
ANNOTATION_SIZE = 6 * mm
GLYPH_SIZE = 5 * mm

TEXT_COLOR = (0, 0, 1)
MARK_COLOR = (1, 1, 0)
CHECK_COLOR = (0, 0.6, 0)
CROSS_COLOR = (0.85, 0, 0)


def response_filename(exam_id: int, draft_id: int) -> str:
    """
    Example:
        >>> response_filename(7, 31)
        'response_7_31.pdf'
    """
    return f"response_{exam_id}_{draft_id}.pdf"


def compose_feedback(
    draft_id: int,
    student_id: int,
    *,
    config: EngineConfig,
    store: RecordStore,
    blobs: BlobStore,
    output_dir: Path,
) -> Path:
    """
    Compose the response PDF for a draft and store it.

    The document is written to ``output_dir`` and stored in the blob store
    under area "response", item = student id, replacing the previous one.

    Args:
        draft_id: Grading draft
        student_id: Student whose pages are rendered
        config: Engine configuration (scratch location)
        store: Record store
        blobs: Blob store holding page images
        output_dir: Directory receiving the PDF

    Returns:
        Path to the response PDF

    Raises:
        NotFoundError: Draft or exam missing
        NoSubmission: Draft has no backing submission
        NoPages: Submission has no stored pages for the student

    Example:
        >>> compose_feedback(31, 10, config=cfg, store=store, blobs=blobs, output_dir=out).name
        'response_7_31.pdf'
    """
    draft = store.get_draft(draft_id)
    try:
        submission = store.get_submission(draft.submission_id)
    except NotFoundError as e:
        raise NoSubmission(f"Draft {draft_id} has no submission {draft.submission_id}") from e

    exam = store.get_exam(draft.exam_id)
    pages = store.pages_for(submission.id, student_id)
    if not pages:
        raise NoPages(f"Submission {submission.id} has no pages for student {student_id}")

    by_page: Dict[int, List[Comment]] = defaultdict(list)
    for comment in store.comments_for_draft(draft.id):
        by_page[comment.page_no].append(comment)

    filename = response_filename(exam.id, draft.id)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / filename

    c = canvas.Canvas(str(output_path), pagesize=A4)
    with scratch_workspace(config.data_root, f"response-{draft.id}") as ws:
        image_dir = ws.subdir("pages")
        for page in pages:
            _draw_page(c, page, blobs, image_dir)
            for comment in by_page.get(page.page, []):
                _draw_comment(c, comment, store)
            c.showPage()

        if exam.download_rubric_pdf:
            draw_rubric_page(c, rubric_rows(store, exam.id))
        c.save()

    blobs.store_file(
        BlobKey(RESPONSE_AREA, student_id, filename),
        output_path,
        mimetype="application/pdf",
    )
    logger.info(
        f"Composed {filename} for student {student_id}: {len(pages)} pages, "
        f"{sum(len(v) for v in by_page.values())} comments"
    )
    return output_path


def mark_text(comment: Comment, store: RecordStore) -> Optional[str]:
    """
    Annotation content of a rubric mark, None when the level is unknown.

    Example:
        >>> print(mark_text(comment, store))
        Clarity: 2/4
        Clear
        Comment: well argued
    """
    if comment.level_id is None:
        return None
    level = store.get_rubric_level(comment.level_id)
    if level is None:
        return None
    criterion = store.get_rubric_criterion(level.criterion_id)
    if criterion is None:
        return None
    max_score = store.max_score(criterion.id)
    return (
        f"{criterion.description}: {format_score(level.score)}/{format_score(max_score)}\n"
        f"{level.definition}\n"
        f"Comment: {comment.raw_text}"
    )


# ─────────────────────────────────────────────────────────────────────────────
# Drawing
# ─────────────────────────────────────────────────────────────────────────────

def _draw_page(c: canvas.Canvas, page: Page, blobs: BlobStore, image_dir: Path) -> None:
    image = blobs.fetch_to_path(page.file, image_dir, prefix=f"{page.page}-")
    c.drawImage(ImageReader(str(image)), 0, 0, width=A4_WIDTH, height=A4_HEIGHT)


def _position(comment: Comment) -> Tuple[float, float]:
    """Top-left anchor of a comment in canvas coordinates."""
    return comment.pos_x * A4_WIDTH, A4_HEIGHT - comment.pos_y * A4_HEIGHT


def _draw_comment(c: canvas.Canvas, comment: Comment, store: RecordStore) -> None:
    x, y = _position(comment)

    if comment.format == CommentFormat.CHECK:
        _draw_check(c, x, y)
        return
    if comment.format == CommentFormat.CROSS:
        _draw_cross(c, x, y)
        return

    color = TEXT_COLOR
    text = comment.raw_text
    if comment.format == CommentFormat.MARK:
        content = mark_text(comment, store)
        if content is None:
            logger.warning(f"Comment {comment.id} references unknown rubric level {comment.level_id}")
        else:
            color, text = MARK_COLOR, content

    rect = (x, y - ANNOTATION_SIZE, x + ANNOTATION_SIZE, y)
    c.textAnnotation(text, Rect=rect, relative=0, Color=color)


def _draw_check(c: canvas.Canvas, x: float, y: float) -> None:
    c.saveState()
    c.setStrokeColorRGB(*CHECK_COLOR)
    c.setLineWidth(1.5)
    path = c.beginPath()
    path.moveTo(x, y - GLYPH_SIZE * 0.55)
    path.lineTo(x + GLYPH_SIZE * 0.35, y - GLYPH_SIZE)
    path.lineTo(x + GLYPH_SIZE, y)
    c.drawPath(path, stroke=1, fill=0)
    c.restoreState()


def _draw_cross(c: canvas.Canvas, x: float, y: float) -> None:
    c.saveState()
    c.setStrokeColorRGB(*CROSS_COLOR)
    c.setLineWidth(1.5)
    c.line(x, y, x + GLYPH_SIZE, y - GLYPH_SIZE)
    c.line(x, y - GLYPH_SIZE, x + GLYPH_SIZE, y)
    c.restoreState()
