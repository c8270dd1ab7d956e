"""
Module: printing.header

Purpose:
    Draw the personalized identifier header for one page as a single-page
    overlay PDF. The overlay is stamped onto the template page by the
    assembler.

    Layout (millimetres from the top-left corner):
        logo         (2, 8)     30 wide (optional)
        photo        (35, 8)    15 x 15
        text block   (58, 8)    exam name, name, id number, course, page
        QR mark      (176, 3)   34 wide
        rotated QR   (0, H-35)  34 wide

Key Functions:
    - page_identifier(): Identifier carried by a physical page (or None)
    - render_header(): Overlay PDF bytes for one page

Key Classes:
    - HeaderContext: Per-exam header settings

Dependencies:
    - reportlab: Overlay drawing
    - printing.qr: QR rasters

Used By:
    - printing.assembler
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from examscan_toolkit.core.codec import physical_position
from examscan_toolkit.core.models import DuplexSide, PageIdentifier, StudentInfo

from .qr import render_identifier_marks

logger = logging.getLogger(__name__)

# Header geometry (mm)
LOGO_POS = (2, 8)
LOGO_WIDTH = 30
PHOTO_POS = (35, 8)
PHOTO_SIZE = 15
TEXT_LEFT = 58
TEXT_TOP = 8
QR_POS = (176, 3)
QR_WIDTH = 34
BOTTOM_QR_OFFSET = 35

TITLE_FONT = ("Helvetica", 12)
BODY_FONT = ("Helvetica", 9)


@dataclass(frozen=True)
class HeaderContext:
    """
    Settings shared by every header of a print run.

    Attributes:
        exam_name: Exam title
        course_name: Course full name
        course_id: Course id encoded in the identifier
        total_pages: Template page count shown as "page a of b"
        duplex: Only front faces carry an identifier when set
        logo: Logo image, None to omit
        attempt_id: Answer-sheet attempt id
        bottom_qr: Draw the rotated bottom mark
        qr_box_size, qr_border: QR raster settings
    """

    exam_name: str
    course_name: str
    course_id: int
    total_pages: Optional[int] = None
    duplex: bool = False
    logo: Optional[Path] = None
    attempt_id: Optional[int] = None
    bottom_qr: bool = True
    qr_box_size: int = 10
    qr_border: int = 2


def page_identifier(
    student: StudentInfo,
    page_number: int,
    context: HeaderContext,
) -> Optional[PageIdentifier]:
    """
    Identifier printed on a physical page.

    Single-sided: every page carries its own number. Duplex: only front
    faces carry an identifier, whose token is the sheet number.

    Example:
        >>> ctx = HeaderContext("Final", "Algebra", course_id=5, duplex=True)
        >>> page_identifier(StudentInfo(10, "Doe, Jane"), 3, ctx).page
        3
        >>> page_identifier(StudentInfo(10, "Doe, Jane"), 4, ctx) is None
        True
    """
    side = DuplexSide.NONE
    if context.duplex:
        _, side = physical_position(page_number)
        if side is DuplexSide.BACK:
            return None

    attempt_id = context.attempt_id if context.attempt_id and context.attempt_id > 0 else None
    return PageIdentifier(
        student_id=student.id,
        course_id=context.course_id,
        page=page_number,
        side=side,
        attempt_id=attempt_id,
    )


def render_header(
    page_size: Tuple[float, float],
    student: StudentInfo,
    identifier: PageIdentifier,
    context: HeaderContext,
) -> bytes:
    """
    Render the header overlay for one page.

    Args:
        page_size: (width, height) of the target page in points
        student: Slot the copy belongs to
        identifier: Identifier to encode (page number shown in the text block)
        context: Per-exam settings

    Returns:
        PDF bytes of a single page the size of ``page_size``
    """
    width, height = page_size
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(width, height))

    def top_left(x_mm: float, y_mm: float, h_pt: float = 0.0) -> Tuple[float, float]:
        # PDF origin is bottom-left; the layout is specified from the top-left
        return x_mm * mm, height - y_mm * mm - h_pt

    if context.logo is not None and context.logo.exists():
        logo = ImageReader(str(context.logo))
        logo_w, logo_h = logo.getSize()
        draw_w = LOGO_WIDTH * mm
        draw_h = draw_w * logo_h / logo_w
        c.drawImage(logo, *top_left(*LOGO_POS, draw_h), width=draw_w, height=draw_h, mask="auto")

    _draw_text_block(c, student, identifier.page, context, top_left)

    if student.picture is not None and student.picture.exists():
        size = PHOTO_SIZE * mm
        c.drawImage(
            str(student.picture),
            *top_left(*PHOTO_POS, size),
            width=size,
            height=size,
            preserveAspectRatio=True,
            mask="auto",
        )

    top_mark, bottom_mark = render_identifier_marks(
        identifier,
        box_size=context.qr_box_size,
        border=context.qr_border,
    )
    qr_size = QR_WIDTH * mm
    c.drawImage(ImageReader(top_mark), *top_left(*QR_POS, qr_size), width=qr_size, height=qr_size)
    if context.bottom_qr:
        c.drawImage(ImageReader(bottom_mark), 0, BOTTOM_QR_OFFSET * mm - qr_size, width=qr_size, height=qr_size)

    c.showPage()
    c.save()
    return buffer.getvalue()


def _draw_text_block(
    c: canvas.Canvas,
    student: StudentInfo,
    page_number: int,
    context: HeaderContext,
    top_left: Callable[..., Tuple[float, float]],
) -> None:
    top = TEXT_TOP
    c.setFont(*TITLE_FONT)
    c.drawString(*top_left(TEXT_LEFT, top, TITLE_FONT[1]), context.exam_name.upper())

    c.setFont(*BODY_FONT)
    lines = [f"NAME: {student.name}".upper()]
    if student.id_number:
        lines.append(f"ID NUMBER: {student.id_number}")
    lines.append(f"COURSE: {context.course_name}".upper())
    if context.total_pages:
        lines.append(f"PAGE: {page_number} OF {context.total_pages}")

    top += 5
    for line in lines:
        c.drawString(*top_left(TEXT_LEFT, top, BODY_FONT[1]), line)
        top += 4
