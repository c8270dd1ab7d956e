"""
Module: printing.student_list

Purpose:
    Render the roster / signature sheet printed ahead of the personalized
    copies: exam title, course, student count and date, then one table row
    per slot (N°, id number, photo, name, signature). Rows continue on new
    pages with a repeated table header.

Key Functions:
    - render_student_list(): Write the sheet to a PDF file

Dependencies:
    - reportlab: PDF drawing

Used By:
    - printing.controller
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from examscan_toolkit.core.models import StudentInfo

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
LEFT = 10 * mm
BOTTOM_MARGIN = 15 * mm
ROW_HEIGHT = 10 * mm

# (title, width in mm)
COLUMNS = (
    ("N°", 10),
    ("ID NUMBER", 20),
    ("PHOTO", 20),
    ("NAME", 90),
    ("SIGNATURE", 50),
)

STUDENT_LIST_FILENAME = "000-studentslist.pdf"


def render_student_list(
    output_path: Path,
    students: Sequence[StudentInfo],
    *,
    exam_name: str,
    course_name: str,
    exam_date: Optional[datetime] = None,
    logo: Optional[Path] = None,
) -> Path:
    """
    Render the roster / signature sheet.

    Args:
        output_path: PDF file to write
        students: Slots in print order (filler copies included)
        exam_name: Exam title
        course_name: Course full name
        exam_date: Date printed in the heading
        logo: Logo drawn at the top left, None to omit

    Returns:
        ``output_path``
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    c = canvas.Canvas(str(output_path), pagesize=A4)

    y = _draw_heading(c, students, exam_name, course_name, exam_date, logo)
    y = _draw_table_header(c, y)

    for number, student in enumerate(students, start=1):
        if y - ROW_HEIGHT < BOTTOM_MARGIN:
            c.showPage()
            y = _draw_table_header(c, PAGE_HEIGHT - 15 * mm)
        _draw_row(c, y, number, student)
        y -= ROW_HEIGHT

    c.showPage()
    c.save()

    logger.info(f"Rendered student list with {len(students)} rows to {output_path.name}")
    return output_path


def _draw_heading(
    c: canvas.Canvas,
    students: Sequence[StudentInfo],
    exam_name: str,
    course_name: str,
    exam_date: Optional[datetime],
    logo: Optional[Path],
) -> float:
    left = LEFT
    if logo is not None and logo.exists():
        reader = ImageReader(str(logo))
        w, h = reader.getSize()
        draw_w = 30 * mm
        draw_h = draw_w * h / w
        c.drawImage(reader, left, PAGE_HEIGHT - 6 * mm - draw_h, width=draw_w, height=draw_h, mask="auto")
        left += 40 * mm

    top = PAGE_HEIGHT - 8 * mm
    c.setFont("Helvetica-Bold", 12)
    c.drawString(left, top - 12, exam_name.upper())

    c.setFont("Helvetica", 8)
    date_text = exam_date.strftime("%d/%m/%Y") if exam_date else ""
    for line in (
        f"COURSE: {course_name}".upper(),
        f"STUDENTS: {len(students)}",
        f"DATE: {date_text}",
    ):
        top -= 8 * mm if line.startswith("COURSE") else 4 * mm
        c.drawString(left, top - 8, line)

    return top - 8 * mm


def _draw_table_header(c: canvas.Canvas, y: float) -> float:
    c.setFont("Helvetica-Bold", 8)
    x = LEFT
    for title, width in COLUMNS:
        c.rect(x, y - ROW_HEIGHT, width * mm, ROW_HEIGHT)
        c.drawCentredString(x + width * mm / 2, y - ROW_HEIGHT / 2 - 3, title)
        x += width * mm
    c.setFont("Helvetica", 8)
    return y - ROW_HEIGHT


def _draw_row(c: canvas.Canvas, y: float, number: int, student: StudentInfo) -> None:
    x = LEFT
    bottom = y - ROW_HEIGHT
    for _, width in COLUMNS:
        c.rect(x, bottom, width * mm, ROW_HEIGHT)
        x += width * mm

    text_y = bottom + ROW_HEIGHT / 2 - 3
    widths = [w * mm for _, w in COLUMNS]
    c.drawCentredString(LEFT + widths[0] / 2, text_y, str(number))
    c.drawCentredString(LEFT + widths[0] + widths[1] / 2, text_y, student.id_number)

    if student.picture is not None and student.picture.exists():
        c.drawImage(
            str(student.picture),
            LEFT + widths[0] + widths[1] + 5 * mm,
            bottom,
            width=10 * mm,
            height=10 * mm,
            preserveAspectRatio=True,
            mask="auto",
        )

    c.drawString(LEFT + sum(widths[:3]) + 2 * mm, text_y, student.name.upper())
