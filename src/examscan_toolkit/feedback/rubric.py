"""
Module: feedback.rubric

Purpose:
    Rubric table appended to response documents: one row per criterion
    (ordered by sort order), then one cell per level (ordered by score)
    reading "definition (score pts.)".

Key Functions:
    - format_score(): Score rounded to one decimal, trailing ".0" dropped
    - rubric_rows(): Table cells from the record store
    - draw_rubric_page(): Render the table on a reportlab canvas

Dependencies:
    - reportlab: PDF drawing and line wrapping

Used By:
    - feedback.composer
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from examscan_toolkit.storage import RecordStore

logger = logging.getLogger(__name__)

A4_WIDTH, A4_HEIGHT = A4
MARGIN = 15 * mm
FONT = "Helvetica"
FONT_SIZE = 8
LINE_HEIGHT = 10
CELL_PADDING = 2 * mm


def format_score(value: float) -> str:
    """
    Example:
        >>> format_score(2.0), format_score(1.25)
        ('2', '1.2')
    """
    return f"{round(value, 1):g}"


def rubric_rows(store: RecordStore, exam_id: int) -> List[List[str]]:
    """
    Cells of the rubric table of one exam.

    Example:
        >>> rubric_rows(store, 7)[0]
        ['Clarity', 'Unclear (0 pts.)', 'Clear (2 pts.)']
    """
    rows: List[List[str]] = []
    for criterion, levels in store.rubric(exam_id):
        row = [criterion.description]
        row.extend(f"{level.definition} ({format_score(level.score)} pts.)" for level in levels)
        rows.append(row)
    return rows


def draw_rubric_page(c: canvas.Canvas, rows: Sequence[Sequence[str]], title: str = "Rubric") -> int:
    """
    Draw the rubric table starting on a new page.

    Columns share the usable width equally; cells wrap and rows continue
    on new pages when they run past the bottom margin.

    Returns:
        Number of pages drawn
    """
    columns = max((len(r) for r in rows), default=1)
    col_width = (A4_WIDTH - 2 * MARGIN) / columns
    text_width = col_width - 2 * CELL_PADDING

    pages = 1
    c.setFont("Helvetica-Bold", 12)
    c.drawString(MARGIN, A4_HEIGHT - MARGIN, title)
    y = A4_HEIGHT - MARGIN - 8 * mm

    c.setFont(FONT, FONT_SIZE)
    for row in rows:
        wrapped = [simpleSplit(cell, FONT, FONT_SIZE, text_width) for cell in row]
        height = max(len(lines) for lines in wrapped) * LINE_HEIGHT + 2 * CELL_PADDING

        if y - height < MARGIN:
            c.showPage()
            c.setFont(FONT, FONT_SIZE)
            y = A4_HEIGHT - MARGIN
            pages += 1

        for index, lines in enumerate(wrapped):
            x = MARGIN + index * col_width
            c.rect(x, y - height, col_width, height)
            text_y = y - CELL_PADDING - FONT_SIZE
            for line in lines:
                c.drawString(x + CELL_PADDING, text_y, line)
                text_y -= LINE_HEIGHT
        y -= height

    c.showPage()
    logger.debug(f"Drew rubric with {len(rows)} criteria on {pages} page(s)")
    return pages
