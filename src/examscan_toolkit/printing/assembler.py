"""
Module: printing.assembler

Purpose:
    Build one personalized PDF per roster slot: the template pages, the
    exam's extra blank sheets, and the identifier header stamped onto every
    identifier-bearing page.

    Page count per copy is T + E (template pages + extra sheets). With
    duplex printing only front faces carry an identifier, so a copy has
    ceil((T + E) / 2) identifier-bearing pages.

Key Functions:
    - assemble_copy(): Personalized PDF for one slot
    - personalized_filename(): "{student}-{course}-{last_page}.pdf"
    - count_pdf_pages(): Page count of a PDF file

Key Classes:
    - PersonalizedCopy: Result for one slot

Dependencies:
    - fitz (PyMuPDF): Template import, blank pages, overlay stamping
    - printing.header: Overlay rendering

Used By:
    - printing.controller
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import fitz  # PyMuPDF

from examscan_toolkit.core.models import StudentInfo, TemplateRef
from examscan_toolkit.errors import ResourceError

from .header import HeaderContext, page_identifier, render_header

logger = logging.getLogger(__name__)

PAGE_SIZES = {
    "a4": fitz.paper_size("a4"),
    "letter": fitz.paper_size("letter"),
}


@dataclass(frozen=True)
class PersonalizedCopy:
    """
    One assembled copy.

    Attributes:
        student: Slot the copy was built for
        template: Template backing the copy
        path: Generated PDF
        page_count: Physical pages (template + extra sheets)
        identified_pages: Pages carrying an identifier header
    """

    student: StudentInfo
    template: TemplateRef
    path: Path
    page_count: int
    identified_pages: int

    @property
    def filename(self) -> str:
        return self.path.name


def personalized_filename(student_id: int, course_id: int, last_page: int) -> str:
    """
    File name of a personalized copy.

    Example:
        >>> personalized_filename(10, 5, 2)
        '10-5-2.pdf'
    """
    return f"{student_id}-{course_id}-{last_page}.pdf"


def count_pdf_pages(path: Path) -> int:
    """
    Number of pages in a PDF.

    Raises:
        ResourceError: If the file cannot be opened as a PDF
    """
    try:
        with fitz.open(str(path)) as doc:
            return doc.page_count
    except (fitz.FileDataError, RuntimeError, OSError) as e:
        raise ResourceError(f"Cannot read PDF {path}: {e}") from e


def assemble_copy(
    student: StudentInfo,
    template: TemplateRef,
    context: HeaderContext,
    output_dir: Path,
    *,
    extra_sheets: int = 0,
    header: bool = True,
    blank_page_size: str = "a4",
) -> PersonalizedCopy:
    """
    Assemble the personalized copy for one slot.

    Args:
        student: Roster slot (id 0 for blank copies)
        template: Template PDF for this slot
        context: Header settings
        output_dir: Directory receiving the PDF
        extra_sheets: Blank pages appended after the template
        header: Stamp identifier headers
        blank_page_size: Size of blank pages when the template is empty

    Returns:
        PersonalizedCopy describing the written file

    Raises:
        ResourceError: If the template cannot be read

    Example:
        >>> copy = assemble_copy(student, template, ctx, Path("pdf"), extra_sheets=1)
        >>> copy.page_count
        3
    """
    try:
        source = fitz.open(str(template.path))
    except (fitz.FileDataError, RuntimeError, OSError) as e:
        raise ResourceError(f"Cannot read template {template.filename}: {e}") from e

    output = fitz.open()
    identified = 0
    try:
        template_pages = source.page_count
        if template_pages:
            output.insert_pdf(source)

        for _ in range(extra_sheets):
            width, height = _blank_size(output, blank_page_size)
            output.new_page(width=width, height=height)

        if header:
            for index in range(output.page_count):
                page = output[index]
                identifier = page_identifier(student, index + 1, context)
                if identifier is None:
                    continue
                _stamp(page, render_header((page.rect.width, page.rect.height), student, identifier, context))
                identified += 1

        page_count = output.page_count
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / personalized_filename(student.id, context.course_id, page_count)
        if student.is_filler:
            # Blank copies share the same id; keep each one
            path = _unique_path(path)
        output.save(str(path), garbage=3, deflate=True)
    finally:
        output.close()
        source.close()

    logger.debug(
        f"Assembled {path.name}: {page_count} pages, {identified} with identifier "
        f"(template {template.filename})"
    )
    return PersonalizedCopy(
        student=student,
        template=template,
        path=path,
        page_count=page_count,
        identified_pages=identified,
    )


def _stamp(page: "fitz.Page", overlay_pdf: bytes) -> None:
    with fitz.open(stream=overlay_pdf, filetype="pdf") as overlay:
        page.show_pdf_page(page.rect, overlay, 0, overlay=True)


def _blank_size(doc: "fitz.Document", default: str) -> Tuple[float, float]:
    # Blank sheets match the last page so duplex faces line up
    if doc.page_count:
        rect = doc[doc.page_count - 1].rect
        return rect.width, rect.height
    return PAGE_SIZES[default]


def _unique_path(path: Path) -> Path:
    candidate = path
    suffix = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.stem}({suffix}){path.suffix}")
        suffix += 1
    return candidate
