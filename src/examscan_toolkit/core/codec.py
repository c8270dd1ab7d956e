"""
Module: core.codec

Purpose:
    Page identifier codec. Maps PageIdentifier values to the canonical string
    printed as a QR mark and to the filename convention used by scanned page
    images, and back. Pure functions, no I/O.

    Canonical string:
        {student}-{course}-{token}[-{attempt}-BB][-R]

    Scan filename:
        {student}-{course}-{token}[_a].{ext}

    The page token is the logical page when the exam is printed single
    sided. For duplex exams it is the physical sheet number, suffixed with
    "b" for the back face:

        logical 1 -> "1"    logical 2 -> "1b"
        logical 3 -> "2"    logical 4 -> "2b"

Key Functions:
    - encode() / decode(): Canonical identifier string
    - encode_filename() / decode_filename(): Scan filename convention
    - physical_position(), logical_page(), sheet_faces(): Duplex arithmetic
    - page_token(): Physical token for a logical page

Dependencies:
    - re (std)
    - core.models.identifiers: PageIdentifier, DuplexSide
    - errors: InvalidIdentifier, NonNumericPage

Used By:
    - printing.header: QR content
    - printing.assembler: Per-student file names
    - scanning.ingest: Scan filename parsing
"""

from __future__ import annotations

import re
from pathlib import PurePath
from typing import Optional, Tuple

from examscan_toolkit.errors import InvalidIdentifier, NonNumericPage

from .models.identifiers import DuplexSide, PageIdentifier

SEPARATOR = "-"
ANONYMOUS_MARKER = "_a"
BACK_MARKER = "b"
ANSWER_SHEET_FLAG = "BB"
ROTATED_FLAG = "R"

_DECIMAL = re.compile(r"[0-9]+")


# ─────────────────────────────────────────────────────────────────────────────
# Duplex arithmetic
# ─────────────────────────────────────────────────────────────────────────────

def sheet_faces(sheet: int) -> Tuple[int, int]:
    """
    Logical pages printed on the front and back of a sheet.

    Example:
        >>> sheet_faces(2)
        (3, 4)
    """
    if sheet < 1:
        raise ValueError(f"sheet must be >= 1: {sheet}")
    return (2 * sheet - 1, 2 * sheet)


def logical_page(sheet: int, side: DuplexSide) -> int:
    """Inverse of physical_position(): back faces are 2k, everything else 2k - 1."""
    front, back = sheet_faces(sheet)
    return back if side is DuplexSide.BACK else front


def physical_position(page: int) -> Tuple[int, DuplexSide]:
    """
    Sheet number and face of a logical page printed on both sides.

    Example:
        >>> physical_position(4)
        (2, <DuplexSide.BACK: 'back'>)
    """
    if page < 1:
        raise ValueError(f"page must be >= 1: {page}")
    sheet = (page + 1) // 2
    side = DuplexSide.BACK if page % 2 == 0 else DuplexSide.FRONT
    return sheet, side


def page_token(page: int, duplex: bool) -> str:
    """Physical page token for a logical page."""
    if not duplex:
        return str(page)
    sheet, side = physical_position(page)
    return f"{sheet}{BACK_MARKER}" if side is DuplexSide.BACK else str(sheet)


def is_back_side_token(token: str) -> bool:
    """True when a page token (anonymous marker allowed) denotes a back face."""
    return _strip_anonymous(token)[0].endswith(BACK_MARKER)


# ─────────────────────────────────────────────────────────────────────────────
# Canonical string
# ─────────────────────────────────────────────────────────────────────────────

def encode(identifier: PageIdentifier) -> str:
    """
    Serialize an identifier to the canonical QR string.

    Identifiers with a FRONT/BACK side are emitted with the duplex page token.

    Example:
        >>> encode(PageIdentifier(10, 5, 1))
        '10-5-1'
        >>> encode(PageIdentifier(10, 5, 2, attempt_id=7, rotated=True))
        '10-5-2-7-BB-R'
    """
    duplex = identifier.side is not DuplexSide.NONE
    parts = [
        str(identifier.student_id),
        str(identifier.course_id),
        page_token(identifier.page, duplex),
    ]
    if identifier.attempt_id is not None:
        parts.extend([str(identifier.attempt_id), ANSWER_SHEET_FLAG])
    if identifier.rotated:
        parts.append(ROTATED_FLAG)
    return SEPARATOR.join(parts)


def decode(raw: str, *, duplex: bool = False) -> PageIdentifier:
    """
    Parse a canonical QR string.

    Args:
        raw: Canonical string as read from the QR mark
        duplex: Whether the exam was printed on both sides

    Returns:
        PageIdentifier with the logical page number

    Raises:
        InvalidIdentifier: Wrong component count or malformed flags
        NonNumericPage: Page token is not a base-10 integer
    """
    parts = raw.strip().split(SEPARATOR)
    rotated = False
    attempt_id: Optional[int] = None

    if len(parts) in (4, 6):
        if parts[-1] != ROTATED_FLAG:
            raise InvalidIdentifier(raw, f"Expected trailing {ROTATED_FLAG} flag")
        rotated = True
        parts = parts[:-1]

    if len(parts) == 5:
        if parts[4] != ANSWER_SHEET_FLAG:
            raise InvalidIdentifier(raw, f"Expected {ANSWER_SHEET_FLAG} answer sheet flag")
        attempt_id = _parse_id(parts[3], raw, "attempt")
        parts = parts[:3]

    if len(parts) != 3:
        raise InvalidIdentifier(raw, f"Expected 3 components, got {len(parts)}")

    student_id = _parse_id(parts[0], raw, "student")
    course_id = _parse_id(parts[1], raw, "course")
    page, side = _parse_page_token(parts[2], raw, duplex)

    return PageIdentifier(
        student_id=student_id,
        course_id=course_id,
        page=page,
        side=side,
        attempt_id=attempt_id if attempt_id else None,
        rotated=rotated,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Scan filenames
# ─────────────────────────────────────────────────────────────────────────────

def scan_stem(filename: str) -> str:
    """Identifier-bearing part of a scan filename (everything before the first dot)."""
    return PurePath(filename).name.split(".", 1)[0]


def anonymous_counterpart(filename: str) -> str:
    """
    Filename of the anonymized capture of a plain scan.

    Example:
        >>> anonymous_counterpart("10-5-1b.png")
        '10-5-1b_a.png'
    """
    name = PurePath(filename).name
    stem, dot, rest = name.partition(".")
    return f"{stem}{ANONYMOUS_MARKER}{dot}{rest}"


def encode_filename(
    identifier: PageIdentifier,
    *,
    duplex: bool,
    extension: str = "png",
) -> str:
    """
    Scan filename for an identifier.

    Example:
        >>> encode_filename(PageIdentifier(10, 5, 2, anonymous=True), duplex=True)
        '10-5-1b_a.png'
    """
    token = page_token(identifier.page, duplex)
    if identifier.anonymous:
        token += ANONYMOUS_MARKER
    return f"{identifier.student_id}{SEPARATOR}{identifier.course_id}{SEPARATOR}{token}.{extension}"


def decode_filename(filename: str, *, duplex: bool) -> PageIdentifier:
    """
    Parse a scan filename.

    The anonymous marker is stripped before the duplex transform is applied.

    Args:
        filename: Bare filename or path of the scanned image
        duplex: Batch-level duplex flag

    Returns:
        PageIdentifier with the logical page, anonymous flag and side

    Raises:
        InvalidIdentifier: Not exactly three hyphen separated components
        NonNumericPage: Page token is not a base-10 integer

    Example:
        >>> decode_filename("10-5-1b.png", duplex=True).page
        2
    """
    stem = scan_stem(filename)
    parts = stem.split(SEPARATOR)
    if len(parts) != 3:
        raise InvalidIdentifier(filename, f"Expected 3 components, got {len(parts)}")

    student_id = _parse_id(parts[0], filename, "student")
    course_id = _parse_id(parts[1], filename, "course")
    token, anonymous = _strip_anonymous(parts[2])
    page, side = _parse_page_token(token, filename, duplex)

    return PageIdentifier(
        student_id=student_id,
        course_id=course_id,
        page=page,
        side=side,
        anonymous=anonymous,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Internals
# ─────────────────────────────────────────────────────────────────────────────

def _strip_anonymous(token: str) -> Tuple[str, bool]:
    if token.endswith(ANONYMOUS_MARKER):
        return token[: -len(ANONYMOUS_MARKER)], True
    return token, False


def _parse_id(value: str, raw: str, what: str) -> int:
    if not _DECIMAL.fullmatch(value):
        raise InvalidIdentifier(raw, f"Non numeric {what} id {value!r}")
    return int(value)


def _parse_page_token(token: str, raw: str, duplex: bool) -> Tuple[int, DuplexSide]:
    if duplex:
        side = DuplexSide.FRONT
        if is_back_side_token(token):
            side = DuplexSide.BACK
            token = token[: -len(BACK_MARKER)]
    else:
        side = DuplexSide.NONE

    if not _DECIMAL.fullmatch(token):
        raise NonNumericPage(raw)

    number = int(token)
    if number < 1:
        raise InvalidIdentifier(raw, "Page numbers start at 1")

    if side is DuplexSide.NONE:
        return number, side
    return logical_page(number, side), side
