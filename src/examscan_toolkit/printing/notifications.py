"""
Module: printing.notifications

Purpose:
    Print statistics and the messages sent around a print order: the
    new-print-order notice to the course's notification recipients and the
    download security code.

Key Functions:
    - total_pages_to_print(): Pages a print order will consume
    - build_print_order_message(): Subject, plain and HTML bodies
    - send_print_order_notification(): Build and deliver the notice
    - build_security_code_message(): Download code message
    - send_security_code(): Deliver the code by email and optionally SMS

Dependencies:
    - html (std): Escaping in HTML bodies
    - ports: Notifier, Message

Used By:
    - printing.controller
"""

from __future__ import annotations

import html
import logging
from typing import List, Optional, Sequence, Tuple

from examscan_toolkit.core.models import CAP_RECEIVE_NOTIFICATION, Course, Exam, User
from examscan_toolkit.errors import ExternalFailure
from examscan_toolkit.ports import Message, Notifier
from examscan_toolkit.storage import RecordStore

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d %b %Y - %H:%M"


def total_pages_to_print(exam: Optional[Exam]) -> float:
    """
    Pages an exam will consume when printed.

    (template pages + extra sheets), times (students + extra copies) when
    the student count is known, halved for duplex printing.

    Example:
        >>> total_pages_to_print(Exam(1, 5, "Final", total_pages=4, extra_sheets=2,
        ...                           extra_exams=2, total_students=30, duplex=True))
        96.0
    """
    if exam is None:
        return 0
    total: float = exam.copy_pages
    if exam.total_students > 0:
        total *= exam.total_students + exam.extra_exams
    if exam.duplex:
        total /= 2
    return total


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def build_print_order_message(
    exam: Exam,
    course: Course,
    teachers: Sequence[User],
    requester: User,
) -> Message:
    """
    Build the new-print-order notice.

    Args:
        exam: Exam sent to print
        course: Owning course
        teachers: Users receiving print notifications (listed and addressed)
        requester: User who placed the order

    Returns:
        Message addressed to ``teachers``
    """
    originals = exam.copy_pages
    copies = exam.total_students + exam.extra_exams
    exam_date = exam.exam_date.strftime(DATE_FORMAT) if exam.exam_date else "-"

    rows: List[Tuple[str, str]] = [
        ("Exam id", str(exam.id)),
        ("Course", f"{course.fullname} ({course.shortname})"),
        ("Teachers", ", ".join(t.full_name for t in teachers)),
        ("Requested by", f"{requester.last_name} {requester.first_name}"),
        ("Exam date", exam_date),
        ("Personalized header", _yes_no(exam.header_qr)),
        ("Double sided", _yes_no(exam.duplex)),
        ("Student list", _yes_no(exam.print_list)),
        ("Originals", str(originals)),
        ("Copies", str(copies)),
        ("Total pages to print", str(originals * copies)),
        ("Sheets to print", _format_number(total_pages_to_print(exam))),
    ]

    subject = f"{course.fullname} : {exam.name}. New print order [{exam.id}]"
    text = "New print order\n" + "".join(f"{label}: {value}\n" for label, value in rows)
    body = "".join(
        f"<tr><td>{html.escape(label)}</td><td>{html.escape(value)}</td></tr>"
        for label, value in rows
    )
    html_body = f'<table><tr><th colspan="2">New print order</th></tr>{body}</table>'

    return Message(
        subject=subject,
        text=text,
        html=html_body,
        recipients=tuple(t.id for t in teachers),
    )


def send_print_order_notification(
    exam: Exam,
    course: Course,
    requester: User,
    store: RecordStore,
    notifier: Notifier,
) -> Optional[ExternalFailure]:
    """
    Notify the course's notification recipients about a new print order.

    Returns:
        None on success, the failure otherwise (never raises for delivery)
    """
    teachers = store.users_with_capability(course.id, CAP_RECEIVE_NOTIFICATION)
    message = build_print_order_message(exam, course, teachers, requester)
    if not message.recipients:
        logger.warning(f"No notification recipients for course {course.id}")
        return None

    if notifier.send(message):
        logger.info(f"Sent print order notice for exam {exam.id} to {len(message.recipients)} users")
        return None

    failure = ExternalFailure(f"exam {exam.id}", "print order notification was not delivered")
    logger.error(str(failure))
    return failure


def build_security_code_message(code: str, user: User, course_name: str, exam_name: str) -> Message:
    """
    Build the download security code message.

    Example:
        >>> msg = build_security_code_message("4821", user, "Algebra", "Final")
        >>> msg.subject
        'Exam download security code'
    """
    subject = "Exam download security code"
    text = f"{subject}\n{course_name} {exam_name}\nYour code is: {code}"
    html_body = (
        f"<html><h3>{subject}</h3>"
        f"{html.escape(course_name)} {html.escape(exam_name)}<br>"
        f"Your code is:<br>{html.escape(code)}<br></html>"
    )
    return Message(subject=subject, text=text, html=html_body, recipients=(user.id,))


def send_security_code(
    code: str,
    user: User,
    course_name: str,
    exam_name: str,
    notifier: Notifier,
    *,
    sms: bool = False,
) -> bool:
    """
    Deliver a download security code by email, and by SMS when requested.

    Returns:
        True when at least one channel delivered the code
    """
    delivered = notifier.send(build_security_code_message(code, user, course_name, exam_name))
    if sms and user.phone:
        delivered = notifier.send_sms(user.phone, f"Exam download code: {code}") or delivered
    if not delivered:
        logger.error(f"Security code for user {user.id} was not delivered")
    return delivered


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"
