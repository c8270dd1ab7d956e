"""
Unit Tests for print statistics and notification messages.
"""

from dataclasses import replace
from datetime import datetime
from unittest.mock import MagicMock

from examscan_toolkit.core.models import Course, Exam, User
from examscan_toolkit.ports import Notifier
from examscan_toolkit.printing.notifications import (
    build_print_order_message,
    build_security_code_message,
    send_print_order_notification,
    send_security_code,
    total_pages_to_print,
)

COURSE = Course(5, "Algebra", "ALG 1", 1)
REQUESTER = User(2, "Tomas", "Perez")


class TestTotalPagesToPrint:
    """Tests for total_pages_to_print()."""

    def test_total_pages_when_duplex_then_halved(self):
        exam = Exam(1, 5, "Final", total_pages=4, extra_sheets=2, extra_exams=2,
                    total_students=30, duplex=True)
        assert total_pages_to_print(exam) == 96

    def test_total_pages_when_students_unknown_then_one_copy(self):
        assert total_pages_to_print(Exam(1, 5, "Final", total_pages=3)) == 3

    def test_total_pages_when_no_exam_then_zero(self):
        assert total_pages_to_print(None) == 0


class TestPrintOrderMessage:
    """Tests for build_print_order_message() / send_print_order_notification()."""

    def test_build_message_when_exam_then_totals_and_flags_listed(self):
        # Arrange
        exam = Exam(7, 5, "Final <b>exam</b>", total_pages=4, extra_sheets=1, extra_exams=2,
                    total_students=10, exam_date=datetime(2025, 6, 2, 8, 0), print_list=True)

        # Act
        message = build_print_order_message(exam, COURSE, [REQUESTER], REQUESTER)

        # Assert
        assert message.subject == "Algebra : Final <b>exam</b>. New print order [7]"
        assert "Originals: 5\n" in message.text
        assert "Copies: 12\n" in message.text
        assert "Total pages to print: 60\n" in message.text
        assert "Student list: Yes\n" in message.text
        assert "Exam date: 02 Jun 2025 - 08:00\n" in message.text
        assert message.recipients == (2,)

    def test_send_notification_when_teachers_then_notifier_called(self, store):
        notifier = MagicMock(spec=Notifier)
        notifier.send.return_value = True

        failure = send_print_order_notification(store.get_exam(7), COURSE, REQUESTER, store, notifier)

        assert failure is None
        message = notifier.send.call_args.args[0]
        assert message.recipients == (2,)

    def test_send_notification_when_delivery_fails_then_failure_returned(self, store):
        notifier = MagicMock(spec=Notifier)
        notifier.send.return_value = False

        failure = send_print_order_notification(store.get_exam(7), COURSE, REQUESTER, store, notifier)

        assert failure is not None
        assert failure.item == "exam 7"

    def test_send_notification_when_no_recipients_then_skipped(self, store):
        notifier = MagicMock(spec=Notifier)
        other_course = replace(COURSE, id=99)

        assert send_print_order_notification(store.get_exam(7), other_course, REQUESTER, store, notifier) is None
        notifier.send.assert_not_called()


class TestSecurityCode:
    """Tests for the download security code message."""

    def test_build_security_code_message_when_called_then_code_in_bodies(self):
        message = build_security_code_message("4821", REQUESTER, "Algebra", "Final")
        assert message.subject == "Exam download security code"
        assert "Your code is: 4821" in message.text
        assert "4821" in message.html

    def test_send_security_code_when_sms_requested_then_both_channels(self):
        notifier = MagicMock(spec=Notifier)
        notifier.send.return_value = False
        notifier.send_sms.return_value = True
        user = replace(REQUESTER, phone="+56911112222")

        assert send_security_code("4821", user, "Algebra", "Final", notifier, sms=True) is True
        notifier.send_sms.assert_called_once_with("+56911112222", "Exam download code: 4821")
