"""
Unit Tests for the core models

Construction validation and derived properties.
"""

import pytest

from examscan_toolkit.core.models import (
    Comment,
    DuplexSide,
    Enrolment,
    Exam,
    PageIdentifier,
    StudentInfo,
    User,
)


class TestPageIdentifier:
    """Tests for PageIdentifier dataclass."""

    def test_init_when_page_zero_then_raises_error(self):
        with pytest.raises(ValueError, match="page must be >= 1"):
            PageIdentifier(10, 5, 0)

    def test_init_when_attempt_not_positive_then_raises_error(self):
        with pytest.raises(ValueError, match="attempt_id must be positive"):
            PageIdentifier(10, 5, 1, attempt_id=0)

    def test_as_plain_when_flags_set_then_cleared(self):
        identifier = PageIdentifier(10, 5, 2, side=DuplexSide.BACK, anonymous=True, rotated=True)
        plain = identifier.as_plain()
        assert plain.anonymous is False
        assert plain.rotated is False
        assert plain.side is DuplexSide.BACK

    def test_key_when_flags_differ_then_same_key(self):
        assert PageIdentifier(10, 5, 2).key == PageIdentifier(10, 5, 2, anonymous=True).key


class TestExam:
    """Tests for Exam dataclass."""

    def test_copy_pages_when_extra_sheets_then_added(self):
        exam = Exam(1, 5, "Final", total_pages=3, extra_sheets=2)
        assert exam.copy_pages == 5

    def test_sheets_per_copy_when_duplex_then_rounded_up(self):
        exam = Exam(1, 5, "Final", total_pages=3, extra_sheets=0, duplex=True)
        assert exam.sheets_per_copy == 2

    def test_init_when_negative_extra_exams_then_raises_error(self):
        with pytest.raises(ValueError, match="extra_exams"):
            Exam(1, 5, "Final", total_pages=2, extra_exams=-1)


class TestSmallRecords:
    """Tests for User, Enrolment, StudentInfo and Comment."""

    def test_full_name_when_both_names_then_joined(self):
        assert User(1, "Ana", "Rojas").full_name == "Ana Rojas"

    def test_enrolment_has_when_default_then_submit_capability(self):
        assert Enrolment(10, 5).has("submit")
        assert not Enrolment(10, 5).has("grade")

    def test_student_info_is_filler_when_id_zero(self):
        assert StudentInfo(0, "....").is_filler
        assert not StudentInfo(10, "Rojas, Ana").is_filler

    def test_comment_when_position_outside_unit_square_then_raises_error(self):
        with pytest.raises(ValueError, match="normalized"):
            Comment(id=1, draft_id=1, page_no=1, pos_x=1.5, pos_y=0.2)
