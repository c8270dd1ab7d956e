"""
Unit Tests for record serialization and filename cleaning.
"""

import json
from datetime import datetime
from pathlib import Path

import pytest

from examscan_toolkit.core.models import Enrolment, Exam, ExamMode, ExamStatus, Page, StudentInfo
from examscan_toolkit.core.utils import clean_filename, record_from_dict, record_to_dict


class TestRecordSerialization:
    """Tests for record_to_dict() / record_from_dict()."""

    def test_record_to_dict_when_exam_then_json_serializable(self):
        # Arrange
        exam = Exam(
            7, 5, "Final", total_pages=2,
            status=ExamStatus.SENT_TO_PRINT,
            printed_at=datetime(2025, 3, 14, 9, 30),
            template_files=("abc",),
            mode=ExamMode.MARKER_TRAINING,
        )

        # Act
        data = record_to_dict(exam)

        # Assert
        json.dumps(data)
        assert data["status"] == "sent-to-print"
        assert data["printed_at"] == "2025-03-14T09:30:00"
        assert data["template_files"] == ["abc"]

    def test_record_from_dict_when_enums_and_dates_then_types_restored(self):
        exam = Exam(7, 5, "Final", total_pages=2, mode=ExamMode.STUDENT_TRAINING,
                    printed_at=datetime(2025, 3, 14), template_files=("a", "b"))
        restored = record_from_dict(Exam, json.loads(json.dumps(record_to_dict(exam))))
        assert restored == exam
        assert restored.mode is ExamMode.STUDENT_TRAINING
        assert isinstance(restored.template_files, tuple)

    def test_record_from_dict_when_frozenset_and_optional_path_then_restored(self):
        enrolment = Enrolment(10, 5, "self", frozenset({"submit", "grade"}))
        assert record_from_dict(Enrolment, record_to_dict(enrolment)) == enrolment

        student = StudentInfo(10, "Rojas, Ana", picture=Path("/pics/user1.png"))
        assert record_from_dict(StudentInfo, record_to_dict(student)).picture == Path("/pics/user1.png")

    def test_record_from_dict_when_required_field_missing_then_raises(self):
        with pytest.raises(ValueError, match="missing field"):
            record_from_dict(Page, {"id": 1})

    def test_record_to_dict_when_not_dataclass_then_raises_type_error(self):
        with pytest.raises(TypeError):
            record_to_dict({"id": 1})


class TestCleanFilename:
    """Tests for clean_filename()."""

    def test_clean_filename_when_accents_and_punctuation_then_replaced(self):
        assert clean_filename("Cálculo (I), sección 2") == "Calculo--I---seccion-2"

    def test_clean_filename_when_slash_flag_then_separators_replaced(self):
        assert clean_filename("ALG 1/2", slash=True) == "ALG-1-2"
        assert clean_filename("ALG 1/2") == "ALG-1/2"
