"""
Unit Tests for the roster and template resolver.
"""

from dataclasses import replace
from pathlib import Path

import pytest
from PIL import Image

from examscan_toolkit.config import EngineConfig
from examscan_toolkit.core.models import Enrolment, StudentInfo, TemplateRef, User
from examscan_toolkit.errors import NoStudents, NoTemplate
from examscan_toolkit.ports import BlobKey
from examscan_toolkit.printing.roster import (
    FILLER_NAME,
    MAX_NAME_LENGTH,
    assign_templates,
    build_roster,
    display_name,
    enrol_methods,
    fetch_templates,
    resolve_picture,
    student_picture_path,
)


class TestBuildRoster:
    """Tests for build_roster()."""

    def test_build_roster_when_seeded_course_then_only_students_in_order(self, store, config):
        roster = build_roster(store.get_exam(7), store, config)
        assert [s.id for s in roster.students] == [10, 11, 12]
        assert roster.students[0].name == "Rojas, Ana"
        assert roster.real_count == 3

    def test_build_roster_when_extra_exams_then_fillers_appended(self, store, config):
        # Arrange
        exam = replace(store.get_exam(7), extra_exams=2)

        # Act
        roster = build_roster(exam, store, config)

        # Assert
        assert len(roster) == 5
        assert roster.filler_count == 2
        assert all(s.is_filler and s.name == FILLER_NAME for s in roster.students[3:])

    def test_build_roster_when_method_not_allowed_then_skipped(self, store, config):
        store.put_user(User(13, "Diego", "Alba"))
        store.add_enrolment(Enrolment(13, 5, "guest"))
        roster = build_roster(store.get_exam(7), store, config)
        assert 13 not in [s.id for s in roster.students]

    def test_build_roster_when_no_enrolment_matches_then_raises_no_students(self, store, config):
        exam = replace(store.get_exam(7), enrolments="self,meta")
        with pytest.raises(NoStudents):
            build_roster(exam, store, config)

    def test_build_roster_when_enrolled_twice_then_listed_once(self, store, config):
        store.add_enrolment(Enrolment(10, 5, "self"))
        roster = build_roster(store.get_exam(7), store, config)
        assert [s.id for s in roster.students].count(10) == 1


class TestRosterHelpers:
    """Tests for enrolment methods, names and pictures."""

    def test_enrol_methods_when_exam_override_then_exam_wins(self, store):
        exam = replace(store.get_exam(7), enrolments="manual, self")
        assert enrol_methods(exam, EngineConfig()) == ("manual", "self")

    def test_enrol_methods_when_override_too_short_then_config_default(self, store):
        exam = replace(store.get_exam(7), enrolments="x")
        config = EngineConfig(enrol_includes=("database",))
        assert enrol_methods(exam, config) == ("database",)

    def test_display_name_when_long_then_truncated(self):
        user = User(1, "A" * 50, "B" * 50)
        assert len(display_name(user)) == MAX_NAME_LENGTH

    def test_student_picture_path_when_id_number_then_sharded_by_last_digits(self):
        path = student_picture_path("12345", Path("/pics"))
        assert path == Path("/pics/5/4/user12345.png")
        assert student_picture_path("1", Path("/pics")) is None
        assert student_picture_path("12345", None) is None

    def test_resolve_picture_when_repository_photo_exists_then_used(self, tmp_path: Path):
        photo = tmp_path / "pics" / "0" / "1" / "user20231010.png"
        photo.parent.mkdir(parents=True)
        Image.new("RGB", (10, 10)).save(photo)
        config = EngineConfig(picture_dir=tmp_path / "pics")
        assert resolve_picture(User(10, "Ana", "Rojas", "20231010"), config, None, None) == photo

    def test_resolve_picture_when_avatar_stored_then_fetched(self, blobs, tmp_path: Path):
        avatar = blobs.store_bytes(BlobKey("user", 10, "f1.png"), b"png")
        user = User(10, "Ana", "Rojas", picture_hash=avatar.hash)
        path = resolve_picture(user, EngineConfig(), blobs, tmp_path / "u")
        assert path.name == "u10f1.png"

    def test_resolve_picture_when_nothing_found_then_default(self, blobs, tmp_path: Path):
        config = EngineConfig(default_picture=tmp_path / "default.png")
        user = User(10, "Ana", "Rojas", picture_hash="0" * 40)
        assert resolve_picture(user, config, blobs, tmp_path / "u") == tmp_path / "default.png"


class TestTemplates:
    """Tests for fetch_templates() / assign_templates()."""

    def test_fetch_templates_when_non_pdf_attached_then_skipped(self, store, blobs, tmp_path: Path):
        # Arrange
        notes = blobs.store_bytes(BlobKey("exam", 7, "notes.txt"), b"notes")
        exam = replace(store.get_exam(7), template_files=(notes.hash,) + store.get_exam(7).template_files)

        # Act
        templates = fetch_templates(exam, blobs, tmp_path / "templates-ws")

        # Assert
        assert [t.filename for t in templates] == ["final.pdf"]
        assert templates[0].path.name == "0-final.pdf"
        assert templates[0].path.exists()

    def test_fetch_templates_when_no_pdf_then_raises_no_template(self, store, blobs, tmp_path: Path):
        exam = replace(store.get_exam(7), template_files=())
        with pytest.raises(NoTemplate):
            fetch_templates(exam, blobs, tmp_path / "ws")

    def test_assign_templates_when_two_forms_then_round_robin(self):
        students = [StudentInfo(i, f"S{i}") for i in (10, 11, 12)]
        forms = [TemplateRef("a", "form-a.pdf", Path("a.pdf")), TemplateRef("b", "form-b.pdf", Path("b.pdf"))]
        pairs = assign_templates(students, forms)
        assert [t.filename for _, t in pairs] == ["form-a.pdf", "form-b.pdf", "form-a.pdf"]

    def test_assign_templates_when_no_templates_then_raises(self):
        with pytest.raises(NoTemplate):
            assign_templates([StudentInfo(10, "S")], [])
