"""
Tests for the feedback composer: response document layout, rubric page and
storage of the result.
"""

import random
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import fitz  # PyMuPDF
import pytest

from examscan_toolkit.core.models import Comment, CommentFormat, Draft, RubricCriterion, RubricLevel
from examscan_toolkit.errors import NoPages, NoSubmission
from examscan_toolkit.feedback import compose_feedback, mark_text, response_filename, rubric_rows
from examscan_toolkit.feedback.rubric import format_score
from examscan_toolkit.ports import BlobKey
from examscan_toolkit.scanning.reconcile import SubmissionReconciler


@pytest.fixture
def rubric_store(store):
    store.add_rubric_criterion(RubricCriterion(1, 7, "Clarity", sort_order=1))
    store.add_rubric_criterion(RubricCriterion(2, 7, "Method", sort_order=0))
    store.add_rubric_criterion(RubricCriterion(3, 8, "Other exam criterion"))
    store.add_rubric_level(RubricLevel(1, 1, 0.0, "Unclear"))
    store.add_rubric_level(RubricLevel(2, 1, 2.0, "Clear"))
    store.add_rubric_level(RubricLevel(3, 2, 1.5, "Sound"))
    store.add_rubric_level(RubricLevel(4, 3, 1.0, "Ok"))
    return store


@pytest.fixture
def graded_draft(rubric_store, blobs, scan_factory, fixed_clock, tmp_path: Path) -> Draft:
    """Draft of student 10 with two scanned pages and comments of every format."""
    store = rubric_store
    reconciler = SubmissionReconciler(store, blobs, rng=random.Random(3), clock=fixed_clock)
    exam = store.get_exam(7)
    for page_no, name in ((1, "10-5-1.png"), (2, "10-5-1b.png")):
        reconciler.reconcile(exam, 10, page_no, scan_factory(tmp_path / "scans", name), None, actor_id=2)

    draft = store.drafts_for_submission(store.find_submission(7, 10).id)[0]
    store.add_comment(Comment(1, draft.id, 1, 0.1, 0.1, "Good start", CommentFormat.TEXT))
    store.add_comment(Comment(2, draft.id, 1, 0.5, 0.5, "well argued", CommentFormat.MARK, level_id=2))
    store.add_comment(Comment(3, draft.id, 2, 0.2, 0.3, format=CommentFormat.CHECK))
    store.add_comment(Comment(4, draft.id, 2, 0.6, 0.3, format=CommentFormat.CROSS))
    store.add_comment(Comment(5, draft.id, 0, 0.5, 0.5, "general note"))
    return draft


class TestComposeFeedback:
    """Tests for compose_feedback()."""

    def test_compose_when_pages_and_comments_then_one_a4_page_per_scan(
        self, config, rubric_store, blobs, graded_draft, tmp_path: Path
    ):
        # Act
        path = compose_feedback(
            graded_draft.id, 10, config=config, store=rubric_store, blobs=blobs, output_dir=tmp_path / "out"
        )

        # Assert
        assert path.name == response_filename(7, graded_draft.id)
        with fitz.open(str(path)) as doc:
            assert doc.page_count == 2
            assert doc[0].rect.width == pytest.approx(595.27, abs=0.5)
            assert doc[0].rect.height == pytest.approx(841.89, abs=0.5)
            assert len(list(doc[0].annots())) == 2
            assert len(list(doc[1].annots())) == 0

    def test_compose_when_rubric_exported_then_rubric_page_appended(
        self, config, rubric_store, blobs, graded_draft, tmp_path: Path
    ):
        rubric_store.put_exam(replace(rubric_store.get_exam(7), download_rubric_pdf=True))

        path = compose_feedback(
            graded_draft.id, 10, config=config, store=rubric_store, blobs=blobs, output_dir=tmp_path / "out"
        )

        with fitz.open(str(path)) as doc:
            assert doc.page_count == 3
            text = doc[2].get_text()
        assert "Rubric" in text
        assert "Clear (2 pts.)" in text
        assert "Other exam criterion" not in text

    def test_compose_when_done_then_stored_in_response_area(
        self, config, rubric_store, blobs, graded_draft, tmp_path: Path
    ):
        path = compose_feedback(
            graded_draft.id, 10, config=config, store=rubric_store, blobs=blobs, output_dir=tmp_path / "out"
        )

        key = BlobKey("response", 10, path.name)
        assert blobs.exists(key)
        stored = blobs.get(key.hash)
        assert stored.is_pdf
        assert blobs.read_bytes(key.hash) == path.read_bytes()

    def test_compose_when_submission_has_no_pages_then_no_pages(
        self, config, store, blobs, fixed_clock, tmp_path: Path
    ):
        reconciler = SubmissionReconciler(store, blobs, rng=random.Random(3), clock=fixed_clock)
        submission = reconciler.get_or_create_submission(store.get_exam(7), 11, actor_id=2)
        draft = store.drafts_for_submission(submission.id)[0]

        with pytest.raises(NoPages):
            compose_feedback(draft.id, 11, config=config, store=store, blobs=blobs, output_dir=tmp_path)

    def test_compose_when_draft_orphaned_then_no_submission(self, config, store, blobs, tmp_path: Path):
        now = datetime(2025, 3, 14)
        draft = store.insert_draft(Draft(0, 7, 999, 0, 0.0, 1, now, now))

        with pytest.raises(NoSubmission):
            compose_feedback(draft.id, 10, config=config, store=store, blobs=blobs, output_dir=tmp_path)


class TestRubricText:
    """Tests for mark_text() / rubric_rows() / format_score()."""

    def test_mark_text_when_level_known_then_score_over_max(self, rubric_store):
        comment = Comment(2, 1, 1, 0.5, 0.5, "well argued", CommentFormat.MARK, level_id=2)
        assert mark_text(comment, rubric_store) == "Clarity: 2/2\nClear\nComment: well argued"

    def test_mark_text_when_level_unknown_then_none(self, rubric_store):
        comment = Comment(2, 1, 1, 0.5, 0.5, "x", CommentFormat.MARK, level_id=77)
        assert mark_text(comment, rubric_store) is None

    def test_rubric_rows_when_criteria_then_sorted_by_order_and_score(self, rubric_store):
        assert rubric_rows(rubric_store, 7) == [
            ["Method", "Sound (1.5 pts.)"],
            ["Clarity", "Unclear (0 pts.)", "Clear (2 pts.)"],
        ]

    def test_rubric_rows_when_other_exam_requested_then_only_its_criteria(self, rubric_store):
        assert rubric_rows(rubric_store, 8) == [["Other exam criterion", "Ok (1 pts.)"]]
        assert rubric_rows(rubric_store, 99) == []

    def test_format_score(self):
        assert format_score(2.0) == "2"
        assert format_score(1.25) in ("1.2", "1.3")
        assert format_score(0.0) == "0"
