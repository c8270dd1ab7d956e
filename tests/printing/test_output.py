"""
Unit Tests for archive and merged-PDF outputs.
"""

import zipfile
from pathlib import Path

import fitz  # PyMuPDF
import pytest

from examscan_toolkit.core.models import StudentInfo, TemplateRef
from examscan_toolkit.errors import ExternalFailure
from examscan_toolkit.printing.assembler import PersonalizedCopy
from examscan_toolkit.printing.output import merge_documents, write_archive


def _copy(path: Path, student_id: int = 10) -> PersonalizedCopy:
    return PersonalizedCopy(
        student=StudentInfo(student_id, "S"),
        template=TemplateRef("h", "t.pdf", path),
        path=path,
        page_count=2,
        identified_pages=1,
    )


class TestWriteArchive:
    """Tests for write_archive()."""

    def test_write_archive_when_student_list_then_list_first(self, pdf_factory, tmp_path: Path):
        # Arrange
        copies = [_copy(pdf_factory(tmp_path / f"{sid}-5-2.pdf", 2), sid) for sid in (10, 11)]
        student_list = pdf_factory(tmp_path / "000-studentslist.pdf", 1)

        # Act
        archive, failures = write_archive(tmp_path / "out" / "ALG_Final", copies, student_list=student_list)

        # Assert
        assert archive.name == "ALG_Final.zip"
        assert failures == []
        with zipfile.ZipFile(archive) as zf:
            assert zf.namelist() == ["000-studentslist.pdf", "10-5-2.pdf", "11-5-2.pdf"]

    def test_write_archive_when_copy_missing_then_reported_and_skipped(self, pdf_factory, tmp_path: Path):
        copies = [_copy(pdf_factory(tmp_path / "10-5-2.pdf", 2)), _copy(tmp_path / "11-5-2.pdf", 11)]

        archive, failures = write_archive(tmp_path / "a.zip", copies)

        assert [f.item for f in failures] == ["11-5-2.pdf"]
        with zipfile.ZipFile(archive) as zf:
            assert zf.namelist() == ["10-5-2.pdf"]


class TestMergeDocuments:
    """Tests for merge_documents()."""

    def test_merge_documents_when_all_readable_then_pages_concatenated(self, pdf_factory, tmp_path: Path):
        documents = [pdf_factory(tmp_path / "a.pdf", 1), pdf_factory(tmp_path / "b.pdf", 2)]

        merged, page_count, failures = merge_documents(documents, tmp_path / "out" / "ALG_Final")

        assert merged.name == "ALG_Final.pdf"
        assert page_count == 3
        assert failures == []
        with fitz.open(str(merged)) as doc:
            assert doc.page_count == 3

    def test_merge_documents_when_one_missing_then_failure_reported(self, pdf_factory, tmp_path: Path):
        documents = [pdf_factory(tmp_path / "a.pdf", 2), tmp_path / "gone.pdf"]

        _, page_count, failures = merge_documents(documents, tmp_path / "m.pdf")

        assert page_count == 2
        assert [f.item for f in failures] == ["gone.pdf"]

    def test_merge_documents_when_nothing_readable_then_raises(self, tmp_path: Path):
        with pytest.raises(ExternalFailure, match="no readable documents"):
            merge_documents([tmp_path / "gone.pdf"], tmp_path / "m.pdf")
