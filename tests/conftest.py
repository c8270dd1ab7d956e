import pytest
import sys
from datetime import datetime
from pathlib import Path

import fitz  # PyMuPDF
from PIL import Image

# Add src to sys.path so we can import examscan_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from examscan_toolkit.config import EngineConfig
from examscan_toolkit.core.models import (
    CAP_DOWNLOAD_EXAM,
    CAP_GRADE,
    CAP_RECEIVE_NOTIFICATION,
    CAP_SUBMIT,
    CAP_SUPERVISE,
    Category,
    Course,
    Enrolment,
    Exam,
    User,
)
from examscan_toolkit.ports import BlobKey
from examscan_toolkit.storage import FileBlobStore, RecordStore

COURSE_ID = 5
EXAM_ID = 7
STUDENT_IDS = (10, 11, 12)
TEACHER_ID = 2
SUPERVISOR_ID = 3
FIXED_NOW = datetime(2025, 3, 14, 9, 30)


def make_pdf(path: Path, pages: int, size=(595, 842)) -> Path:
    """Write a PDF with ``pages`` pages, each carrying its page number."""
    doc = fitz.open()
    for number in range(1, pages + 1):
        page = doc.new_page(width=size[0], height=size[1])
        page.insert_text((72, 72), f"Question page {number}")
    path.parent.mkdir(parents=True, exist_ok=True)
    doc.save(str(path))
    doc.close()
    return path


def make_scan(directory: Path, name: str, color: str = "white") -> Path:
    """Write a small PNG scan named ``name``."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    Image.new("RGB", (60, 85), color=color).save(path)
    return path


# Common test fixtures
@pytest.fixture
def config(tmp_path: Path) -> EngineConfig:
    return EngineConfig(data_root=tmp_path / "work", rng_seed=1234)


@pytest.fixture
def blobs(tmp_path: Path) -> FileBlobStore:
    return FileBlobStore(tmp_path / "blobs")


@pytest.fixture
def template_pdf(tmp_path: Path) -> Path:
    """Two page exam template."""
    return make_pdf(tmp_path / "templates" / "final.pdf", pages=2)


@pytest.fixture
def store(blobs: FileBlobStore, template_pdf: Path) -> RecordStore:
    """
    Course 5 with students 10, 11, 12, a teacher (2) and a supervisor (3).

    Exam 7 uses a two page template, printed double sided.
    """
    store = RecordStore()
    store.put_category(Category(id=1, name="Mathematics"))
    store.put_course(Course(id=COURSE_ID, fullname="Algebra", shortname="ALG 1", category_id=1))

    students = [
        User(10, "Ana", "Rojas", id_number="20231010"),
        User(11, "Benja", "Soto", id_number="20231011"),
        User(12, "Carla", "Vera", id_number="20231012"),
    ]
    for user in students:
        store.put_user(user)
        store.add_enrolment(Enrolment(user.id, COURSE_ID, "manual", frozenset({CAP_SUBMIT})))

    store.put_user(User(TEACHER_ID, "Tomas", "Perez", email="tperez@example.edu"))
    store.add_enrolment(
        Enrolment(
            TEACHER_ID,
            COURSE_ID,
            "manual",
            frozenset({CAP_GRADE, CAP_DOWNLOAD_EXAM, CAP_RECEIVE_NOTIFICATION}),
        )
    )
    store.put_user(User(SUPERVISOR_ID, "Sofia", "Lagos"))
    store.add_enrolment(
        Enrolment(SUPERVISOR_ID, COURSE_ID, "manual", frozenset({CAP_GRADE, CAP_SUPERVISE}))
    )

    template = blobs.store_file(BlobKey("exam", EXAM_ID, "final.pdf"), template_pdf)
    store.put_exam(
        Exam(
            id=EXAM_ID,
            course_id=COURSE_ID,
            name="Final exam",
            total_pages=2,
            duplex=True,
            template_files=(template.hash,),
            total_students=3,
        )
    )
    return store


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def pdf_factory():
    return make_pdf


@pytest.fixture
def scan_factory():
    return make_scan
