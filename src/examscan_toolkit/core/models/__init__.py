"""
Core Models Package

Immutable data models shared by the printing, scanning and feedback
pipelines. Updates create new instances with ``dataclasses.replace``; the
record store owns the current version of every record.
"""

from .identifiers import DuplexSide, PageIdentifier
from .exams import (
    CAP_DOWNLOAD_EXAM,
    CAP_GRADE,
    CAP_RECEIVE_NOTIFICATION,
    CAP_SUBMIT,
    CAP_SUPERVISE,
    Category,
    Course,
    Enrolment,
    Exam,
    ExamMode,
    ExamStatus,
    StudentInfo,
    TemplateRef,
    User,
)
from .records import (
    Comment,
    CommentFormat,
    Draft,
    Page,
    RubricCriterion,
    RubricLevel,
    Submission,
    SubmissionStatus,
)

__all__ = [
    "CAP_DOWNLOAD_EXAM",
    "CAP_GRADE",
    "CAP_RECEIVE_NOTIFICATION",
    "CAP_SUBMIT",
    "CAP_SUPERVISE",
    "DuplexSide",
    "PageIdentifier",
    "Category",
    "Course",
    "Enrolment",
    "Exam",
    "ExamMode",
    "ExamStatus",
    "StudentInfo",
    "TemplateRef",
    "User",
    "Comment",
    "CommentFormat",
    "Draft",
    "Page",
    "RubricCriterion",
    "RubricLevel",
    "Submission",
    "SubmissionStatus",
]
