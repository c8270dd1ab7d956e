"""
Module: errors

Purpose:
    Error taxonomy shared by the printing, scanning and feedback pipelines.
    Structural precondition failures are raised; per-record anomalies are
    collected into reports by the batch operations.

Key Classes:
    - ExamToolkitError: Base class for all toolkit errors
    - ValidationError: Bad exam/course/capability precondition
    - UnknownStudent, DuplicateScan: Ignored scans (reported, non-fatal)
    - NotFoundError: Missing exam, course, category, submission or draft
    - ResourceError: Missing template, empty roster, missing scan counterpart
    - ParseError: Malformed scan filename or identifier (non-fatal in batches)
    - NotImplementedMode: Exam mode without an implementation (peer review)
    - ExternalFailure: Spooler, archive or notification failure

Dependencies:
    - (none)

Used By:
    - core.codec, printing, scanning, feedback
"""

from __future__ import annotations


class ExamToolkitError(Exception):
    """Base class for all toolkit errors."""
    pass


class ValidationError(ExamToolkitError):
    """Precondition failed before any side effect took place."""
    pass


class UnknownStudent(ValidationError):
    """A scanned page names a student or course that does not match the exam."""

    def __init__(self, filename: str, reason: str):
        super().__init__(f"{filename}: {reason}")
        self.filename = filename
        self.reason = reason


class DuplicateScan(ValidationError):
    """Two scans of a batch decode to the same page; the later one wins."""

    def __init__(self, superseded: str, winner: str):
        super().__init__(f"Scan {superseded} superseded by {winner}")
        self.superseded = superseded
        self.winner = winner


class NotFoundError(ExamToolkitError):
    """A required record does not exist."""
    pass


class NoSubmission(NotFoundError):
    """The draft has no backing submission."""
    pass


class NoPages(NotFoundError):
    """The submission has no stored pages for the student."""
    pass


class ResourceError(ExamToolkitError):
    """A resource needed by the current operation is missing."""
    pass


class NoStudents(ResourceError):
    """The filtered roster is empty."""
    pass


class NoTemplate(ResourceError):
    """The exam has no PDF template among its files."""
    pass


class MissingScanCounterpart(ResourceError):
    """A scanned page has no anonymized counterpart when one is required."""

    def __init__(self, filename: str, counterpart: str):
        super().__init__(
            f"Scan {filename} has no anonymized counterpart {counterpart}"
        )
        self.filename = filename
        self.counterpart = counterpart


class ParseError(ExamToolkitError):
    """A page identifier or scan filename could not be parsed."""

    def __init__(self, raw: str, reason: str):
        super().__init__(f"{reason}: {raw!r}")
        self.raw = raw
        self.reason = reason


class InvalidIdentifier(ParseError):
    """Wrong number of identifier components."""

    def __init__(self, raw: str, reason: str = "Invalid identifier"):
        super().__init__(raw, reason)


class NonNumericPage(ParseError):
    """Page component is not a base-10 integer after marker stripping."""

    def __init__(self, raw: str, reason: str = "Non numeric page"):
        super().__init__(raw, reason)


class NotImplementedMode(ExamToolkitError):
    """Operation requested for an exam mode that has no implementation."""
    pass


class ExternalFailure(ExamToolkitError):
    """
    A collaborator (print spooler, archive, notifier) failed.

    Reported per item; never unwinds persisted submissions or pages.
    """

    def __init__(self, item: str, message: str):
        super().__init__(f"{item}: {message}")
        self.item = item
        self.message = message
