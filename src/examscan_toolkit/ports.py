"""
Module: ports

Purpose:
    Abstract interfaces for the collaborators the engine consumes: roster
    lookup, blob storage, print spooler and notification delivery.
    Concrete implementations live in storage/ and printing/; tests replace
    them with mocks.

Key Classes:
    - RosterSource: Enrolment and user lookup
    - BlobKey, StoredBlob: Scoped blob addressing and metadata
    - BlobStore: Store/fetch/delete files by scoped path hash
    - PrintSpooler: Submit a file to a named printer
    - Message, Notifier: Templated email/SMS delivery

Dependencies:
    - abc (std)
    - hashlib (std)

Used By:
    - storage.records, storage.blobs
    - printing.roster, printing.spooler, printing.notifications
    - scanning.reconcile, feedback.composer
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from examscan_toolkit.core.models import Enrolment, User

DEFAULT_COMPONENT = "examscan"


# ─────────────────────────────────────────────────────────────────────────────
# Roster
# ─────────────────────────────────────────────────────────────────────────────

class RosterSource(ABC):
    """Read access to users and course enrolments."""

    @abstractmethod
    def enrolments(self, course_id: int) -> List[Enrolment]:
        """
        Enrolments of a course in enrolment order.

        Args:
            course_id: Course to list

        Returns:
            Every enrolment row, one user may appear more than once
        """

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Look up a user, None when unknown."""


# ─────────────────────────────────────────────────────────────────────────────
# Blob storage
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BlobKey:
    """
    Scoped location of a stored file.

    The blob hash is the SHA-1 of the scoped path, so storing a file at
    the same location twice replaces the previous content.

    Example:
        >>> key = BlobKey(area="pages", item_id=3, filename="10-5-1.png")
        >>> key.scoped_path
        '/examscan/pages/3/10-5-1.png'
    """

    area: str
    item_id: int
    filename: str
    filepath: str = "/"
    component: str = DEFAULT_COMPONENT

    def __post_init__(self) -> None:
        if not self.filename or "/" in self.filename:
            raise ValueError(f"Invalid blob filename: {self.filename!r}")
        if not (self.filepath.startswith("/") and self.filepath.endswith("/")):
            raise ValueError(f"filepath must start and end with '/': {self.filepath!r}")

    @property
    def scoped_path(self) -> str:
        return f"/{self.component}/{self.area}/{self.item_id}{self.filepath}{self.filename}"

    @property
    def hash(self) -> str:
        return hashlib.sha1(self.scoped_path.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class StoredBlob:
    """Metadata of a stored file."""

    hash: str
    component: str
    area: str
    item_id: int
    filepath: str
    filename: str
    mimetype: str
    size: int
    created_at: datetime

    @property
    def key(self) -> BlobKey:
        return BlobKey(
            area=self.area,
            item_id=self.item_id,
            filename=self.filename,
            filepath=self.filepath,
            component=self.component,
        )

    @property
    def is_pdf(self) -> bool:
        return self.mimetype == "application/pdf"


class BlobStore(ABC):
    """Store for uploaded and generated files."""

    @abstractmethod
    def store_file(self, key: BlobKey, source: Path, *, mimetype: Optional[str] = None) -> StoredBlob:
        """
        Copy a file into the store, replacing whatever was at ``key``.

        Raises:
            FileNotFoundError: If ``source`` does not exist
        """

    @abstractmethod
    def store_bytes(self, key: BlobKey, data: bytes, *, mimetype: Optional[str] = None) -> StoredBlob:
        """Store raw content at ``key``."""

    @abstractmethod
    def get(self, blob_hash: str) -> StoredBlob:
        """
        Metadata for a hash.

        Raises:
            NotFoundError: If nothing is stored under the hash
        """

    @abstractmethod
    def exists(self, key: BlobKey) -> bool:
        """True when a file is stored at ``key``."""

    @abstractmethod
    def delete(self, key: BlobKey) -> bool:
        """Remove the file at ``key``; False when there was nothing to remove."""

    @abstractmethod
    def fetch_to_path(self, blob_hash: str, dest_dir: Path, prefix: str = "") -> Path:
        """
        Copy stored content into ``dest_dir``.

        Returns:
            Path of the copy, named ``prefix + filename`` (cleaned)
        """

    @abstractmethod
    def list_area(self, area: str, item_id: int, component: str = DEFAULT_COMPONENT) -> List[StoredBlob]:
        """Files stored under (component, area, item), sorted by filename."""


# ─────────────────────────────────────────────────────────────────────────────
# Printing and messaging
# ─────────────────────────────────────────────────────────────────────────────

class PrintSpooler(ABC):
    """Print queue submission."""

    @abstractmethod
    def submit(self, printer: str, file: Path) -> Optional[str]:
        """
        Send a file to a printer.

        Returns:
            Spooler output, or None on failure
        """


@dataclass(frozen=True)
class Message:
    """Templated notification with plain and HTML bodies."""

    subject: str
    text: str
    html: str
    recipients: Tuple[int, ...] = ()


class Notifier(ABC):
    """Email/SMS delivery."""

    @abstractmethod
    def send(self, message: Message) -> bool:
        """Deliver a message to its recipients; False on failure."""

    def send_sms(self, number: str, text: str) -> bool:
        """Deliver a short text message; not every notifier supports it."""
        return False
