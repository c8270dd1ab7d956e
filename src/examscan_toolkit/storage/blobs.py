"""
Module: storage.blobs

Purpose:
    On-disk blob store. Files are addressed by the SHA-1 of their scoped
    path (component/area/item/filepath/filename); each blob keeps a JSON
    metadata sidecar next to its content.

    Layout:
        <root>/
        ├── 3f/
        │   ├── 3f2a...c1          # content
        │   └── 3f2a...c1.json     # StoredBlob metadata
        └── ...

Key Classes:
    - FileBlobStore: BlobStore implementation backed by a directory

Dependencies:
    - shutil, tempfile, mimetypes (std)
    - core.utils.serialization: Metadata sidecars

Used By:
    - printing.roster: Template and avatar fetches
    - scanning.reconcile: Page image storage
    - feedback.composer: Response document storage
"""

from __future__ import annotations

import json
import logging
import mimetypes
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from examscan_toolkit.core.utils import clean_filename, record_from_dict, record_to_dict
from examscan_toolkit.errors import NotFoundError
from examscan_toolkit.ports import DEFAULT_COMPONENT, BlobKey, BlobStore, StoredBlob

logger = logging.getLogger(__name__)


class FileBlobStore(BlobStore):
    """
    Blob store rooted at a directory.

    Example:
        >>> store = FileBlobStore(Path("data/blobs"))
        >>> blob = store.store_file(BlobKey("pages", 3, "10-5-1.png"), Path("10-5-1.png"))
        >>> store.exists(blob.key)
        True
    """

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    # ── writes ──────────────────────────────────────────────────────────────

    def store_file(self, key: BlobKey, source: Path, *, mimetype: Optional[str] = None) -> StoredBlob:
        if not source.is_file():
            raise FileNotFoundError(f"Cannot store missing file: {source}")
        return self.store_bytes(key, source.read_bytes(), mimetype=mimetype)

    def store_bytes(self, key: BlobKey, data: bytes, *, mimetype: Optional[str] = None) -> StoredBlob:
        if self.exists(key):
            logger.debug(f"Replacing blob at {key.scoped_path}")
            self.delete(key)

        blob = StoredBlob(
            hash=key.hash,
            component=key.component,
            area=key.area,
            item_id=key.item_id,
            filepath=key.filepath,
            filename=key.filename,
            mimetype=mimetype or _guess_mimetype(key.filename),
            size=len(data),
            created_at=datetime.now(),
        )
        content_path = self._content_path(blob.hash)
        content_path.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write(content_path, data)
        _atomic_write(
            self._meta_path(blob.hash),
            json.dumps(record_to_dict(blob), indent=2).encode("utf-8"),
        )
        logger.debug(f"Stored {blob.size} bytes at {key.scoped_path} ({blob.hash[:10]})")
        return blob

    def delete(self, key: BlobKey) -> bool:
        content_path = self._content_path(key.hash)
        meta_path = self._meta_path(key.hash)
        if not meta_path.exists():
            return False
        content_path.unlink(missing_ok=True)
        meta_path.unlink()
        return True

    # ── reads ───────────────────────────────────────────────────────────────

    def exists(self, key: BlobKey) -> bool:
        return self._meta_path(key.hash).exists()

    def get(self, blob_hash: str) -> StoredBlob:
        meta_path = self._meta_path(blob_hash)
        if not meta_path.exists():
            raise NotFoundError(f"No blob stored under hash {blob_hash}")
        data = json.loads(meta_path.read_text(encoding="utf-8"))
        return record_from_dict(StoredBlob, data)

    def read_bytes(self, blob_hash: str) -> bytes:
        self.get(blob_hash)
        return self._content_path(blob_hash).read_bytes()

    def fetch_to_path(self, blob_hash: str, dest_dir: Path, prefix: str = "") -> Path:
        blob = self.get(blob_hash)
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest = dest_dir / clean_filename(prefix + blob.filename)
        shutil.copyfile(self._content_path(blob_hash), dest)
        return dest

    def list_area(self, area: str, item_id: int, component: str = DEFAULT_COMPONENT) -> List[StoredBlob]:
        blobs = []
        for meta_path in self.root.glob("*/*.json"):
            blob = record_from_dict(StoredBlob, json.loads(meta_path.read_text(encoding="utf-8")))
            if blob.component == component and blob.area == area and blob.item_id == item_id:
                blobs.append(blob)
        return sorted(blobs, key=lambda b: (b.filepath, b.filename))

    # ── paths ───────────────────────────────────────────────────────────────

    def _content_path(self, blob_hash: str) -> Path:
        return self.root / blob_hash[:2] / blob_hash

    def _meta_path(self, blob_hash: str) -> Path:
        return self.root / blob_hash[:2] / f"{blob_hash}.json"


def _guess_mimetype(filename: str) -> str:
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def _atomic_write(path: Path, data: bytes) -> None:
    with tempfile.NamedTemporaryFile(mode="wb", dir=path.parent, delete=False) as f:
        f.write(data)
        temp_path = Path(f.name)
    temp_path.replace(path)
