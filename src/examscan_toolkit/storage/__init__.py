"""
Storage Package

Record store (explicit indices, JSON snapshot) and on-disk blob store.
"""

from .blobs import FileBlobStore
from .records import PageKey, RecordStore

__all__ = [
    "FileBlobStore",
    "PageKey",
    "RecordStore",
]
