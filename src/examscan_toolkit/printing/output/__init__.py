"""
Output Package

Archive and merged-PDF outputs of a print run.
"""

from .merge import merge_documents
from .zip_writer import write_archive

__all__ = [
    "merge_documents",
    "write_archive",
]
