"""
Scanning Package

Scan batch ingestion: filename decoding, anonymous capture pairing and
reconciliation into submissions, drafts and pages.
"""

from .controller import ingest_scans
from .ingest import DecodedBatch, IngestReport, ScanEntry, decode_batch, detect_duplex, list_scan_files
from .reconcile import SubmissionReconciler

__all__ = [
    "DecodedBatch",
    "IngestReport",
    "ScanEntry",
    "SubmissionReconciler",
    "decode_batch",
    "detect_duplex",
    "ingest_scans",
    "list_scan_files",
]
