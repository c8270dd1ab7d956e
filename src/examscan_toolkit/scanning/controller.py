"""
Module: scanning.controller

Purpose:
    Orchestrate a scan ingest run.
    Validate → Unpack batch → Decode → Reconcile pages → Report

    Structural problems (unknown exam or course, peer review mode) raise.
    Everything else ends up in the IngestReport: per-scan anomalies are
    counted as ignored, and a missing required anonymous capture aborts
    the rest of the batch while keeping the pages already persisted.

Key Functions:
    - ingest_scans(): Main entry point

Dependencies:
    - scanning.ingest, scanning.reconcile
    - workspace: Scratch directory for extracted archives
    - zipfile (std): Zipped batches

Used By:
    - examscan_toolkit: Public API
"""

from __future__ import annotations

import logging
import random
import time
import zipfile
from datetime import datetime
from pathlib import Path, PurePath
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from examscan_toolkit.config import EngineConfig
from examscan_toolkit.core.codec import anonymous_counterpart
from examscan_toolkit.core.models import ExamMode, Page
from examscan_toolkit.errors import (
    DuplicateScan,
    ExamToolkitError,
    ExternalFailure,
    MissingScanCounterpart,
    NotImplementedMode,
)
from examscan_toolkit.ports import BlobStore
from examscan_toolkit.progress import ProgressCallback, report
from examscan_toolkit.storage import RecordStore
from examscan_toolkit.workspace import Workspace, scratch_workspace

from .ingest import IngestReport, decode_batch, detect_duplex, list_scan_files
from .reconcile import SubmissionReconciler

logger = logging.getLogger(__name__)

NO_PAGES_MESSAGE = "no pages to process"


def ingest_scans(
    exam_id: int,
    batch_path: Path,
    *,
    config: EngineConfig,
    store: RecordStore,
    blobs: BlobStore,
    actor_id: int,
    progress: Optional[ProgressCallback] = None,
    rng: Optional[random.Random] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> IngestReport:
    """
    Ingest a batch of scanned page images.

    Args:
        exam_id: Exam the batch belongs to
        batch_path: Directory of images, or a .zip archive of them
        config: Engine configuration
        store: Record store
        blobs: Blob store receiving page images
        actor_id: User running the ingest
        progress: Progress callback
        rng: Source of sort keys (defaults to config.rng_seed)
        clock: Timestamp source

    Returns:
        IngestReport; ``as_tuple()`` gives (success, message, matched, ignored)

    Raises:
        NotFoundError: Exam or course missing
        NotImplementedMode: Peer review exam

    Example:
        >>> report = ingest_scans(7, Path("scans.zip"), config=cfg, store=store,
        ...                       blobs=blobs, actor_id=2)
        >>> report.as_tuple()
        (True, '6 pages processed, 0 ignored', 6, 0)
    """
    start_time = time.perf_counter()

    exam = store.get_exam(exam_id)
    store.get_course(exam.course_id)
    if exam.mode is ExamMode.PEER_REVIEW:
        raise NotImplementedMode(f"Scan ingestion is not implemented for peer review exam {exam.id}")

    logger.info(f"Starting scan ingest for exam {exam.id} from {batch_path}")

    with scratch_workspace(config.data_root, f"scan-{exam.id}") as ws:
        try:
            batch_dir, collisions = _unpack_batch(batch_path, ws, config.image_extensions)
            files = list_scan_files(batch_dir, config.image_extensions)
        except (zipfile.BadZipFile, OSError) as e:
            failure = ExternalFailure(batch_path.name, f"could not read scan batch: {e}")
            logger.error(str(failure))
            return IngestReport(success=False, message=str(failure), errors=(failure,))

        if not files:
            logger.warning(f"Scan batch {batch_path.name} has no page images")
            return IngestReport(success=False, message=NO_PAGES_MESSAGE)

        duplex = detect_duplex(files)
        batch = decode_batch(files, exam, store, duplex=duplex)
        reconciler = SubmissionReconciler(
            store,
            blobs,
            rng=rng or random.Random(config.rng_seed),
            clock=clock,
        )

        pages: List[Page] = []
        errors: List[ExamToolkitError] = [*collisions, *batch.errors]
        ignored = batch.ignored + len(collisions)
        total = len(batch.entries)

        for index, entry in enumerate(batch.entries, start=1):
            report(progress, index, total, entry.filename)

            if entry.anonymous_path is None and config.require_anonymous_pages:
                failure = MissingScanCounterpart(entry.filename, anonymous_counterpart(entry.filename))
                logger.error(f"Aborting ingest after {len(pages)} pages: {failure}")
                errors.append(failure)
                return IngestReport(
                    success=False,
                    message=str(failure),
                    matched=len(pages),
                    ignored=ignored,
                    errors=tuple(errors),
                    pages=tuple(pages),
                )

            try:
                page = reconciler.reconcile(
                    exam,
                    entry.identifier.student_id,
                    entry.identifier.page,
                    entry.path,
                    entry.anonymous_path,
                    actor_id,
                )
            except OSError as e:
                failure = ExternalFailure(entry.filename, f"could not store scan: {e}")
                logger.error(str(failure))
                errors.append(failure)
                ignored += 1
                continue
            pages.append(page)

    elapsed = time.perf_counter() - start_time
    message = f"{len(pages)} pages processed, {ignored} ignored"
    logger.info(f"Scan ingest for exam {exam.id} completed in {elapsed:.2f}s: {message}")

    return IngestReport(
        success=True,
        message=message,
        matched=len(pages),
        ignored=ignored,
        errors=tuple(errors),
        pages=tuple(pages),
    )


def _unpack_batch(
    batch_path: Path,
    ws: Workspace,
    extensions: Iterable[str],
) -> Tuple[Path, List[DuplicateScan]]:
    """
    Directory holding the batch images; archives are flattened into the workspace.

    Image members from different folders that share a file name collide
    once flattened: the later member wins and the earlier one is returned
    as a DuplicateScan.
    """
    if batch_path.is_dir():
        return batch_path, []
    if batch_path.suffix.lower() != ".zip":
        raise OSError(f"Not a directory or .zip archive: {batch_path}")

    allowed = {ext.lower() for ext in extensions}
    target = ws.subdir("batch")
    members: Dict[str, str] = {}
    collisions: List[DuplicateScan] = []
    with zipfile.ZipFile(batch_path) as archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            name = PurePath(info.filename).name
            if not name or name.startswith("."):
                continue
            if name in members and PurePath(name).suffix.lower() in allowed:
                collision = DuplicateScan(members[name], info.filename)
                logger.warning(f"Ignoring scan: {collision}")
                collisions.append(collision)
            members[name] = info.filename
            (target / name).write_bytes(archive.read(info))
    logger.debug(f"Extracted {batch_path.name} into {target}")
    return target, collisions
