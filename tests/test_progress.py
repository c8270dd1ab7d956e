"""
Tests for progress reporting helpers.
"""

import logging
from unittest.mock import MagicMock

from examscan_toolkit.progress import logging_progress, report
from examscan_toolkit.scanning import ingest_scans


class TestProgress:

    def test_report_when_no_callback_then_noop(self):
        report(None, 1, 2, "x")

    def test_report_when_callback_then_forwarded(self):
        callback = MagicMock()
        report(callback, 1, 2, "Rojas, Ana")
        callback.assert_called_once_with(1, 2, "Rojas, Ana")

    def test_logging_progress_when_called_then_logged(self, caplog):
        callback = logging_progress(logging.getLogger("print-run"))

        with caplog.at_level(logging.INFO, logger="print-run"):
            callback(2, 3, "Soto, Benja")

        assert "[2/3] Soto, Benja" in caplog.text

    def test_ingest_when_callback_given_then_one_update_per_page(
        self, config, store, blobs, scan_factory, fixed_clock, tmp_path
    ):
        # Arrange
        for name in ("10-5-1.png", "11-5-1.png"):
            scan_factory(tmp_path / "batch", name)
        callback = MagicMock()

        # Act
        ingest_scans(7, tmp_path / "batch", config=config, store=store, blobs=blobs,
                     actor_id=2, progress=callback, clock=fixed_clock)

        # Assert
        assert [c.args for c in callback.call_args_list] == [
            (1, 2, "10-5-1.png"),
            (2, 2, "11-5-1.png"),
        ]
