"""
Unit Tests for the lp print spooler.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

from examscan_toolkit.config import EngineConfig, PrinterProfile
from examscan_toolkit.printing.spooler import LpSpooler, build_lp_command

PDF = Path("10-5-2.pdf")


class TestBuildLpCommand:
    """Tests for build_lp_command()."""

    def test_build_lp_command_when_profile_options_then_each_prefixed(self):
        command = build_lp_command(PrinterProfile("lab-1", ("fit-to-page", "media=A4")), PDF)
        assert command == ["lp", "-d", "lab-1", "-o", "fit-to-page", "-o", "media=A4", "10-5-2.pdf"]


class TestLpSpooler:
    """Tests for LpSpooler.submit()."""

    def test_submit_when_debug_printing_then_command_returned_without_running(self):
        spooler = LpSpooler(EngineConfig(debug_printing=True))
        with patch("examscan_toolkit.printing.spooler.subprocess.run") as run:
            result = spooler.submit("lab-1", PDF)
        run.assert_not_called()
        assert result.startswith("lp -d lab-1 -o StapleLocation=UpperLeft")

    def test_submit_when_lp_succeeds_then_stdout_returned(self):
        spooler = LpSpooler(EngineConfig())
        completed = MagicMock(returncode=0, stdout="request id is lab-1-42 (1 file(s))\n", stderr="")
        with patch("examscan_toolkit.printing.spooler.subprocess.run", return_value=completed) as run:
            result = spooler.submit("lab-1", PDF)
        assert result == "request id is lab-1-42 (1 file(s))"
        assert run.call_args.args[0][:3] == ["lp", "-d", "lab-1"]

    def test_submit_when_lp_fails_then_none(self):
        spooler = LpSpooler(EngineConfig())
        completed = MagicMock(returncode=1, stdout="", stderr="lp: The printer or class does not exist.")
        with patch("examscan_toolkit.printing.spooler.subprocess.run", return_value=completed):
            assert spooler.submit("nowhere", PDF) is None

    def test_submit_when_lp_missing_then_none(self):
        spooler = LpSpooler(EngineConfig())
        with patch("examscan_toolkit.printing.spooler.subprocess.run", side_effect=FileNotFoundError("lp")):
            assert spooler.submit("lab-1", PDF) is None

    def test_submit_when_lp_times_out_then_none(self):
        spooler = LpSpooler(EngineConfig())
        error = subprocess.TimeoutExpired(cmd="lp", timeout=60)
        with patch("examscan_toolkit.printing.spooler.subprocess.run", side_effect=error):
            assert spooler.submit("lab-1", PDF) is None

    def test_submit_when_printer_empty_then_none(self):
        assert LpSpooler(EngineConfig(debug_printing=True)).submit("", PDF) is None
