"""
Module: printing.spooler

Purpose:
    Submit generated PDFs to a CUPS printer with ``lp``. Printer specific
    options come from the configured printer profiles; unknown printers use
    the default profile. With ``debug_printing`` the command is built and
    returned without being executed.

Key Classes:
    - LpSpooler: PrintSpooler implementation

Key Functions:
    - build_lp_command(): Argument vector for one submission

Dependencies:
    - subprocess (std)

Used By:
    - printing.controller: PRINT output mode
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional

from examscan_toolkit.config import EngineConfig, PrinterProfile
from examscan_toolkit.ports import PrintSpooler

logger = logging.getLogger(__name__)

LP_TIMEOUT_SECONDS = 60


def build_lp_command(profile: PrinterProfile, file: Path) -> List[str]:
    """
    Argument vector for ``lp``.

    Example:
        >>> build_lp_command(PrinterProfile("lab-1", ("fit-to-page",)), Path("a.pdf"))
        ['lp', '-d', 'lab-1', '-o', 'fit-to-page', 'a.pdf']
    """
    command = ["lp", "-d", profile.name]
    for option in profile.options:
        command.extend(["-o", option])
    command.append(str(file))
    return command


class LpSpooler(PrintSpooler):
    """
    Print through the ``lp`` command line client.

    Example:
        >>> spooler = LpSpooler(EngineConfig(debug_printing=True))
        >>> spooler.submit("lab-1", Path("10-5-2.pdf"))
        'lp -d lab-1 -o StapleLocation=UpperLeft -o fit-to-page -o media=Letter 10-5-2.pdf'
    """

    def __init__(self, config: EngineConfig):
        self.config = config

    def submit(self, printer: str, file: Path) -> Optional[str]:
        if not printer:
            return None

        command = build_lp_command(self.config.profile_for(printer), file)
        command_line = shlex.join(command)

        if self.config.debug_printing:
            logger.info(f"Dry run: {command_line}")
            return command_line

        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=LP_TIMEOUT_SECONDS,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error(f"Could not run lp for {file.name}: {e}")
            return None

        if completed.returncode != 0:
            logger.error(f"lp failed for {file.name} ({completed.returncode}): {completed.stderr.strip()}")
            return None

        output = completed.stdout.strip()
        logger.debug(f"Spooled {file.name} on {printer}: {output}")
        return output or command_line
