"""
Printing Package

Personalized exam generation: roster resolution, identifier headers,
per-student PDF assembly and delivery (printer, archive or merged PDF).
"""

from .assembler import PersonalizedCopy, assemble_copy
from .controller import GenerationResult, OutputMode, generate_personalized_exam
from .header import HeaderContext
from .notifications import total_pages_to_print
from .roster import Roster, build_roster
from .spooler import LpSpooler

__all__ = [
    "GenerationResult",
    "HeaderContext",
    "LpSpooler",
    "OutputMode",
    "PersonalizedCopy",
    "Roster",
    "assemble_copy",
    "build_roster",
    "generate_personalized_exam",
    "total_pages_to_print",
]
