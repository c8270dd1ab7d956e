"""Top-level package for the exam scan toolkit.

Provides subpackages:
- examscan_toolkit.printing – personalized exam generation and delivery
- examscan_toolkit.scanning – scan batch ingestion and reconciliation
- examscan_toolkit.feedback – response documents for graded drafts
- examscan_toolkit.storage – record store and blob store
"""

from examscan_toolkit.config import EngineConfig, PrinterProfile, load_config
from examscan_toolkit.feedback import compose_feedback
from examscan_toolkit.printing import (
    GenerationResult,
    OutputMode,
    generate_personalized_exam,
    total_pages_to_print,
)
from examscan_toolkit.scanning import IngestReport, ingest_scans


def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from importlib.metadata import PackageNotFoundError, version as pkg_version
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        for line in pyproject.read_text().splitlines():
            if line.strip().startswith("version"):
                # Parse: version = "0.3.0"
                return line.split("=")[1].strip().strip('"').strip("'")

    try:
        return pkg_version("examscan-toolkit")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()
__all__: list[str] = [
    "__version__",
    "EngineConfig",
    "GenerationResult",
    "IngestReport",
    "OutputMode",
    "PrinterProfile",
    "compose_feedback",
    "generate_personalized_exam",
    "ingest_scans",
    "load_config",
    "total_pages_to_print",
]
