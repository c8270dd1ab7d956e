"""
Module: config

Purpose:
    Explicit engine configuration passed into every top-level operation.
    Immutable, validated on construction, loadable from a JSON file.

Key Classes:
    - PrinterProfile: lp options for one named printer
    - EngineConfig: Main configuration

Key Functions:
    - load_config(): Read an EngineConfig from JSON

Dependencies:
    - dataclasses (std)
    - json (std)
    - pathlib (std)

Used By:
    - printing.controller, scanning.controller, feedback.composer
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_ENROL_INCLUDES: Tuple[str, ...] = ("manual", "self", "meta", "database")
DEFAULT_PRINTER_OPTIONS: Tuple[str, ...] = (
    "StapleLocation=UpperLeft",
    "fit-to-page",
    "media=Letter",
)
PAGE_SIZES = ("a4", "letter")


@dataclass(frozen=True)
class PrinterProfile:
    """
    lp options for one printer.

    Example:
        >>> PrinterProfile("front-desk", ("PageSize=Letter", "Duplex=none")).options
        ('PageSize=Letter', 'Duplex=none')
    """

    name: str
    options: Tuple[str, ...] = DEFAULT_PRINTER_OPTIONS

    def __post_init__(self) -> None:
        if not self.name or self.name.strip() != self.name:
            raise ValueError(f"Invalid printer name: {self.name!r}")


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for printing, scan ingestion and feedback (immutable).

    Attributes:
        data_root: Parent directory for scratch workspaces (None = system temp)
        enrol_includes: Enrolment methods included in print rosters
        printing_enabled: Allow direct print-spooler submission
        printer_profiles: Per-printer lp options
        picture_dir: Root of the student picture repository
        default_picture: Placeholder photo for blank copies and unknown students
        logo_path: Institution logo drawn in headers and roster sheets
        include_logo: Draw the logo when it is configured
        require_anonymous_pages: Abort ingestion when a scan has no "_a" capture
        debug_printing: Build spooler commands without executing them
        qr_box_size: Pixels per QR module
        qr_border: Quiet zone width in modules
        page_size: Size of generated pages when no template page applies
        image_extensions: Scan file extensions considered by the ingester
        rng_seed: Seed for submission/draft sort keys (None = random)

    Example:
        >>> config = EngineConfig(printing_enabled=True,
        ...                       printer_profiles=(PrinterProfile("lab-1"),))
        >>> config.profile_for("lab-1").options[0]
        'StapleLocation=UpperLeft'
    """

    data_root: Optional[Path] = None
    enrol_includes: Tuple[str, ...] = DEFAULT_ENROL_INCLUDES

    # Printing
    printing_enabled: bool = False
    printer_profiles: Tuple[PrinterProfile, ...] = ()
    debug_printing: bool = False

    # Header resources
    picture_dir: Optional[Path] = None
    default_picture: Optional[Path] = None
    logo_path: Optional[Path] = None
    include_logo: bool = False
    qr_box_size: int = 10
    qr_border: int = 2
    page_size: str = "a4"

    # Scan ingestion
    require_anonymous_pages: bool = False
    image_extensions: Tuple[str, ...] = (".png", ".jpg", ".jpeg")

    rng_seed: Optional[int] = None

    extras: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not self.enrol_includes:
            raise ValueError("enrol_includes cannot be empty")
        if self.qr_box_size <= 0:
            raise ValueError(f"qr_box_size must be positive: {self.qr_box_size}")
        if self.qr_border < 0:
            raise ValueError(f"qr_border must be non-negative: {self.qr_border}")
        if self.page_size not in PAGE_SIZES:
            raise ValueError(f"page_size must be one of {PAGE_SIZES}: {self.page_size!r}")
        names = [p.name for p in self.printer_profiles]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate printer profiles: {names}")

    @property
    def printer_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.printer_profiles)

    def profile_for(self, printer: str) -> PrinterProfile:
        """Profile of a configured printer, or the default options for unknown ones."""
        for profile in self.printer_profiles:
            if profile.name == printer:
                return profile
        return PrinterProfile(printer)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EngineConfig:
        """
        Build a configuration from a plain dictionary (e.g. parsed JSON).

        Unknown keys are kept in ``extras`` and logged.
        """
        known = {f for f in cls.__dataclass_fields__ if f != "extras"}
        kwargs: Dict[str, Any] = {}
        extras: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                extras[key] = value
                continue
            if key in ("data_root", "picture_dir", "default_picture", "logo_path"):
                value = Path(value) if value else None
            elif key in ("enrol_includes", "image_extensions"):
                value = _split_list(value)
            elif key == "printer_profiles":
                value = tuple(_profile_from_value(name, opts) for name, opts in _iter_profiles(value))
            kwargs[key] = value
        if extras:
            logger.warning(f"Ignoring unknown configuration keys: {sorted(extras)}")
        return cls(extras=extras, **kwargs)


def load_config(path: Path) -> EngineConfig:
    """
    Load configuration from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the JSON is invalid or a value fails validation
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid configuration file {path}: {e}") from e
    config = EngineConfig.from_dict(data)
    logger.debug(f"Loaded configuration from {path}")
    return config


def _split_list(value: Any) -> Tuple[str, ...]:
    # "manual,self" and ["manual", "self"] are both accepted
    if isinstance(value, str):
        return tuple(v.strip() for v in value.split(",") if v.strip())
    return tuple(value)


def _iter_profiles(value: Any):
    if isinstance(value, dict):
        return value.items()
    return ((item["name"], item.get("options")) for item in value)


def _profile_from_value(name: str, options: Any) -> PrinterProfile:
    if options is None:
        return PrinterProfile(name)
    return PrinterProfile(name, _split_list(options))
