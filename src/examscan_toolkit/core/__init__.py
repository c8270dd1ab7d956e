"""
Core Package

Data models and the page identifier codec shared by the forward (printing)
and return (scanning) paths.

1. **Immutable records**
   - Every model is a frozen dataclass; updates go through
     ``dataclasses.replace`` and are committed by the record store.

2. **One identifier, two serializations**
   - ``core.codec`` owns both the canonical QR string and the scan
     filename convention, so printing and scanning cannot drift apart.
"""

from .models import DuplexSide, PageIdentifier
from . import codec

__all__ = [
    "DuplexSide",
    "PageIdentifier",
    "codec",
]
