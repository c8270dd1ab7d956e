"""
Utils Package

Filename cleaning and record serialization.
"""

from .filenames import clean_filename
from .serialization import record_from_dict, record_to_dict

__all__ = [
    "clean_filename",
    "record_from_dict",
    "record_to_dict",
]
