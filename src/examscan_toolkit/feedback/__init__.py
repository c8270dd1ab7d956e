"""
Feedback Package

Response documents: scanned pages with a draft's comments overlaid, plus
the rubric table.
"""

from .composer import compose_feedback, mark_text, response_filename
from .rubric import rubric_rows

__all__ = [
    "compose_feedback",
    "mark_text",
    "response_filename",
    "rubric_rows",
]
