"""
Module: core.utils.filenames

Purpose:
    Filesystem-safe names for generated archives and merged documents.

Key Functions:
    - clean_filename(): Replace accents, spaces and punctuation
"""

from __future__ import annotations

import unicodedata

_REPLACEMENTS = {
    " ": "-",
    "(": "-",
    ")": "-",
    ",": "-",
}


def clean_filename(filename: str, *, slash: bool = False) -> str:
    """
    Make a filename safe on Windows and Linux.

    Accented letters lose their accents; spaces, parentheses and commas
    become hyphens. With ``slash=True`` path separators are replaced too.

    Example:
        >>> clean_filename("Cálculo (I), sección 2")
        'Calculo--I---seccion-2'
    """
    normalized = unicodedata.normalize("NFKD", filename)
    without_marks = "".join(ch for ch in normalized if unicodedata.category(ch) != "Mn")
    replacements = dict(_REPLACEMENTS)
    if slash:
        replacements["/"] = "-"
    return "".join(replacements.get(ch, ch) for ch in without_marks)
