"""
Text utilities for handling Spanish text with accents.

Used for CSV flag values ("Sí"/"SI") and invoice keyword matching.
"""

import re
import unicodedata
from typing import Optional


def fold_accents(text: Optional[str]) -> str:
    """
    Remove accent marks, keep case.

    - "Sí" → "Si"
    - "Transmisión" → "Transmision"

    Args:
        text: Original text (may be None)

    Returns:
        Text without combining marks, empty string for None
    """
    if not text:
        return ""

    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize('NFD', text)

    return ''.join(
        c for c in normalized
        if unicodedata.category(c) != 'Mn'
    )


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace to one space and trim."""
    return re.sub(r"\s+", " ", text).strip()


def strip_standalone_numbers(text: str) -> str:
    """
    Remove numbers that stand alone as words.

    "CADENA 116 ESLABONES KMC" → "CADENA ESLABONES KMC"
    "PEDAL MTB9" keeps "MTB9" since the digits are part of a word.
    """
    return collapse_whitespace(re.sub(r"\b\d+\b", "", text))


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Trim a value and return None when it is empty."""
    if value is None:
        return None
    value = value.strip()
    return value or None
