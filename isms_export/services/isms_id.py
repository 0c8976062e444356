"""
ISMS identifier and text-field helpers.

ISMS control identifiers are dotted integer paths ("2.3.1"). They must be
ordered numerically ("1.2.10" after "1.2.9") and compared with missing
trailing parts counted as zero ("2.1" == "2.1.0").

Free-text fields coming from the record stores use the literal "none"
(any case) as a placeholder for "no value"; those are treated as empty.
"""

from __future__ import annotations

import unicodedata
from typing import Any

NONE_PLACEHOLDER = "none"


def _parts(isms_id: Any) -> list[int]:
    parts: list[int] = []
    for raw in str(isms_id).split("."):
        try:
            parts.append(int(raw.strip()))
        except ValueError:
            parts.append(0)
    return parts


def compare_isms_ids(a: Any, b: Any) -> int:
    """Compare two identifiers part by part.

    Returns a negative number, zero or a positive number. An empty or
    missing identifier on either side compares equal to anything.
    """
    if not a or not b:
        return 0
    parts_a = _parts(a)
    parts_b = _parts(b)
    for i in range(max(len(parts_a), len(parts_b))):
        num_a = parts_a[i] if i < len(parts_a) else 0
        num_b = parts_b[i] if i < len(parts_b) else 0
        if num_a != num_b:
            return num_a - num_b
    return 0


def isms_sort_key(isms_id: Any) -> tuple[int, ...]:
    """Canonical key: integer parts with trailing zeros dropped.

    Two identifiers have the same key exactly when ``compare_isms_ids``
    returns 0 for them, so the key doubles as a lookup key.
    """
    parts = _parts(isms_id)
    while parts and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def clean_text(value: Any) -> str:
    """Trim a raw field value; absent and "none" values become ""."""
    if value is None:
        return ""
    text = str(value).strip()
    if text.lower() == NONE_PLACEHOLDER:
        return ""
    return text


def normalize_text(value: str | None) -> str:
    """NFC-normalize text (file names from macOS uploads arrive as NFD)."""
    if not value:
        return ""
    return unicodedata.normalize("NFC", value)


def filter_entries(values) -> list[str]:
    """Drop empty/"none" entries and NFC-normalize the rest, keeping order."""
    return [
        normalize_text(v)
        for v in values
        if v and v.lower() != NONE_PLACEHOLDER
    ]
