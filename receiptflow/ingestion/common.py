"""Shared helpers for cleaning loosely typed provider values."""
from __future__ import annotations

import math
import re
from typing import Any, Optional, Tuple

_CURRENCY_SYMBOLS = re.compile(r"[$€£¥₹]")
_NON_NUMERIC = re.compile(r"[^\d.\-]")


def parse_amount(raw: Any) -> Optional[float]:
    """Convert a provider amount such as ``"$25.87"`` into a float.

    Currency symbols, whitespace, and thousands separators are stripped. Any
    input that does not leave a finite number behind yields ``None``.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
        return value if math.isfinite(value) else None

    cleaned = _NON_NUMERIC.sub("", _CURRENCY_SYMBOLS.sub("", str(raw)))
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def clean_text(value: Any) -> Optional[str]:
    """Return a trimmed string or ``None`` for blank and non-text values."""

    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def split_datetime(
    date_iso: Any = None, date: Any = None, time: Any = None
) -> Tuple[Optional[str], Optional[str]]:
    """Derive a ``(date, time)`` pair from ISO or separate date/time strings."""

    iso_text = clean_text(date_iso)
    if iso_text:
        date_part, _, time_part = iso_text.partition("T")
        return date_part or None, time_part or clean_text(time)

    date_text = clean_text(date)
    if not date_text:
        return None, clean_text(time)

    for separator in ("T", " "):
        if separator in date_text:
            date_part, _, time_part = date_text.partition(separator)
            return date_part or None, time_part.strip() or clean_text(time)
    return date_text, clean_text(time)
