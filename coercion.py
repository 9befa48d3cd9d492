from __future__ import annotations

import math
import re
from typing import Any, Optional

_WHITESPACE = re.compile(r"\s+")
# ASCII digits only: rejects "1_000", non-ASCII digits, "inf" and "nan"
_NUMERIC = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def to_number(value: Any) -> Optional[float]:
    """
    Locale-tolerant number parsing: "1 234,56" -> 1234.56.
    Returns None for missing, non-numeric or non-finite input; never raises.
    """
    if value is None:
        return None
    s = _WHITESPACE.sub("", str(value).strip()).replace(",", ".", 1)
    if not _NUMERIC.fullmatch(s):
        return None
    n = float(s)
    return n if math.isfinite(n) else None


def to_vat_rate(value: Any) -> Optional[float]:
    """
    Accepts 19 or 0.19 and normalizes to a fraction (0.19).

    Anything above 1 is read as a percentage. A whole-number 1 (meaning 1 %)
    cannot be told apart from the fraction 1.0 and stays 1.0.
    """
    n = to_number(value)
    if n is None:
        return None
    return round4(n / 100 if n > 1 else n)


def round4(value: float) -> Optional[float]:
    """Round a derived amount to 4 places; overflowed products become None."""
    if not math.isfinite(value):
        return None
    return round(value, 4)
