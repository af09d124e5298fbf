from __future__ import annotations

import re
from typing import Any, Optional

_NON_DIGITS = re.compile(r"[^0-9]")


def optional_text(value: Any) -> Optional[str]:
    """Strip a loosely-typed column value; empty strings become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def digits_only(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    digits = _NON_DIGITS.sub("", str(value))
    return digits or None


def clamp_int(value: Any, *, default: int, minimum: int, maximum: Optional[int] = None) -> int:
    """Coerce paging input. Non-numeric values fall back to the default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    number = max(minimum, number)
    if maximum is not None:
        number = min(maximum, number)
    return number
