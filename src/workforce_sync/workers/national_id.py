"""Date-of-birth decoding from the first seven digits of a national ID."""
from __future__ import annotations

from typing import Optional

# 7th digit -> century. Closed table: every digit maps to exactly one century.
CENTURY_BY_DIGIT = {
    "1": "19",
    "2": "19",
    "5": "19",
    "6": "19",
    "3": "20",
    "4": "20",
    "7": "20",
    "8": "20",
    "9": "18",
    "0": "18",
}

SIGNIFICANT_LENGTH = 7


def decode_birth_date(national_id_prefix: Optional[str]) -> Optional[str]:
    """Return ``CCYYMMDD`` for a ``YYMMDDC...`` prefix, or None.

    Characters past the seventh are ignored. Short, empty or non-digit input
    yields None; the function never raises.
    """
    if not national_id_prefix or not isinstance(national_id_prefix, str):
        return None
    head = national_id_prefix[:SIGNIFICANT_LENGTH]
    if len(head) < SIGNIFICANT_LENGTH or not all("0" <= ch <= "9" for ch in head):
        return None
    return CENTURY_BY_DIGIT[head[6]] + head[:6]
