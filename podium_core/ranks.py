"""Rank value coercion and display helpers.

Every rank read from the store or from legacy payloads goes through
``normalize_rank`` before it is compared, stored or displayed.
"""
from __future__ import annotations

import math
import re
from typing import Any, Optional

_NON_DIGITS = re.compile(r"\D")


def normalize_rank(value: Any) -> Optional[int]:
    """Coerce a rank to a positive int or None.

    Examples:
        - "1st" → 1
        - 3.9 → 3
        - 0 / "0" → None (zero is not a rank)
        - None / "" / "n/a" → None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        floored = math.floor(value)
        return floored if floored > 0 else None
    digits = _NON_DIGITS.sub("", str(value))
    if not digits:
        return None
    return int(digits, 10) or None


def format_rank_display(rank: Any) -> str:
    rank = normalize_rank(rank)
    if rank is None or rank < 1:
        return ""
    if 11 <= rank % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(rank % 10, "th")
    return f"{rank}{suffix}"


def placement_text(rank: Any) -> str:
    """Clipboard/share text for podium placements."""
    return {
        1: "🥇 First Place",
        2: "🥈 Second Place",
        3: "🥉 Third Place",
    }.get(normalize_rank(rank), "")
