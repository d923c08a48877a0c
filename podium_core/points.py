"""Seasonal points table keyed by tournament class and final rank.

Classes AAA/AA/A/B pay a fixed podium schedule. Class C depends on the size of
the event roster (full roster, not only scored competitors).
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

FIXED_POINTS: Dict[str, Dict[int, int]] = {
    "AAA": {1: 20, 2: 15, 3: 10},
    "AA": {1: 15, 2: 10, 3: 8},
    "A": {1: 8, 2: 5, 3: 2},
    "B": {1: 5, 2: 3, 3: 1},
}

KNOWN_CLASSES = frozenset([*FIXED_POINTS.keys(), "C"])

MEDALS: Dict[int, str] = {1: "🥇", 2: "🥈", 3: "🥉"}

_LEADING_TOKEN = re.compile(r"[A-Za-z]+")


class UnknownTournamentClassError(ValueError):
    """Raised in strict mode when a class label has no points schedule."""


def parse_tournament_class(label: Any) -> Optional[str]:
    """Extract the class token from a stored label.

    Examples:
        - "AA - Nationals" → "AA"
        - "c" → "C"
        - "" / None → None
    """
    if label is None or isinstance(label, bool):
        return None
    if not isinstance(label, str):
        label = str(label)
    match = _LEADING_TOKEN.search(label)
    if not match:
        return None
    return match.group(0).upper()


def is_known_class(label: Any) -> bool:
    return parse_tournament_class(label) in KNOWN_CLASSES


def _class_c_points(final_rank: int, competitor_count: int) -> int:
    if competitor_count >= 4:
        return {1: 2, 2: 1}.get(final_rank, 0)
    if competitor_count == 3:
        return {1: 1}.get(final_rank, 0)
    return 0


def points_for(
    tournament_class: Any,
    final_rank: Optional[int],
    competitor_count: int,
    *,
    strict: bool = False,
) -> int:
    """Points earned for a final rank in an event of the given class.

    Unknown classes score zero unless ``strict`` is set. Callers scoring a whole
    event warn once per event (see ``is_known_class``).
    """
    parsed = parse_tournament_class(tournament_class)
    if parsed not in KNOWN_CLASSES:
        if strict:
            raise UnknownTournamentClassError(f"unknown tournament class: {tournament_class!r}")
        logger.debug(f"Unknown tournament class {tournament_class!r}, awarding 0 points")
        return 0
    if final_rank is None or final_rank < 1 or final_rank > 3:
        return 0
    if parsed == "C":
        return _class_c_points(final_rank, int(competitor_count or 0))
    return FIXED_POINTS[parsed].get(final_rank, 0)


def medal_for_rank(rank: Optional[int]) -> Optional[str]:
    if rank is None:
        return None
    return MEDALS.get(rank)
