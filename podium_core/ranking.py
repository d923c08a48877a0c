"""Competition ranking engine (score-derived ranks + tie groups).

Single source of truth for ranks across load/resolve/recompute:
- Ranking: total score descending, ties share a rank, next rank skips by group size.
- Tie groups: every score shared by 2+ competitors, tagged with the shared rank.
- Pure and recomputed from store rows on every load; no cached rank state.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, replace
from typing import Any, Literal, Sequence

logger = logging.getLogger(__name__)

PODIUM_PLACES = 3

TieBreakKind = Literal["unset", "selected", "unselected", "resolved"]

_SELECTED = re.compile(r"^selected_(\d+)$")


@dataclass(frozen=True)
class TieBreakStatus:
    kind: TieBreakKind = "unset"
    # 1-based winner order, only for kind="selected".
    order: int | None = None

    @classmethod
    def selected(cls, order: int) -> TieBreakStatus:
        if order < 1:
            raise ValueError(f"selection order must be >= 1, got {order}")
        return cls(kind="selected", order=order)

    @classmethod
    def parse(cls, value: Any) -> TieBreakStatus:
        """Read the stored string form ("selected_2", "unselected", ...)."""
        if value is None:
            return UNSET
        if isinstance(value, TieBreakStatus):
            return value
        text = str(value).strip()
        if not text:
            return UNSET
        match = _SELECTED.match(text)
        if match and int(match.group(1)) >= 1:
            return cls.selected(int(match.group(1)))
        if text == "unselected":
            return UNSELECTED
        if text != "resolved":
            logger.warning(f"Unrecognized tie-break status {text!r}, reading as resolved")
        return RESOLVED

    def serialize(self) -> str | None:
        if self.kind == "unset":
            return None
        if self.kind == "selected":
            return f"selected_{self.order}"
        return self.kind

    @property
    def is_set(self) -> bool:
        return self.kind != "unset"

    @property
    def is_selected(self) -> bool:
        return self.kind == "selected"


UNSET = TieBreakStatus()
UNSELECTED = TieBreakStatus(kind="unselected")
RESOLVED = TieBreakStatus(kind="resolved")


@dataclass(frozen=True)
class CompetitorScore:
    id: str
    competitor_id: str | None = None
    name: str = ""
    total_score: float = 0.0
    judge_scores: tuple[float | None, float | None, float | None] | None = None
    rank: int | None = None
    final_rank: int | None = None
    medal: str | None = None
    points: int | None = None
    tie_break_status: TieBreakStatus = UNSET


@dataclass(frozen=True)
class TieGroup:
    rank: int
    total_score: float
    members: tuple[str, ...]
    is_top3: bool


def coerce_score(value: Any) -> float:
    """Missing, negative, non-numeric or non-finite scores count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(score) or score < 0:
        return 0.0
    return score


def effective_rank(score: CompetitorScore) -> int | None:
    return score.final_rank if score.final_rank is not None else score.rank


def _group_by_score(ranked: Sequence[CompetitorScore]) -> list[list[CompetitorScore]]:
    groups: list[list[CompetitorScore]] = []
    i = 0
    while i < len(ranked):
        current = ranked[i]
        j = i + 1
        while j < len(ranked) and ranked[j].total_score == current.total_score:
            j += 1
        groups.append(list(ranked[i:j]))
        i = j
    return groups


def compute_ranks(scores: Sequence[CompetitorScore]) -> list[CompetitorScore]:
    """Return copies sorted by score (descending) with ``rank`` populated.

    Ties keep their input order and share the rank of the first member; the
    next distinct score gets ``1 + competitors ahead of it``.
    Example: [90, 90, 80] → [1, 1, 3].
    """
    if not scores:
        return []
    normalized = [replace(s, total_score=coerce_score(s.total_score)) for s in scores]
    # sorted() is stable, so equal scores keep their relative input order.
    normalized = sorted(normalized, key=lambda s: -s.total_score)
    ranked: list[CompetitorScore] = []
    for group in _group_by_score(normalized):
        rank = len(ranked) + 1
        ranked.extend(replace(s, rank=rank) for s in group)
    logger.debug(f"Ranked {len(ranked)} competitors")
    return ranked


def get_tie_groups(
    scores: Sequence[CompetitorScore],
    podium_places: int = PODIUM_PLACES,
) -> list[TieGroup]:
    """Tie groups (2+ members sharing a score) in descending-score order."""
    ranked = compute_ranks(scores)
    tie_groups: list[TieGroup] = []
    for group in _group_by_score(ranked):
        if len(group) < 2:
            continue
        rank = group[0].rank or 1
        tie_groups.append(
            TieGroup(
                rank=rank,
                total_score=group[0].total_score,
                members=tuple(s.id for s in group),
                is_top3=rank <= podium_places,
            )
        )
    return tie_groups


def has_tie_in_podium(tie_groups: Sequence[TieGroup]) -> bool:
    return any(group.is_top3 for group in tie_groups)
