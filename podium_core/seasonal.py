"""Seasonal points summary for one champion.

Each podium finish (final rank 1-3) in an event of a known tournament class
earns points from the class schedule; class C uses the event's full roster
size. Results are listed newest tournament first, undated ones last.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from .points import points_for
from .validation import ChampionResultRecord

logger = logging.getLogger(__name__)

SEASON_PODIUM_PLACES = 3


@dataclass(frozen=True)
class SeasonalResult:
    id: str
    event_id: str
    event_name: str
    event_type: str
    final_rank: int
    score_total: float
    judge_scores: tuple[float, float, float]
    points: int
    tournament_name: str
    tournament_class: str
    tournament_date: Optional[date]
    total_competitors: int


@dataclass(frozen=True)
class SeasonalSummary:
    results: tuple[SeasonalResult, ...]
    total_points: int

    @property
    def events_placed(self) -> int:
        return len(self.results)


def _read(row: Any, idx: int) -> Optional[ChampionResultRecord]:
    try:
        return ChampionResultRecord.model_validate(row)
    except Exception as e:
        logger.warning(f"Skipping unreadable champion result #{idx}: {e}")
        return None


def seasonal_points(
    rows: Sequence[Any],
    roster_counts: Mapping[str, int],
    *,
    strict: bool = False,
) -> SeasonalSummary:
    """Score every podium finish in ``rows``.

    ``roster_counts`` maps event id to the registered roster size. Rows
    without a podium rank or a tournament class are skipped, as are rows
    whose class pays nothing for the finish.
    """
    results: list[SeasonalResult] = []
    for idx, row in enumerate(rows or []):
        record = _read(row, idx)
        if record is None:
            continue
        if record.final_rank is None or record.final_rank > SEASON_PODIUM_PLACES:
            continue
        if not record.tournament_class:
            continue
        competitor_count = int(roster_counts.get(record.event_id) or 0)
        points = points_for(
            record.tournament_class,
            record.final_rank,
            competitor_count,
            strict=strict,
        )
        if points == 0:
            continue
        results.append(
            SeasonalResult(
                id=record.id,
                event_id=record.event_id,
                event_name=record.event_name,
                event_type=record.event_type,
                final_rank=record.final_rank,
                score_total=record.score_total,
                judge_scores=(record.judge_a_score, record.judge_b_score, record.judge_c_score),
                points=points,
                tournament_name=record.tournament_name,
                tournament_class=record.tournament_class,
                tournament_date=record.tournament_date,
                total_competitors=competitor_count,
            )
        )

    # Stable sort keeps store order among results from the same day
    results.sort(key=lambda r: r.tournament_date or date.min, reverse=True)
    return SeasonalSummary(
        results=tuple(results),
        total_points=sum(r.points for r in results),
    )
