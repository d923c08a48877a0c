"""Type definitions for store rows and update payloads."""
from __future__ import annotations

from typing import Any, Optional, TypedDict


class ScoreRow(TypedDict, total=False):
    """
    TypedDict representing one event_scores row as returned by the store.

    All fields are optional (total=False): rows created at registration carry
    no score fields yet, and legacy rows may use camelCase spellings.
    """
    # Identity
    id: str  # Score row id (store-assigned)
    competitor_id: Optional[str]  # Participant entity id
    event_id: Optional[str]
    name: str

    # Judging
    total_score: Optional[float]
    totalScore: Optional[float]  # legacy spelling
    judge_a_score: Optional[float]
    judge_b_score: Optional[float]
    judge_c_score: Optional[float]

    # Ranking (rank/final_rank may arrive as ints, floats or "1st"-style strings)
    rank: Any
    final_rank: Any
    finalRank: Any  # legacy spelling
    placement: Any  # Write-time mirror of final_rank; read only as a legacy fallback
    medal: Optional[str]
    points: Optional[int]

    # Tie-break: None | "unselected" | "selected_<k>" | "resolved"
    tie_breaker_status: Optional[str]
    tieBreakerStatus: Optional[str]  # legacy spelling


class ScoreRowUpdate(TypedDict, total=False):
    """
    Partial update for one row, as sent to ScoreStore.update_score_row().

    placement is always written together with final_rank and equal to it.
    """
    rank: Optional[int]
    final_rank: Optional[int]
    placement: Optional[int]
    medal: Optional[str]
    points: Optional[int]
    tie_breaker_status: Optional[str]


class StoreResponse(TypedDict, total=False):
    """Store call result; presence of ``error`` means the write was rejected."""
    error: Any
    data: Any


class ChampionResultRow(TypedDict, total=False):
    """
    One scored event of a champion, joined with its event and tournament.

    Read by the seasonal points summary; final_rank is the persisted rank.
    """
    id: str  # Score row id
    event_id: str
    event_name: Optional[str]
    event_type: Optional[str]
    final_rank: Any
    total_score: Optional[float]
    judge_a_score: Optional[float]
    judge_b_score: Optional[float]
    judge_c_score: Optional[float]
    tournament_name: Optional[str]
    tournament_class: Optional[str]  # May be a composite label ("AA - Nationals")
    tournament_date: Any  # ISO date/datetime string or date
