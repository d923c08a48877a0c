"""Record store interface consumed by the ranking core, plus an in-memory store.

The core never talks to a backend directly; hosts inject any object that
implements ``ScoreStore`` (remote row store, REST client, test fake).
"""
from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Protocol

from .types import ChampionResultRow, ScoreRow, ScoreRowUpdate, StoreResponse

logger = logging.getLogger(__name__)


class ScoreStore(Protocol):
    async def fetch_scores(self, event_id: str) -> list[ScoreRow]:
        ...

    async def fetch_participant_count(self, event_id: str) -> int:
        """Full registered roster, including competitors without scores."""
        ...

    async def fetch_tournament_class(self, event_id: str) -> str | None:
        ...

    async def update_score_row(self, score_id: str, fields: ScoreRowUpdate) -> StoreResponse:
        ...

    async def delete_participant(self, event_id: str, competitor_id: str) -> StoreResponse:
        ...

    async def fetch_champion_results(self, champion_id: str) -> list[ChampionResultRow]:
        """Every score row of one competitor, joined with its event and tournament."""
        ...


class InMemoryScoreStore:
    """Dict-backed ScoreStore.

    Rows are grouped by event id. ``fail_ids`` makes ``update_score_row`` reject
    writes for those row ids; ``raise_ids`` makes it raise instead.
    """

    def __init__(
        self,
        rows_by_event: dict[str, list[dict[str, Any]]] | None = None,
        *,
        participant_counts: dict[str, int] | None = None,
        tournament_classes: dict[str, str | None] | None = None,
        champion_results: dict[str, list[dict[str, Any]]] | None = None,
    ) -> None:
        self.rows_by_event: dict[str, list[dict[str, Any]]] = deepcopy(rows_by_event or {})
        self.participant_counts = dict(participant_counts or {})
        self.tournament_classes = dict(tournament_classes or {})
        self.champion_results: dict[str, list[dict[str, Any]]] = deepcopy(champion_results or {})
        self.fail_ids: set[str] = set()
        self.raise_ids: set[str] = set()
        self.update_log: list[tuple[str, dict[str, Any]]] = []

    def _find_row(self, score_id: str) -> dict[str, Any] | None:
        for rows in self.rows_by_event.values():
            for row in rows:
                if str(row.get("id")) == score_id:
                    return row
        return None

    def row(self, score_id: str) -> dict[str, Any] | None:
        found = self._find_row(score_id)
        return deepcopy(found) if found is not None else None

    async def fetch_scores(self, event_id: str) -> list[ScoreRow]:
        return deepcopy(self.rows_by_event.get(event_id, []))

    async def fetch_participant_count(self, event_id: str) -> int:
        if event_id in self.participant_counts:
            return self.participant_counts[event_id]
        return len(self.rows_by_event.get(event_id, []))

    async def fetch_tournament_class(self, event_id: str) -> str | None:
        return self.tournament_classes.get(event_id)

    async def fetch_champion_results(self, champion_id: str) -> list[ChampionResultRow]:
        return deepcopy(self.champion_results.get(champion_id, []))

    async def update_score_row(self, score_id: str, fields: ScoreRowUpdate) -> StoreResponse:
        if score_id in self.raise_ids:
            raise ConnectionError(f"store unavailable while updating {score_id}")
        if score_id in self.fail_ids:
            return {"error": {"code": "rejected", "message": f"update rejected for {score_id}"}}
        row = self._find_row(score_id)
        if row is None:
            return {"error": {"code": "not_found", "message": f"no score row {score_id}"}}
        row.update(fields)
        self.update_log.append((score_id, dict(fields)))
        return {"data": deepcopy(row)}

    async def delete_participant(self, event_id: str, competitor_id: str) -> StoreResponse:
        rows = self.rows_by_event.get(event_id, [])
        kept = [r for r in rows if str(r.get("competitor_id")) != competitor_id]
        if len(kept) == len(rows):
            return {"error": {"code": "not_found", "message": f"{competitor_id} not in {event_id}"}}
        self.rows_by_event[event_id] = kept
        if event_id in self.participant_counts:
            self.participant_counts[event_id] = max(0, self.participant_counts[event_id] - 1)
        logger.debug(f"Removed competitor {competitor_id} from event {event_id}")
        return {}
