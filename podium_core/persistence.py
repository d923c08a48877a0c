"""Best-effort batch writes of ranking state back to the score store.

Rows are written independently (no multi-row transaction) and dispatched
concurrently; the batch reports once every write has settled. Failed rows are
reported individually and successful rows are never rolled back: retrying the
whole batch is the caller's decision.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from .ranking import CompetitorScore
from .store import ScoreStore
from .validation import RankUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistFailure:
    id: str
    error: Any


@dataclass(frozen=True)
class PersistResult:
    success: bool
    failures: tuple[PersistFailure, ...] = ()
    written: tuple[str, ...] = ()

    @property
    def failed_ids(self) -> tuple[str, ...]:
        return tuple(f.id for f in self.failures)


def updates_from_scores(scores: Iterable[CompetitorScore]) -> list[RankUpdate]:
    return [RankUpdate.from_competitor(score) for score in scores]


class PersistenceCoordinator:
    def __init__(self, store: ScoreStore) -> None:
        self.store = store

    async def _write(self, update: RankUpdate) -> PersistFailure | None:
        fields = update.to_fields()
        try:
            response = await self.store.update_score_row(update.id, fields)
        except Exception as exc:
            logger.error(f"Update of score row {update.id} raised: {exc!r}")
            return PersistFailure(id=update.id, error=exc)
        error = (response or {}).get("error")
        if error:
            logger.error(f"Update of score row {update.id} rejected: {error}")
            return PersistFailure(id=update.id, error=error)
        logger.debug(f"Updated score row {update.id}: {fields}")
        return None

    async def persist(self, updates: Sequence[RankUpdate]) -> PersistResult:
        """Write every update; success only if no row failed."""
        if not updates:
            return PersistResult(success=True)
        outcomes = await asyncio.gather(*(self._write(update) for update in updates))
        failures = tuple(f for f in outcomes if f is not None)
        failed = {f.id for f in failures}
        written = tuple(u.id for u in updates if u.id not in failed)
        if failures:
            logger.error(f"{len(failures)} of {len(updates)} score row updates failed")
        else:
            logger.info(f"Persisted {len(updates)} score rows")
        return PersistResult(success=not failures, failures=failures, written=written)

    async def persist_scores(self, scores: Iterable[CompetitorScore]) -> PersistResult:
        return await self.persist(updates_from_scores(scores))

    async def reset(self, members: Iterable[CompetitorScore]) -> PersistResult:
        """Clear final rank, placement, medal, points and status on each member."""
        return await self.persist([RankUpdate.reset(member.id) for member in members])
