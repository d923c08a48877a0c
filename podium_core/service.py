"""Event ranking flows (load, tie-break, redo, recompute) over an injected store.

This module is the entry point UI handlers call. Ranking and resolution stay
pure (``ranking``/``tiebreak``); this layer only sequences store reads, the pure
computation and the persistence batches.

Flow:
- load(): fetch rows → validate → compute ranks/tie groups → report podium ties
- resolve_tie_break(): fetch → resolve one tie group → persist → report
- redo_tie_break(): fetch → persist reset (awaited, all rows) → re-fetch →
  resolve → persist; a failed reset aborts before any resolve write
- remove_participant(): delete → recompute_event()
- recompute_event(): fetch → recompute_standings() → persist every row

Ordering:
- Every store call is a suspension point; ranking/resolution never suspend.
- One lock per (event, tie group rank): a new resolution for a group waits for
  the previous batch for that group to settle.
- One lock per event for event-wide recomputes.
- Locks live only while someone holds or waits on them.
- No retries, no cancellation: callers re-trigger on a failed report. Concurrent
  operators are not coordinated (last write wins per row); re-deriving from the
  store on each load is the only consistency mechanism.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Hashable, Sequence

from .config import RankingConfig
from .persistence import PersistenceCoordinator, PersistFailure, PersistResult
from .points import is_known_class
from .ranking import CompetitorScore, TieGroup, compute_ranks, get_tie_groups
from .seasonal import SeasonalSummary, seasonal_points
from .store import ScoreStore
from .tiebreak import (
    has_resolved_ties_in_podium,
    match_winners,
    needs_reset,
    recompute_standings,
    resolution_status,
    resolve,
    tie_group_members,
    unresolved_top_tie_groups,
)
from .validation import InputSanitizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventStanding:
    """Ranked snapshot of one event, re-derived from the store."""

    event_id: str
    scores: tuple[CompetitorScore, ...]
    tie_groups: tuple[TieGroup, ...]
    unresolved_podium_ties: tuple[TieGroup, ...]
    resolution_flags: tuple[bool, ...]
    can_redo: bool
    skipped_rows: tuple[str, ...] = ()

    @property
    def has_pending_podium_ties(self) -> bool:
        return bool(self.unresolved_podium_ties)


@dataclass(frozen=True)
class TieBreakReport:
    """Outcome of a tie-break action, as shown to the operator."""

    applied: bool
    resolved: tuple[CompetitorScore, ...] = ()
    persist: PersistResult | None = None
    reset: PersistResult | None = None
    detail: str | None = None

    @property
    def success(self) -> bool:
        return self.applied and self.persist is not None and self.persist.success


class EventRankingService:
    def __init__(self, store: ScoreStore, config: RankingConfig | None = None) -> None:
        self.store = store
        self.config = config or RankingConfig()
        self.coordinator = PersistenceCoordinator(store)
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._lock_users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def _serialized(self, key: Hashable) -> AsyncIterator[None]:
        """Hold the lock for ``key``; dropped once no task holds or awaits it."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    def _group_lock(self, event_id: str, group_rank: int):
        return self._serialized(("group", event_id, group_rank))

    def _event_lock(self, event_id: str):
        return self._serialized(("event", event_id))

    async def _fetch(self, event_id: str) -> tuple[list[CompetitorScore], list[str]]:
        rows = await self.store.fetch_scores(event_id)
        scores: list[CompetitorScore] = []
        skipped: list[str] = []
        for idx, row in enumerate(rows or []):
            try:
                scores.append(InputSanitizer.validate_row(row).to_competitor())
            except ValueError as exc:
                logger.warning(f"Skipping unreadable score row #{idx} in event {event_id}: {exc}")
                skipped.append(str(row.get("id", f"#{idx}")) if isinstance(row, dict) else f"#{idx}")
        return scores, skipped

    async def _event_context(self, event_id: str) -> tuple[str | None, int]:
        tournament_class = await self.store.fetch_tournament_class(event_id)
        if not tournament_class:
            tournament_class = self.config.default_tournament_class
        if tournament_class and not is_known_class(tournament_class):
            # points_for logs per row at DEBUG; one warning per event pass
            logger.warning(f"Unknown tournament class {tournament_class!r} for {event_id}, awarding 0 points")
        competitor_count = await self.store.fetch_participant_count(event_id)
        return tournament_class, int(competitor_count or 0)

    def _find_group(self, scores: Sequence[CompetitorScore], group_rank: int) -> TieGroup:
        for group in get_tie_groups(scores, self.config.podium_places):
            if group.rank == group_rank:
                return group
        raise ValueError(f"no tie group at rank {group_rank}")

    async def load(self, event_id: str) -> EventStanding:
        scores, skipped = await self._fetch(event_id)
        podium = self.config.podium_places
        ranked = compute_ranks(scores)
        return EventStanding(
            event_id=event_id,
            scores=tuple(ranked),
            tie_groups=tuple(get_tie_groups(ranked, podium)),
            unresolved_podium_ties=tuple(unresolved_top_tie_groups(ranked, podium)),
            resolution_flags=tuple(resolution_status(ranked, podium)),
            can_redo=has_resolved_ties_in_podium(ranked, podium),
            skipped_rows=tuple(skipped),
        )

    async def _resolve_and_persist(
        self,
        event_id: str,
        members: Sequence[CompetitorScore],
        winners: Sequence[Any],
    ) -> tuple[list[CompetitorScore], PersistResult | None]:
        tournament_class, competitor_count = await self._event_context(event_id)
        resolved = resolve(
            members,
            winners,
            tournament_class,
            competitor_count,
            strict=self.config.strict_tournament_class,
        )
        if not resolved:
            return [], None
        return resolved, await self.coordinator.persist_scores(resolved)

    async def resolve_tie_break(
        self,
        event_id: str,
        group_rank: int,
        winners: Sequence[Any],
    ) -> TieBreakReport:
        """Apply an operator's winner order to the tie group at ``group_rank``.

        A group that already went through a tie-break is redone (reset first).
        """
        async with self._group_lock(event_id, group_rank):
            scores, _ = await self._fetch(event_id)
            ranked = compute_ranks(scores)
            members = tie_group_members(ranked, self._find_group(ranked, group_rank))
            if needs_reset(members):
                logger.info(f"Tie group at rank {group_rank} in {event_id} already resolved, redoing")
                return await self._redo(event_id, group_rank, members, winners)
            resolved, result = await self._resolve_and_persist(event_id, members, winners)
            if result is None:
                return TieBreakReport(applied=False, detail="no_valid_winners")
            return TieBreakReport(applied=True, resolved=tuple(resolved), persist=result)

    async def redo_tie_break(
        self,
        event_id: str,
        group_rank: int,
        winners: Sequence[Any],
    ) -> TieBreakReport:
        """Reset the tie group at ``group_rank`` in the store, then resolve it again."""
        async with self._group_lock(event_id, group_rank):
            scores, _ = await self._fetch(event_id)
            ranked = compute_ranks(scores)
            members = tie_group_members(ranked, self._find_group(ranked, group_rank))
            return await self._redo(event_id, group_rank, members, winners)

    async def _redo(
        self,
        event_id: str,
        group_rank: int,
        members: Sequence[CompetitorScore],
        winners: Sequence[Any],
    ) -> TieBreakReport:
        # An empty/unmatched order must not clear stored state.
        if not match_winners(members, winners):
            return TieBreakReport(applied=False, detail="no_valid_winners")

        reset_result = await self.coordinator.reset(members)
        if not reset_result.success:
            logger.error(f"Reset of tie group at rank {group_rank} in {event_id} failed, not resolving")
            return TieBreakReport(applied=False, reset=reset_result, detail="reset_failed")

        scores, _ = await self._fetch(event_id)
        ranked = compute_ranks(scores)
        fresh = tie_group_members(ranked, self._find_group(ranked, group_rank))
        resolved, result = await self._resolve_and_persist(event_id, fresh, winners)
        if result is None:
            return TieBreakReport(applied=False, reset=reset_result, detail="no_valid_winners")
        return TieBreakReport(
            applied=True,
            resolved=tuple(resolved),
            persist=result,
            reset=reset_result,
        )

    async def _recompute(self, event_id: str) -> PersistResult:
        scores, _ = await self._fetch(event_id)
        tournament_class, competitor_count = await self._event_context(event_id)
        standings = recompute_standings(
            scores,
            tournament_class,
            competitor_count,
            podium_places=self.config.podium_places,
            strict=self.config.strict_tournament_class,
        )
        return await self.coordinator.persist_scores(standings)

    async def recompute_event(self, event_id: str) -> PersistResult:
        """Re-derive and persist ranks, final ranks and points for every row."""
        async with self._event_lock(event_id):
            return await self._recompute(event_id)

    async def remove_participant(self, event_id: str, competitor_id: str) -> PersistResult:
        """Delete a competitor from the event and recompute the remaining rows."""
        async with self._event_lock(event_id):
            response = await self.store.delete_participant(event_id, competitor_id)
            error = (response or {}).get("error")
            if error:
                logger.error(f"Removing {competitor_id} from {event_id} failed: {error}")
                return PersistResult(
                    success=False,
                    failures=(PersistFailure(id=competitor_id, error=error),),
                )
            return await self._recompute(event_id)

    async def champion_seasonal_points(self, champion_id: str) -> SeasonalSummary:
        """Podium finishes and season total for one competitor across events."""
        rows = await self.store.fetch_champion_results(champion_id)
        event_ids = {
            str(row["event_id"]) for row in rows or [] if isinstance(row, dict) and row.get("event_id")
        }
        roster_counts: dict[str, int] = {}
        for event_id in event_ids:
            roster_counts[event_id] = int(await self.store.fetch_participant_count(event_id) or 0)
        summary = seasonal_points(rows, roster_counts, strict=self.config.strict_tournament_class)
        logger.info(
            f"Champion {champion_id}: {summary.events_placed} podium finishes, {summary.total_points} points"
        )
        return summary
