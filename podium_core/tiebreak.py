"""Podium tie detection and manual tie-break resolution.

Detector: which score ties touch the podium and whether each one has been through
a tie-break. Resolver: turns an operator's winner order into consecutive final
ranks, medals, points and per-competitor status.

Resolution is pure. A group that already carries tie-break state must be reset
(``reset_group``) before it is resolved again; ``resolve`` refuses otherwise, since
recomputing on top of earlier final ranks would compound their offsets. ``redo``
is the supported way to re-resolve.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Sequence

from .points import medal_for_rank, points_for
from .ranking import (
    PODIUM_PLACES,
    UNSELECTED,
    UNSET,
    CompetitorScore,
    TieBreakStatus,
    TieGroup,
    compute_ranks,
    effective_rank,
    get_tie_groups,
)

logger = logging.getLogger(__name__)


class TieBreakConsistencyError(RuntimeError):
    """Raised when resolving a group that still carries tie-break state."""


# ==================== DETECTION ====================


def podium_tie_groups(
    scores: Sequence[CompetitorScore],
    podium_places: int = PODIUM_PLACES,
) -> list[TieGroup]:
    """Tie groups starting inside the podium, in descending-score order.

    A group straddling the boundary (e.g. ranks 3,4,5) is included.
    """
    return [group for group in get_tie_groups(scores, podium_places) if group.is_top3]


def _by_id(scores: Sequence[CompetitorScore]) -> dict[str, CompetitorScore]:
    return {s.id: s for s in scores}


def _is_group_resolved(group: TieGroup, by_id: dict[str, CompetitorScore]) -> bool:
    return all(by_id[member_id].tie_break_status.is_set for member_id in group.members)


def unresolved_top_tie_groups(
    scores: Sequence[CompetitorScore],
    podium_places: int = PODIUM_PLACES,
) -> list[TieGroup]:
    by_id = _by_id(scores)
    return [
        group
        for group in podium_tie_groups(scores, podium_places)
        if not _is_group_resolved(group, by_id)
    ]


def resolution_status(
    scores: Sequence[CompetitorScore],
    podium_places: int = PODIUM_PLACES,
) -> list[bool]:
    """One flag per podium tie group: True iff every member has a status."""
    by_id = _by_id(scores)
    return [_is_group_resolved(group, by_id) for group in podium_tie_groups(scores, podium_places)]


def has_resolved_ties_in_podium(
    scores: Sequence[CompetitorScore],
    podium_places: int = PODIUM_PLACES,
) -> bool:
    """Whether a "redo" affordance applies: a podium competitor was selected."""
    for score in compute_ranks(scores):
        rank = effective_rank(score)
        if rank is not None and rank <= podium_places and score.tie_break_status.is_selected:
            return True
    return False


def tie_group_members(
    scores: Sequence[CompetitorScore],
    group: TieGroup,
) -> list[CompetitorScore]:
    """Ranked members of ``group``, in ranking order."""
    wanted = set(group.members)
    return [s for s in compute_ranks(scores) if s.id in wanted]


# ==================== RESOLUTION ====================


def _winner_key(winner: Any) -> str | None:
    if winner is None or isinstance(winner, bool):
        return None
    if isinstance(winner, (str, int)):
        return str(winner)
    if isinstance(winner, Mapping):
        value = winner.get("id") or winner.get("competitor_id")
    else:
        value = getattr(winner, "id", None) or getattr(winner, "competitor_id", None)
    if value is None or isinstance(value, bool):
        return None
    return str(value)


def _matches(member: CompetitorScore, key: str) -> bool:
    return member.id == key or (member.competitor_id is not None and member.competitor_id == key)


def _has_tie_break_state(member: CompetitorScore) -> bool:
    return member.tie_break_status.is_set or (
        member.final_rank is not None and member.final_rank != member.rank
    )


def needs_reset(members: Sequence[CompetitorScore]) -> bool:
    """Whether any member carries tie-break state from an earlier resolution."""
    return any(_has_tie_break_state(m) for m in members)


def _ensure_pristine(members: Sequence[CompetitorScore]) -> None:
    for member in members:
        if _has_tie_break_state(member):
            raise TieBreakConsistencyError(
                f"competitor {member.id} already carries tie-break state; reset the group first"
            )


def _ranked_member(
    member: CompetitorScore,
    final_rank: int,
    status: TieBreakStatus,
    tournament_class: Any,
    total_competitors: int,
    strict: bool,
) -> CompetitorScore:
    return replace(
        member,
        final_rank=final_rank,
        medal=medal_for_rank(final_rank),
        points=points_for(tournament_class, final_rank, total_competitors, strict=strict),
        tie_break_status=status,
    )


def match_winners(
    members: Sequence[CompetitorScore],
    winner_order: Sequence[Any] | None,
) -> list[CompetitorScore]:
    """Members named by ``winner_order``, in that order; unknown/duplicate ids are skipped."""
    winners: list[CompetitorScore] = []
    for raw in winner_order or ():
        key = _winner_key(raw)
        winner = next((m for m in members if key is not None and _matches(m, key)), None)
        if winner is None:
            logger.warning(f"Tie-break winner {raw!r} not found in tie group, skipping")
            continue
        if any(w.id == winner.id for w in winners):
            logger.warning(f"Tie-break winner {winner.id} selected twice, skipping")
            continue
        winners.append(winner)
    return winners


def reset_group(members: Sequence[CompetitorScore]) -> list[CompetitorScore]:
    """Clear tie-break state on every member (pre-tie-break state)."""
    return [
        replace(m, final_rank=None, medal=None, points=None, tie_break_status=UNSET)
        for m in members
    ]


def resolve(
    tie_group: Sequence[CompetitorScore],
    winner_order: Sequence[Any],
    tournament_class: Any,
    total_competitors: int,
    *,
    strict: bool = False,
) -> list[CompetitorScore]:
    """Assign consecutive final ranks to a tie group from an operator's winner order.

    Args:
      tie_group: members sharing a score, with ``rank`` computed.
      winner_order: ids (raw, mappings or objects with ``id``/``competitor_id``),
        first entry wins. Unmatched ids are logged and skipped.
      tournament_class: class label used for points.
      total_competitors: full event roster size.

    Returns:
      Updated members (winners first, then non-winners in their existing order),
      or ``[]`` when no winner could be matched.

    Raises:
      TieBreakConsistencyError: a member already has tie-break state.
    """
    members = list(tie_group)
    if not members:
        logger.warning("Tie-break resolve called with an empty tie group")
        return []
    _ensure_pristine(members)

    ranks = [m.rank for m in members if m.rank is not None]
    if not ranks:
        raise ValueError("tie group members have no computed rank")
    base_rank = min(ranks)

    winners = match_winners(members, winner_order)
    if not winners:
        logger.warning("Tie-break resolve has no valid winners; nothing to apply")
        return []

    winner_ids = {w.id for w in winners}
    losers = [m for m in members if m.id not in winner_ids]

    resolved: list[CompetitorScore] = []
    for idx, winner in enumerate(winners):
        resolved.append(
            _ranked_member(
                winner,
                base_rank + idx,
                TieBreakStatus.selected(idx + 1),
                tournament_class,
                total_competitors,
                strict,
            )
        )
    for idx, loser in enumerate(losers):
        resolved.append(
            _ranked_member(
                loser,
                base_rank + len(winners) + idx,
                UNSELECTED,
                tournament_class,
                total_competitors,
                strict,
            )
        )
    logger.debug(
        f"Resolved tie at rank {base_rank}: "
        + ", ".join(f"{m.id}={m.final_rank}" for m in resolved)
    )
    return resolved


def redo(
    tie_group: Sequence[CompetitorScore],
    winner_order: Sequence[Any],
    tournament_class: Any,
    total_competitors: int,
    *,
    strict: bool = False,
) -> list[CompetitorScore]:
    """Reset the whole group, then resolve it with a new winner order."""
    return resolve(
        reset_group(tie_group),
        winner_order,
        tournament_class,
        total_competitors,
        strict=strict,
    )


def stored_winner_order(members: Sequence[CompetitorScore]) -> list[str]:
    """Ids of selected members ordered by their stored selection order."""
    selected = [m for m in members if m.tie_break_status.is_selected]
    selected.sort(key=lambda m: m.tie_break_status.order or 0)
    return [m.id for m in selected]


def recompute_standings(
    scores: Sequence[CompetitorScore],
    tournament_class: Any,
    total_competitors: int,
    *,
    podium_places: int = PODIUM_PLACES,
    strict: bool = False,
) -> list[CompetitorScore]:
    """Full event pass: competition ranks, re-applied tie-breaks, points.

    - Tie groups with selected members get their stored winner order re-applied
      from the group's current base rank.
    - Other rows take their competition rank as final rank.
    - Rows no longer in any tie group lose stale tie-break status.
    """
    ranked = compute_ranks(scores)
    tie_groups = get_tie_groups(ranked, podium_places)
    tied_ids = {member_id for group in tie_groups for member_id in group.members}

    replaced: dict[str, CompetitorScore] = {}
    for group in tie_groups:
        group_ids = set(group.members)
        members = [s for s in ranked if s.id in group_ids]
        order = stored_winner_order(members)
        if not order:
            continue
        for member in redo(members, order, tournament_class, total_competitors, strict=strict):
            replaced[member.id] = member

    standings: list[CompetitorScore] = []
    for score in ranked:
        if score.id in replaced:
            standings.append(replaced[score.id])
            continue
        status = score.tie_break_status if score.id in tied_ids else UNSET
        standings.append(
            _ranked_member(score, score.rank, status, tournament_class, total_competitors, strict)
        )
    standings.sort(key=lambda s: (s.final_rank or 0, -s.total_score))
    return standings
