from __future__ import annotations

from dataclasses import dataclass, replace

import pytest

from podium_core import (
    UNSELECTED,
    CompetitorScore,
    TieBreakConsistencyError,
    TieBreakStatus,
    compute_ranks,
    get_tie_groups,
    has_resolved_ties_in_podium,
    podium_tie_groups,
    recompute_standings,
    redo,
    reset_group,
    resolution_status,
    resolve,
    tie_group_members,
    unresolved_top_tie_groups,
)


@dataclass
class _Winner:
    competitor_id: str


def _score(score_id: str, total: float, **kwargs) -> CompetitorScore:
    return CompetitorScore(
        id=score_id,
        competitor_id=f"comp-{score_id}",
        name=score_id.upper(),
        total_score=total,
        **kwargs,
    )


def _rows_by_id(scores):
    return {s.id: s for s in scores}


def _group_at_rank_two():
    # X leads; A, B, C tie for rank 2.
    ranked = compute_ranks(
        [_score("x", 100), _score("a", 90), _score("b", 90), _score("c", 90), _score("d", 50)]
    )
    group = get_tie_groups(ranked)[0]
    return ranked, tie_group_members(ranked, group)


def test_podium_scan_includes_straddling_group_and_stops_after_podium():
    scores = [
        _score("a", 100),
        _score("b", 100),
        _score("c", 90),
        _score("d", 90),
        _score("e", 90),
        _score("f", 80),
        _score("g", 80),
    ]
    groups = podium_tie_groups(scores)
    assert [(g.rank, g.members) for g in groups] == [(1, ("a", "b")), (3, ("c", "d", "e"))]


def test_unresolved_and_resolution_flags():
    scores = [
        _score("a", 100, tie_break_status=TieBreakStatus.selected(1)),
        _score("b", 100, tie_break_status=UNSELECTED),
        _score("c", 90, tie_break_status=TieBreakStatus.selected(1)),
        _score("d", 90),
    ]
    unresolved = unresolved_top_tie_groups(scores)
    assert [g.rank for g in unresolved] == [3]
    assert resolution_status(scores) == [True, False]


def test_untouched_podium_ties_are_unresolved():
    scores = [_score("a", 100), _score("b", 100), _score("c", 10)]
    assert [g.members for g in unresolved_top_tie_groups(scores)] == [("a", "b")]
    assert resolution_status(scores) == [False]
    assert has_resolved_ties_in_podium(scores) is False


def test_redo_affordance_requires_selected_podium_competitor():
    unselected_only = [_score("a", 100, tie_break_status=UNSELECTED), _score("b", 100)]
    assert has_resolved_ties_in_podium(unselected_only) is False
    selected = [
        _score("a", 100, final_rank=1, tie_break_status=TieBreakStatus.selected(1)),
        _score("b", 100, final_rank=2, tie_break_status=UNSELECTED),
    ]
    assert has_resolved_ties_in_podium(selected) is True
    off_podium = [
        _score("x", 100),
        _score("y", 99),
        _score("z", 98),
        _score("a", 50, final_rank=4, tie_break_status=TieBreakStatus.selected(1)),
    ]
    assert has_resolved_ties_in_podium(off_podium) is False


def test_resolve_assigns_consecutive_ranks_from_base_rank():
    _, members = _group_at_rank_two()
    out = _rows_by_id(resolve(members, ["b", "a"], "AA", 5))
    assert out["b"].final_rank == 2
    assert out["a"].final_rank == 3
    assert out["c"].final_rank == 4
    assert out["b"].tie_break_status.serialize() == "selected_1"
    assert out["a"].tie_break_status.serialize() == "selected_2"
    assert out["c"].tie_break_status.serialize() == "unselected"
    assert [out[k].medal for k in ("b", "a", "c")] == ["🥈", "🥉", None]
    assert [out[k].points for k in ("b", "a", "c")] == [10, 8, 0]


def test_resolve_returns_winners_then_non_winners_in_existing_order():
    _, members = _group_at_rank_two()
    out = resolve(members, ["c"], "B", 5)
    assert [m.id for m in out] == ["c", "a", "b"]
    assert [m.final_rank for m in out] == [2, 3, 4]


def test_resolve_accepts_ids_mappings_and_objects():
    _, members = _group_at_rank_two()
    out = _rows_by_id(resolve(members, [{"id": "c"}, _Winner(competitor_id="comp-a")], "A", 5))
    assert out["c"].final_rank == 2
    assert out["a"].final_rank == 3
    assert out["b"].tie_break_status == UNSELECTED


def test_resolve_skips_unknown_and_duplicate_winners():
    _, members = _group_at_rank_two()
    out = _rows_by_id(resolve(members, ["ghost", "b", "b", None, "a"], "A", 5))
    assert out["b"].final_rank == 2
    assert out["b"].tie_break_status.order == 1
    assert out["a"].final_rank == 3
    assert out["a"].tie_break_status.order == 2
    assert out["c"].final_rank == 4


def test_resolve_without_valid_winners_is_noop():
    _, members = _group_at_rank_two()
    assert resolve(members, [], "A", 5) == []
    assert resolve(members, ["ghost"], "A", 5) == []
    assert resolve([], ["a"], "A", 5) == []


def test_resolving_twice_without_reset_is_refused():
    _, members = _group_at_rank_two()
    first = resolve(members, ["a"], "A", 5)
    with pytest.raises(TieBreakConsistencyError):
        resolve(first, ["b"], "A", 5)


def test_stale_final_rank_counts_as_tie_break_state():
    _, members = _group_at_rank_two()
    stale = [replace(members[0], final_rank=3)] + members[1:]
    with pytest.raises(TieBreakConsistencyError):
        resolve(stale, ["a"], "A", 5)
    shared = [replace(m, final_rank=m.rank) for m in members]
    assert len(resolve(shared, ["a"], "A", 5)) == 3


def test_redo_matches_fresh_resolution():
    _, members = _group_at_rank_two()
    first = resolve(members, ["b", "a"], "AAA", 8)
    redone = redo(first, ["c", "b"], "AAA", 8)
    fresh = resolve(members, ["c", "b"], "AAA", 8)
    assert {m.id: (m.final_rank, m.points, m.tie_break_status) for m in redone} == {
        m.id: (m.final_rank, m.points, m.tie_break_status) for m in fresh
    }


def test_reset_group_clears_tie_break_state():
    _, members = _group_at_rank_two()
    cleared = reset_group(resolve(members, ["a"], "A", 5))
    assert all(m.final_rank is None for m in cleared)
    assert all(not m.tie_break_status.is_set for m in cleared)
    assert all(m.points is None and m.medal is None for m in cleared)
    assert {m.rank for m in cleared} == {2}


def test_recompute_reapplies_stored_order_after_removal():
    # B and C tied at rank 2, resolved C over B; then leader A is removed.
    remaining = [
        _score("b", 90, final_rank=3, tie_break_status=UNSELECTED),
        _score("c", 90, final_rank=2, tie_break_status=TieBreakStatus.selected(1)),
        _score("d", 80, final_rank=4),
    ]
    out = _rows_by_id(recompute_standings(remaining, "A", 3))
    assert out["c"].final_rank == 1
    assert out["c"].tie_break_status == TieBreakStatus.selected(1)
    assert out["b"].final_rank == 2
    assert out["b"].tie_break_status == UNSELECTED
    assert out["d"].final_rank == 3
    assert [out[k].points for k in ("c", "b", "d")] == [8, 5, 2]
    assert [out[k].medal for k in ("c", "b", "d")] == ["🥇", "🥈", "🥉"]


def test_recompute_keeps_shared_rank_for_unresolved_ties_and_clears_stale_status():
    scores = [
        _score("a", 90),
        _score("b", 90),
        _score("c", 70, final_rank=2, tie_break_status=TieBreakStatus.selected(1)),
    ]
    out = _rows_by_id(recompute_standings(scores, "AAA", 3))
    assert out["a"].final_rank == out["b"].final_rank == 1
    assert out["a"].points == out["b"].points == 20
    assert out["c"].final_rank == 3
    assert out["c"].tie_break_status.is_set is False
