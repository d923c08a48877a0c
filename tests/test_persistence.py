from __future__ import annotations

import pytest

from podium_core import (
    CompetitorScore,
    InMemoryScoreStore,
    PersistenceCoordinator,
    RankUpdate,
    TieBreakStatus,
    UNSELECTED,
)


def _store() -> InMemoryScoreStore:
    return InMemoryScoreStore(
        {
            "ev1": [
                {"id": "r1", "competitor_id": "c1", "total_score": 90, "tie_breaker_status": None},
                {"id": "r2", "competitor_id": "c2", "total_score": 90, "tie_breaker_status": None},
                {"id": "r3", "competitor_id": "c3", "total_score": 90, "tie_breaker_status": None},
            ]
        }
    )


def _resolved() -> list[CompetitorScore]:
    return [
        CompetitorScore(id="r1", rank=1, final_rank=1, medal="🥇", points=20,
                        tie_break_status=TieBreakStatus.selected(1)),
        CompetitorScore(id="r2", rank=1, final_rank=2, medal="🥈", points=15,
                        tie_break_status=TieBreakStatus.selected(2)),
        CompetitorScore(id="r3", rank=1, final_rank=3, medal="🥉", points=10,
                        tie_break_status=UNSELECTED),
    ]


@pytest.mark.asyncio
async def test_persist_writes_placement_equal_to_final_rank():
    store = _store()
    result = await PersistenceCoordinator(store).persist_scores(_resolved())
    assert result.success is True
    assert result.failures == ()
    assert set(result.written) == {"r1", "r2", "r3"}
    for score_id, expected in (("r1", 1), ("r2", 2), ("r3", 3)):
        row = store.row(score_id)
        assert row["final_rank"] == expected
        assert row["placement"] == row["final_rank"]
    assert store.row("r2")["tie_breaker_status"] == "selected_2"
    assert store.row("r3")["tie_breaker_status"] == "unselected"
    assert store.row("r1")["points"] == 20


@pytest.mark.asyncio
async def test_partial_failure_is_reported_without_rollback():
    store = _store()
    store.fail_ids = {"r2"}
    result = await PersistenceCoordinator(store).persist_scores(_resolved())
    assert result.success is False
    assert result.failed_ids == ("r2",)
    assert result.failures[0].error["code"] == "rejected"
    assert store.row("r1")["final_rank"] == 1
    assert store.row("r3")["final_rank"] == 3
    assert "final_rank" not in store.row("r2")
    assert set(result.written) == {"r1", "r3"}


@pytest.mark.asyncio
async def test_raising_store_is_captured_per_row():
    store = _store()
    store.raise_ids = {"r3"}
    result = await PersistenceCoordinator(store).persist_scores(_resolved())
    assert result.success is False
    assert result.failed_ids == ("r3",)
    assert isinstance(result.failures[0].error, ConnectionError)
    assert store.row("r2")["placement"] == 2


@pytest.mark.asyncio
async def test_unknown_row_is_a_failure():
    store = _store()
    result = await PersistenceCoordinator(store).persist(
        [RankUpdate(id="missing", final_rank=1)]
    )
    assert result.success is False
    assert result.failures[0].error["code"] == "not_found"


@pytest.mark.asyncio
async def test_empty_batch_succeeds():
    store = _store()
    result = await PersistenceCoordinator(store).persist([])
    assert result.success is True
    assert store.update_log == []


@pytest.mark.asyncio
async def test_reset_clears_tie_break_fields():
    store = _store()
    coordinator = PersistenceCoordinator(store)
    await coordinator.persist_scores(_resolved())
    result = await coordinator.reset(_resolved()[:2])
    assert result.success is True
    for score_id in ("r1", "r2"):
        row = store.row(score_id)
        assert row["final_rank"] is None
        assert row["placement"] is None
        assert row["tie_breaker_status"] is None
        assert row["points"] is None
    assert store.row("r3")["final_rank"] == 3
