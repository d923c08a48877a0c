import pytest

from podium_core import (
    UnknownTournamentClassError,
    medal_for_rank,
    parse_tournament_class,
    points_for,
)


def test_fixed_classes_pay_podium_only():
    assert points_for("AAA", 1, 10) == 20
    assert points_for("AAA", 2, 10) == 15
    assert points_for("AAA", 3, 10) == 10
    assert points_for("AAA", 4, 10) == 0
    assert points_for("AA", 3, 1) == 8
    assert points_for("A", 1, 0) == 8
    assert points_for("B", 3, 2) == 1


def test_class_c_depends_on_roster_size():
    assert points_for("C", 1, 4) == 2
    assert points_for("C", 2, 4) == 1
    assert points_for("C", 3, 4) == 0
    assert points_for("C", 1, 3) == 1
    assert points_for("C", 2, 3) == 0
    assert points_for("C", 1, 2) == 0
    assert points_for("C", 1, 0) == 0


def test_composite_labels_use_leading_token():
    assert parse_tournament_class("AA - Nationals") == "AA"
    assert parse_tournament_class("aaa") == "AAA"
    assert parse_tournament_class("  b-regional") == "B"
    assert parse_tournament_class(parse_tournament_class("AA - Nationals")) == "AA"
    assert points_for("AA - Nationals", 1, 5) == 15


def test_unknown_or_missing_class_is_zero():
    assert parse_tournament_class("") is None
    assert parse_tournament_class(None) is None
    assert points_for(None, 1, 10) == 0
    assert points_for("", 1, 10) == 0
    assert points_for("Open", 1, 10) == 0


def test_out_of_range_rank_is_zero():
    assert points_for("AAA", 0, 10) == 0
    assert points_for("AAA", None, 10) == 0
    assert points_for("C", 4, 10) == 0


def test_strict_mode_rejects_unknown_class():
    with pytest.raises(UnknownTournamentClassError):
        points_for("Open", 1, 10, strict=True)
    assert points_for("AAA", 1, 10, strict=True) == 20


def test_medals_cover_podium():
    assert medal_for_rank(1) == "🥇"
    assert medal_for_rank(2) == "🥈"
    assert medal_for_rank(3) == "🥉"
    assert medal_for_rank(4) is None
    assert medal_for_rank(None) is None
