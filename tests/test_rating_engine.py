import random

import pytest

from oldmaid_rankings.rating_engine import (
    TITLE_FIRST,
    TITLE_SECOND,
    TITLE_THIRD,
    InvalidOrder,
    PlayerRecord,
    RatingConfig,
    assign_titles,
    ensure_player,
    round_point,
    score_round,
    top_rated_player_id,
)


def _table(*rows):
    """Build a player table from (id, rate, last_rank) rows, in row order."""

    return {
        player_id: PlayerRecord(nickname=player_id, rate=rate, last_rank=last_rank)
        for player_id, rate, last_rank in rows
    }


def _snapshot(players):
    return {player_id: record.to_dict() for player_id, record in players.items()}


@pytest.mark.parametrize(
    ("prev_rank", "rank", "seat_size", "rate", "expected"),
    [
        (3, 1, 4, 50, 4),
        (2, 3, 4, 50, -2),
        (2, 2, 4, 50, 0),
        (5, 3, 6, 79, 4),
        (1, 4, 4, 50, -8),
        (4, 1, 4, 50, 8),
        (1, 2, 2, 50, -8),
        (2, 1, 2, 50, 8),
        (1, 4, 4, 90, -7),
        (4, 1, 4, 90, 6),
        (2, 4, 4, 85, -4),
        (3, 1, 4, 85, 3),
        (2, 2, 4, 80, 0),
    ],
)
def test_round_point_momentum_overrides_and_damping(prev_rank, rank, seat_size, rate, expected):
    assert round_point(prev_rank, rank, seat_size, rate) == expected


def test_fresh_players_default_to_last_place():
    players = _table(("P1", 50, None), ("P2", 50, None), ("P3", 50, None))

    points = score_round(players, ["P1", "P2", "P3"])

    # P1 climbs from the defaulted last place straight to first, which is the
    # forced +8 swing. P1 also leads the 50-point tie by table order but has no
    # last rank yet, so nobody earns the usurpation bonus.
    assert points == {"P1": 8, "P2": 2, "P3": 0}
    assert [players[p].rate for p in ("P1", "P2", "P3")] == [58, 52, 50]
    assert [players[p].last_rank for p in ("P1", "P2", "P3")] == [1, 2, 3]
    assert [players[p].bonus for p in ("P1", "P2", "P3")] == [8, 2, 0]
    assert [players[p].title for p in ("P1", "P2", "P3")] == [TITLE_FIRST, TITLE_SECOND, TITLE_THIRD]


def test_high_rated_leader_falling_from_first_to_last():
    players = _table(("A", 50, 2), ("B", 50, 3), ("C", 50, 4), ("X", 90, 1))

    points = score_round(players, ["A", "B", "C", "X"])

    assert points["X"] == -7
    assert players["X"].rate == 83
    assert players["X"].bonus == -7
    assert players["X"].last_rank == 4
    assert points["A"] == points["B"] == points["C"] == 2


def test_last_to_first_climb_with_usurpation_bonus():
    players = _table(("K", 70, 2), ("Y", 32, 4), ("M", 50, 1), ("N", 50, 3))

    points = score_round(players, ["Y", "K", "M", "N"])

    # +8 forced climb, +2 for beating the leader's last rank of 2.
    assert points["Y"] == 10
    assert players["Y"].rate == 42
    assert points["K"] == 0
    assert points["M"] == -4
    assert points["N"] == -2
    assert players["M"].rate == 46
    assert players["N"].rate == 48


def test_top_rated_player_is_recomputed_for_each_position():
    players = _table(("A", 60, 3), ("B", 58, 3), ("C", 50, 2))

    points = score_round(players, ["B", "C", "A"])

    # B overtakes A mid-pass. C is then measured against B (last rank now 1),
    # not against A's last rank of 3, so C gets no bonus.
    assert points == {"B": 10, "C": 0, "A": 0}
    assert players["B"].rate == 68
    assert top_rated_player_id(players) == "B"
    assert [players[p].title for p in ("B", "A", "C")] == [TITLE_FIRST, TITLE_SECOND, TITLE_THIRD]


def test_leader_beating_own_last_rank_earns_the_bonus():
    players = _table(("A", 70, 3), ("B", 50, 1), ("C", 50, 2))

    points = score_round(players, ["A", "B", "C"])

    assert points["A"] == 10
    assert players["A"].rate == 80


def test_rate_is_clamped_at_floor_but_bonus_keeps_full_delta():
    players = _table(("A", 50, None), ("B", 50, None), ("Z", 31, 1))

    score_round(players, ["A", "B", "Z"])

    assert players["Z"].rate == 30
    assert players["Z"].bonus == -8
    assert players["Z"].last_rank == 3


def test_custom_config_changes_floor():
    players = _table(("A", 50, 2), ("B", 50, 1))

    score_round(players, ["A", "B"], config=RatingConfig(rate_floor=45))

    assert players["B"].rate == 45
    # A leads the 50-point tie by table order and beats its own last rank.
    assert players["A"].rate == 60


def test_zero_sum_momentum_without_overrides():
    players = _table(("A", 60, 1), ("B", 50, 2), ("C", 50, 3), ("D", 50, 4))

    points = score_round(players, ["B", "A", "D", "C"])

    assert points == {"B": 2, "A": -2, "D": 2, "C": -2}
    assert sum(points.values()) == 0


def test_scoring_the_same_order_twice_is_not_idempotent():
    players = _table(("P1", 50, None), ("P2", 50, None), ("P3", 50, None))

    first = score_round(players, ["P1", "P2", "P3"])
    second = score_round(players, ["P1", "P2", "P3"])

    assert first == {"P1": 8, "P2": 2, "P3": 0}
    assert second == {"P1": 0, "P2": 0, "P3": 0}
    assert first != second


def test_single_player_order_is_a_no_op_round():
    players = _table(("A", 50, 1), ("B", 40, 2))
    players["A"].bonus = 3

    points = score_round(players, ["A"])

    assert points == {"A": 0}
    assert players["A"].rate == 50
    assert players["A"].bonus == 3
    assert players["A"].last_rank == 1
    assert players["A"].title == TITLE_FIRST


@pytest.mark.parametrize(
    ("order", "message"),
    [
        ([], "empty"),
        (["A", "ghost"], "unknown"),
        (["A", "B", "A"], "duplicate"),
    ],
)
def test_invalid_orders_fail_without_mutation(order, message):
    players = _table(("A", 50, 3), ("B", 60, 1))
    before = _snapshot(players)

    with pytest.raises(InvalidOrder, match=message):
        score_round(players, order)

    assert _snapshot(players) == before


def test_invalid_order_is_a_value_error():
    with pytest.raises(ValueError):
        score_round({}, ["A"])


def test_top_rated_player_ties_break_by_table_order():
    players = _table(("a", 50, None), ("b", 70, None), ("c", 70, None))

    assert top_rated_player_id(players) == "b"
    assert top_rated_player_id({}) is None


def test_assign_titles_uses_stable_rate_order():
    players = _table(("a", 50, None), ("b", 70, None), ("c", 70, None), ("d", 40, None), ("e", 70, None))
    players["a"].title = TITLE_FIRST

    holders = assign_titles(players)

    assert holders == ["b", "c", "e"]
    assert players["a"].title is None
    assert players["d"].title is None
    assert [players[p].title for p in holders] == [TITLE_FIRST, TITLE_SECOND, TITLE_THIRD]


def test_assign_titles_with_fewer_than_three_players():
    players = _table(("a", 31, None), ("b", 45, None))

    assert assign_titles(players) == ["b", "a"]
    assert players["b"].title == TITLE_FIRST
    assert players["a"].title == TITLE_SECOND


def test_titles_cover_whole_table_not_just_scored_seat():
    players = _table(("idle", 75, 1), ("A", 50, 2), ("B", 50, 1))

    score_round(players, ["A", "B"])

    assert players["idle"].title == TITLE_FIRST
    assert players["idle"].rate == 75


def test_floor_and_title_invariants_hold_over_many_rounds():
    rng = random.Random(1234)
    players = {}
    ids = [f"player{n:02d}" for n in range(1, 11)]
    for player_id in ids:
        ensure_player(players, player_id)

    for _ in range(300):
        seat = rng.sample(ids, rng.randint(2, 6))
        score_round(players, seat)

        assert all(record.rate >= 30 for record in players.values())
        titled = [p for p, record in players.items() if record.title is not None]
        expected = sorted(players, key=lambda p: players[p].rate, reverse=True)[:3]
        assert len(titled) == 3
        assert [players[p].title for p in expected] == [TITLE_FIRST, TITLE_SECOND, TITLE_THIRD]


def test_ensure_player_creates_defaults_once():
    players = {}

    created = ensure_player(players, "player01")
    created.rate = 61
    again = ensure_player(players, "player01", nickname="ignored")

    assert again is created
    assert again.nickname == "player01"
    assert again.rate == 61
    assert again.last_rank is None
    assert again.bonus == 0
    assert again.title is None


def test_player_record_round_trip_keeps_unknown_fields():
    raw = {"nickname": "Hana", "rate": 64, "lastRank": 2, "bonus": -2, "title": "second", "team": "B組"}

    record = PlayerRecord.from_dict("player07", raw)

    assert record.last_rank == 2
    assert record.to_dict() == raw


def test_player_record_from_sparse_dict_uses_defaults():
    record = PlayerRecord.from_dict("player03", {"title": "👑 王者"})

    assert record.nickname == "player03"
    assert record.rate == 50
    assert record.last_rank is None
    assert record.bonus == 0
    assert record.title is None


def test_player_record_from_dict_treats_null_rate_as_default():
    record = PlayerRecord.from_dict("player01", {"rate": None, "lastRank": 3})

    assert record.rate == 50
    assert record.last_rank == 3
