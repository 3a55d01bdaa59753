"""Old Maid tournament rating engine: momentum scoring and top-3 titles."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Any, Iterable, Optional


logger = logging.getLogger(__name__)

TITLE_FIRST = "first"
TITLE_SECOND = "second"
TITLE_THIRD = "third"
TITLES = (TITLE_FIRST, TITLE_SECOND, TITLE_THIRD)

TITLE_LABELS = {
    TITLE_FIRST: "Champion",
    TITLE_SECOND: "Challenger",
    TITLE_THIRD: "Contender",
}

_RECORD_KEYS = ("nickname", "rate", "lastRank", "bonus", "title")


class InvalidOrder(ValueError):
    """Raised when a finish order cannot be scored against the player table."""


@dataclass(frozen=True)
class RatingConfig:
    """Rule constants for a scoring pass."""

    initial_rate: int = 50
    rate_floor: int = 30
    points_per_rank: int = 2
    rank_swing_points: int = 8
    damping_threshold: int = 80
    damping_factor: float = 0.8
    usurp_bonus: int = 2


DEFAULT_CONFIG = RatingConfig()


@dataclass
class PlayerRecord:
    """Mutable rating record for one player."""

    nickname: str
    rate: int = DEFAULT_CONFIG.initial_rate
    last_rank: Optional[int] = None
    bonus: int = 0
    title: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        data.update(
            {
                "nickname": self.nickname,
                "rate": self.rate,
                "lastRank": self.last_rank,
                "bonus": self.bonus,
                "title": self.title,
            }
        )
        return data

    @classmethod
    def from_dict(cls, player_id: str, data: dict[str, Any]) -> "PlayerRecord":
        """Build a record from its JSON form, defaulting missing fields.

        Keys this engine does not own are kept in ``extra`` so they survive a
        load/save round trip untouched.
        """

        rate = data.get("rate")
        last_rank = data.get("lastRank")
        title = data.get("title")
        return cls(
            nickname=str(data.get("nickname") or player_id),
            rate=int(rate) if rate is not None else DEFAULT_CONFIG.initial_rate,
            last_rank=int(last_rank) if last_rank is not None else None,
            bonus=int(data.get("bonus") or 0),
            title=title if title in TITLES else None,
            extra={key: value for key, value in data.items() if key not in _RECORD_KEYS},
        )


PlayerTable = dict[str, PlayerRecord]


def ensure_player(
    players: PlayerTable,
    player_id: str,
    nickname: str | None = None,
    *,
    config: RatingConfig | None = None,
) -> PlayerRecord:
    """Return the record for ``player_id``, creating a default one if absent."""

    record = players.get(player_id)
    if record is None:
        cfg = config or DEFAULT_CONFIG
        record = PlayerRecord(nickname=nickname or player_id, rate=cfg.initial_rate)
        players[player_id] = record
    return record


def validate_finish_order(players: PlayerTable, finish_order: Iterable[str]) -> list[str]:
    order = list(finish_order)
    if not order:
        raise InvalidOrder("finish order is empty")

    seen: set[str] = set()
    for player_id in order:
        if player_id not in players:
            raise InvalidOrder(f"unknown player id in finish order: {player_id!r}")
        if player_id in seen:
            raise InvalidOrder(f"duplicate player id in finish order: {player_id!r}")
        seen.add(player_id)
    return order


def top_rated_player_id(players: PlayerTable) -> str | None:
    """Return the highest-rated player id, first in table order on ties.

    Returns None for an empty table.
    """

    top_id = None
    top_rate = -math.inf
    for player_id, record in players.items():
        if record.rate > top_rate:
            top_rate = record.rate
            top_id = player_id
    return top_id


def round_point(
    prev_rank: int,
    rank: int,
    seat_size: int,
    rate: int,
    *,
    config: RatingConfig | None = None,
) -> int:
    """Return momentum points before any usurpation bonus.

    ``rate`` is the player's rate before this round is applied.
    """

    cfg = config or DEFAULT_CONFIG
    point = (prev_rank - rank) * cfg.points_per_rank

    if prev_rank == 1 and rank == seat_size:
        point = -cfg.rank_swing_points
    elif prev_rank == seat_size and rank == 1:
        point = cfg.rank_swing_points

    if rate >= cfg.damping_threshold:
        point = math.floor(point * cfg.damping_factor)
    return point


def _usurps_throne(players: PlayerTable, record: PlayerRecord, rank: int) -> bool:
    top_id = top_rated_player_id(players)
    if top_id is None:
        return False

    top = players[top_id]
    if top.last_rank is None:
        return False
    return record.rate <= top.rate and rank < top.last_rank


def assign_titles(players: PlayerTable) -> list[str]:
    """Reassign titles to the top three players by rate and return their ids."""

    for record in players.values():
        record.title = None

    # sorted() is stable, so table order breaks rate ties.
    ranked = sorted(players, key=lambda player_id: players[player_id].rate, reverse=True)
    holders = ranked[: len(TITLES)]
    for player_id, title in zip(holders, TITLES):
        players[player_id].title = title
    return holders


def score_round(
    players: PlayerTable,
    finish_order: Iterable[str],
    *,
    config: RatingConfig | None = None,
) -> dict[str, int]:
    """Apply one seat's finish order to the player table in place.

    Every player in ``finish_order`` gets a new ``rate``, ``bonus`` and
    ``last_rank``; titles are then recomputed over the whole table. The
    returned mapping holds each scored player's point delta.

    The top-rated player is looked up again for every position because the
    updates earlier in the same pass can move the lead.
    """

    cfg = config or DEFAULT_CONFIG
    order = validate_finish_order(players, finish_order)
    seat_size = len(order)

    if seat_size == 1:
        logger.info("Single-player order for %s ignored; ratings unchanged", order[0])
        assign_titles(players)
        return {order[0]: 0}

    points: dict[str, int] = {}
    for index, player_id in enumerate(order):
        record = players[player_id]
        rank = index + 1
        prev_rank = record.last_rank if record.last_rank is not None else seat_size

        point = round_point(prev_rank, rank, seat_size, record.rate, config=cfg)
        if _usurps_throne(players, record, rank):
            point += cfg.usurp_bonus

        record.bonus = point
        record.rate = max(cfg.rate_floor, record.rate + point)
        record.last_rank = rank
        points[player_id] = point

    holders = assign_titles(players)
    logger.debug("Scored round %s -> %s; title holders %s", order, points, holders)
    return points
