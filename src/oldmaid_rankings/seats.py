"""Seat rosters, scan-code dispatch and undo history."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Iterable

from .rating_engine import PlayerTable, ensure_player


logger = logging.getLogger(__name__)

MAX_SEAT_SIZE = 6
SEAT_CODE_PREFIX = "table"
PLAYER_CODE_PREFIX = "player"


class SeatError(ValueError):
    """Raised when a seat operation is not allowed."""


@dataclass
class SeatMap:
    """Seat rosters keyed by seat id, plus the action history used by undo."""

    seats: dict[str, list[str]] = field(default_factory=dict)
    history: list[dict[str, Any]] = field(default_factory=list)
    current_seat: str | None = None

    def add_seat(self, seat_id: str) -> list[str]:
        return self.seats.setdefault(seat_id, [])

    def roster(self, seat_id: str) -> list[str]:
        if seat_id not in self.seats:
            raise SeatError(f"unknown seat: {seat_id}")
        return list(self.seats[seat_id])

    def add_player(self, seat_id: str, player_id: str, players: PlayerTable) -> None:
        if seat_id not in self.seats:
            raise SeatError(f"unknown seat: {seat_id}")
        roster = self.seats[seat_id]
        if player_id in roster:
            raise SeatError(f"{player_id} is already seated at {seat_id}")
        if len(roster) >= MAX_SEAT_SIZE:
            raise SeatError(f"{seat_id} already has {MAX_SEAT_SIZE} players")

        roster.append(player_id)
        ensure_player(players, player_id)
        self.history.append({"type": "addPlayer", "seatId": seat_id, "playerId": player_id})
        logger.debug("Added %s to %s", player_id, seat_id)

    def remove_player(self, seat_id: str, player_id: str) -> None:
        roster = self.seats.get(seat_id)
        if roster is None or player_id not in roster:
            raise SeatError(f"{player_id} is not seated at {seat_id}")

        index = roster.index(player_id)
        del roster[index]
        self.history.append(
            {"type": "removePlayer", "seatId": seat_id, "playerId": player_id, "index": index}
        )

    def remove_seat(self, seat_id: str) -> None:
        if seat_id not in self.seats:
            raise SeatError(f"unknown seat: {seat_id}")

        roster = self.seats.pop(seat_id)
        self.history.append({"type": "removeSeat", "seatId": seat_id, "players": roster})
        if self.current_seat == seat_id:
            self.current_seat = None

    def undo(self) -> dict[str, Any]:
        """Revert the most recent seat action and return it."""

        if not self.history:
            raise SeatError("no actions to undo")

        action = self.history.pop()
        kind = action["type"]
        seat_id = action["seatId"]
        if kind == "addPlayer":
            self.seats[seat_id] = [p for p in self.seats.get(seat_id, []) if p != action["playerId"]]
        elif kind == "removePlayer":
            if seat_id in self.seats:
                self.seats[seat_id].insert(action["index"], action["playerId"])
        elif kind == "removeSeat":
            self.seats[seat_id] = list(action["players"])
        else:
            raise SeatError(f"unknown action type in history: {kind!r}")
        return action

    def handle_scan(self, code: str, players: PlayerTable) -> str | None:
        """Dispatch a scanned code and return the seat it applied to.

        Codes that are neither seat nor player codes are ignored.
        """

        code = code.strip()
        if code.startswith(SEAT_CODE_PREFIX):
            self.add_seat(code)
            self.current_seat = code
            return code
        if code.startswith(PLAYER_CODE_PREFIX):
            if self.current_seat is None:
                raise SeatError("scan a seat code before adding players")
            self.add_player(self.current_seat, code, players)
            return self.current_seat
        logger.warning("Ignoring unrecognized code %r", code)
        return None

    def finish_order_for(self, seat_id: str, ordered_ids: Iterable[str]) -> list[str]:
        """Check that ``ordered_ids`` is a reordering of the seat's roster."""

        order = list(ordered_ids)
        roster = self.roster(seat_id)
        if sorted(order) != sorted(roster):
            missing = sorted(set(roster) - set(order))
            extra = sorted(set(order) - set(roster))
            raise SeatError(
                f"order for {seat_id} does not match its roster "
                f"(missing: {', '.join(missing) or '-'}; extra: {', '.join(extra) or '-'})"
            )
        return order
