"""Tournament state persistence and standings export."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any

from .rating_engine import TITLE_LABELS, PlayerRecord, PlayerTable
from .seats import SeatMap


STANDINGS_COLUMNS = ["id", "nickname", "rate", "last_rank", "bonus", "title"]


@dataclass
class TournamentState:
    """Seats, player records and seat history for one tournament."""

    seats: SeatMap = field(default_factory=SeatMap)
    players: PlayerTable = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "seatMap": {seat_id: list(roster) for seat_id, roster in self.seats.seats.items()},
            "playerData": {player_id: record.to_dict() for player_id, record in self.players.items()},
            "actionHistory": list(self.seats.history),
            "currentSeat": self.seats.current_seat,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TournamentState":
        raw_seats = data.get("seatMap") or {}
        raw_players = data.get("playerData") or {}
        raw_history = data.get("actionHistory") or []
        current_seat = data.get("currentSeat")

        seats = SeatMap(
            seats={str(seat_id): [str(p) for p in roster] for seat_id, roster in raw_seats.items()},
            history=[item for item in raw_history if isinstance(item, dict)],
        )
        if isinstance(current_seat, str) and current_seat in seats.seats:
            seats.current_seat = current_seat
        players = {
            str(player_id): PlayerRecord.from_dict(str(player_id), record)
            for player_id, record in raw_players.items()
            if isinstance(record, dict)
        }
        return cls(seats=seats, players=players)


def load_state(path: Path) -> TournamentState:
    """Load state from ``path``; a missing file yields an empty tournament."""

    if not path.exists():
        return TournamentState()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"{path} does not hold a JSON object")
    return TournamentState.from_dict(payload)


def save_state(state: TournamentState, path: Path) -> None:
    """Write state next to ``path`` first, then swap it into place."""

    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(json.dumps(state.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    tmp_path.replace(path)


def write_standings_csv(players: PlayerTable, path: Path) -> None:
    with path.open("w", encoding="utf-8", newline="") as outfile:
        writer = csv.writer(outfile)
        writer.writerow(STANDINGS_COLUMNS)
        for player_id, record in players.items():
            writer.writerow(
                [
                    player_id,
                    record.nickname,
                    record.rate,
                    record.last_rank if record.last_rank is not None else "",
                    record.bonus,
                    TITLE_LABELS.get(record.title or "", ""),
                ]
            )
