"""CLI for the Old Maid tournament tracker."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from .config import load_settings
from .rating_engine import score_round
from .remote import SyncError, fetch_state, push_state
from .state import load_state, save_state, write_standings_csv


def add(state_path: Path, seat_id: str, player_ids: list[str]) -> None:
    state = load_state(state_path)
    state.seats.add_seat(seat_id)
    for player_id in player_ids:
        state.seats.add_player(seat_id, player_id, state.players)
    save_state(state, state_path)


def remove(state_path: Path, seat_id: str, player_id: str | None) -> None:
    state = load_state(state_path)
    if player_id is None:
        state.seats.remove_seat(seat_id)
    else:
        state.seats.remove_player(seat_id, player_id)
    save_state(state, state_path)


def scan(state_path: Path, codes: list[str]) -> str | None:
    state = load_state(state_path)
    seat_id = None
    for code in codes:
        seat_id = state.seats.handle_scan(code, state.players) or seat_id
    save_state(state, state_path)
    return seat_id


def undo(state_path: Path) -> dict:
    state = load_state(state_path)
    action = state.seats.undo()
    save_state(state, state_path)
    return action


def score(state_path: Path, order: list[str], seat_id: str | None = None) -> dict[str, int]:
    state = load_state(state_path)
    if seat_id is not None:
        order = state.seats.finish_order_for(seat_id, order)
    points = score_round(state.players, order)
    save_state(state, state_path)

    for rank, player_id in enumerate(order, start=1):
        record = state.players[player_id]
        print(f"{rank}. {player_id} rate={record.rate} ({points[player_id]:+d})")
    return points


def export(state_path: Path, out_path: Path) -> None:
    write_standings_csv(load_state(state_path).players, out_path)


def pull(state_path: Path, url: str) -> None:
    save_state(fetch_state(url), state_path)


def push(state_path: Path, url: str) -> None:
    push_state(url, load_state(state_path))


def _require_url(url: str | None) -> str:
    if not url:
        raise SyncError("no sync URL given (use --url or OLDMAID_SYNC_URL)")
    return url


def main(argv: list[str] | None = None) -> int:
    settings = load_settings()

    parser = argparse.ArgumentParser(prog="python -m oldmaid_rankings.cli")
    parser.add_argument("--state", type=Path, default=settings.state_path, help="Tournament JSON file")
    parser.add_argument("--log-level", default=settings.log_level)
    subparsers = parser.add_subparsers(dest="command", required=True)

    add_parser = subparsers.add_parser("add", help="Seat players at a table")
    add_parser.add_argument("seat")
    add_parser.add_argument("players", nargs="*")

    remove_parser = subparsers.add_parser("remove", help="Remove a player, or a whole seat")
    remove_parser.add_argument("seat")
    remove_parser.add_argument("player", nargs="?")

    subparsers.add_parser("undo", help="Revert the last seat change")

    scan_parser = subparsers.add_parser("scan", help="Apply scanned seat and player codes in order")
    scan_parser.add_argument("codes", nargs="+")

    score_parser = subparsers.add_parser("score", help="Score a finish order, winner first")
    score_parser.add_argument("--seat", default=None, help="Check the order against this seat's roster")
    score_parser.add_argument("order", nargs="+")

    export_parser = subparsers.add_parser("export", help="Write standings CSV")
    export_parser.add_argument("--out", required=True, type=Path)

    for name, help_text in (("pull", "Load state from the sync endpoint"), ("push", "Save state to the sync endpoint")):
        sync_parser = subparsers.add_parser(name, help=help_text)
        sync_parser.add_argument("--url", default=settings.sync_url)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        if args.command == "add":
            add(args.state, args.seat, args.players)
        elif args.command == "remove":
            remove(args.state, args.seat, args.player)
        elif args.command == "undo":
            action = undo(args.state)
            print(f"undid {action['type']} on {action['seatId']}")
        elif args.command == "scan":
            seat_id = scan(args.state, args.codes)
            if seat_id is not None:
                print(f"current seat: {seat_id}")
        elif args.command == "score":
            score(args.state, args.order, args.seat)
        elif args.command == "export":
            export(args.state, args.out)
        elif args.command == "pull":
            pull(args.state, _require_url(args.url))
        elif args.command == "push":
            push(args.state, _require_url(args.url))
    except (ValueError, SyncError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
