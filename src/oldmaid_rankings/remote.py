"""Load and store tournament state through the spreadsheet web-app endpoint."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import time
from typing import Any, Optional

import requests

from .state import TournamentState


logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class SyncError(RuntimeError):
    """Raised when the remote endpoint rejects or garbles a sync."""


def _get_session() -> requests.Session:
    s = requests.Session()
    s.headers.update(DEFAULT_HEADERS)
    return s


def _request_with_retries(
    session: requests.Session,
    method: str,
    url: str,
    *,
    json_body: dict[str, Any] | None = None,
    timeout: int = 30,
    max_attempts: int = 3,
    backoff_seconds: float = 0.2,
) -> requests.Response:
    last_exc: Optional[BaseException] = None
    for attempt in range(1, max_attempts + 1):
        try:
            resp = session.request(method, url, json=json_body, timeout=timeout)
            resp.raise_for_status()
            return resp
        except requests.RequestException as exc:
            last_exc = exc
            if attempt == max_attempts:
                raise SyncError(f"{method} {url} failed after {max_attempts} attempts: {exc}") from exc
            logger.warning("%s %s failed (attempt %d/%d): %s", method, url, attempt, max_attempts, exc)
            time.sleep(backoff_seconds * attempt)

    raise SyncError(f"{method} {url} was not attempted") from last_exc


def _decode(resp: requests.Response) -> dict[str, Any]:
    try:
        payload = resp.json()
    except ValueError as exc:
        raise SyncError(f"endpoint returned non-JSON body: {exc}") from exc
    if not isinstance(payload, dict):
        raise SyncError("endpoint returned a non-object JSON document")
    if payload.get("error"):
        raise SyncError(f"endpoint error: {payload['error']}")
    return payload


def fetch_state(url: str) -> TournamentState:
    """Fetch the shared tournament state."""

    session = _get_session()
    payload = _decode(_request_with_retries(session, "GET", url))

    # The endpoint may wrap the document as {"rev": ..., "data": {...}}.
    data = payload.get("data")
    if isinstance(data, dict) and "seatMap" in data:
        payload = data
    return TournamentState.from_dict(payload)


def push_state(url: str, state: TournamentState) -> dict[str, Any]:
    """Store ``state`` remotely and return the endpoint's reply."""

    document = state.to_dict()
    body = {
        "seatMap": document["seatMap"],
        "playerData": document["playerData"],
        "time": datetime.now(timezone.utc).isoformat(),
    }

    session = _get_session()
    reply = _decode(_request_with_retries(session, "POST", url, json_body=body))
    if not reply.get("ok"):
        raise SyncError("endpoint did not acknowledge the save")
    logger.info("Pushed %d players across %d seats", len(state.players), len(state.seats.seats))
    return reply
