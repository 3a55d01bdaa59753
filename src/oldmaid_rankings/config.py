from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v is not None else default


@dataclass(frozen=True)
class Settings:
    state_path: Path = Path("tournament.json")
    sync_url: str | None = None
    log_level: str = "WARNING"


def load_settings() -> Settings:
    return Settings(
        state_path=Path(env("OLDMAID_STATE_PATH", "tournament.json") or "tournament.json"),
        sync_url=env("OLDMAID_SYNC_URL") or None,
        log_level=env("OLDMAID_LOG_LEVEL", "WARNING") or "WARNING",
    )
