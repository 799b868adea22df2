from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Repo root: arena/config.py -> parents[1]
PROJECT_ROOT = Path(__file__).resolve().parents[1]


@dataclass(frozen=True, slots=True)
class ArenaSettings:
    redis_url: str
    key_prefix: str
    tx_max_retries: int
    recent_games_hours: int
    cors_origins: tuple[str, ...]
    log_level: str
    items_csv: Path


def _int_from_env(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise RuntimeError(f"{name} must be >= {minimum}, got {value}")
    return value


def settings_from_env() -> ArenaSettings:
    origins = os.environ.get("ARENA_CORS_ORIGINS", "*")
    items_csv = os.environ.get("ARENA_ITEMS_CSV")
    return ArenaSettings(
        redis_url=os.environ.get("REDIS_URL", "redis://localhost:6379/0"),
        key_prefix=os.environ.get("ARENA_KEY_PREFIX", "arena"),
        tx_max_retries=_int_from_env("ARENA_TX_MAX_RETRIES", 5),
        recent_games_hours=_int_from_env("ARENA_RECENT_GAMES_HOURS", 24),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        log_level=os.environ.get("ARENA_LOG_LEVEL", "INFO").upper(),
        items_csv=Path(items_csv) if items_csv else PROJECT_ROOT / "assets" / "items.csv",
    )


def load_settings(*, dotenv: bool = True) -> ArenaSettings:
    """Read settings, optionally layering a repo-local `.env` under the real environment."""

    if dotenv:
        env_path = PROJECT_ROOT / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=False)
    return settings_from_env()
