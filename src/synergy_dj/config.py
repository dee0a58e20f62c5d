from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def load_local_env_file(env_path: str = ".env") -> None:
    """Load key=value pairs from a local .env file into process env.

    Existing environment variables are preserved and not overwritten.
    """

    path = Path(env_path)
    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")

        if key and key not in os.environ:
            os.environ[key] = value


def env_int(name: str, fallback: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return int(raw)
    except ValueError:
        return fallback


def env_str(name: str, fallback: str) -> str:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    return raw.strip()


@dataclass(frozen=True, slots=True)
class Settings:
    market: str = "US"
    popularity_min: int = 20
    popularity_max: int = 60
    discovery_limit: int = 15
    recommendation_limit: int = 50
    port: int = 8000

    @property
    def popularity_window(self) -> tuple[int, int]:
        return self.popularity_min, self.popularity_max


def load_settings() -> Settings:
    low = min(100, max(0, env_int("DISCOVERY_POPULARITY_MIN", 20)))
    high = min(100, max(0, env_int("DISCOVERY_POPULARITY_MAX", 60)))
    if low > high:
        low, high = high, low
    return Settings(
        market=env_str("SPOTIFY_MARKET", "US"),
        popularity_min=low,
        popularity_max=high,
        discovery_limit=max(1, env_int("DISCOVERY_LIMIT", 15)),
        recommendation_limit=min(100, max(1, env_int("RECOMMENDATION_LIMIT", 50))),
        port=env_int("PORT", 8000),
    )
