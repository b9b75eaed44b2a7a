from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    # Custodian data service
    state_file: Path = Path("state.json")
    data_listen: str = "0.0.0.0:9999"
    event_interval_seconds: float = 1
    initial_event_count: int = 100
    max_generate_count: int = 1000
    random_seed: int | None = None

    # Portfolio tracker
    tracker_listen: str = "0.0.0.0:9998"
    custodian_url: str = "http://localhost:9999/custodian/"
    custodian_fetch_timeout_seconds: float = 30.0

    model_config = SettingsConfigDict(
        env_prefix="PORTFOLIO_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@cache
def config() -> AppSettings:
    return AppSettings()
