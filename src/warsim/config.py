"""Lightweight configuration for the Warsim tools."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from ``WARSIM_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="WARSIM_", env_file=".env", env_file_encoding="utf-8"
    )

    state_dir: Path = Field(default=Path("state"), description="Where world snapshots live")
    render_path: Path = Field(
        default=Path("rendered.html"), description="HTML report written after each run"
    )
    rng_seed: str | None = Field(
        default=None,
        description="Seed phrase for reproducible turns; unset draws from OS entropy",
    )
    max_turns: int = Field(default=1, description="Turns resolved per invocation", gt=0)
    log_level: str = Field(default="INFO", description="Root logging level")


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
