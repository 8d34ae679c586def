"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Lifeclock server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback; there is no auth layer in front of the MCP tools.
    lifeclock_host: str = "127.0.0.1"
    lifeclock_port: int = 8010
    lifeclock_log_level: str = "info"
    lifeclock_allow_insecure_bind: bool = False

    # Scoring
    # Empty path selects the bundled default curve table.
    scoring_config_path: str = ""
    operating_timezone: str = "UTC"
    projection_period: Literal["day", "month", "year"] = "day"

    # Baseline life expectancy (years), normally from an actuarial lookup.
    # No default: a projection without it is refused.
    baseline_life_expectancy_years: float | None = None


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
