"""Lifeclock server entry point — ``python -m lifeclock.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from lifeclock.core.config.settings import Settings, get_settings
from lifeclock.core.server.app import create_app
from lifeclock.domains.longevity.domain_logic.errors import ScoringConfigError
from lifeclock.domains.longevity.domain_logic.scoring_config import (
    ScoringConfig,
    load_scoring_config,
)

logger = logging.getLogger(__name__)


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def load_startup_config(settings: Settings) -> ScoringConfig:
    """Load and validate the scoring table before the server binds.

    A missing or malformed table stops startup with a ``SystemExit``
    carrying the loader's message.
    """
    path = settings.scoring_config_path or None
    try:
        config = load_scoring_config(path)
    except ScoringConfigError as exc:
        logger.error("Scoring config failed to load: %s", exc)
        raise SystemExit(f"Lifeclock cannot start: {exc}") from exc

    unconfigured = [t.value for t, metric in config.metrics.items() if metric.curve is None]
    if unconfigured:
        logger.warning("Metrics without a curve always score 0: %s", ", ".join(unconfigured))
    return config


def run() -> None:
    """Start the Lifeclock MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.lifeclock_log_level.upper(), logging.INFO))

    if not settings.lifeclock_allow_insecure_bind and not _is_loopback_host(settings.lifeclock_host):
        raise RuntimeError(
            "Refusing to bind Lifeclock server to a non-loopback host without an auth layer. "
            "Set LIFECLOCK_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    scoring_config = load_startup_config(settings)
    logger.info(
        "Starting Lifeclock server on %s:%d (scoring config v%s)",
        settings.lifeclock_host,
        settings.lifeclock_port,
        scoring_config.version,
    )

    mcp = create_app(settings_override=settings, scoring_config_override=scoring_config)
    mcp.run(
        transport="streamable-http",
        host=settings.lifeclock_host,
        port=settings.lifeclock_port,
    )


if __name__ == "__main__":
    run()
