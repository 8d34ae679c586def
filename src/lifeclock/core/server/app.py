"""Lifeclock MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from lifeclock.core.config.settings import Settings, get_settings
from lifeclock.domains.longevity.domain_logic.engine import LifespanEngine
from lifeclock.domains.longevity.domain_logic.models import PeriodType
from lifeclock.domains.longevity.domain_logic.projection_store import ProjectionStore
from lifeclock.domains.longevity.domain_logic.scoring_config import (
    ScoringConfig,
    load_scoring_config,
)
from lifeclock.domains.longevity.tools.lifespan_tools import register_lifespan_tools

logger = logging.getLogger(__name__)


def create_app(
    *,
    settings_override: Settings | None = None,
    scoring_config_override: ScoringConfig | None = None,
    store_override: ProjectionStore | None = None,
) -> FastMCP:
    """Create and configure the Lifeclock MCP server.

    1. Loads settings and the scoring curve table
    2. Builds the lifespan engine and the projection store
    3. Registers the health check and lifespan tools
    """
    settings = settings_override or get_settings()

    server = FastMCP(
        "Lifeclock",
        instructions=(
            "Lifespan impact engine. Scores health measurements as minutes of life "
            "gained or lost per day, summarises them per day/month/year, and keeps "
            "a live countdown for current and optimal-habits projections."
        ),
    )

    # --- Scoring configuration ---
    if scoring_config_override is not None:
        scoring_config = scoring_config_override
    else:
        scoring_config = load_scoring_config(settings.scoring_config_path or None)

    engine = LifespanEngine(
        scoring_config,
        timezone=settings.operating_timezone,
        projection_period=PeriodType(settings.projection_period),
    )
    store = store_override or ProjectionStore()

    if settings.baseline_life_expectancy_years is None:
        logger.info(
            "No BASELINE_LIFE_EXPECTANCY_YEARS configured; projections need a baseline per request"
        )

    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "Lifeclock",
            "version": "0.1.0",
            "scoring_config_version": scoring_config.version,
            "metrics_configured": sorted(t.value for t in scoring_config.metrics),
            "operating_timezone": settings.operating_timezone,
            "projection_published": store.latest is not None,
        }

    register_lifespan_tools(server, engine, store, settings)
    logger.info("Lifespan tools registered (%d metrics configured)", len(scoring_config.metrics))

    return server


# Lazy module-level instance for FastMCP discovery; tests use create_app().
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
