"""Live countdown: decompose a projection at an arbitrary instant.

A projection is computed occasionally; this is evaluated every tick. It is a
pure O(1) function of (projection, now) and never touches aggregation.
"""

from __future__ import annotations

import math
from datetime import datetime

from lifeclock.domains.longevity.domain_logic.models import (
    SECONDS_PER_DAY,
    SECONDS_PER_YEAR,
    LifeProjection,
    LifespanData,
)
from lifeclock.domains.longevity.domain_logic.projection_calculator import ProjectionOutcome


def elapsed_seconds(anchor: datetime, now: datetime) -> float:
    """Seconds since ``anchor``; 0 when ``now`` precedes it."""
    return max(0.0, (now - anchor).total_seconds())


def end_year(projection: LifeProjection) -> int:
    return projection.birth_year + math.floor(projection.adjusted_life_expectancy_years + 0.5)


def decompose(
    projection: LifeProjection,
    now: datetime,
    *,
    extra_years: int | None = None,
) -> LifespanData:
    """Break the live remaining lifespan into years/days/hours/minutes/seconds."""
    elapsed = elapsed_seconds(projection.anchor, now)
    remaining = max(0.0, projection.years_remaining * SECONDS_PER_YEAR - elapsed)

    total_seconds = math.floor(remaining)
    years = math.floor(total_seconds / SECONDS_PER_YEAR)
    rest = total_seconds - years * SECONDS_PER_YEAR
    days = math.floor(rest / SECONDS_PER_DAY)
    rest = math.floor(rest - days * SECONDS_PER_DAY)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)

    adjusted = projection.adjusted_life_expectancy_years
    if adjusted > 0:
        age_now = projection.current_age_years + elapsed / SECONDS_PER_YEAR
        progress = min(1.0, max(0.0, age_now / adjusted))
    else:
        progress = 1.0

    return LifespanData(
        years=years,
        days=days,
        hours=int(hours),
        minutes=int(minutes),
        seconds=int(seconds),
        progress=progress,
        birth_year=projection.birth_year,
        end_year=end_year(projection),
        extra_years=extra_years,
    )


def decompose_or_placeholder(
    outcome: ProjectionOutcome,
    now: datetime,
    *,
    extra_years: int | None = None,
) -> LifespanData:
    """Decompose when a projection exists, otherwise return the zeroed fallback."""
    if outcome.projection is None:
        return LifespanData.placeholder()
    return decompose(outcome.projection, now, extra_years=extra_years)
