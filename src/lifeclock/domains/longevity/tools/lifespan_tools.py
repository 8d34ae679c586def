"""MCP tools exposing lifespan impact scoring, period summaries and the countdown.

The engine itself is pure; these tools are where the wall clock is read and
where the server's ProjectionStore is updated.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP

from lifeclock.domains.longevity.domain_logic.errors import InvalidSampleError
from lifeclock.domains.longevity.domain_logic.models import (
    HealthMetricType,
    LifespanData,
    MetricSample,
    PeriodType,
    SampleSource,
    Scenario,
    UserProfile,
)
from lifeclock.domains.longevity.domain_logic.projection_calculator import ProjectionOutcome

if TYPE_CHECKING:
    from lifeclock.core.config.settings import Settings
    from lifeclock.domains.longevity.domain_logic.engine import LifespanEngine
    from lifeclock.domains.longevity.domain_logic.projection_store import ProjectionStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------

def _parse_enum(enum_cls, value: str, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = " | ".join(member.value for member in enum_cls)
        raise ValueError(f"{field_name} must be one of: {allowed}") from None


def _parse_instant(value: str | None, tz) -> datetime:
    """Parse an ISO 8601 instant; naive values are read in ``tz``; None is now."""
    if not value:
        return datetime.now(timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def _parse_samples(raw: list[dict[str, Any]], tz) -> list[MetricSample]:
    samples = []
    for i, item in enumerate(raw):
        if "metric_type" not in item or "value" not in item or "timestamp" not in item:
            raise ValueError(f"samples[{i}] needs metric_type, value and timestamp")
        samples.append(
            MetricSample(
                metric_type=_parse_enum(HealthMetricType, item["metric_type"], f"samples[{i}].metric_type"),
                value=float(item["value"]),
                source=_parse_enum(
                    SampleSource, item.get("source", "device_sensor"), f"samples[{i}].source"
                ),
                timestamp=_parse_instant(item["timestamp"], tz),
            )
        )
    return samples


def _outcome_dict(outcome: ProjectionOutcome) -> dict[str, Any]:
    projection = outcome.projection
    if projection is None:
        return {"status": "unavailable", "issues": [i.as_dict() for i in outcome.issues]}
    return {
        "status": "ok",
        "baseline_life_expectancy_years": round(projection.baseline_life_expectancy_years, 4),
        "adjusted_life_expectancy_years": round(projection.adjusted_life_expectancy_years, 4),
        "years_remaining": round(projection.years_remaining, 4),
        "daily_impact_minutes": round(projection.daily_impact_minutes, 4),
        "anchor": projection.anchor.isoformat(),
        "interactions": [effect.as_dict() for effect in outcome.interactions],
    }


# ---------------------------------------------------------------------------
# Tool registration
# ---------------------------------------------------------------------------

def register_lifespan_tools(
    mcp: FastMCP,
    engine: LifespanEngine,
    store: ProjectionStore,
    settings: Settings,
) -> None:
    """Register lifespan scoring and countdown tools on the MCP server."""
    tz = engine.aggregator.timezone

    @mcp.tool
    def score_metric(
        metric_type: str,
        value: float,
        source: str = "device_sensor",
        timestamp: str | None = None,
    ) -> str:
        """Score one health measurement as minutes of life gained or lost per day.

        Args:
            metric_type: e.g. 'steps', 'sleep_hours', 'resting_heart_rate'.
            value: Measurement in the metric's unit.
            source: 'device_sensor' or 'user_input'.
            timestamp: ISO 8601 time of the measurement (default: now).
        """
        sample = MetricSample(
            metric_type=_parse_enum(HealthMetricType, metric_type, "metric_type"),
            value=value,
            source=_parse_enum(SampleSource, source, "source"),
            timestamp=_parse_instant(timestamp, tz),
        )
        try:
            details = engine.scorer.score(sample)
        except InvalidSampleError as exc:
            return json.dumps({"status": "invalid_sample", "message": str(exc)})

        return json.dumps({
            "status": "ok",
            "metric_type": details.metric_type.value,
            "unit": details.metric_type.unit,
            "lifespan_impact_minutes": round(details.lifespan_impact_minutes, 4),
            "target_value": details.target_value,
            "comparison": details.comparison.value,
            "recommendation": details.recommendation,
            "study_references": [str(c) for c in details.study_references],
        }, indent=2)

    @mcp.tool
    def period_impact(
        samples: list[dict[str, Any]],
        period: str = "day",
        now: str | None = None,
    ) -> str:
        """Minutes gained or lost today, this month or this year.

        Args:
            samples: Measurements as {metric_type, value, source, timestamp}.
            period: 'day', 'month' or 'year'.
            now: ISO 8601 reference instant (default: now).
        """
        period_type = _parse_enum(PeriodType, period, "period")
        reference = _parse_instant(now, tz)
        total, by_metric, batch = engine.period_impacts(
            _parse_samples(samples, tz), period_type, reference
        )
        recommender = engine.scorer.recommender

        if not total.has_data:
            return json.dumps({
                "status": "insufficient_data",
                "period": period_type.value,
                "rejected_samples": len(batch.rejected),
                "message": recommender.period_summary(None, total),
            })

        return json.dumps({
            "status": "ok",
            "period": period_type.value,
            "total_minutes": round(total.total_minutes, 2),
            "sample_count": total.sample_count,
            "days_with_data": total.days_with_data,
            "summary": recommender.period_summary(None, total),
            "metrics": {
                metric_type.value: {
                    "total_minutes": round(agg.total_minutes, 2),
                    "sample_count": agg.sample_count,
                    "summary": recommender.period_summary(metric_type, agg),
                }
                for metric_type, agg in by_metric.items()
            },
            "issues": [i.as_dict() for i in batch.issues],
        }, indent=2)

    @mcp.tool
    def refresh_projection(
        samples: list[dict[str, Any]],
        current_age: float | None = None,
        birth_year: int | None = None,
        baseline_life_expectancy_years: float | None = None,
    ) -> str:
        """Recompute current and optimal-habits projections and publish them.

        Args:
            samples: Measurements as {metric_type, value, source, timestamp}.
            current_age: Age in years; derived from birth_year when omitted.
            birth_year: Optional birth year.
            baseline_life_expectancy_years: Actuarial baseline; falls back to
                the server's configured value, never to a built-in default.
        """
        now = datetime.now(timezone.utc)
        if current_age is not None:
            profile = UserProfile(current_age=current_age, birth_year=birth_year)
        elif birth_year is not None:
            profile = UserProfile.from_birth_year(birth_year, now)
        else:
            raise ValueError("current_age or birth_year is required")
        parsed = _parse_samples(samples, tz)

        # A malformed request fails above, before it can take a sequence number
        sequence = store.begin_refresh()
        baseline = (
            baseline_life_expectancy_years
            if baseline_life_expectancy_years is not None
            else settings.baseline_life_expectancy_years
        )
        snapshot = engine.build_snapshot(
            parsed,
            profile,
            baseline_life_expectancy_years=baseline,
            now=now,
            sequence=sequence,
        )
        published = store.publish(sequence, snapshot)
        if not published:
            logger.info("Projection refresh #%d superseded before it completed", sequence)

        return json.dumps({
            "sequence": sequence,
            "published": published,
            "current": _outcome_dict(snapshot.current),
            "optimal": _outcome_dict(snapshot.optimal),
            "extra_years": snapshot.extra_years,
            "metrics": {
                metric_type.value: {
                    "lifespan_impact_minutes": round(details.lifespan_impact_minutes, 4),
                    "recommendation": details.recommendation,
                    "study_references": [str(c) for c in details.study_references],
                }
                for metric_type, details in snapshot.metric_impacts.items()
            },
            "issues": [i.as_dict() for i in snapshot.issues],
        }, indent=2)

    @mcp.tool
    def lifespan_countdown(scenario: str = "current", now: str | None = None) -> str:
        """Live remaining-lifespan breakdown from the latest published projection.

        Args:
            scenario: 'current' or 'optimal'.
            now: ISO 8601 instant to evaluate at (default: now).
        """
        scenario_type = _parse_enum(Scenario, scenario, "scenario")
        snapshot = store.latest
        if snapshot is None:
            return json.dumps({
                "status": "no_projection",
                "lifespan": LifespanData.placeholder().as_dict(),
            })

        data = snapshot.lifespan(scenario_type, _parse_instant(now, tz))
        outcome = snapshot.outcome(scenario_type)
        return json.dumps({
            "status": "ok" if outcome.ok else "unavailable",
            "scenario": scenario_type.value,
            "sequence": snapshot.sequence,
            "lifespan": data.as_dict(),
            "issues": [i.as_dict() for i in outcome.issues],
        })
