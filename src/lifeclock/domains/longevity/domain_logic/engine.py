"""Pipeline facade: samples -> scores -> windows -> current/optimal projections.

Every call takes an immutable snapshot of its inputs and returns a new
immutable ``ProjectionSnapshot``; nothing is shared between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping

from lifeclock.domains.longevity.domain_logic.countdown_clock import decompose_or_placeholder
from lifeclock.domains.longevity.domain_logic.errors import EngineIssue, insufficient_data
from lifeclock.domains.longevity.domain_logic.metric_scorer import MetricScorer, ScoringBatch
from lifeclock.domains.longevity.domain_logic.models import (
    AggregatedImpact,
    HealthMetricType,
    ImpactDetails,
    LifespanData,
    MetricSample,
    PeriodType,
    Scenario,
    UserProfile,
)
from lifeclock.domains.longevity.domain_logic.projection_calculator import (
    ProjectionCalculator,
    ProjectionOutcome,
    extra_years,
)
from lifeclock.domains.longevity.domain_logic.scoring_config import ScoringConfig
from lifeclock.domains.longevity.domain_logic.temporal_aggregator import TemporalAggregator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectionSnapshot:
    """Both scenarios plus the per-metric details they were derived from."""

    current: ProjectionOutcome
    optimal: ProjectionOutcome
    anchor: datetime
    extra_years: int | None = None
    metric_impacts: Mapping[HealthMetricType, ImpactDetails] = field(
        default_factory=lambda: MappingProxyType({})
    )
    issues: tuple[EngineIssue, ...] = ()
    sequence: int = 0

    def outcome(self, scenario: Scenario) -> ProjectionOutcome:
        return self.current if scenario is Scenario.CURRENT else self.optimal

    def lifespan(self, scenario: Scenario, now: datetime) -> LifespanData:
        """Live countdown for one scenario; the placeholder when it failed."""
        extra = self.extra_years if scenario is Scenario.OPTIMAL else None
        return decompose_or_placeholder(self.outcome(scenario), now, extra_years=extra)


class LifespanEngine:
    """Runs the scoring/aggregation/projection pipeline for one refresh.

    Usage::

        engine = LifespanEngine(load_scoring_config(), timezone="Europe/Berlin")
        snapshot = engine.build_snapshot(samples, profile, baseline_life_expectancy_years=80.1, now=now)
        data = snapshot.lifespan(Scenario.CURRENT, now)
    """

    def __init__(
        self,
        config: ScoringConfig,
        *,
        timezone: str = "UTC",
        projection_period: PeriodType = PeriodType.DAY,
    ) -> None:
        self.scorer = MetricScorer(config)
        self.aggregator = TemporalAggregator(timezone)
        self.calculator = ProjectionCalculator(self.scorer)
        self.projection_period = projection_period

    def score(self, samples: Iterable[MetricSample]) -> ScoringBatch:
        return self.scorer.score_all(samples)

    def period_impacts(
        self,
        samples: Iterable[MetricSample],
        period: PeriodType,
        now: datetime,
    ) -> tuple[AggregatedImpact, dict[HealthMetricType, AggregatedImpact], ScoringBatch]:
        """Window totals for "today / this month / this year" summaries."""
        batch = self.score(samples)
        total = self.aggregator.aggregate(batch.scored, period, now)
        by_metric = self.aggregator.aggregate_by_metric(batch.scored, period, now)
        return total, by_metric, batch

    def build_snapshot(
        self,
        samples: Iterable[MetricSample],
        profile: UserProfile,
        *,
        baseline_life_expectancy_years: float | None,
        now: datetime,
        expected_metrics: Iterable[HealthMetricType] = (),
        sequence: int = 0,
    ) -> ProjectionSnapshot:
        """Score, aggregate and project both scenarios anchored at ``now``."""
        batch = self.score(samples)
        period = self.projection_period
        aggregates = self.aggregator.aggregate_by_metric(
            batch.scored, period, now, metric_types=expected_metrics
        )
        values = self.aggregator.latest_values(batch.scored, period, now)

        current = self.calculator.project(
            aggregates,
            profile,
            Scenario.CURRENT,
            baseline_life_expectancy_years=baseline_life_expectancy_years,
            anchor=now,
            values=values,
        )
        optimal = self.calculator.project(
            aggregates,
            profile,
            Scenario.OPTIMAL,
            baseline_life_expectancy_years=baseline_life_expectancy_years,
            anchor=now,
            values=values,
        )

        issues: list[EngineIssue] = list(batch.issues)
        if not any(a.has_data for a in aggregates.values()):
            issues.append(insufficient_data(None, period.value))
        for issue in current.issues + optimal.issues:
            if issue not in issues:
                issues.append(issue)

        extra = None
        if current.projection is not None and optimal.projection is not None:
            extra = extra_years(current.projection, optimal.projection)

        logger.info(
            "Built projection snapshot #%d: %d samples scored, %d rejected, %d issues",
            sequence,
            len(batch.scored),
            len(batch.rejected),
            len(issues),
        )
        return ProjectionSnapshot(
            current=current,
            optimal=optimal,
            anchor=now,
            extra_years=extra,
            metric_impacts=MappingProxyType(_latest_impacts(batch)),
            issues=tuple(issues),
            sequence=sequence,
        )


def _latest_impacts(batch: ScoringBatch) -> dict[HealthMetricType, ImpactDetails]:
    latest: dict[HealthMetricType, tuple[datetime, ImpactDetails]] = {}
    for item in batch.scored:
        metric_type = item.sample.metric_type
        seen = latest.get(metric_type)
        if seen is None or item.sample.timestamp >= seen[0]:
            latest[metric_type] = (item.sample.timestamp, item.impact)
    return {metric_type: details for metric_type, (_, details) in latest.items()}
