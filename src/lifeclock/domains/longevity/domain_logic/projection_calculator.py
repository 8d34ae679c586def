"""Life expectancy projection from aggregated daily impact rates.

Both scenarios run through the same ``project`` call. The only difference is
the per-scenario rate function: ``current`` reads the aggregated rate of each
metric with data, ``optimal`` takes the best achievable score of every
configured metric, data or not. Interaction effects scale the gains of each
scenario from that scenario's own metric values.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Mapping

from lifeclock.domains.longevity.domain_logic.errors import (
    EngineIssue,
    IssueKind,
    insufficient_data,
)
from lifeclock.domains.longevity.domain_logic.interaction_effects import (
    InteractionEffect,
    MetricValues,
    active_interactions,
    adjust_benefit,
    benefit_multipliers,
)
from lifeclock.domains.longevity.domain_logic.metric_scorer import MetricScorer
from lifeclock.domains.longevity.domain_logic.models import (
    DAYS_PER_YEAR,
    MINUTES_PER_DAY,
    AggregatedImpact,
    HealthMetricType,
    LifeProjection,
    Scenario,
    UserProfile,
    is_finite_number,
)

logger = logging.getLogger(__name__)

ScenarioRates = tuple[dict[HealthMetricType, float], tuple[InteractionEffect, ...]]
RateFunction = Callable[[Mapping[HealthMetricType, AggregatedImpact], MetricValues], ScenarioRates]


@dataclass(frozen=True)
class ProjectionOutcome:
    """A projection (or none) plus every condition raised while computing it."""

    projection: LifeProjection | None
    issues: tuple[EngineIssue, ...] = ()
    interactions: tuple[InteractionEffect, ...] = ()

    @property
    def ok(self) -> bool:
        return self.projection is not None

    def has(self, kind: IssueKind) -> bool:
        return any(issue.kind is kind for issue in self.issues)


def per_year_days(daily_minutes: float) -> float:
    """Days of life gained (or lost) per year of keeping a daily habit."""
    return daily_minutes * DAYS_PER_YEAR / MINUTES_PER_DAY


def lifetime_impact_years(daily_minutes: float, horizon_years: float) -> float:
    """Cumulative impact in years of keeping ``daily_minutes`` for ``horizon_years``."""
    return per_year_days(daily_minutes) * horizon_years / DAYS_PER_YEAR


def extra_years(current: LifeProjection, optimal: LifeProjection) -> int:
    """Whole extra years the optimal scenario shows over the current one.

    Both remainders are truncated to whole years before subtracting, so the
    displayed figure does not flicker as fractional impact accumulates.
    """
    gain = math.floor(optimal.years_remaining) - math.floor(current.years_remaining)
    return max(0, gain)


def _birth_year(profile: UserProfile, anchor: datetime) -> int:
    if profile.birth_year is not None:
        return profile.birth_year
    return anchor.year - math.floor(profile.current_age)


class ProjectionCalculator:
    """Folds per-metric daily impact into a baseline life expectancy.

    Usage::

        calculator = ProjectionCalculator(scorer)
        outcome = calculator.project(
            aggregates, profile, Scenario.CURRENT,
            baseline_life_expectancy_years=78.7, anchor=now,
        )
    """

    def __init__(self, scorer: MetricScorer) -> None:
        self._scorer = scorer
        self._rates: dict[Scenario, RateFunction] = {
            Scenario.CURRENT: self._current_rates,
            Scenario.OPTIMAL: self._optimal_rates,
        }

    def _configured_metrics(self) -> list[HealthMetricType]:
        return [
            metric_type
            for metric_type, metric_config in self._scorer.config.metrics.items()
            if metric_config.curve is not None
        ]

    def _current_rates(
        self,
        aggregates: Mapping[HealthMetricType, AggregatedImpact],
        values: MetricValues,
    ) -> ScenarioRates:
        effects = active_interactions(values)
        multipliers = benefit_multipliers(effects)
        rates = {
            metric_type: adjust_benefit(aggregate.daily_rate_minutes, multipliers.get(metric_type, 1.0))
            for metric_type, aggregate in aggregates.items()
            if aggregate.has_data
        }
        return rates, effects

    def _optimal_rates(
        self,
        aggregates: Mapping[HealthMetricType, AggregatedImpact],
        values: MetricValues,
    ) -> ScenarioRates:
        current, _ = self._current_rates(aggregates, values)
        best_values = {t: self._scorer.best_value(t) for t in self._configured_metrics()}
        effects = active_interactions(best_values)
        multipliers = benefit_multipliers(effects)

        rates = dict(current)
        for metric_type in best_values:
            best = adjust_benefit(self._scorer.best_impact(metric_type), multipliers.get(metric_type, 1.0))
            # Best achievable is never below what was actually achieved
            rates[metric_type] = max(best, current.get(metric_type, best))
        return rates, effects

    def project(
        self,
        aggregates: Mapping[HealthMetricType, AggregatedImpact],
        profile: UserProfile,
        mode: Scenario,
        *,
        baseline_life_expectancy_years: float | None,
        anchor: datetime,
        values: MetricValues | None = None,
    ) -> ProjectionOutcome:
        """Compute one scenario's projection.

        ``values`` holds a representative reading per metric (the latest in
        the window) and decides which interaction effects apply to the
        current scenario. Metrics with an empty window are reported as
        ``INSUFFICIENT_DATA`` for the current scenario; the optimal scenario
        needs no data. A missing baseline fails the whole request.
        """
        if not is_finite_number(baseline_life_expectancy_years) or baseline_life_expectancy_years <= 0:
            logger.warning("Projection requested without a usable baseline life expectancy")
            return ProjectionOutcome(
                projection=None,
                issues=(
                    EngineIssue(
                        kind=IssueKind.MISSING_BASELINE,
                        message="No baseline life expectancy was supplied",
                    ),
                ),
            )

        rates, effects = self._rates[mode](aggregates, values or {})
        issues: list[EngineIssue] = []
        if mode is Scenario.CURRENT:
            issues.extend(
                insufficient_data(metric_type, aggregates[metric_type].period_type.value)
                for metric_type in sorted(aggregates, key=lambda t: t.value)
                if not aggregates[metric_type].has_data
            )
        daily_minutes = 0.0
        for metric_type in sorted(rates, key=lambda t: t.value):
            daily_minutes += rates[metric_type]

        age = profile.current_age
        baseline = float(baseline_life_expectancy_years)
        horizon = max(0.0, baseline - age)
        adjusted = baseline + lifetime_impact_years(daily_minutes, horizon)

        remaining = adjusted - age
        if remaining < 0:
            logger.warning(
                "Projected remaining years negative (%.2f) for age %.1f; clamping to 0",
                remaining,
                age,
            )
            issues.append(
                EngineIssue(
                    kind=IssueKind.NEGATIVE_REMAINING_YEARS,
                    message=(
                        f"Adjusted life expectancy {adjusted:.2f} is below the current age "
                        f"{age:.2f}; remaining years clamped to 0"
                    ),
                )
            )
            remaining = 0.0

        projection = LifeProjection(
            baseline_life_expectancy_years=baseline,
            adjusted_life_expectancy_years=adjusted,
            years_remaining=remaining,
            anchor=anchor,
            current_age_years=age,
            birth_year=_birth_year(profile, anchor),
            scenario=mode,
            daily_impact_minutes=daily_minutes,
        )
        logger.debug(
            "%s projection: %.2f min/day -> %.2f years (baseline %.2f)",
            mode.value,
            daily_minutes,
            adjusted,
            baseline,
        )
        return ProjectionOutcome(projection=projection, issues=tuple(issues), interactions=effects)
