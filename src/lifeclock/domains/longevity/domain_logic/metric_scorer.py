"""Deterministic scoring: one metric sample -> signed lifespan impact.

Each curve family is a plain function of (curve, value) returning minutes of
life per day, so steps, bpm, hours and kg become commensurable. Curves are
dispatched by family from a closed table; no I/O, no randomness.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable

from lifeclock.domains.longevity.domain_logic.errors import (
    EngineIssue,
    InvalidSampleError,
    IssueKind,
)
from lifeclock.domains.longevity.domain_logic.models import (
    Comparison,
    HealthMetricType,
    ImpactDetails,
    MetricSample,
    ScoredSample,
    is_finite_number,
)
from lifeclock.domains.longevity.domain_logic.recommendation_engine import RecommendationEngine
from lifeclock.domains.longevity.domain_logic.scoring_config import (
    CurveFamily,
    CurveSpec,
    ScoringConfig,
)

logger = logging.getLogger(__name__)

# Impacts smaller than this (minutes/day) compare as "same"
_COMPARISON_TOLERANCE = 0.5


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _no_negative_zero(value: float) -> float:
    return value if value else 0.0


# ---------------------------------------------------------------------------
# Curve families
# ---------------------------------------------------------------------------

def _linear(curve: CurveSpec, value: float) -> float:
    ratio = (value - curve.target) / curve.target
    return _clamp(curve.scale * ratio, -curve.cap, curve.cap)


def _inverse(curve: CurveSpec, value: float) -> float:
    return _clamp(curve.scale * (curve.target - value), -curve.cap, curve.cap)


def _deficit(curve: CurveSpec, value: float) -> float:
    return -min(curve.cap, curve.scale * max(0.0, curve.target - value))


def _u_shaped(curve: CurveSpec, value: float) -> float:
    return -min(curve.cap, curve.scale * (value - curve.target) ** 2)


def _bounded(curve: CurveSpec, value: float) -> float:
    if value < curve.healthy_min:
        distance = curve.healthy_min - value
    elif value > curve.healthy_max:
        distance = value - curve.healthy_max
    else:
        return 0.0
    return -min(curve.cap, curve.scale * distance)


_CURVES: dict[CurveFamily, Callable[[CurveSpec, float], float]] = {
    CurveFamily.LINEAR: _linear,
    CurveFamily.INVERSE: _inverse,
    CurveFamily.DEFICIT: _deficit,
    CurveFamily.U_SHAPED: _u_shaped,
    CurveFamily.BOUNDED: _bounded,
}


def _ideal_input(curve: CurveSpec) -> float:
    """Smallest input at which the curve reaches its maximum."""
    if curve.family is CurveFamily.LINEAR:
        return curve.target * (1 + curve.cap / curve.scale)
    if curve.family is CurveFamily.INVERSE:
        return curve.target - curve.cap / curve.scale
    return curve.target


def _peak(curve: CurveSpec) -> float:
    """Maximum of the curve over an unbounded input range."""
    if curve.family in (CurveFamily.LINEAR, CurveFamily.INVERSE):
        return curve.cap
    return 0.0


def curve_impact(curve: CurveSpec, value: float) -> float:
    """Evaluate a curve at ``value`` (minutes of life per day)."""
    return _no_negative_zero(_CURVES[curve.family](curve, value))


# ---------------------------------------------------------------------------
# Scorer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoringBatch:
    """Result of scoring a refresh cycle's samples."""

    scored: tuple[ScoredSample, ...]
    rejected: tuple[InvalidSampleError, ...] = ()

    @property
    def issues(self) -> tuple[EngineIssue, ...]:
        return tuple(
            EngineIssue(
                kind=IssueKind.INVALID_SAMPLE,
                message=str(error),
                metric_type=error.sample.metric_type,
            )
            for error in self.rejected
        )


class MetricScorer:
    """Scores samples against the configured curve of their metric type.

    Usage::

        scorer = MetricScorer(load_scoring_config())
        details = scorer.score(sample)
        best = scorer.best_impact(HealthMetricType.SLEEP_HOURS)
    """

    def __init__(
        self,
        config: ScoringConfig,
        recommender: RecommendationEngine | None = None,
    ) -> None:
        self._config = config
        self._recommender = recommender or RecommendationEngine(config)

    @property
    def config(self) -> ScoringConfig:
        return self._config

    @property
    def recommender(self) -> RecommendationEngine:
        return self._recommender

    def validate(self, sample: MetricSample) -> None:
        """Raise ``InvalidSampleError`` unless the value is finite and in range
        and the timestamp is timezone-aware."""
        timestamp = sample.timestamp
        if timestamp.tzinfo is None or timestamp.utcoffset() is None:
            raise InvalidSampleError(sample, "timestamp is not timezone-aware")
        if not is_finite_number(sample.value):
            raise InvalidSampleError(sample, "value is not a finite number")
        metric_config = self._config.metric(sample.metric_type)
        if not metric_config.valid_min <= sample.value <= metric_config.valid_max:
            raise InvalidSampleError(
                sample,
                f"outside valid range [{metric_config.valid_min:g}, {metric_config.valid_max:g}]",
            )

    def impact_minutes(self, metric_type: HealthMetricType, value: float) -> float:
        """Per-day impact of ``value``; 0.0 for metrics without a curve."""
        curve = self._config.metric(metric_type).curve
        if curve is None:
            return 0.0
        return curve_impact(curve, value)

    def score(self, sample: MetricSample) -> ImpactDetails:
        """Score one sample. Out-of-range samples raise instead of being clamped."""
        self.validate(sample)
        minutes = self.impact_minutes(sample.metric_type, sample.value)

        if minutes > _COMPARISON_TOLERANCE:
            comparison = Comparison.BETTER
        elif minutes < -_COMPARISON_TOLERANCE:
            comparison = Comparison.WORSE
        else:
            comparison = Comparison.SAME

        details = ImpactDetails(
            metric_type=sample.metric_type,
            lifespan_impact_minutes=minutes,
            current_value=float(sample.value),
            target_value=self._config.metric(sample.metric_type).target,
            comparison=comparison,
        )
        recommendation = self._recommender.recommend(sample.metric_type, details)
        return replace(
            details,
            recommendation=recommendation.text,
            study_references=recommendation.citations,
        )

    def score_all(self, samples: Iterable[MetricSample]) -> ScoringBatch:
        """Score a batch, setting invalid samples aside instead of failing."""
        scored: list[ScoredSample] = []
        rejected: list[InvalidSampleError] = []
        for sample in samples:
            try:
                scored.append(ScoredSample(sample=sample, impact=self.score(sample)))
            except InvalidSampleError as exc:
                logger.warning("Rejected sample: %s", exc)
                rejected.append(exc)
        return ScoringBatch(scored=tuple(scored), rejected=tuple(rejected))

    def best_value(self, metric_type: HealthMetricType) -> float | None:
        """Input value at which the metric's curve peaks, within the valid range."""
        metric_config = self._config.metric(metric_type)
        if metric_config.curve is None:
            return None
        return _clamp(
            _ideal_input(metric_config.curve),
            metric_config.valid_min,
            metric_config.valid_max,
        )

    def best_impact(self, metric_type: HealthMetricType) -> float:
        """Best achievable per-day impact: the curve evaluated at its ideal input."""
        value = self.best_value(metric_type)
        if value is None:
            return 0.0
        curve = self._config.metric(metric_type).curve
        if value == _ideal_input(curve):
            # Unclipped ideal sits exactly on the curve's peak
            return _peak(curve)
        return self.impact_minutes(metric_type, value)
