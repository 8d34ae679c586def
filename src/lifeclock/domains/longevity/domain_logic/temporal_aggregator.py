"""Calendar-window aggregation of scored impacts.

Windows are calendar day / month / year in the operating timezone, ending at
the reference instant (completed days plus the partial current day).

Within a window each metric contributes, per calendar day that has samples,
the time-weighted mean of its sample impacts as one full-day equivalent.
Dense sensor sampling therefore does not inflate a day, and days without
samples contribute nothing rather than being scored as zero-valued input.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from lifeclock.domains.longevity.domain_logic.models import (
    AggregatedImpact,
    HealthMetricType,
    PeriodType,
    ScoredSample,
)

logger = logging.getLogger(__name__)


def window_bounds(
    period: PeriodType,
    reference: datetime,
    tz: tzinfo,
) -> tuple[datetime, datetime]:
    """Return ``(start, end)`` of the calendar window containing ``reference``.

    ``end`` is the reference instant itself: the window covers the completed
    days of the period plus the partial current day.
    """
    local = reference.astimezone(tz)
    if period is PeriodType.DAY:
        start_day = local.date()
    elif period is PeriodType.MONTH:
        start_day = local.date().replace(day=1)
    else:
        start_day = local.date().replace(month=1, day=1)
    return _local_midnight(start_day, tz), local


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _day_end(day: date, tz: tzinfo) -> datetime:
    return _local_midnight(day + timedelta(days=1), tz)


def time_weighted_mean(
    points: Sequence[tuple[datetime, float]],
    span_end: datetime,
) -> float:
    """Mean of values weighted by how long each one stayed current.

    Each value holds until the next point; the last holds until ``span_end``.
    Falls back to a plain mean when all weights are zero. The result is kept
    within the range of the inputs.
    """
    if not points:
        raise ValueError("time_weighted_mean needs at least one point")
    ordered = sorted(points, key=lambda p: p[0])
    values = [v for _, v in ordered]
    if len(ordered) == 1:
        return values[0]

    weights: list[float] = []
    for i, (ts, _) in enumerate(ordered):
        next_ts = ordered[i + 1][0] if i + 1 < len(ordered) else span_end
        weights.append(max(0.0, (next_ts - ts).total_seconds()))

    total_weight = sum(weights)
    if total_weight <= 0:
        mean = sum(values) / len(values)
    else:
        mean = sum(w * v for w, v in zip(weights, values)) / total_weight
    return max(min(values), min(max(values), mean))


class TemporalAggregator:
    """Buckets scored samples into calendar windows.

    Usage::

        aggregator = TemporalAggregator(ZoneInfo("Europe/London"))
        month = aggregator.aggregate(scored, PeriodType.MONTH, now)
        if not month.has_data:
            ...  # insufficient data, not "no effect"
    """

    def __init__(self, tz: tzinfo | str = "UTC") -> None:
        self._tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    @property
    def timezone(self) -> tzinfo:
        return self._tz

    def aggregate(
        self,
        scored: Iterable[ScoredSample],
        period: PeriodType,
        reference: datetime,
    ) -> AggregatedImpact:
        """Aggregate every metric in ``scored`` into one window total."""
        start, end = window_bounds(period, reference, self._tz)
        in_window = [s for s in scored if start <= s.sample.timestamp <= end]

        by_day: dict[tuple[HealthMetricType, date], list[tuple[datetime, float]]] = defaultdict(list)
        for item in in_window:
            local_day = item.sample.timestamp.astimezone(self._tz).date()
            by_day[(item.sample.metric_type, local_day)].append(
                (item.sample.timestamp, item.impact.lifespan_impact_minutes)
            )

        total = 0.0
        days: set[date] = set()
        for (_, day), points in sorted(by_day.items(), key=lambda kv: (kv[0][1], kv[0][0].value)):
            span_end = min(_day_end(day, self._tz), end)
            total += time_weighted_mean(points, span_end)
            days.add(day)

        metric_types = tuple(sorted({s.sample.metric_type for s in in_window}, key=lambda t: t.value))
        if not in_window:
            logger.debug("No samples in %s window starting %s", period.value, start.isoformat())

        return AggregatedImpact(
            period_type=period,
            total_minutes=total,
            sample_count=len(in_window),
            days_with_data=len(days),
            window_start=start,
            window_end=end,
            metric_types=metric_types,
        )

    def aggregate_by_metric(
        self,
        scored: Iterable[ScoredSample],
        period: PeriodType,
        reference: datetime,
        metric_types: Iterable[HealthMetricType] = (),
    ) -> dict[HealthMetricType, AggregatedImpact]:
        """One AggregatedImpact per metric.

        Metrics listed in ``metric_types`` but without samples still get an
        (empty) entry so callers can report insufficient data for them.
        """
        grouped: dict[HealthMetricType, list[ScoredSample]] = defaultdict(list)
        for item in scored:
            grouped[item.sample.metric_type].append(item)
        for metric_type in metric_types:
            grouped.setdefault(metric_type, [])

        return {
            metric_type: self.aggregate(items, period, reference)
            for metric_type, items in sorted(grouped.items(), key=lambda kv: kv[0].value)
        }

    def latest_values(
        self,
        scored: Iterable[ScoredSample],
        period: PeriodType,
        reference: datetime,
    ) -> dict[HealthMetricType, float]:
        """Most recent sample value per metric inside the window."""
        start, end = window_bounds(period, reference, self._tz)
        latest: dict[HealthMetricType, tuple[datetime, float]] = {}
        for item in scored:
            sample = item.sample
            if not start <= sample.timestamp <= end:
                continue
            seen = latest.get(sample.metric_type)
            if seen is None or sample.timestamp >= seen[0]:
                latest[sample.metric_type] = (sample.timestamp, sample.value)
        return {metric_type: value for metric_type, (_, value) in latest.items()}
