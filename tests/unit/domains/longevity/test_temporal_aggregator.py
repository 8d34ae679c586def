"""Tests for TemporalAggregator — calendar windows and time-weighted day means."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from lifeclock.domains.longevity.domain_logic.models import (
    HealthMetricType,
    MetricSample,
    PeriodType,
    SampleSource,
)
from lifeclock.domains.longevity.domain_logic.temporal_aggregator import (
    TemporalAggregator,
    time_weighted_mean,
    window_bounds,
)

T = HealthMetricType
UTC = timezone.utc


def _at(day: int, hour: int = 8, minute: int = 0, month: int = 3) -> datetime:
    return datetime(2026, month, day, hour, minute, tzinfo=UTC)


def _sample(metric_type: HealthMetricType, value: float, timestamp: datetime) -> MetricSample:
    return MetricSample(
        metric_type=metric_type,
        value=value,
        source=SampleSource.DEVICE_SENSOR,
        timestamp=timestamp,
    )


class TestWindowBounds:
    def test_day(self):
        start, end = window_bounds(PeriodType.DAY, _at(10, 15), UTC)
        assert start == _at(10, 0)
        assert end == _at(10, 15)

    def test_month(self):
        start, _ = window_bounds(PeriodType.MONTH, _at(10, 15), UTC)
        assert start == _at(1, 0)

    def test_year(self):
        start, _ = window_bounds(PeriodType.YEAR, _at(10, 15), UTC)
        assert start == datetime(2026, 1, 1, tzinfo=UTC)

    def test_local_midnight_in_operating_timezone(self):
        tokyo = ZoneInfo("Asia/Tokyo")
        start, _ = window_bounds(PeriodType.DAY, _at(11, 1), tokyo)
        assert start == datetime(2026, 3, 10, 15, 0, tzinfo=UTC)


class TestTimeWeightedMean:
    def test_empty_raises(self):
        with pytest.raises(ValueError):
            time_weighted_mean([], _at(10, 0))

    def test_single_point(self):
        assert time_weighted_mean([(_at(10, 8), -4.0)], _at(11, 0)) == -4.0

    def test_weights_by_duration(self):
        points = [(_at(10, 0), -20.0), (_at(10, 12), 20.0), (_at(10, 18), 0.0)]
        assert time_weighted_mean(points, _at(10, 20)) == pytest.approx(-6.0)

    def test_unordered_input(self):
        points = [(_at(10, 18), 0.0), (_at(10, 0), -20.0), (_at(10, 12), 20.0)]
        assert time_weighted_mean(points, _at(10, 20)) == pytest.approx(-6.0)

    def test_zero_weights_fall_back_to_plain_mean(self):
        ts = _at(10, 8)
        assert time_weighted_mean([(ts, 10.0), (ts, 20.0)], ts) == pytest.approx(15.0)

    def test_result_stays_within_input_range(self):
        points = [(_at(10, h), 3.0) for h in range(0, 24, 3)]
        assert time_weighted_mean(points, _at(11, 0)) == 3.0


class TestAggregate:
    @pytest.fixture
    def aggregator(self):
        return TemporalAggregator("UTC")

    def test_day_window_time_weighted(self, scorer, aggregator):
        batch = scorer.score_all([
            _sample(T.RESTING_HEART_RATE, 75, _at(10, 0)),
            _sample(T.RESTING_HEART_RATE, 55, _at(10, 12)),
            _sample(T.RESTING_HEART_RATE, 65, _at(10, 18)),
        ])
        result = aggregator.aggregate(batch.scored, PeriodType.DAY, _at(10, 20))
        assert result.total_minutes == pytest.approx(-6.0)
        assert result.sample_count == 3
        assert result.days_with_data == 1
        assert result.metric_types == (T.RESTING_HEART_RATE,)

    def test_month_window_sums_days_with_data(self, scorer, aggregator):
        batch = scorer.score_all([
            _sample(T.SLEEP_HOURS, 5.0, _at(1)),
            _sample(T.SLEEP_HOURS, 7.5, _at(2)),
            _sample(T.SLEEP_HOURS, 6.5, _at(5)),
            _sample(T.SLEEP_HOURS, 4.0, _at(28, month=2)),   # previous month
            _sample(T.SLEEP_HOURS, 4.0, _at(10, 13)),        # after reference
        ])
        result = aggregator.aggregate(batch.scored, PeriodType.MONTH, _at(10, 12))
        assert result.total_minutes == pytest.approx(-29.0)
        assert result.sample_count == 3
        assert result.days_with_data == 3
        assert result.daily_rate_minutes == pytest.approx(-29.0 / 3)
        assert result.window_start == _at(1, 0)
        assert result.window_end == _at(10, 12)

    def test_dense_sampling_does_not_inflate_a_day(self, scorer, aggregator):
        start = _at(10, 0)
        samples = [
            _sample(T.RESTING_HEART_RATE, 75, start + timedelta(minutes=5 * i))
            for i in range(200)
        ]
        batch = scorer.score_all(samples)
        result = aggregator.aggregate(batch.scored, PeriodType.DAY, _at(10, 23))
        assert result.total_minutes == pytest.approx(-20.0)
        assert result.sample_count == 200

    def test_multiple_metrics_add_up(self, scorer, aggregator):
        batch = scorer.score_all([
            _sample(T.STEPS, 12000, _at(10, 7)),
            _sample(T.SLEEP_HOURS, 5.0, _at(10, 7)),
        ])
        result = aggregator.aggregate(batch.scored, PeriodType.DAY, _at(10, 20))
        assert result.total_minutes == pytest.approx(-15.0)
        assert result.days_with_data == 1
        assert result.metric_types == (T.SLEEP_HOURS, T.STEPS)

    def test_empty_window_is_insufficient_not_zero(self, scorer, aggregator):
        batch = scorer.score_all([_sample(T.STEPS, 12000, _at(1))])
        result = aggregator.aggregate(batch.scored, PeriodType.DAY, _at(10, 20))
        assert result.has_data is False
        assert result.sample_count == 0
        assert result.total_minutes == 0.0
        assert result.daily_rate_minutes == 0.0

    def test_operating_timezone_decides_the_day(self, scorer):
        batch = scorer.score_all([_sample(T.STEPS, 12000, datetime(2026, 3, 10, 23, 30, tzinfo=UTC))])
        reference = datetime(2026, 3, 11, 1, 0, tzinfo=UTC)

        tokyo = TemporalAggregator("Asia/Tokyo").aggregate(batch.scored, PeriodType.DAY, reference)
        utc = TemporalAggregator("UTC").aggregate(batch.scored, PeriodType.DAY, reference)

        assert tokyo.sample_count == 1
        assert utc.sample_count == 0

    def test_input_order_does_not_matter(self, scorer, aggregator):
        samples = [
            _sample(T.SLEEP_HOURS, 5.0, _at(1)),
            _sample(T.STEPS, 8000, _at(3, 9)),
            _sample(T.SLEEP_HOURS, 6.5, _at(5)),
            _sample(T.STEPS, 14000, _at(3, 21)),
        ]
        forward = scorer.score_all(samples).scored
        backward = scorer.score_all(list(reversed(samples))).scored
        a = aggregator.aggregate(forward, PeriodType.MONTH, _at(10, 12))
        b = aggregator.aggregate(backward, PeriodType.MONTH, _at(10, 12))
        assert a == b


class TestAggregateByMetric:
    def test_one_entry_per_metric(self, scorer):
        batch = scorer.score_all([
            _sample(T.STEPS, 12000, _at(10, 7)),
            _sample(T.SLEEP_HOURS, 5.0, _at(10, 7)),
        ])
        result = TemporalAggregator().aggregate_by_metric(batch.scored, PeriodType.DAY, _at(10, 20))
        assert list(result) == [T.SLEEP_HOURS, T.STEPS]
        assert result[T.STEPS].total_minutes == pytest.approx(10.0)
        assert result[T.SLEEP_HOURS].total_minutes == pytest.approx(-25.0)

    def test_expected_metric_without_samples_gets_empty_entry(self, scorer):
        batch = scorer.score_all([_sample(T.STEPS, 12000, _at(10, 7))])
        result = TemporalAggregator().aggregate_by_metric(
            batch.scored, PeriodType.DAY, _at(10, 20), metric_types=[T.VO2_MAX]
        )
        assert result[T.VO2_MAX].has_data is False
        assert result[T.VO2_MAX].metric_types == ()
        assert result[T.STEPS].has_data is True


class TestLatestValues:
    def test_most_recent_sample_per_metric(self, scorer):
        batch = scorer.score_all([
            _sample(T.STEPS, 14000, _at(10, 19)),
            _sample(T.STEPS, 8000, _at(10, 7)),
            _sample(T.SLEEP_HOURS, 6.5, _at(10, 6)),
        ])
        values = TemporalAggregator("UTC").latest_values(batch.scored, PeriodType.DAY, _at(10, 20))
        assert values == {T.STEPS: 14000, T.SLEEP_HOURS: 6.5}

    def test_samples_outside_window_ignored(self, scorer):
        batch = scorer.score_all([
            _sample(T.STEPS, 14000, _at(9, 19)),
            _sample(T.SLEEP_HOURS, 7.5, _at(10, 21)),
        ])
        values = TemporalAggregator("UTC").latest_values(batch.scored, PeriodType.DAY, _at(10, 20))
        assert values == {}
