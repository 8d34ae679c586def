"""Tests for RecommendationEngine — template text, buckets and period summaries."""

from __future__ import annotations

import pytest

from lifeclock.domains.longevity.domain_logic.models import (
    AggregatedImpact,
    HealthMetricType,
    ImpactDetails,
    PeriodType,
)
from lifeclock.domains.longevity.domain_logic.recommendation_engine import (
    RecommendationEngine,
    magnitude_bucket,
)
from lifeclock.domains.longevity.domain_logic.scoring_config import parse_scoring_config

T = HealthMetricType


def _details(metric_type: HealthMetricType, minutes: float) -> ImpactDetails:
    return ImpactDetails(metric_type=metric_type, lifespan_impact_minutes=minutes)


def _aggregate(period: PeriodType, total: float, count: int = 1) -> AggregatedImpact:
    return AggregatedImpact(
        period_type=period,
        total_minutes=total,
        sample_count=count,
        days_with_data=1 if count else 0,
    )


@pytest.fixture
def recommender(scoring_config):
    return RecommendationEngine(scoring_config)


class TestMagnitudeBucket:
    @pytest.mark.parametrize(
        "minutes, bucket",
        [(0.0, "small"), (4.9, "small"), (-4.9, "small"), (5.0, "medium"),
         (14.9, "medium"), (15.0, "large"), (-25.0, "large")],
    )
    def test_buckets(self, minutes, bucket):
        assert magnitude_bucket(minutes) == bucket


class TestRecommend:
    def test_positive_impact_text(self, recommender):
        rec = recommender.recommend(T.STEPS, _details(T.STEPS, 10.0))
        assert rec.text == (
            "You're gaining a noticeable amount of lifespan (about 10 minutes a day) "
            "thanks to your steps. Keep your daily walking routine going."
        )

    def test_negative_impact_text(self, recommender):
        rec = recommender.recommend(T.SLEEP_HOURS, _details(T.SLEEP_HOURS, -25.0))
        assert rec.text.startswith(
            "You're losing a significant amount of lifespan (about 25 minutes a day) "
            "due to poor sleep."
        )
        assert "7 to 8 hours" in rec.text

    def test_small_impact_rounds_to_less_than_a_minute(self, recommender):
        rec = recommender.recommend(T.VO2_MAX, _details(T.VO2_MAX, -0.3))
        assert "a little lifespan (less than a minute a day)" in rec.text
        assert "due to poor cardio fitness" in rec.text

    def test_singular_minute(self, recommender):
        rec = recommender.recommend(T.STEPS, _details(T.STEPS, 1.2))
        assert "(about 1 minute a day)" in rec.text

    def test_on_target_text(self, recommender):
        rec = recommender.recommend(T.BODY_MASS, _details(T.BODY_MASS, 0.0))
        assert rec.text.startswith("Your weight is right on target")

    def test_citations_come_from_config(self, recommender):
        rec = recommender.recommend(T.RESTING_HEART_RATE, _details(T.RESTING_HEART_RATE, -20.0))
        assert len(rec.citations) == 1
        assert "Resting Heart Rate" in rec.citations[0].title

    def test_text_never_empty_without_citations(self, recommender):
        for metric_type in T:
            for minutes in (-30.0, -3.0, 0.0, 3.0, 30.0):
                rec = recommender.recommend(metric_type, _details(metric_type, minutes))
                assert rec.text

    def test_unconfigured_metric(self):
        recommender = RecommendationEngine(parse_scoring_config({"metrics": {}}))
        rec = recommender.recommend(T.VO2_MAX, _details(T.VO2_MAX, 0.0))
        assert rec.text.startswith("We don't estimate a lifespan impact for vo2 max yet.")
        assert rec.citations == ()

    def test_deterministic(self, recommender):
        a = recommender.recommend(T.STEPS, _details(T.STEPS, -7.0))
        b = recommender.recommend(T.STEPS, _details(T.STEPS, -7.0))
        assert a == b


class TestPeriodSummary:
    def test_month_loss_for_metric(self, recommender):
        text = recommender.period_summary(T.SLEEP_HOURS, _aggregate(PeriodType.MONTH, -29.0, 3))
        assert text == "This month you've lost 29 mins due to poor sleep."

    def test_day_gain_across_metrics(self, recommender):
        text = recommender.period_summary(None, _aggregate(PeriodType.DAY, 12.4))
        assert text == "Today you've gained 12 mins due to your habits."

    def test_year_gain_for_metric(self, recommender):
        text = recommender.period_summary(T.EXERCISE_MINUTES, _aggregate(PeriodType.YEAR, 250.0, 20))
        assert text == "This year you've gained 250 mins thanks to your exercise."

    def test_no_data_is_not_neutral(self, recommender):
        text = recommender.period_summary(None, _aggregate(PeriodType.YEAR, 0.0, 0))
        assert text == "Not enough data yet for this year."

    def test_no_data_for_metric(self, recommender):
        text = recommender.period_summary(T.STEPS, _aggregate(PeriodType.DAY, 0.0, 0))
        assert text == "Not enough steps data yet for this day."

    def test_rounds_to_no_effect(self, recommender):
        text = recommender.period_summary(T.SLEEP_HOURS, _aggregate(PeriodType.DAY, 0.3))
        assert text == "Today your sleep has had no measurable effect."
