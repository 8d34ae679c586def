"""Deterministic recommendation text and citations per metric.

Text is a template lookup keyed by (metric type, sign of impact, magnitude
bucket). Nothing here is generated; the same impact always yields the same
sentence.
"""

from __future__ import annotations

from lifeclock.domains.longevity.domain_logic.models import (
    LARGE_IMPACT_MINUTES,
    SMALL_IMPACT_MINUTES,
    AggregatedImpact,
    HealthMetricType,
    ImpactDetails,
    PeriodType,
    Recommendation,
)
from lifeclock.domains.longevity.domain_logic.scoring_config import ScoringConfig

_T = HealthMetricType

# (metric, improving?) -> next-step advice
_ADVICE: dict[tuple[HealthMetricType, bool], str] = {
    (_T.STEPS, False): "Add a short walk after meals to close the gap to your daily target.",
    (_T.STEPS, True): "Keep your daily walking routine going.",
    (_T.ACTIVE_ENERGY_BURNED, False): "Build more movement into your day, even light activity counts.",
    (_T.ACTIVE_ENERGY_BURNED, True): "Your active days are paying off, keep moving.",
    (_T.EXERCISE_MINUTES, False): "Aim for at least 30 minutes of moderate exercise most days.",
    (_T.EXERCISE_MINUTES, True): "Your exercise habit is one of your strongest levers, keep it up.",
    (_T.HEART_RATE_VARIABILITY, False): "Prioritise recovery: consistent sleep, less late alcohol and some breathing practice.",
    (_T.HEART_RATE_VARIABILITY, True): "Your recovery looks strong, keep protecting it.",
    (_T.RESTING_HEART_RATE, False): "Regular aerobic exercise and good sleep help bring your resting heart rate down.",
    (_T.RESTING_HEART_RATE, True): "Your cardiovascular conditioning is working for you.",
    (_T.SLEEP_HOURS, False): "Aim for a consistent 7 to 8 hours with a fixed bedtime.",
    (_T.SLEEP_HOURS, True): "Your sleep schedule is helping, keep it consistent.",
    (_T.VO2_MAX, False): "Intervals and zone 2 cardio are the fastest ways to raise your cardio fitness.",
    (_T.VO2_MAX, True): "Your cardio fitness is where it should be, maintain it.",
    (_T.OXYGEN_SATURATION, False): "Persistently low readings are worth discussing with a clinician.",
    (_T.OXYGEN_SATURATION, True): "Your blood oxygen is in a healthy range.",
    (_T.BODY_MASS, False): "Small, steady changes to diet and activity move weight toward a healthy range.",
    (_T.BODY_MASS, True): "Your weight is in a healthy range, keep your current habits.",
    (_T.NUTRITION_QUALITY, False): "Swap processed foods for vegetables, whole grains and healthy fats.",
    (_T.NUTRITION_QUALITY, True): "Your diet is working for you, keep it varied.",
    (_T.SMOKING_STATUS, False): "Quitting smoking is the single biggest change you can make; ask about cessation support.",
    (_T.ALCOHOL_CONSUMPTION, False): "Cutting back to a few drinks a week or fewer lowers the risk.",
    (_T.SOCIAL_CONNECTIONS_QUALITY, False): "Schedule regular time with friends or join a group around something you enjoy.",
    (_T.SOCIAL_CONNECTIONS_QUALITY, True): "Your relationships are protecting your health, keep investing in them.",
    (_T.STRESS_LEVEL, False): "Regular exercise, sleep and a daily wind-down routine help bring stress down.",
    (_T.STRESS_LEVEL, True): "You're keeping stress in check, keep the habits that help.",
}

_MAGNITUDE_PHRASES = {
    "small": "a little lifespan",
    "medium": "a noticeable amount of lifespan",
    "large": "a significant amount of lifespan",
}

_PERIOD_LABELS = {
    PeriodType.DAY: "Today",
    PeriodType.MONTH: "This month",
    PeriodType.YEAR: "This year",
}


def magnitude_bucket(minutes: float) -> str:
    """Classify an absolute minutes/day impact as small, medium or large."""
    size = abs(minutes)
    if size < SMALL_IMPACT_MINUTES:
        return "small"
    if size < LARGE_IMPACT_MINUTES:
        return "medium"
    return "large"


def _format_minutes(minutes: float) -> str:
    rounded = round(abs(minutes))
    if rounded < 1:
        return "less than a minute"
    return f"about {rounded} minute{'s' if rounded != 1 else ''}"


class RecommendationEngine:
    """Maps a metric's impact to guidance text and its configured citations."""

    def __init__(self, config: ScoringConfig) -> None:
        self._config = config

    def noun(self, metric_type: HealthMetricType) -> str:
        return self._config.metric(metric_type).noun

    def recommend(self, metric_type: HealthMetricType, details: ImpactDetails) -> Recommendation:
        """Return guidance text and citations for one scored impact.

        The text is never empty. Citations may be empty when none are
        configured for the metric; consumers should omit citation UI then.
        """
        metric_config = self._config.metric(metric_type)
        citations = metric_config.citations
        noun = metric_config.noun
        minutes = details.lifespan_impact_minutes

        if metric_config.curve is None:
            text = (
                f"We don't estimate a lifespan impact for {noun} yet. "
                "Keep logging it so your trends stay visible."
            )
            return Recommendation(text=text, citations=citations)

        if minutes == 0:
            text = (
                f"Your {noun} is right on target, so it isn't costing you any lifespan. "
                "Keep it steady."
            )
            return Recommendation(text=text, citations=citations)

        improving = minutes > 0
        phrase = _MAGNITUDE_PHRASES[magnitude_bucket(minutes)]
        amount = _format_minutes(minutes)
        if improving:
            lead = f"You're gaining {phrase} ({amount} a day) thanks to your {noun}."
        else:
            lead = f"You're losing {phrase} ({amount} a day) due to poor {noun}."
        advice = _ADVICE.get((metric_type, improving), "")
        text = f"{lead} {advice}".strip()
        return Recommendation(text=text, citations=citations)

    def period_summary(
        self,
        metric_type: HealthMetricType | None,
        aggregated: AggregatedImpact,
    ) -> str:
        """One-line "this month you've gained N mins" summary for a window."""
        label = _PERIOD_LABELS[aggregated.period_type]
        period_word = aggregated.period_type.value
        if not aggregated.has_data:
            subject = f"{self.noun(metric_type)} " if metric_type else ""
            return f"Not enough {subject}data yet for this {period_word}."

        rounded = round(abs(aggregated.total_minutes))
        gained = aggregated.total_minutes > 0
        verb = "gained" if gained else "lost"
        if metric_type is None:
            reason = "due to your habits"
        elif gained:
            reason = f"thanks to your {self.noun(metric_type)}"
        else:
            reason = f"due to poor {self.noun(metric_type)}"
        if rounded == 0:
            subject = f"your {self.noun(metric_type)} has" if metric_type else "your habits have"
            return f"{label} {subject} had no measurable effect."
        return f"{label} you've {verb} {rounded} mins {reason}."
