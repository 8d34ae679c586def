"""Lifespan impact models and domain constants.

All records here are frozen: the engine never mutates an input or a result,
it only returns new ones. That is what lets a refresh run while the countdown
keeps ticking on the previous projection.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

MINUTES_PER_DAY = 1440.0
DAYS_PER_YEAR = 365.25                       # calendar-consistent year for all projection math
SECONDS_PER_DAY = 86400
SECONDS_PER_YEAR = DAYS_PER_YEAR * SECONDS_PER_DAY

# Magnitude buckets (minutes/day) used to frame recommendations
SMALL_IMPACT_MINUTES = 5.0
LARGE_IMPACT_MINUTES = 15.0


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class HealthMetricType(str, Enum):
    """Closed set of metrics the engine knows how to score."""

    RESTING_HEART_RATE = "resting_heart_rate"
    STEPS = "steps"
    ACTIVE_ENERGY_BURNED = "active_energy_burned"
    SLEEP_HOURS = "sleep_hours"
    VO2_MAX = "vo2_max"
    BODY_MASS = "body_mass"
    EXERCISE_MINUTES = "exercise_minutes"
    HEART_RATE_VARIABILITY = "heart_rate_variability"
    OXYGEN_SATURATION = "oxygen_saturation"
    # Questionnaire answers on a 1-10 scale
    NUTRITION_QUALITY = "nutrition_quality"
    SMOKING_STATUS = "smoking_status"
    ALCOHOL_CONSUMPTION = "alcohol_consumption"
    SOCIAL_CONNECTIONS_QUALITY = "social_connections_quality"
    STRESS_LEVEL = "stress_level"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def unit(self) -> str:
        return _UNITS[self]

    @property
    def is_higher_better(self) -> bool:
        return self not in (
            HealthMetricType.RESTING_HEART_RATE,
            HealthMetricType.BODY_MASS,
            HealthMetricType.STRESS_LEVEL,
        )


_DISPLAY_NAMES = {
    HealthMetricType.RESTING_HEART_RATE: "Resting Heart Rate",
    HealthMetricType.STEPS: "Steps",
    HealthMetricType.ACTIVE_ENERGY_BURNED: "Active Energy",
    HealthMetricType.SLEEP_HOURS: "Sleep",
    HealthMetricType.VO2_MAX: "VO2 Max",
    HealthMetricType.BODY_MASS: "Weight",
    HealthMetricType.EXERCISE_MINUTES: "Exercise",
    HealthMetricType.HEART_RATE_VARIABILITY: "Heart Rate Variability",
    HealthMetricType.OXYGEN_SATURATION: "Oxygen Saturation",
    HealthMetricType.NUTRITION_QUALITY: "Nutrition",
    HealthMetricType.SMOKING_STATUS: "Smoking",
    HealthMetricType.ALCOHOL_CONSUMPTION: "Alcohol",
    HealthMetricType.SOCIAL_CONNECTIONS_QUALITY: "Social Connections",
    HealthMetricType.STRESS_LEVEL: "Stress Level",
}

_UNITS = {
    HealthMetricType.RESTING_HEART_RATE: "bpm",
    HealthMetricType.STEPS: "steps",
    HealthMetricType.ACTIVE_ENERGY_BURNED: "kcal",
    HealthMetricType.SLEEP_HOURS: "h",
    HealthMetricType.VO2_MAX: "mL/kg/min",
    HealthMetricType.BODY_MASS: "kg",
    HealthMetricType.EXERCISE_MINUTES: "min",
    HealthMetricType.HEART_RATE_VARIABILITY: "ms",
    HealthMetricType.OXYGEN_SATURATION: "%",
    HealthMetricType.NUTRITION_QUALITY: "score",
    HealthMetricType.SMOKING_STATUS: "score",
    HealthMetricType.ALCOHOL_CONSUMPTION: "score",
    HealthMetricType.SOCIAL_CONNECTIONS_QUALITY: "score",
    HealthMetricType.STRESS_LEVEL: "score",
}


class SampleSource(str, Enum):
    DEVICE_SENSOR = "device_sensor"
    USER_INPUT = "user_input"


class PeriodType(str, Enum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


class Scenario(str, Enum):
    """Which habits a projection assumes."""

    CURRENT = "current"
    OPTIMAL = "optimal"


class Comparison(str, Enum):
    BETTER = "better"
    SAME = "same"
    WORSE = "worse"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricSample:
    """One measurement handed over by the acquisition layer."""

    metric_type: HealthMetricType
    value: float
    source: SampleSource
    timestamp: datetime              # timezone-aware


@dataclass(frozen=True)
class UserProfile:
    """Age inputs for a projection. Supplied externally, never mutated."""

    current_age: float
    birth_year: int | None = None

    @classmethod
    def from_birth_year(cls, birth_year: int, now: datetime) -> UserProfile:
        """Derive the age as the calendar-year difference at ``now``."""
        return cls(current_age=float(now.year - birth_year), birth_year=birth_year)


@dataclass(frozen=True)
class Citation:
    """A study reference attached to a metric's impact."""

    title: str
    authors: str = ""
    journal: str = ""
    year: int | None = None
    doi: str = ""
    url: str = ""
    summary: str = ""

    def __str__(self) -> str:
        parts = [self.authors, self.title, self.journal]
        text = ". ".join(p for p in parts if p)
        if self.year:
            text = f"{text} ({self.year})"
        if self.doi:
            text = f"{text}. doi:{self.doi}"
        return text


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImpactDetails:
    """Scored impact of one sample, expressed as minutes of life per day.

    Positive means lifespan gained, negative means lifespan lost.
    """

    metric_type: HealthMetricType
    lifespan_impact_minutes: float
    recommendation: str = ""
    study_references: tuple[Citation, ...] = ()
    current_value: float | None = None
    target_value: float | None = None
    comparison: Comparison = Comparison.SAME


@dataclass(frozen=True)
class ScoredSample:
    sample: MetricSample
    impact: ImpactDetails


@dataclass(frozen=True)
class AggregatedImpact:
    """Impact summed over one calendar window."""

    period_type: PeriodType
    total_minutes: float
    sample_count: int
    days_with_data: int = 0
    window_start: datetime | None = None
    window_end: datetime | None = None
    metric_types: tuple[HealthMetricType, ...] = ()

    @property
    def has_data(self) -> bool:
        return self.sample_count > 0

    @property
    def daily_rate_minutes(self) -> float:
        """Mean impact per day with data; 0.0 for an empty window."""
        if self.days_with_data <= 0:
            return 0.0
        return self.total_minutes / self.days_with_data


@dataclass(frozen=True)
class LifeProjection:
    """Life expectancy snapshot anchored at the instant it was computed."""

    baseline_life_expectancy_years: float
    adjusted_life_expectancy_years: float
    years_remaining: float
    anchor: datetime
    current_age_years: float
    birth_year: int
    scenario: Scenario = Scenario.CURRENT
    daily_impact_minutes: float = 0.0

    @property
    def net_impact_years(self) -> float:
        return self.adjusted_life_expectancy_years - self.baseline_life_expectancy_years


@dataclass(frozen=True)
class LifespanData:
    """Display-facing breakdown of the remaining lifespan at one instant."""

    years: int
    days: int
    hours: int
    minutes: int
    seconds: int
    progress: float
    birth_year: int
    end_year: int
    extra_years: int | None = None

    @classmethod
    def placeholder(cls) -> LifespanData:
        """Zeroed value shown when no projection could be computed."""
        return cls(
            years=0,
            days=0,
            hours=0,
            minutes=0,
            seconds=0,
            progress=0.0,
            birth_year=0,
            end_year=0,
        )

    def as_dict(self) -> dict:
        return {
            "years": self.years,
            "days": self.days,
            "hours": self.hours,
            "minutes": self.minutes,
            "seconds": self.seconds,
            "progress": self.progress,
            "birth_year": self.birth_year,
            "end_year": self.end_year,
            "extra_years": self.extra_years,
        }


@dataclass(frozen=True)
class Recommendation:
    text: str
    citations: tuple[Citation, ...] = field(default_factory=tuple)


def is_finite_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
