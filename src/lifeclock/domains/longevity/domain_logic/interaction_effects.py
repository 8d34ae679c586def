"""Interaction effects between metrics.

Some habits reinforce each other and some blunt each other. Each rule reads
representative metric values and, when its condition holds, yields a
multiplier applied to the *benefit* of the metrics it names. Losses are never
scaled, so an interaction can shrink or grow a gain but cannot turn a loss
into a smaller one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from lifeclock.domains.longevity.domain_logic.models import HealthMetricType

logger = logging.getLogger(__name__)

T = HealthMetricType

SLEEP_EXERCISE_SYNERGY = 1.15
ALCOHOL_HRV_ANTAGONISM = 0.75
STRESS_SLEEP_ANTAGONISM = 0.85
BODY_MASS_ACTIVITY_REDUCTION = 0.90          # per BODY_MASS_STEP_KG over the threshold

HEALTHY_SLEEP_HOURS = (7.0, 8.5)
REGULAR_EXERCISE_MINUTES = 20.0               # ~150 min/week
NON_DRINKER_SCORE = 9.0                       # questionnaire: 10 = never drinks
HIGH_STRESS_SCORE = 6.0                       # questionnaire: 10 = severe stress
BODY_MASS_THRESHOLD_KG = 90.0
BODY_MASS_STEP_KG = 9.0

MetricValues = Mapping[HealthMetricType, float]


@dataclass(frozen=True)
class InteractionEffect:
    """One active interaction and the benefit multiplier it applies."""

    name: str
    multiplier: float
    metric_types: tuple[HealthMetricType, ...]
    description: str

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "multiplier": round(self.multiplier, 4),
            "metric_types": [t.value for t in self.metric_types],
            "description": self.description,
        }


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def _sleep_exercise(values: MetricValues) -> InteractionEffect | None:
    sleep = values.get(T.SLEEP_HOURS)
    exercise = values.get(T.EXERCISE_MINUTES)
    if sleep is None or exercise is None:
        return None
    low, high = HEALTHY_SLEEP_HOURS
    if not (low <= sleep <= high and exercise >= REGULAR_EXERCISE_MINUTES):
        return None
    return InteractionEffect(
        name="sleep_exercise_synergy",
        multiplier=SLEEP_EXERCISE_SYNERGY,
        metric_types=(T.SLEEP_HOURS, T.EXERCISE_MINUTES),
        description="Good sleep and regular exercise are amplifying each other's benefits.",
    )


def _alcohol_hrv(values: MetricValues) -> InteractionEffect | None:
    alcohol = values.get(T.ALCOHOL_CONSUMPTION)
    if alcohol is None or T.HEART_RATE_VARIABILITY not in values:
        return None
    if alcohol >= NON_DRINKER_SCORE:
        return None
    return InteractionEffect(
        name="alcohol_hrv_antagonism",
        multiplier=ALCOHOL_HRV_ANTAGONISM,
        metric_types=(T.HEART_RATE_VARIABILITY,),
        description="Alcohol is reducing the benefit of your heart rate variability.",
    )


def _body_mass_activity(values: MetricValues) -> InteractionEffect | None:
    mass = values.get(T.BODY_MASS)
    if mass is None or T.STEPS not in values:
        return None
    if mass <= BODY_MASS_THRESHOLD_KG:
        return None
    excess = mass - BODY_MASS_THRESHOLD_KG
    return InteractionEffect(
        name="body_mass_activity",
        multiplier=BODY_MASS_ACTIVITY_REDUCTION ** (excess / BODY_MASS_STEP_KG),
        metric_types=(T.STEPS, T.EXERCISE_MINUTES),
        description="Extra body weight is reducing the benefit of your activity.",
    )


def _stress_sleep(values: MetricValues) -> InteractionEffect | None:
    stress = values.get(T.STRESS_LEVEL)
    if stress is None or T.SLEEP_HOURS not in values:
        return None
    if stress <= HIGH_STRESS_SCORE:
        return None
    return InteractionEffect(
        name="stress_sleep_antagonism",
        multiplier=STRESS_SLEEP_ANTAGONISM,
        metric_types=(T.SLEEP_HOURS,),
        description="High stress is reducing the benefit of your sleep.",
    )


_RULES: tuple[Callable[[MetricValues], InteractionEffect | None], ...] = (
    _sleep_exercise,
    _alcohol_hrv,
    _body_mass_activity,
    _stress_sleep,
)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def active_interactions(values: MetricValues) -> tuple[InteractionEffect, ...]:
    """Every rule whose condition holds for ``values``, in a fixed order."""
    effects = tuple(effect for effect in (rule(values) for rule in _RULES) if effect is not None)
    for effect in effects:
        logger.debug("Interaction %s active (x%.3f)", effect.name, effect.multiplier)
    return effects


def benefit_multipliers(effects: Iterable[InteractionEffect]) -> dict[HealthMetricType, float]:
    """Combined multiplier per metric; metrics not named by any effect are absent."""
    multipliers: dict[HealthMetricType, float] = {}
    for effect in effects:
        for metric_type in effect.metric_types:
            multipliers[metric_type] = multipliers.get(metric_type, 1.0) * effect.multiplier
    return multipliers


def adjust_benefit(minutes: float, multiplier: float) -> float:
    """Scale a gain by ``multiplier``; losses pass through unchanged."""
    return minutes * multiplier if minutes > 0 else minutes
