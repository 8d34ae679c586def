"""Error taxonomy for the lifespan engine.

Faults in the caller's input or configuration are exceptions. Domain
conditions that still leave a usable (or deliberately empty) result are
reported as ``EngineIssue`` records next to the data, so callers can render
"not enough data yet" instead of a neutral outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lifeclock.domains.longevity.domain_logic.models import HealthMetricType, MetricSample


class LifeclockError(Exception):
    """Base class for engine exceptions."""


class InvalidSampleError(LifeclockError, ValueError):
    """A sample value is non-finite or outside the metric's valid range."""

    def __init__(self, sample: MetricSample, reason: str) -> None:
        self.sample = sample
        self.reason = reason
        super().__init__(
            f"Invalid {sample.metric_type.value} sample {sample.value!r}: {reason}"
        )


class ScoringConfigError(LifeclockError):
    """Scoring configuration is malformed."""


class IssueKind(str, Enum):
    INVALID_SAMPLE = "invalid_sample"
    INSUFFICIENT_DATA = "insufficient_data"
    NEGATIVE_REMAINING_YEARS = "negative_remaining_years"
    MISSING_BASELINE = "missing_baseline"


@dataclass(frozen=True)
class EngineIssue:
    """A reported condition attached to an engine result."""

    kind: IssueKind
    message: str
    metric_type: HealthMetricType | None = None

    def as_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "metric_type": self.metric_type.value if self.metric_type else None,
        }


def insufficient_data(metric_type: HealthMetricType | None, period: str) -> EngineIssue:
    label = metric_type.value if metric_type else "all metrics"
    return EngineIssue(
        kind=IssueKind.INSUFFICIENT_DATA,
        message=f"No samples for {label} in the current {period} window",
        metric_type=metric_type,
    )
