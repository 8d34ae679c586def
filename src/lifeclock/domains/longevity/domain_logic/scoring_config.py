"""Scoring configuration — curve coefficients, valid ranges and citations.

Targets and scaling constants are product/medical content, so they are read
from YAML instead of being hard-coded. The package ships a default table
under ``domains/longevity/curves/default.yaml``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from lifeclock.domains.longevity.domain_logic.errors import ScoringConfigError
from lifeclock.domains.longevity.domain_logic.models import Citation, HealthMetricType

logger = logging.getLogger(__name__)

DEFAULT_SCORING_CONFIG_PATH = (
    Path(__file__).resolve().parent.parent / "curves" / "default.yaml"
)


class CurveFamily(str, Enum):
    LINEAR = "linear"        # more is better up to a cap, relative to target
    INVERSE = "inverse"      # lower is better (resting heart rate)
    DEFICIT = "deficit"      # only shortfall below target costs lifespan
    U_SHAPED = "u_shaped"    # both under and over target cost lifespan
    BOUNDED = "bounded"      # zero inside a healthy range


@dataclass(frozen=True)
class CurveSpec:
    family: CurveFamily
    target: float
    scale: float                      # minutes/day per unit of deviation
    cap: float                        # max |impact| in minutes/day
    healthy_min: float | None = None  # bounded only
    healthy_max: float | None = None  # bounded only


@dataclass(frozen=True)
class MetricConfig:
    metric_type: HealthMetricType
    noun: str
    valid_min: float = -math.inf
    valid_max: float = math.inf
    curve: CurveSpec | None = None
    citations: tuple[Citation, ...] = ()

    @property
    def target(self) -> float | None:
        return self.curve.target if self.curve else None


@dataclass(frozen=True)
class ScoringConfig:
    version: str
    metrics: dict[HealthMetricType, MetricConfig] = field(default_factory=dict)

    def metric(self, metric_type: HealthMetricType) -> MetricConfig:
        """Return the config for a metric; unknown metrics score as unconfigured."""
        config = self.metrics.get(metric_type)
        if config is None:
            return MetricConfig(
                metric_type=metric_type,
                noun=metric_type.display_name.lower(),
            )
        return config


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_scoring_config(path: str | Path | None = None) -> ScoringConfig:
    """Load a YAML scoring table; ``None`` or ``""`` selects the bundled default."""
    path = Path(path) if path else DEFAULT_SCORING_CONFIG_PATH
    if not path.is_file():
        raise ScoringConfigError(f"Scoring config not found: {path}")

    with open(path) as f:
        try:
            data: dict[str, Any] = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ScoringConfigError(f"Scoring config {path} is not valid YAML: {exc}") from exc

    config = parse_scoring_config(data)
    logger.info(
        "Loaded scoring config v%s from %s (%d metrics)",
        config.version,
        path,
        len(config.metrics),
    )
    return config


def parse_scoring_config(data: dict[str, Any]) -> ScoringConfig:
    """Build a ScoringConfig from already-parsed YAML/JSON data."""
    if not isinstance(data, dict):
        raise ScoringConfigError("Scoring config must be a mapping")

    metrics: dict[HealthMetricType, MetricConfig] = {}
    for name, entry in (data.get("metrics") or {}).items():
        try:
            metric_type = HealthMetricType(name)
        except ValueError:
            raise ScoringConfigError(f"Unknown metric type in scoring config: {name!r}") from None
        metrics[metric_type] = _parse_metric(metric_type, entry or {})

    return ScoringConfig(version=str(data.get("version", "0")), metrics=metrics)


def _parse_metric(metric_type: HealthMetricType, entry: dict[str, Any]) -> MetricConfig:
    valid_range = entry.get("valid_range") or [-math.inf, math.inf]
    if len(valid_range) != 2:
        raise ScoringConfigError(f"{metric_type.value}: valid_range needs [min, max]")
    valid_min, valid_max = (float(v) for v in valid_range)
    if valid_min >= valid_max:
        raise ScoringConfigError(f"{metric_type.value}: valid_range min must be below max")

    curve_data = entry.get("curve")
    curve = _parse_curve(metric_type, curve_data) if curve_data else None
    if curve is not None and not valid_min <= curve.target <= valid_max:
        raise ScoringConfigError(f"{metric_type.value}: target outside valid_range")

    return MetricConfig(
        metric_type=metric_type,
        noun=entry.get("noun", metric_type.display_name.lower()),
        valid_min=valid_min,
        valid_max=valid_max,
        curve=curve,
        citations=tuple(_parse_citation(c) for c in entry.get("citations", [])),
    )


def _parse_curve(metric_type: HealthMetricType, data: dict[str, Any]) -> CurveSpec:
    try:
        family = CurveFamily(data["family"])
    except (KeyError, ValueError):
        raise ScoringConfigError(
            f"{metric_type.value}: curve.family must be one of "
            f"{', '.join(f.value for f in CurveFamily)}"
        ) from None

    healthy_min = data.get("healthy_min")
    healthy_max = data.get("healthy_max")
    if family is CurveFamily.BOUNDED:
        if healthy_min is None or healthy_max is None or healthy_min >= healthy_max:
            raise ScoringConfigError(
                f"{metric_type.value}: bounded curve needs healthy_min < healthy_max"
            )
        target = data.get("target", (healthy_min + healthy_max) / 2)
    else:
        if "target" not in data:
            raise ScoringConfigError(f"{metric_type.value}: curve.target is required")
        target = data["target"]

    scale = float(data.get("scale", 0))
    cap = float(data.get("cap", 0))
    if scale <= 0 or cap <= 0:
        raise ScoringConfigError(f"{metric_type.value}: curve scale and cap must be positive")
    if family is CurveFamily.LINEAR and float(target) <= 0:
        raise ScoringConfigError(f"{metric_type.value}: linear curve needs a positive target")

    return CurveSpec(
        family=family,
        target=float(target),
        scale=scale,
        cap=cap,
        healthy_min=float(healthy_min) if healthy_min is not None else None,
        healthy_max=float(healthy_max) if healthy_max is not None else None,
    )


def _parse_citation(data: Any) -> Citation:
    if isinstance(data, str):
        return Citation(title=data.strip())
    return Citation(
        title=data.get("title", "").strip(),
        authors=data.get("authors", ""),
        journal=data.get("journal", ""),
        year=data.get("year"),
        doi=data.get("doi", ""),
        url=data.get("url", ""),
        summary=data.get("summary", "").strip(),
    )
