"""Shared test fixtures for Lifeclock tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BASELINE_LIFE_EXPECTANCY_YEARS", raising=False)
    monkeypatch.delenv("SCORING_CONFIG_PATH", raising=False)
    monkeypatch.delenv("LIFECLOCK_HOST", raising=False)
    monkeypatch.setenv("OPERATING_TIMEZONE", "UTC")
    monkeypatch.setenv("PROJECTION_PERIOD", "day")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from lifeclock.domains.longevity.domain_logic.engine import LifespanEngine  # noqa: E402
from lifeclock.domains.longevity.domain_logic.metric_scorer import MetricScorer  # noqa: E402
from lifeclock.domains.longevity.domain_logic.scoring_config import (  # noqa: E402
    ScoringConfig,
    load_scoring_config,
)


@pytest.fixture(scope="session")
def scoring_config() -> ScoringConfig:
    """The bundled default curve table."""
    return load_scoring_config()


@pytest.fixture
def scorer(scoring_config: ScoringConfig) -> MetricScorer:
    return MetricScorer(scoring_config)


@pytest.fixture
def engine(scoring_config: ScoringConfig) -> LifespanEngine:
    return LifespanEngine(scoring_config, timezone="UTC")
