"""
Pytest configuration and shared fixtures.
"""

from unittest.mock import MagicMock

import numpy as np
import pytest

from src.anomaly.methods.base import NoveltyScorer, StatisticalTest
from src.anomaly.models import EnsembleConfig
from src.generator.models import GeneratorConfig, SessionAnomalyType


class CounterClock:
    """Deterministic clock returning 0, 1, 2, ... on successive calls"""

    def __init__(self):
        self.ticks = 0

    def __call__(self) -> float:
        value = float(self.ticks)
        self.ticks += 1
        return value


# Drift fixtures
@pytest.fixture
def counter_clock():
    """Clock whose readings equal the number of previous readings."""
    return CounterClock()


@pytest.fixture
def stable_stream():
    """200 deterministic, evenly spread values in [0, 1).

    Low-discrepancy and noise-free, so it never triggers a cut. Random draws
    from a fixed distribution can still raise an occasional false drift.
    """
    return [(k * 0.6180339887) % 1.0 for k in range(200)]


# Ensemble fixtures
@pytest.fixture
def ensemble_config():
    """Inline-retraining configuration for reproducible ensemble tests."""
    return EnsembleConfig(
        random_state=0,
        background_retraining=False,
        track_drift=True,
    )


@pytest.fixture
def stub_spc():
    """Statistical test stub flagging every point."""
    spc = MagicMock(spec=StatisticalTest)
    spc.name = "stub_spc"
    spc.add_data_point.return_value = True
    spc.get_statistics.return_value = {"is_initialized": True}
    return spc


@pytest.fixture
def untrained_scorer():
    """Novelty scorer stub that never becomes trained."""
    scorer = MagicMock(spec=NoveltyScorer)
    scorer.name = "stub_scorer"
    scorer.is_trained = False
    scorer.get_model_info.return_value = {"is_trained": False}
    return scorer


@pytest.fixture
def session_vectors():
    """Normal-looking five-feature session vectors."""
    rng = np.random.default_rng(7)
    base = np.array([30.0, 3.0, 10.0, 0.4, 0.2])
    spread = np.array([3.0, 0.5, 1.0, 0.05, 0.03])
    return (base + rng.normal(size=(120, 5)) * spread).tolist()


# Generator fixtures
@pytest.fixture
def basic_config():
    """Basic generator configuration for testing."""
    return GeneratorConfig(seed=1, num_users=3, anomaly_probability=0.1)


@pytest.fixture
def minimal_config():
    """Minimal configuration for fast tests."""
    return GeneratorConfig(
        seed=1,
        num_users=1,
        anomaly_probability=0.0,  # No anomalies for predictable tests
    )


@pytest.fixture
def all_anomaly_types():
    """List of all anomaly types."""
    return list(SessionAnomalyType)
