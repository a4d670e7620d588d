"""
Session generator producing behavioral feature vectors for many simulated users.
"""

import random
from collections.abc import Iterator

import structlog

from .models import GeneratorConfig, SessionSample
from .session_state import SessionState

logger = structlog.get_logger(__name__)


class SessionGenerator:
    """Yields session feature vectors with configurable anomalies and baseline drift"""

    def __init__(self, config: GeneratorConfig | None = None):
        self.config = config or GeneratorConfig()
        self.rng = random.Random(self.config.seed)

        self.users: list[SessionState] = [
            SessionState(f"user-{i + 1:03d}", self.rng) for i in range(self.config.num_users)
        ]

        self.samples_generated = 0
        self.anomalies_injected = 0
        self.drifted = False

        logger.info(
            "Session generator initialized",
            users=len(self.users),
            anomaly_probability=self.config.anomaly_probability,
            enabled_anomalies=[a.value for a in self.config.enabled_anomalies],
            drift_at=self.config.drift_at,
        )

    def _apply_drift(self) -> None:
        for user in self.users:
            user.shift_baseline(self.config.drift_factor)
        self.drifted = True
        logger.info(
            "Baseline shifted",
            after_samples=self.samples_generated,
            factor=self.config.drift_factor,
        )

    def generate_sample(self) -> SessionSample:
        """Generate one session for a randomly chosen user"""
        if (
            not self.drifted
            and self.config.drift_at is not None
            and self.samples_generated >= self.config.drift_at
        ):
            self._apply_drift()

        user = self.rng.choice(self.users)

        anomaly = None
        if self.config.enabled_anomalies and self.rng.random() < self.config.anomaly_probability:
            anomaly = self.rng.choice(self.config.enabled_anomalies)
            self.anomalies_injected += 1
            logger.debug("Anomaly injected", anomaly_type=anomaly.value, user_id=user.user_id)

        # Anomalies persist across a user's following sessions
        active = anomaly or user.active_anomaly
        features = user.generate_features(inject_anomaly=anomaly)

        sample = SessionSample(
            user_id=user.user_id,
            index=self.samples_generated,
            features=features,
            anomaly=active,
            drifted=self.drifted,
        )
        self.samples_generated += 1
        return sample

    def generate(self, count: int) -> Iterator[SessionSample]:
        """Yield `count` session samples"""
        for _ in range(count):
            yield self.generate_sample()

    def vectors(self, count: int) -> Iterator[list[float]]:
        """Yield `count` bare feature vectors"""
        for sample in self.generate(count):
            yield sample.features
