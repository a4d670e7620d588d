"""
Data models and enums for the behavioral session generator.
"""

from dataclasses import dataclass
from enum import Enum

# Order of the values in every generated feature vector
FEATURE_NAMES = (
    "session_duration_min",
    "tab_switches_per_min",
    "focus_duration_min",
    "category_score",
    "time_score",
)


class SessionAnomalyType(Enum):
    """Types of behavioral anomalies that can be injected"""

    BINGE_SESSION = "binge_session"
    TAB_STORM = "tab_storm"
    FOCUS_COLLAPSE = "focus_collapse"
    LATE_NIGHT = "late_night"
    CATEGORY_SHIFT = "category_shift"


@dataclass
class GeneratorConfig:
    """Configuration for the session generator"""

    seed: int | None = None
    num_users: int = 5

    # Anomaly settings
    anomaly_probability: float = 0.05  # 5% chance of anomaly per session
    enabled_anomalies: list[SessionAnomalyType] | None = None

    # Baseline shift: after `drift_at` sessions every user's baseline is scaled by `drift_factor`
    drift_at: int | None = None
    drift_factor: float = 2.0

    def __post_init__(self):
        if self.enabled_anomalies is None:
            self.enabled_anomalies = list(SessionAnomalyType)
        if self.num_users < 1:
            raise ValueError(f"num_users must be >= 1, got {self.num_users}")


@dataclass
class SessionSample:
    """One generated session"""

    user_id: str
    index: int
    features: list[float]
    anomaly: SessionAnomalyType | None = None
    drifted: bool = False

    def to_dict(self) -> dict:
        """Flat record with one column per feature"""
        return {
            "user_id": self.user_id,
            "index": self.index,
            **dict(zip(FEATURE_NAMES, self.features, strict=True)),
            "anomaly": self.anomaly.value if self.anomaly else None,
            "drifted": self.drifted,
        }
