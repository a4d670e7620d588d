"""
Configuration and result models for the fusion ensemble.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

# Session duration, tab-switch frequency, focus duration, category score, time-based score
DEFAULT_FEATURE_WEIGHTS = (0.30, 0.25, 0.20, 0.15, 0.10)


@dataclass
class EnsembleConfig:
    """Configuration for the anomaly fusion ensemble"""

    # Fusion
    spc_weight: float = 0.5
    if_weight: float = 0.5
    threshold: float = 0.5
    if_score_threshold: float = 0.7  # novelty score above which the scorer votes anomaly
    feature_weights: tuple[float, ...] = DEFAULT_FEATURE_WEIGHTS

    # Statistical test
    spc_method: str = "spc"
    spc_window_size: int = 100
    sigma_multiplier: float = 3.0

    # Novelty scorer
    novelty_method: str = "isolation_forest"
    n_trees: int = 15
    subsample_size: int = 64
    random_state: int | None = None

    # Buffering and retraining
    max_buffer_size: int = 200
    retrain_interval: int = 50
    min_training_samples: int = 30
    background_retraining: bool = True

    # Drift tracking on the composite feature
    track_drift: bool = True
    drift_delta: float = 0.002
    drift_min_window_length: int = 5

    def spc_config(self) -> dict[str, Any]:
        return {
            "window_size": self.spc_window_size,
            "sigma_multiplier": self.sigma_multiplier,
        }

    def scorer_config(self) -> dict[str, Any]:
        return {
            "n_trees": self.n_trees,
            "subsample_size": self.subsample_size,
            "random_state": self.random_state,
        }


@dataclass
class PredictionResult:
    """Result of one fused anomaly prediction"""

    is_anomaly: bool
    combined_score: float
    spc_flag: int
    if_score: float
    composite_feature: float
    confidence: float
    drift_detected: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return asdict(self)

    @property
    def severity(self) -> str:
        """Severity level from the combined score"""
        if self.combined_score >= 0.8:
            return "critical"
        elif self.combined_score >= 0.6:
            return "high"
        elif self.combined_score >= 0.4:
            return "medium"
        else:
            return "low"
