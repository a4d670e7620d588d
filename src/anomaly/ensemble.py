"""
Fusion ensemble combining a per-point statistical test with a novelty scorer.

Each prediction collapses the session vector into a weighted composite value
for the SPC chart (and the drift detector), scores the full vector with the
current novelty model and fuses both votes into one decision. The novelty
model is retrained periodically on the recent feature buffer by a background
worker.
"""

import math
from collections import deque
from collections.abc import Sequence
from functools import partial
from typing import Any

import structlog

from src.drift import DriftDetector

from .methods import get_novelty_scorer, get_statistical_test
from .methods.base import FeatureVector, StatisticalTest
from .models import EnsembleConfig, PredictionResult
from .trainer import ModelRetrainer, ScorerFactory

logger = structlog.get_logger(__name__)


class FusionEnsemble:
    """Weighted SPC + novelty-score anomaly detector for session feature vectors"""

    def __init__(
        self,
        config: EnsembleConfig | None = None,
        spc: StatisticalTest | None = None,
        scorer_factory: ScorerFactory | None = None,
        drift_detector: DriftDetector | None = None,
    ):
        """Initialize the ensemble

        Args:
            config: Ensemble configuration; defaults to EnsembleConfig()
            spc: Statistical test fed with the composite feature
            scorer_factory: Callable returning a fresh untrained novelty scorer
            drift_detector: Detector fed with the composite feature
        """
        self.config = config or EnsembleConfig()

        if spc is None:
            spc = get_statistical_test(self.config.spc_method, self.config.spc_config())
        self.spc = spc

        if scorer_factory is None:
            scorer_factory = partial(
                get_novelty_scorer, self.config.novelty_method, self.config.scorer_config()
            )
        self.retrainer = ModelRetrainer(scorer_factory, background=self.config.background_retraining)

        if drift_detector is None and self.config.track_drift:
            drift_detector = DriftDetector(
                delta=self.config.drift_delta,
                min_window_length=self.config.drift_min_window_length,
            )
        self.drift_detector = drift_detector

        self.spc_weight, self.if_weight = self._normalize_weights(
            self.config.spc_weight, self.config.if_weight
        )
        self.threshold = min(max(self.config.threshold, 0.0), 1.0)

        self.feature_buffer: deque[list[float]] = deque(maxlen=max(1, self.config.max_buffer_size))
        self.data_point_count = 0
        self.anomaly_count = 0
        self.drift_count = 0
        self.n_features: int | None = None

        logger.info(
            "Fusion ensemble initialized",
            spc=self.spc.name,
            scorer=self.retrainer.scorer.name,
            spc_weight=self.spc_weight,
            if_weight=self.if_weight,
            threshold=self.threshold,
            track_drift=self.drift_detector is not None,
        )

    def predict(self, features: FeatureVector) -> PredictionResult:
        """Score one session feature vector

        Args:
            features: Feature vector with the same dimensionality as earlier calls

        Returns:
            Fused prediction for this point

        Raises:
            ValueError: If the vector is empty, non-finite or changes dimensionality
        """
        vector = self._validate(features)

        self.feature_buffer.append(vector)
        composite = self.composite_feature(vector)

        spc_flag = 1 if self.spc.add_data_point(composite) else 0

        drift_detected = False
        if self.drift_detector is not None:
            drift_detected = self.drift_detector.update(composite)
            if drift_detected:
                self.drift_count += 1
                logger.info(
                    "Drift detected on composite feature",
                    data_point=self.data_point_count + 1,
                    composite=round(composite, 4),
                    window=self.drift_detector.width,
                )

        if_score = self._novelty_score(vector)

        self.data_point_count += 1
        if self.data_point_count % max(1, self.config.retrain_interval) == 0:
            self._maybe_retrain()

        if_flag = 1 if if_score > self.config.if_score_threshold else 0
        combined_score = self.spc_weight * spc_flag + self.if_weight * if_flag
        is_anomaly = combined_score >= self.threshold
        confidence = abs(combined_score - 0.5) * 2

        if is_anomaly:
            self.anomaly_count += 1

        return PredictionResult(
            is_anomaly=is_anomaly,
            combined_score=combined_score,
            spc_flag=spc_flag,
            if_score=if_score,
            composite_feature=composite,
            confidence=min(confidence, 1.0),
            drift_detected=drift_detected,
            details=self._details(),
        )

    def composite_feature(self, features: Sequence[float]) -> float:
        """Weighted sum of the leading features against the importance prior"""
        weights = self.config.feature_weights
        n = min(len(features), len(weights))
        return float(sum(features[i] * weights[i] for i in range(n)))

    def _validate(self, features: FeatureVector) -> list[float]:
        if features is None or len(features) == 0:
            raise ValueError("Feature vector cannot be empty")

        vector = [float(x) for x in features]
        if not all(math.isfinite(x) for x in vector):
            raise ValueError(f"Feature vector contains non-finite values: {vector}")

        if self.n_features is None:
            self.n_features = len(vector)
        elif len(vector) != self.n_features:
            raise ValueError(
                f"Feature vector has {len(vector)} features, expected {self.n_features}"
            )
        return vector

    def _novelty_score(self, vector: list[float]) -> float:
        scorer = self.retrainer.scorer
        if not scorer.is_trained:
            return 0.0

        try:
            return float(scorer.predict([vector])[0])
        except Exception as e:
            logger.warning(
                "Novelty scoring failed, falling back to neutral score",
                scorer=scorer.name,
                error=str(e),
            )
            return 0.0

    def _maybe_retrain(self) -> None:
        if len(self.feature_buffer) < self.config.min_training_samples:
            logger.debug(
                "Not enough samples to retrain",
                buffered=len(self.feature_buffer),
                required=self.config.min_training_samples,
            )
            return

        try:
            self.retrainer.submit(list(self.feature_buffer))
        except Exception as e:
            logger.error("Failed to schedule retraining", error=str(e), exc_info=True)

    def _details(self) -> dict[str, Any]:
        return {
            "spc": self.spc.get_statistics(),
            "novelty": self.retrainer.scorer.get_model_info(),
            "drift": (
                self.drift_detector.get_statistics().to_dict()
                if self.drift_detector is not None
                else None
            ),
        }

    @staticmethod
    def _normalize_weights(spc_weight: float, if_weight: float) -> tuple[float, float]:
        spc_weight = max(0.0, spc_weight)
        if_weight = max(0.0, if_weight)
        total = spc_weight + if_weight
        if total <= 0:
            logger.warning("Ensemble weights sum to zero, using equal weights")
            return 0.5, 0.5
        return spc_weight / total, if_weight / total

    def update_weights(self, spc_weight: float, if_weight: float) -> None:
        """Set the fusion weights, renormalized to sum to 1"""
        self.spc_weight, self.if_weight = self._normalize_weights(spc_weight, if_weight)
        logger.info("Ensemble weights updated", spc_weight=self.spc_weight, if_weight=self.if_weight)

    def update_threshold(self, threshold: float) -> None:
        self.threshold = min(max(threshold, 0.0), 1.0)
        logger.info("Ensemble threshold updated", threshold=self.threshold)

    def reset(self) -> None:
        """Discard buffered data and counters and return collaborators to their initial state"""
        self.feature_buffer.clear()
        self.data_point_count = 0
        self.anomaly_count = 0
        self.drift_count = 0
        self.n_features = None

        self.retrainer.reset()
        self.spc.reset()
        if self.drift_detector is not None:
            self.drift_detector.reset()

        logger.info("Fusion ensemble reset")

    def get_stats(self) -> dict[str, Any]:
        return {
            "spc_weight": self.spc_weight,
            "if_weight": self.if_weight,
            "threshold": self.threshold,
            "buffer_size": len(self.feature_buffer),
            "data_point_count": self.data_point_count,
            "anomaly_count": self.anomaly_count,
            "drift_count": self.drift_count,
            "spc_stats": self.spc.get_statistics(),
            "novelty_model_info": self.retrainer.scorer.get_model_info(),
            "retrainer_stats": self.retrainer.get_stats(),
            "drift_stats": (
                self.drift_detector.get_statistics().to_dict()
                if self.drift_detector is not None
                else None
            ),
        }

    def wait_for_retraining(self, timeout: float | None = None) -> bool:
        return self.retrainer.wait(timeout)

    def close(self) -> None:
        self.retrainer.close()

    def __enter__(self) -> "FusionEnsemble":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
