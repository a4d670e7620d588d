"""
Isolation Forest novelty scorer over full session feature vectors.

Anomalies are isolated in fewer random splits, so their average path length
h(x) over the trees is short. The score is 2^(-E[h(x)] / c(psi)), with c(psi)
the average path length of an unsuccessful BST search over psi samples:
close to 1 for outliers, around 0.5 or below for inliers.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import numpy as np
import structlog
from sklearn.ensemble import IsolationForest

from .base import FeatureVector, NoveltyScorer

logger = structlog.get_logger(__name__)


@dataclass
class IsolationForestConfig:
    """Configuration for the Isolation Forest scorer"""

    n_trees: int = 15
    subsample_size: int = 64
    random_state: int | None = None


class IsolationForestScorer(NoveltyScorer):
    """Isolation Forest outlier scorer backed by scikit-learn"""

    def __init__(self, config: dict | None = None):
        """Initialize with configuration

        Args:
            config: Dictionary with keys matching IsolationForestConfig fields
        """
        self.config = IsolationForestConfig(**(config or {}))
        self._name = "isolation_forest"

        self.model: IsolationForest | None = None
        self.feature_count: int | None = None
        self.n_training_samples = 0
        self.trained_at: str | None = None
        self._is_trained = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_trained(self) -> bool:
        return self._is_trained

    @property
    def max_height(self) -> int:
        return math.ceil(math.log2(max(self.config.subsample_size, 2)))

    def get_config(self) -> dict[str, Any]:
        return {
            "n_trees": self.config.n_trees,
            "subsample_size": self.config.subsample_size,
            "random_state": self.config.random_state,
        }

    def fit(self, vectors: list[FeatureVector]) -> None:
        """Fit a new forest on the batch, replacing any previous one

        Args:
            vectors: Feature vectors of equal dimensionality

        Raises:
            ValueError: If the batch is empty, ragged or not two-dimensional
        """
        if vectors is None or len(vectors) == 0:
            raise ValueError("Training data cannot be empty")

        X = np.asarray(vectors, dtype=float)
        if X.ndim != 2 or X.shape[1] == 0:
            raise ValueError(f"Training data must be a 2-D batch of vectors, got shape {X.shape}")

        model = IsolationForest(
            n_estimators=self.config.n_trees,
            max_samples=min(self.config.subsample_size, len(X)),
            random_state=self.config.random_state,
        )
        model.fit(X)

        self.model = model
        self.feature_count = X.shape[1]
        self.n_training_samples = len(X)
        self.trained_at = datetime.now().isoformat()
        self._is_trained = True

        logger.debug(
            "Isolation forest fitted",
            n_samples=len(X),
            n_features=self.feature_count,
            n_trees=self.config.n_trees,
        )

    def predict(self, vectors: list[FeatureVector]) -> list[float]:
        if not self._is_trained or self.model is None:
            raise RuntimeError("Model must be trained before prediction")

        X = np.asarray(vectors, dtype=float)
        if X.ndim == 1:
            X = X.reshape(1, -1)

        # score_samples returns the negated isolation score
        scores = -self.model.score_samples(X)
        return np.clip(scores, 0.0, 1.0).tolist()

    def get_model_info(self) -> dict[str, Any]:
        return {
            "n_trees": self.config.n_trees,
            "subsample_size": self.config.subsample_size,
            "max_height": self.max_height,
            "is_trained": self._is_trained,
            "feature_count": self.feature_count,
            "n_training_samples": self.n_training_samples,
            "trained_at": self.trained_at,
        }
