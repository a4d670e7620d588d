"""
Base abstract interfaces for the collaborators of the fusion ensemble.

Statistical tests must inherit from StatisticalTest and implement:
- add_data_point(): Per-point significance test on a scalar
- get_statistics(): Snapshot of the test state
- reset(): Discard accumulated state

Novelty scorers must inherit from NoveltyScorer and implement:
- fit(): Batch training on feature vectors
- predict(): Outlier score in [0, 1] per feature vector
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

FeatureVector = Sequence[float]


class StatisticalTest(ABC):
    """Abstract base class for per-point statistical tests over a scalar stream"""

    @abstractmethod
    def add_data_point(self, value: float) -> bool:
        """Add an observation and test it

        Args:
            value: The observed scalar

        Returns:
            True if the observation is a statistically significant deviation
        """
        pass

    @abstractmethod
    def get_statistics(self) -> dict[str, Any]:
        """Get a snapshot of the test state"""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Discard accumulated observations, keeping configuration"""
        pass

    @abstractmethod
    def get_config(self) -> dict[str, Any]:
        """Get the current configuration of this test"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the statistical test"""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(config={self.get_config()})"


class NoveltyScorer(ABC):
    """Abstract base class for batch-trained outlier scorers

    Each scorer must implement:
    1. fit() - Train on a batch of feature vectors
    2. predict() - Score new feature vectors
    """

    @abstractmethod
    def fit(self, vectors: Sequence[FeatureVector]) -> None:
        """Train the scorer

        Args:
            vectors: Feature vectors of equal dimensionality

        Raises:
            ValueError: If the batch is empty or malformed
        """
        pass

    @abstractmethod
    def predict(self, vectors: Sequence[FeatureVector]) -> list[float]:
        """Score feature vectors

        Args:
            vectors: Feature vectors with the training dimensionality

        Returns:
            One score in [0, 1] per vector; higher is more anomalous

        Raises:
            RuntimeError: If the scorer is not trained
        """
        pass

    @property
    @abstractmethod
    def is_trained(self) -> bool:
        """Whether fit() completed successfully"""
        pass

    @abstractmethod
    def get_model_info(self) -> dict[str, Any]:
        """Get a snapshot of the trained model"""
        pass

    @abstractmethod
    def get_config(self) -> dict[str, Any]:
        """Get the current configuration of this scorer"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the scoring method"""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(config={self.get_config()})"
