"""
Incremental Hotelling T² multivariate control chart.

Tracks the running mean and covariance of p-dimensional observations with
Welford updates. The covariance is factorized with a Cholesky decomposition
every `refresh_interval` samples and T² = vᵀ S⁻¹ v is evaluated through
forward/back substitution. After the burn-in phase the upper control limit is
fixed from the F distribution:

    UCL = p (n - 1) / (n - p) · F(1 - alpha; p, n - p)

The chart is a standalone monitor over whole feature vectors, not a
StatisticalTest: it does not vote in the fusion ensemble. The replay CLI runs
it alongside the ensemble with --hotelling.
"""

import time
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import structlog
from scipy import stats

from src.numeric import RingBuffer, cholesky_factor, cholesky_solve

logger = structlog.get_logger(__name__)


@dataclass
class T2Record:
    """One evaluated observation"""

    t2: float
    timestamp: float
    signal: bool

    def to_dict(self) -> dict:
        return asdict(self)


class HotellingT2Monitor:
    """Multivariate SPC over fixed-length feature vectors"""

    def __init__(
        self,
        n_features: int,
        alpha: float = 0.001,
        burn_in: int = 1000,
        refresh_interval: int = 50,
        history_size: int = 1000,
        clock: Callable[[], float] = time.time,
    ):
        if n_features < 1:
            raise ValueError(f"n_features must be >= 1, got {n_features}")

        self.p = n_features
        self.alpha = alpha
        self.burn_in = burn_in
        self.refresh_interval = max(1, refresh_interval)
        self.history_size = history_size
        self._clock = clock
        self.reset()

    def reset(self) -> None:
        self.n = 0
        self.mean = np.zeros(self.p)
        self.scatter = np.zeros((self.p, self.p))
        self.chol: np.ndarray | None = None
        self.ucl = float("inf")
        self.alarm_count = 0
        self.history = RingBuffer(self.history_size)

    def ingest(self, vector: Sequence[float]) -> bool:
        """Add one observation and test it against the control limit

        Args:
            vector: Observation of length n_features

        Returns:
            True if T² exceeds the upper control limit

        Raises:
            ValueError: If the observation has the wrong length
        """
        x = np.asarray(vector, dtype=float)
        if x.shape != (self.p,):
            raise ValueError(f"Expected a vector of length {self.p}, got shape {x.shape}")

        self._update_moments(x)
        t2 = self.hotelling_t2(x)
        signal = self.n > self.p and t2 > self.ucl

        self.history.push(T2Record(t2=t2, timestamp=self._clock(), signal=signal))
        if signal:
            self.alarm_count += 1
            logger.warning("Hotelling T2 alarm", t2=round(t2, 3), ucl=round(self.ucl, 3), n=self.n)

        return signal

    def _update_moments(self, x: np.ndarray) -> None:
        self.n += 1
        delta = x - self.mean
        self.mean = self.mean + delta / self.n
        self.scatter = self.scatter + np.outer(delta, x - self.mean)

        if self.n % self.refresh_interval == 0:
            self.refresh_cholesky()
        if self.n == self.burn_in:
            self.update_ucl()

    def covariance(self) -> np.ndarray:
        if self.n < 2:
            return np.zeros((self.p, self.p))
        return self.scatter / (self.n - 1)

    def refresh_cholesky(self) -> None:
        if self.n < 2:
            return
        self.chol = cholesky_factor(self.covariance())

    def hotelling_t2(self, x: Sequence[float]) -> float:
        """T² distance of x from the running mean; 0 until a covariance exists"""
        if self.n < 2:
            return 0.0
        if self.chol is None:
            self.refresh_cholesky()

        v = np.asarray(x, dtype=float) - self.mean
        solution = cholesky_solve(self.chol, v)
        return float(v @ solution)

    def update_ucl(self) -> None:
        p, n = self.p, self.n
        if n <= p:
            self.ucl = float("inf")
            return

        f_quantile = stats.f.ppf(1 - self.alpha, p, n - p)
        self.ucl = float(p * (n - 1) / (n - p) * f_quantile)

        logger.info("Hotelling T2 control limit fixed", ucl=round(self.ucl, 3), n=n, p=p)

    def get_snapshot(self) -> dict[str, Any]:
        return {
            "n": self.n,
            "mean": self.mean.tolist(),
            "ucl": self.ucl,
            "alarm_count": self.alarm_count,
            "recent": [record.to_dict() for record in self.history.to_array()],
        }
