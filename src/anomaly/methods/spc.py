"""
Statistical Process Control (Shewhart chart) test on the composite session feature.

The last `window_size` observations are kept in a ring buffer. Once the warm-up
is reached, control limits are mean ± sigma_multiplier × std over the window,
and a point outside the limits is flagged.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from src.numeric import RingBuffer

from .base import StatisticalTest

logger = structlog.get_logger(__name__)

WARMUP_POINTS = 30


class TrendType(Enum):
    """Patterns reported by the run/trend check"""

    INCREASING = "increasing_trend"
    DECREASING = "decreasing_trend"
    RUN_ABOVE_MEAN = "run_above_mean"
    RUN_BELOW_MEAN = "run_below_mean"
    NONE = "no_trend"


@dataclass
class SPCConfig:
    """Configuration for the SPC test"""

    window_size: int = 100
    sigma_multiplier: float = 3.0


class StatisticalProcessControl(StatisticalTest):
    """Shewhart control chart over a sliding window"""

    def __init__(self, config: dict | None = None):
        """Initialize with configuration

        Args:
            config: Dictionary with keys matching SPCConfig fields
        """
        self.config = SPCConfig(**(config or {}))
        if self.config.window_size < 1:
            raise ValueError(f"SPC window size must be >= 1, got {self.config.window_size}")
        self._name = "spc"
        self._init_state()

    def _init_state(self) -> None:
        self.window = RingBuffer(self.config.window_size)
        self.is_initialized = False
        self.mean = 0.0
        self.standard_deviation = 0.0
        self.upper_control_limit = 0.0
        self.lower_control_limit = 0.0
        self.anomaly_count = 0
        self.total_observations = 0

    @property
    def name(self) -> str:
        return self._name

    def get_config(self) -> dict[str, Any]:
        return {
            "window_size": self.config.window_size,
            "sigma_multiplier": self.config.sigma_multiplier,
        }

    def add_data_point(self, value: float) -> bool:
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = math.nan

        if not math.isfinite(number):
            logger.warning("Invalid SPC data point", value=value)
            return False

        value = number
        self.window.push(value)
        self.total_observations += 1

        if len(self.window) >= min(WARMUP_POINTS, self.config.window_size):
            self._update_control_limits()
            self.is_initialized = True

        anomalous = self.is_anomaly(value)
        if anomalous:
            self.anomaly_count += 1

        return anomalous

    def _update_control_limits(self) -> None:
        data = list(self.window.to_array())
        self.mean = sum(data) / len(data)
        variance = sum((v - self.mean) ** 2 for v in data) / len(data)
        self.standard_deviation = math.sqrt(variance)

        margin = self.config.sigma_multiplier * self.standard_deviation
        self.upper_control_limit = self.mean + margin
        self.lower_control_limit = self.mean - margin

    def is_anomaly(self, value: float) -> bool:
        if not self.is_initialized:
            return False
        return value > self.upper_control_limit or value < self.lower_control_limit

    def get_statistics(self) -> dict[str, Any]:
        return {
            "is_initialized": self.is_initialized,
            "mean": self.mean,
            "standard_deviation": self.standard_deviation,
            "upper_control_limit": self.upper_control_limit,
            "lower_control_limit": self.lower_control_limit,
            "window_size": self.config.window_size,
            "current_window_length": len(self.window),
            "anomaly_count": self.anomaly_count,
            "total_observations": self.total_observations,
            "anomaly_rate": (
                self.anomaly_count / self.total_observations if self.total_observations > 0 else 0.0
            ),
            "sigma_multiplier": self.config.sigma_multiplier,
            "last_value": self.window.last(),
        }

    def _sigma_level(self, value: float) -> float:
        deviation = abs(value - self.mean)
        if self.standard_deviation == 0:
            return math.inf if deviation > 0 else 0.0
        return deviation / self.standard_deviation

    def anomaly_severity(self, value: float) -> float:
        """Map the distance from the mean to a severity score

        Returns:
            1.0 beyond 3 sigma, 0.8 beyond 2, 0.5 beyond 1, else 0.2; 0 before warm-up
        """
        if not self.is_initialized:
            return 0.0

        sigma_level = self._sigma_level(value)
        if sigma_level > 3:
            return 1.0
        if sigma_level > 2:
            return 0.8
        if sigma_level > 1:
            return 0.5
        return 0.2

    def process_capability(self) -> dict[str, Any] | None:
        """Cp/Cpk of the process against its own control limits"""
        if not self.is_initialized or self.standard_deviation == 0:
            return None

        std = self.standard_deviation
        cp = (self.upper_control_limit - self.lower_control_limit) / (6 * std)
        cpk_upper = (self.upper_control_limit - self.mean) / (3 * std)
        cpk_lower = (self.mean - self.lower_control_limit) / (3 * std)
        cpk = min(cpk_upper, cpk_lower)

        if cpk >= 1.33:
            stability = "stable"
        elif cpk >= 1.0:
            stability = "marginal"
        else:
            stability = "unstable"

        return {
            "cp": cp,
            "cpk": cpk,
            "cpk_upper": cpk_upper,
            "cpk_lower": cpk_lower,
            "process_stability": stability,
        }

    def detect_trend(self) -> TrendType | None:
        """Check the window for trends and runs

        A trend is six consecutive increases or decreases; a run is eight
        consecutive points on the same side of the mean.

        Returns:
            The first pattern found, TrendType.NONE, or None below 7 points
        """
        data = list(self.window.to_array())
        if len(data) < 7:
            return None

        increasing = 0
        decreasing = 0
        for previous, current in zip(data, data[1:]):
            if current > previous:
                increasing += 1
                decreasing = 0
            elif current < previous:
                decreasing += 1
                increasing = 0
            else:
                increasing = 0
                decreasing = 0

            if increasing >= 6:
                return TrendType.INCREASING
            if decreasing >= 6:
                return TrendType.DECREASING

        above = 0
        below = 0
        for value in data:
            if value > self.mean:
                above += 1
                below = 0
            elif value < self.mean:
                below += 1
                above = 0
            else:
                above = 0
                below = 0

            if above >= 8:
                return TrendType.RUN_ABOVE_MEAN
            if below >= 8:
                return TrendType.RUN_BELOW_MEAN

        return TrendType.NONE

    def western_electric_rule(self, value: float) -> str | None:
        """Return the first Western Electric rule violated by the recent points

        Rule 1: one point beyond 3 sigma.
        Rule 2: two of the last three points beyond 2 sigma.
        Rule 3: four of the last five points beyond 1 sigma.
        """
        data = list(self.window.to_array())
        if not self.is_initialized or len(data) < 3:
            return None

        std = self.standard_deviation
        if abs(value - self.mean) > 3 * std:
            return "rule_1: point beyond 3 sigma"

        beyond_two = sum(1 for v in data[-3:] if abs(v - self.mean) > 2 * std)
        if beyond_two >= 2:
            return "rule_2: two of three points beyond 2 sigma"

        if len(data) >= 5:
            beyond_one = sum(1 for v in data[-5:] if abs(v - self.mean) > std)
            if beyond_one >= 4:
                return "rule_3: four of five points beyond 1 sigma"

        return None

    def monitoring_summary(self) -> dict[str, Any]:
        stats = self.get_statistics()
        trend = self.detect_trend()
        capability = self.process_capability()

        return {
            "status": "active" if self.is_initialized else "initializing",
            "anomaly_rate": stats["anomaly_rate"],
            "trend": trend.value if trend else None,
            "stability": capability["process_stability"] if capability else "unknown",
            "control_limits": {
                "upper": self.upper_control_limit,
                "lower": self.lower_control_limit,
                "mean": self.mean,
            },
        }

    def reset(self) -> None:
        self._init_state()
