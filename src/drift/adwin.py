"""
Adaptive-window (ADWIN-style) concept drift detector.

The window is a sequence of buckets holding aggregated sums. On every update the
window is split at each admissible cut point and the two sub-window means are
compared against a confidence bound; the first significant cut drops the older
part of the window.

Workflow per update:
1. Append the value as a unit bucket and refresh the window variance
2. Scan cut points with running prefix sums (one pass over the buckets)
3. Merge adjacent bucket pairs once the bucket count exceeds the limit
"""

import math
import time
from collections.abc import Callable, Iterable

import structlog

from .models import Bucket, DriftEvent, DriftStatistics

logger = structlog.get_logger(__name__)

DriftListener = Callable[[DriftEvent], None]


class DriftDetector:
    """Adaptive-window drift detector over a single scalar stream"""

    def __init__(
        self,
        delta: float = 0.002,
        min_window_length: int = 5,
        max_buckets: int = 100,
        clock: Callable[[], float] = time.time,
        listeners: Iterable[DriftListener] | None = None,
    ):
        """Initialize the detector

        Args:
            delta: Confidence parameter in (0, 1); smaller values mean fewer detections.
                   Values outside the interval disable detection.
            min_window_length: Minimum observations on each side of a cut (clamped to >= 1)
            max_buckets: Bucket count above which adjacent buckets are merged
            clock: Source of bucket timestamps
            listeners: Callables notified with a DriftEvent on each detection
        """
        self._delta = delta
        self._min_window_length = max(1, int(min_window_length))
        self._max_buckets = max(1, int(max_buckets))
        self._clock = clock
        self._listeners: list[DriftListener] = list(listeners or [])

        self._buckets: list[Bucket] = []
        self._total = 0.0
        self._total_sum_squares = 0.0
        self._width = 0
        self._variance = 0.0

        self._drift_flag = False
        self._drift_count = 0
        self._last_drift_point = -1

    @property
    def delta(self) -> float:
        return self._delta

    @property
    def min_window_length(self) -> int:
        return self._min_window_length

    @property
    def max_buckets(self) -> int:
        return self._max_buckets

    @property
    def buckets(self) -> tuple[Bucket, ...]:
        return tuple(self._buckets)

    @property
    def width(self) -> int:
        return self._width

    @property
    def total(self) -> float:
        return self._total

    @property
    def variance(self) -> float:
        return self._variance

    @property
    def drift_flag(self) -> bool:
        return self._drift_flag

    @property
    def drift_count(self) -> int:
        return self._drift_count

    @property
    def last_drift_point(self) -> int:
        return self._last_drift_point

    def add_listener(self, listener: DriftListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: DriftListener) -> None:
        self._listeners.remove(listener)

    def update(self, value: float) -> bool:
        """Add an observation and check the window for drift

        Args:
            value: New observation

        Returns:
            True if a drift was detected on this update

        Raises:
            ValueError: If the value is not a finite number
        """
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"Drift detector received a non-finite value: {value}")

        self._drift_flag = False
        self._add_bucket(value)
        self._check_for_drift()
        self._compress_buckets()

        return self._drift_flag

    def get_statistics(self) -> DriftStatistics:
        return DriftStatistics(
            width=self._width,
            total=self._total,
            mean=self._total / self._width if self._width > 0 else 0.0,
            variance=self._variance,
            drift_count=self._drift_count,
            last_drift_point=self._last_drift_point,
            drift_flag=self._drift_flag,
            bucket_count=len(self._buckets),
        )

    def reset(self) -> None:
        """Discard the window and counters; configuration and listeners are kept"""
        self._buckets = []
        self._total = 0.0
        self._total_sum_squares = 0.0
        self._width = 0
        self._variance = 0.0
        self._drift_flag = False
        self._drift_count = 0
        self._last_drift_point = -1

    def _add_bucket(self, value: float) -> None:
        self._buckets.append(Bucket.from_value(value, self._clock()))
        self._total += value
        self._total_sum_squares += value * value
        self._width += 1
        self._update_variance()

    def _update_variance(self) -> None:
        if self._width < 2:
            self._variance = 0.0
            return
        mean = self._total / self._width
        self._variance = max(0.0, self._total_sum_squares / self._width - mean * mean)

    def _epsilon(self, n_left: int, n_right: int) -> float:
        """Confidence bound a mean difference must exceed at a given cut"""
        if n_left <= 0 or n_right <= 0 or not 0 < self._delta < 1:
            return math.inf

        harmonic_n = 1 / (1 / n_left + 1 / n_right)
        log_factor = math.log(2 * math.log(self._width) / self._delta)
        return math.sqrt((2 * self._variance * log_factor) / harmonic_n)

    def _find_cut(self) -> tuple[int, float, float, float] | None:
        """Return (cut, mean_left, mean_right, epsilon) for the first significant cut

        Cut i puts buckets [0, i) in the left partition. Left sums are carried
        forward as i advances, so the scan is a single pass.
        """
        if self._width < 2 * self._min_window_length:
            return None

        # Cuts at or past the last bucket leave the right partition empty
        upper = min(self._width - self._min_window_length, len(self._buckets))

        left_sum = 0.0
        left_count = 0
        for cut in range(1, upper):
            bucket = self._buckets[cut - 1]
            left_sum += bucket.sum
            left_count += bucket.count

            if cut < self._min_window_length:
                continue

            right_count = self._width - left_count
            epsilon = self._epsilon(left_count, right_count)
            if math.isinf(epsilon):
                continue

            mean_left = left_sum / left_count
            mean_right = (self._total - left_sum) / right_count

            if abs(mean_left - mean_right) > epsilon:
                return cut, mean_left, mean_right, epsilon

        return None

    def _check_for_drift(self) -> None:
        found = self._find_cut()
        if found is None:
            return

        cut, mean_left, mean_right, epsilon = found
        width_at_detection = self._width

        self._drift_flag = True
        self._drift_count += 1
        self._last_drift_point = width_at_detection

        dropped = sum(b.count for b in self._buckets[:cut])
        self._buckets = self._buckets[cut:]
        self._recalculate_statistics()

        event = DriftEvent(
            width=width_at_detection,
            cut_index=cut,
            dropped_observations=dropped,
            mean_left=mean_left,
            mean_right=mean_right,
            epsilon=epsilon,
            drift_count=self._drift_count,
            detected_at=self._clock(),
        )

        logger.debug(
            "Concept drift detected",
            width=width_at_detection,
            cut_index=cut,
            dropped=dropped,
            mean_left=round(mean_left, 4),
            mean_right=round(mean_right, 4),
            epsilon=round(epsilon, 4),
        )

        self._notify(event)

    def _notify(self, event: DriftEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "Drift listener failed",
                    listener=getattr(listener, "__name__", repr(listener)),
                    error=str(e),
                )

    def _recalculate_statistics(self) -> None:
        self._total = 0.0
        self._total_sum_squares = 0.0
        self._width = 0
        for bucket in self._buckets:
            self._total += bucket.sum
            self._total_sum_squares += bucket.sum_of_squares
            self._width += bucket.count
        self._update_variance()

    def _compress_buckets(self) -> None:
        """Merge adjacent bucket pairs, oldest first; an unpaired last bucket is kept"""
        if len(self._buckets) <= self._max_buckets:
            return

        merged: list[Bucket] = []
        for i in range(0, len(self._buckets), 2):
            if i + 1 < len(self._buckets):
                merged.append(self._buckets[i].merge(self._buckets[i + 1]))
            else:
                merged.append(self._buckets[i])

        self._buckets = merged
        self._recalculate_statistics()

        logger.debug("Drift window compressed", bucket_count=len(merged), width=self._width)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(delta={self._delta}, "
            f"min_window_length={self._min_window_length}, width={self._width})"
        )
