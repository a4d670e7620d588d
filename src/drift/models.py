"""
Data models for the adaptive-window drift detector.
"""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Bucket:
    """Aggregated statistics over one or more consecutive observations"""

    sum: float
    sum_of_squares: float
    count: int
    created_at: float
    value: float  # the observation, or the midpoint of a merged pair

    @classmethod
    def from_value(cls, value: float, created_at: float) -> "Bucket":
        return cls(
            sum=value,
            sum_of_squares=value * value,
            count=1,
            created_at=created_at,
            value=value,
        )

    @property
    def mean(self) -> float:
        return self.sum / self.count

    def merge(self, other: "Bucket") -> "Bucket":
        """Combine two adjacent buckets, keeping the earliest creation time"""
        return Bucket(
            sum=self.sum + other.sum,
            sum_of_squares=self.sum_of_squares + other.sum_of_squares,
            count=self.count + other.count,
            created_at=min(self.created_at, other.created_at),
            value=(self.value + other.value) / 2,
        )


@dataclass
class DriftStatistics:
    """Read-only snapshot of a drift detector"""

    width: int
    total: float
    mean: float
    variance: float
    drift_count: int
    last_drift_point: int
    drift_flag: bool
    bucket_count: int

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return asdict(self)


@dataclass
class DriftEvent:
    """Structured notification emitted when a drift is detected"""

    width: int  # window width at detection, before truncation
    cut_index: int  # number of leading buckets dropped
    dropped_observations: int
    mean_left: float
    mean_right: float
    epsilon: float
    drift_count: int
    detected_at: float

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return asdict(self)
