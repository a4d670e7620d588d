"""
Per-user session state and feature generation.
"""

import random

from .models import SessionAnomalyType


class SessionState:
    """Tracks one simulated user's browsing baseline for realistic evolution"""

    def __init__(self, user_id: str, rng: random.Random | None = None):
        self.user_id = user_id
        self.rng = rng or random.Random()

        # Base values (these evolve slowly)
        self.base_duration = self.rng.uniform(25, 45)
        self.base_tab_switches = self.rng.uniform(2, 5)
        self.base_focus = self.rng.uniform(8, 15)
        self.base_category = self.rng.uniform(0.2, 0.6)
        self.base_time = self.rng.uniform(0.1, 0.4)

        # Current anomaly state
        self.active_anomaly: SessionAnomalyType | None = None
        self.anomaly_duration: int = 0

    def shift_baseline(self, factor: float) -> None:
        """Scale the activity baseline, simulating a lasting change of habits"""
        self.base_duration *= factor
        self.base_tab_switches *= factor
        self.base_focus /= factor

    def generate_features(self, inject_anomaly: SessionAnomalyType | None = None) -> list[float]:
        """Generate one session feature vector with optional anomaly injection

        Args:
            inject_anomaly: Optional anomaly type to start on this session

        Returns:
            [session_duration_min, tab_switches_per_min, focus_duration_min,
             category_score, time_score]
        """
        if inject_anomaly:
            self.active_anomaly = inject_anomaly
            self.anomaly_duration = self.rng.randint(3, 10)  # lasts 3-10 sessions

        duration_mult = 1.0
        tabs_mult = 1.0
        focus_mult = 1.0
        category = None
        time_of_day = None

        if self.active_anomaly:
            if self.active_anomaly == SessionAnomalyType.BINGE_SESSION:
                duration_mult = self.rng.uniform(3.0, 5.0)
                focus_mult = self.rng.uniform(1.3, 1.8)
            elif self.active_anomaly == SessionAnomalyType.TAB_STORM:
                tabs_mult = self.rng.uniform(4.0, 8.0)
                focus_mult = self.rng.uniform(0.2, 0.4)
            elif self.active_anomaly == SessionAnomalyType.FOCUS_COLLAPSE:
                focus_mult = self.rng.uniform(0.1, 0.3)
                tabs_mult = self.rng.uniform(1.5, 2.5)
            elif self.active_anomaly == SessionAnomalyType.LATE_NIGHT:
                time_of_day = self.rng.uniform(0.9, 1.0)
                duration_mult = self.rng.uniform(1.3, 1.8)
            elif self.active_anomaly == SessionAnomalyType.CATEGORY_SHIFT:
                category = self.rng.uniform(0.9, 1.0)

            self.anomaly_duration -= 1
            if self.anomaly_duration <= 0:
                self.active_anomaly = None

        # Natural variation
        duration = max(1.0, (self.base_duration + self.rng.uniform(-5, 5)) * duration_mult)
        tab_switches = max(0.0, (self.base_tab_switches + self.rng.uniform(-1, 1)) * tabs_mult)
        focus = max(0.5, (self.base_focus + self.rng.uniform(-2, 2)) * focus_mult)
        focus = min(focus, duration)

        if category is None:
            category = self.base_category + self.rng.uniform(-0.1, 0.1)
        if time_of_day is None:
            time_of_day = self.base_time + self.rng.uniform(-0.05, 0.05)

        return [
            round(duration, 2),
            round(tab_switches, 2),
            round(focus, 2),
            round(min(1.0, max(0.0, category)), 3),
            round(min(1.0, max(0.0, time_of_day)), 3),
        ]
