"""
Predefined configurations for different simulation scenarios.
"""

from .models import GeneratorConfig, SessionAnomalyType

# Normal usage (low anomaly rate)
NORMAL_CONFIG = GeneratorConfig(
    num_users=10,
    anomaly_probability=0.01,  # 1%
)


# Chaos mode (high anomaly rate, all types)
CHAOS_CONFIG = GeneratorConfig(
    num_users=20,
    anomaly_probability=0.15,  # 15%
)


# Development/Testing (small and reproducible)
DEV_CONFIG = GeneratorConfig(
    seed=42,
    num_users=3,
    anomaly_probability=0.05,
    enabled_anomalies=[SessionAnomalyType.BINGE_SESSION, SessionAnomalyType.TAB_STORM],
)


# Habit change midway through the stream
DRIFT_CONFIG = GeneratorConfig(
    num_users=10,
    anomaly_probability=0.01,
    drift_at=500,
    drift_factor=2.0,
)
