"""
Behavioral Session Generator
Simulates per-user browsing session features with configurable anomalies and baseline drift.
"""

from .config import CHAOS_CONFIG, DEV_CONFIG, DRIFT_CONFIG, NORMAL_CONFIG
from .generator import SessionGenerator
from .models import FEATURE_NAMES, GeneratorConfig, SessionAnomalyType, SessionSample
from .session_state import SessionState

__all__ = [
    "FEATURE_NAMES",
    "GeneratorConfig",
    "SessionAnomalyType",
    "SessionGenerator",
    "SessionSample",
    "SessionState",
    "NORMAL_CONFIG",
    "CHAOS_CONFIG",
    "DEV_CONFIG",
    "DRIFT_CONFIG",
]

__version__ = "1.0.0"
