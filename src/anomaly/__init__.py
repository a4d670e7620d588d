"""
Session Anomaly Detection

Fuses a per-point statistical process control test on a weighted composite of
the session features with an Isolation Forest novelty score over the full
vector. The novelty model is retrained in the background on a bounded buffer
of recent sessions, and the composite stream is watched for concept drift.

Usage:
    # Replay a CSV export or a simulated stream
    python -m src.anomaly.detect --input sessions.csv
    python -m src.anomaly.detect --simulate 1000 --preset drift
"""

from .ensemble import FusionEnsemble
from .models import EnsembleConfig, PredictionResult
from .trainer import ModelRetrainer

__all__ = ["FusionEnsemble", "ModelRetrainer", "EnsembleConfig", "PredictionResult"]
