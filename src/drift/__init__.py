"""
Concept drift detection over a scalar stream.
"""

from .adwin import DriftDetector, DriftListener
from .models import Bucket, DriftEvent, DriftStatistics

__all__ = ["Bucket", "DriftDetector", "DriftEvent", "DriftListener", "DriftStatistics"]
