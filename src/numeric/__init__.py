"""
Numeric toolkit used by the drift and anomaly detectors.
"""

from .information import entropy, hoeffding_bound
from .linalg import cholesky_factor, cholesky_solve
from .ring_buffer import RingBuffer

__all__ = [
    "RingBuffer",
    "cholesky_factor",
    "cholesky_solve",
    "entropy",
    "hoeffding_bound",
]
