"""
Information-theoretic helpers: Shannon entropy and the Hoeffding bound.
"""

import math
from collections.abc import Sequence


def entropy(class_counts: Sequence[float]) -> float:
    """Shannon entropy (in bits) of a class distribution

    Args:
        class_counts: Non-negative count per class

    Returns:
        Entropy >= 0. Empty input or a zero total gives 0.
    """
    if len(class_counts) == 0:
        return 0.0

    total = sum(class_counts)
    if total <= 0:
        return 0.0

    result = 0.0
    for count in class_counts:
        if count > 0:
            probability = count / total
            result -= probability * math.log2(probability)

    return result


def hoeffding_bound(delta: float, n: float, value_range: float = 1.0) -> float:
    """Hoeffding bound for a mean estimated from n observations

    sqrt(R^2 * ln(1/delta) / (2n)), where R is the range of the variable.

    Args:
        delta: Confidence parameter in (0, 1)
        n: Number of observations
        value_range: Range of the random variable (1 for probabilities)

    Returns:
        The bound, or +inf when n <= 0 or delta is outside (0, 1)
    """
    if n <= 0 or delta <= 0 or delta >= 1:
        return math.inf

    return math.sqrt((value_range * value_range * math.log(1 / delta)) / (2 * n))
