"""
Collaborator registries and factories for the fusion ensemble.
"""

from .base import FeatureVector, NoveltyScorer, StatisticalTest
from .isolation_forest import IsolationForestScorer
from .mspc import HotellingT2Monitor
from .spc import StatisticalProcessControl, TrendType

# Registry of available per-point statistical tests
STATISTICAL_TEST_REGISTRY = {
    "spc": StatisticalProcessControl,
}

# Registry of available novelty scorers
NOVELTY_SCORER_REGISTRY = {
    "isolation_forest": IsolationForestScorer,
}


def _create(registry: dict, kind: str, method_name: str, config: dict):
    if method_name not in registry:
        available = ", ".join(registry.keys())
        raise ValueError(f"Unknown {kind} '{method_name}'. Available methods: {available}")
    return registry[method_name](config)


def get_statistical_test(method_name: str, config: dict) -> StatisticalTest:
    """Factory to create a statistical test

    Args:
        method_name: Name of the test (e.g., 'spc')
        config: Configuration dict for the test

    Returns:
        Instance of the statistical test

    Raises:
        ValueError: If method_name is not registered
    """
    return _create(STATISTICAL_TEST_REGISTRY, "statistical test", method_name, config)


def get_novelty_scorer(method_name: str, config: dict) -> NoveltyScorer:
    """Factory to create a novelty scorer

    Args:
        method_name: Name of the scorer (e.g., 'isolation_forest')
        config: Configuration dict for the scorer

    Returns:
        Instance of the (untrained) novelty scorer

    Raises:
        ValueError: If method_name is not registered
    """
    return _create(NOVELTY_SCORER_REGISTRY, "novelty scorer", method_name, config)


def list_methods() -> dict[str, list[str]]:
    """List all available collaborator implementations"""
    return {
        "statistical_tests": list(STATISTICAL_TEST_REGISTRY.keys()),
        "novelty_scorers": list(NOVELTY_SCORER_REGISTRY.keys()),
    }


__all__ = [
    "FeatureVector",
    "HotellingT2Monitor",
    "IsolationForestScorer",
    "NoveltyScorer",
    "StatisticalProcessControl",
    "StatisticalTest",
    "TrendType",
    "get_novelty_scorer",
    "get_statistical_test",
    "list_methods",
]
