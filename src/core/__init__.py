"""
Core utilities shared across the monitor.
"""

from .logger import LOG_LEVELS, level_from_env, resolve_level, setup_logging

__all__ = ["LOG_LEVELS", "level_from_env", "resolve_level", "setup_logging"]
