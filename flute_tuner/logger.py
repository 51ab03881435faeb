"""Centralized lazy-loading logger lookup for Flute Tuner."""
import logging
from typing import Dict

# Module-level cache for loggers
_logger_cache: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """
    Get a lazily initialized logger with the given name.

    Levels and handlers are applied by ``logging_config.setup_logging``;
    until it runs, records propagate to the root logger as usual.

    Args:
        name: The full module name (e.g., 'flute_tuner.detection.yin')

    Returns:
        A logger instance
    """
    if name not in _logger_cache:
        logger = logging.getLogger(name)
        _logger_cache[name] = logger
    return _logger_cache[name]
