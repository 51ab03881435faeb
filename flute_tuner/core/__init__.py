"""Core components for the Flute Tuner application."""

# Import interfaces for easier access
from .config import DetectionConfig, ConfigManager
from .interfaces import (
    IPitchDetector,
    ISampleSource,
    ITickSignal,
)

__all__ = [
    "DetectionConfig",
    "ConfigManager",
    "IPitchDetector",
    "ISampleSource",
    "ITickSignal",
]
