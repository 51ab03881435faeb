"""Pitch detection algorithms."""

from .autocorrelation import AutocorrelationDetector, detect_pitch_autocorrelation
from .silence_gate import is_silent, rms
from .yin import YinDetector, detect_pitch_yin

__all__ = [
    "AutocorrelationDetector",
    "YinDetector",
    "detect_pitch_autocorrelation",
    "detect_pitch_yin",
    "is_silent",
    "rms",
]
