"""Helpers shared by the pitch detectors."""

import math
from typing import Optional, Tuple

from ..core.config import DetectionConfig
from ..note_types import PitchEstimate
from ..note_utils import frequency_to_note


def lag_bounds(sample_rate: int, n_samples: int, config: DetectionConfig) -> Tuple[int, int]:
    """Lag search range ``[min_lag, max_lag)`` in samples.

    max_lag is capped at the window length since longer lags have no
    overlapping samples.
    """
    min_lag = int(sample_rate // config.max_frequency)
    max_lag = int(sample_rate // config.min_frequency)
    return min_lag, min(max_lag, n_samples)


def is_valid_frequency(frequency: float, config: DetectionConfig) -> bool:
    """Inclusive range check against the configured frequency bounds."""
    return config.min_frequency <= frequency <= config.max_frequency


def clamp_clarity(clarity: float) -> float:
    return max(0.0, min(1.0, float(clarity)))


def build_estimate(frequency: Optional[float], clarity: float) -> PitchEstimate:
    """Round an accepted frequency and attach its note."""
    clarity = clamp_clarity(clarity)
    if frequency is None:
        return PitchEstimate(frequency=None, clarity=clarity)
    frequency = math.floor(frequency * 10 + 0.5) / 10
    return PitchEstimate(
        frequency=frequency, clarity=clarity, note=frequency_to_note(frequency)
    )
