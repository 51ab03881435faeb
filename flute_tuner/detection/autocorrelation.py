"""Pitch detection by normalized autocorrelation."""

from __future__ import annotations
from typing import Optional, Tuple

import numpy as np

from ..core.config import DetectionConfig
from ..core.interfaces import IPitchDetector
from ..logger import get_logger
from ..note_types import PitchEstimate, SampleWindow
from .common import build_estimate, is_valid_frequency, lag_bounds
from .silence_gate import is_silent

logger = get_logger(__name__)


def autocorrelate(samples: np.ndarray, max_lag: int) -> np.ndarray:
    """Autocorrelation for lags ``[0, max_lag)``, normalized by overlap length.

    Args:
        samples: 1D float buffer
        max_lag: Number of lags to compute, at most ``len(samples)``

    Returns:
        Array where element ``tau`` is ``sum(x[i] * x[i + tau]) / (N - tau)``
    """
    n = len(samples)
    correlations = np.empty(max_lag, dtype=np.float64)
    for lag in range(max_lag):
        correlations[lag] = np.dot(samples[: n - lag], samples[lag:]) / (n - lag)
    return correlations


def find_best_peak(correlations: np.ndarray, min_lag: int) -> Tuple[int, float]:
    """Strongest correlation after the first dip below half of ``r(0)``.

    Skips the zero-lag peak and its shoulder. Of equal peaks the earliest
    lag wins.

    Returns:
        ``(best_lag, best_correlation)``, or ``(-1, -1.0)`` if there is no peak
    """
    search = correlations[min_lag:]
    dips = np.flatnonzero(search < correlations[0] * 0.5)
    if len(dips) == 0:
        return -1, -1.0

    first_dip = int(dips[0])
    after_dip = search[first_dip:]
    offset = int(np.argmax(after_dip))
    best_correlation = float(after_dip[offset])
    if best_correlation <= -1.0:
        return -1, -1.0
    return min_lag + first_dip + offset, best_correlation


def detect_pitch_autocorrelation(
    samples: np.ndarray, sample_rate: int, config: Optional[DetectionConfig] = None
) -> PitchEstimate:
    """Estimate the pitch of a buffer with the autocorrelation method.

    Args:
        samples: 1D float buffer, roughly in [-1, 1]
        sample_rate: Sample rate in Hz
        config: Detection bounds and thresholds, or None for defaults

    Returns:
        PitchEstimate; frequency is None for silence, a missing peak, low
        clarity or an out-of-range candidate
    """
    config = config or DetectionConfig()
    samples = np.asarray(samples, dtype=np.float64)

    if is_silent(samples, config.rms_threshold):
        return PitchEstimate.silent()

    min_lag, max_lag = lag_bounds(sample_rate, len(samples), config)
    if max_lag <= min_lag:
        logger.debug(f"Window of {len(samples)} samples too short for lag range")
        return PitchEstimate.silent()

    correlations = autocorrelate(samples, max_lag)
    if correlations[0] <= 0:
        return PitchEstimate.silent()

    best_lag, best_correlation = find_best_peak(correlations, min_lag)
    if best_lag == -1:
        logger.debug("No autocorrelation peak after the first dip")
        return PitchEstimate.silent()

    clarity = best_correlation / correlations[0]
    if clarity < config.autocorrelation_clarity_threshold:
        return build_estimate(None, clarity)

    frequency = sample_rate / best_lag
    if not is_valid_frequency(frequency, config):
        logger.debug(f"Candidate {frequency:.1f}Hz outside valid range")
        return build_estimate(None, clarity)

    logger.debug(f"Autocorrelation lag={best_lag} freq={frequency:.1f}Hz clarity={clarity:.3f}")
    return build_estimate(frequency, clarity)


class AutocorrelationDetector(IPitchDetector):
    """Pitch detector using normalized autocorrelation with a first-dip/best-peak search.

    Robust to low-frequency noise but may lock onto a multiple of the true
    period (an octave below); use YinDetector where octave stability matters.
    """

    name = "autocorrelation"

    def detect(self, window: SampleWindow) -> PitchEstimate:
        return detect_pitch_autocorrelation(window.samples, window.sample_rate, self._config)
