"""Pitch detection with the YIN algorithm.

See de Cheveigné & Kawahara, "YIN, a fundamental frequency estimator for
speech and music" (2002). Steps implemented here: squared difference
function, cumulative mean normalization, absolute threshold with descent to
the local minimum, global-minimum fallback and parabolic interpolation.
"""

from __future__ import annotations
from typing import Optional

import numpy as np

from ..core.config import DetectionConfig
from ..core.interfaces import IPitchDetector
from ..logger import get_logger
from ..note_types import PitchEstimate, SampleWindow
from .common import build_estimate, is_valid_frequency, lag_bounds
from .silence_gate import is_silent

logger = get_logger(__name__)


def difference_function(samples: np.ndarray, max_lag: int) -> np.ndarray:
    """Squared difference ``d(tau) = sum((x[i] - x[i + tau]) ** 2)`` for ``tau < max_lag``."""
    n = len(samples)
    differences = np.empty(max_lag, dtype=np.float64)
    scratch = np.empty(n, dtype=np.float64)
    for tau in range(max_lag):
        delta = scratch[: n - tau]
        np.subtract(samples[: n - tau], samples[tau:], out=delta)
        differences[tau] = np.dot(delta, delta)
    return differences


def cumulative_mean_normalized_difference(differences: np.ndarray) -> np.ndarray:
    """Normalize ``d(tau)`` by its running mean over ``1..tau``; ``cmnd(0) = 1``.

    Lags whose running sum is zero (a constant signal) are set to 1.
    """
    cmnd = np.ones_like(differences)
    if len(differences) < 2:
        return cmnd

    taus = np.arange(1, len(differences))
    running_sum = np.cumsum(differences[1:])
    nonzero = running_sum > 0
    cmnd[1:][nonzero] = differences[1:][nonzero] * taus[nonzero] / running_sum[nonzero]
    return cmnd


def absolute_threshold(cmnd: np.ndarray, min_lag: int, threshold: float) -> int:
    """First lag below ``threshold``, advanced to the bottom of its dip.

    Falls back to the global minimum over ``[min_lag, len(cmnd))`` when no lag
    crosses the threshold, provided that minimum is below 1.

    Returns:
        The chosen lag, or -1 if there is no candidate
    """
    max_lag = len(cmnd)
    below = np.flatnonzero(cmnd[min_lag:] < threshold)
    if len(below):
        tau = min_lag + int(below[0])
        while tau + 1 < max_lag and cmnd[tau + 1] < cmnd[tau]:
            tau += 1
        return tau

    if max_lag <= min_lag:
        return -1
    tau = min_lag + int(np.argmin(cmnd[min_lag:]))
    if cmnd[tau] < 1.0:
        return tau
    return -1


def parabolic_interpolation(cmnd: np.ndarray, tau: int) -> float:
    """Refine an integer lag using the parabola through its neighbours.

    The integer lag is returned unchanged at the array edges and when the
    minimum is flat enough that the vertex is not a finite positive lag.
    """
    if tau <= 0 or tau >= len(cmnd) - 1:
        return float(tau)

    s0, s1, s2 = cmnd[tau - 1], cmnd[tau], cmnd[tau + 1]
    denominator = 2 * (2 * s1 - s2 - s0)
    if denominator == 0:
        return float(tau)

    better_tau = tau + (s2 - s0) / denominator
    if not np.isfinite(better_tau) or better_tau <= 0:
        return float(tau)
    return float(better_tau)


def detect_pitch_yin(
    samples: np.ndarray, sample_rate: int, config: Optional[DetectionConfig] = None
) -> PitchEstimate:
    """Estimate the pitch of a buffer with YIN.

    Args:
        samples: 1D float buffer, roughly in [-1, 1]
        sample_rate: Sample rate in Hz
        config: Detection bounds and thresholds, or None for defaults

    Returns:
        PitchEstimate; frequency is None for silence, when no lag qualifies
        or when the candidate is out of range
    """
    config = config or DetectionConfig()
    samples = np.asarray(samples, dtype=np.float64)

    if is_silent(samples, config.rms_threshold):
        return PitchEstimate.silent()

    min_lag, max_lag = lag_bounds(sample_rate, len(samples), config)
    if max_lag <= min_lag:
        logger.debug(f"Window of {len(samples)} samples too short for lag range")
        return PitchEstimate.silent()

    cmnd = cumulative_mean_normalized_difference(difference_function(samples, max_lag))

    tau = absolute_threshold(cmnd, min_lag, config.yin_threshold)
    if tau == -1:
        logger.debug("No YIN candidate lag")
        return PitchEstimate.silent()

    better_tau = parabolic_interpolation(cmnd, tau)
    frequency = sample_rate / better_tau
    if not is_valid_frequency(frequency, config):
        logger.debug(f"Candidate {frequency:.1f}Hz outside valid range")
        return PitchEstimate.silent()

    clarity = 1 - cmnd[tau]
    logger.debug(f"YIN tau={tau} refined={better_tau:.2f} freq={frequency:.1f}Hz clarity={clarity:.3f}")
    return build_estimate(frequency, clarity)


class YinDetector(IPitchDetector):
    """Pitch detector using YIN; less prone to octave errors than autocorrelation."""

    name = "yin"

    def detect(self, window: SampleWindow) -> PitchEstimate:
        return detect_pitch_yin(window.samples, window.sample_rate, self._config)
