"""Signal energy gate applied before any frequency search."""

import numpy as np

DEFAULT_RMS_THRESHOLD = 0.01


def rms(samples: np.ndarray) -> float:
    """Root-mean-square amplitude of a buffer; 0.0 for an empty buffer."""
    if len(samples) == 0:
        return 0.0
    samples = np.asarray(samples, dtype=np.float64)
    return float(np.sqrt(np.mean(samples * samples)))


def is_silent(samples: np.ndarray, threshold: float = DEFAULT_RMS_THRESHOLD) -> bool:
    """True when the buffer is too quiet to carry a usable pitch."""
    return rms(samples) < threshold
