"""Sample sources that feed fixed-length windows to a detection loop."""

from __future__ import annotations
from typing import Optional

import numpy as np
import soundfile as sf

from ..core.interfaces import ISampleSource
from ..logger import get_logger
from ..note_types import SampleWindow

logger = get_logger(__name__)


def to_mono(data: np.ndarray) -> np.ndarray:
    """Average the channels of a ``(frames, channels)`` block."""
    data = np.asarray(data, dtype=np.float64)
    if data.ndim == 1:
        return data
    return data.mean(axis=1)


class ArraySampleSource(ISampleSource):
    """Provides windows sliding over an in-memory buffer."""

    def __init__(
        self,
        samples: np.ndarray,
        sample_rate: int,
        window_size: int,
        hop_size: Optional[int] = None,
    ):
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        self._samples = to_mono(samples)
        self._sample_rate = int(sample_rate)
        self._window_size = int(window_size)
        self._hop_size = int(hop_size or window_size)
        if self._hop_size <= 0:
            raise ValueError("hop_size must be positive")
        self._position = 0

    def start(self) -> None:
        self._position = 0

    def stop(self) -> None:
        pass

    def read_window(self) -> Optional[SampleWindow]:
        end = self._position + self._window_size
        if end > len(self._samples):
            return None
        window = SampleWindow(self._samples[self._position:end], self._sample_rate)
        self._position += self._hop_size
        return window

    @property
    def position(self) -> int:
        """Index of the first sample of the next window."""
        return self._position

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def window_size(self) -> int:
        return self._window_size


class WavFileSampleSource(ArraySampleSource):
    """Provides windows read from an audio file (WAV, FLAC, ...)."""

    def __init__(
        self,
        file_path: str,
        window_size: int,
        hop_size: Optional[int] = None,
        gain: float = 1.0,
    ):
        self._file_path = file_path
        data, sample_rate = sf.read(file_path, dtype="float32", always_2d=True)
        mono = to_mono(data)

        # Apply gain if specified
        if gain != 1.0:
            mono = mono * gain

        logger.info(
            f"Loaded {file_path}: {len(mono)} frames at {sample_rate}Hz, "
            f"{data.shape[1]} channel(s)"
        )
        super().__init__(mono, sample_rate, window_size, hop_size)
