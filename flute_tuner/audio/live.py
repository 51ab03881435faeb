"""Live microphone input via sounddevice."""

from __future__ import annotations
import threading
from typing import Optional, Union

import numpy as np
import sounddevice as sd

from ..core.interfaces import ISampleSource
from ..logger import get_logger
from ..note_types import SampleWindow
from .sources import to_mono

logger = get_logger(__name__)


class LiveSampleSource(ISampleSource):
    """Provides the most recent window of live input from a sounddevice stream.

    Blocks arrive on the audio callback thread and are appended to a ring
    buffer; ``read_window`` returns a copy of the latest ``window_size``
    samples, so a slow consumer sees the newest audio rather than a backlog.
    """

    def __init__(
        self,
        device_id: Optional[Union[int, str]] = None,
        sample_rate: int = 48000,
        window_size: int = 16384,
        block_size: int = 1024,
        channels: int = 1,
    ):
        self._device_id = device_id
        self._sample_rate = sample_rate
        self._window_size = window_size
        self._block_size = block_size
        self._channels = channels
        self._buffer = np.zeros(window_size, dtype=np.float64)
        self._lock = threading.Lock()
        self._stream: Optional[sd.InputStream] = None

    def start(self) -> None:
        if self._stream is not None:
            return
        self._stream = sd.InputStream(
            device=self._device_id,
            channels=self._channels,
            samplerate=self._sample_rate,
            blocksize=self._block_size,
            callback=self._audio_callback,
            dtype="float32",  # Standard for audio processing
        )
        self._stream.start()
        logger.info(
            f"Live input started: device={self._device_id}, rate={self._sample_rate}Hz, "
            f"window={self._window_size}"
        )

    def stop(self) -> None:
        if self._stream:
            self._stream.stop()
            self._stream.close()
            self._stream = None
            logger.info("Live input stopped")

    def _audio_callback(self, indata: np.ndarray, _frames: int, _time_info, status) -> None:
        if status:
            logger.warning(f"Audio input status: {status}")
        self.push(to_mono(indata))

    def push(self, block: np.ndarray) -> None:
        """Append a mono block to the ring buffer."""
        block = np.asarray(block, dtype=np.float64)
        n = len(block)
        if n == 0:
            return
        with self._lock:
            if n >= self._window_size:
                self._buffer[:] = block[-self._window_size:]
            else:
                self._buffer[:-n] = self._buffer[n:]
                self._buffer[-n:] = block

    def read_window(self) -> Optional[SampleWindow]:
        if not self.is_running:
            return None
        with self._lock:
            snapshot = self._buffer.copy()
        return SampleWindow(snapshot, self._sample_rate)

    @property
    def is_running(self) -> bool:
        return self._stream is not None

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def window_size(self) -> int:
        return self._window_size


def list_input_devices():
    """Input-capable devices as ``(index, name, default_samplerate)`` tuples."""
    devices = []
    for index, device in enumerate(sd.query_devices()):
        if device["max_input_channels"] > 0:
            devices.append((index, device["name"], device["default_samplerate"]))
    return devices
