"""Defines the core interfaces for the Flute Tuner application."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional

from ..note_types import PitchEstimate, SampleWindow
from .config import DetectionConfig


class ISampleSource(ABC):
    """Interface for providers of fixed-length sample windows."""

    @abstractmethod
    def start(self) -> None:
        """Start producing samples."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop producing samples and release any device."""
        pass

    @abstractmethod
    def read_window(self) -> Optional[SampleWindow]:
        """Return the current window, or None when the source is exhausted."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """The sample rate of the produced windows."""
        pass

    @property
    @abstractmethod
    def window_size(self) -> int:
        """The number of samples in each window."""
        pass

    def __enter__(self) -> "ISampleSource":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


class IPitchDetector(ABC):
    """Interface for pitch estimation algorithms."""

    name: str = ""

    def __init__(self, config: Optional[DetectionConfig] = None) -> None:
        self._config = config or DetectionConfig()

    @property
    def config(self) -> DetectionConfig:
        return self._config

    @abstractmethod
    def detect(self, window: SampleWindow) -> PitchEstimate:
        """Estimate the pitch of one window. Never raises for finite input."""
        pass


class ITickSignal(ABC):
    """Interface for the "next tick" signal that paces a detection loop."""

    @abstractmethod
    def wait(self) -> bool:
        """Block until the next tick is due.

        Returns:
            True if a tick should run, False once the signal is closed
        """
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Close the signal and wake any pending wait."""
        pass
