"""Type definitions for the Flute Tuner project."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class SampleWindow:
    """A fixed-length snapshot of time-domain samples.

    The samples are stored as a read-only 1D float64 array so a window can be
    handed to several detectors in the same tick without copying.
    """

    samples: np.ndarray = field(repr=False)
    sample_rate: int

    def __post_init__(self) -> None:
        samples = np.array(self.samples, dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError(
                f"SampleWindow expects mono samples, got array of shape {samples.shape}"
            )
        if int(self.sample_rate) <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    def __len__(self) -> int:
        return len(self.samples)


@dataclass(frozen=True)
class NoteInfo:
    """A frequency mapped onto the 12-tone equal-tempered scale."""

    note: str  # Pitch class with sharps (e.g., 'A', 'C#')
    octave: int  # SPN octave, C4 is middle C
    full_note_name: str  # e.g. 'A4'
    midi_number: int  # A4 = 69
    cents_off: int  # Deviation from the nearest semitone, -50..50


@dataclass(frozen=True)
class PitchEstimate:
    """Result of one detector over one window."""

    frequency: Optional[float]  # Hz, None means no pitch detected
    clarity: float  # Confidence in [0, 1]
    note: Optional[NoteInfo] = None

    @classmethod
    def silent(cls) -> "PitchEstimate":
        """The result reported for silence or when no candidate lag exists."""
        return cls(frequency=None, clarity=0.0)

    @property
    def has_pitch(self) -> bool:
        return self.frequency is not None
