"""Flute Tuner: real-time pitch estimation for a monophonic instrument."""

from .core.config import DetectionConfig
from .detection import AutocorrelationDetector, YinDetector
from .detection_loop import DetectionLoop, LoopState
from .note_types import NoteInfo, PitchEstimate, SampleWindow
from .note_utils import frequency_to_note

__version__ = "0.1.0"

__all__ = [
    "AutocorrelationDetector",
    "DetectionConfig",
    "DetectionLoop",
    "LoopState",
    "NoteInfo",
    "PitchEstimate",
    "SampleWindow",
    "YinDetector",
    "frequency_to_note",
]
