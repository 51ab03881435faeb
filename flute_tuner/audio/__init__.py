"""Audio sample sources.

The live microphone source lives in ``flute_tuner.audio.live`` and is
imported on demand, since it needs the PortAudio system library.
"""

from .sources import ArraySampleSource, WavFileSampleSource

__all__ = ["ArraySampleSource", "WavFileSampleSource"]
