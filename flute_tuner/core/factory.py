"""Factory for creating Flute Tuner components."""

from typing import Callable, Dict, List, Optional, Type

from ..logger import get_logger
from ..audio.sources import ArraySampleSource, WavFileSampleSource
from ..detection.autocorrelation import AutocorrelationDetector
from ..detection.yin import YinDetector
from ..detection_loop import DetectionLoop
from ..note_types import PitchEstimate
from .config import ConfigManager
from .interfaces import IPitchDetector, ISampleSource, ITickSignal

logger = get_logger(__name__)

ALL_DETECTORS = "both"


def _live_source_class() -> Type[ISampleSource]:
    # Imported on demand: sounddevice needs the PortAudio system library
    from ..audio.live import LiveSampleSource

    return LiveSampleSource


class ComponentFactory:
    """Factory for creating Flute Tuner components."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

        # Register default component implementations
        self.detector_classes: Dict[str, Type[IPitchDetector]] = {
            AutocorrelationDetector.name: AutocorrelationDetector,
            YinDetector.name: YinDetector,
        }

        self.sample_source_classes: Dict[str, Callable[[], Type[ISampleSource]]] = {
            "array": lambda: ArraySampleSource,
            "wav": lambda: WavFileSampleSource,
            "live": _live_source_class,
        }

    def create_detector(self, implementation: str = "yin", **overrides) -> IPitchDetector:
        """Create a pitch detector.

        Args:
            implementation: Name of the algorithm ('autocorrelation' or 'yin')
            **overrides: DetectionConfig fields overriding the stored configuration

        Returns:
            Pitch detector instance

        Raises:
            ValueError: If the implementation is not registered or the
                configuration is invalid
        """
        if implementation not in self.detector_classes:
            raise ValueError(f"Unknown pitch detector implementation: {implementation}")

        config = self.config_manager.get_detection_config().with_overrides(**overrides)

        cls = self.detector_classes[implementation]
        instance = cls(config)

        logger.info(f"Created pitch detector: {implementation}")
        return instance

    def create_detectors(self, algorithm: str = "yin", **overrides) -> List[IPitchDetector]:
        """Create one detector, or every registered one for ``algorithm='both'``."""
        if algorithm == ALL_DETECTORS:
            return [self.create_detector(name, **overrides) for name in self.detector_classes]
        return [self.create_detector(algorithm, **overrides)]

    def create_sample_source(self, implementation: str = "live", **kwargs) -> ISampleSource:
        """Create a sample source.

        Args:
            implementation: Name of the implementation ('array', 'wav' or 'live')
            **kwargs: Parameters passed to the constructor; for 'live' they
                override the stored audio_input configuration

        Returns:
            Sample source instance

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.sample_source_classes:
            raise ValueError(f"Unknown sample source implementation: {implementation}")

        if implementation == "live":
            config = self.config_manager.get_config("audio_input")
            config.update({k: v for k, v in kwargs.items() if v is not None})
            kwargs = config

        cls = self.sample_source_classes[implementation]()
        instance = cls(**kwargs)

        logger.info(f"Created sample source: {implementation}")
        return instance

    def create_detection_loop(
        self,
        source: ISampleSource,
        algorithm: str = "yin",
        tick_signal: Optional[ITickSignal] = None,
        on_estimate: Optional[Callable[[str, PitchEstimate], None]] = None,
        **overrides,
    ) -> DetectionLoop:
        """Create a detection loop for a source.

        Raises:
            ValueError: If the configuration does not suit the source's sample rate
        """
        detectors = self.create_detectors(algorithm, **overrides)
        for detector in detectors:
            detector.config.validate(sample_rate=source.sample_rate)

        loop = DetectionLoop(source, detectors, tick_signal=tick_signal, on_estimate=on_estimate)
        logger.info(
            f"Created detection loop: {[d.name for d in detectors]} at {source.sample_rate}Hz"
        )
        return loop
