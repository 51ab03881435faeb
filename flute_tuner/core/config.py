"""Configuration management for Flute Tuner components."""

from dataclasses import dataclass, asdict, fields, replace
from typing import Dict, Any, Optional
import json
import os
from pathlib import Path

from ..logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DetectionConfig:
    """Tunable constants of the pitch-estimation engine."""

    min_frequency: float = 80.0  # Hz, lowest pitch reported
    max_frequency: float = 2500.0  # Hz, highest pitch reported
    rms_threshold: float = 0.01  # Silence gate
    autocorrelation_clarity_threshold: float = 0.5
    yin_threshold: float = 0.15

    def __post_init__(self) -> None:
        self.validate()

    def validate(self, sample_rate: Optional[int] = None) -> None:
        """Check the configuration invariants.

        Args:
            sample_rate: If given, also require max_frequency below Nyquist

        Raises:
            ValueError: If any bound or threshold is out of range
        """
        if not 0 < self.min_frequency < self.max_frequency:
            raise ValueError(
                f"Frequency bounds must satisfy 0 < min_frequency < max_frequency, "
                f"got {self.min_frequency} and {self.max_frequency}"
            )
        for name in ("rms_threshold", "autocorrelation_clarity_threshold", "yin_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")
        if sample_rate is not None:
            if sample_rate <= 0:
                raise ValueError("Sample rate must be positive")
            nyquist = sample_rate / 2
            if self.max_frequency >= nyquist:
                raise ValueError(
                    f"max_frequency {self.max_frequency} Hz must be below the "
                    f"Nyquist frequency {nyquist} Hz for sample rate {sample_rate}"
                )

    def with_overrides(self, **overrides) -> "DetectionConfig":
        """Return a validated copy with some fields replaced."""
        return replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "DetectionConfig":
        """Build a config from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            logger.warning(f"Ignoring unknown detection settings: {sorted(unknown)}")
        return cls(**{k: v for k, v in values.items() if k in known})


# Input stream settings used when the CLI opens a microphone
DEFAULT_AUDIO_INPUT: Dict[str, Any] = {
    "sample_rate": 48000,
    "window_size": 16384,  # ~341ms at 48kHz
    "block_size": 1024,
    "channels": 1,
}


class ConfigManager:
    """Persists the detection and audio input settings as JSON files.

    Each section lives in ``<config_dir>/<section>.json``. Missing files are
    written with defaults on first use, and keys missing from an existing
    file are filled in from the defaults.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory to store configuration files, or None to use default
        """
        if config_dir is None:
            # Use ~/.config/flute_tuner by default
            config_dir = os.path.join(os.path.expanduser("~"), ".config", "flute_tuner")

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.default_configs: Dict[str, Dict[str, Any]] = {
            "detection": DetectionConfig().to_dict(),
            "audio_input": dict(DEFAULT_AUDIO_INPUT),
        }
        self.configs = {
            section: self.load_config(section, defaults)
            for section, defaults in self.default_configs.items()
        }

    def _section_file(self, name: str) -> Path:
        return self.config_dir / f"{name}.json"

    def load_config(self, name: str, default_config: Dict[str, Any]) -> Dict[str, Any]:
        """Read one section, falling back to its defaults if the file is unusable.

        Args:
            name: Section name
            default_config: Values used for missing keys, or for a missing file

        Returns:
            Section dictionary
        """
        section_file = self._section_file(name)
        if not section_file.exists():
            self.save_config(name, default_config)
            return dict(default_config)

        try:
            stored = json.loads(section_file.read_text())
        except (OSError, ValueError) as e:
            logger.error(f"Error loading configuration from {section_file}: {e}")
            return dict(default_config)
        if not isinstance(stored, dict):
            logger.error(f"Expected a JSON object in {section_file}, using defaults")
            return dict(default_config)

        logger.info(f"Loaded configuration from {section_file}")
        return {**default_config, **stored}

    def save_config(self, name: str, config: Dict[str, Any]) -> bool:
        """Write one section to disk.

        Returns:
            True if saved successfully, False otherwise
        """
        section_file = self._section_file(name)
        try:
            section_file.write_text(json.dumps(config, indent=2))
        except OSError as e:
            logger.error(f"Error saving configuration to {section_file}: {e}")
            return False
        logger.info(f"Saved configuration to {section_file}")
        return True

    def get_config(self, name: str) -> Dict[str, Any]:
        """Get a copy of a section, or an empty dict for an unknown name."""
        return dict(self.configs.get(name, {}))

    def get_detection_config(self) -> DetectionConfig:
        """Get the engine configuration as a validated DetectionConfig.

        Raises:
            ValueError: If the stored values violate the configuration invariants
        """
        return DetectionConfig.from_dict(self.configs["detection"])

    def update_config(self, name: str, updates: Dict[str, Any]) -> bool:
        """Merge updates into a section and save it.

        Returns:
            True if updated and saved successfully, False for an unknown
            section or a failed write

        Raises:
            ValueError: If a detection update would make the configuration invalid
        """
        if name not in self.configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        merged = {**self.configs[name], **updates}
        if name == "detection":
            DetectionConfig.from_dict(merged)

        self.configs[name] = merged
        return self.save_config(name, merged)

    def reset_config(self, name: str) -> bool:
        """Restore a section's defaults and save it.

        Returns:
            True if reset and saved successfully, False otherwise
        """
        if name not in self.default_configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        self.configs[name] = dict(self.default_configs[name])
        return self.save_config(name, self.configs[name])
