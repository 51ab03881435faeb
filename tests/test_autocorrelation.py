import unittest
from unittest import mock

import numpy as np
import pytest

from flute_tuner.core.config import DetectionConfig
from flute_tuner.detection.autocorrelation import (
    AutocorrelationDetector,
    autocorrelate,
    detect_pitch_autocorrelation,
    find_best_peak,
)
from flute_tuner.note_types import PitchEstimate, SampleWindow

SAMPLE_RATE = 44100


def periodic_sine(period: int, n_samples: int = 2048, amplitude: float = 0.5) -> np.ndarray:
    """Sine with an integer period in samples.

    The phase is chosen so the window's partial last cycle carries slightly
    less energy than average, which makes the first period the strongest of
    the equal-height autocorrelation peaks.
    """
    i = np.arange(n_samples)
    return amplitude * np.sin(2 * np.pi * i / period - 0.47 * np.pi)


class TestAutocorrelate(unittest.TestCase):
    def test_normalized_by_overlap(self):
        samples = np.array([1.0, 2.0, 3.0, 4.0])
        correlations = autocorrelate(samples, 3)
        np.testing.assert_allclose(correlations, [30 / 4, 20 / 3, 11 / 2])

    def test_length_is_max_lag(self):
        self.assertEqual(len(autocorrelate(np.ones(16), 10)), 10)


class TestFindBestPeak(unittest.TestCase):
    def test_peak_after_first_dip(self):
        correlations = np.array([1.0, 0.9, 0.4, 0.2, 0.6, 0.8, 0.7])
        self.assertEqual(find_best_peak(correlations, 1), (5, 0.8))

    def test_peak_before_dip_is_ignored(self):
        correlations = np.array([1.0, 0.95, 0.3, 0.45, 0.1])
        self.assertEqual(find_best_peak(correlations, 1), (3, 0.45))

    def test_no_dip_means_no_peak(self):
        correlations = np.array([1.0, 0.9, 0.8, 0.7])
        self.assertEqual(find_best_peak(correlations, 1), (-1, -1.0))

    def test_earliest_of_equal_peaks_wins(self):
        correlations = np.array([1.0, 0.2, 0.9, 0.2, 0.9])
        self.assertEqual(find_best_peak(correlations, 1), (2, 0.9))


class TestDetectPitchAutocorrelation(unittest.TestCase):
    def test_integer_period_sine(self):
        estimate = detect_pitch_autocorrelation(periodic_sine(100), SAMPLE_RATE)
        self.assertEqual(estimate.frequency, 441.0)
        self.assertGreater(estimate.clarity, 0.99)
        self.assertLessEqual(estimate.clarity, 1.0)
        self.assertEqual(estimate.note.full_note_name, "A4")
        self.assertEqual(estimate.note.cents_off, 4)

    def test_silence_skips_lag_search(self):
        with mock.patch(
            "flute_tuner.detection.autocorrelation.autocorrelate"
        ) as autocorrelate_mock:
            estimate = detect_pitch_autocorrelation(np.zeros(2048), SAMPLE_RATE)
        autocorrelate_mock.assert_not_called()
        self.assertEqual(estimate, PitchEstimate(frequency=None, clarity=0.0))
        self.assertIsNone(estimate.note)

    def test_quiet_signal_is_rejected(self):
        estimate = detect_pitch_autocorrelation(periodic_sine(100, amplitude=0.005), SAMPLE_RATE)
        self.assertIsNone(estimate.frequency)
        self.assertEqual(estimate.clarity, 0.0)

    def test_quiet_signal_passes_lower_gate(self):
        config = DetectionConfig(rms_threshold=0.001)
        estimate = detect_pitch_autocorrelation(
            periodic_sine(100, amplitude=0.005), SAMPLE_RATE, config
        )
        self.assertEqual(estimate.frequency, 441.0)

    def test_white_noise_is_rejected(self):
        rng = np.random.default_rng(1234)
        config = DetectionConfig()
        rejected = 0
        for _ in range(20):
            estimate = detect_pitch_autocorrelation(
                rng.uniform(-0.5, 0.5, 2048), SAMPLE_RATE, config
            )
            if estimate.frequency is None or estimate.clarity < config.autocorrelation_clarity_threshold:
                rejected += 1
        self.assertGreater(rejected, 15)

    def test_low_clarity_keeps_score(self):
        rng = np.random.default_rng(7)
        estimate = detect_pitch_autocorrelation(rng.normal(0, 0.3, 2048), SAMPLE_RATE)
        self.assertIsNone(estimate.frequency)
        self.assertIsNone(estimate.note)
        self.assertGreaterEqual(estimate.clarity, 0.0)
        self.assertLess(estimate.clarity, 0.5)

    def test_strict_clarity_threshold_rejects(self):
        config = DetectionConfig(autocorrelation_clarity_threshold=1.0)
        estimate = detect_pitch_autocorrelation(periodic_sine(100), SAMPLE_RATE, config)
        self.assertIsNone(estimate.frequency)
        self.assertGreater(estimate.clarity, 0.99)

    def test_search_starting_on_the_period_settles_on_a_multiple(self):
        # A 440 Hz ceiling starts the scan at lag 100, which is the peak itself,
        # so the first dip comes after it and lag 200 wins
        config = DetectionConfig(max_frequency=440.0)
        estimate = detect_pitch_autocorrelation(periodic_sine(100), SAMPLE_RATE, config)
        self.assertEqual(estimate.frequency, 220.5)
        self.assertEqual(estimate.note.full_note_name, "A3")

    def test_window_shorter_than_lag_range(self):
        estimate = detect_pitch_autocorrelation(periodic_sine(100, n_samples=16), SAMPLE_RATE)
        self.assertIsNone(estimate.frequency)

    def test_deterministic(self):
        samples = periodic_sine(100)
        first = detect_pitch_autocorrelation(samples, SAMPLE_RATE)
        second = detect_pitch_autocorrelation(samples, SAMPLE_RATE)
        self.assertEqual(first, second)


def peak_at_lag_100(correlations, min_lag):
    # A low min_frequency can cut the array short of lag 100; its last lag is still near the peak
    return 100, float(correlations[min(100, len(correlations) - 1)])


class TestRangeBounds(unittest.TestCase):
    """The candidate 44100 / 100 = 441.0 Hz checked against inclusive bounds."""

    def detect(self, **overrides):
        with mock.patch(
            "flute_tuner.detection.autocorrelation.find_best_peak", side_effect=peak_at_lag_100
        ):
            return detect_pitch_autocorrelation(
                periodic_sine(100), SAMPLE_RATE, DetectionConfig(**overrides)
            )

    def test_upper_bound_is_inclusive(self):
        self.assertEqual(self.detect(max_frequency=441.0).frequency, 441.0)

    def test_above_upper_bound_keeps_clarity(self):
        estimate = self.detect(max_frequency=440.0)
        self.assertIsNone(estimate.frequency)
        self.assertIsNone(estimate.note)
        self.assertGreater(estimate.clarity, 0.9)

    def test_lower_bound_is_inclusive(self):
        self.assertEqual(self.detect(min_frequency=441.0).frequency, 441.0)

    def test_below_lower_bound_keeps_clarity(self):
        estimate = self.detect(min_frequency=442.0)
        self.assertIsNone(estimate.frequency)
        self.assertGreater(estimate.clarity, 0.9)


SWEEP_FREQUENCIES = [82.0, 110.0, 196.0, 261.63, 440.0, 523.25, 987.77, 1500.0, 2093.0, 2400.0]


@pytest.mark.parametrize("phase", [0.0, 1.0, 2.0])
@pytest.mark.parametrize("frequency", SWEEP_FREQUENCIES)
def test_sine_locks_onto_a_period_multiple(frequency, phase):
    # Peaks at every multiple of the period are nearly equal, so the winner may
    # be a sub-harmonic f/k; its lag must still sit on k periods
    t = np.arange(4096) / SAMPLE_RATE
    samples = 0.5 * np.sin(2 * np.pi * frequency * t + phase)
    config = DetectionConfig()
    estimate = detect_pitch_autocorrelation(samples, SAMPLE_RATE, config)

    assert estimate.frequency is not None
    assert estimate.clarity > config.autocorrelation_clarity_threshold

    period = SAMPLE_RATE / frequency
    lag = SAMPLE_RATE / estimate.frequency
    k = max(1, round(lag / period))
    # Within 1% of k periods, or one sample where integer lags are coarser than that
    assert abs(lag - k * period) <= max(1.0, 0.01 * k * period)


class TestAutocorrelationDetector(unittest.TestCase):
    def test_detect_window(self):
        detector = AutocorrelationDetector()
        self.assertEqual(detector.name, "autocorrelation")
        estimate = detector.detect(SampleWindow(periodic_sine(100), SAMPLE_RATE))
        self.assertEqual(estimate.frequency, 441.0)

    def test_uses_its_config(self):
        detector = AutocorrelationDetector(DetectionConfig(rms_threshold=0.9))
        estimate = detector.detect(SampleWindow(periodic_sine(100), SAMPLE_RATE))
        self.assertEqual(estimate, PitchEstimate.silent())


if __name__ == "__main__":
    unittest.main()
