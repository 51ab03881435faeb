"""Utility functions for working with musical notes and frequencies."""

import math
from typing import Dict, List

import numpy as np

from .logger import get_logger
from .note_types import NoteInfo

logger = get_logger(__name__)

# Standard reference: A4 = 440Hz = MIDI 69
A4_FREQUENCY = 440.0
A4_MIDI_NUMBER = 69

NOTE_NAMES: List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Mapping between sharp and flat note names
SHARP_TO_FLAT: Dict[str, str] = {
    "C#": "Db",
    "D#": "Eb",
    "F#": "Gb",
    "G#": "Ab",
    "A#": "Bb",
}

FLAT_TO_SHARP: Dict[str, str] = {v: k for k, v in SHARP_TO_FLAT.items()}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def frequency_to_midi(frequency: float) -> float:
    """Fractional MIDI number of a frequency (A4 = 69.0)."""
    return 12 * np.log2(frequency / A4_FREQUENCY) + A4_MIDI_NUMBER


def midi_to_frequency(midi_number: float) -> float:
    """Equal-tempered frequency of a (possibly fractional) MIDI number."""
    return A4_FREQUENCY * (2.0 ** ((midi_number - A4_MIDI_NUMBER) / 12.0))


def frequency_to_note(frequency: float) -> NoteInfo:
    """Map a frequency onto the nearest equal-tempered note.

    Args:
        frequency: Frequency in Hz, must be positive and finite

    Returns:
        NoteInfo with the nearest note, its SPN octave, MIDI number and the
        deviation from that note in cents

    Raises:
        ValueError: If frequency is not a positive finite number
    """
    if not np.isfinite(frequency) or frequency <= 0:
        raise ValueError(f"Frequency must be positive and finite, got {frequency}")

    exact_midi = float(frequency_to_midi(frequency))
    midi_number = _round_half_up(exact_midi)

    note = NOTE_NAMES[midi_number % 12]
    octave = (midi_number // 12) - 1
    cents_off = _round_half_up((exact_midi - midi_number) * 100)

    return NoteInfo(
        note=note,
        octave=octave,
        full_note_name=f"{note}{octave}",
        midi_number=midi_number,
        cents_off=cents_off,
    )


def convert_note_notation(note_name: str, to_flats: bool = False) -> str:
    """Convert a note name between sharp and flat notation.

    Args:
        note_name: The note name to convert (e.g., 'F#2' or 'Gb2')
        to_flats: If True, convert to flats (e.g., 'Gb2'), otherwise to sharps (e.g., 'F#2')

    Returns:
        str: The converted note name, or original if no conversion needed

    Examples:
        >>> convert_note_notation('F#2', to_flats=True)
        'Gb2'
        >>> convert_note_notation('Gb2', to_flats=False)
        'F#2'
    """
    if not note_name:
        return ""

    # Split off the octave, keeping a leading minus sign with the digits
    note_part = "".join(c for c in note_name if not c.isdigit() and c != "-").strip()
    octave_part = note_name[len(note_part):]

    if to_flats and note_part in SHARP_TO_FLAT:
        return f"{SHARP_TO_FLAT[note_part]}{octave_part}"
    elif not to_flats and note_part in FLAT_TO_SHARP:
        return f"{FLAT_TO_SHARP[note_part]}{octave_part}"

    # No conversion needed or possible
    return note_name


def get_note_name(freq: float, use_flats: bool = False) -> str:
    """Convert frequency to note name using Scientific Pitch Notation (SPN).

    Args:
        freq: Frequency in Hz
        use_flats: If True, use flat notes (e.g., 'Bb') instead of sharps (e.g., 'A#')

    Returns:
        Note name with octave in SPN (e.g., 'A4', 'C#4', 'Bb3'), or '---'
        for a non-positive frequency

    Note:
        - Middle C is C4 (261.63 Hz)
        - Octave numbers change between B and C (e.g., B3 -> C4)
    """
    if freq <= 0:
        return "---"

    name = frequency_to_note(freq).full_note_name
    return convert_note_notation(name, to_flats=use_flats)
