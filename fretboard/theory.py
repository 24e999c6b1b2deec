import math
from typing import Dict, List, Optional

A4_FREQ = 440.0

# Valid guitar range for detections, exclusive on both ends
MIN_FREQ = 50.0
MAX_FREQ = 1500.0

SHARPS = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
FLATS = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

# Semitone offset from A, shared by both spellings
NOTE_VALUES: Dict[str, int] = {
	"A": 0,
	"A#": 1,
	"Bb": 1,
	"B": 2,
	"C": 3,
	"C#": 4,
	"Db": 4,
	"D": 5,
	"D#": 6,
	"Eb": 6,
	"E": 7,
	"F": 8,
	"F#": 9,
	"Gb": 9,
	"G": 10,
	"G#": 11,
	"Ab": 11,
}

CANONICAL_NOTES = ["A", "A#", "B", "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#"]

ENHARMONIC_DISPLAY = {
	"A#": "A#/Bb",
	"C#": "C#/Db",
	"D#": "D#/Eb",
	"F#": "F#/Gb",
	"G#": "G#/Ab",
}

STRINGS = ["Low E", "A", "D", "G", "B", "High E"]

CHORD_QUALITIES = ["Major", "Minor", "7", "m7", "maj7"]
TRIAD_QUALITIES = ["Major", "Minor", "Diminished", "Augmented"]

INVERSIONS = ["root", "first", "second"]
INVERSION_SHORT = {
	"root": "Root Pos.",
	"first": "1st Inv.",
	"second": "2nd Inv.",
}


def note_pool(mode: str) -> List[str]:
	if mode == "sharp":
		return list(SHARPS)
	if mode == "flat":
		return list(FLATS)
	# dict.fromkeys keeps first-seen order
	return list(dict.fromkeys(SHARPS + FLATS))


def pitch_class(note: str) -> str:
	"""Canonical sharp spelling of a note label ("Bb" -> "A#")."""
	return CANONICAL_NOTES[NOTE_VALUES[note]]


def semitone_distance(a: str, b: str) -> int:
	diff = abs(NOTE_VALUES[a] - NOTE_VALUES[b])
	return min(diff, 12 - diff)


def frequency_to_pitch_class(freq: Optional[float]) -> Optional[str]:
	"""Map a frequency in Hz to one of the twelve canonical labels.

	Returns None for a missing estimate or one outside the guitar range.
	"""
	if freq is None or not math.isfinite(freq):
		return None
	if freq <= MIN_FREQ or freq >= MAX_FREQ:
		return None
	n = round(12 * math.log2(freq / A4_FREQ))
	return CANONICAL_NOTES[n % 12]


def display_name(label: str) -> str:
	return ENHARMONIC_DISPLAY.get(label, label)
