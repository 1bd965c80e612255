from typing import Dict, List, Tuple

NOTES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
NATURALS = ["C", "D", "E", "F", "G", "A", "B"]

INTERVALS: Dict[str, int] = {
	"Unison": 0,
	"Minor 2nd": 1,
	"Major 2nd": 2,
	"Minor 3rd": 3,
	"Major 3rd": 4,
	"Perfect 4th": 5,
	"Tritone": 6,
	"Perfect 5th": 7,
	"Minor 6th": 8,
	"Major 6th": 9,
	"Minor 7th": 10,
	"Major 7th": 11,
	"Octave": 12,
}

CHORDS: Dict[str, List[int]] = {
	"Major": [0, 4, 7],
	"Minor": [0, 3, 7],
	"Diminished": [0, 3, 6],
	"Augmented": [0, 4, 8],
	"Sus2": [0, 2, 7],
	"Sus4": [0, 5, 7],
	"Major 7th": [0, 4, 7, 11],
	"Minor 7th": [0, 3, 7, 10],
	"Dominant 7th": [0, 4, 7, 10],
	"Diminished 7th": [0, 3, 6, 9],
	"Half-Diminished 7th": [0, 3, 6, 10],
	"Major 6th": [0, 4, 7, 9],
	"Minor 6th": [0, 3, 7, 9],
}

SCALES: Dict[str, List[int]] = {
	"Major": [0, 2, 4, 5, 7, 9, 11],
	"Natural Minor": [0, 2, 3, 5, 7, 8, 10],
	"Harmonic Minor": [0, 2, 3, 5, 7, 8, 11],
	"Melodic Minor": [0, 2, 3, 5, 7, 9, 11],
	"Dorian": [0, 2, 3, 5, 7, 9, 10],
	"Phrygian": [0, 1, 3, 5, 7, 8, 10],
	"Lydian": [0, 2, 4, 6, 7, 9, 11],
	"Mixolydian": [0, 2, 4, 5, 7, 9, 10],
	"Pentatonic Major": [0, 2, 4, 7, 9],
	"Pentatonic Minor": [0, 3, 5, 7, 10],
	"Blues": [0, 3, 5, 6, 7, 10],
	"Whole Tone": [0, 2, 4, 6, 8, 10],
}

A4_FREQ = 440.0

# Plain-dict form of the presets; models.DifficultyPreset wraps these.
PRESET_TABLE: Dict[str, Dict[str, object]] = {
	"beginner": {
		"noteRange": NATURALS,
		"octaveRange": (4, 4),
		"intervals": ["Major 2nd", "Major 3rd", "Perfect 4th", "Perfect 5th"],
		"chords": ["Major", "Minor"],
		"scales": ["Major", "Natural Minor"],
	},
	"elementary": {
		"noteRange": NOTES,
		"octaveRange": (3, 5),
		"intervals": ["Minor 2nd", "Major 2nd", "Minor 3rd", "Major 3rd", "Perfect 4th", "Perfect 5th", "Octave"],
		"chords": ["Major", "Minor", "Diminished", "Augmented"],
		"scales": ["Major", "Natural Minor", "Harmonic Minor", "Pentatonic Major", "Pentatonic Minor"],
	},
	"intermediate": {
		"noteRange": NOTES,
		"octaveRange": (2, 6),
		"intervals": list(INTERVALS.keys()),
		"chords": ["Major", "Minor", "Diminished", "Augmented", "Sus2", "Sus4", "Major 7th", "Minor 7th", "Dominant 7th"],
		"scales": ["Major", "Natural Minor", "Harmonic Minor", "Melodic Minor", "Dorian", "Pentatonic Major", "Pentatonic Minor", "Blues"],
	},
	"advanced": {
		"noteRange": NOTES,
		"octaveRange": (1, 7),
		"intervals": list(INTERVALS.keys()),
		"chords": list(CHORDS.keys()),
		"scales": list(SCALES.keys()),
	},
}

DIFFICULTY_ORDER = ["beginner", "elementary", "intermediate", "advanced"]


def pitch_index(pitch_class: str) -> int:
	return NOTES.index(pitch_class)


def shift(pitch_class: str, octave: int, semitones: int) -> Tuple[str, int]:
	"""Move a pitch up by `semitones`, wrapping the pitch class and carrying the octave."""
	total = pitch_index(pitch_class) + semitones
	return NOTES[total % 12], octave + total // 12


def note_to_midi(pitch_class: str, octave: int) -> int:
	# C4 = 60
	return (octave + 1) * 12 + pitch_index(pitch_class)


def note_frequency(pitch_class: str, octave: int) -> float:
	semitones = (octave - 4) * 12 + pitch_index(pitch_class) - 9
	return float(A4_FREQ * (2.0 ** (semitones / 12.0)))


def offsets_for(mode: str, name: str) -> List[int]:
	"""Semitone offsets from the root for an interval, chord or scale name (any other mode is a scale)."""
	if mode == "interval":
		return [0, INTERVALS[name]]
	if mode == "chord":
		return list(CHORDS[name])
	return list(SCALES[name])
