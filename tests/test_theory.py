from earquest.models import PRESETS
from earquest.theory import (
	A4_FREQ, CHORDS, DIFFICULTY_ORDER, INTERVALS, NOTES, SCALES, note_frequency, note_to_midi, offsets_for, shift,
)


def test_note_frequency_equal_temperament():
	assert note_frequency("A", 4) == A4_FREQ
	assert abs(note_frequency("A", 5) - 880.0) < 1e-9
	assert abs(note_frequency("C", 4) - 261.6256) < 1e-3


def test_note_to_midi():
	assert note_to_midi("C", 4) == 60
	assert note_to_midi("A", 4) == 69


def test_shift_wraps_and_carries_octave():
	assert shift("C", 4, 4) == ("E", 4)
	assert shift("A", 4, 3) == ("C", 5)
	assert shift("B", 3, 12) == ("B", 4)
	assert shift("G", 2, 0) == ("G", 2)


def test_interval_distances_unique_and_in_range():
	values = list(INTERVALS.values())
	assert len(set(values)) == len(values)
	assert all(0 <= v <= 12 for v in values)


def test_chord_and_scale_offsets():
	for table in (CHORDS, SCALES):
		for name, offsets in table.items():
			assert offsets[0] == 0, name
			assert len(set(offsets)) == len(offsets), name
			assert all(o >= 0 for o in offsets), name
	assert all(max(o) < 12 and 5 <= len(o) <= 7 for o in SCALES.values())


def test_presets_grow_with_difficulty():
	for lower, higher in zip(DIFFICULTY_ORDER, DIFFICULTY_ORDER[1:]):
		lo, hi = PRESETS[lower], PRESETS[higher]
		assert set(lo.note_range) <= set(hi.note_range)
		assert set(lo.intervals) <= set(hi.intervals)
		assert set(lo.chords) <= set(hi.chords)
		assert set(lo.scales) <= set(hi.scales)
		assert hi.octave_range[0] <= lo.octave_range[0] and hi.octave_range[1] >= lo.octave_range[1]
	assert PRESETS["advanced"].note_range == NOTES


def test_offsets_for_each_mode():
	assert offsets_for("interval", "Perfect 5th") == [0, 7]
	assert offsets_for("chord", "Minor") == [0, 3, 7]
	pentatonic = offsets_for("scale", "Pentatonic Major")
	assert pentatonic == [0, 2, 4, 7, 9]
	pentatonic.append(12)
	assert SCALES["Pentatonic Major"] == [0, 2, 4, 7, 9]
