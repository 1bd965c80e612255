import random

import pytest

from earquest.errors import ConfigurationError, InvalidConfiguration
from earquest.generator import catalog, generate, realize
from earquest.models import PRESETS, Note, TrainingSettings
from earquest.theory import CHORDS, INTERVALS, NOTES, SCALES


def test_note_question_structure():
	settings = TrainingSettings()
	q = generate("note", PRESETS["beginner"], settings, random.Random(1))
	assert q.mode == "note"
	assert len(q.notes) == 1
	assert q.name == q.notes[0].pitch_class
	assert q.name in settings.note_range
	assert q.notes[0].octave == 4
	assert q.options == PRESETS["beginner"].note_range


def test_note_sampling_covers_pool():
	settings = TrainingSettings(note_range=NOTES, octave_range=(2, 5))
	rng = random.Random(7)
	seen_pc, seen_oct = set(), set()
	for _ in range(1000):
		q = generate("note", PRESETS["advanced"], settings, rng)
		seen_pc.add(q.notes[0].pitch_class)
		seen_oct.add(q.notes[0].octave)
	assert seen_pc == set(NOTES)
	assert seen_oct == {2, 3, 4, 5}


def test_note_options_come_from_preset_not_settings():
	settings = TrainingSettings(note_range=["C", "D"])
	q = generate("note", PRESETS["elementary"], settings, random.Random(3))
	assert q.name in ("C", "D")
	assert q.options == NOTES


def test_major_third_from_c4():
	assert realize(Note(pitch_class="C", octave=4), [0, INTERVALS["Major 3rd"]]) == [
		Note(pitch_class="C", octave=4),
		Note(pitch_class="E", octave=4),
	]


def test_derived_pitches_wrap_and_carry():
	rng = random.Random(11)
	settings = TrainingSettings(note_range=NOTES, octave_range=(1, 6))
	tables = {"interval": INTERVALS, "chord": CHORDS, "scale": SCALES}
	for mode, table in tables.items():
		for _ in range(200):
			q = generate(mode, PRESETS["advanced"], settings, rng)
			offsets = [0, table[q.name]] if mode == "interval" else table[q.name]
			root = q.notes[0]
			idx = NOTES.index(root.pitch_class)
			assert len(q.notes) == len(offsets)
			for note, off in zip(q.notes, offsets):
				assert NOTES.index(note.pitch_class) == (idx + off) % 12
				assert note.octave == root.octave + (idx + off) // 12


def test_interval_catalog_uniform_over_preset():
	rng = random.Random(5)
	preset = PRESETS["beginner"]
	seen = {generate("interval", preset, TrainingSettings(), rng).name for _ in range(500)}
	assert seen == set(preset.intervals)


def test_scale_question_is_one_octave():
	rng = random.Random(2)
	for _ in range(50):
		q = generate("scale", PRESETS["advanced"], TrainingSettings(note_range=NOTES), rng)
		assert 5 <= len(q.notes) <= 7
		assert q.name in SCALES


def test_enabled_list_narrows_catalog():
	settings = TrainingSettings(enabled_chords=["Minor", "Dominant 7th"])
	assert catalog("chord", PRESETS["beginner"], settings) == ["Minor"]
	assert catalog("chord", PRESETS["intermediate"], settings) == ["Minor", "Dominant 7th"]


def test_empty_catalog_is_configuration_error():
	preset = PRESETS["beginner"].model_copy(update={"chords": []})
	with pytest.raises(InvalidConfiguration):
		generate("chord", preset, TrainingSettings())


def test_empty_note_range_is_configuration_error():
	with pytest.raises(ConfigurationError):
		generate("interval", PRESETS["beginner"], TrainingSettings(note_range=[]))


def test_unknown_mode_is_configuration_error():
	with pytest.raises(ConfigurationError):
		generate("rhythm", PRESETS["beginner"], TrainingSettings())
