from __future__ import annotations

import random
from typing import List, Optional, Sequence, TypeVar

from .errors import ConfigurationError
from .models import DifficultyPreset, Note, Question, TrainingSettings
from .theory import INTERVALS, CHORDS, SCALES, offsets_for, shift

T = TypeVar("T")

_TABLES = {"interval": INTERVALS, "chord": CHORDS, "scale": SCALES}


def pick(pool: Sequence[T], rng: random.Random, what: str) -> T:
	if len(pool) == 0:
		raise ConfigurationError(f"cannot pick from an empty {what}")
	return pool[rng.randrange(len(pool))]


def pick_note(settings: TrainingSettings, rng: random.Random) -> Note:
	pitch_class = pick(settings.note_range, rng, "note range")
	lo, hi = settings.octave_range
	return Note(pitch_class=pitch_class, octave=rng.randint(lo, hi))


def catalog(mode: str, preset: DifficultyPreset, settings: TrainingSettings) -> List[str]:
	"""Concept names askable in `mode`; the preset's list, narrowed by any enabled_* setting."""
	if mode == "note":
		return list(preset.note_range)
	if mode not in _TABLES:
		raise ConfigurationError(f"unknown training mode {mode!r}")
	names: List[str] = getattr(preset, f"{mode}s")
	enabled: Optional[List[str]] = getattr(settings, f"enabled_{mode}s")
	if enabled is not None:
		names = [n for n in names if n in enabled]
	unknown = [n for n in names if n not in _TABLES[mode]]
	if unknown:
		raise ConfigurationError(f"preset lists unknown {mode} names: {unknown}")
	return names


def realize(root: Note, offsets: Sequence[int]) -> List[Note]:
	notes = []
	for off in offsets:
		pc, octave = shift(root.pitch_class, root.octave, off)
		notes.append(Note(pitch_class=pc, octave=octave))
	return notes


def generate(mode: str, preset: DifficultyPreset, settings: TrainingSettings, rng: Optional[random.Random] = None) -> Question:
	"""Sample one question. Every choice is uniform over its pool."""
	rng = rng or random.Random()
	options = catalog(mode, preset, settings)
	if mode == "note":
		if not options:
			raise ConfigurationError("preset has an empty note range")
		note = pick_note(settings, rng)
		return Question(mode="note", name=note.pitch_class, notes=[note], options=options)
	name = pick(options, rng, f"{mode} catalog")
	root = pick_note(settings, rng)
	return Question(mode=mode, name=name, notes=realize(root, offsets_for(mode, name)), options=options)
