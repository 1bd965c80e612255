from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .theory import NOTES, PRESET_TABLE


TrainingMode = Literal["note", "interval", "chord", "scale"]
GameMode = Literal["challenge", "zen"]
Difficulty = Literal["beginner", "elementary", "intermediate", "advanced"]
PlayMode = Literal["harmonic", "ascending", "descending"]

TRAINING_MODES: List[str] = ["note", "interval", "chord", "scale"]


class Record(BaseModel):
	"""Base for everything that is stored or shown; JSON keys are camelCase."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	def to_json(self) -> Dict[str, Any]:
		return self.model_dump(by_alias=True, mode="json")


class Note(Record):
	model_config = ConfigDict(frozen=True)

	pitch_class: str
	octave: int

	@property
	def name(self) -> str:
		return f"{self.pitch_class}{self.octave}"


class DifficultyPreset(Record):
	note_range: List[str]
	octave_range: Tuple[int, int]
	intervals: List[str]
	chords: List[str]
	scales: List[str]


PRESETS: Dict[str, DifficultyPreset] = {
	level: DifficultyPreset.model_validate(table) for level, table in PRESET_TABLE.items()
}


class TrainingSettings(Record):
	note_range: List[str] = Field(default_factory=lambda: list(PRESETS["beginner"].note_range))
	octave_range: Tuple[int, int] = Field(default=PRESETS["beginner"].octave_range)
	play_mode: PlayMode = Field(default="harmonic")
	difficulty: Difficulty = Field(default="beginner")
	enabled_intervals: Optional[List[str]] = None
	enabled_chords: Optional[List[str]] = None
	enabled_scales: Optional[List[str]] = None

	@field_validator("note_range")
	@classmethod
	def _known_pitch_classes(cls, v: List[str]) -> List[str]:
		unknown = [n for n in v if n not in NOTES]
		if unknown:
			raise ValueError(f"unknown pitch classes: {unknown}")
		return v

	@model_validator(mode="after")
	def _ordered_octaves(self) -> "TrainingSettings":
		lo, hi = self.octave_range
		if lo > hi:
			raise ValueError(f"octave range {lo}-{hi} is reversed")
		return self

	@property
	def preset(self) -> DifficultyPreset:
		return PRESETS[self.difficulty]

	def with_difficulty(self, difficulty: Difficulty) -> "TrainingSettings":
		"""Switch tier and take over that tier's note and octave ranges."""
		preset = PRESETS[difficulty]
		return self.model_copy(update={
			"difficulty": difficulty,
			"note_range": list(preset.note_range),
			"octave_range": preset.octave_range,
		})


class Question(Record):
	mode: TrainingMode
	name: str
	notes: List[Note]
	options: List[str]


class ChallengeState(Record):
	lives: int = Field(default=3, ge=0)
	streak: int = Field(default=0, ge=0)
	max_streak: int = Field(default=0, ge=0)
	correct_count: int = 0
	total_count: int = 0
	score: float = 0.0


class TrainingResult(Record):
	model_config = ConfigDict(frozen=True)

	mode: TrainingMode
	game_mode: GameMode
	correct: bool
	answer: str
	user_answer: str
	timestamp: int  # epoch milliseconds
	difficulty: Difficulty


class UserProgress(Record):
	unlocked_modes: List[TrainingMode] = Field(default_factory=lambda: ["note"])
	unlocked_difficulties: List[Difficulty] = Field(default_factory=lambda: ["beginner"])
	total_challenges_completed: int = 0
	achievements: List[str] = Field(default_factory=list)

	@model_validator(mode="after")
	def _baseline_unlocks(self) -> "UserProgress":
		if "note" not in self.unlocked_modes:
			self.unlocked_modes.insert(0, "note")
		if "beginner" not in self.unlocked_difficulties:
			self.unlocked_difficulties.insert(0, "beginner")
		return self


class AnswerOutcome(Record):
	result: TrainingResult
	correct: bool
	expected: str
	challenge: Optional[ChallengeState] = None
	game_over: bool = False
	rating: Optional[str] = None


class TrendPoint(Record):
	date: str
	accuracy: int


class WeakPoint(Record):
	item: str
	accuracy: int


class ModeStat(Record):
	mode: TrainingMode
	total: int
	correct: int
	accuracy: int


class StatisticsSummary(Record):
	total_answered: int
	overall_accuracy: int
	average_per_day: int
	challenges_completed: int
	unlocked_modes: int
	unlocked_difficulties: int


class StatisticsData(Record):
	summary: StatisticsSummary
	accuracy_trend: List[TrendPoint]
	weak_points: List[WeakPoint]
	mode_stats: List[ModeStat]
