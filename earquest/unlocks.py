from __future__ import annotations

import logging
from typing import List, Tuple

from pydantic import ValidationError

from .models import UserProgress
from .results import ResultLog, calculate_accuracy
from .storage import PROGRESS_KEY, Store

logger = logging.getLogger(__name__)

# (mode to unlock, mode whose correct answers count, how many)
MODE_RULES: List[Tuple[str, str, int]] = [
	("interval", "note", 20),
	("chord", "interval", 30),
	("scale", "chord", 40),
]

# (difficulty to unlock, minimum 7-day accuracy, minimum 7-day answers)
DIFFICULTY_RULES: List[Tuple[str, int, int]] = [
	("elementary", 60, 20),
	("intermediate", 70, 50),
	("advanced", 80, 100),
]

RECENT_DAYS = 7


def check_unlocks(progress: UserProgress, log: ResultLog) -> UserProgress:
	"""Return a copy of `progress` with every unlock the result history now earns.

	Only adds; running it again on the same history changes nothing.
	"""
	new = progress.model_copy(deep=True)
	results = log.all()

	for mode, source, needed in MODE_RULES:
		correct = sum(1 for r in results if r.mode == source and r.correct)
		if correct >= needed and mode not in new.unlocked_modes:
			new.unlocked_modes.append(mode)  # type: ignore[arg-type]
			logger.info("Unlocked %s mode (%d correct %s answers)", mode, correct, source)

	recent = log.recent(RECENT_DAYS)
	accuracy = calculate_accuracy(recent)
	for level, min_acc, min_count in DIFFICULTY_RULES:
		if accuracy >= min_acc and len(recent) >= min_count and level not in new.unlocked_difficulties:
			new.unlocked_difficulties.append(level)  # type: ignore[arg-type]
			logger.info("Unlocked %s difficulty (%d%% over %d answers)", level, accuracy, len(recent))

	return new


def record_challenge_completed(progress: UserProgress) -> UserProgress:
	return progress.model_copy(update={"total_challenges_completed": progress.total_challenges_completed + 1})


class ProgressStore:
	def __init__(self, store: Store) -> None:
		self.store = store

	def load(self) -> UserProgress:
		obj = self.store.get(PROGRESS_KEY)
		if isinstance(obj, dict):
			try:
				return UserProgress.model_validate(obj)
			except ValidationError as e:
				logger.warning("Saved progress is invalid, starting fresh: %s", e)
		return UserProgress()

	def save(self, progress: UserProgress) -> None:
		self.store.set(PROGRESS_KEY, progress.to_json())
