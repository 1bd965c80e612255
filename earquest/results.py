from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List, Optional

from pydantic import ValidationError

from .models import TrainingResult
from .storage import RESULTS_KEY, Store

logger = logging.getLogger(__name__)

MAX_RESULTS = 1000
DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
	return int(time.time() * 1000)


def percent(correct: int, total: int) -> int:
	"""Whole-number percentage, halves rounded up; 0 when there is nothing to count."""
	if total == 0:
		return 0
	return (correct * 200 + total) // (2 * total)


def calculate_accuracy(results: Iterable[TrainingResult]) -> int:
	results = list(results)
	return percent(sum(1 for r in results if r.correct), len(results))


class ResultLog:
	def __init__(self, store: Store, cap: int = MAX_RESULTS, clock: Optional[Callable[[], int]] = None) -> None:
		self.store = store
		self.cap = cap
		self.clock = clock or now_ms

	def _load(self) -> List[TrainingResult]:
		raw = self.store.get(RESULTS_KEY)
		if not isinstance(raw, list):
			return []
		out = []
		for item in raw:
			try:
				out.append(TrainingResult.model_validate(item))
			except ValidationError:
				logger.warning("Skipping malformed stored result: %r", item)
		return out

	def append(self, result: TrainingResult) -> None:
		results = self._load()
		results.append(result)
		if len(results) > self.cap:
			results = results[len(results) - self.cap:]
		self.store.set(RESULTS_KEY, [r.to_json() for r in results])

	def all(self) -> List[TrainingResult]:
		return self._load()

	def by_mode(self, mode: str) -> List[TrainingResult]:
		return [r for r in self._load() if r.mode == mode]

	def recent(self, days: int = 7) -> List[TrainingResult]:
		cutoff = self.clock() - days * DAY_MS
		return [r for r in self._load() if r.timestamp >= cutoff]
