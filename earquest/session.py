from __future__ import annotations

import logging
import random
import threading
from typing import Callable, Dict, List, NamedTuple, Optional

from .generator import generate
from .models import AnswerOutcome, ChallengeState, GameMode, Note, Question, TrainingMode, TrainingResult, TrainingSettings
from .results import ResultLog, percent
from .storage import Store
from .timers import Scheduler, ThreadScheduler, TimerHandle
from .unlocks import ProgressStore, check_unlocks, record_challenge_completed

logger = logging.getLogger(__name__)

# Score per correct answer before the streak bonus. Scale follows the +5 step of the others.
BASE_SCORES: Dict[str, int] = {"note": 10, "interval": 15, "chord": 20, "scale": 25}
STREAK_BONUS = 0.1
START_LIVES = 3

FEEDBACK_DELAY = 1.0
REVEAL_DELAYS: Dict[str, float] = {"note": 2.0, "interval": 2.5, "chord": 2.5, "scale": 2.5}
PLAY_DURATIONS: Dict[str, float] = {"note": 1.0, "interval": 1.2, "chord": 1.5, "scale": 0.5}

RATING_BANDS = [("S", 90), ("A", 80), ("B", 70), ("C", 60), ("D", 50)]

ASKING = "asking"
ANSWERED = "answered"
GAME_OVER = "game_over"


def rating_for(correct: int, total: int) -> str:
	"""Letter grade for a finished challenge; each band's lower bound is inclusive."""
	for grade, floor in RATING_BANDS:
		# integer comparison so exactly 90% is an S
		if total > 0 and correct * 100 >= floor * total:
			return grade
	return "F"


def points_for(mode: str, streak: int) -> float:
	return BASE_SCORES[mode] * (1 + streak * STREAK_BONUS)


def apply_answer(state: ChallengeState, mode: str, correct: bool) -> ChallengeState:
	s = state.model_copy()
	s.total_count += 1
	if correct:
		s.correct_count += 1
		s.streak += 1
		s.max_streak = max(s.max_streak, s.streak)
		s.score += points_for(mode, s.streak)
	else:
		s.lives = max(0, s.lives - 1)
		s.streak = 0
	return s


class Playback(NamedTuple):
	notes: List[Note]
	play_mode: str
	duration: float
	scale_preview: bool = False


class TrainingSession:
	"""One training screen: the current question plus the challenge scorecard.

	Answers move the session from asking to answered; a timer brings it back to
	asking with a new question. Challenge mode ends in game_over when lives run out.
	"""

	def __init__(
		self,
		mode: TrainingMode,
		game_mode: GameMode,
		settings: TrainingSettings,
		store: Store,
		scheduler: Optional[Scheduler] = None,
		rng: Optional[random.Random] = None,
		clock: Optional[Callable[[], int]] = None,
	) -> None:
		self.mode = mode
		self.game_mode = game_mode
		self.settings = settings
		self.log = ResultLog(store, clock=clock)
		self.progress = ProgressStore(store)
		self.scheduler = scheduler or ThreadScheduler()
		self.rng = rng or random.Random()
		self.challenge = ChallengeState(lives=START_LIVES)
		self.phase = ASKING
		self.rating: Optional[str] = None
		self.revealed_answer: Optional[str] = None
		self.question: Optional[Question] = None
		self.closed = False
		self._timer: Optional[TimerHandle] = None
		self._epoch = 0
		# Guards every transition; timer callbacks may run on another thread.
		self._lock = threading.RLock()
		self.next_question()

	@property
	def accepting_answers(self) -> bool:
		return self.phase == ASKING and self.question is not None and not self.closed

	@property
	def accuracy(self) -> int:
		return percent(self.challenge.correct_count, self.challenge.total_count)

	def next_question(self) -> Question:
		with self._lock:
			self.question = generate(self.mode, self.settings.preset, self.settings, self.rng)
			self.revealed_answer = None
			if self.phase != GAME_OVER:
				self.phase = ASKING
			return self.question

	def submit_answer(self, selected: str) -> Optional[AnswerOutcome]:
		with self._lock:
			q = self.question
			if q is None or not self.accepting_answers:
				return None
			correct = selected == q.name
			result = TrainingResult(
				mode=self.mode,
				game_mode=self.game_mode,
				correct=correct,
				answer=q.name,
				user_answer=selected,
				timestamp=self.log.clock(),
				difficulty=self.settings.difficulty,
			)
			self.log.append(result)
			self.phase = ANSWERED

			finished = False
			if self.game_mode == "challenge":
				self.challenge = apply_answer(self.challenge, self.mode, correct)
				if self.challenge.lives <= 0:
					finished = True
					self._game_over()
				else:
					self._arm(FEEDBACK_DELAY)
			else:
				self.revealed_answer = q.name
				self._arm(REVEAL_DELAYS[self.mode])

			progress = self.progress.load()
			if finished:
				progress = record_challenge_completed(progress)
			self.progress.save(check_unlocks(progress, self.log))

			return AnswerOutcome(
				result=result,
				correct=correct,
				expected=q.name,
				challenge=self.challenge.model_copy() if self.game_mode == "challenge" else None,
				game_over=finished,
				rating=self.rating,
			)

	def _game_over(self) -> None:
		self._cancel_pending()
		self.phase = GAME_OVER
		self.rating = rating_for(self.challenge.correct_count, self.challenge.total_count)
		logger.info(
			"Challenge over: %s mode, %d/%d correct, score %.1f, rating %s",
			self.mode, self.challenge.correct_count, self.challenge.total_count, self.challenge.score, self.rating,
		)

	def restart(self) -> Question:
		with self._lock:
			self._cancel_pending()
			self.challenge = ChallengeState(lives=START_LIVES)
			self.rating = None
			self.phase = ASKING
			return self.next_question()

	def update_settings(self, settings: TrainingSettings) -> Question:
		"""Apply new settings right away; the scorecard is kept."""
		with self._lock:
			self._cancel_pending()
			self.settings = settings
			return self.next_question()

	def close(self) -> None:
		with self._lock:
			self._cancel_pending()
			self.closed = True

	def play(self) -> Optional[Playback]:
		"""What to sound for the current question, or None before the first one."""
		q = self.question
		if q is None:
			return None
		duration = PLAY_DURATIONS[self.mode]
		if self.mode == "scale":
			return Playback(list(q.notes), self.settings.play_mode, duration, scale_preview=True)
		if self.mode == "note":
			return Playback(list(q.notes), "harmonic", duration)
		return Playback(list(q.notes), self.settings.play_mode, duration)

	def _arm(self, delay: float) -> None:
		self._cancel_pending()
		epoch = self._epoch

		def fire() -> None:
			# Runs on the timer thread with ThreadScheduler; the epoch is only trusted under the lock.
			with self._lock:
				if epoch != self._epoch or self.closed:
					logger.debug("Dropping stale next-question timer (epoch %d, now %d)", epoch, self._epoch)
					return
				self._timer = None
				self.next_question()

		self._timer = self.scheduler.call_later(delay, fire)

	def _cancel_pending(self) -> None:
		if self._timer is not None:
			self._timer.cancel()
			self._timer = None
		self._epoch += 1
