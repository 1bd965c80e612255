from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional, Protocol


class TimerHandle(Protocol):
	def cancel(self) -> None: ...


class Scheduler(Protocol):
	def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadScheduler:
	"""Runs callbacks on daemon `threading.Timer` threads."""

	def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
		timer = threading.Timer(delay, callback)
		timer.daemon = True
		timer.start()
		return timer


class ManualTimer:
	def __init__(self, due: float, callback: Callable[[], None]) -> None:
		self.due = due
		self.callback = callback
		self.cancelled = False
		self.fired = False

	def cancel(self) -> None:
		self.cancelled = True


class ManualScheduler:
	"""Fires callbacks only when driven, either by `advance` or by `run_due` against a clock.

	Used where there is no background loop to own timers (tests, Streamlit reruns).
	"""

	def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
		self._clock = clock
		self._offset = 0.0
		self._timers: List[ManualTimer] = []

	def now(self) -> float:
		return (self._clock() if self._clock else 0.0) + self._offset

	def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
		timer = ManualTimer(self.now() + delay, callback)
		self._timers.append(timer)
		return timer

	def pending(self) -> List[ManualTimer]:
		return [t for t in self._timers if not t.cancelled and not t.fired]

	def next_due_in(self) -> Optional[float]:
		"""Seconds until the earliest live timer is due, or None if nothing is pending."""
		live = self.pending()
		if not live:
			return None
		return max(0.0, min(t.due for t in live) - self.now())

	def run_due(self) -> int:
		fired = 0
		for timer in sorted(self.pending(), key=lambda t: t.due):
			# a callback may cancel timers behind it
			if timer.cancelled or timer.due > self.now():
				continue
			timer.fired = True
			timer.callback()
			fired += 1
		self._timers = self.pending()
		return fired

	def advance(self, seconds: float) -> int:
		self._offset += seconds
		return self.run_due()


def monotonic_scheduler() -> ManualScheduler:
	return ManualScheduler(clock=time.monotonic)
