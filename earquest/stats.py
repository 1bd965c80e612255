from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pandas as pd

from .models import ModeStat, StatisticsData, StatisticsSummary, TrendPoint, UserProgress, WeakPoint, TRAINING_MODES
from .results import ResultLog, calculate_accuracy, percent


def _local_day(ts_ms: int):
	return datetime.fromtimestamp(ts_ms / 1000.0).date()


def accuracy_trend(log: ResultLog, now: Optional[datetime] = None, days: int = 7) -> List[TrendPoint]:
	"""Accuracy per local calendar day, oldest first, ending today."""
	today = (now or datetime.now()).date()
	by_day: Dict[object, List] = {}
	for r in log.all():
		by_day.setdefault(_local_day(r.timestamp), []).append(r)
	points = []
	for i in range(days - 1, -1, -1):
		day = today - timedelta(days=i)
		points.append(TrendPoint(date=f"{day.month}/{day.day}", accuracy=calculate_accuracy(by_day.get(day, []))))
	return points


def mode_stats(log: ResultLog) -> List[ModeStat]:
	results = log.all()
	out = []
	for mode in TRAINING_MODES:
		rs = [r for r in results if r.mode == mode]
		correct = sum(1 for r in rs if r.correct)
		out.append(ModeStat(mode=mode, total=len(rs), correct=correct, accuracy=percent(correct, len(rs))))
	return out


def weak_points(log: ResultLog, days: int = 30, threshold: int = 70, limit: int = 5) -> List[WeakPoint]:
	# keyed by the asked concept, so "Major" chords and "Major" scales share a bucket
	tally: Dict[str, List[int]] = {}
	for r in log.recent(days):
		seen = tally.setdefault(r.answer, [0, 0])
		seen[1] += 1
		if r.correct:
			seen[0] += 1
	points = [WeakPoint(item=item, accuracy=percent(c, t)) for item, (c, t) in tally.items()]
	weak = [p for p in points if p.accuracy < threshold]
	weak.sort(key=lambda p: p.accuracy)
	return weak[:limit]


def summary(log: ResultLog, progress: UserProgress) -> StatisticsSummary:
	results = log.all()
	return StatisticsSummary(
		total_answered=len(results),
		overall_accuracy=calculate_accuracy(results),
		# weekly average, not a count of today's answers
		average_per_day=(2 * len(results) + 7) // 14,
		challenges_completed=progress.total_challenges_completed,
		unlocked_modes=len(progress.unlocked_modes),
		unlocked_difficulties=len(progress.unlocked_difficulties),
	)


def collect(log: ResultLog, progress: UserProgress, now: Optional[datetime] = None) -> StatisticsData:
	return StatisticsData(
		summary=summary(log, progress),
		accuracy_trend=accuracy_trend(log, now),
		weak_points=weak_points(log),
		mode_stats=mode_stats(log),
	)


def trend_frame(points: List[TrendPoint]) -> pd.DataFrame:
	return pd.DataFrame([{"date": p.date, "accuracy": p.accuracy} for p in points])


def mode_frame(stats: List[ModeStat]) -> pd.DataFrame:
	return pd.DataFrame([s.model_dump() for s in stats])
