import logging
import os
import time
from typing import Any, Optional

import altair as alt
import streamlit as st

from earquest.audio import render_notes, render_scale_preview, wav_bytes
from earquest.models import TRAINING_MODES, TrainingSettings
from earquest.piano import is_piano_available, render_piano_bytes, render_piano_scale_bytes
from earquest.results import ResultLog
from earquest.session import GAME_OVER, TrainingSession
from earquest.stats import collect, mode_frame, trend_frame
from earquest.storage import load_settings, open_default_store, save_settings
from earquest.theory import DIFFICULTY_ORDER, NOTES
from earquest.timers import monotonic_scheduler
from earquest.unlocks import MODE_RULES, ProgressStore


logging.basicConfig(
	level=os.environ.get("EARQUEST_LOG_LEVEL", "INFO").upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("earquest.app")

st.set_page_config(page_title="EarQuest", page_icon=None, layout="centered")

MODE_LABELS = {"note": "Notes", "interval": "Intervals", "chord": "Chords", "scale": "Scales"}


def get_state() -> Any:
	if "store" not in st.session_state:
		st.session_state.store = open_default_store()
	if "settings" not in st.session_state:
		st.session_state.settings = load_settings(st.session_state.store)
	if "scheduler" not in st.session_state:
		st.session_state.scheduler = monotonic_scheduler()
	if "session" not in st.session_state:
		st.session_state.session = None
	if "feedback" not in st.session_state:
		st.session_state.feedback = None  # {"correct": bool, "text": str}
	return st.session_state


def sidebar_settings(state: Any) -> TrainingSettings:
	s: TrainingSettings = state.settings
	unlocked = ProgressStore(state.store).load().unlocked_difficulties
	st.sidebar.header("Settings")
	levels = [d for d in DIFFICULTY_ORDER if d in unlocked]
	difficulty = st.sidebar.selectbox("Difficulty", levels, index=levels.index(s.difficulty) if s.difficulty in levels else 0)
	if difficulty != s.difficulty:
		s = s.with_difficulty(difficulty)
	note_range = st.sidebar.multiselect("Notes", options=NOTES, default=s.note_range)
	octaves = st.sidebar.slider("Octaves", min_value=1, max_value=7, value=tuple(s.octave_range))
	play_mode = st.sidebar.selectbox("Play mode", ["harmonic", "ascending", "descending"], index=["harmonic", "ascending", "descending"].index(s.play_mode))
	new_s = s.model_copy(update={
		"note_range": note_range or s.note_range,
		"octave_range": (int(octaves[0]), int(octaves[1])),
		"play_mode": play_mode,
	})
	if new_s != state.settings:
		save_settings(state.store, new_s)
		state.settings = new_s
		if state.session is not None:
			state.session.update_settings(new_s)
	return new_s


def audio_for(session: TrainingSession) -> Optional[bytes]:
	pb = session.play()
	if pb is None:
		return None
	ascending = pb.play_mode != "descending"
	if is_piano_available():
		try:
			if pb.scale_preview:
				return render_piano_scale_bytes(pb.notes, ascending)
			return render_piano_bytes(pb.notes, pb.play_mode, pb.duration)
		except RuntimeError as e:
			logger.warning("Piano rendering failed, using synth: %s", e)
	if pb.scale_preview:
		return wav_bytes(render_scale_preview(pb.notes, ascending))
	return wav_bytes(render_notes(pb.notes, pb.play_mode, pb.duration))


def training_page(state: Any) -> None:
	progress = ProgressStore(state.store).load()
	cols = st.columns(2)
	mode = cols[0].selectbox("Training", TRAINING_MODES, format_func=lambda m: MODE_LABELS[m])
	game_mode = cols[1].radio("Game", ["challenge", "zen"], horizontal=True)
	if mode not in progress.unlocked_modes:
		rule = next(r for r in MODE_RULES if r[0] == mode)
		st.info(f"Locked: answer {rule[2]} {MODE_LABELS[rule[1]].lower()} correctly to unlock.")
		return

	session: TrainingSession = state.session
	if session is None or session.mode != mode or session.game_mode != game_mode:
		if session is not None:
			session.close()
		session = TrainingSession(mode, game_mode, state.settings, state.store, scheduler=state.scheduler)
		state.session = session
		state.feedback = None

	state.scheduler.run_due()

	if session.phase == GAME_OVER:
		c = session.challenge
		st.header(f"Rating: {session.rating}")
		st.write(f"Accuracy {session.accuracy}% · Score {round(c.score)} · Best streak {c.max_streak} · Answered {c.total_count}")
		if st.button("Play again", use_container_width=True):
			session.restart()
			state.feedback = None
			st.rerun()
		return

	if game_mode == "challenge":
		c = session.challenge
		st.write(f"Lives {c.lives} · Streak {c.streak} · Accuracy {session.accuracy}% · Score {round(c.score)}")

	clip = audio_for(session)
	if clip is not None:
		st.audio(clip, format="audio/wav", autoplay=session.accepting_answers)

	if state.feedback is not None and not session.accepting_answers:
		if state.feedback.get("correct"):
			st.success(state.feedback.get("text", "Correct!"))
		else:
			st.error(state.feedback.get("text", "Incorrect"))

	q = session.question
	btn_cols = st.columns(3)
	clicked = None
	for idx, label in enumerate(q.options):
		with btn_cols[idx % 3]:
			if st.button(label, key=f"opt-{label}", use_container_width=True, disabled=not session.accepting_answers):
				clicked = label

	if clicked is not None:
		outcome = session.submit_answer(clicked)
		if outcome is not None:
			if outcome.correct:
				state.feedback = {"correct": True, "text": "Correct!"}
			else:
				state.feedback = {"correct": False, "text": f"Incorrect, it was {outcome.expected}"}
		st.rerun()

	wait = state.scheduler.next_due_in()
	if wait is not None:
		time.sleep(wait)
		state.scheduler.run_due()
		st.rerun()


def statistics_page(state: Any) -> None:
	data = collect(ResultLog(state.store), ProgressStore(state.store).load())
	s = data.summary
	cols = st.columns(4)
	cols[0].metric("Answered", s.total_answered)
	cols[1].metric("Accuracy", f"{s.overall_accuracy}%")
	cols[2].metric("Per day", s.average_per_day)
	cols[3].metric("Challenges", s.challenges_completed)

	st.subheader("Last 7 days")
	chart = alt.Chart(trend_frame(data.accuracy_trend)).mark_line(point=True).encode(
		x=alt.X("date:N", sort=None),
		y=alt.Y("accuracy:Q", scale=alt.Scale(domain=[0, 100])),
		tooltip=["date", "accuracy"],
	).properties(width=400, height=250)
	st.altair_chart(chart, use_container_width=True)

	st.subheader("By mode")
	st.dataframe(mode_frame(data.mode_stats), hide_index=True)

	if data.weak_points:
		st.subheader("Weak points")
		st.dataframe([p.model_dump() for p in data.weak_points], hide_index=True)


def main() -> None:
	state = get_state()
	sidebar_settings(state)
	st.title("EarQuest")
	if state.store.degraded:
		st.caption("Progress is not being saved this session.")
	page = st.sidebar.radio("Page", ["Train", "Statistics"])
	if page == "Train":
		training_page(state)
	else:
		if state.session is not None:
			state.session.close()
			state.session = None
		statistics_page(state)


if __name__ == "__main__":
	main()
