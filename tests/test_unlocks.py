from earquest.models import TrainingResult, UserProgress
from earquest.results import DAY_MS, ResultLog
from earquest.storage import PROGRESS_KEY, MemoryStore
from earquest.unlocks import ProgressStore, check_unlocks, record_challenge_completed

NOW = 1_700_000_000_000


def fill(log, mode, correct, wrong=0, ts=NOW):
	for i in range(correct + wrong):
		log.append(TrainingResult(
			mode=mode, game_mode="zen", correct=i < correct, answer="x",
			user_answer="x", timestamp=ts, difficulty="beginner",
		))


def new_log():
	return ResultLog(MemoryStore(), clock=lambda: NOW)


def test_default_progress():
	p = UserProgress()
	assert p.unlocked_modes == ["note"]
	assert p.unlocked_difficulties == ["beginner"]
	assert p.total_challenges_completed == 0


def test_mode_chain_is_sequential():
	log = new_log()
	fill(log, "note", 19)
	assert check_unlocks(UserProgress(), log).unlocked_modes == ["note"]
	fill(log, "note", 1)
	assert check_unlocks(UserProgress(), log).unlocked_modes == ["note", "interval"]
	# chord needs interval answers, not note answers
	fill(log, "note", 100)
	assert "chord" not in check_unlocks(UserProgress(), log).unlocked_modes
	fill(log, "interval", 30)
	fill(log, "chord", 40)
	assert check_unlocks(UserProgress(), log).unlocked_modes == ["note", "interval", "chord", "scale"]


def test_difficulty_thresholds():
	log = new_log()
	fill(log, "note", 12, wrong=8)  # 60% of 20
	assert check_unlocks(UserProgress(), log).unlocked_difficulties == ["beginner", "elementary"]

	log = new_log()
	fill(log, "note", 11, wrong=9)  # 55%
	assert check_unlocks(UserProgress(), log).unlocked_difficulties == ["beginner"]

	log = new_log()
	fill(log, "note", 80, wrong=20)
	assert check_unlocks(UserProgress(), log).unlocked_difficulties == ["beginner", "elementary", "intermediate", "advanced"]


def test_old_results_do_not_count_toward_difficulty():
	log = new_log()
	fill(log, "note", 30, ts=NOW - 8 * DAY_MS)
	p = check_unlocks(UserProgress(), log)
	assert p.unlocked_difficulties == ["beginner"]
	assert "interval" in p.unlocked_modes


def test_idempotent_and_never_shrinks():
	log = new_log()
	fill(log, "note", 25)
	first = check_unlocks(UserProgress(), log)
	second = check_unlocks(first, log)
	assert first == second

	# a worse week does not take anything away
	fill(log, "note", 0, wrong=200)
	third = check_unlocks(second, log)
	assert set(second.unlocked_modes) <= set(third.unlocked_modes)
	assert set(second.unlocked_difficulties) <= set(third.unlocked_difficulties)


def test_check_unlocks_does_not_mutate_input():
	log = new_log()
	fill(log, "note", 20)
	p = UserProgress()
	check_unlocks(p, log)
	assert p.unlocked_modes == ["note"]


def test_progress_store_round_trip_and_defaults():
	store = MemoryStore()
	ps = ProgressStore(store)
	assert ps.load() == UserProgress()
	ps.save(record_challenge_completed(UserProgress()))
	assert store.get(PROGRESS_KEY)["totalChallengesCompleted"] == 1
	assert ps.load().total_challenges_completed == 1


def test_stored_progress_always_has_baseline():
	store = MemoryStore({PROGRESS_KEY: {"unlockedModes": ["chord"], "unlockedDifficulties": []}})
	p = ProgressStore(store).load()
	assert "note" in p.unlocked_modes and "chord" in p.unlocked_modes
	assert p.unlocked_difficulties == ["beginner"]
