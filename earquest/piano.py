import io
import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Sequence

import mido
import numpy as np
import requests
import soundfile as sf

from earquest.audio import MELODIC_FRACTION, SCALE_NOTE_DUR, SCALE_STRIDE, STRIDE
from earquest.models import Note
from earquest.storage import data_dir
from earquest.theory import note_to_midi

logger = logging.getLogger(__name__)

# FluidR3Mono_GM soundfont (~14MB, compressed SF3 which FluidSynth reads natively)
DEFAULT_SF2_URL = "https://github.com/musescore/MuseScore/raw/2.3.2/share/sound/FluidR3Mono_GM.sf3"

PIANO_PROGRAM = 0  # General MIDI Acoustic Grand Piano
TEMPO = mido.bpm2tempo(120)
RELEASE_TAIL = 0.3


def sf2_dir() -> Path:
	return data_dir() / "sf2"


def get_sf2_path() -> Path:
	env = os.environ.get("EARQUEST_SF2_PATH")
	if env:
		return Path(env)
	return sf2_dir() / "FluidR3Mono_GM.sf3"


def ensure_sf2() -> None:
	p = get_sf2_path()
	if p.exists() or os.environ.get("EARQUEST_SF2_PATH"):
		return
	try:
		p.parent.mkdir(parents=True, exist_ok=True)
		response = requests.get(DEFAULT_SF2_URL, timeout=30)
		response.raise_for_status()
		p.write_bytes(response.content)
	except (requests.RequestException, OSError) as e:
		logger.warning("Could not download soundfont: %s", e)


def is_piano_available() -> bool:
	"""FluidSynth on PATH and a soundfont on disk (downloading one if needed)."""
	if shutil.which("fluidsynth") is None:
		return False
	ensure_sf2()
	return get_sf2_path().exists()


def schedule(notes: Sequence[Note], play_mode: str, duration: float) -> List[tuple]:
	"""(midi, onset seconds, length seconds) for each note, matching the synth's timing."""
	midis = [note_to_midi(n.pitch_class, n.octave) for n in notes]
	if play_mode == "harmonic":
		return [(m, 0.0, duration) for m in midis]
	if play_mode == "descending":
		midis = midis[::-1]
	return [(m, i * STRIDE, duration * MELODIC_FRACTION) for i, m in enumerate(midis)]


def scale_schedule(notes: Sequence[Note], ascending: bool = True) -> List[tuple]:
	midis = [note_to_midi(n.pitch_class, n.octave) for n in notes]
	if not ascending:
		midis = midis[::-1]
	return [(m, i * SCALE_STRIDE, SCALE_NOTE_DUR) for i, m in enumerate(midis)]


def write_midi(path: Path, events: Sequence[tuple], volume: float, program: int = PIANO_PROGRAM) -> None:
	mid = mido.MidiFile()
	trk = mido.MidiTrack()
	mid.tracks.append(trk)
	trk.append(mido.MetaMessage("set_tempo", tempo=TEMPO, time=0))
	trk.append(mido.Message("program_change", program=program, time=0))
	# velocity 60..120 by volume
	vel = max(1, min(127, int(60 + 60 * volume)))

	def ticks(seconds: float) -> int:
		return int(round(mido.second2tick(seconds, mid.ticks_per_beat, TEMPO)))

	timeline = []
	for midi, onset, length in events:
		timeline.append((ticks(onset), 1, mido.Message("note_on", note=midi, velocity=vel)))
		timeline.append((ticks(onset + length), 0, mido.Message("note_off", note=midi, velocity=0)))
	# note_offs before note_ons at the same tick
	timeline.sort(key=lambda e: (e[0], e[1]))
	last = 0
	for tick, _, msg in timeline:
		trk.append(msg.copy(time=tick - last))
		last = tick
	mid.save(path.as_posix())


def _trim_to_duration(wav: bytes, seconds: float, sr_target: int = 44100) -> bytes:
	data, sr = sf.read(io.BytesIO(wav), dtype="float32")
	if data.ndim == 2:
		data = data.mean(axis=1)
	data = np.asarray(data[: int(sr_target * seconds)], dtype=np.float32)
	buf = io.BytesIO()
	sf.write(buf, data, sr_target, format="WAV")
	return buf.getvalue()


def render_events(events: Sequence[tuple], volume: float = 0.9) -> bytes:
	ensure_sf2()
	sf2 = get_sf2_path()
	if not sf2.exists():
		raise RuntimeError("Soundfont not available. Set EARQUEST_SF2_PATH to a .sf2/.sf3 file")
	if shutil.which("fluidsynth") is None:
		raise RuntimeError("fluidsynth not found on PATH")

	with tempfile.TemporaryDirectory() as td:
		dirp = Path(td)
		midp = dirp / "tmp.mid"
		wavp = dirp / "out.wav"
		write_midi(midp, events, volume)
		cmd = [
			"fluidsynth",
			"-g", "1.2",
			"-R", "0",  # no reverb tail
			"-C", "0",
			"-r", "44100",
			"-F", wavp.as_posix(),
			sf2.as_posix(),
			midp.as_posix(),
		]
		proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
		if proc.returncode != 0 or not wavp.exists():
			raise RuntimeError(f"fluidsynth failed: {proc.stderr.decode(errors='ignore')}")
		end = max((onset + length for _, onset, length in events), default=0.0)
		return _trim_to_duration(wavp.read_bytes(), end + RELEASE_TAIL, 44100)


def render_piano_bytes(notes: Sequence[Note], play_mode: str, duration: float, volume: float = 0.9) -> bytes:
	return render_events(schedule(notes, play_mode, duration), volume)


def render_piano_scale_bytes(notes: Sequence[Note], ascending: bool = True, volume: float = 0.9) -> bytes:
	return render_events(scale_schedule(notes, ascending), volume)
