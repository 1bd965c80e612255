SR = 44100

import io
from typing import List, Sequence, cast
import numpy as np
import numpy.typing as npt
import soundfile as sf

from earquest.models import Note
from earquest.theory import note_frequency

STRIDE = 0.4
MELODIC_FRACTION = 0.6
SCALE_STRIDE = 0.3
SCALE_NOTE_DUR = 0.5


def tone(freq: float, dur: float, waveform: str = "sine") -> npt.NDArray[np.float32]:
	"""Generate a single tone with a simple attack/release envelope.

	Args:
		freq: Frequency in Hz
		dur: Duration in seconds
		waveform: One of {"sine","triangle","saw"}
	"""
	t = np.linspace(0.0, dur, int(SR * dur), endpoint=False, dtype=np.float32)
	omega = 2.0 * np.pi * freq
	if waveform == "sine":
		x = np.sin(omega * t).astype(np.float32)
	elif waveform == "triangle":
		x = ((2.0 / np.pi) * np.arcsin(np.sin(omega * t))).astype(np.float32)
	else:
		phase = (freq * t).astype(np.float32)
		x = (2.0 * (phase - np.floor(phase + 0.5))).astype(np.float32)

	# 5ms attack, 50ms release
	attack = min(int(0.005 * SR), x.size)
	release = min(int(0.050 * SR), x.size - attack)
	env = np.ones_like(x, dtype=np.float32)
	if attack > 0:
		env[:attack] = np.linspace(0.0, 1.0, attack, endpoint=False, dtype=np.float32)
	if release > 0:
		env[-release:] = np.linspace(1.0, 0.0, release, endpoint=False, dtype=np.float32)

	y = (x * env).astype(np.float32)
	return cast(npt.NDArray[np.float32], y)


def _normalize(x: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
	max_abs = float(np.max(np.abs(x))) if x.size else 0.0
	if max_abs > 1.0:
		x = (x / max_abs).astype(np.float32)
	return x


def sequence(freqs: Sequence[float], stride: float, dur: float, waveform: str = "sine") -> npt.NDArray[np.float32]:
	"""Place one tone every `stride` seconds; tones may overlap when dur > stride."""
	if not freqs:
		return np.zeros(0, dtype=np.float32)
	step = int(SR * stride)
	note_len = int(SR * dur)
	out = np.zeros(step * (len(freqs) - 1) + note_len, dtype=np.float32)
	for i, f in enumerate(freqs):
		start = i * step
		out[start:start + note_len] += tone(f, dur, waveform)
	return _normalize(out)


def harmonic(freqs: Sequence[float], dur: float = 1.0, waveform: str = "sine") -> npt.NDArray[np.float32]:
	if not freqs:
		return np.zeros(0, dtype=np.float32)
	x = np.sum([tone(f, dur, waveform) for f in freqs], axis=0).astype(np.float32)
	return _normalize(x)


def freqs_of(notes: Sequence[Note]) -> List[float]:
	return [note_frequency(n.pitch_class, n.octave) for n in notes]


def render_notes(notes: Sequence[Note], play_mode: str, duration: float = 1.0, waveform: str = "sine") -> npt.NDArray[np.float32]:
	"""Harmonic: all at once for `duration`. Ascending/descending: 400ms apart, each 60% as long."""
	freqs = freqs_of(notes)
	if play_mode == "harmonic":
		return harmonic(freqs, duration, waveform)
	if play_mode == "descending":
		freqs = freqs[::-1]
	return sequence(freqs, STRIDE, duration * MELODIC_FRACTION, waveform)


def render_scale_preview(notes: Sequence[Note], ascending: bool = True, waveform: str = "sine") -> npt.NDArray[np.float32]:
	freqs = freqs_of(notes)
	if not ascending:
		freqs = freqs[::-1]
	return sequence(freqs, SCALE_STRIDE, SCALE_NOTE_DUR, waveform)


def wav_bytes(x: npt.NDArray[np.float32]) -> bytes:
	buf = io.BytesIO()
	sf.write(buf, x, SR, format="WAV")
	return buf.getvalue()
