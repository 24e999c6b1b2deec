SR = 44100

import logging
from typing import cast
import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

TICK_LOW_FREQ = 440.0
TICK_HIGH_FREQ = 880.0
TICK_DUR = 0.05
TICK_GAIN = 0.05
CHIME_FREQS = (523.25, 659.25, 783.99)  # C5, E5, G5
CHIME_STAGGER = 0.05
CHIME_DUR = 0.5
CHIME_GAIN = 0.1


def tone(freq: float, dur: float, gain: float = 1.0, attack: float = 0.0) -> npt.NDArray[np.float32]:
	"""Sine tone with an exponential decay down to -60dB at ``dur``.

	Args:
		freq: Frequency in Hz
		dur: Duration in seconds
		gain: Peak amplitude
		attack: Linear fade-in length in seconds
	"""
	t = np.linspace(0.0, dur, int(SR * dur), endpoint=False, dtype=np.float32)
	x = np.sin(2.0 * np.pi * freq * t).astype(np.float32)
	env = (gain * np.power(0.001, t / dur)).astype(np.float32)
	n_attack = int(attack * SR)
	if n_attack > 0:
		env[:n_attack] *= np.linspace(0.0, 1.0, n_attack, endpoint=False, dtype=np.float32)
	return cast(npt.NDArray[np.float32], (x * env).astype(np.float32))


def tick(is_high: bool) -> npt.NDArray[np.float32]:
	return tone(TICK_HIGH_FREQ if is_high else TICK_LOW_FREQ, TICK_DUR, gain=TICK_GAIN)


def chime() -> npt.NDArray[np.float32]:
	stagger = int(SR * CHIME_STAGGER)
	length = int(SR * CHIME_DUR) + stagger * (len(CHIME_FREQS) - 1)
	out = np.zeros(length, dtype=np.float32)
	for i, freq in enumerate(CHIME_FREQS):
		x = tone(freq, CHIME_DUR, gain=CHIME_GAIN, attack=0.05)
		out[i * stagger : i * stagger + len(x)] += x
	return out


class TonePlayer:
	"""Fire-and-forget cue playback. Failures are logged, never raised."""

	def __init__(self, volume: float = 1.0) -> None:
		self.volume = volume

	def _play(self, x: npt.NDArray[np.float32]) -> None:
		try:
			import sounddevice as sd
			sd.play(x * self.volume, SR, blocking=False)
		except Exception as e:
			logger.warning("Tone playback failed: %s", e)

	def play_tick(self, is_high: bool) -> None:
		self._play(tick(is_high))

	def play_success_chime(self) -> None:
		self._play(chime())
