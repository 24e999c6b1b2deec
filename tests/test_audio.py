import sys
import types

import numpy as np

from fretboard.audio import CHIME_DUR, CHIME_STAGGER, SR, TICK_DUR, TonePlayer, chime, tick, tone


def test_tone_length_and_dtype():
	dur = 0.5
	x = tone(440.0, dur)
	assert isinstance(x, np.ndarray)
	assert x.dtype == np.float32
	assert len(x) == int(SR * dur)


def test_tone_decays():
	x = tone(440.0, 0.5, gain=0.5)
	assert np.max(np.abs(x)) <= 0.5 + 1e-6
	assert np.max(np.abs(x[-100:])) < 0.01


def test_tick_is_short_and_quiet():
	for is_high in (True, False):
		x = tick(is_high)
		assert len(x) == int(SR * TICK_DUR)
		assert np.max(np.abs(x)) <= 0.05 + 1e-6


def test_chime_length():
	x = chime()
	assert len(x) == int(SR * CHIME_DUR) + 2 * int(SR * CHIME_STAGGER)
	assert np.max(np.abs(x)) > 0.0


def test_playback_failure_is_swallowed(monkeypatch):
	def broken_play(*args, **kwargs):
		raise RuntimeError("no output device")

	fake = types.ModuleType("sounddevice")
	fake.play = broken_play
	monkeypatch.setitem(sys.modules, "sounddevice", fake)
	player = TonePlayer()
	player.play_tick(True)
	player.play_success_chime()


def test_playback_hands_samples_to_device(monkeypatch):
	played = []
	fake = types.ModuleType("sounddevice")
	fake.play = lambda x, sr, blocking=True: played.append((len(x), sr, blocking))
	monkeypatch.setitem(sys.modules, "sounddevice", fake)
	TonePlayer().play_tick(False)
	assert played == [(int(SR * TICK_DUR), SR, False)]
