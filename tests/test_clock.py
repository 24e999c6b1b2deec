from fretboard.clock import SessionClock
from fretboard.scheduler import ManualScheduler


def make_clock(duration=3, tick_enabled=True):
	s = ManualScheduler()
	events = {"expired": 0, "ticks": []}

	def on_expired():
		events["expired"] += 1

	clock = SessionClock(s, duration, on_expired=on_expired, on_tick=events["ticks"].append, tick_enabled=tick_enabled)
	return s, clock, events


def test_countdown_ticks_and_expires_once():
	s, clock, events = make_clock(3)
	clock.start()
	assert clock.time_left == 30
	s.advance(1.0)
	assert clock.time_left == 20
	assert events["ticks"] == [False]
	s.advance(2.0)
	assert clock.time_left == 0
	assert events["ticks"] == [False, False, True]
	assert events["expired"] == 1
	s.advance(2.0)
	assert events["expired"] == 1
	assert clock.time_left == 0


def test_ticks_disabled_still_expires():
	s, clock, events = make_clock(1, tick_enabled=False)
	clock.start()
	s.advance(1.0)
	assert events["ticks"] == []
	assert events["expired"] == 1


def test_stop_resets_without_expiry():
	s, clock, events = make_clock(3)
	clock.start()
	s.advance(1.5)
	assert clock.time_left == 15
	clock.stop()
	assert clock.time_left == 30
	assert not clock.running
	s.advance(5.0)
	assert events["expired"] == 0
	assert s.pending == 0


def test_configure_while_stopped_resets_display():
	s, clock, events = make_clock(3)
	clock.configure(7, True)
	assert clock.time_left == 70


def test_configure_while_running_waits_for_restart():
	s, clock, events = make_clock(3)
	clock.start()
	s.advance(0.5)
	clock.configure(5, True)
	assert clock.time_left == 25
	assert clock.total == 30
	s.advance(0.5)
	assert clock.time_left == 20
	assert clock.total == 30
	clock.start()
	assert clock.time_left == 50
	assert clock.total == 50


def test_restart_after_expiry():
	s, clock, events = make_clock(1)
	clock.start()
	s.advance(1.0)
	clock.start()
	s.advance(1.0)
	assert events["expired"] == 2


def test_stop_applies_duration_set_while_running():
	s, clock, events = make_clock(3)
	clock.start()
	clock.configure(8, True)
	clock.stop()
	assert clock.total == 80
	assert clock.time_left == 80
