"""Session state machine: Idle -> Playing -> Stopped -> Playing ...

The clock expiry and a confirmed pitch match both move the session to the
next challenge. Each challenge is a numbered round; an advance request
carries the round it was made in and is dropped if that round is over, so
at most one challenge is drawn per round whichever source fires first.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Protocol

from .clock import SessionClock
from .generator import ChallengeGenerator
from .models import IDLE_DISPLAY, PAUSED_DISPLAY, Challenge, Detection, SessionSnapshot, Settings
from .scheduler import Handle, Scheduler
from .scoring import ScoringAggregator
from .speech import spoken_text
from .stabilizer import PitchStabilizer

logger = logging.getLogger(__name__)

NEXT_CHALLENGE_DELAY = 0.2


class MicrophoneError(RuntimeError):
	pass


class TonePlayerLike(Protocol):
	def play_tick(self, is_high: bool) -> None: ...

	def play_success_chime(self) -> None: ...


class NarratorLike(Protocol):
	def speak(self, text: str, string: Optional[str] = None) -> None: ...

	def cancel_speech(self) -> None: ...


class MicrophoneLike(Protocol):
	def start(self, callback: Callable[[Optional[float]], None]) -> None: ...

	def stop(self) -> None: ...


class SettingsStoreLike(Protocol):
	def load(self) -> Settings: ...

	def save(self, s: Settings) -> None: ...


def _ms(seconds: float) -> int:
	return int(round(seconds * 1000))


class _Serialized:
	"""Runs every callback of the wrapped scheduler while holding ``lock``."""

	def __init__(self, scheduler: Scheduler, lock: Any) -> None:
		self._scheduler = scheduler
		self._lock = lock

	def now(self) -> float:
		return self._scheduler.now()

	def _wrap(self, fn: Callable[[], None]) -> Callable[[], None]:
		def run() -> None:
			with self._lock:
				fn()
		return run

	def call_later(self, delay: float, fn: Callable[[], None]) -> Handle:
		return self._scheduler.call_later(delay, self._wrap(fn))

	def call_every(self, interval: float, fn: Callable[[], None]) -> Handle:
		return self._scheduler.call_every(interval, self._wrap(fn))


class SessionOrchestrator:
	def __init__(
		self,
		scheduler: Scheduler,
		settings: Optional[Settings] = None,
		*,
		generator: Optional[ChallengeGenerator] = None,
		tone_player: Optional[TonePlayerLike] = None,
		narrator: Optional[NarratorLike] = None,
		microphone: Optional[MicrophoneLike] = None,
		store: Optional[SettingsStoreLike] = None,
	) -> None:
		if settings is None:
			settings = store.load() if store is not None else Settings()
		self.scheduler = scheduler
		self._lock = threading.RLock()
		self._timeline = _Serialized(scheduler, self._lock)
		self.generator = generator or ChallengeGenerator()
		self.tone_player = tone_player
		self.narrator = narrator
		self.microphone = microphone
		self.store = store
		self.stabilizer = PitchStabilizer()
		self.scoring = ScoringAggregator()
		self.clock = SessionClock(
			self._timeline,
			settings.duration,
			on_expired=self._on_expired,
			on_tick=self._play_tick,
			tick_enabled=settings.tick_enabled,
		)
		self._settings = settings
		self.is_playing = False
		self.challenge: Optional[Challenge] = None
		self.display = IDLE_DISPLAY
		self.input_error: Optional[str] = None
		self.round = 0
		self._round_started = 0.0
		self._session_started = 0.0
		self._elapsed = 0
		self._pending: Optional[Handle] = None
		self._input_epoch = 0
		self._input_active = False

	@property
	def settings(self) -> Settings:
		return self._settings

	@property
	def elapsed_seconds(self) -> int:
		if self.is_playing:
			return int(self.scheduler.now() - self._session_started)
		return self._elapsed

	def snapshot(self) -> SessionSnapshot:
		with self._lock:
			return SessionSnapshot(
				is_playing=self.is_playing,
				time_left=self.clock.time_left,
				total_time=self.clock.total,
				display=self.display,
				challenge=self.challenge,
				elapsed_seconds=self.elapsed_seconds,
				detection=self.stabilizer.last,
				input_error=self.input_error,
				scoring=self.scoring.record,
				summary=self.scoring.summary(),
				settings=self._settings,
			)

	# lifecycle

	def toggle(self) -> None:
		with self._lock:
			if self.is_playing:
				self.stop()
			else:
				self.start()

	def start(self) -> None:
		with self._lock:
			if self.is_playing:
				return
			logger.info("Session started (%s, %s, %ds)", self._settings.game_mode, self._settings.note_mode, self._settings.duration)
			self.scoring.reset()
			self.input_error = None
			self.is_playing = True
			self._session_started = self.scheduler.now()
			self._elapsed = 0
			self.challenge = None
			self._advance(count_attempt=False)
			if self._settings.input_mode:
				self._start_input()

	def stop(self) -> None:
		with self._lock:
			if not self.is_playing:
				return
			self._elapsed = self.elapsed_seconds
			self.is_playing = False
			self.round += 1
			self.clock.stop()
			self._cancel_pending()
			self._call(self.narrator, "cancel_speech")
			self._stop_input()
			self.challenge = None
			self.display = PAUSED_DISPLAY
			logger.info("Session stopped after %ds", self._elapsed)

	def request_advance(self, round_: int) -> bool:
		"""Advance if ``round_`` is still the current round; otherwise a no-op."""
		with self._lock:
			if not self.is_playing or round_ != self.round:
				logger.debug("Dropping advance for round %d (current %d)", round_, self.round)
				return False
			self._advance(count_attempt=True)
			return True

	def advance(self) -> bool:
		with self._lock:
			return self.request_advance(self.round)

	def _advance(self, count_attempt: bool) -> None:
		self._cancel_pending()
		if count_attempt:
			self.scoring.count_attempt()
		previous = self.challenge.root if self.challenge is not None else None
		self.challenge = self.generator.next(previous, self._settings)
		self.display = self.challenge.label
		self.round += 1
		self._round_started = self.scheduler.now()
		self.stabilizer.reset()
		self.clock.start()
		logger.debug("Round %d: %s", self.round, self.challenge.label)
		if self._settings.voice_enabled:
			self._call(self.narrator, "speak", spoken_text(self.challenge), self.challenge.string)

	def _cancel_pending(self) -> None:
		if self._pending is not None:
			self._pending.cancel()
			self._pending = None

	def _on_expired(self) -> None:
		with self._lock:
			if not self.is_playing:
				return
			round_ = self.round
			self._cancel_pending()
			self._pending = self._timeline.call_later(NEXT_CHALLENGE_DELAY, lambda: self.request_advance(round_))

	# pitch input

	def on_frequency(self, frequency: Optional[float]) -> Detection:
		with self._lock:
			detection = self.stabilizer.feed(frequency)
			challenge = self.challenge
			if not self.is_playing or challenge is None or not detection.stable:
				return detection
			now_ms = _ms(self.scheduler.now())
			target = challenge.pitch_class
			if detection.label == target:
				self.scoring.record_correct(target, _ms(self._round_started), now_ms)
				self._call(self.tone_player, "play_success_chime")
				self._advance(count_attempt=True)
			elif self.scoring.record_mistake(target, now_ms):
				logger.debug("Mistake on %s: heard %s", target, detection.label)
			return detection

	def _start_input(self) -> None:
		if self._input_active or self.microphone is None:
			return
		self._input_epoch += 1
		epoch = self._input_epoch

		def on_frame(frequency: Optional[float]) -> None:
			# Called from the capture thread; hop onto the timeline
			self._timeline.call_later(0, lambda: self._on_frame(epoch, frequency))

		try:
			self.microphone.start(on_frame)
		except MicrophoneError as e:
			logger.warning("Audio input disabled: %s", e)
			self.input_error = str(e)
			self._apply_settings(self._settings.updated(input_mode=False))
			return
		self._input_active = True
		self.input_error = None

	def _on_frame(self, epoch: int, frequency: Optional[float]) -> None:
		with self._lock:
			if epoch != self._input_epoch:
				return
			self.on_frequency(frequency)

	def _stop_input(self) -> None:
		self._input_epoch += 1
		self.stabilizer.reset()
		if not self._input_active:
			return
		self._input_active = False
		if self.microphone is not None:
			self.microphone.stop()

	# settings

	def update_settings(self, **changes: Any) -> Settings:
		"""Apply a settings change atomically; invalid values raise ValidationError."""
		with self._lock:
			new = self._settings.updated(**changes)
			self._apply_settings(new)
			return new

	def _apply_settings(self, new: Settings) -> None:
		old = self._settings
		self._settings = new
		self.clock.configure(new.duration, new.tick_enabled)
		if new.note_mode != old.note_mode and not self.is_playing:
			self.generator.reset_notes()
		if new.input_mode != old.input_mode and self.is_playing:
			if new.input_mode:
				self._start_input()
			else:
				self._stop_input()
		if self.store is not None:
			self.store.save(new)

	# collaborators

	def _play_tick(self, is_high: bool) -> None:
		self._call(self.tone_player, "play_tick", is_high)

	def _call(self, target: Any, method: str, *args: Any) -> None:
		if target is None:
			return
		try:
			getattr(target, method)(*args)
		except Exception as e:
			logger.warning("%s.%s failed: %s", type(target).__name__, method, e)
