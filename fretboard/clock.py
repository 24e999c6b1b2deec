from __future__ import annotations

import logging
from typing import Callable, Optional

from .scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)

TICK_INTERVAL = 0.1


class SessionClock:
	"""Countdown in deciseconds.

	``on_tick(is_high)`` fires on whole-second boundaries (low) and at zero
	(high) when ticks are enabled. ``on_expired`` fires once per countdown.
	"""

	def __init__(
		self,
		scheduler: Scheduler,
		duration: int,
		on_expired: Callable[[], None],
		on_tick: Optional[Callable[[bool], None]] = None,
		tick_enabled: bool = True,
	) -> None:
		self.scheduler = scheduler
		self.duration = duration
		self._next_duration = duration
		self.tick_enabled = tick_enabled
		self.on_expired = on_expired
		self.on_tick = on_tick
		self.time_left = duration * 10
		self.running = False
		self._handle: Optional[Handle] = None
		self._expired = False

	@property
	def total(self) -> int:
		return self.duration * 10

	def configure(self, duration: int, tick_enabled: bool) -> None:
		"""A new duration applies now if stopped, otherwise from the next ``start``."""
		self.tick_enabled = tick_enabled
		self._next_duration = duration
		if not self.running:
			self.duration = duration
			self.time_left = self.total

	def _cancel(self) -> None:
		if self._handle is not None:
			self._handle.cancel()
			self._handle = None

	def start(self) -> None:
		self._cancel()
		self.duration = self._next_duration
		self.running = True
		self._expired = False
		self.time_left = self.total
		self._handle = self.scheduler.call_every(TICK_INTERVAL, self._tick)

	def stop(self) -> None:
		self._cancel()
		self.running = False
		self.duration = self._next_duration
		self.time_left = self.total

	def _cue(self, is_high: bool) -> None:
		if self.tick_enabled and self.on_tick is not None:
			self.on_tick(is_high)

	def _tick(self) -> None:
		if self._expired:
			return
		value = self.time_left - 1
		if value > 0:
			self.time_left = value
			if value % 10 == 0:
				self._cue(False)
			return
		self.time_left = 0
		self._expired = True
		# Hold at zero until restarted
		self._cancel()
		self._cue(True)
		logger.debug("Countdown expired")
		self.on_expired()
