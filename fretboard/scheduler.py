"""Timeline used by the clock and the session.

Every timer callback of a session runs on one logical timeline. Two
implementations are provided: ``ManualScheduler`` advances virtual time on
demand, and ``LoopScheduler`` runs an asyncio event loop on a worker thread.
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import threading
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class Handle:
	"""Cancellable timer. Cancelling is synchronous and idempotent."""

	def __init__(self) -> None:
		self.cancelled = False
		self._on_cancel: Optional[Callback] = None

	def cancel(self) -> None:
		if self.cancelled:
			return
		self.cancelled = True
		if self._on_cancel is not None:
			self._on_cancel()
			self._on_cancel = None


class Scheduler(Protocol):
	def now(self) -> float: ...

	def call_later(self, delay: float, fn: Callback) -> Handle: ...

	def call_every(self, interval: float, fn: Callback) -> Handle: ...


class ManualScheduler:
	"""Virtual clock. Time moves only through ``advance``.

	Times are kept in whole milliseconds so periodic timers do not drift.
	"""

	def __init__(self) -> None:
		self._now_ms = 0
		self._seq = itertools.count()
		self._queue: List[Tuple[int, int, Handle, Callback, int]] = []

	def now(self) -> float:
		return self._now_ms / 1000.0

	def _push(self, due_ms: int, handle: Handle, fn: Callback, interval_ms: int) -> None:
		heapq.heappush(self._queue, (due_ms, next(self._seq), handle, fn, interval_ms))

	def call_later(self, delay: float, fn: Callback) -> Handle:
		handle = Handle()
		self._push(self._now_ms + int(round(delay * 1000)), handle, fn, 0)
		return handle

	def call_every(self, interval: float, fn: Callback) -> Handle:
		interval_ms = int(round(interval * 1000))
		if interval_ms <= 0:
			raise ValueError("interval must be positive")
		handle = Handle()
		self._push(self._now_ms + interval_ms, handle, fn, interval_ms)
		return handle

	@property
	def pending(self) -> int:
		return sum(1 for entry in self._queue if not entry[2].cancelled)

	def advance(self, seconds: float) -> None:
		target = self._now_ms + int(round(seconds * 1000))
		while self._queue and self._queue[0][0] <= target:
			due_ms, _, handle, fn, interval_ms = heapq.heappop(self._queue)
			if handle.cancelled:
				continue
			self._now_ms = due_ms
			fn()
			if interval_ms and not handle.cancelled:
				self._push(due_ms + interval_ms, handle, fn, interval_ms)
		self._now_ms = target


class LoopScheduler:
	"""asyncio event loop running on a daemon thread.

	Timers may be created and cancelled from any thread. A cancelled handle
	never runs its callback afterwards, even if the loop already picked it up.
	"""

	def __init__(self) -> None:
		self._loop = asyncio.new_event_loop()
		self._thread = threading.Thread(target=self._run, name="fretboard-timeline", daemon=True)
		self._thread.start()

	def _run(self) -> None:
		asyncio.set_event_loop(self._loop)
		self._loop.run_forever()

	def now(self) -> float:
		return self._loop.time()

	def _guarded(self, handle: Handle, fn: Callback) -> Callback:
		def run() -> None:
			if handle.cancelled:
				return
			try:
				fn()
			except Exception:
				logger.exception("Timer callback failed")
		return run

	def _attach(self, handle: Handle, timer: asyncio.TimerHandle) -> None:
		if handle.cancelled:
			timer.cancel()
			return
		handle._on_cancel = lambda: self._loop.call_soon_threadsafe(timer.cancel)

	def call_later(self, delay: float, fn: Callback) -> Handle:
		handle = Handle()
		run = self._guarded(handle, fn)

		def arm() -> None:
			self._attach(handle, self._loop.call_later(delay, run))

		self._loop.call_soon_threadsafe(arm)
		return handle

	def call_every(self, interval: float, fn: Callback) -> Handle:
		handle = Handle()
		run = self._guarded(handle, fn)

		def arm(due: float) -> None:
			def tick() -> None:
				run()
				if not handle.cancelled:
					arm(due + interval)
			self._attach(handle, self._loop.call_at(due, tick))

		self._loop.call_soon_threadsafe(lambda: arm(self._loop.time() + interval))
		return handle

	def close(self) -> None:
		if self._loop.is_closed():
			return
		self._loop.call_soon_threadsafe(self._loop.stop)
		self._thread.join(timeout=1.0)
		self._loop.close()
