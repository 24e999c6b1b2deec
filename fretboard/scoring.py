from __future__ import annotations

import logging
from typing import Dict

from .models import NoteStats, ScoringRecord, ScoringSummary

logger = logging.getLogger(__name__)

MISTAKE_COOLDOWN_MS = 1000
RECENT_WINDOW = 20


class ScoringAggregator:
	def __init__(self, cooldown_ms: int = MISTAKE_COOLDOWN_MS) -> None:
		self.cooldown_ms = cooldown_ms
		self._record = ScoringRecord()
		self._last_mistake: Dict[str, int] = {}

	@property
	def record(self) -> ScoringRecord:
		return self._record.model_copy(deep=True)

	def reset(self) -> None:
		self._record = ScoringRecord()
		self._last_mistake = {}

	def _note(self, note: str) -> NoteStats:
		return self._record.note_stats.setdefault(note, NoteStats())

	def count_attempt(self) -> None:
		self._record.total_attempts += 1

	def record_correct(self, note: str, started_ms: int, now_ms: int) -> int:
		elapsed = max(0, now_ms - started_ms)
		self._record.reaction_times.append(elapsed)
		st_n = self._note(note)
		st_n.correct += 1
		st_n.total_time_ms += elapsed
		logger.debug("Correct %s in %d ms", note, elapsed)
		return elapsed

	def record_mistake(self, note: str, now_ms: int) -> bool:
		"""Count a mistake against ``note`` unless one was counted within the cooldown."""
		last = self._last_mistake.get(note)
		if last is not None and now_ms - last < self.cooldown_ms:
			return False
		self._last_mistake[note] = now_ms
		self._note(note).mistakes += 1
		return True

	def summary(self) -> ScoringSummary:
		rec = self._record
		times = rec.reaction_times
		out = ScoringSummary(correct=len(times), attempts=rec.total_attempts, recent=times[-RECENT_WINDOW:])
		if times:
			out.average_ms = int(round(sum(times) / len(times)))
			out.fastest_ms = min(times)
		slowest_avg = 0.0
		fastest_avg = float("inf")
		for note, st_n in rec.note_stats.items():
			if st_n.mistakes > out.most_failed_count:
				out.most_failed_count = st_n.mistakes
				out.most_failed = note
			if st_n.correct > 0:
				avg = st_n.total_time_ms / st_n.correct
				if avg > slowest_avg:
					slowest_avg = avg
					out.slowest_note = note
				if avg < fastest_avg:
					fastest_avg = avg
					out.fastest_note = note
		return out
