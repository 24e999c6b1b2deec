from __future__ import annotations

import logging
import random
from typing import Optional

from .bag import ShuffleBag
from .models import Challenge, Settings
from .theory import CHORD_QUALITIES, INVERSIONS, STRINGS, TRIAD_QUALITIES, note_pool, semitone_distance

logger = logging.getLogger(__name__)


class ChallengeGenerator:
	def __init__(self, rng: Optional[random.Random] = None) -> None:
		self.rng = rng or random.Random()
		self.note_bag: ShuffleBag[str] = ShuffleBag(self.rng)
		self.string_bag: ShuffleBag[str] = ShuffleBag(self.rng)
		self.last_string: Optional[str] = None

	def reset_notes(self) -> None:
		self.note_bag.clear()

	def _draw_root(self, previous_root: Optional[str], settings: Settings) -> str:
		pool = note_pool(settings.note_mode)
		candidate = self.note_bag.draw(pool)
		# Only one retry: an adjacent note is accepted on the second draw
		if settings.game_mode == "single" and previous_root is not None and len(self.note_bag) > 0:
			if semitone_distance(previous_root, candidate) <= 1:
				logger.debug("Requeueing %s, too close to %s", candidate, previous_root)
				self.note_bag.requeue(candidate)
				candidate = self.note_bag.draw(pool)
		return candidate

	def _draw_string(self) -> str:
		string = self.string_bag.draw(STRINGS, avoid=self.last_string)
		self.last_string = string
		return string

	def next(self, previous_root: Optional[str], settings: Settings) -> Challenge:
		root = self._draw_root(previous_root, settings)
		if settings.game_mode == "chords":
			return Challenge(root=root, quality=self.rng.choice(CHORD_QUALITIES))
		if settings.game_mode == "triads":
			return Challenge(
				root=root,
				quality=self.rng.choice(TRIAD_QUALITIES),
				inversion=self.rng.choice(INVERSIONS),
			)
		string = self._draw_string() if settings.string_mode else None
		return Challenge(root=root, string=string)
