from __future__ import annotations

import random
from typing import Generic, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


class ShuffleBag(Generic[T]):
	"""Sampling without replacement over a pool, refilled once exhausted.

	Items are drawn from the end of the bag. A change of pool discards
	whatever was left and rebuilds from the new pool on the next draw.
	"""

	def __init__(self, rng: Optional[random.Random] = None) -> None:
		self._rng = rng or random.Random()
		self._items: List[T] = []
		self._pool: Optional[Tuple[T, ...]] = None

	def __len__(self) -> int:
		return len(self._items)

	@property
	def remaining(self) -> List[T]:
		return list(self._items)

	def clear(self) -> None:
		self._items = []
		self._pool = None

	def _shuffled(self, pool: Tuple[T, ...]) -> List[T]:
		items = list(pool)
		# Fisher-Yates
		for i in range(len(items) - 1, 0, -1):
			j = self._rng.randint(0, i)
			items[i], items[j] = items[j], items[i]
		return items

	def draw(self, pool: Sequence[T], avoid: Optional[T] = None) -> T:
		"""Draw the next item.

		``avoid`` only matters when the bag is rebuilt: the first item of the
		fresh permutation is swapped away if it equals ``avoid``.
		"""
		key = tuple(pool)
		if not key:
			raise ValueError("cannot draw from an empty pool")
		if key != self._pool:
			self._items = []
			self._pool = key
		if not self._items:
			self._items = self._shuffled(key)
			if avoid is not None and len(self._items) > 1 and self._items[-1] == avoid:
				self._items[-1], self._items[0] = self._items[0], self._items[-1]
		return self._items.pop()

	def requeue(self, item: T) -> None:
		"""Put ``item`` back so it is drawn last."""
		self._items.insert(0, item)
