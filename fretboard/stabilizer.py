from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional

from .models import Detection
from .theory import display_name, frequency_to_pitch_class

STABILITY_WINDOW = 5


class PitchStabilizer:
	"""Debounces per-frame frequency estimates into a confident pitch class.

	A label is stable once the last ``capacity`` frames all agree. A frame
	with no usable estimate empties the window.
	"""

	def __init__(self, capacity: int = STABILITY_WINDOW) -> None:
		self.capacity = capacity
		self._window: Deque[str] = deque(maxlen=capacity)
		self.last = Detection()

	@property
	def window(self) -> List[str]:
		return list(self._window)

	def reset(self) -> None:
		self._window.clear()
		self.last = Detection()

	def feed(self, frequency: Optional[float]) -> Detection:
		label = frequency_to_pitch_class(frequency)
		if label is None:
			self._window.clear()
			self.last = Detection(frequency=frequency)
			return self.last
		self._window.append(label)
		stable = len(self._window) == self.capacity and all(n == label for n in self._window)
		self.last = Detection(label=label, display=display_name(label), frequency=frequency, stable=stable)
		return self.last
