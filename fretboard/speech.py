from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Optional

import pyttsx3

from .models import Challenge

logger = logging.getLogger(__name__)

SPEECH_RATE = 220

SPOKEN_INVERSIONS = {
	"root": "root position",
	"first": "first inversion",
	"second": "second inversion",
}

SPOKEN_QUALITIES = {
	"m7": "minor seven",
	"maj7": "major seven",
	"7": "dominant seven",
}


def spoken_note(note: str) -> str:
	# "A" alone reads as the article
	letter = "eigh" if note[0] == "A" else note[0].lower()
	if note.endswith("#"):
		return f"{letter} sharp"
	if note.endswith("b"):
		return f"{letter} flat"
	return letter


def spoken_text(challenge: Challenge) -> str:
	parts = []
	if challenge.inversion is not None:
		parts.append(SPOKEN_INVERSIONS[challenge.inversion])
	parts.append(spoken_note(challenge.root))
	if challenge.quality is not None:
		parts.append(SPOKEN_QUALITIES.get(challenge.quality, challenge.quality.lower()))
	text = " ".join(parts)
	if challenge.inversion is not None:
		text += " triad"
	return text


def with_string(text: str, string: Optional[str]) -> str:
	if string:
		return f"{text}, on {string} string"
	return text


class SpeechNarrator:
	"""Speaks on a worker thread so callers never wait for the engine."""

	def __init__(self, rate: int = SPEECH_RATE) -> None:
		self.rate = rate
		self._queue: "queue.Queue[str]" = queue.Queue()
		self._engine: Any = None
		self._thread: Optional[threading.Thread] = None
		self._lock = threading.Lock()
		self._unavailable = False

	def _ensure_worker(self) -> None:
		with self._lock:
			if self._unavailable:
				return
			if self._thread is None or not self._thread.is_alive():
				self._thread = threading.Thread(target=self._run, name="fretboard-speech", daemon=True)
				self._thread.start()

	def _run(self) -> None:
		try:
			engine = pyttsx3.init()
			engine.setProperty("rate", self.rate)
		except Exception as e:
			logger.warning("Speech engine unavailable: %s", e)
			self._unavailable = True
			return
		self._engine = engine
		while True:
			text = self._queue.get()
			try:
				engine.say(text)
				engine.runAndWait()
			except Exception as e:
				logger.warning("Speech failed: %s", e)

	def speak(self, text: str, string: Optional[str] = None) -> None:
		self.cancel_speech()
		self._ensure_worker()
		self._queue.put(with_string(text, string))

	def cancel_speech(self) -> None:
		while True:
			try:
				self._queue.get_nowait()
			except queue.Empty:
				break
		engine = self._engine
		if engine is not None:
			try:
				engine.stop()
			except Exception as e:
				logger.warning("Could not cancel speech: %s", e)
