from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

import librosa
import numpy as np
import numpy.typing as npt

from .session import MicrophoneError

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
FRAME_LENGTH = 4096  # analysis window, long enough for low E
BLOCK_SIZE = 1024  # hop between estimates
SILENCE_RMS = 0.01
YIN_FMIN = 60.0
YIN_FMAX = 1600.0

FrequencyCallback = Callable[[Optional[float]], None]


class YinDetector:
	"""One fundamental-frequency estimate per analysis frame, via librosa's YIN."""

	def __init__(self, sample_rate: int = SAMPLE_RATE, silence_rms: float = SILENCE_RMS) -> None:
		self.sample_rate = sample_rate
		self.silence_rms = silence_rms

	def estimate(self, frame: npt.NDArray[np.float32]) -> Optional[float]:
		if frame.size < FRAME_LENGTH:
			return None
		rms = float(np.sqrt(np.mean(np.square(frame))))
		if rms < self.silence_rms:
			return None
		f0 = librosa.yin(
			frame[-FRAME_LENGTH:],
			fmin=YIN_FMIN,
			fmax=YIN_FMAX,
			sr=self.sample_rate,
			frame_length=FRAME_LENGTH,
			center=False,
		)
		f0 = f0[np.isfinite(f0)]
		return float(np.median(f0)) if f0.size else None


class MicrophoneInput:
	"""Microphone capture feeding frequency estimates to a subscriber.

	``stop`` is synchronous and idempotent: once it returns the callback is
	never invoked again.
	"""

	def __init__(self, detector: Optional[YinDetector] = None, device: Optional[int] = None) -> None:
		self.detector = detector or YinDetector()
		self.device = device
		self._stream: Any = None
		self._callback: Optional[FrequencyCallback] = None
		self._buffer = np.zeros(FRAME_LENGTH, dtype=np.float32)
		self._lock = threading.Lock()

	@property
	def active(self) -> bool:
		return self._stream is not None

	def _audio_callback(self, indata: npt.NDArray[np.float32], frames: int, time_info: Any, status: Any) -> None:
		if status:
			logger.debug("Audio status: %s", status)
		with self._lock:
			callback = self._callback
		if callback is None:
			return
		block = indata[:, 0].astype(np.float32)
		self._buffer = np.concatenate([self._buffer, block])[-FRAME_LENGTH:]
		callback(self.detector.estimate(self._buffer))

	def start(self, callback: FrequencyCallback) -> None:
		if self._stream is not None:
			logger.debug("Microphone already running")
			return
		self._buffer = np.zeros(FRAME_LENGTH, dtype=np.float32)
		self._callback = callback
		try:
			import sounddevice as sd
			stream = sd.InputStream(
				device=self.device,
				samplerate=self.detector.sample_rate,
				channels=1,
				blocksize=BLOCK_SIZE,
				dtype="float32",
				callback=self._audio_callback,
			)
			stream.start()
		except Exception as e:
			self._callback = None
			raise MicrophoneError(f"Microphone unavailable: {e}") from e
		self._stream = stream
		logger.info("Microphone capture started")

	def stop(self) -> None:
		with self._lock:
			self._callback = None
		stream = self._stream
		self._stream = None
		if stream is None:
			return
		try:
			stream.stop()
			stream.close()
		except Exception as e:
			logger.error("Error stopping audio stream: %s", e, exc_info=True)
		logger.info("Microphone capture stopped")
