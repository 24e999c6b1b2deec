from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .models import Settings

logger = logging.getLogger(__name__)

# Overrides the default ~/.fretboard data directory
ENV_HOME = "FRETBOARD_HOME"


def _data_path() -> Path:
	override = os.environ.get(ENV_HOME)
	dir_ = Path(override) if override else Path.home() / ".fretboard"
	return dir_ / "data.json"


class SettingsStore:
	"""Settings persisted as JSON. Unreadable data falls back to defaults."""

	def __init__(self, path: Optional[Path] = None) -> None:
		self.path = path or _data_path()

	def _load_raw(self) -> Dict[str, Any]:
		if not self.path.exists():
			return {}
		try:
			data = json.loads(self.path.read_text())
		except (OSError, ValueError) as e:
			logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
			return {}
		return data if isinstance(data, dict) else {}

	def _save_raw(self, data: Dict[str, Any]) -> None:
		self.path.parent.mkdir(parents=True, exist_ok=True)
		self.path.write_text(json.dumps(data, indent=2))

	def load(self) -> Settings:
		obj = self._load_raw().get("settings", {})
		if not isinstance(obj, dict):
			return Settings()
		try:
			return Settings.model_validate(obj)
		except ValidationError as e:
			logger.warning("Stored settings are invalid, using defaults: %s", e)
			return Settings()

	def save(self, s: Settings) -> None:
		raw = self._load_raw()
		raw["settings"] = s.model_dump()
		try:
			self._save_raw(raw)
		except OSError as e:
			logger.warning("Could not save settings: %s", e)
