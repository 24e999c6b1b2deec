from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .theory import INVERSION_SHORT, pitch_class as canonical_pitch_class


NoteMode = Literal["sharp", "flat", "mixed"]
GameMode = Literal["single", "chords", "triads"]
Inversion = Literal["root", "first", "second"]

IDLE_DISPLAY = "🎸"
PAUSED_DISPLAY = "⏸"


class Settings(BaseModel):
	model_config = ConfigDict(frozen=True)

	duration: int = Field(default=3, ge=1, le=15)
	note_mode: NoteMode = Field(default="mixed")
	game_mode: GameMode = Field(default="single")
	voice_enabled: bool = Field(default=True)
	tick_enabled: bool = Field(default=True)
	string_mode: bool = Field(default=False)
	input_mode: bool = Field(default=False)

	def updated(self, **changes: object) -> Settings:
		"""Return a validated copy with ``changes`` applied, all or nothing."""
		return Settings.model_validate({**self.model_dump(), **changes})


class Challenge(BaseModel):
	model_config = ConfigDict(frozen=True)

	root: str
	quality: Optional[str] = None
	inversion: Optional[Inversion] = None
	string: Optional[str] = None

	@property
	def label(self) -> str:
		if self.inversion is not None:
			return f"{INVERSION_SHORT[self.inversion]} {self.root} {self.quality}"
		if self.quality is not None:
			return f"{self.root} {self.quality}"
		return self.root

	@property
	def pitch_class(self) -> str:
		return canonical_pitch_class(self.root)


class NoteStats(BaseModel):
	correct: int = 0
	mistakes: int = 0
	total_time_ms: int = 0


class ScoringRecord(BaseModel):
	reaction_times: List[int] = Field(default_factory=list)
	total_attempts: int = 0
	note_stats: Dict[str, NoteStats] = Field(default_factory=dict)


class ScoringSummary(BaseModel):
	correct: int = 0
	attempts: int = 0
	average_ms: int = 0
	fastest_ms: int = 0
	most_failed: Optional[str] = None
	most_failed_count: int = 0
	slowest_note: Optional[str] = None
	fastest_note: Optional[str] = None
	recent: List[int] = Field(default_factory=list)


class Detection(BaseModel):
	model_config = ConfigDict(frozen=True)

	label: Optional[str] = None
	display: Optional[str] = None
	frequency: Optional[float] = None
	stable: bool = False


class SessionSnapshot(BaseModel):
	model_config = ConfigDict(frozen=True)

	is_playing: bool
	time_left: int
	total_time: int
	display: str
	challenge: Optional[Challenge] = None
	elapsed_seconds: int = 0
	detection: Detection = Field(default_factory=Detection)
	input_error: Optional[str] = None
	scoring: ScoringRecord = Field(default_factory=ScoringRecord)
	summary: ScoringSummary = Field(default_factory=ScoringSummary)
	settings: Settings
