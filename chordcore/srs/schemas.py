"""
Pydantic models for persisted learning state.

These define the JSON stored in the key-value store and the export file
format. Field names are snake_case in Python and camelCase on disk; either
spelling is accepted on load.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from chordcore.srs.constants import (
    EXPORT_VERSION,
    INITIAL_EASE_FACTOR,
    MASTERY_WINDOW_SIZE,
    ConfidenceLevel,
    Direction,
    ItemType,
    MasteryLevel,
)


def _coerce_datetime(value: Any) -> Any:
    """Accept epoch milliseconds as well as ISO strings."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    return value


class StoredModel(BaseModel):
    """Base config: camelCase aliases, populate by either name."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class AttemptEntryRecord(StoredModel):
    """One entry of the recent-attempts window."""
    correct: bool
    latency_ms: float = Field(
        ge=0,
        validation_alias=AliasChoices("latencyMs", "responseTimeMs", "latency_ms"),
        description="Capped response time in milliseconds",
    )
    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp(cls, value):
        return _coerce_datetime(value)


class DirectionRecord(StoredModel):
    attempts: int = Field(default=0, ge=0)
    correct: int = Field(default=0, ge=0)
    average_time_ms: float = Field(default=0, ge=0)
    last_practiced: Optional[datetime] = None

    @field_validator("last_practiced", mode="before")
    @classmethod
    def _last_practiced(cls, value):
        return _coerce_datetime(value)


class ProgressRecord(StoredModel):
    """Persisted form of one LearningProgress aggregate."""
    item_id: str = Field(min_length=1)
    item_type: ItemType
    ease_factor: float = Field(default=INITIAL_EASE_FACTOR, description="SM-2 ease factor")
    interval: float = Field(default=0, ge=0, description="Days until next review")
    next_review_date: datetime
    repetitions: int = Field(default=0, ge=0)
    total_attempts: int = Field(default=0, ge=0)
    correct_attempts: int = Field(default=0, ge=0)
    average_response_time_ms: float = Field(default=0, ge=0)
    last_attempt_date: Optional[datetime] = None
    last_correct_date: Optional[datetime] = None
    mastery_level: MasteryLevel = MasteryLevel.NEW
    direction_confidence: Optional[dict[Direction, DirectionRecord]] = None
    recent_attempts: list[AttemptEntryRecord] = Field(default_factory=list)

    @field_validator("next_review_date", "last_attempt_date", "last_correct_date", mode="before")
    @classmethod
    def _dates(cls, value):
        return _coerce_datetime(value)

    @field_validator("recent_attempts")
    @classmethod
    def _window(cls, value):
        return value[-MASTERY_WINDOW_SIZE:]


class FingerProgressRecord(StoredModel):
    """Persisted form of one FingerProgress aggregate."""
    finger_id: str = Field(min_length=1)
    total_attempts: int = Field(default=0, ge=0)
    correct_attempts: int = Field(default=0, ge=0)
    accuracy: float = Field(default=0, ge=0, le=1, description="Derived; ignored on load")
    average_response_time_ms: float = Field(default=0, ge=0)
    confidence_level: ConfidenceLevel = ConfidenceLevel.WEAK
    weakest_direction: Optional[Direction] = None
    last_practiced: Optional[datetime] = None
    characters: dict[Direction, str] = Field(default_factory=dict)

    @field_validator("last_practiced", mode="before")
    @classmethod
    def _last_practiced(cls, value):
        return _coerce_datetime(value)


class ProgressStats(StoredModel):
    """Aggregate counters kept next to the per-type progress maps."""
    total_practice_time_ms: float = 0
    sessions_completed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_practice_date: Optional[str] = None  # YYYY-MM-DD
    characters_learned: int = 0
    characters_mastered: int = 0
    power_chords_learned: int = 0
    power_chords_mastered: int = 0
    words_learned: int = 0
    words_mastered: int = 0


class SessionRecord(StoredModel):
    """One practice session."""
    id: str
    type: str
    start_time: datetime
    end_time: Optional[datetime] = None
    items_attempted: int = 0
    items_correct: int = 0
    accuracy: float = 0
    average_response_time_ms: float = 0
    score: int = 0

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _times(cls, value):
        return _coerce_datetime(value)


class GlobalStats(StoredModel):
    total_sessions: int = 0
    total_attempts: int = 0
    total_correct: int = 0
    total_practice_time_ms: float = 0
    average_accuracy: float = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_practice_date: Optional[datetime] = None
    last_session_date: Optional[str] = None  # YYYY-MM-DD

    @field_validator("last_practice_date", mode="before")
    @classmethod
    def _last_practice(cls, value):
        return _coerce_datetime(value)


class ProgressExport(StoredModel):
    """Full export file. Versions 1-3 are readable; 3 is written."""
    version: int
    export_date: Optional[datetime] = None
    characters: dict[str, Any] = Field(default_factory=dict)
    power_chords: dict[str, Any] = Field(default_factory=dict)
    words: dict[str, Any] = Field(default_factory=dict)
    fingers: dict[str, Any] = Field(default_factory=dict)
    global_stats: Optional[GlobalStats] = None
    session_history: list[SessionRecord] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def _version(cls, value):
        if not 1 <= value <= EXPORT_VERSION:
            raise ValueError(f"Unsupported export version: {value}")
        return value
