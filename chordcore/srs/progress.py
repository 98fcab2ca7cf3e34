"""
Learning Progress - per-item aggregate

One LearningProgress exists per learnable item (character, power chord or
word). It holds the SM-2 scheduling state, lifetime counters and a bounded
window of recent attempts used for mastery.

Characters additionally track per-direction confidence; that variant is
CharacterProgress. Power chords and words use ChordOrWordProgress.
Construct aggregates with create_progress(), never directly.
"""

from __future__ import annotations
import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from chordcore.clock import ensure_utc, utc_now
from chordcore.srs.constants import (
    ALL_DIRECTIONS,
    Direction,
    INITIAL_EASE_FACTOR,
    ItemType,
    MASTERY_WINDOW_SIZE,
    MAX_EASE_FACTOR,
    MIN_EASE_FACTOR,
    MasteryLevel,
)
from chordcore.srs.mastery import (
    calculate_mastery_level,
    calculate_new_average,
    cap_latency,
    rolling_average_latency,
)


def normalize_item_id(item_id: str) -> str:
    """Item ids are case-insensitive; store them lower-cased."""
    normalized = (item_id or "").strip().lower()
    if not normalized:
        raise ValueError("item_id must not be empty")
    return normalized


def clamp_ease(ease_factor: float) -> float:
    return min(max(float(ease_factor), MIN_EASE_FACTOR), MAX_EASE_FACTOR)


@dataclass
class AttemptEntry:
    """One entry in the recent-attempts window."""
    correct: bool
    latency_ms: float
    timestamp: datetime


@dataclass
class DirectionProgress:
    """Counters for one switch direction of a character."""
    attempts: int = 0
    correct: int = 0
    average_time_ms: float = 0
    last_practiced: Optional[datetime] = None

    @property
    def accuracy(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.correct / self.attempts


@dataclass
class LearningProgress:
    """
    Base aggregate shared by every item type.

    Invariants kept by __post_init__ and the mutators:
    - ease_factor within [MIN_EASE_FACTOR, MAX_EASE_FACTOR]
    - correct_attempts <= total_attempts
    - len(recent_attempts) <= MASTERY_WINDOW_SIZE (oldest evicted first)
    """
    item_id: str
    item_type: ItemType

    # SM-2 scheduling state
    ease_factor: float = INITIAL_EASE_FACTOR
    interval: float = 0  # days, may be fractional
    next_review_date: datetime = field(default_factory=utc_now)
    repetitions: int = 0

    # Lifetime counters
    total_attempts: int = 0
    correct_attempts: int = 0
    average_response_time_ms: float = 0
    last_attempt_date: Optional[datetime] = None
    last_correct_date: Optional[datetime] = None

    mastery_level: MasteryLevel = MasteryLevel.NEW
    recent_attempts: list[AttemptEntry] = field(default_factory=list)

    def __post_init__(self):
        self.item_id = normalize_item_id(self.item_id)
        self.item_type = ItemType(self.item_type)
        self.mastery_level = MasteryLevel(self.mastery_level)
        self.ease_factor = clamp_ease(self.ease_factor)
        self.interval = max(0.0, self.interval)
        self.repetitions = max(0, self.repetitions)
        self.total_attempts = max(0, self.total_attempts)
        self.correct_attempts = min(max(0, self.correct_attempts), self.total_attempts)
        self.next_review_date = ensure_utc(self.next_review_date)
        if self.last_attempt_date is not None:
            self.last_attempt_date = ensure_utc(self.last_attempt_date)
        if self.last_correct_date is not None:
            self.last_correct_date = ensure_utc(self.last_correct_date)
        self.recent_attempts = list(self.recent_attempts)[-MASTERY_WINDOW_SIZE:]

    # ---- Derived views ----

    @property
    def accuracy(self) -> float:
        """Lifetime accuracy (0 when never attempted)."""
        if self.total_attempts == 0:
            return 0.0
        return self.correct_attempts / self.total_attempts

    @property
    def has_practiced(self) -> bool:
        return self.total_attempts > 0

    @property
    def is_new(self) -> bool:
        return self.mastery_level == MasteryLevel.NEW

    @property
    def is_mastered(self) -> bool:
        return self.mastery_level == MasteryLevel.MASTERED

    def is_due(self, now: datetime) -> bool:
        return self.next_review_date <= now

    def hours_overdue(self, now: datetime) -> float:
        """Hours past next_review_date (0 when not yet due)."""
        delta = (now - self.next_review_date).total_seconds() / 3600.0
        return max(0.0, delta)

    def days_since_last_practice(self, now: datetime) -> Optional[float]:
        if self.last_attempt_date is None:
            return None
        return (now - self.last_attempt_date).total_seconds() / 86400.0

    # ---- Mutators ----

    def record_attempt(self, correct: bool, latency_ms: float, now: datetime) -> None:
        """
        Record a scored attempt.

        Updates counters, pushes into the recent window (evicting the oldest),
        refreshes the rolling latency average and recomputes mastery.
        """
        capped = cap_latency(latency_ms)
        self._update_counters(correct, now)

        self.recent_attempts.append(AttemptEntry(correct=correct, latency_ms=capped, timestamp=now))
        if len(self.recent_attempts) > MASTERY_WINDOW_SIZE:
            del self.recent_attempts[:-MASTERY_WINDOW_SIZE]

        self.average_response_time_ms = rolling_average_latency(self.recent_attempts)
        self.mastery_level = calculate_mastery_level(self)

    def record_counters_only(self, correct: bool, now: datetime) -> None:
        """Guided-practice attempt: lifetime counters and dates only."""
        self._update_counters(correct, now)

    def _update_counters(self, correct: bool, now: datetime) -> None:
        self.total_attempts += 1
        if correct:
            self.correct_attempts += 1
            self.last_correct_date = now
        self.last_attempt_date = now

    def demote(self, now: datetime) -> bool:
        """
        Drop a MASTERED item back to FAMILIAR for re-practice.

        Clears the recent window and makes the item due immediately.
        Returns False (and changes nothing) for any other level.
        """
        if self.mastery_level != MasteryLevel.MASTERED:
            return False
        self.mastery_level = MasteryLevel.FAMILIAR
        self.recent_attempts = []
        self.next_review_date = now
        return True

    def clone(self) -> "LearningProgress":
        return copy.deepcopy(self)

    def __str__(self) -> str:
        return f"LearningProgress({self.item_id}, {self.item_type.value}, mastery={self.mastery_level.value})"


def _default_direction_confidence() -> dict[Direction, DirectionProgress]:
    return {direction: DirectionProgress() for direction in ALL_DIRECTIONS}


@dataclass
class CharacterProgress(LearningProgress):
    """Character aggregate with per-direction confidence."""
    direction_confidence: dict[Direction, DirectionProgress] = field(
        default_factory=_default_direction_confidence
    )

    def __post_init__(self):
        super().__post_init__()
        if self.item_type != ItemType.CHARACTER:
            raise ValueError(f"CharacterProgress requires item_type=character, got {self.item_type.value}")
        confidence = {Direction(k): v for k, v in self.direction_confidence.items()}
        for direction in ALL_DIRECTIONS:
            confidence.setdefault(direction, DirectionProgress())
        self.direction_confidence = confidence

    def record_direction_attempt(
        self,
        direction: Direction,
        correct: bool,
        latency_ms: float,
        now: datetime
    ) -> None:
        stats = self.direction_confidence[Direction(direction)]
        stats.attempts += 1
        if correct:
            stats.correct += 1
        stats.last_practiced = now
        stats.average_time_ms = calculate_new_average(
            stats.average_time_ms,
            cap_latency(latency_ms),
            stats.attempts,
        )

    def weakest_direction(self) -> Optional[Direction]:
        """
        Direction most in need of practice.

        The first never-practiced direction wins outright; otherwise the
        direction with the lowest accuracy (first one on ties).
        """
        weakest: Optional[Direction] = None
        lowest = None
        for direction in ALL_DIRECTIONS:
            stats = self.direction_confidence[direction]
            if stats.attempts == 0:
                return direction
            if lowest is None or stats.accuracy < lowest:
                lowest = stats.accuracy
                weakest = direction
        return weakest

    def direction_accuracy_spread(self) -> float:
        """Max minus min accuracy across practiced directions."""
        practiced = [s.accuracy for s in self.direction_confidence.values() if s.attempts > 0]
        if len(practiced) < 2:
            return 0.0
        return max(practiced) - min(practiced)


@dataclass
class ChordOrWordProgress(LearningProgress):
    """Power chord or word aggregate (no direction tracking)."""

    def __post_init__(self):
        super().__post_init__()
        if self.item_type == ItemType.CHARACTER:
            raise ValueError("Use CharacterProgress for character items")


def create_progress(
    item_id: str,
    item_type: ItemType,
    now: Optional[datetime] = None
) -> LearningProgress:
    """Fresh NEW aggregate for an item, due immediately."""
    item_type = ItemType(item_type)
    now = now or utc_now()
    if item_type == ItemType.CHARACTER:
        return CharacterProgress(item_id=item_id, item_type=item_type, next_review_date=now)
    return ChordOrWordProgress(item_id=item_id, item_type=item_type, next_review_date=now)
