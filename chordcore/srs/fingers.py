"""
Finger Progress - per-finger totals over character attempts

Workflow:
1. A character attempt that names its finger is folded into that finger's
   totals (counts, incremental average latency, confidence)
2. The character seen in each direction is remembered, so the weakest
   direction can be read off the stored character aggregates
3. Quiz code asks for a finger's confidence, overall and per direction
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Mapping, Optional

from chordcore.clock import ensure_utc
from chordcore.srs.constants import (
    ALL_DIRECTIONS,
    CONFIDENCE_SCORES,
    OVERALL_MODERATE_SCORE,
    OVERALL_STRONG_SCORE,
    ConfidenceLevel,
    Direction,
)
from chordcore.srs.mastery import calculate_new_average, cap_latency, confidence_level_from_metrics
from chordcore.srs.progress import LearningProgress, normalize_item_id


def normalize_finger_id(finger_id: str) -> str:
    normalized = (finger_id or "").strip()
    if not normalized:
        raise ValueError("finger_id must not be empty")
    return normalized


@dataclass
class FingerProgress:
    """Lifetime totals for one finger across every character it types."""
    finger_id: str
    total_attempts: int = 0
    correct_attempts: int = 0
    average_response_time_ms: float = 0
    confidence_level: ConfidenceLevel = ConfidenceLevel.WEAK
    weakest_direction: Optional[Direction] = None
    last_practiced: Optional[datetime] = None
    characters: dict[Direction, str] = field(default_factory=dict)

    def __post_init__(self):
        self.finger_id = normalize_finger_id(self.finger_id)
        self.confidence_level = ConfidenceLevel(self.confidence_level)
        if self.weakest_direction is not None:
            self.weakest_direction = Direction(self.weakest_direction)
        self.total_attempts = max(0, self.total_attempts)
        self.correct_attempts = min(max(0, self.correct_attempts), self.total_attempts)
        if self.last_practiced is not None:
            self.last_practiced = ensure_utc(self.last_practiced)
        self.characters = {
            Direction(d): normalize_item_id(item_id) for d, item_id in self.characters.items()
        }

    @property
    def accuracy(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return self.correct_attempts / self.total_attempts

    def record_attempt(
        self,
        correct: bool,
        latency_ms: float,
        now: datetime,
        direction: Optional[Direction] = None,
        item_id: Optional[str] = None
    ) -> None:
        self.total_attempts += 1
        if correct:
            self.correct_attempts += 1
        self.average_response_time_ms = calculate_new_average(
            self.average_response_time_ms, cap_latency(latency_ms), self.total_attempts
        )
        self.confidence_level = confidence_level_from_metrics(
            self.accuracy, self.total_attempts, self.average_response_time_ms
        )
        self.last_practiced = now
        if direction is not None and item_id:
            self.characters[Direction(direction)] = normalize_item_id(item_id)


@dataclass(frozen=True)
class FingerConfidence:
    overall: ConfidenceLevel
    by_direction: dict[Direction, ConfidenceLevel]


def overall_confidence(levels: Iterable[ConfidenceLevel]) -> ConfidenceLevel:
    """Average the weak/moderate/strong scores of several directions."""
    scores = [CONFIDENCE_SCORES[ConfidenceLevel(level)] for level in levels]
    if not scores:
        return ConfidenceLevel.WEAK

    average = sum(scores) / len(scores)
    if average >= OVERALL_STRONG_SCORE:
        return ConfidenceLevel.STRONG
    if average >= OVERALL_MODERATE_SCORE:
        return ConfidenceLevel.MODERATE
    return ConfidenceLevel.WEAK


def weakest_direction(
    progress_by_direction: Mapping[Direction, Optional[LearningProgress]]
) -> Optional[Direction]:
    """
    Direction whose character has the lowest lifetime accuracy.

    Unpracticed characters are ignored; a finger with nothing below 100%
    has no weakest direction.
    """
    weakest: Optional[Direction] = None
    lowest = 1.0
    for direction in ALL_DIRECTIONS:
        progress = progress_by_direction.get(direction)
        if progress is None or progress.total_attempts == 0:
            continue
        if progress.accuracy < lowest:
            lowest = progress.accuracy
            weakest = direction
    return weakest
