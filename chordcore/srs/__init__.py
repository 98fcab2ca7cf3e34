"""
SRS - spaced repetition and mastery tracking

Main API for per-item learning progress.

This package implements:
- An SM-2 variant with an accelerated early-interval ladder
- Mastery levels judged on a rolling window of recent attempts
- A repository that persists aggregates through a key-value store

Quick start:
    from chordcore import srs

    progress = repository.get_or_create("a", srs.ItemType.CHARACTER)
    progress.record_attempt(correct=True, latency_ms=640, now=now)
    quality = srs.quality_from_attempt(True, 640, item_type=progress.item_type)
    progress = srs.schedule_next(progress, quality, now)
    repository.save(progress)
"""

# Scheduling algorithm
from chordcore.srs.scheduler import (
    adjust_quality_for_attempts,
    expected_latency_ms,
    get_initial_interval,
    quality_from_attempt,
    schedule_next,
)

# Mastery
from chordcore.srs.mastery import (
    calculate_mastery_level,
    calculate_new_average,
    cap_latency,
    confidence_level,
    confidence_level_from_metrics,
    round_half_up,
)

# Aggregates and attempts
from chordcore.srs.progress import (
    AttemptEntry,
    CharacterProgress,
    ChordOrWordProgress,
    DirectionProgress,
    LearningProgress,
    create_progress,
)
from chordcore.srs.attempts import AttemptRecord, attempt_from_input

# Fingers
from chordcore.srs.fingers import FingerConfidence, FingerProgress, overall_confidence

# Persistence
from chordcore.srs.persistence import (
    ProgressRepository,
    progress_from_record,
    progress_to_record,
)

# Constants
from chordcore.srs.constants import (
    ALL_DIRECTIONS,
    ConfidenceLevel,
    Direction,
    ItemType,
    MASTERY_WINDOW_SIZE,
    MAX_EASE_FACTOR,
    MAX_RESPONSE_TIME_PENALTY_MS,
    MIN_EASE_FACTOR,
    MasteryLevel,
)


__all__ = [
    # Scheduling
    "adjust_quality_for_attempts",
    "expected_latency_ms",
    "get_initial_interval",
    "quality_from_attempt",
    "schedule_next",

    # Mastery
    "calculate_mastery_level",
    "calculate_new_average",
    "cap_latency",
    "confidence_level",
    "confidence_level_from_metrics",
    "round_half_up",

    # Aggregates
    "AttemptEntry",
    "AttemptRecord",
    "CharacterProgress",
    "ChordOrWordProgress",
    "DirectionProgress",
    "LearningProgress",
    "attempt_from_input",
    "create_progress",

    # Fingers
    "FingerConfidence",
    "FingerProgress",
    "overall_confidence",

    # Persistence
    "ProgressRepository",
    "progress_from_record",
    "progress_to_record",

    # Enums and parameters
    "ALL_DIRECTIONS",
    "ConfidenceLevel",
    "Direction",
    "ItemType",
    "MASTERY_WINDOW_SIZE",
    "MAX_EASE_FACTOR",
    "MAX_RESPONSE_TIME_PENALTY_MS",
    "MIN_EASE_FACTOR",
    "MasteryLevel",
]
