"""
Mastery - derive mastery level and confidence from attempt statistics.

Mastery is judged on a small rolling window of recent attempts so a learner
can recover from early mistakes. MASTERED is sticky: only an explicit demote
takes an item back down.
"""

from __future__ import annotations
import math
from typing import TYPE_CHECKING, Optional, Sequence

from chordcore.srs.constants import (
    ConfidenceLevel,
    FAMILIAR_ACCURACY_THRESHOLD,
    MASTERED_ACCURACY_THRESHOLD,
    MASTERED_RESPONSE_TIME_THRESHOLD,
    MASTERY_WINDOW_SIZE,
    MAX_RESPONSE_TIME_PENALTY_MS,
    MODERATE_MAX_AVG_MS,
    MODERATE_MIN_ACCURACY,
    MODERATE_MIN_ATTEMPTS,
    MasteryLevel,
    RESPONSE_TIME_WINDOW_SIZE,
    STRONG_MAX_AVG_MS,
    STRONG_MIN_ACCURACY,
    STRONG_MIN_ATTEMPTS,
)

if TYPE_CHECKING:
    from chordcore.srs.progress import AttemptEntry, LearningProgress


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward (2.5 -> 3, not 2)."""
    return math.floor(value + 0.5)


def cap_latency(latency_ms: float) -> float:
    """Clamp a single latency into [0, MAX_RESPONSE_TIME_PENALTY_MS]."""
    return min(max(0.0, float(latency_ms)), float(MAX_RESPONSE_TIME_PENALTY_MS))


def calculate_new_average(current_average: float, new_value: float, total_count: int) -> float:
    """
    Incremental mean.

    `total_count` already includes the new value. The first value becomes the
    average as-is; later values are folded in and rounded to whole ms.
    """
    if total_count <= 1:
        return new_value
    return round_half_up((current_average * (total_count - 1) + new_value) / total_count)


def recent_accuracy(window: Sequence["AttemptEntry"]) -> float:
    """Fraction correct over the whole window (0 for an empty window)."""
    if not window:
        return 0.0
    return sum(1 for a in window if a.correct) / len(window)


def recent_average_latency(window: Sequence["AttemptEntry"]) -> float:
    """Unrounded mean latency of the last RESPONSE_TIME_WINDOW_SIZE entries."""
    entries = list(window)[-RESPONSE_TIME_WINDOW_SIZE:]
    if not entries:
        return 0.0
    return sum(a.latency_ms for a in entries) / len(entries)


def rolling_average_latency(window: Sequence["AttemptEntry"]) -> float:
    """Rounded mean latency of the window, as stored on the aggregate."""
    if not window:
        return 0
    return round_half_up(recent_average_latency(window))


def calculate_mastery_level(progress: "LearningProgress") -> MasteryLevel:
    """
    Compute the mastery level for an aggregate.

    Rules, in order:
    1. MASTERED stays MASTERED.
    2. No attempts (or an empty window) is NEW.
    3. A full window with >= 90% accuracy and mean latency under 1750 ms
       is MASTERED.
    4. A full window with >= 70% accuracy is FAMILIAR.
    5. Anything else is LEARNING.
    """
    if progress.mastery_level == MasteryLevel.MASTERED:
        return MasteryLevel.MASTERED

    window = progress.recent_attempts
    if progress.total_attempts == 0 or not window:
        return MasteryLevel.NEW

    accuracy = recent_accuracy(window)
    avg_latency = recent_average_latency(window)
    window_full = len(window) >= MASTERY_WINDOW_SIZE

    if (
        window_full
        and accuracy >= MASTERED_ACCURACY_THRESHOLD
        and avg_latency < MASTERED_RESPONSE_TIME_THRESHOLD
    ):
        return MasteryLevel.MASTERED

    if window_full and accuracy >= FAMILIAR_ACCURACY_THRESHOLD:
        return MasteryLevel.FAMILIAR

    return MasteryLevel.LEARNING


def confidence_level_from_metrics(
    accuracy: float,
    total_attempts: int,
    average_response_time_ms: Optional[float] = None
) -> ConfidenceLevel:
    """Bucket lifetime accuracy, volume and speed into weak/moderate/strong."""
    if total_attempts < MODERATE_MIN_ATTEMPTS:
        return ConfidenceLevel.WEAK

    # No timing data counts as just-acceptable speed
    avg_time = average_response_time_ms or MODERATE_MAX_AVG_MS

    if (
        total_attempts >= STRONG_MIN_ATTEMPTS
        and accuracy >= STRONG_MIN_ACCURACY
        and avg_time <= STRONG_MAX_AVG_MS
    ):
        return ConfidenceLevel.STRONG

    if accuracy >= MODERATE_MIN_ACCURACY and avg_time <= MODERATE_MAX_AVG_MS:
        return ConfidenceLevel.MODERATE

    return ConfidenceLevel.WEAK


def confidence_level(progress: "LearningProgress") -> ConfidenceLevel:
    return confidence_level_from_metrics(
        progress.accuracy,
        progress.total_attempts,
        progress.average_response_time_ms,
    )
