"""
Scheduler - SM-2 variant

Pure scheduling transform (no storage calls):
1. Derive a 0-5 quality from the attempt (correctness + latency)
2. Adjust ease factor, clamped to [1.3, 3.5]
3. Pick the next interval (accelerated early ladder, then ease-multiplied)
4. Cap the interval by mastery and set the next review date
5. Recompute mastery

Callers load and save the aggregate; schedule_next returns a new one.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Optional

from chordcore.srs.constants import (
    CORRECT_QUALITY_BANDS,
    CORRECT_QUALITY_FLOOR,
    DEFAULT_EXPECTED_LATENCY_MS,
    EXPECTED_LATENCY_MS,
    EXPERIENCE_BAND,
    FAILED_REVIEW_INTERVAL,
    INCORRECT_FAST_MS,
    INCORRECT_SLOW_MS,
    INITIAL_INTERVALS,
    ItemType,
    MASTERED_MAX_INTERVAL_DAYS,
    MAX_EASE_FACTOR,
    MAX_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
    MasteryLevel,
    QUALITY_MAX,
    QUALITY_MIN,
    QUALITY_PASS,
)
from chordcore.srs.mastery import calculate_mastery_level, round_half_up
from chordcore.srs.progress import LearningProgress


def clamp_quality(quality: float) -> int:
    return int(min(max(round(quality), QUALITY_MIN), QUALITY_MAX))


def ease_delta(quality: int) -> float:
    """SM-2 ease adjustment: +0.1 at q=5, -0.8 at q=0."""
    miss = QUALITY_MAX - quality
    return 0.1 - miss * (0.08 + miss * 0.02)


def get_initial_interval(item_type: ItemType, repetitions: int) -> Optional[float]:
    """Accelerated interval (days) for this repetition index, or None past the ladder."""
    ladder = INITIAL_INTERVALS.get(ItemType(item_type), [])
    if 0 <= repetitions < len(ladder):
        return ladder[repetitions]
    return None


def max_interval_for(mastery_level: MasteryLevel) -> float:
    if mastery_level == MasteryLevel.MASTERED:
        return MASTERED_MAX_INTERVAL_DAYS
    return MAX_INTERVAL_DAYS


def schedule_next(
    progress: LearningProgress,
    quality: int,
    now: datetime
) -> LearningProgress:
    """
    Apply one SM-2 review to a copy of `progress`.

    Args:
        progress: Aggregate after the attempt has been recorded
        quality: Recall grade 0-5 (clamped)
        now: Review time

    Returns:
        Updated copy; the input is not modified
    """
    updated = progress.clone()
    quality = clamp_quality(quality)

    new_ease = updated.ease_factor + ease_delta(quality)
    updated.ease_factor = min(max(new_ease, MIN_EASE_FACTOR), MAX_EASE_FACTOR)

    if quality < QUALITY_PASS:
        updated.repetitions = 0
        updated.interval = FAILED_REVIEW_INTERVAL
    else:
        accelerated = get_initial_interval(updated.item_type, updated.repetitions)
        if accelerated is not None:
            updated.interval = accelerated
        else:
            updated.interval = round_half_up(updated.interval * updated.ease_factor)
        updated.repetitions += 1

    updated.interval = min(updated.interval, max_interval_for(updated.mastery_level))
    updated.next_review_date = now + timedelta(milliseconds=round(updated.interval * 86400000))

    updated.mastery_level = calculate_mastery_level(updated)
    return updated


# ---- Quality Derivation ----

def expected_latency_ms(
    item_type: Optional[ItemType],
    mastery_level: Optional[MasteryLevel] = None
) -> float:
    """Expected response time for the learner's experience band."""
    if item_type is None:
        return DEFAULT_EXPECTED_LATENCY_MS
    band = EXPERIENCE_BAND[MasteryLevel(mastery_level)] if mastery_level else "beginner"
    return EXPECTED_LATENCY_MS[ItemType(item_type)][band]


def quality_from_attempt(
    correct: bool,
    latency_ms: float,
    expected_ms: Optional[float] = None,
    item_type: Optional[ItemType] = None,
    mastery_level: Optional[MasteryLevel] = None
) -> int:
    """
    Map correctness and latency onto SM-2 quality.

    Incorrect: 0 under 500 ms (likely a misfire), 1 under 2 s, else 2.
    Correct: graded by latency / expected latency; always >= 3.
    """
    if not correct:
        if latency_ms < INCORRECT_FAST_MS:
            return 0
        if latency_ms < INCORRECT_SLOW_MS:
            return 1
        return 2

    if expected_ms is None:
        expected_ms = expected_latency_ms(item_type, mastery_level)
    ratio = latency_ms / expected_ms if expected_ms > 0 else 0.0

    for upper, quality in CORRECT_QUALITY_BANDS:
        if ratio < upper:
            return quality
    return CORRECT_QUALITY_FLOOR


def adjust_quality_for_attempts(quality: int, attempts: int) -> int:
    """Words answered after retries lose one quality point per retry, floor 3."""
    if attempts > 1 and quality > QUALITY_PASS:
        return max(QUALITY_PASS, quality - (attempts - 1))
    return quality
