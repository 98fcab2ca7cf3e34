"""
Persistence - ProgressRepository over a key-value store

Each item type's aggregates live under one storage key as a map of
item_id -> ProgressRecord JSON. Per-finger totals live in their own map,
and aggregate counters under a separate stats key.

Loading is forgiving: an undecodable or non-map blob reads as empty and a
record that fails validation is skipped with a warning, so one damaged entry
never hides the rest of a learner's progress.
"""

from __future__ import annotations
import logging
from datetime import date, datetime
from typing import Optional

from pydantic import ValidationError

from chordcore.clock import Clock, utc_now
from chordcore.srs.schemas import (
    AttemptEntryRecord,
    DirectionRecord,
    FingerProgressRecord,
    ProgressRecord,
    ProgressStats,
)
from chordcore.srs.constants import (
    FINGER_PROGRESS_KEY,
    STATS_KEY,
    STORAGE_KEYS,
    WEAK_ACCURACY_THRESHOLD,
    ItemType,
    MasteryLevel,
)
from chordcore.srs.fingers import FingerProgress, normalize_finger_id
from chordcore.srs.mastery import calculate_mastery_level
from chordcore.srs.progress import (
    AttemptEntry,
    CharacterProgress,
    ChordOrWordProgress,
    DirectionProgress,
    LearningProgress,
    create_progress,
    normalize_item_id,
)
from chordcore.storage.base import KeyValueStore


logger = logging.getLogger(__name__)

_COUNT_FIELDS = {
    ItemType.CHARACTER: ("characters_learned", "characters_mastered"),
    ItemType.POWER_CHORD: ("power_chords_learned", "power_chords_mastered"),
    ItemType.WORD: ("words_learned", "words_mastered"),
}


# ---- Record conversion ----

def progress_to_record(progress: LearningProgress) -> ProgressRecord:
    direction_confidence = None
    if isinstance(progress, CharacterProgress):
        direction_confidence = {
            direction: DirectionRecord(
                attempts=stats.attempts,
                correct=stats.correct,
                average_time_ms=stats.average_time_ms,
                last_practiced=stats.last_practiced,
            )
            for direction, stats in progress.direction_confidence.items()
        }

    return ProgressRecord(
        item_id=progress.item_id,
        item_type=progress.item_type,
        ease_factor=progress.ease_factor,
        interval=progress.interval,
        next_review_date=progress.next_review_date,
        repetitions=progress.repetitions,
        total_attempts=progress.total_attempts,
        correct_attempts=progress.correct_attempts,
        average_response_time_ms=progress.average_response_time_ms,
        last_attempt_date=progress.last_attempt_date,
        last_correct_date=progress.last_correct_date,
        mastery_level=progress.mastery_level,
        direction_confidence=direction_confidence,
        recent_attempts=[
            AttemptEntryRecord(correct=a.correct, latency_ms=a.latency_ms, timestamp=a.timestamp)
            for a in progress.recent_attempts
        ],
    )


def progress_from_record(record: ProgressRecord) -> LearningProgress:
    common = dict(
        item_id=record.item_id,
        item_type=record.item_type,
        ease_factor=record.ease_factor,
        interval=record.interval,
        next_review_date=record.next_review_date,
        repetitions=record.repetitions,
        total_attempts=record.total_attempts,
        correct_attempts=record.correct_attempts,
        average_response_time_ms=record.average_response_time_ms,
        last_attempt_date=record.last_attempt_date,
        last_correct_date=record.last_correct_date,
        mastery_level=record.mastery_level,
        recent_attempts=[
            AttemptEntry(correct=a.correct, latency_ms=a.latency_ms, timestamp=a.timestamp)
            for a in record.recent_attempts
        ],
    )

    if record.item_type != ItemType.CHARACTER:
        return ChordOrWordProgress(**common)

    progress = CharacterProgress(**common)
    for direction, stats in (record.direction_confidence or {}).items():
        progress.direction_confidence[direction] = DirectionProgress(
            attempts=stats.attempts,
            correct=min(stats.correct, stats.attempts),
            average_time_ms=stats.average_time_ms,
            last_practiced=stats.last_practiced,
        )
    return progress


def finger_to_record(finger: FingerProgress) -> FingerProgressRecord:
    return FingerProgressRecord(
        finger_id=finger.finger_id,
        total_attempts=finger.total_attempts,
        correct_attempts=finger.correct_attempts,
        accuracy=finger.accuracy,
        average_response_time_ms=finger.average_response_time_ms,
        confidence_level=finger.confidence_level,
        weakest_direction=finger.weakest_direction,
        last_practiced=finger.last_practiced,
        characters=dict(finger.characters),
    )


def finger_from_record(record: FingerProgressRecord) -> FingerProgress:
    return FingerProgress(
        finger_id=record.finger_id,
        total_attempts=record.total_attempts,
        correct_attempts=record.correct_attempts,
        average_response_time_ms=record.average_response_time_ms,
        confidence_level=record.confidence_level,
        weakest_direction=record.weakest_direction,
        last_practiced=record.last_practiced,
        characters=dict(record.characters),
    )


# ---- Streaks ----

def advance_streak(
    current: int,
    longest: int,
    last_practice_date: Optional[str],
    today: date
) -> tuple[int, int]:
    """
    Streak after practising on `today`.

    Same calendar day leaves it unchanged, the next day extends it and any
    longer gap restarts at 1.
    """
    if last_practice_date:
        try:
            last = date.fromisoformat(last_practice_date[:10])
        except ValueError:
            last = None
    else:
        last = None

    if last is None:
        current = 1
    else:
        gap = (today - last).days
        if gap <= 0:
            current = max(current, 1)
        elif gap == 1:
            current += 1
        else:
            current = 1
    return current, max(longest, current)


class ProgressRepository:
    """Load and save LearningProgress aggregates through a KeyValueStore."""

    def __init__(self, store: KeyValueStore, clock: Clock = utc_now):
        self._store = store
        self._clock = clock

    # ---- Map I/O ----

    def _load_map(self, item_type: ItemType) -> dict[str, LearningProgress]:
        item_type = ItemType(item_type)
        key = STORAGE_KEYS[item_type]
        raw = self._store.get(key)
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.warning("Progress blob %s is not a map; starting empty", key)
            return {}

        items: dict[str, LearningProgress] = {}
        for raw_id, data in raw.items():
            try:
                progress = progress_from_record(ProgressRecord.model_validate(data))
            except (ValidationError, ValueError, TypeError) as exc:
                logger.warning("Skipping malformed %s record %r: %s", item_type.value, raw_id, exc)
                continue
            if progress.item_type != item_type:
                logger.warning(
                    "Skipping %r stored under %s with type %s",
                    raw_id, key, progress.item_type.value,
                )
                continue
            items[progress.item_id] = progress
        return items

    def _save_map(self, item_type: ItemType, items: dict[str, LearningProgress]) -> None:
        self._store.set(
            STORAGE_KEYS[item_type],
            {item_id: progress_to_record(p).to_storage() for item_id, p in items.items()},
        )

    # ---- Aggregates ----

    def get(self, item_id: str, item_type: ItemType) -> Optional[LearningProgress]:
        return self._load_map(item_type).get(normalize_item_id(item_id))

    def get_or_create(self, item_id: str, item_type: ItemType) -> LearningProgress:
        """
        Existing aggregate, or a fresh NEW one persisted immediately.

        Repeated calls return equal aggregates and write nothing new.
        """
        item_type = ItemType(item_type)
        item_id = normalize_item_id(item_id)
        items = self._load_map(item_type)
        existing = items.get(item_id)
        if existing is not None:
            return existing

        progress = create_progress(item_id, item_type, self._clock())
        items[item_id] = progress
        self._save_map(item_type, items)
        self._update_learned_counts(item_type, items)
        logger.debug("Created %s progress for %s", item_type.value, item_id)
        return progress

    def save(self, progress: LearningProgress, skip_mastery_recalc: bool = False) -> None:
        """
        Persist an aggregate.

        Mastery is recomputed first unless `skip_mastery_recalc` is set
        (guided practice and demotion keep the level they set).
        """
        if not skip_mastery_recalc:
            progress.mastery_level = calculate_mastery_level(progress)
        items = self._load_map(progress.item_type)
        items[progress.item_id] = progress
        self._save_map(progress.item_type, items)
        self._update_learned_counts(progress.item_type, items)

    def save_many(self, progress_items: list[LearningProgress], skip_mastery_recalc: bool = False) -> None:
        """Persist several aggregates with one write per item type."""
        by_type: dict[ItemType, list[LearningProgress]] = {}
        for progress in progress_items:
            by_type.setdefault(progress.item_type, []).append(progress)

        for item_type, group in by_type.items():
            items = self._load_map(item_type)
            for progress in group:
                if not skip_mastery_recalc:
                    progress.mastery_level = calculate_mastery_level(progress)
                items[progress.item_id] = progress
            self._save_map(item_type, items)
            self._update_learned_counts(item_type, items)

    def get_all(self, item_type: ItemType) -> list[LearningProgress]:
        return list(self._load_map(item_type).values())

    def get_all_progress(self) -> dict[ItemType, list[LearningProgress]]:
        return {item_type: self.get_all(item_type) for item_type in ItemType}

    def get_items_due_for_review(
        self,
        item_type: ItemType,
        now: Optional[datetime] = None
    ) -> list[LearningProgress]:
        """Aggregates with next_review_date <= now, earliest first."""
        now = now or self._clock()
        due = [p for p in self.get_all(item_type) if p.is_due(now)]
        due.sort(key=lambda p: p.next_review_date)
        return due

    def get_weak_items(
        self,
        item_type: ItemType,
        threshold: float = WEAK_ACCURACY_THRESHOLD
    ) -> list[LearningProgress]:
        """Attempted aggregates with lifetime accuracy below threshold, worst first."""
        weak = [p for p in self.get_all(item_type) if p.total_attempts > 0 and p.accuracy < threshold]
        weak.sort(key=lambda p: p.accuracy)
        return weak

    # ---- Fingers ----

    def _load_fingers(self) -> dict[str, FingerProgress]:
        raw = self._store.get(FINGER_PROGRESS_KEY)
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.warning("Finger progress blob is not a map; starting empty")
            return {}

        fingers: dict[str, FingerProgress] = {}
        for raw_id, data in raw.items():
            try:
                finger = finger_from_record(FingerProgressRecord.model_validate(data))
            except (ValidationError, ValueError, TypeError) as exc:
                logger.warning("Skipping malformed finger record %r: %s", raw_id, exc)
                continue
            fingers[finger.finger_id] = finger
        return fingers

    def _save_fingers(self, fingers: dict[str, FingerProgress]) -> None:
        self._store.set(
            FINGER_PROGRESS_KEY,
            {finger_id: finger_to_record(f).to_storage() for finger_id, f in fingers.items()},
        )

    def get_finger_progress(self, finger_id: str) -> FingerProgress:
        """Stored totals for a finger, or empty totals if it was never practiced."""
        finger_id = normalize_finger_id(finger_id)
        return self._load_fingers().get(finger_id) or FingerProgress(finger_id=finger_id)

    def get_all_finger_progress(self) -> list[FingerProgress]:
        return list(self._load_fingers().values())

    def save_finger_progress(self, finger: FingerProgress) -> None:
        fingers = self._load_fingers()
        fingers[finger.finger_id] = finger
        self._save_fingers(fingers)

    # ---- Reset ----

    def clear_all(self) -> None:
        for key in STORAGE_KEYS.values():
            self._store.remove(key)
        self._store.remove(FINGER_PROGRESS_KEY)
        self._store.remove(STATS_KEY)
        logger.info("Cleared all progress")

    def clear_by_type(self, item_type: ItemType) -> None:
        """Drop one type's aggregates; finger totals go with the characters."""
        item_type = ItemType(item_type)
        self._store.remove(STORAGE_KEYS[item_type])
        if item_type == ItemType.CHARACTER:
            self._store.remove(FINGER_PROGRESS_KEY)
        self._update_learned_counts(item_type, {})
        logger.info("Cleared %s progress", item_type.value)

    # ---- Stats ----

    def get_total_stats(self) -> ProgressStats:
        raw = self._store.get(STATS_KEY)
        if raw is None:
            return ProgressStats()
        try:
            return ProgressStats.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Malformed progress stats; resetting: %s", exc)
            return ProgressStats()

    def _save_stats(self, stats: ProgressStats) -> None:
        self._store.set(STATS_KEY, stats.to_storage())

    def update_stats(self, practice_time_ms: float) -> ProgressStats:
        """Count a finished session, add its practice time and advance the streak."""
        stats = self.get_total_stats()
        stats.total_practice_time_ms += max(0.0, practice_time_ms)
        stats.sessions_completed += 1
        today = self._clock().date()
        stats.current_streak, stats.longest_streak = advance_streak(
            stats.current_streak,
            stats.longest_streak,
            stats.last_practice_date,
            today,
        )
        stats.last_practice_date = today.isoformat()
        self._save_stats(stats)
        return stats

    def _update_learned_counts(self, item_type: ItemType, items: dict[str, LearningProgress]) -> None:
        learned_field, mastered_field = _COUNT_FIELDS[item_type]
        stats = self.get_total_stats()
        setattr(stats, learned_field, sum(1 for p in items.values() if p.total_attempts > 0))
        setattr(
            stats,
            mastered_field,
            sum(1 for p in items.values() if p.mastery_level == MasteryLevel.MASTERED),
        )
        self._save_stats(stats)
