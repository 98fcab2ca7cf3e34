"""
Progress Service - records attempts and tracks practice sessions

Workflow for one attempt:
1. Get-or-create the item's aggregate
2. Update direction confidence (characters with a direction)
3. Guided practice: bump counters only and save without mastery recalculation
4. Otherwise: record into the window, derive quality, apply SM-2, save
5. Fold character attempts that name a finger into that finger's totals
6. Update the active session and global stats

Also owns session history, daily streaks, export/import and resets.
"""

from __future__ import annotations
import logging
import uuid
from datetime import datetime
from typing import Callable, Optional

from pydantic import ValidationError

from chordcore.clock import Clock, utc_now
from chordcore.srs.schemas import (
    FingerProgressRecord,
    GlobalStats,
    ProgressExport,
    ProgressRecord,
    SessionRecord,
)
from chordcore.srs.attempts import AttemptRecord
from chordcore.srs.constants import (
    ACTIVE_SESSION_KEY,
    EXPORT_VERSION,
    GLOBAL_STATS_KEY,
    MAX_SESSION_HISTORY,
    SESSION_HISTORY_KEY,
    ConfidenceLevel,
    ItemType,
    MasteryLevel,
)
from chordcore.srs.fingers import FingerProgress, weakest_direction
from chordcore.srs.mastery import calculate_new_average, confidence_level, round_half_up
from chordcore.srs.persistence import (
    ProgressRepository,
    advance_streak,
    finger_from_record,
    finger_to_record,
    progress_from_record,
    progress_to_record,
)
from chordcore.srs.progress import CharacterProgress, LearningProgress
from chordcore.srs.scheduler import (
    adjust_quality_for_attempts,
    quality_from_attempt,
    schedule_next,
)
from chordcore.stages import STAGE_ITEM_TYPE, LearningStage
from chordcore.storage.base import KeyValueStore


logger = logging.getLogger(__name__)


def calculate_session_score(session: SessionRecord) -> int:
    """Accuracy (0-100) plus a speed bonus (0-50) plus a volume bonus (0-20)."""
    accuracy_score = session.accuracy * 100
    speed_bonus = max(0.0, 50 - session.average_response_time_ms / 50)
    volume_bonus = min(20, session.items_attempted * 2)
    return round_half_up(accuracy_score + speed_bonus + volume_bonus)


def _default_session_id() -> str:
    return f"session_{uuid.uuid4().hex[:12]}"


class ProgressService:
    def __init__(
        self,
        repository: ProgressRepository,
        store: KeyValueStore,
        clock: Clock = utc_now,
        session_id_factory: Callable[[], str] = _default_session_id
    ):
        self._repository = repository
        self._store = store
        self._clock = clock
        self._new_session_id = session_id_factory

    @property
    def repository(self) -> ProgressRepository:
        return self._repository

    # ---- Recording ----

    def record_attempt(self, record: AttemptRecord) -> LearningProgress:
        """
        Apply one attempt and persist the result.

        Returns the saved aggregate.
        """
        now = record.timestamp or self._clock()
        progress = self._repository.get_or_create(record.item_id, record.item_type)

        if record.direction is not None and isinstance(progress, CharacterProgress):
            progress.record_direction_attempt(record.direction, record.correct, record.latency_ms, now)

        if record.skip_mastery_update:
            progress.record_counters_only(record.correct, now)
            self._repository.save(progress, skip_mastery_recalc=True)
            saved = progress
        else:
            previous_level = progress.mastery_level
            progress.record_attempt(record.correct, record.latency_ms, now)

            quality = quality_from_attempt(
                record.correct,
                record.latency_ms,
                item_type=progress.item_type,
                mastery_level=progress.mastery_level,
            )
            if progress.item_type == ItemType.WORD:
                quality = adjust_quality_for_attempts(quality, record.attempts)

            saved = schedule_next(progress, quality, now)
            self._repository.save(saved)

            logger.debug(
                "Recorded %s %s: correct=%s quality=%d interval=%.4fd",
                saved.item_type.value, saved.item_id, record.correct, quality, saved.interval,
            )
            if previous_level != saved.mastery_level:
                logger.info(
                    "%s %s mastery %s -> %s",
                    saved.item_type.value, saved.item_id,
                    previous_level.value, saved.mastery_level.value,
                )

        if record.finger and saved.item_type == ItemType.CHARACTER:
            self._update_finger_progress(record, now)

        self._update_active_session(record)
        self._update_global_stats(record, now)
        return saved

    def _update_finger_progress(self, record: AttemptRecord, now: datetime) -> FingerProgress:
        finger = self._repository.get_finger_progress(record.finger)
        finger.record_attempt(
            record.correct, record.latency_ms, now, direction=record.direction, item_id=record.item_id
        )
        finger.weakest_direction = weakest_direction({
            direction: self._repository.get(item_id, ItemType.CHARACTER)
            for direction, item_id in finger.characters.items()
        })
        self._repository.save_finger_progress(finger)
        return finger

    def demote(self, item_id: str, item_type: ItemType) -> Optional[LearningProgress]:
        """
        Send a MASTERED item back to FAMILIAR.

        Returns the aggregate (unchanged if it was not mastered), or None if
        the item has no progress.
        """
        progress = self._repository.get(item_id, item_type)
        if progress is None:
            return None
        if progress.demote(self._clock()):
            # FAMILIAR would be recalculated to NEW on an empty window
            self._repository.save(progress, skip_mastery_recalc=True)
            logger.info("Demoted %s %s to familiar", progress.item_type.value, progress.item_id)
        return progress

    def transition_from_new_to_learning(self, item_id: str, item_type: ItemType) -> LearningProgress:
        """Mark an introduced item as LEARNING so review modes pick it up."""
        progress = self._repository.get_or_create(item_id, item_type)
        if progress.mastery_level == MasteryLevel.NEW:
            progress.mastery_level = MasteryLevel.LEARNING
            self._repository.save(progress, skip_mastery_recalc=True)
        return progress

    # ---- Queries ----

    def mastery_level(self, item_id: str, item_type: ItemType) -> MasteryLevel:
        progress = self._repository.get(item_id, item_type)
        return progress.mastery_level if progress else MasteryLevel.NEW

    def is_item_mastered(self, item_id: str, item_type: ItemType) -> bool:
        return self.mastery_level(item_id, item_type) == MasteryLevel.MASTERED

    def accuracy_for_item(self, item_id: str, item_type: ItemType) -> float:
        progress = self._repository.get(item_id, item_type)
        return progress.accuracy if progress else 0.0

    def average_response_time(self, item_id: str, item_type: ItemType) -> float:
        progress = self._repository.get(item_id, item_type)
        return progress.average_response_time_ms if progress else 0

    def finger_progress(self, finger_id: str) -> FingerProgress:
        return self._repository.get_finger_progress(finger_id)

    def all_finger_progress(self) -> list[FingerProgress]:
        return self._repository.get_all_finger_progress()

    def confidence_for_item(self, item_id: str, item_type: ItemType) -> ConfidenceLevel:
        progress = self._repository.get(item_id, item_type)
        return confidence_level(progress) if progress else ConfidenceLevel.WEAK

    # ---- Sessions ----

    def start_session(self, session_type: str) -> str:
        session = SessionRecord(
            id=self._new_session_id(),
            type=session_type,
            start_time=self._clock(),
        )
        self._store.set(ACTIVE_SESSION_KEY, session.to_storage())
        logger.info("Started %s session %s", session_type, session.id)
        return session.id

    def current_session(self) -> Optional[SessionRecord]:
        raw = self._store.get(ACTIVE_SESSION_KEY)
        if raw is None:
            return None
        try:
            return SessionRecord.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Discarding malformed active session: %s", exc)
            self._store.remove(ACTIVE_SESSION_KEY)
            return None

    def end_session(self, session_id: str) -> SessionRecord:
        """
        Close the active session, score it and file it in history.

        Raises:
            ValueError: if `session_id` is not the active session
        """
        session = self.current_session()
        if session is None or session.id != session_id:
            raise ValueError(f"No active session with ID: {session_id}")

        now = self._clock()
        session.end_time = now
        session.score = calculate_session_score(session)
        duration_ms = max(0.0, (now - session.start_time).total_seconds() * 1000)

        history = self.session_history(MAX_SESSION_HISTORY)
        history.insert(0, session)
        self._store.set(
            SESSION_HISTORY_KEY,
            [s.to_storage() for s in history[:MAX_SESSION_HISTORY]],
        )

        stats = self.global_stats()
        stats.total_sessions += 1
        stats.total_practice_time_ms += duration_ms
        self._save_global_stats(stats)

        self._store.remove(ACTIVE_SESSION_KEY)
        self.record_practice_session()
        self._repository.update_stats(duration_ms)

        logger.info("Ended session %s: score=%d accuracy=%.2f", session.id, session.score, session.accuracy)
        return session

    def session_history(self, limit: int = 50) -> list[SessionRecord]:
        """Past sessions, newest first."""
        raw = self._store.get(SESSION_HISTORY_KEY)
        if not isinstance(raw, list):
            return []
        sessions: list[SessionRecord] = []
        for entry in raw:
            try:
                sessions.append(SessionRecord.model_validate(entry))
            except ValidationError as exc:
                logger.warning("Skipping malformed session record: %s", exc)
        return sessions[:limit]

    def _update_active_session(self, record: AttemptRecord) -> None:
        session = self.current_session()
        if session is None:
            return
        session.items_attempted += 1
        if record.correct:
            session.items_correct += 1
        session.accuracy = session.items_correct / session.items_attempted
        session.average_response_time_ms = calculate_new_average(
            session.average_response_time_ms,
            record.latency_ms,
            session.items_attempted,
        )
        self._store.set(ACTIVE_SESSION_KEY, session.to_storage())

    # ---- Global stats and streaks ----

    def global_stats(self) -> GlobalStats:
        raw = self._store.get(GLOBAL_STATS_KEY)
        if raw is None:
            return GlobalStats()
        try:
            return GlobalStats.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Malformed global stats; resetting: %s", exc)
            return GlobalStats()

    def _save_global_stats(self, stats: GlobalStats) -> None:
        self._store.set(GLOBAL_STATS_KEY, stats.to_storage())

    def _update_global_stats(self, record: AttemptRecord, now: datetime) -> None:
        stats = self.global_stats()
        stats.total_attempts += 1
        if record.correct:
            stats.total_correct += 1
        stats.average_accuracy = stats.total_correct / stats.total_attempts
        stats.last_practice_date = now
        self._save_global_stats(stats)

    def record_practice_session(self) -> GlobalStats:
        """Advance the daily streak once per calendar day."""
        stats = self.global_stats()
        today = self._clock().date()
        if stats.last_session_date == today.isoformat():
            return stats

        stats.current_streak, stats.longest_streak = advance_streak(
            stats.current_streak,
            stats.longest_streak,
            stats.last_session_date,
            today,
        )
        stats.last_session_date = today.isoformat()
        self._save_global_stats(stats)
        return stats

    def current_streak(self) -> int:
        return self.global_stats().current_streak

    def longest_streak(self) -> int:
        return self.global_stats().longest_streak

    # ---- Export / Import ----

    def export_progress(self) -> str:
        """Serialize all progress, stats and history as version-3 JSON."""
        def records(item_type: ItemType) -> dict:
            return {
                p.item_id: progress_to_record(p).to_storage()
                for p in self._repository.get_all(item_type)
            }

        export = ProgressExport(
            version=EXPORT_VERSION,
            export_date=self._clock(),
            characters=records(ItemType.CHARACTER),
            power_chords=records(ItemType.POWER_CHORD),
            words=records(ItemType.WORD),
            fingers={
                f.finger_id: finger_to_record(f).to_storage()
                for f in self._repository.get_all_finger_progress()
            },
            global_stats=self.global_stats(),
            session_history=self.session_history(MAX_SESSION_HISTORY),
        )
        return export.model_dump_json(by_alias=True, indent=2)

    def import_progress(self, payload: str) -> bool:
        """
        Load an export (versions 1-3) over the current progress.

        Returns False, changing nothing, when the payload is unreadable or
        the version is unsupported. Individual bad records are skipped.
        """
        try:
            export = ProgressExport.model_validate_json(payload)
        except (ValidationError, ValueError) as exc:
            logger.error("Progress import rejected: %s", exc)
            return False

        imported: list[LearningProgress] = []
        sections = (
            (ItemType.CHARACTER, export.characters),
            (ItemType.POWER_CHORD, export.power_chords),
            (ItemType.WORD, export.words),
        )
        for item_type, section in sections:
            for raw_id, data in section.items():
                try:
                    progress = progress_from_record(ProgressRecord.model_validate(data))
                except (ValidationError, ValueError, TypeError) as exc:
                    logger.warning("Skipping malformed imported record %r: %s", raw_id, exc)
                    continue
                if progress.item_type != item_type:
                    logger.warning("Skipping %r: type %s in %s section", raw_id, progress.item_type.value, item_type.value)
                    continue
                imported.append(progress)

        self._repository.save_many(imported, skip_mastery_recalc=True)

        for raw_id, data in export.fingers.items():
            try:
                finger = finger_from_record(FingerProgressRecord.model_validate(data))
            except (ValidationError, ValueError, TypeError) as exc:
                logger.warning("Skipping malformed imported finger %r: %s", raw_id, exc)
                continue
            self._repository.save_finger_progress(finger)

        if export.global_stats is not None:
            self._save_global_stats(export.global_stats)
        if export.session_history:
            self._store.set(
                SESSION_HISTORY_KEY,
                [s.to_storage() for s in export.session_history[:MAX_SESSION_HISTORY]],
            )

        logger.info("Imported %d progress records (export version %d)", len(imported), export.version)
        return True

    # ---- Reset ----

    def reset_all_progress(self) -> None:
        self._repository.clear_all()
        for key in (GLOBAL_STATS_KEY, SESSION_HISTORY_KEY, ACTIVE_SESSION_KEY):
            self._store.remove(key)
        logger.info("All progress reset")

    def reset_progress_for_type(self, item_type: ItemType) -> None:
        self._repository.clear_by_type(item_type)

    def reset_progress_for_stage(self, stage: LearningStage) -> None:
        """Reset the item type a curriculum stage trains."""
        self.reset_progress_for_type(STAGE_ITEM_TYPE[LearningStage(stage)])
