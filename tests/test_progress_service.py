"""Tests for ProgressService: attempts, sessions, streaks, export/import."""
import json
from datetime import timedelta

import pytest

from chordcore.keystrokes.classifier import analyze_chord_input
from chordcore.progress_service import calculate_session_score
from chordcore.srs.attempts import AttemptRecord, attempt_from_input
from chordcore.srs.schemas import SessionRecord
from chordcore.srs.constants import ConfidenceLevel, Direction, ItemType, MasteryLevel
from chordcore.stages import LearningStage


def _attempt(item_id="a", item_type=ItemType.CHARACTER, correct=True, latency_ms=600, **kwargs):
    return AttemptRecord(item_id=item_id, item_type=item_type, correct=correct, latency_ms=latency_ms, **kwargs)


def test_record_attempt_schedules_and_saves(service, clock) -> None:
    """Test the full attempt flow for a fresh character."""
    saved = service.record_attempt(_attempt())

    assert saved.total_attempts == 1
    assert saved.repetitions == 1
    assert saved.ease_factor == pytest.approx(2.6)
    assert saved.next_review_date == clock() + timedelta(minutes=2)
    assert service.repository.get("a", ItemType.CHARACTER) == saved
    assert service.mastery_level("a", ItemType.CHARACTER) == MasteryLevel.LEARNING


def test_five_fast_attempts_master_item(service, clock) -> None:
    for _ in range(5):
        service.record_attempt(_attempt(latency_ms=500))
        clock.advance(minutes=5)

    assert service.is_item_mastered("a", ItemType.CHARACTER)
    assert service.accuracy_for_item("a", ItemType.CHARACTER) == 1.0
    assert service.average_response_time("a", ItemType.CHARACTER) == 500
    assert service.repository.get_total_stats().characters_mastered == 1


def test_mastered_item_survives_later_misses(service, clock) -> None:
    """Test that misses after mastery reschedule the item but keep it MASTERED."""
    for _ in range(5):
        service.record_attempt(_attempt(latency_ms=500))
        clock.advance(minutes=5)

    for _ in range(3):
        saved = service.record_attempt(_attempt(correct=False, latency_ms=2500))
        clock.advance(minutes=5)

    assert saved.interval == 1
    assert saved.repetitions == 0
    stored = service.repository.get("a", ItemType.CHARACTER)
    assert stored.mastery_level == MasteryLevel.MASTERED
    assert service.is_item_mastered("a", ItemType.CHARACTER)
    assert service.repository.get_total_stats().characters_mastered == 1


def test_failed_attempt_reschedules_tomorrow(service, clock) -> None:
    saved = service.record_attempt(_attempt(correct=False, latency_ms=1200))
    assert saved.interval == 1
    assert saved.repetitions == 0
    assert saved.ease_factor == pytest.approx(2.5 - 0.54)


def test_direction_attempt_updates_confidence(service) -> None:
    saved = service.record_attempt(_attempt(direction=Direction.LEFT, correct=False, latency_ms=900))
    assert saved.direction_confidence[Direction.LEFT].attempts == 1
    assert saved.direction_confidence[Direction.LEFT].correct == 0


def test_word_retries_lower_quality(service) -> None:
    """Test that a word solved after retries gains less ease."""
    first_try = service.record_attempt(_attempt("the", ItemType.WORD, latency_ms=1000))
    third_try = service.record_attempt(_attempt("and", ItemType.WORD, latency_ms=1000, attempts=3))

    assert first_try.ease_factor == pytest.approx(2.6)
    assert third_try.ease_factor == pytest.approx(2.36)


def test_guided_practice_counts_only(service) -> None:
    """Test that guided practice bumps counters but leaves mastery alone."""
    saved = service.record_attempt(_attempt(skip_mastery_update=True))

    assert saved.total_attempts == 1
    assert saved.recent_attempts == []
    assert saved.repetitions == 0
    assert saved.mastery_level == MasteryLevel.NEW


def test_demote_keeps_familiar(service, clock) -> None:
    for _ in range(5):
        service.record_attempt(_attempt(latency_ms=500))

    demoted = service.demote("a", ItemType.CHARACTER)
    assert demoted.mastery_level == MasteryLevel.FAMILIAR
    assert service.mastery_level("a", ItemType.CHARACTER) == MasteryLevel.FAMILIAR
    assert service.repository.get("a", ItemType.CHARACTER).is_due(clock())


def test_demote_unknown_item(service) -> None:
    assert service.demote("q", ItemType.CHARACTER) is None


def test_transition_from_new_to_learning(service) -> None:
    progress = service.transition_from_new_to_learning("th", ItemType.POWER_CHORD)
    assert progress.mastery_level == MasteryLevel.LEARNING
    assert service.mastery_level("th", ItemType.POWER_CHORD) == MasteryLevel.LEARNING


def test_queries_for_unknown_item(service) -> None:
    assert service.mastery_level("zz", ItemType.WORD) == MasteryLevel.NEW
    assert service.accuracy_for_item("zz", ItemType.WORD) == 0.0
    assert service.confidence_for_item("zz", ItemType.WORD) == ConfidenceLevel.WEAK


def test_attempt_from_classifier_output(service) -> None:
    """Test scoring classifier output, with and without the chord requirement."""
    chord = analyze_chord_input([0, 10, 20], "The ")
    typed = analyze_chord_input([0, 200, 400], "the ")

    assert attempt_from_input(chord, "the", ItemType.WORD, 900, require_chord=True).correct
    assert not attempt_from_input(typed, "the", ItemType.WORD, 900, require_chord=True).correct
    assert attempt_from_input(typed, "the", ItemType.WORD, 900).correct

    saved = service.record_attempt(attempt_from_input(chord, "the", ItemType.WORD, 900))
    assert saved.item_id == "the"


def test_session_lifecycle(service, clock) -> None:
    """Test session stats, scoring and history."""
    session_id = service.start_session("character_quiz")
    service.record_attempt(_attempt("a", latency_ms=600))
    service.record_attempt(_attempt("b", correct=False, latency_ms=1000))
    clock.advance(minutes=2)

    current = service.current_session()
    assert current.items_attempted == 2
    assert current.items_correct == 1
    assert current.average_response_time_ms == 800

    ended = service.end_session(session_id)
    assert ended.end_time == clock()
    assert ended.score == round(50 + (50 - 800 / 50) + 4)
    assert service.current_session() is None
    assert [s.id for s in service.session_history()] == [session_id]

    stats = service.global_stats()
    assert stats.total_sessions == 1
    assert stats.total_attempts == 2
    assert stats.total_correct == 1
    assert stats.average_accuracy == 0.5
    assert stats.total_practice_time_ms == 120_000
    assert service.repository.get_total_stats().sessions_completed == 1


def test_end_unknown_session_raises(service) -> None:
    with pytest.raises(ValueError):
        service.end_session("nope")

    service.start_session("word_chords")
    with pytest.raises(ValueError):
        service.end_session("nope")


def test_history_newest_first(service, clock) -> None:
    ids = []
    for _ in range(3):
        ids.append(service.start_session("mixed"))
        clock.advance(minutes=1)
        service.end_session(ids[-1])

    assert [s.id for s in service.session_history()] == list(reversed(ids))
    assert len(service.session_history(limit=2)) == 2


def test_daily_streak(service, clock) -> None:
    """Test that the streak grows once per day and restarts after a gap."""
    service.record_practice_session()
    service.record_practice_session()
    assert service.current_streak() == 1

    clock.advance(days=1)
    service.record_practice_session()
    assert service.current_streak() == 2

    clock.advance(days=2)
    service.record_practice_session()
    assert service.current_streak() == 1
    assert service.longest_streak() == 2


def test_session_score_formula() -> None:
    session = SessionRecord(
        id="s",
        type="mixed",
        start_time="2024-03-01T00:00:00Z",
        items_attempted=20,
        accuracy=0.9,
        average_response_time_ms=3000,
    )
    assert calculate_session_score(session) == 90 + 0 + 20


def test_export_import_round_trip(service, clock) -> None:
    """Test that an export restores progress into a fresh store."""
    for _ in range(5):
        service.record_attempt(_attempt(latency_ms=500))
    service.record_attempt(_attempt("the", ItemType.WORD, correct=False))
    session_id = service.start_session("mixed")
    service.end_session(session_id)

    payload = service.export_progress()
    data = json.loads(payload)
    assert data["version"] == 3
    assert set(data["characters"]) == {"a"}
    assert set(data["words"]) == {"the"}

    service.reset_all_progress()
    assert service.repository.get_all(ItemType.CHARACTER) == []
    assert service.session_history() == []

    assert service.import_progress(payload)
    assert service.is_item_mastered("a", ItemType.CHARACTER)
    assert service.repository.get("the", ItemType.WORD).total_attempts == 1
    assert [s.id for s in service.session_history()] == [session_id]
    assert service.global_stats().total_attempts == 6


def test_import_rejects_bad_payloads(service) -> None:
    service.record_attempt(_attempt())

    assert not service.import_progress("{not json")
    assert not service.import_progress(json.dumps({"version": 4, "characters": {}}))
    assert not service.import_progress(json.dumps({"characters": {}}))
    assert service.repository.get("a", ItemType.CHARACTER) is not None


def test_import_skips_bad_records(service) -> None:
    payload = {
        "version": 2,
        "characters": {
            "a": {"itemId": "a", "itemType": "character", "nextReviewDate": 1709294400000, "totalAttempts": 2},
            "b": {"itemId": "b"},
        },
        "words": {"x": {"itemId": "x", "itemType": "character", "nextReviewDate": 1709294400000}},
    }
    assert service.import_progress(json.dumps(payload))
    assert [p.item_id for p in service.repository.get_all(ItemType.CHARACTER)] == ["a"]
    assert service.repository.get_all(ItemType.WORD) == []


def test_reset_by_type_and_stage(service) -> None:
    service.record_attempt(_attempt("a"))
    service.record_attempt(_attempt("th", ItemType.POWER_CHORD))
    service.record_attempt(_attempt("the", ItemType.WORD))

    service.reset_progress_for_type(ItemType.CHARACTER)
    assert service.repository.get_all(ItemType.CHARACTER) == []

    service.reset_progress_for_stage(LearningStage.WORD_CHORDS)
    assert service.repository.get_all(ItemType.WORD) == []
    assert len(service.repository.get_all(ItemType.POWER_CHORD)) == 1
