"""Tests for per-finger progress and finger confidence."""
import json

import pytest

from chordcore.srs.attempts import AttemptRecord
from chordcore.srs.constants import ConfidenceLevel, Direction, ItemType
from chordcore.srs.fingers import FingerProgress, overall_confidence, weakest_direction
from chordcore.srs.progress import create_progress


def _attempt(item_id, correct=True, latency_ms=500, direction=None, finger="l_index", item_type=ItemType.CHARACTER):
    return AttemptRecord(
        item_id=item_id,
        item_type=item_type,
        correct=correct,
        latency_ms=latency_ms,
        direction=direction,
        finger=finger,
    )


def _practiced(repository, clock, item_id, outcomes, latency_ms=500):
    progress = repository.get_or_create(item_id, ItemType.CHARACTER)
    for correct in outcomes:
        progress.record_attempt(correct, latency_ms, clock())
    repository.save(progress)
    return progress


def test_finger_totals(clock) -> None:
    """Test counts, incremental average and remembered characters."""
    finger = FingerProgress(finger_id="l_index")
    finger.record_attempt(True, 600, clock(), direction=Direction.LEFT, item_id="A")
    finger.record_attempt(False, 900, clock())

    assert finger.total_attempts == 2
    assert finger.correct_attempts == 1
    assert finger.accuracy == 0.5
    assert finger.average_response_time_ms == 750
    assert finger.confidence_level == ConfidenceLevel.WEAK
    assert finger.characters == {Direction.LEFT: "a"}
    assert finger.last_practiced == clock()


def test_finger_average_caps_latency(clock) -> None:
    finger = FingerProgress(finger_id="r_thumb")
    finger.record_attempt(True, 50_000, clock())
    assert finger.average_response_time_ms == 17500


def test_empty_finger_id_rejected() -> None:
    with pytest.raises(ValueError):
        FingerProgress(finger_id="  ")


@pytest.mark.parametrize(
    "levels,expected",
    [
        ([], ConfidenceLevel.WEAK),
        ([ConfidenceLevel.STRONG] * 5, ConfidenceLevel.STRONG),
        ([ConfidenceLevel.STRONG, ConfidenceLevel.STRONG, ConfidenceLevel.MODERATE] + [ConfidenceLevel.WEAK] * 2,
         ConfidenceLevel.MODERATE),
        ([ConfidenceLevel.WEAK] * 4 + [ConfidenceLevel.MODERATE], ConfidenceLevel.WEAK),
    ],
)
def test_overall_confidence(levels, expected) -> None:
    assert overall_confidence(levels) == expected


def test_weakest_direction_ignores_unpracticed(clock) -> None:
    perfect = create_progress("a", ItemType.CHARACTER, clock())
    perfect.record_attempt(True, 500, clock())
    shaky = create_progress("b", ItemType.CHARACTER, clock())
    shaky.record_attempt(False, 500, clock())
    unseen = create_progress("c", ItemType.CHARACTER, clock())

    assert weakest_direction({Direction.LEFT: perfect, Direction.UP: shaky, Direction.DOWN: unseen}) == Direction.UP
    assert weakest_direction({Direction.LEFT: perfect, Direction.DOWN: None}) is None


def test_service_updates_finger_progress(service) -> None:
    """Test that character attempts naming a finger fold into its totals."""
    for _ in range(5):
        service.record_attempt(_attempt("a", direction=Direction.LEFT))
    for correct in [True, False, True, False, True]:
        service.record_attempt(_attempt("b", correct=correct, direction=Direction.UP))

    finger = service.finger_progress("l_index")
    assert finger.total_attempts == 10
    assert finger.correct_attempts == 8
    assert finger.average_response_time_ms == 500
    assert finger.confidence_level == ConfidenceLevel.MODERATE
    assert finger.weakest_direction == Direction.UP
    assert finger.characters == {Direction.LEFT: "a", Direction.UP: "b"}


def test_attempts_without_finger_leave_fingers_alone(service) -> None:
    service.record_attempt(_attempt("a", finger=None))
    service.record_attempt(_attempt("the", item_type=ItemType.WORD))

    assert service.all_finger_progress() == []
    assert service.finger_progress("l_index").total_attempts == 0


def test_repository_skips_malformed_finger_records(store, repository) -> None:
    store.set(
        "progress_fingers",
        {
            "bad": {"fingerId": ""},
            "l_ring": {"fingerId": "l_ring", "totalAttempts": 3, "correctAttempts": 2},
        },
    )
    fingers = repository.get_all_finger_progress()
    assert [f.finger_id for f in fingers] == ["l_ring"]
    assert fingers[0].accuracy == pytest.approx(2 / 3)

    repository.clear_by_type(ItemType.CHARACTER)
    assert repository.get_all_finger_progress() == []


def test_finger_confidence_by_direction(repository, clock, quiz) -> None:
    """Test per-direction confidence and the averaged overall level."""
    for item_id in ("a", "d", "e"):
        _practiced(repository, clock, item_id, [True] * 10)
    _practiced(repository, clock, "b", [True])

    confidence = quiz.finger_confidence({
        Direction.LEFT: "a",
        Direction.UP: "b",
        Direction.DOWN: "c",
        Direction.RIGHT: "d",
        Direction.PRESS: "e",
    })

    assert confidence.by_direction == {
        Direction.UP: ConfidenceLevel.WEAK,
        Direction.DOWN: ConfidenceLevel.WEAK,
        Direction.LEFT: ConfidenceLevel.STRONG,
        Direction.RIGHT: ConfidenceLevel.STRONG,
        Direction.PRESS: ConfidenceLevel.STRONG,
    }
    assert confidence.overall == ConfidenceLevel.MODERATE


def test_finger_confidence_for_unpracticed_finger(quiz) -> None:
    confidence = quiz.finger_confidence({Direction.UP: "q"})
    assert confidence.overall == ConfidenceLevel.WEAK
    assert set(confidence.by_direction.values()) == {ConfidenceLevel.WEAK}


def test_new_items_for_finger(repository, clock, quiz) -> None:
    _practiced(repository, clock, "a", [True])
    repository.get_or_create("b", ItemType.CHARACTER)

    assert quiz.new_items_for_finger(["A", "b", "c"]) == ["b", "c"]


def test_finger_progress_survives_export(service) -> None:
    service.record_attempt(_attempt("a", direction=Direction.LEFT))
    payload = service.export_progress()
    assert set(json.loads(payload)["fingers"]) == {"l_index"}

    service.reset_all_progress()
    assert service.all_finger_progress() == []

    assert service.import_progress(payload)
    restored = service.finger_progress("l_index")
    assert restored.total_attempts == 1
    assert restored.characters == {Direction.LEFT: "a"}
