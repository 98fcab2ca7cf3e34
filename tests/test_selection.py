"""Tests for the selection engine."""
import random
import string
from datetime import timedelta

import pytest

from chordcore.session_builders.pool_types import SelectionStrategy
from chordcore.session_builders.pool_utils import selection_weight, weighted_sample
from chordcore.session_builders.quiz_builder import QuizBuilder, select_items
from chordcore.srs.constants import Direction, ItemType
from chordcore.srs.progress import create_progress


LETTERS = list(string.ascii_lowercase)


class _LastPick(random.Random):
    """Random source whose weighted draws always land on the last candidate."""

    def random(self) -> float:
        return 0.999999


def _stored(repository, clock, item_id, outcomes, review_offset_hours=-1.0, ease=2.5):
    """Persist an attempted character with a review date relative to now."""
    progress = repository.get_or_create(item_id, ItemType.CHARACTER)
    for correct in outcomes:
        progress.record_attempt(correct, 800, clock())
    progress.next_review_date = clock() + timedelta(hours=review_offset_hours)
    progress.ease_factor = ease
    repository.save(progress)
    return progress


def test_selection_has_no_duplicates(quiz) -> None:
    """Test that a batch holds distinct items of the requested size."""
    quiz.set_catalog(ItemType.CHARACTER, LETTERS)
    items = quiz.select(SelectionStrategy.MIXED, ItemType.CHARACTER, 10)

    ids = [p.item_id for p in items]
    assert len(ids) == 10
    assert len(set(ids)) == 10


def test_small_pool_returns_everything(quiz) -> None:
    quiz.set_catalog(ItemType.WORD, ["the", "and", "of"])
    items = quiz.select(SelectionStrategy.MIXED, ItemType.WORD, 10)
    assert sorted(p.item_id for p in items) == ["and", "of", "the"]


def test_empty_pool_and_zero_count(quiz) -> None:
    assert quiz.select(SelectionStrategy.MIXED, ItemType.WORD, 5) == []
    quiz.set_catalog(ItemType.WORD, ["the"])
    assert quiz.select(SelectionStrategy.MIXED, ItemType.WORD, 0) == []


def test_due_items_come_first(repository, clock, quiz) -> None:
    """Test due ordering: the >24h overdue tier first, then lowest ease."""
    _stored(repository, clock, "d", [True], review_offset_hours=-48, ease=2.0)
    _stored(repository, clock, "e", [True], review_offset_hours=-1, ease=1.5)
    _stored(repository, clock, "f", [True], review_offset_hours=-30, ease=2.4)
    for item_id in ("x", "y", "z"):
        _stored(repository, clock, item_id, [True], review_offset_hours=48)

    pool = quiz.candidate_pool(ItemType.CHARACTER)
    selected = select_items(pool, 4, clock(), random.Random(7), include_new=False)

    assert [p.item_id for p in selected[:3]] == ["d", "f", "e"]
    assert len(selected) == 4
    assert selected[3].item_id in {"x", "y", "z"}


def test_due_pool_excludes_never_attempted(repository, clock, quiz) -> None:
    quiz.set_catalog(ItemType.CHARACTER, ["a", "b", "c"])
    _stored(repository, clock, "c", [False])

    pool = quiz.candidate_pool(ItemType.CHARACTER)
    selected = select_items(pool, 1, clock(), random.Random(7), include_new=False)
    assert [p.item_id for p in selected] == ["c"]


def test_new_item_quota_in_catalog_order(quiz, clock) -> None:
    """Test that the new-item quota is taken in catalog order before the fill."""
    quiz.set_catalog(ItemType.CHARACTER, LETTERS)
    pool = quiz.candidate_pool(ItemType.CHARACTER)

    mixed = select_items(pool, 5, clock(), random.Random(3), new_item_ratio=0.2)
    learn = select_items(pool, 5, clock(), random.Random(3), new_item_ratio=0.4)

    assert mixed[0].item_id == "a"
    assert [p.item_id for p in learn[:2]] == ["a", "b"]


def test_new_introduction_order(repository, clock, quiz) -> None:
    quiz.set_catalog(ItemType.CHARACTER, ["e", "t", "a", "o"])
    _stored(repository, clock, "t", [True])

    items = quiz.select(SelectionStrategy.NEW_INTRODUCTION, ItemType.CHARACTER, 2)
    assert [p.item_id for p in items] == ["e", "a"]
    assert quiz.new_item_ids(ItemType.CHARACTER) == ["e", "a", "o"]


def test_weakness_order(repository, clock, quiz) -> None:
    """Test that weakness practice lists attempted items, worst first."""
    _stored(repository, clock, "a", [True, True, False])
    _stored(repository, clock, "b", [False, False, True])
    _stored(repository, clock, "c", [True])

    items = quiz.select(SelectionStrategy.WEAKNESS, ItemType.CHARACTER, 5)
    assert [p.item_id for p in items] == ["b", "a", "c"]


def test_restrict_to_subset(quiz) -> None:
    quiz.set_catalog(ItemType.CHARACTER, LETTERS)
    items = quiz.select(SelectionStrategy.LEARN, ItemType.CHARACTER, 10, restrict_to={"A", "s", "d"})
    assert sorted(p.item_id for p in items) == ["a", "d", "s"]


def test_selection_never_persists(repository, quiz) -> None:
    """Test that unseen catalog items are not written by selection."""
    quiz.set_catalog(ItemType.CHARACTER, LETTERS)
    quiz.select(SelectionStrategy.MIXED, ItemType.CHARACTER, 10)
    quiz.quiz_stats(ItemType.CHARACTER)
    assert repository.get_all(ItemType.CHARACTER) == []


def test_selection_does_not_mutate_aggregates(repository, clock, quiz) -> None:
    _stored(repository, clock, "a", [True, False])
    before = repository.get("a", ItemType.CHARACTER)

    items = quiz.select(SelectionStrategy.DUE_REVIEW, ItemType.CHARACTER, 3)
    assert [p.item_id for p in items] == ["a"]
    assert repository.get("a", ItemType.CHARACTER) == before


def test_create_session_counts(repository, clock, quiz) -> None:
    quiz.set_catalog(ItemType.WORD, ["the", "and", "of", "to"])
    repository.get_or_create("the", ItemType.WORD)
    progress = repository.get_or_create("and", ItemType.WORD)
    progress.record_attempt(True, 900, clock())
    repository.save(progress)

    session = quiz.create_session(SelectionStrategy.MIXED, ItemType.WORD, 10)
    assert session.total_count == 4
    assert session.review_item_count == 1
    assert session.new_item_count == 3
    assert session.created_at == clock()


def test_quiz_stats(repository, clock, quiz) -> None:
    quiz.set_catalog(ItemType.CHARACTER, ["a", "b", "c"])
    _stored(repository, clock, "a", [False, False, True])

    stats = quiz.quiz_stats(ItemType.CHARACTER)
    assert stats.total_count == 3
    assert stats.new_count == 2
    assert stats.due_count == 1
    assert stats.weak_count == 1
    assert stats.by_mastery["new"] == 2


def test_weak_direction_characters(repository, clock, quiz) -> None:
    lopsided = repository.get_or_create("a", ItemType.CHARACTER)
    lopsided.record_direction_attempt(Direction.UP, True, 500, clock())
    lopsided.record_direction_attempt(Direction.DOWN, False, 500, clock())
    repository.save(lopsided)

    even = repository.get_or_create("b", ItemType.CHARACTER)
    even.record_direction_attempt(Direction.UP, True, 500, clock())
    even.record_direction_attempt(Direction.DOWN, True, 500, clock())
    repository.save(even)

    items = quiz.select_characters_with_weak_directions(5)
    assert [p.item_id for p in items] == ["a"]


def test_selection_weight_components(clock) -> None:
    """Test that failing, overdue and rarely tried items weigh more."""
    fresh = create_progress("a", ItemType.CHARACTER, clock())
    assert selection_weight(fresh, clock()) == pytest.approx(0.1 + 4 + 0.5)

    practiced = create_progress("b", ItemType.CHARACTER, clock())
    for _ in range(4):
        practiced.record_attempt(True, 500, clock())
    assert selection_weight(practiced, clock()) == pytest.approx(0.1)
    assert selection_weight(practiced, clock() + timedelta(hours=48)) == pytest.approx(2.1)


def test_weighted_sample_without_replacement() -> None:
    items = list(range(20))
    picked = weighted_sample(items, [1.0] * 20, 8, random.Random(11))
    assert len(picked) == 8
    assert len(set(picked)) == 8
    assert weighted_sample(items, [1.0] * 20, 0, random.Random(11)) == []


def test_new_item_quota_capped_per_session(clock) -> None:
    """Test that the per-session limit trims the ratio-based new quota."""
    pool = [create_progress(letter, ItemType.CHARACTER, clock()) for letter in LETTERS]

    uncapped = select_items(pool, 20, clock(), _LastPick(), new_item_ratio=0.4)
    capped = select_items(pool, 20, clock(), _LastPick(), new_item_ratio=0.4, max_new_items=5)

    assert [p.item_id for p in uncapped[:8]] == LETTERS[:8]
    assert [p.item_id for p in capped[:5]] == LETTERS[:5]
    assert "f" not in {p.item_id for p in capped}
    assert len(capped) == 20


def test_builder_defaults_to_session_settings(repository, clock) -> None:
    quiz = QuizBuilder(
        repository,
        clock=clock,
        rng=_LastPick(),
        catalogs={ItemType.CHARACTER: LETTERS},
        session_size=20,
        max_new_items_per_session=2,
    )

    items = quiz.select(SelectionStrategy.LEARN, ItemType.CHARACTER)
    assert len(items) == 20
    assert {p.item_id for p in items} == {"a", "b"} | set(LETTERS[8:])

    introduced = quiz.select(SelectionStrategy.NEW_INTRODUCTION, ItemType.CHARACTER)
    assert [p.item_id for p in introduced] == ["a", "b"]
    assert quiz.create_session(SelectionStrategy.MIXED, ItemType.CHARACTER).total_count == 20


def test_due_review_batch_is_shuffled(repository, clock, quiz) -> None:
    """Test that a due batch holds the due items, not in due order."""
    due_order = LETTERS[:10]
    for i, item_id in enumerate(due_order):
        _stored(repository, clock, item_id, [True], ease=1.5 + 0.1 * i)

    pool = quiz.candidate_pool(ItemType.CHARACTER)
    ranked = select_items(pool, 10, clock(), random.Random(7), include_new=False)
    assert [p.item_id for p in ranked] == due_order

    batches = [
        [p.item_id for p in quiz.select(SelectionStrategy.DUE_REVIEW, ItemType.CHARACTER, 10)]
        for _ in range(3)
    ]
    assert all(sorted(ids) == due_order for ids in batches)
    assert any(ids != due_order for ids in batches)


def test_mixed_batch_is_shuffled(quiz) -> None:
    quiz.set_catalog(ItemType.CHARACTER, LETTERS)
    ids = [p.item_id for p in quiz.select(SelectionStrategy.MIXED, ItemType.CHARACTER, 26)]
    assert sorted(ids) == LETTERS
    assert ids != LETTERS
