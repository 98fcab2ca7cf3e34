"""
Quiz Builder - Selection Engine

Chooses which items to present next from a snapshot of progress:
1. Due pool: attempted items past their review date (most overdue tier,
   then hardest, first)
2. New pool: never-attempted items in catalog order, capped by a ratio and
   by the per-session limit on new items
3. Fill: weighted random sampling over everything not yet chosen

Strategy-specific ordering:
- NEW_INTRODUCTION: new items only, catalog order, not shuffled
- WEAKNESS: attempted items by ascending accuracy, not shuffled
- DUE_REVIEW / MIXED / LEARN: shuffled

Selection never mutates or persists aggregates; items without stored
progress are represented by in-memory NEW aggregates.
"""

from __future__ import annotations
import logging
import math
import random
from datetime import datetime
from typing import Iterable, Mapping, Optional, Sequence

from chordcore.clock import Clock, utc_now
from chordcore.session_builders.pool_types import (
    LEARN_NEW_ITEM_RATIO,
    MAX_NEW_ITEMS_PER_SESSION,
    MIXED_NEW_ITEM_RATIO,
    QuizSession,
    QuizStats,
    SESSION_SIZE,
    SelectionOptions,
    SelectionStrategy,
)
from chordcore.session_builders.pool_utils import (
    build_candidate_pool,
    due_items_from_snapshot,
    fill_in_order,
    new_items_in_order,
    selection_weight,
    weighted_sample,
)
from chordcore.srs.constants import (
    ALL_DIRECTIONS,
    DIRECTION_SPREAD_THRESHOLD,
    WEAK_ACCURACY_THRESHOLD,
    ConfidenceLevel,
    Direction,
    ItemType,
    MasteryLevel,
)
from chordcore.srs.fingers import FingerConfidence, overall_confidence
from chordcore.srs.mastery import confidence_level
from chordcore.srs.persistence import ProgressRepository
from chordcore.srs.progress import CharacterProgress, LearningProgress, normalize_item_id


logger = logging.getLogger(__name__)


def select_items(
    pool: Sequence[LearningProgress],
    count: int,
    now: datetime,
    rng: random.Random,
    include_new: bool = True,
    new_item_ratio: float = MIXED_NEW_ITEM_RATIO,
    max_new_items: Optional[int] = None
) -> list[LearningProgress]:
    """
    Due-first, then new quota, then weighted fill. Not shuffled.

    Returns min(count, len(pool)) distinct items.
    """
    if count <= 0 or not pool:
        return []

    due = due_items_from_snapshot(pool, now)[:count]
    due_ids = {p.item_id for p in due}

    new_quota: list[LearningProgress] = []
    if include_new and len(due) < count:
        quota = min(math.floor(count * new_item_ratio), count - len(due))
        if max_new_items is not None:
            quota = min(quota, max(0, max_new_items))
        new_quota = [p for p in new_items_in_order(pool) if p.item_id not in due_ids][:quota]

    selected = fill_in_order({"due": due, "new": new_quota}, ["due", "new"], count)
    chosen = {p.item_id for p in selected}

    needed = count - len(selected)
    if needed > 0:
        rest = [p for p in pool if p.item_id not in chosen]
        weights = [selection_weight(p, now) for p in rest]
        selected.extend(weighted_sample(rest, weights, needed, rng))

    logger.debug(
        "Selected %d of %d (due=%d, new=%d)",
        len(selected), len(pool), len(due), len(new_quota),
    )
    return selected


class QuizBuilder:
    """
    Builds quiz batches from stored progress plus an optional item catalog.

    The catalog (item ids in definition order) is what makes unseen items
    eligible as "new"; without one only stored aggregates are considered.
    Batches default to `session_size` items, and the new-item quota of any
    pass is capped at `max_new_items_per_session` (None for no cap).
    """

    def __init__(
        self,
        repository: ProgressRepository,
        clock: Clock = utc_now,
        rng: Optional[random.Random] = None,
        catalogs: Optional[dict[ItemType, Sequence[str]]] = None,
        mixed_new_item_ratio: float = MIXED_NEW_ITEM_RATIO,
        learn_new_item_ratio: float = LEARN_NEW_ITEM_RATIO,
        session_size: int = SESSION_SIZE,
        max_new_items_per_session: Optional[int] = MAX_NEW_ITEMS_PER_SESSION
    ):
        self._repository = repository
        self._clock = clock
        self._rng = rng or random.Random()
        self._catalogs: dict[ItemType, list[str]] = {
            ItemType(k): list(v) for k, v in (catalogs or {}).items()
        }
        self.mixed_new_item_ratio = mixed_new_item_ratio
        self.learn_new_item_ratio = learn_new_item_ratio
        self.session_size = session_size
        self.max_new_items_per_session = max_new_items_per_session

    def set_catalog(self, item_type: ItemType, item_ids: Iterable[str]) -> None:
        self._catalogs[ItemType(item_type)] = list(item_ids)

    def candidate_pool(
        self,
        item_type: ItemType,
        restrict_to: Optional[set[str]] = None
    ) -> list[LearningProgress]:
        item_type = ItemType(item_type)
        pool = build_candidate_pool(
            self._repository.get_all(item_type),
            item_type,
            self._clock(),
            catalog=self._catalogs.get(item_type),
        )
        if restrict_to is not None:
            allowed = {normalize_item_id(i) for i in restrict_to}
            pool = [p for p in pool if p.item_id in allowed]
        return pool

    # ---- Selection ----

    def select_items_for_quiz(self, options: SelectionOptions) -> list[LearningProgress]:
        """General selection pass, shuffled."""
        pool = self.candidate_pool(options.item_type, options.restrict_to)
        selected = select_items(
            pool,
            options.count,
            self._clock(),
            self._rng,
            include_new=options.include_new,
            new_item_ratio=options.new_item_ratio,
            max_new_items=(
                self.max_new_items_per_session if options.max_new_items is None else options.max_new_items
            ),
        )
        self._rng.shuffle(selected)
        return selected

    def select(
        self,
        strategy: SelectionStrategy,
        item_type: ItemType,
        count: Optional[int] = None,
        restrict_to: Optional[set[str]] = None
    ) -> list[LearningProgress]:
        """
        Select one batch.

        `count` defaults to the session size, or to the new-item limit when
        only new items are being introduced.
        """
        strategy = SelectionStrategy(strategy)
        if count is None:
            count = self.default_count(strategy)

        if strategy == SelectionStrategy.NEW_INTRODUCTION:
            pool = self.candidate_pool(item_type, restrict_to)
            return new_items_in_order(pool)[:max(0, count)]

        if strategy == SelectionStrategy.WEAKNESS:
            pool = self.candidate_pool(item_type, restrict_to)
            attempted = [p for p in pool if p.total_attempts > 0]
            attempted.sort(key=lambda p: p.accuracy)
            return attempted[:max(0, count)]

        if strategy == SelectionStrategy.DUE_REVIEW:
            include_new, ratio = False, 0.0
        elif strategy == SelectionStrategy.LEARN:
            include_new, ratio = True, self.learn_new_item_ratio
        else:
            include_new, ratio = True, self.mixed_new_item_ratio

        return self.select_items_for_quiz(
            SelectionOptions(
                item_type=ItemType(item_type),
                count=count,
                include_new=include_new,
                new_item_ratio=ratio,
                restrict_to=restrict_to,
            )
        )

    def default_count(self, strategy: SelectionStrategy) -> int:
        if strategy == SelectionStrategy.NEW_INTRODUCTION and self.max_new_items_per_session is not None:
            return self.max_new_items_per_session
        return self.session_size

    def create_session(
        self,
        strategy: SelectionStrategy,
        item_type: ItemType,
        count: Optional[int] = None,
        restrict_to: Optional[set[str]] = None
    ) -> QuizSession:
        items = self.select(strategy, item_type, count, restrict_to)
        new_count = sum(1 for p in items if p.total_attempts == 0)
        return QuizSession(
            strategy=SelectionStrategy(strategy),
            item_type=ItemType(item_type),
            items=items,
            created_at=self._clock(),
            new_item_count=new_count,
            review_item_count=len(items) - new_count,
        )

    def select_characters_with_weak_directions(self, count: int) -> list[LearningProgress]:
        """Characters whose direction accuracies differ by more than 30 points."""
        candidates = [
            p for p in self._repository.get_all(ItemType.CHARACTER)
            if isinstance(p, CharacterProgress)
            and p.direction_accuracy_spread() > DIRECTION_SPREAD_THRESHOLD
        ]
        now = self._clock()
        weights = [selection_weight(p, now) for p in candidates]
        return weighted_sample(candidates, weights, count, self._rng)

    # ---- Stats ----

    def new_item_ids(self, item_type: ItemType) -> list[str]:
        return [p.item_id for p in new_items_in_order(self.candidate_pool(item_type))]

    def quiz_stats(self, item_type: ItemType) -> QuizStats:
        item_type = ItemType(item_type)
        pool = self.candidate_pool(item_type)
        now = self._clock()
        by_mastery = {level.value: 0 for level in MasteryLevel}
        for p in pool:
            by_mastery[p.mastery_level.value] += 1
        return QuizStats(
            item_type=item_type,
            due_count=len(due_items_from_snapshot(pool, now)),
            new_count=len(new_items_in_order(pool)),
            weak_count=sum(
                1 for p in pool if p.total_attempts > 0 and p.accuracy < WEAK_ACCURACY_THRESHOLD
            ),
            total_count=len(pool),
            mastered_count=by_mastery[MasteryLevel.MASTERED.value],
            by_mastery=by_mastery,
        )

    # ---- Fingers ----

    def finger_confidence(self, char_ids_by_direction: Mapping[Direction, str]) -> FingerConfidence:
        """
        Confidence of one finger, overall and per direction.

        `char_ids_by_direction` maps each direction of the finger to the
        character it types. Directions without a character, or whose
        character was never stored, count as weak.
        """
        by_direction = {direction: ConfidenceLevel.WEAK for direction in ALL_DIRECTIONS}
        for direction, item_id in char_ids_by_direction.items():
            progress = self._repository.get(item_id, ItemType.CHARACTER)
            if progress is not None:
                by_direction[Direction(direction)] = confidence_level(progress)
        return FingerConfidence(
            overall=overall_confidence(by_direction.values()),
            by_direction=by_direction,
        )

    def new_items_for_finger(self, char_ids: Iterable[str]) -> list[str]:
        """The finger's characters that were never attempted, in the given order."""
        practiced = {
            p.item_id for p in self._repository.get_all(ItemType.CHARACTER) if p.total_attempts > 0
        }
        return [
            normalize_item_id(item_id) for item_id in char_ids
            if normalize_item_id(item_id) not in practiced
        ]
