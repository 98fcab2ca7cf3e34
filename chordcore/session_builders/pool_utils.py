"""
Pool utilities for session builders.

Shared primitives for building and ranking candidate pools from a snapshot
of progress aggregates. Nothing here reads or writes storage.
"""

from __future__ import annotations
import random
from datetime import datetime
from typing import Iterable, Optional, Sequence, TypeVar

from chordcore.srs.constants import (
    LOW_ATTEMPTS_THRESHOLD,
    OVERDUE_PRIORITY_HOURS,
    WEIGHT_BASE,
    WEIGHT_FAIL_RATIO,
    WEIGHT_LOW_ATTEMPTS,
    WEIGHT_OVERDUE_PER_DAY,
    ItemType,
)
from chordcore.srs.progress import LearningProgress, create_progress, normalize_item_id


T = TypeVar("T")


def build_candidate_pool(
    existing: Iterable[LearningProgress],
    item_type: ItemType,
    now: datetime,
    catalog: Optional[Sequence[str]] = None
) -> list[LearningProgress]:
    """
    One aggregate per eligible item, in catalog order.

    Catalog items without stored progress get a fresh in-memory NEW
    aggregate (not persisted). Without a catalog, the stored aggregates are
    the pool.
    """
    by_id = {p.item_id: p for p in existing if p.item_type == item_type}
    if catalog is None:
        return list(by_id.values())

    pool: list[LearningProgress] = []
    seen: set[str] = set()
    for raw_id in catalog:
        item_id = normalize_item_id(raw_id)
        if item_id in seen:
            continue
        seen.add(item_id)
        pool.append(by_id.get(item_id) or create_progress(item_id, item_type, now))
    return pool


def due_items_from_snapshot(
    pool: Sequence[LearningProgress],
    now: datetime
) -> list[LearningProgress]:
    """
    Attempted items whose review date has passed.

    Items overdue by more than a day come first; within each tier the
    lowest ease factor (hardest item) comes first.
    """
    due = [p for p in pool if p.total_attempts > 0 and p.is_due(now)]
    due.sort(key=lambda p: (p.hours_overdue(now) <= OVERDUE_PRIORITY_HOURS, p.ease_factor))
    return due


def new_items_in_order(pool: Sequence[LearningProgress]) -> list[LearningProgress]:
    """Never-attempted items, keeping catalog order."""
    return [p for p in pool if p.total_attempts == 0]


def selection_weight(progress: LearningProgress, now: datetime) -> float:
    """
    Sampling weight for the fill step.

    Higher for items that fail often, are overdue, or have few attempts.
    Never-attempted items count as fully failing.
    """
    weight = WEIGHT_BASE
    weight += (1 - progress.accuracy) * WEIGHT_FAIL_RATIO
    weight += progress.hours_overdue(now) / 24 * WEIGHT_OVERDUE_PER_DAY
    if progress.total_attempts < LOW_ATTEMPTS_THRESHOLD:
        weight += WEIGHT_LOW_ATTEMPTS
    return weight


def weighted_sample(
    items: Sequence[T],
    weights: Sequence[float],
    count: int,
    rng: random.Random
) -> list[T]:
    """Weighted sampling without replacement."""
    if count <= 0:
        return []
    if len(items) <= count:
        return list(items)

    remaining = list(zip(items, weights))
    selected: list[T] = []
    while len(selected) < count and remaining:
        total = sum(w for _, w in remaining)
        target = rng.random() * total
        index = len(remaining) - 1
        for i, (_, w) in enumerate(remaining):
            target -= w
            if target <= 0:
                index = i
                break
        selected.append(remaining.pop(index)[0])
    return selected


def fill_in_order(
    pools: dict[str, list[T]],
    order: list[str],
    target_size: int
) -> list[T]:
    """
    Fill a batch by walking pools in order until target_size is reached.
    """
    batch: list[T] = []
    for name in order:
        for item in pools.get(name, []):
            if len(batch) >= target_size:
                return batch
            batch.append(item)
    return batch
