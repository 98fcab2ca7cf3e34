"""
Typed selection models shared across session builders.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from chordcore.srs.constants import ItemType
from chordcore.srs.progress import LearningProgress


MIXED_NEW_ITEM_RATIO = 0.2
LEARN_NEW_ITEM_RATIO = 0.4
SESSION_SIZE = 20
MAX_NEW_ITEMS_PER_SESSION = 5


class SelectionStrategy(str, Enum):
    DUE_REVIEW = "due_review"
    NEW_INTRODUCTION = "new_introduction"
    WEAKNESS = "weakness"
    MIXED = "mixed"
    LEARN = "learn"


@dataclass
class SelectionOptions:
    """
    Inputs for one general selection pass.

    `restrict_to` limits the pool to a subset of item ids (e.g. the
    characters of one finger). `max_new_items` caps the new-item quota on
    top of the ratio; None leaves the ratio alone.
    """
    item_type: ItemType
    count: int
    include_new: bool = True
    new_item_ratio: float = MIXED_NEW_ITEM_RATIO
    restrict_to: Optional[set[str]] = None
    max_new_items: Optional[int] = None


@dataclass
class QuizSession:
    """A selected batch plus its composition."""
    strategy: SelectionStrategy
    item_type: ItemType
    items: list[LearningProgress]
    created_at: datetime
    new_item_count: int = 0
    review_item_count: int = 0

    @property
    def total_count(self) -> int:
        return len(self.items)

    @property
    def item_ids(self) -> list[str]:
        return [p.item_id for p in self.items]


@dataclass(frozen=True)
class QuizStats:
    item_type: ItemType
    due_count: int
    new_count: int
    weak_count: int
    total_count: int
    mastered_count: int = 0
    by_mastery: dict[str, int] = field(default_factory=dict)
