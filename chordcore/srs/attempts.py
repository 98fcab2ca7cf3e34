"""
Attempt records - the immutable input to progress updates.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from chordcore.keystrokes.classifier import ChordInputAnalysis, compare_words
from chordcore.srs.constants import Direction, ItemType


@dataclass(frozen=True)
class AttemptRecord:
    """
    One scored attempt at an item.

    `attempts` counts tries before success (words only); `skip_mastery_update`
    marks guided practice that should only bump counters. `finger` names the
    finger that typed a character, for per-finger totals.
    """
    item_id: str
    item_type: ItemType
    correct: bool
    latency_ms: float
    timestamp: Optional[datetime] = None
    direction: Optional[Direction] = None
    attempts: int = 1
    skip_mastery_update: bool = False
    finger: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "item_type", ItemType(self.item_type))
        if self.direction is not None:
            object.__setattr__(self, "direction", Direction(self.direction))
        if self.latency_ms < 0:
            object.__setattr__(self, "latency_ms", 0.0)
        if self.attempts < 1:
            object.__setattr__(self, "attempts", 1)


def attempt_from_input(
    analysis: ChordInputAnalysis,
    expected_text: str,
    item_type: ItemType,
    latency_ms: float,
    item_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
    require_chord: bool = False,
    attempts: int = 1,
    direction: Optional[Direction] = None,
    finger: Optional[str] = None
) -> AttemptRecord:
    """
    Score classifier output against the expected text.

    With `require_chord`, correct text typed sequentially still counts as
    incorrect.
    """
    correct = compare_words(analysis.text, expected_text)
    if require_chord and not analysis.is_chord:
        correct = False
    return AttemptRecord(
        item_id=item_id or expected_text,
        item_type=item_type,
        correct=correct,
        latency_ms=latency_ms,
        timestamp=timestamp,
        attempts=attempts,
        direction=direction,
        finger=finger,
    )
