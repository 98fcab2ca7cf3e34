"""
Constants for analytics dashboards and progress frame columns.
"""

from __future__ import annotations

from typing import Final

from chordcore.srs.constants import ItemType, MasteryLevel


PROGRESS_COLUMNS: Final[list[str]] = [
    "item_id",
    "item_type",
    "mastery_level",
    "total_attempts",
    "correct_attempts",
    "accuracy",
    "average_response_time_ms",
    "ease_factor",
    "interval_days",
    "next_review_date",
    "last_attempt_date",
]

SESSION_COLUMNS: Final[list[str]] = [
    "session_id",
    "type",
    "start_time",
    "end_time",
    "items_attempted",
    "accuracy",
    "score",
    "day_utc",
]

MASTERY_ORDER: Final[list[str]] = [level.value for level in MasteryLevel]

ITEM_TYPE_LABELS: Final[dict[ItemType, str]] = {
    ItemType.CHARACTER: "Characters",
    ItemType.POWER_CHORD: "Power Chords",
    ItemType.WORD: "Words",
}

DEFAULT_TROUBLE_LIMIT: Final[int] = 10
