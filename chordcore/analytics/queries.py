"""
Data-loading helpers for analytics.
"""

from __future__ import annotations

import pandas as pd

from chordcore.analytics.constants import PROGRESS_COLUMNS, SESSION_COLUMNS
from chordcore.progress_service import ProgressService
from chordcore.srs.constants import ItemType
from chordcore.srs.persistence import ProgressRepository


def load_progress_df(repository: ProgressRepository, item_type: ItemType) -> pd.DataFrame:
    """
    Load current progress aggregates for one item type into a dataframe.
    """
    rows = [
        {
            "item_id": p.item_id,
            "item_type": p.item_type.value,
            "mastery_level": p.mastery_level.value,
            "total_attempts": p.total_attempts,
            "correct_attempts": p.correct_attempts,
            "accuracy": p.accuracy,
            "average_response_time_ms": p.average_response_time_ms,
            "ease_factor": p.ease_factor,
            "interval_days": p.interval,
            "next_review_date": p.next_review_date,
            "last_attempt_date": p.last_attempt_date,
        }
        for p in repository.get_all(item_type)
    ]
    if not rows:
        return pd.DataFrame(columns=PROGRESS_COLUMNS)

    df = pd.DataFrame(rows, columns=PROGRESS_COLUMNS)
    df["next_review_date"] = pd.to_datetime(df["next_review_date"], utc=True, errors="coerce")
    df["last_attempt_date"] = pd.to_datetime(df["last_attempt_date"], utc=True, errors="coerce")
    return df


def load_sessions_df(service: ProgressService, limit: int = 100) -> pd.DataFrame:
    """
    Load finished sessions into a dataframe, oldest first.
    """
    sessions = service.session_history(limit)
    if not sessions:
        return pd.DataFrame(columns=SESSION_COLUMNS)

    df = pd.DataFrame(
        [
            {
                "session_id": s.id,
                "type": s.type,
                "start_time": s.start_time,
                "end_time": s.end_time,
                "items_attempted": s.items_attempted,
                "accuracy": s.accuracy,
                "score": s.score,
            }
            for s in sessions
        ]
    )
    df["start_time"] = pd.to_datetime(df["start_time"], utc=True, errors="coerce")
    df["end_time"] = pd.to_datetime(df["end_time"], utc=True, errors="coerce")
    df = df.dropna(subset=["start_time"])
    df["day_utc"] = df["start_time"].dt.floor("D")
    return df.sort_values("start_time").reset_index(drop=True)
