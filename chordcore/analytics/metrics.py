"""
Metric computations for progress dashboards.
"""

from __future__ import annotations

import pandas as pd

from chordcore.analytics.constants import DEFAULT_TROUBLE_LIMIT, MASTERY_ORDER


def compute_mastery_distribution(progress_df: pd.DataFrame) -> pd.Series:
    """
    Item count per mastery level, every level present, ladder order.
    """
    if progress_df.empty:
        return pd.Series(0, index=MASTERY_ORDER, dtype="int64")
    counts = progress_df["mastery_level"].value_counts()
    return counts.reindex(MASTERY_ORDER, fill_value=0).astype("int64")


def compute_practiced_count(progress_df: pd.DataFrame) -> int:
    if progress_df.empty:
        return 0
    return int((progress_df["total_attempts"] > 0).sum())


def compute_overall_accuracy(progress_df: pd.DataFrame) -> float:
    """
    Attempt-weighted accuracy across all items (0 with no attempts).
    """
    if progress_df.empty:
        return 0.0
    total = progress_df["total_attempts"].sum()
    if total == 0:
        return 0.0
    return float(progress_df["correct_attempts"].sum() / total)


def compute_trouble_items(
    progress_df: pd.DataFrame,
    limit: int = DEFAULT_TROUBLE_LIMIT
) -> pd.DataFrame:
    """
    Attempted items with the lowest accuracy; slower first on ties.
    """
    if progress_df.empty:
        return progress_df.copy()
    attempted = progress_df[progress_df["total_attempts"] > 0]
    ranked = attempted.sort_values(
        ["accuracy", "average_response_time_ms"],
        ascending=[True, False],
    )
    return ranked.head(limit).reset_index(drop=True)


def compute_daily_practice_minutes(sessions_df: pd.DataFrame) -> pd.Series:
    """
    Minutes practised per UTC day over a dense day index.
    """
    if sessions_df.empty:
        return pd.Series(dtype="float64")

    finished = sessions_df.dropna(subset=["end_time"]).copy()
    if finished.empty:
        return pd.Series(dtype="float64")

    finished["minutes"] = (
        finished["end_time"] - finished["start_time"]
    ).dt.total_seconds() / 60.0
    daily = finished.groupby("day_utc")["minutes"].sum()
    day_index = pd.date_range(start=daily.index.min(), end=daily.index.max(), freq="D")
    return daily.reindex(day_index, fill_value=0.0).astype("float64")
