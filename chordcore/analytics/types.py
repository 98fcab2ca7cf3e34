"""
Types for analytics dashboards.
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from chordcore.srs.constants import ItemType


@dataclass(frozen=True)
class ProgressDashboardData:
    """
    Precomputed metrics and series for one item type.
    """
    item_type: ItemType
    label: str
    practiced_count: int
    mastered_count: int
    overall_accuracy: float
    mastery_distribution: pd.Series
    trouble_items: pd.DataFrame
    daily_practice_minutes: pd.Series
