"""
Service layer to assemble progress dashboards by item type.
"""

from __future__ import annotations

from chordcore.analytics.constants import DEFAULT_TROUBLE_LIMIT, ITEM_TYPE_LABELS
from chordcore.analytics.metrics import (
    compute_daily_practice_minutes,
    compute_mastery_distribution,
    compute_overall_accuracy,
    compute_practiced_count,
    compute_trouble_items,
)
from chordcore.analytics.queries import load_progress_df, load_sessions_df
from chordcore.analytics.types import ProgressDashboardData
from chordcore.progress_service import ProgressService
from chordcore.srs.constants import ItemType, MasteryLevel


def build_progress_dashboard(
    service: ProgressService,
    item_type: ItemType,
    trouble_limit: int = DEFAULT_TROUBLE_LIMIT
) -> ProgressDashboardData:
    """
    Build all KPI values and series needed by a progress page for one item type.
    """
    item_type = ItemType(item_type)
    progress_df = load_progress_df(service.repository, item_type)
    sessions_df = load_sessions_df(service)

    distribution = compute_mastery_distribution(progress_df)

    return ProgressDashboardData(
        item_type=item_type,
        label=ITEM_TYPE_LABELS[item_type],
        practiced_count=compute_practiced_count(progress_df),
        mastered_count=int(distribution[MasteryLevel.MASTERED.value]),
        overall_accuracy=compute_overall_accuracy(progress_df),
        mastery_distribution=distribution,
        trouble_items=compute_trouble_items(progress_df, trouble_limit),
        daily_practice_minutes=compute_daily_practice_minutes(sessions_df),
    )
