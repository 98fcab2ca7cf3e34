"""
Analytics package exports.
"""

from chordcore.analytics.constants import ITEM_TYPE_LABELS
from chordcore.analytics.service import build_progress_dashboard
from chordcore.analytics.types import ProgressDashboardData

__all__ = [
    "ITEM_TYPE_LABELS",
    "build_progress_dashboard",
    "ProgressDashboardData",
]
