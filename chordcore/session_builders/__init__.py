"""Session builders: item selection for quiz and practice sessions."""

from chordcore.session_builders.pool_types import (
    QuizSession,
    QuizStats,
    SelectionOptions,
    SelectionStrategy,
)
from chordcore.session_builders.quiz_builder import QuizBuilder, select_items

__all__ = [
    "QuizBuilder",
    "QuizSession",
    "QuizStats",
    "SelectionOptions",
    "SelectionStrategy",
    "select_items",
]
