"""
chordcore - adaptive learning core for a chord-typing trainer.

Quick start:
    from chordcore import build_services, AttemptRecord, ItemType

    services = build_services()
    services.progress.record_attempt(
        AttemptRecord(item_id="a", item_type=ItemType.CHARACTER, correct=True, latency_ms=620)
    )
    batch = services.quiz.create_session("mixed", ItemType.CHARACTER, count=10)
"""

from chordcore.container import Services, build_services
from chordcore.keystrokes import KeystrokeClassifier, analyze_chord_input
from chordcore.progress_service import ProgressService
from chordcore.session_builders import QuizBuilder, SelectionStrategy
from chordcore.srs import (
    AttemptRecord,
    Direction,
    ItemType,
    LearningProgress,
    MasteryLevel,
    ProgressRepository,
)

__all__ = [
    "AttemptRecord",
    "Direction",
    "ItemType",
    "KeystrokeClassifier",
    "LearningProgress",
    "MasteryLevel",
    "ProgressRepository",
    "ProgressService",
    "QuizBuilder",
    "SelectionStrategy",
    "Services",
    "analyze_chord_input",
    "build_services",
]
