"""
Composition root.

The only place that picks concrete implementations; everything else takes
its collaborators as constructor arguments.
"""

from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Optional, Sequence

from chordcore.clock import Clock, utc_now
from chordcore.config import Settings, get_settings
from chordcore.keystrokes.classifier import KeystrokeClassifier
from chordcore.progress_service import ProgressService
from chordcore.session_builders.quiz_builder import QuizBuilder
from chordcore.srs.constants import ItemType
from chordcore.srs.persistence import ProgressRepository
from chordcore.storage.base import KeyValueStore
from chordcore.storage.database import SqlKeyValueStore


@dataclass
class Services:
    settings: Settings
    store: KeyValueStore
    repository: ProgressRepository
    progress: ProgressService
    quiz: QuizBuilder
    classifier: KeystrokeClassifier


def build_services(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    clock: Clock = utc_now,
    rng: Optional[random.Random] = None,
    catalogs: Optional[dict[ItemType, Sequence[str]]] = None
) -> Services:
    """
    Wire the learning core.

    Without an explicit store, a SQL store is opened from the database
    settings (tables created on first use).
    """
    settings = settings or get_settings()
    if store is None:
        store = SqlKeyValueStore.from_settings(settings.database, key_prefix=settings.storage.key_prefix)

    repository = ProgressRepository(store, clock=clock)
    return Services(
        settings=settings,
        store=store,
        repository=repository,
        progress=ProgressService(repository, store, clock=clock),
        quiz=QuizBuilder(
            repository,
            clock=clock,
            rng=rng,
            catalogs=catalogs,
            mixed_new_item_ratio=settings.session.mixed_new_item_ratio,
            learn_new_item_ratio=settings.session.learn_new_item_ratio,
            session_size=settings.session.session_size,
            max_new_items_per_session=settings.session.max_new_items_per_session,
        ),
        classifier=KeystrokeClassifier(
            max_chord_duration_ms=settings.input.chord_max_duration_ms,
            simultaneous_threshold_ms=settings.input.simultaneous_threshold_ms,
            delimiter=settings.input.delimiter,
        ),
    )
