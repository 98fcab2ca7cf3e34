"""Test configuration."""
import os
import random
from datetime import datetime, timezone

import pytest

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ["TEST_MODE"] = "true"

# Import after environment setup
from chordcore.clock import ManualClock
from chordcore.progress_service import ProgressService
from chordcore.session_builders.quiz_builder import QuizBuilder
from chordcore.srs.persistence import ProgressRepository
from chordcore.storage.memory import InMemoryStore


START = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> ManualClock:
    """Clock pinned to a fixed start time."""
    return ManualClock(START)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def repository(store: InMemoryStore, clock: ManualClock) -> ProgressRepository:
    return ProgressRepository(store, clock=clock)


@pytest.fixture
def service(repository: ProgressRepository, store: InMemoryStore, clock: ManualClock) -> ProgressService:
    counter = iter(range(1, 10_000))
    return ProgressService(
        repository,
        store,
        clock=clock,
        session_id_factory=lambda: f"session_{next(counter)}",
    )


@pytest.fixture
def quiz(repository: ProgressRepository, clock: ManualClock) -> QuizBuilder:
    """Quiz builder with a seeded random source."""
    return QuizBuilder(repository, clock=clock, rng=random.Random(1234))
