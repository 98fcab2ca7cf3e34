"""Tests for configuration and wiring."""
import pytest

from chordcore.config import (
    DatabaseSettings,
    InputSettings,
    SessionSettings,
    Settings,
    get_database_url,
    get_settings,
)
from chordcore.container import build_services
from chordcore.srs.attempts import AttemptRecord
from chordcore.srs.constants import ItemType
from chordcore.storage.memory import InMemoryStore


def test_test_mode_uses_memory_database(monkeypatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("TEST_MODE", "true")
    assert get_database_url() == "sqlite:///:memory:"

    monkeypatch.setenv("DATABASE_URL", "sqlite:///other.db")
    assert get_database_url() == "sqlite:///other.db"


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("CHORD_MAX_DURATION_MS", "45")
    monkeypatch.setenv("MIXED_NEW_ITEM_RATIO", "0.3")
    settings = get_settings()
    assert settings.input.chord_max_duration_ms == 45
    assert settings.session.mixed_new_item_ratio == 0.3


@pytest.mark.parametrize(
    "settings",
    [
        Settings(input=InputSettings(chord_max_duration_ms=-1)),
        Settings(input=InputSettings(simultaneous_threshold_ms=0)),
        Settings(input=InputSettings(delimiter="")),
        Settings(session=SessionSettings(session_size=0)),
        Settings(session=SessionSettings(learn_new_item_ratio=1.5)),
    ],
)
def test_invalid_settings_rejected(settings) -> None:
    with pytest.raises(ValueError):
        settings.validate()


def test_build_services_with_sql_store(monkeypatch) -> None:
    """Test wiring against the default in-memory SQLite database."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = Settings(database=DatabaseSettings(url="sqlite:///:memory:"))
    services = build_services(settings=settings)

    services.progress.record_attempt(
        AttemptRecord(item_id="a", item_type=ItemType.CHARACTER, correct=True, latency_ms=600)
    )
    assert services.repository.get("a", ItemType.CHARACTER).total_attempts == 1
    assert all(key.startswith("progress_") or "stats" in key for key in services.store.keys())


def test_build_services_with_given_store() -> None:
    store = InMemoryStore()
    services = build_services(settings=Settings(), store=store)
    assert services.store is store
    assert services.classifier.max_chord_duration_ms == services.settings.input.chord_max_duration_ms


def test_build_services_applies_session_settings() -> None:
    """Test that session size and the new-item limit reach the quiz builder."""
    settings = Settings(session=SessionSettings(session_size=7, max_new_items_per_session=3))
    services = build_services(settings=settings, store=InMemoryStore())

    assert services.quiz.session_size == 7
    assert services.quiz.max_new_items_per_session == 3

    services.quiz.set_catalog(ItemType.CHARACTER, "abcdefghijklmnop")
    assert len(services.quiz.select("mixed", ItemType.CHARACTER)) == 7
    assert services.quiz.new_item_ids(ItemType.CHARACTER)[:3] == ["a", "b", "c"]
    assert len(services.quiz.select("new_introduction", ItemType.CHARACTER)) == 3
