"""
Configuration - environment-driven settings for the learning core.

Values are read from the process environment after loading a `.env` file
(`.env.test` when ENV=test). Every group is a plain dataclass so callers can
also build settings by hand in tests.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def is_test_mode() -> bool:
    """Check if running in test mode."""
    return _env_bool("TEST_MODE")


def get_database_url() -> str:
    """
    Get the database URL for the key-value store.

    DATABASE_URL wins when set. Without it, TEST_MODE selects an in-memory
    SQLite database and normal runs use a local SQLite file.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    if is_test_mode():
        return "sqlite:///:memory:"
    return "sqlite:///chordcore.db"


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = field(default_factory=get_database_url)
    echo: bool = field(default_factory=lambda: _env_bool("DATABASE_ECHO"))
    test_mode: bool = field(default_factory=is_test_mode)


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))


@dataclass
class InputSettings:
    """Keystroke classification thresholds."""
    chord_max_duration_ms: int = field(
        default_factory=lambda: _env_int("CHORD_MAX_DURATION_MS", 30)
    )
    simultaneous_threshold_ms: int = field(
        default_factory=lambda: _env_int("SIMULTANEOUS_THRESHOLD_MS", 50)
    )
    delimiter: str = " "


@dataclass
class SessionSettings:
    """Quiz session composition."""
    session_size: int = field(default_factory=lambda: _env_int("SESSION_SIZE", 20))
    mixed_new_item_ratio: float = field(
        default_factory=lambda: _env_float("MIXED_NEW_ITEM_RATIO", 0.2)
    )
    learn_new_item_ratio: float = field(
        default_factory=lambda: _env_float("LEARN_NEW_ITEM_RATIO", 0.4)
    )
    max_new_items_per_session: int = field(
        default_factory=lambda: _env_int("MAX_NEW_ITEMS_PER_SESSION", 5)
    )


@dataclass
class StorageSettings:
    """Key-value storage settings."""
    key_prefix: str = field(default_factory=lambda: os.getenv("STORAGE_PREFIX", "cc_"))


@dataclass
class Settings:
    """All settings groups."""
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    input: InputSettings = field(default_factory=InputSettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)

    def validate(self) -> "Settings":
        """Raise ValueError for values the learning core cannot work with."""
        if self.input.chord_max_duration_ms < 0:
            raise ValueError("chord_max_duration_ms must be >= 0")
        if self.input.simultaneous_threshold_ms <= 0:
            raise ValueError("simultaneous_threshold_ms must be > 0")
        if not self.input.delimiter:
            raise ValueError("delimiter must not be empty")
        if self.session.session_size <= 0:
            raise ValueError("session_size must be > 0")
        if self.session.max_new_items_per_session < 0:
            raise ValueError("max_new_items_per_session must be >= 0")
        for name in ("mixed_new_item_ratio", "learn_new_item_ratio"):
            value = getattr(self.session, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        return self


def get_settings() -> Settings:
    """Build validated settings from the current environment."""
    return Settings().validate()
