"""Key-value storage backends."""

from chordcore.storage.base import KeyValueStore
from chordcore.storage.database import SqlKeyValueStore, get_engine
from chordcore.storage.memory import InMemoryStore

__all__ = [
    "KeyValueStore",
    "SqlKeyValueStore",
    "get_engine",
    "InMemoryStore",
]
