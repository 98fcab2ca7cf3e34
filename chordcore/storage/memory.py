"""
In-memory key-value store.

Values are kept as JSON text so reads never alias objects handed to `set`,
matching the behaviour of the database-backed store.
"""

from __future__ import annotations
import json
import logging
from typing import Any, Optional


logger = logging.getLogger(__name__)


class InMemoryStore:
    def __init__(self, key_prefix: str = ""):
        self.key_prefix = key_prefix
        self._data: dict[str, str] = {}

    def _full_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(self._full_key(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Undecodable value under %s; treating as absent", self._full_key(key))
            return None

    def set(self, key: str, value: Any) -> None:
        self._data[self._full_key(key)] = json.dumps(value)

    def set_raw(self, key: str, raw: str) -> None:
        """Store text verbatim (used to load foreign or damaged data)."""
        self._data[self._full_key(key)] = raw

    def remove(self, key: str) -> None:
        self._data.pop(self._full_key(key), None)

    def keys(self) -> list[str]:
        prefix_len = len(self.key_prefix)
        return [k[prefix_len:] for k in self._data if k.startswith(self.key_prefix)]

    def clear(self) -> None:
        for key in self.keys():
            self.remove(key)
