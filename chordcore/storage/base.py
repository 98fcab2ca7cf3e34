"""
Key-value store contract used by the repositories.

Values are JSON-compatible Python objects. A stored value that cannot be
decoded reads back as None.
"""

from __future__ import annotations
from typing import Any, Optional, Protocol


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def keys(self) -> list[str]:
        ...
