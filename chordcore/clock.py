"""
Clocks used by the learning core.

Everything that needs "now" takes a clock callable instead of reading the
system time directly, so tests can pin time with ManualClock.
"""

from __future__ import annotations
import time
from datetime import datetime, timedelta, timezone
from typing import Callable


Clock = Callable[[], datetime]
MillisecondClock = Callable[[], float]


def utc_now() -> datetime:
    """Current wall-clock time in UTC."""
    return datetime.now(timezone.utc)


def monotonic_ms() -> float:
    """Monotonic milliseconds for keystroke timing."""
    return time.monotonic() * 1000.0


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    return int(round(ensure_utc(value).timestamp() * 1000))


def from_epoch_ms(value: float) -> datetime:
    return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)


class ManualClock:
    """
    Settable clock for tests and replays.

    Callable like any other clock; `advance` moves it forward.
    """

    def __init__(self, start: datetime | None = None):
        self._now = ensure_utc(start) if start else datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = ensure_utc(value)

    def advance(self, **kwargs) -> datetime:
        """Advance by timedelta keyword arguments (days=, hours=, ...)."""
        self._now = self._now + timedelta(**kwargs)
        return self._now
