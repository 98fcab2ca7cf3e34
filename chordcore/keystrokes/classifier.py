"""
Keystroke Timing Classifier

Decides whether a burst of characters was produced by a single chord
(near-simultaneous output followed by the device's trailing space) or by
ordinary sequential typing.

Two paths:
- Sequence path: timestamps collected per character, analysed once the
  input is complete (analyze_chord_input / KeystrokeClassifier.analyze_input_sequence).
- Live path: key presses within a short threshold of each other are reported
  to subscribers as a SimultaneousPress.

Timestamps are milliseconds from a monotonic clock. Key events arrive
already resolved to (character, finger, direction); no hardware access here.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Literal, Optional, Sequence

from chordcore.clock import MillisecondClock, monotonic_ms

if TYPE_CHECKING:
    from chordcore.srs.constants import Direction


logger = logging.getLogger(__name__)

SIMULTANEOUS_THRESHOLD_MS = 50
CHORD_MAX_DURATION_MS = 30
CHORD_DELIMITER = " "

_PUNCTUATION = ".,!?;:'\""
_PUNCTUATION_RE = re.compile(r"[.,!?;:'\"]")


@dataclass(frozen=True)
class ChordInputAnalysis:
    """Result of classifying one completed input."""
    is_chord: bool
    duration_ms: float
    text: str
    has_trailing_delimiter: bool
    timestamps: tuple[float, ...] = ()


@dataclass(frozen=True)
class SimultaneousPress:
    keys: tuple[str, ...]
    timestamp: float


@dataclass(frozen=True)
class KeyEvent:
    """A key transition already resolved to finger and direction."""
    character: str
    timestamp: float
    finger: Optional[str] = None
    direction: Optional[Direction] = None


@dataclass(frozen=True)
class ChordResult:
    """Outcome of comparing chord output against an expected word."""
    status: Literal["incomplete", "correct", "incorrect"]
    text: str
    error_position: Optional[int] = None


@dataclass
class _KeyPress:
    key: str
    timestamp: float


def has_trailing_delimiter(raw_input: str, delimiter: str = CHORD_DELIMITER) -> bool:
    return len(raw_input) > 0 and raw_input.endswith(delimiter)


def analyze_chord_input(
    timestamps: Sequence[float],
    raw_input: str,
    max_duration_ms: float = CHORD_MAX_DURATION_MS,
    delimiter: str = CHORD_DELIMITER
) -> ChordInputAnalysis:
    """
    Classify an input as chord or sequential typing.

    A chord needs both the trailing delimiter and a first-to-last character
    span within `max_duration_ms`. Fewer than two timestamps span 0 ms.
    """
    trailing = has_trailing_delimiter(raw_input, delimiter)
    text = raw_input.strip()

    duration_ms = 0.0
    if len(timestamps) >= 2:
        duration_ms = max(0.0, float(timestamps[-1]) - float(timestamps[0]))

    return ChordInputAnalysis(
        is_chord=trailing and duration_ms <= max_duration_ms,
        duration_ms=duration_ms,
        text=text,
        has_trailing_delimiter=trailing,
        timestamps=tuple(timestamps),
    )


def is_punctuation(char: str) -> bool:
    return len(char) == 1 and char in _PUNCTUATION


def is_word_boundary(char: str) -> bool:
    return char == " " or is_punctuation(char)


def normalize_word_input(text: str) -> str:
    """Trim, lower-case and drop punctuation."""
    return _PUNCTUATION_RE.sub("", text.strip().lower())


def compare_words(typed: str, target: str) -> bool:
    return normalize_word_input(typed) == normalize_word_input(target)


def find_error_position(text: str, expected: str) -> int:
    """Index of the first differing character (case-insensitive)."""
    typed, target = text.lower(), expected.lower()
    for i in range(max(len(typed), len(target))):
        if i >= len(typed) or i >= len(target) or typed[i] != target[i]:
            return i
    return len(text)


def detect_chord_completion(
    raw_input: str,
    expected_word: str,
    delimiter: str = CHORD_DELIMITER
) -> ChordResult:
    """
    Compare chord output with the expected word.

    Without the delimiter and while the text is still shorter than the
    target, the input is incomplete.
    """
    text = raw_input.strip()
    if not has_trailing_delimiter(raw_input, delimiter) and len(text) < len(expected_word):
        return ChordResult(status="incomplete", text=text)
    if text.lower() == expected_word.lower():
        return ChordResult(status="correct", text=text)
    return ChordResult(
        status="incorrect",
        text=text,
        error_position=find_error_position(text, expected_word),
    )


class KeystrokeClassifier:
    """
    Stateful classifier for one input surface.

    Collects per-character timestamps for the sequence path, keeps a short
    history of key presses for the live simultaneous-press path, and tracks
    which keys are currently held.
    """

    def __init__(
        self,
        clock: MillisecondClock = monotonic_ms,
        max_chord_duration_ms: float = CHORD_MAX_DURATION_MS,
        simultaneous_threshold_ms: float = SIMULTANEOUS_THRESHOLD_MS,
        delimiter: str = CHORD_DELIMITER
    ):
        self._clock = clock
        self.max_chord_duration_ms = max_chord_duration_ms
        self.simultaneous_threshold_ms = simultaneous_threshold_ms
        self.delimiter = delimiter

        self._sequence: list[float] = []
        self._recent: list[_KeyPress] = []
        self._listeners: list[Callable[[SimultaneousPress], None]] = []
        self._pressed: dict[str, KeyEvent] = {}
        self._last_input_ms: float = 0
        self._input_start_ms: float = 0

    # ---- Sequence path ----

    def start_input_sequence(self) -> None:
        self._sequence = []
        self.reset_recent_presses()

    def record_character_input(self, char: str, timestamp: Optional[float] = None) -> None:
        """Timestamp one output character. The delimiter is not recorded."""
        if char == self.delimiter:
            return
        self._sequence.append(self._clock() if timestamp is None else timestamp)

    def analyze_input_sequence(self, raw_input: str) -> ChordInputAnalysis:
        return analyze_chord_input(
            self._sequence,
            raw_input,
            max_duration_ms=self.max_chord_duration_ms,
            delimiter=self.delimiter,
        )

    def clear_input_sequence(self) -> None:
        self._sequence = []
        self.reset_recent_presses()

    # ---- Live path ----

    def record_key_press(self, key: str, timestamp: Optional[float] = None) -> Optional[SimultaneousPress]:
        """
        Track a key press and notify listeners on a simultaneous press.

        Returns the SimultaneousPress that fired, if any.
        """
        now = self._clock() if timestamp is None else timestamp
        self._recent.append(_KeyPress(key=key, timestamp=now))
        self.prune_recent_presses(now)

        event = self.check_simultaneous_press(now)
        if event is not None:
            logger.debug("Simultaneous press: %s", ",".join(event.keys))
            for listener in list(self._listeners):
                listener(event)
        return event

    def prune_recent_presses(self, now: Optional[float] = None) -> None:
        """Drop presses older than twice the simultaneous threshold."""
        now = self._clock() if now is None else now
        horizon = self.simultaneous_threshold_ms * 2
        self._recent = [p for p in self._recent if now - p.timestamp < horizon]

    def check_simultaneous_press(self, now: Optional[float] = None) -> Optional[SimultaneousPress]:
        now = self._clock() if now is None else now
        keys: list[str] = []
        for press in self._recent:
            if now - press.timestamp <= self.simultaneous_threshold_ms and press.key not in keys:
                keys.append(press.key)
        if len(keys) >= 2:
            return SimultaneousPress(keys=tuple(keys), timestamp=now)
        return None

    def recent_presses(self) -> list[tuple[str, float]]:
        return [(p.key, p.timestamp) for p in self._recent]

    def reset_recent_presses(self) -> None:
        self._recent = []

    def on_simultaneous_press(
        self,
        callback: Callable[[SimultaneousPress], None]
    ) -> Callable[[], None]:
        """Subscribe to simultaneous presses; returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    # ---- Held keys and timing ----

    def process_key_down(self, event: KeyEvent) -> KeyEvent:
        char = event.character.lower()
        self._pressed.setdefault(char, event)
        if self._input_start_ms == 0:
            self._input_start_ms = event.timestamp
        self._last_input_ms = event.timestamp
        self.record_key_press(char, event.timestamp)
        return event

    def process_key_up(self, event: KeyEvent) -> KeyEvent:
        self._pressed.pop(event.character.lower(), None)
        return event

    def pressed_keys(self) -> list[str]:
        return list(self._pressed)

    def active_fingers(self) -> list[str]:
        fingers: list[str] = []
        for event in self._pressed.values():
            if event.finger and event.finger not in fingers:
                fingers.append(event.finger)
        return fingers

    def clear_pressed_keys(self) -> None:
        self._pressed.clear()

    def time_since_last_input(self, now: Optional[float] = None) -> float:
        if self._last_input_ms == 0:
            return 0
        now = self._clock() if now is None else now
        return now - self._last_input_ms

    @property
    def input_start_ms(self) -> float:
        return self._input_start_ms

    def reset_input_timer(self) -> None:
        self._last_input_ms = 0
        self._input_start_ms = 0
