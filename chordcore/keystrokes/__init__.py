"""Keystroke timing classification."""

from chordcore.keystrokes.classifier import (
    CHORD_MAX_DURATION_MS,
    SIMULTANEOUS_THRESHOLD_MS,
    ChordInputAnalysis,
    ChordResult,
    KeyEvent,
    KeystrokeClassifier,
    SimultaneousPress,
    analyze_chord_input,
    compare_words,
    detect_chord_completion,
    is_word_boundary,
    normalize_word_input,
)

__all__ = [
    "CHORD_MAX_DURATION_MS",
    "SIMULTANEOUS_THRESHOLD_MS",
    "ChordInputAnalysis",
    "ChordResult",
    "KeyEvent",
    "KeystrokeClassifier",
    "SimultaneousPress",
    "analyze_chord_input",
    "compare_words",
    "detect_chord_completion",
    "is_word_boundary",
    "normalize_word_input",
]
