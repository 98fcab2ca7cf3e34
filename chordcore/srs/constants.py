"""
SRS Constants and Parameters

All tunable numbers for scheduling, mastery and selection in one place.
"""

from enum import Enum


# ---- Item Types ----

class ItemType(str, Enum):
    """Kind of learnable item. Values match the persisted format."""
    CHARACTER = "character"
    POWER_CHORD = "powerChord"
    WORD = "word"


# ---- Mastery Levels ----

class MasteryLevel(str, Enum):
    """Mastery ladder, lowest to highest."""
    NEW = "new"
    LEARNING = "learning"
    FAMILIAR = "familiar"
    MASTERED = "mastered"


MASTERY_ORDER = {
    MasteryLevel.NEW: 0,
    MasteryLevel.LEARNING: 1,
    MasteryLevel.FAMILIAR: 2,
    MasteryLevel.MASTERED: 3,
}


# ---- Directions ----

class Direction(str, Enum):
    """Switch directions on a chording keyboard finger key."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    PRESS = "press"


ALL_DIRECTIONS = [
    Direction.UP,
    Direction.DOWN,
    Direction.LEFT,
    Direction.RIGHT,
    Direction.PRESS,
]


# ---- Confidence ----

class ConfidenceLevel(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


# ---- Ease Factor ----

INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 3.5


# ---- Mastery Window ----

MASTERY_WINDOW_SIZE = 5          # Attempts kept for recent accuracy
RESPONSE_TIME_WINDOW_SIZE = 5    # Attempts used for the latency average
FAMILIAR_ACCURACY_THRESHOLD = 0.7
MASTERED_ACCURACY_THRESHOLD = 0.9
MASTERED_RESPONSE_TIME_THRESHOLD = 1750  # ms, strict less-than
MAX_RESPONSE_TIME_PENALTY_MS = 17500     # Single-attempt latency cap


# ---- Intervals (days) ----

FAILED_REVIEW_INTERVAL = 1
MAX_INTERVAL_DAYS = 14              # Cap until the item is mastered
MASTERED_MAX_INTERVAL_DAYS = 180
OVERDUE_PRIORITY_HOURS = 24         # Overdue beyond this jumps the due queue

# Accelerated early intervals indexed by current repetitions.
# Minute values are expressed as fractions of a day.
INITIAL_INTERVALS = {
    ItemType.CHARACTER: [
        2 / 1440,    # 2 minutes
        10 / 1440,   # 10 minutes
        1 / 24,      # 1 hour
        4 / 24,      # 4 hours
        1,
        3,
        7,
        14,
        30,
    ],
    ItemType.POWER_CHORD: [
        2 / 1440,
        10 / 1440,
        1 / 24,
        4 / 24,
        1,
        3,
        7,
        14,
    ],
    ItemType.WORD: [
        2 / 1440,
        10 / 1440,
        1 / 24,
        1,
        6,
    ],
}


# ---- Quality Thresholds ----
# Quality is SM-2's 0-5 recall grade.

QUALITY_MIN = 0
QUALITY_MAX = 5
QUALITY_PASS = 3

INCORRECT_FAST_MS = 500     # Below: quality 0 (guess or misfire)
INCORRECT_SLOW_MS = 2000    # Below: quality 1, otherwise 2

# Ratio of latency to expected latency -> quality for correct answers
CORRECT_QUALITY_BANDS = [
    (0.5, 5),
    (0.75, 5),
    (1.0, 4),
    (1.5, 4),
    (2.0, 3),
]
CORRECT_QUALITY_FLOOR = 3

# Expected latency (ms) by item type and experience band
EXPECTED_LATENCY_MS = {
    ItemType.CHARACTER: {"beginner": 2000, "intermediate": 1000, "advanced": 500},
    ItemType.POWER_CHORD: {"beginner": 3000, "intermediate": 1500, "advanced": 750},
    ItemType.WORD: {"beginner": 4000, "intermediate": 2000, "advanced": 1000},
}
DEFAULT_EXPECTED_LATENCY_MS = 1500

EXPERIENCE_BAND = {
    MasteryLevel.NEW: "beginner",
    MasteryLevel.LEARNING: "beginner",
    MasteryLevel.FAMILIAR: "intermediate",
    MasteryLevel.MASTERED: "advanced",
}


# ---- Confidence Thresholds ----

STRONG_MIN_ATTEMPTS = 10
STRONG_MIN_ACCURACY = 0.9
STRONG_MAX_AVG_MS = 800
MODERATE_MIN_ATTEMPTS = 5
MODERATE_MIN_ACCURACY = 0.7
MODERATE_MAX_AVG_MS = 1500


# ---- Selection Weights ----

WEIGHT_BASE = 0.1
WEIGHT_FAIL_RATIO = 4.0
WEIGHT_OVERDUE_PER_DAY = 1.0
WEIGHT_LOW_ATTEMPTS = 0.5
LOW_ATTEMPTS_THRESHOLD = 3

WEAK_ACCURACY_THRESHOLD = 0.7          # Items below are "weak" in stats
DIRECTION_SPREAD_THRESHOLD = 0.3       # Max - min direction accuracy

# Overall finger confidence: mean of per-direction scores (weak=0 .. strong=2)
CONFIDENCE_SCORES = {
    ConfidenceLevel.WEAK: 0,
    ConfidenceLevel.MODERATE: 1,
    ConfidenceLevel.STRONG: 2,
}
OVERALL_STRONG_SCORE = 1.5
OVERALL_MODERATE_SCORE = 0.5


# ---- Persistence ----

STORAGE_KEYS = {
    ItemType.CHARACTER: "progress_characters",
    ItemType.POWER_CHORD: "progress_powerchords",
    ItemType.WORD: "progress_words",
}
STATS_KEY = "stats"
FINGER_PROGRESS_KEY = "progress_fingers"
GLOBAL_STATS_KEY = "global_stats"
SESSION_HISTORY_KEY = "session_history"
ACTIVE_SESSION_KEY = "active_session"
MAX_SESSION_HISTORY = 100
EXPORT_VERSION = 3
