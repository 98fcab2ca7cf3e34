"""
Curriculum stages and their unlock rules.

A stage unlocks once the stage it depends on reaches the required progress
fraction. Progress is derived from the repository's learned/mastered counts.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from chordcore.srs.schemas import ProgressStats
from chordcore.srs.constants import ItemType


class LearningStage(str, Enum):
    FINGER_INTRODUCTION = "finger_introduction"
    CHARACTER_QUIZ = "character_quiz"
    INTRA_HAND_POWER_CHORDS = "intra_hand_power_chords"
    CROSS_HAND_POWER_CHORDS = "cross_hand_power_chords"
    WORD_CHORDS = "word_chords"
    CHUNK_EXTENSION = "chunk_extension"
    SPEED_CHALLENGES = "speed_challenges"
    REAL_TYPING = "real_typing"


STAGE_ORDER = list(LearningStage)


@dataclass(frozen=True)
class StageRequirement:
    required_mastery: float
    depends_on: Optional[LearningStage] = None


STAGE_REQUIREMENTS = {
    LearningStage.FINGER_INTRODUCTION: StageRequirement(0.0),
    LearningStage.CHARACTER_QUIZ: StageRequirement(0.5, LearningStage.FINGER_INTRODUCTION),
    LearningStage.INTRA_HAND_POWER_CHORDS: StageRequirement(0.7, LearningStage.CHARACTER_QUIZ),
    LearningStage.CROSS_HAND_POWER_CHORDS: StageRequirement(0.7, LearningStage.INTRA_HAND_POWER_CHORDS),
    LearningStage.WORD_CHORDS: StageRequirement(0.7, LearningStage.CROSS_HAND_POWER_CHORDS),
    LearningStage.CHUNK_EXTENSION: StageRequirement(0.7, LearningStage.WORD_CHORDS),
    LearningStage.SPEED_CHALLENGES: StageRequirement(0.8, LearningStage.CHUNK_EXTENSION),
    LearningStage.REAL_TYPING: StageRequirement(0.8, LearningStage.SPEED_CHALLENGES),
}

# Item type each stage trains
STAGE_ITEM_TYPE = {
    LearningStage.FINGER_INTRODUCTION: ItemType.CHARACTER,
    LearningStage.CHARACTER_QUIZ: ItemType.CHARACTER,
    LearningStage.INTRA_HAND_POWER_CHORDS: ItemType.POWER_CHORD,
    LearningStage.CROSS_HAND_POWER_CHORDS: ItemType.POWER_CHORD,
    LearningStage.WORD_CHORDS: ItemType.WORD,
    LearningStage.CHUNK_EXTENSION: ItemType.WORD,
    LearningStage.SPEED_CHALLENGES: ItemType.WORD,
    LearningStage.REAL_TYPING: ItemType.WORD,
}

# Curriculum sizes used as progress denominators
ALPHABET_SIZE = 26
POWER_CHORD_TARGET = 15
WORD_CHORD_TARGET = 50
FLUENCY_WORD_TARGET = 100


def stage_progress(stage: LearningStage, stats: ProgressStats) -> float:
    """Fraction (0-1) of a stage's goal reached."""
    stage = LearningStage(stage)
    if stage == LearningStage.FINGER_INTRODUCTION:
        value = stats.characters_learned / ALPHABET_SIZE
    elif stage == LearningStage.CHARACTER_QUIZ:
        value = stats.characters_mastered / ALPHABET_SIZE
    elif stage in (LearningStage.INTRA_HAND_POWER_CHORDS, LearningStage.CROSS_HAND_POWER_CHORDS):
        value = stats.power_chords_mastered / POWER_CHORD_TARGET
    elif stage in (LearningStage.WORD_CHORDS, LearningStage.CHUNK_EXTENSION):
        value = stats.words_mastered / WORD_CHORD_TARGET
    else:
        value = stats.words_mastered / FLUENCY_WORD_TARGET
    return min(1.0, value)


def can_advance_to_stage(stage: LearningStage, stats: ProgressStats) -> bool:
    requirement = STAGE_REQUIREMENTS[LearningStage(stage)]
    if requirement.depends_on is None:
        return True
    return stage_progress(requirement.depends_on, stats) >= requirement.required_mastery


def unlocked_stages(stats: ProgressStats) -> list[LearningStage]:
    return [stage for stage in STAGE_ORDER if can_advance_to_stage(stage, stats)]


def current_learning_stage(stats: ProgressStats) -> LearningStage:
    """Highest unlocked stage."""
    for stage in reversed(STAGE_ORDER):
        if can_advance_to_stage(stage, stats):
            return stage
    return LearningStage.FINGER_INTRODUCTION
