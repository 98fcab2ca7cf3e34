"""Tests for curriculum stage unlocking."""
from chordcore.srs.schemas import ProgressStats
from chordcore.stages import (
    LearningStage,
    can_advance_to_stage,
    current_learning_stage,
    stage_progress,
    unlocked_stages,
)


def test_first_stage_always_open() -> None:
    stats = ProgressStats()
    assert can_advance_to_stage(LearningStage.FINGER_INTRODUCTION, stats)
    assert not can_advance_to_stage(LearningStage.CHARACTER_QUIZ, stats)
    assert current_learning_stage(stats) == LearningStage.FINGER_INTRODUCTION


def test_character_quiz_unlocks_at_half_alphabet() -> None:
    assert not can_advance_to_stage(LearningStage.CHARACTER_QUIZ, ProgressStats(characters_learned=12))
    assert can_advance_to_stage(LearningStage.CHARACTER_QUIZ, ProgressStats(characters_learned=13))


def test_progress_is_capped() -> None:
    stats = ProgressStats(characters_learned=40)
    assert stage_progress(LearningStage.FINGER_INTRODUCTION, stats) == 1.0


def test_unlocked_stages_follow_mastery() -> None:
    """Test the unlock chain from characters through power chords."""
    stats = ProgressStats(
        characters_learned=26,
        characters_mastered=20,
        power_chords_mastered=11,
    )
    assert unlocked_stages(stats) == [
        LearningStage.FINGER_INTRODUCTION,
        LearningStage.CHARACTER_QUIZ,
        LearningStage.INTRA_HAND_POWER_CHORDS,
        LearningStage.CROSS_HAND_POWER_CHORDS,
        LearningStage.WORD_CHORDS,
    ]
    assert current_learning_stage(stats) == LearningStage.WORD_CHORDS
