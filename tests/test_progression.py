# FILE: tests/test_progression.py
"""Streak-based progression tests"""
import pytest

from adaptive_quiz.models.attempts import Attempt
from adaptive_quiz.models.questions import DifficultyLevel
from adaptive_quiz.models.session import Transition
from adaptive_quiz.services.progression import ProgressionPolicy

TOPICS = ["numbers", "algebra", "geometry", "statistics"]


def attempt(correct=True, topic="numbers", level=DifficultyLevel.VERY_EASY, timed_out=False, tries=1):
    return Attempt(
        question_id="q",
        topic=topic,
        difficulty_level=level,
        is_correct=correct,
        attempts_needed=tries,
        used_hint=tries > 1,
        time_taken_seconds=5.0,
        timed_out=timed_out
    )


def test_starts_at_first_topic_easiest_level():
    policy = ProgressionPolicy(TOPICS)
    assert policy.current_topic == "numbers"
    assert policy.current_level is DifficultyLevel.VERY_EASY
    assert policy.state.consecutive_correct_streak == 0


def test_seven_correct_raises_level():
    policy = ProgressionPolicy(TOPICS, streak_threshold=7)

    transitions = [policy.record(attempt()) for _ in range(7)]

    assert transitions[:6] == [Transition.STREAK] * 6
    assert transitions[6] is Transition.LEVEL_UP
    assert policy.current_level is DifficultyLevel.EASY
    assert policy.current_topic == "numbers"
    assert policy.state.consecutive_correct_streak == 0


def test_correct_after_hint_extends_streak():
    policy = ProgressionPolicy(TOPICS, streak_threshold=2)
    policy.record(attempt(tries=2))
    assert policy.record(attempt(tries=2)) is Transition.LEVEL_UP


def test_streak_at_hardest_level_changes_topic():
    policy = ProgressionPolicy(TOPICS, streak_threshold=7)

    for _ in range(3 * 7):
        policy.record(attempt())
    assert policy.current_level is DifficultyLevel.HARD

    for _ in range(6):
        assert policy.record(attempt()) is Transition.STREAK
    assert policy.record(attempt()) is Transition.TOPIC_CHANGE

    assert policy.current_topic == "algebra"
    assert policy.current_level is DifficultyLevel.VERY_EASY
    assert policy.topics_completed == ["numbers"]


def test_topics_cycle_back_to_first():
    policy = ProgressionPolicy(["grammar", "vocabulary"], streak_threshold=1)
    levels = len(policy.levels)

    for _ in range(2 * levels):
        policy.record(attempt())

    assert policy.current_topic == "grammar"
    assert policy.topics_completed == ["grammar", "vocabulary"]


def test_single_topic_wraps_to_itself():
    policy = ProgressionPolicy(["reading"], streak_threshold=1)

    for _ in range(3):
        policy.record(attempt())
    assert policy.current_level is DifficultyLevel.HARD

    assert policy.record(attempt()) is Transition.TOPIC_CHANGE
    assert policy.current_topic == "reading"
    assert policy.current_level is DifficultyLevel.VERY_EASY


@pytest.mark.parametrize("failed", [
    attempt(correct=False, tries=2),
    attempt(correct=False, timed_out=True),
])
def test_failure_resets_streak_and_level(failed):
    policy = ProgressionPolicy(TOPICS, streak_threshold=3)
    for _ in range(4):
        policy.record(attempt())
    assert policy.current_level is DifficultyLevel.EASY
    assert policy.state.consecutive_correct_streak == 1

    assert policy.record(failed) is Transition.RESET
    assert policy.state.consecutive_correct_streak == 0
    assert policy.current_level is DifficultyLevel.VERY_EASY
    assert policy.current_topic == "numbers"


def test_state_stays_in_bounds():
    policy = ProgressionPolicy(TOPICS, streak_threshold=2)
    outcomes = [True, True, False, True, True, True, True, True, True, True, False] * 5

    for correct in outcomes:
        policy.record(attempt(correct=correct))
        assert 0 <= policy.state.current_difficulty_index <= policy.max_index
        assert 0 <= policy.state.consecutive_correct_streak < policy.streak_threshold
        assert policy.current_topic in TOPICS


def test_start_topic_and_validation():
    assert ProgressionPolicy(TOPICS, start_topic="geometry").current_topic == "geometry"

    with pytest.raises(ValueError):
        ProgressionPolicy([])
    with pytest.raises(ValueError):
        ProgressionPolicy(TOPICS, streak_threshold=0)
    with pytest.raises(ValueError):
        ProgressionPolicy(TOPICS, start_topic="poetry")
