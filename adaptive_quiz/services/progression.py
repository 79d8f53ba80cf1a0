# FILE: adaptive_quiz/services/progression.py
"""
Streak-based topic/difficulty progression

Policy:
- Any correct resolution (first try or after the hint) extends the streak.
- Reaching the threshold raises difficulty one step, or, at the hardest
  level, moves to the next topic (cyclic) at the easiest level.
- An incorrect-final or timed-out attempt resets the streak and drops
  difficulty back to the easiest level.
"""
import logging
from typing import List, Optional, Sequence

from adaptive_quiz.models.attempts import Attempt
from adaptive_quiz.models.questions import DIFFICULTY_LEVELS, DifficultyLevel
from adaptive_quiz.models.session import ProgressionState, Transition

logger = logging.getLogger(__name__)


class ProgressionPolicy:
    """Owns and mutates ProgressionState in response to attempts"""

    def __init__(
        self,
        topics: Sequence[str],
        streak_threshold: int = 7,
        levels: Sequence[DifficultyLevel] = DIFFICULTY_LEVELS,
        start_topic: Optional[str] = None
    ):
        if not topics:
            raise ValueError("At least one topic is required")
        if not levels:
            raise ValueError("At least one difficulty level is required")
        if streak_threshold < 1:
            raise ValueError("streak_threshold must be at least 1")

        self.topics: List[str] = list(topics)
        self.levels: List[DifficultyLevel] = list(levels)
        self.streak_threshold = streak_threshold

        if start_topic is not None and start_topic not in self.topics:
            raise ValueError(f"Unknown start topic: {start_topic}")

        self.state = ProgressionState(current_topic=start_topic or self.topics[0])
        self.topics_completed: List[str] = []

    @property
    def current_topic(self) -> str:
        return self.state.current_topic

    @property
    def current_level(self) -> DifficultyLevel:
        return self.levels[self.state.current_difficulty_index]

    @property
    def max_index(self) -> int:
        return len(self.levels) - 1

    def record(self, attempt: Attempt) -> Transition:
        """Apply one completed attempt and report the resulting transition"""
        state = self.state

        if not attempt.is_correct:
            state.consecutive_correct_streak = 0
            state.current_difficulty_index = 0
            logger.info(f"Progression reset: topic={state.current_topic}, level={self.current_level.value}")
            return Transition.RESET

        state.consecutive_correct_streak += 1
        if state.consecutive_correct_streak < self.streak_threshold:
            return Transition.STREAK

        state.consecutive_correct_streak = 0
        if state.current_difficulty_index < self.max_index:
            state.current_difficulty_index += 1
            logger.info(f"Level up: topic={state.current_topic}, level={self.current_level.value}")
            return Transition.LEVEL_UP

        finished_topic = state.current_topic
        next_index = (self.topics.index(finished_topic) + 1) % len(self.topics)
        state.current_topic = self.topics[next_index]
        state.current_difficulty_index = 0
        self.topics_completed.append(finished_topic)
        logger.info(f"Topic change: {finished_topic} -> {state.current_topic}")
        return Transition.TOPIC_CHANGE
