"""
Session report models
"""
from typing import Dict, List
from pydantic import BaseModel, ConfigDict, Field

from adaptive_quiz.models.questions import DifficultyLevel


class TopicStat(BaseModel):
    """Per-topic running totals"""
    model_config = ConfigDict(frozen=True)

    total: int = 0
    correct: int = 0
    total_attempts: int = 0
    total_time: float = 0.0
    hints_used: int = 0
    timeouts: int = 0


class LevelStat(BaseModel):
    """Per-difficulty running totals"""
    model_config = ConfigDict(frozen=True)

    total: int = 0
    correct: int = 0


class QuestionRecord(BaseModel):
    """One chronological entry per recorded attempt"""
    model_config = ConfigDict(frozen=True)

    question_id: str
    topic: str
    difficulty_level: DifficultyLevel
    attempts_needed: int
    hint_used: bool
    time_taken: float
    correct: bool
    timed_out: bool = False


class RevisionItem(BaseModel):
    """Topic and level the learner should revisit"""
    model_config = ConfigDict(frozen=True)

    topic: str
    difficulty_level: DifficultyLevel


class SessionReport(BaseModel):
    """Aggregate snapshot derived from the attempt log"""
    model_config = ConfigDict(frozen=True)

    total_questions: int = 0
    correct_answers: int = 0
    hints_used: int = 0
    time_taken: float = 0.0
    total_attempts: int = 0
    average_time_per_question: float = 0.0
    timeouts_expired: int = 0
    topic_stats: Dict[str, TopicStat] = Field(default_factory=dict)
    level_stats: Dict[DifficultyLevel, LevelStat] = Field(default_factory=dict)
    questions_data: List[QuestionRecord] = Field(default_factory=list)
    revision_needed: List[RevisionItem] = Field(default_factory=list)
    topics_completed: List[str] = Field(default_factory=list)


class TopicSummary(BaseModel):
    """Derived per-topic analytics"""
    topic: str
    display_name: str
    accuracy: float
    average_time: float
    incorrect: int
    hints_used: int
