"""
Session state and API view models
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from adaptive_quiz.models.attempts import Attempt
from adaptive_quiz.models.questions import DifficultyLevel, Question


class SessionPhase(str, Enum):
    """Session controller states"""
    IDLE = "idle"
    LOADING = "loading"
    PRESENTING = "presenting"
    HINT_SHOWN = "hint_shown"
    SCORING = "scoring"
    ERROR = "error"
    REPORTING = "reporting"


class Transition(str, Enum):
    """Outcome of feeding an attempt to the progression policy"""
    STREAK = "streak"
    LEVEL_UP = "level_up"
    TOPIC_CHANGE = "topic_change"
    RESET = "reset"


class ProgressionState(BaseModel):
    """Current topic, difficulty and streak"""
    current_topic: str
    current_difficulty_index: int = Field(default=0, ge=0)
    consecutive_correct_streak: int = Field(default=0, ge=0)


class QuestionView(BaseModel):
    """Question as shown to the learner (answer withheld)"""
    id: str
    question_text: str
    options: List[str]
    topic: str
    difficulty_level: DifficultyLevel
    grade: int

    @classmethod
    def from_question(cls, question: Question) -> "QuestionView":
        return cls(
            id=question.id,
            question_text=question.question_text,
            options=list(question.options),
            topic=question.topic,
            difficulty_level=question.difficulty_level,
            grade=question.grade
        )


class SubmissionResult(BaseModel):
    """Result of one answer submission"""
    is_correct: bool
    resolved: bool
    hint: Optional[str] = None
    explanation: Optional[str] = None
    correct_answer: Optional[str] = None
    attempt: Optional[Attempt] = None
    transition: Optional[Transition] = None


class SessionView(BaseModel):
    """Read-only session snapshot"""
    session_id: str
    subject: str
    grade: int
    phase: SessionPhase
    topic: str
    difficulty_level: DifficultyLevel
    streak: int
    question: Optional[QuestionView] = None
    hint: Optional[str] = None
    explanation: Optional[str] = None
    correct_answer: Optional[str] = None
    submissions: int = 0
    last_error: Optional[str] = None
    time_remaining: Optional[float] = None
    question_time_remaining: Optional[float] = None
    attempts_recorded: int = 0
    topics_completed: List[str] = Field(default_factory=list)
