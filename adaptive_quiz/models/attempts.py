"""
Attempt models
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from adaptive_quiz.models.questions import DifficultyLevel


class Attempt(BaseModel):
    """Finalized outcome for a single question"""
    model_config = ConfigDict(frozen=True)

    question_id: str
    topic: str
    difficulty_level: DifficultyLevel
    is_correct: bool
    attempts_needed: int = Field(..., ge=1)
    used_hint: bool = False
    time_taken_seconds: float = Field(default=0.0, ge=0.0)
    timed_out: bool = False
    attempted_at: Optional[datetime] = None
