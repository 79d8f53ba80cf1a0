# FILE: adaptive_quiz/models/questions.py
"""
Question models

`GeneratedQuestion` mirrors the untrusted generator payload (camelCase wire
keys). Only the validator turns it into a trusted, immutable `Question`.
"""
from enum import Enum
from typing import Annotated, Any, List, Optional, Tuple, Union
from pydantic import (
    BaseModel, ConfigDict, Field, StrictFloat, StrictInt,
    StringConstraints, field_validator, model_validator
)


class DifficultyLevel(str, Enum):
    """Ordered question difficulty, easiest first"""
    VERY_EASY = "very_easy"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


DIFFICULTY_LEVELS: Tuple[DifficultyLevel, ...] = tuple(DifficultyLevel)


NonEmptyStr = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]


class GeneratedQuestion(BaseModel):
    """Raw question as emitted by a generator"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[Any] = None
    question_text: NonEmptyStr = Field(alias="questionText")
    options: List[NonEmptyStr]
    correct_answer: NonEmptyStr = Field(alias="correctAnswer")
    hint: NonEmptyStr
    explanation: NonEmptyStr
    level: NonEmptyStr
    topic: NonEmptyStr
    grade: Union[StrictInt, StrictFloat]

    @field_validator("options")
    @classmethod
    def validate_options(cls, v):
        if len(v) != 4:
            raise ValueError("options must contain exactly 4 entries")
        if len(set(v)) != 4:
            raise ValueError("options must be distinct")
        return v

    @model_validator(mode="after")
    def validate_correct_answer(self):
        if self.correct_answer not in self.options:
            raise ValueError(f"correctAnswer {self.correct_answer!r} is not one of the options")
        return self


class Question(BaseModel):
    """Accepted multiple-choice question"""
    model_config = ConfigDict(frozen=True)

    id: str
    question_text: str
    options: Tuple[str, str, str, str]
    correct_answer: str
    hint: str
    explanation: str
    topic: str
    difficulty_level: DifficultyLevel
    grade: int = Field(..., ge=1, le=12)


class GenerationRequest(BaseModel):
    """Transport-agnostic request handed to a question generator"""
    model_config = ConfigDict(frozen=True)

    subject: str
    grade: int = Field(..., ge=1, le=12)
    topic: str
    difficulty_level: DifficultyLevel
    count: int = Field(default=1, ge=1, le=5)
    previous_level: Optional[DifficultyLevel] = None
    avoid_texts: Tuple[str, ...] = ()


class GenerationContext(BaseModel):
    """Session context forwarded to the generation client"""
    session_id: Optional[str] = None
    subject: str
    previous_level: Optional[DifficultyLevel] = None
    recent_questions: List[str] = Field(default_factory=list)
