# FILE: adaptive_quiz/services/validator.py
"""
Structural validation of generator output
"""
import logging
import uuid
from typing import Any, Optional

from pydantic import ValidationError

from adaptive_quiz.models.questions import GeneratedQuestion, GenerationRequest, Question

logger = logging.getLogger(__name__)

# Ids models copy from example shapes instead of issuing their own
PLACEHOLDER_IDS = frozenset({"unique-id", "id", "question-id", "string"})


def validate_question(raw: Any, request: GenerationRequest) -> Optional[Question]:
    """
    Accept a raw generator candidate as a Question, or return None.

    Topic, difficulty and grade are taken from the request, not from the
    candidate. A generator-issued id is kept when it is a non-empty string
    and not a template placeholder; otherwise a fresh UUID is minted.
    """
    if not isinstance(raw, dict):
        logger.debug(f"Rejected candidate of type {type(raw).__name__}")
        return None

    try:
        generated = GeneratedQuestion.model_validate(raw)
    except ValidationError as e:
        logger.debug(f"Rejected candidate: {e.error_count()} validation errors")
        return None

    question_id = generated.id.strip() if isinstance(generated.id, str) else ""
    if question_id.lower() in PLACEHOLDER_IDS:
        question_id = ""

    return Question(
        id=question_id or str(uuid.uuid4()),
        question_text=generated.question_text,
        options=tuple(generated.options),
        correct_answer=generated.correct_answer,
        hint=generated.hint,
        explanation=generated.explanation,
        topic=request.topic,
        difficulty_level=request.difficulty_level,
        grade=request.grade
    )
