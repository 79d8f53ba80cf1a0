# FILE: adaptive_quiz/routes/questions.py
"""
One-shot question generation endpoint

Uses the process-wide question cache, so repeats are rejected across all
callers until the cache's periodic clear.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from adaptive_quiz.errors import GenerationExhausted
from adaptive_quiz.models.questions import DifficultyLevel, GenerationContext, Question
from adaptive_quiz.routes.dependencies import get_session_manager
from adaptive_quiz.services.catalog import validate_subject_topic
from adaptive_quiz.services.session_store import SessionManager

logger = logging.getLogger(__name__)
router = APIRouter()


class GenerateQuestionRequest(BaseModel):
    """Generate question request"""
    subject: str
    grade: int = Field(..., ge=1, le=12)
    topic: str
    level: DifficultyLevel


@router.post("/generate", response_model=Question)
async def generate_question(
    request: GenerateQuestionRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """Generate a single validated, unseen question"""
    subject = request.subject.strip().lower()
    topic = request.topic.strip().lower()

    try:
        validate_subject_topic(subject, topic)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Generate question: {subject}/{topic}, grade={request.grade}, level={request.level.value}")

    try:
        return await manager.generate_client.request_question(
            topic, request.level, request.grade, GenerationContext(subject=subject)
        )
    except GenerationExhausted as e:
        logger.error(f"Generate question failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
