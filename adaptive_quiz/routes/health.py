# FILE: adaptive_quiz/routes/health.py
"""
Health check endpoint
"""
import logging
from fastapi import APIRouter, Depends

from adaptive_quiz.routes.dependencies import get_session_manager
from adaptive_quiz.services.session_store import SessionManager

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def health_check(manager: SessionManager = Depends(get_session_manager)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": "0.1.0",
        "generator": manager.generator.name,
        "dedup_scope": manager.settings.dedup_scope,
        "live_sessions": len(manager),
        "question_cache": manager.shared_cache.get_stats()
    }
