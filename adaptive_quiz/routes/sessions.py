# FILE: adaptive_quiz/routes/sessions.py
"""
Quiz session endpoints
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from adaptive_quiz.models.reports import SessionReport
from adaptive_quiz.models.session import SessionView
from adaptive_quiz.routes.dependencies import get_session_manager
from adaptive_quiz.services.report_aggregator import topic_summary
from adaptive_quiz.services.session_store import SessionManager

logger = logging.getLogger(__name__)
router = APIRouter()


class StartSessionRequest(BaseModel):
    """Start session request"""
    subject: str
    grade: int = Field(..., ge=1, le=12)


class AnswerRequest(BaseModel):
    """Answer submission"""
    answer: str


@router.post("", response_model=SessionView)
async def start_session(
    request: StartSessionRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """Create a session and load its first question"""
    logger.info(f"Start session: subject={request.subject}, grade={request.grade}")

    try:
        session = manager.create_session(request.subject, request.grade)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await session.start()
    return session.snapshot()


@router.get("/{session_id}", response_model=SessionView)
async def get_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Current session state"""
    return manager.get(session_id).snapshot()


@router.post("/{session_id}/answer")
async def submit_answer(
    session_id: str,
    request: AnswerRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """Submit an answer for the current question"""
    session = manager.get(session_id)
    result = session.submit(request.answer)

    return {
        "result": result.model_dump(mode="json"),
        "session": session.snapshot().model_dump(mode="json")
    }


@router.post("/{session_id}/next", response_model=SessionView)
async def next_question(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Continue to the next question"""
    session = manager.get(session_id)
    await session.next_question()
    return session.snapshot()


@router.post("/{session_id}/retry", response_model=SessionView)
async def retry_question(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Retry question generation after a failure"""
    session = manager.get(session_id)
    await session.retry()
    return session.snapshot()


@router.post("/{session_id}/finish", response_model=SessionReport)
async def finish_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Finish the session and return its report"""
    return manager.get(session_id).finish()


@router.get("/{session_id}/report")
async def get_report(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Report so far, with per-topic analytics"""
    session = manager.get(session_id)

    return {
        "session_id": session_id,
        "phase": session.phase.value,
        "finish_reason": session.finish_reason,
        "report": session.report.model_dump(mode="json"),
        "topic_summary": [s.model_dump() for s in topic_summary(session.report, session.subject)]
    }


@router.get("/{session_id}/attempts/export")
async def export_attempts(
    session_id: str,
    format: str = "csv",
    manager: SessionManager = Depends(get_session_manager)
):
    """Export the attempt log"""
    logger.info(f"Export attempts: session={session_id}, format={format}")
    session = manager.get(session_id)

    try:
        data = session.export_attempts(format=format)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "status": "success",
        "format": format,
        "count": len(session.attempts),
        "data": data
    }


@router.delete("/{session_id}")
async def delete_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Discard a session"""
    manager.remove(session_id)
    return {"status": "success", "session_id": session_id}
