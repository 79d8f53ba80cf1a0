"""
Shared route dependencies
"""
from fastapi import Request

from adaptive_quiz.services.session_store import SessionManager


def get_session_manager(request: Request) -> SessionManager:
    """Session manager created in the app lifespan"""
    return request.app.state.session_manager
