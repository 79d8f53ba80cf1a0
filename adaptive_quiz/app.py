# FILE: adaptive_quiz/app.py
"""
FastAPI application entry point for the adaptive quiz engine
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adaptive_quiz.config import get_settings
from adaptive_quiz.errors import InvalidSessionAction, UnknownSession
from adaptive_quiz.providers.registry import build_question_generator
from adaptive_quiz.routes import health, questions, sessions
from adaptive_quiz.services.session_store import SessionManager

logger = logging.getLogger(__name__)
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def create_app(session_manager: Optional[SessionManager] = None) -> FastAPI:
    """Build the API; tests inject a manager wired to a fake generator"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting adaptive quiz engine v0.1.0")

        manager = session_manager
        if manager is None:
            manager = SessionManager(build_question_generator(settings), settings=settings)
        app.state.session_manager = manager

        logger.info(f"Question generator ready: {manager.generator.name}, dedup={manager.settings.dedup_scope}")

        yield

        logger.info("Shutting down adaptive quiz engine")
        await manager.close()

    app = FastAPI(
        title="Adaptive Quiz Engine API",
        description="Adaptive multiple-choice practice sessions with generated questions",
        version="0.1.0",
        lifespan=lifespan
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidSessionAction)
    async def invalid_action_handler(request: Request, exc: InvalidSessionAction):
        logger.warning(f"Rejected session action on {request.url.path}: {exc}")
        return JSONResponse(status_code=409, content={"error": "Invalid session action", "detail": str(exc)})

    @app.exception_handler(UnknownSession)
    async def unknown_session_handler(request: Request, exc: UnknownSession):
        return JSONResponse(status_code=404, content={"error": "Not found", "detail": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    # Include routers
    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
    app.include_router(questions.router, prefix="/questions", tags=["questions"])

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": "Adaptive Quiz Engine",
            "version": "0.1.0",
            "status": "active"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "adaptive_quiz.app:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.environment == "development"
    )
