# FILE: adaptive_quiz/services/session_store.py
"""
In-memory registry of live quiz sessions
"""
import logging
from typing import Callable, Dict, Optional

from adaptive_quiz.config import Settings, get_settings
from adaptive_quiz.errors import UnknownSession
from adaptive_quiz.providers.base import QuestionGenerator
from adaptive_quiz.services.generation_client import GenerationClient
from adaptive_quiz.services.question_cache import SessionQuestionCache, SharedQuestionCache
from adaptive_quiz.services.session_controller import QuizSession
from adaptive_quiz.services.timers import AsyncioScheduler, Scheduler

logger = logging.getLogger(__name__)


class SessionManager:
    """Creates, tracks and tears down quiz sessions for one process"""

    def __init__(
        self,
        generator: QuestionGenerator,
        settings: Optional[Settings] = None,
        scheduler_factory: Callable[[], Scheduler] = AsyncioScheduler,
        shared_cache: Optional[SharedQuestionCache] = None
    ):
        self.settings = settings or get_settings()
        self.generator = generator
        self.scheduler_factory = scheduler_factory
        self.shared_cache = shared_cache if shared_cache is not None else SharedQuestionCache(
            clear_interval_hours=self.settings.dedup_clear_hours
        )
        self.generate_client = GenerationClient.from_settings(
            generator, self.shared_cache, self.settings, batch_size=1
        )
        self._sessions: Dict[str, QuizSession] = {}

    def _cache_for_session(self) -> SessionQuestionCache:
        if self.settings.dedup_scope == "global":
            return self.shared_cache
        return SessionQuestionCache()

    def _evict_finished(self):
        """Drop sessions that finished more than FINISHED_SESSION_TTL_SECONDS ago"""
        ttl = self.settings.finished_session_ttl_seconds
        expired = [
            session_id for session_id, session in self._sessions.items()
            if session.ended_at is not None and session.scheduler.now() - session.ended_at >= ttl
        ]
        for session_id in expired:
            del self._sessions[session_id]
            logger.info(f"Evicted finished session {session_id}")

    def create_session(self, subject: str, grade: int) -> QuizSession:
        """Build an unstarted session with its own generation client"""
        self._evict_finished()
        client = GenerationClient.from_settings(
            self.generator, self._cache_for_session(), self.settings
        )
        session = QuizSession(
            subject=subject,
            grade=grade,
            client=client,
            settings=self.settings,
            scheduler=self.scheduler_factory()
        )
        self._sessions[session.session_id] = session
        logger.info(f"Created session {session.session_id} ({session.subject}, grade {grade})")
        return session

    def get(self, session_id: str) -> QuizSession:
        self._evict_finished()
        session = self._sessions.get(session_id)
        if session is None:
            raise UnknownSession(session_id)
        return session

    def remove(self, session_id: str):
        session = self.get(session_id)
        session.close()
        del self._sessions[session_id]
        logger.info(f"Removed session {session_id}")

    def __len__(self) -> int:
        self._evict_finished()
        return len(self._sessions)

    async def close(self):
        """Shut down all sessions and release shared resources"""
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
        self.shared_cache.close()
        await self.generator.aclose()
        logger.info("Session manager closed")
