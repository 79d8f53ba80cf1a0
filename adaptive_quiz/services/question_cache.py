# FILE: adaptive_quiz/services/question_cache.py
"""
Question deduplication caches with normalized keys

SessionQuestionCache lives and dies with one learner session.
SharedQuestionCache is process-wide: created at startup, cleared wholesale
every `clear_interval_hours`, closed at shutdown.
"""
import logging
import re
import threading
import time
from typing import Any, Callable, Dict, Set

logger = logging.getLogger(__name__)

_DISALLOWED_CHARS = re.compile(r"[^a-z0-9×\s]")
_WHITESPACE = re.compile(r"\s+")


def question_key(text: str) -> str:
    """Normalize question text: lower-case, keep [a-z0-9 ×], collapse whitespace"""
    lowered = text.lower()
    stripped = _DISALLOWED_CHARS.sub("", lowered)
    return _WHITESPACE.sub(" ", stripped).strip()


def identifier_key(question_id: str) -> str:
    """Cache key for identifier-based deduplication"""
    return f"id:{question_id}"


class SessionQuestionCache:
    """Per-session record of seen question keys"""

    def __init__(self):
        self._keys: Set[str] = set()

    def has(self, key: str) -> bool:
        return key in self._keys

    def add(self, key: str):
        self._keys.add(key)

    def check_and_add(self, key: str) -> bool:
        """Register key; False if it was already present"""
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def clear(self):
        self._keys.clear()

    def __len__(self) -> int:
        return len(self._keys)

    def get_stats(self) -> Dict[str, Any]:
        return {"scope": "session", "total_entries": len(self._keys)}


class SharedQuestionCache(SessionQuestionCache):
    """Process-wide question cache with periodic wholesale clear"""

    def __init__(self, clear_interval_hours: float = 24, clock: Callable[[], float] = time.monotonic):
        super().__init__()
        self.clear_interval_seconds = clear_interval_hours * 3600
        self._clock = clock
        self._lock = threading.Lock()
        self._cleared_at = clock()
        self._closed = False

    def _expire_if_due(self):
        now = self._clock()
        if now - self._cleared_at >= self.clear_interval_seconds:
            logger.info(f"Clearing shared question cache ({len(self._keys)} entries)")
            self._keys.clear()
            self._cleared_at = now

    def has(self, key: str) -> bool:
        with self._lock:
            self._expire_if_due()
            return key in self._keys

    def add(self, key: str):
        with self._lock:
            self._expire_if_due()
            self._keys.add(key)

    def check_and_add(self, key: str) -> bool:
        with self._lock:
            self._expire_if_due()
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def clear(self):
        with self._lock:
            self._keys.clear()
            self._cleared_at = self._clock()
        logger.info("Cleared shared question cache")

    def close(self):
        """Tear down at process stop"""
        self.clear()
        self._closed = True

    def __len__(self) -> int:
        with self._lock:
            self._expire_if_due()
            return len(self._keys)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            self._expire_if_due()
            return {
                "scope": "global",
                "total_entries": len(self._keys),
                "clear_interval_hours": self.clear_interval_seconds / 3600,
                "seconds_until_clear": max(
                    0.0, self.clear_interval_seconds - (self._clock() - self._cleared_at)
                ),
                "closed": self._closed
            }
