# FILE: adaptive_quiz/services/generation_client.py
"""
Generation client: wraps a question generator with validation,
duplicate filtering, exponential backoff and rate-limit handling
"""
import asyncio
import json
import logging
import random
import re
import uuid
from collections import defaultdict, deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Tuple

from adaptive_quiz.config import Settings
from adaptive_quiz.errors import GenerationError, GenerationExhausted, RateLimitedError
from adaptive_quiz.models.questions import (
    DifficultyLevel, GenerationContext, GenerationRequest, Question
)
from adaptive_quiz.providers.base import QuestionGenerator
from adaptive_quiz.services.question_cache import (
    SessionQuestionCache, identifier_key, question_key
)
from adaptive_quiz.services.validator import validate_question

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
_MAX_AVOID_TEXTS = 10

PendingKey = Tuple[str, str, DifficultyLevel, int]


def parse_candidates(payload: Any) -> Optional[List[Any]]:
    """
    Unpack generator output into raw candidates.

    Accepts JSON text (optionally fenced), a single question object,
    a list of objects or {"questions": [...]}. Returns None if unusable.
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")

    if isinstance(payload, str):
        text = _CODE_FENCE.sub("", payload).strip()
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            return None

    if isinstance(payload, dict):
        if "questions" in payload:
            questions = payload["questions"]
            return list(questions) if isinstance(questions, list) else None
        return [payload]

    if isinstance(payload, list):
        return payload

    return None


class GenerationClient:
    """Retrying, duplicate-aware front end to a question generator"""

    def __init__(
        self,
        generator: QuestionGenerator,
        cache: SessionQuestionCache,
        max_retries: int = 3,
        base_delay: float = 2.0,
        max_delay: float = 10.0,
        jitter: float = 1.0,
        rate_limit_delay: float = 20.0,
        max_rate_limit_retries: int = 3,
        batch_size: int = 5,
        key_policy: str = "content",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None
    ):
        if key_policy not in ("content", "identifier"):
            raise ValueError("key_policy must be 'content' or 'identifier'")
        self.generator = generator
        self.cache = cache
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self.rate_limit_delay = rate_limit_delay
        self.max_rate_limit_retries = max_rate_limit_retries
        self.batch_size = batch_size
        self.key_policy = key_policy
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._pending: Dict[PendingKey, Deque[Question]] = defaultdict(deque)

    @classmethod
    def from_settings(
        cls,
        generator: QuestionGenerator,
        cache: SessionQuestionCache,
        settings: Settings,
        **overrides
    ) -> "GenerationClient":
        options = dict(
            max_retries=settings.max_retries,
            base_delay=settings.base_delay_seconds,
            max_delay=settings.max_delay_seconds,
            jitter=settings.jitter_seconds,
            rate_limit_delay=settings.rate_limit_delay_seconds,
            max_rate_limit_retries=settings.max_rate_limit_retries,
            batch_size=settings.generation_batch_size,
            key_policy=settings.dedup_key_policy
        )
        options.update(overrides)
        return cls(generator, cache, **options)

    def backoff_delay(self, attempt: int) -> float:
        """min(base * 2^attempt + jitter, max)"""
        jitter = self._rng.uniform(0, self.jitter) if self.jitter > 0 else 0.0
        return min(self.base_delay * (2 ** attempt) + jitter, self.max_delay)

    def cache_key(self, question: Question) -> str:
        if self.key_policy == "identifier":
            return identifier_key(question.id)
        return question_key(question.question_text)

    def pending_count(self) -> int:
        return sum(len(queue) for queue in self._pending.values())

    async def request_question(
        self,
        topic: str,
        difficulty: DifficultyLevel,
        grade: int,
        context: GenerationContext
    ) -> Question:
        """
        Return one validated, previously unseen question.

        Raises GenerationExhausted once the retry budget is spent. The cache
        is only written when a question is handed out.
        """
        request = GenerationRequest(
            subject=context.subject,
            grade=grade,
            topic=topic,
            difficulty_level=difficulty,
            count=self.batch_size,
            previous_level=context.previous_level,
            avoid_texts=tuple(context.recent_questions[-_MAX_AVOID_TEXTS:])
        )

        buffered = self._take_pending(request)
        if buffered is not None:
            logger.debug(f"Serving buffered question {buffered.id} for {topic}/{difficulty.value}")
            return buffered

        attempt = 0
        rate_limited = 0
        calls = 0
        last_failure: Optional[str] = None

        while True:
            calls += 1
            try:
                payload = await self.generator.generate(request)
            except RateLimitedError as e:
                rate_limited += 1
                last_failure = str(e)
                if rate_limited > self.max_rate_limit_retries:
                    raise GenerationExhausted(calls, last_failure) from e
                delay = max(self.rate_limit_delay, e.retry_after or 0.0)
                logger.warning(
                    f"Rate limit hit, waiting {delay:.1f}s before retry "
                    f"({rate_limited}/{self.max_rate_limit_retries})"
                )
                await self._sleep(delay)
                continue
            except GenerationError as e:
                last_failure = str(e)
            except Exception as e:
                last_failure = f"{type(e).__name__}: {e}"
            else:
                question, last_failure = self._accept(payload, request)
                if question is not None:
                    return question

            if attempt >= self.max_retries:
                logger.error(f"Generation exhausted after {calls} calls: {last_failure}")
                raise GenerationExhausted(calls, last_failure)

            delay = self.backoff_delay(attempt)
            attempt += 1
            logger.warning(
                f"Generation attempt {calls} failed ({last_failure}); "
                f"retrying in {delay:.1f}s ({attempt}/{self.max_retries})"
            )
            await self._sleep(delay)

    def _accept(self, payload: Any, request: GenerationRequest) -> Tuple[Optional[Question], Optional[str]]:
        candidates = parse_candidates(payload)
        if candidates is None:
            return None, "unparseable generator output"

        survivors: List[Tuple[str, Question]] = []
        batch_keys = set()
        batch_ids = set()
        invalid = 0
        duplicates = 0

        for raw in candidates:
            question = validate_question(raw, request)
            if question is None:
                invalid += 1
                continue
            if question.id in batch_ids:
                question = question.model_copy(update={"id": str(uuid.uuid4())})
            batch_ids.add(question.id)
            key = self.cache_key(question)
            if key in batch_keys or self.cache.has(key):
                duplicates += 1
                continue
            batch_keys.add(key)
            survivors.append((key, question))

        accepted: Optional[Question] = None
        surplus: List[Question] = []
        for key, question in survivors:
            if accepted is not None:
                surplus.append(question)
            elif self.cache.check_and_add(key):
                accepted = question
            else:
                duplicates += 1

        if surplus:
            self._pending[self._pending_key(request)].extend(surplus)

        if accepted is None:
            return None, (
                f"no usable candidates ({invalid} invalid, {duplicates} duplicate, "
                f"{len(candidates)} received)"
            )

        logger.info(
            f"Accepted question {accepted.id} for {request.topic}/{request.difficulty_level.value} "
            f"({invalid} invalid, {duplicates} duplicate, {len(surplus)} buffered)"
        )
        return accepted, None

    def _take_pending(self, request: GenerationRequest) -> Optional[Question]:
        queue = self._pending.get(self._pending_key(request))
        while queue:
            question = queue.popleft()
            if self.cache.check_and_add(self.cache_key(question)):
                return question
        return None

    @staticmethod
    def _pending_key(request: GenerationRequest) -> PendingKey:
        return (request.subject, request.topic, request.difficulty_level, request.grade)
