# FILE: adaptive_quiz/providers/base.py
"""
Base class for question generators
"""
import logging
from typing import Any

from adaptive_quiz.models.questions import GenerationRequest

logger = logging.getLogger(__name__)


class QuestionGenerator:
    """
    Base class for question generator adapters.

    `generate` returns the untrusted payload: JSON text, a question dict,
    a list of dicts or {"questions": [...]}. Failures raise GenerationError,
    throttling raises RateLimitedError.
    """

    name = "base"

    async def generate(self, request: GenerationRequest) -> Any:
        raise NotImplementedError

    async def aclose(self):
        """Release network resources"""
