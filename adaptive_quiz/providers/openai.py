# FILE: adaptive_quiz/providers/openai.py
"""
OpenAI question generator adapter
"""
import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from adaptive_quiz.errors import GenerationError, RateLimitedError
from adaptive_quiz.models.questions import GenerationRequest
from adaptive_quiz.providers.base import QuestionGenerator
from adaptive_quiz.providers.prompts import SYSTEM_PROMPT, build_question_prompt

logger = logging.getLogger(__name__)


class OpenAIQuestionGenerator(QuestionGenerator):
    """OpenAI chat-completions generator"""

    name = "openai"

    def __init__(self, api_key: str, model: str, temperature: float = 0.7, timeout: float = 30):
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model
        self.temperature = temperature
        logger.info(f"OpenAI generator: model={model}")

    async def generate(self, request: GenerationRequest) -> Any:
        """Generate question JSON text using OpenAI"""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_question_prompt(request)}
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"}
            )
        except openai.RateLimitError as e:
            raise RateLimitedError(f"OpenAI rate limit: {e}") from e
        except openai.APIError as e:
            raise GenerationError(f"OpenAI request failed: {e}") from e

        text = response.choices[0].message.content
        if not text:
            raise GenerationError("No content received from OpenAI")

        return text

    async def aclose(self):
        await self.client.close()
