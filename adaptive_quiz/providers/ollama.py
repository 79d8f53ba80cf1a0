# FILE: adaptive_quiz/providers/ollama.py
"""
Ollama question generator adapter
"""
import logging
import httpx
from typing import Any, Optional

from adaptive_quiz.errors import GenerationError, RateLimitedError
from adaptive_quiz.models.questions import GenerationRequest
from adaptive_quiz.providers.base import QuestionGenerator
from adaptive_quiz.providers.prompts import SYSTEM_PROMPT, build_question_prompt

logger = logging.getLogger(__name__)


class OllamaQuestionGenerator(QuestionGenerator):
    """Ollama generator using the /api/generate endpoint"""

    name = "ollama"

    def __init__(
        self,
        base_url: str,
        model: str,
        temperature: float = 0.7,
        timeout: float = 30,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.temperature = temperature
        self.client = client or httpx.AsyncClient(timeout=timeout)
        logger.info(f"Ollama generator: {base_url}, model: {model}")

    async def generate(self, request: GenerationRequest) -> Any:
        """Generate question JSON text using Ollama"""
        url = f"{self.base_url}/api/generate"

        payload = {
            "model": self.model,
            "system": SYSTEM_PROMPT,
            "prompt": build_question_prompt(request),
            "format": "json",
            "options": {"temperature": self.temperature},
            "stream": False
        }

        try:
            response = await self.client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise GenerationError(f"Ollama request failed: {e}") from e

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            raise RateLimitedError(
                "Ollama rate limit",
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None
            )

        try:
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPStatusError, ValueError) as e:
            raise GenerationError(f"Ollama returned an unusable response: {e}") from e

        text = data.get("response")
        if not text:
            raise GenerationError("No content received from Ollama")

        return text

    async def aclose(self):
        await self.client.aclose()
