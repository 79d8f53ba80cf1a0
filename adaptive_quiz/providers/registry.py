"""
Question generator selection
"""
import logging

from adaptive_quiz.config import Settings
from adaptive_quiz.providers.base import QuestionGenerator
from adaptive_quiz.providers.ollama import OllamaQuestionGenerator
from adaptive_quiz.providers.openai import OpenAIQuestionGenerator

logger = logging.getLogger(__name__)


def build_question_generator(settings: Settings) -> QuestionGenerator:
    """Create the generator configured by GENERATOR_PROVIDER"""
    if settings.generator_provider == "openai":
        if not settings.openai_api_key:
            raise RuntimeError("GENERATOR_PROVIDER=openai requires OPENAI_API_KEY")
        generator = OpenAIQuestionGenerator(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            temperature=settings.generator_temperature,
            timeout=settings.generator_timeout
        )
    else:
        generator = OllamaQuestionGenerator(
            base_url=settings.ollama_base_url,
            model=settings.ollama_model,
            temperature=settings.generator_temperature,
            timeout=settings.generator_timeout
        )

    logger.info(f"Initialized question generator: {generator.name}")
    return generator

