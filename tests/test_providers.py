# FILE: tests/test_providers.py
"""Generator adapters, prompts and registry"""
import json

import httpx
import pytest

from adaptive_quiz.errors import GenerationError, RateLimitedError
from adaptive_quiz.models.questions import DifficultyLevel, GenerationRequest
from adaptive_quiz.providers.ollama import OllamaQuestionGenerator
from adaptive_quiz.providers.prompts import build_question_prompt
from adaptive_quiz.providers.registry import build_question_generator


@pytest.fixture
def gen_request():
    return GenerationRequest(
        subject="mathematics",
        grade=6,
        topic="geometry",
        difficulty_level=DifficultyLevel.HARD,
        count=3,
        previous_level=DifficultyLevel.MEDIUM,
        avoid_texts=("What is the sum of angles in a triangle?",)
    )


def ollama_with(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OllamaQuestionGenerator("http://ollama.test/", "llama3", client=client)


def test_prompt_mentions_batch_subtopics_and_avoid_list(gen_request):
    prompt = build_question_prompt(gen_request)

    assert "3 diverse hard difficulty mathematics" in prompt
    assert "shapes, angles, measurements" in prompt
    assert "previous questions were at medium difficulty" in prompt
    assert "- What is the sum of angles in a triangle?" in prompt
    assert '"questions"' in prompt


def test_single_prompt_has_no_batch_wrapper(gen_request):
    prompt = build_question_prompt(gen_request.model_copy(update={
        "count": 1, "previous_level": None, "avoid_texts": ()
    }))

    assert '"questions"' not in prompt
    assert "Create one hard difficulty" in prompt
    assert "Do NOT repeat" not in prompt


@pytest.mark.asyncio
async def test_ollama_returns_response_text(gen_request):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": '{"questions": []}'})

    generator = ollama_with(handler)
    text = await generator.generate(gen_request)
    await generator.aclose()

    assert text == '{"questions": []}'
    assert seen["url"] == "http://ollama.test/api/generate"
    assert seen["body"]["format"] == "json"
    assert seen["body"]["stream"] is False


@pytest.mark.asyncio
async def test_ollama_rate_limit(gen_request):
    generator = ollama_with(lambda request: httpx.Response(429, headers={"retry-after": "7"}))

    with pytest.raises(RateLimitedError) as exc_info:
        await generator.generate(gen_request)
    assert exc_info.value.retry_after == 7.0


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(500, text="boom"),
    httpx.Response(200, text="not json"),
    httpx.Response(200, json={"response": ""}),
])
async def test_ollama_failures_raise_generation_error(gen_request, response):
    generator = ollama_with(lambda request: response)

    with pytest.raises(GenerationError):
        await generator.generate(gen_request)


def test_registry_requires_openai_key(settings):
    with pytest.raises(RuntimeError):
        build_question_generator(settings.model_copy(update={
            "generator_provider": "openai", "openai_api_key": None
        }))


def test_registry_builds_ollama(settings):
    generator = build_question_generator(settings)
    assert generator.name == "ollama"


def test_prompt_does_not_ask_for_an_id(gen_request):
    assert '"id"' not in build_question_prompt(gen_request)
