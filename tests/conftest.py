# FILE: tests/conftest.py

import sys
import itertools
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from adaptive_quiz.config import Settings
from adaptive_quiz.providers.base import QuestionGenerator
from adaptive_quiz.services.generation_client import GenerationClient
from adaptive_quiz.services.question_cache import SessionQuestionCache
from adaptive_quiz.services.timers import Scheduler, TimerHandle


_counter = itertools.count(1)


def make_raw_question(text=None, correct="4", options=None, **extra):
    """Generator-style (camelCase) question payload"""
    raw = {
        "questionText": text or f"What is question number {next(_counter)}?",
        "options": options or ["1", "2", "3", "4"],
        "correctAnswer": correct,
        "hint": "Count carefully",
        "explanation": "Work it out step by step",
        "level": "easy",
        "topic": "numbers",
        "grade": 4,
    }
    raw.update(extra)
    return raw


class FakeGenerator(QuestionGenerator):
    """
    Scripted generator. Each scripted item is returned as the payload,
    or raised if it is an exception. Once the script runs out a fresh
    unique question is produced per call.
    """

    name = "fake"

    def __init__(self, script=None):
        self.script = list(script or [])
        self.requests = []
        self.closed = False

    async def generate(self, request):
        self.requests.append(request)
        if self.script:
            item = self.script.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return make_raw_question()

    async def aclose(self):
        self.closed = True


class ManualTimer(TimerHandle):
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Virtual clock; callbacks only fire from advance()"""

    def __init__(self):
        self.time = 0.0
        self.timers = []

    def now(self):
        return self.time

    def call_later(self, delay, callback):
        timer = ManualTimer(self.time + delay, callback)
        self.timers.append(timer)
        return timer

    def pending(self):
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds):
        target = self.time + seconds
        while True:
            due = [t for t in self.pending() if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.timers.remove(timer)
            self.time = max(self.time, timer.due)
            timer.callback()
        self.time = target


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays"""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def settings():
    """Deterministic settings for tests"""
    return Settings(
        generator_provider="ollama",
        generation_batch_size=1,
        max_retries=3,
        base_delay_seconds=2.0,
        max_delay_seconds=10.0,
        jitter_seconds=1.0,
        rate_limit_delay_seconds=20.0,
        max_rate_limit_retries=3,
        dedup_scope="session",
        dedup_key_policy="content",
        streak_threshold=7,
        session_duration_minutes=30,
        question_time_limit_seconds=60,
        feedback_delay_seconds=1.5,
        timeout_advance_delay_seconds=3.0,
        auto_advance=True,
    )


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def make_client(fake_sleep):
    """Factory for a generation client with recorded sleeps"""
    def _make(generator, cache=None, **options):
        return GenerationClient(
            generator,
            cache if cache is not None else SessionQuestionCache(),
            sleep=fake_sleep,
            **options
        )
    return _make
