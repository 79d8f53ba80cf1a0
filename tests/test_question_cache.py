# FILE: tests/test_question_cache.py
"""Question cache and key normalization tests"""
import threading

from adaptive_quiz.services.question_cache import (
    SessionQuestionCache, SharedQuestionCache, identifier_key, question_key
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_question_key_normalizes_case_punctuation_and_spaces():
    assert question_key("What is 3 × 4?") == "what is 3 × 4"
    assert question_key("  What   IS 3×4 ?? ") == question_key("what is 3×4")
    assert question_key("Solve: x + 2 = 6!") == "solve x 2 6"


def test_question_key_distinguishes_numbers():
    assert question_key("What is 3 × 4?") != question_key("What is 3 × 5?")


def test_identifier_key():
    assert identifier_key("abc") == "id:abc"


def test_session_cache_check_and_add():
    cache = SessionQuestionCache()

    assert cache.check_and_add("a") is True
    assert cache.check_and_add("a") is False
    assert cache.has("a")
    assert len(cache) == 1

    cache.clear()
    assert not cache.has("a")
    assert cache.get_stats()["total_entries"] == 0


def test_shared_cache_clears_after_interval():
    clock = FakeClock()
    cache = SharedQuestionCache(clear_interval_hours=24, clock=clock)
    cache.add("a")

    clock.now = 23 * 3600
    assert cache.has("a")

    clock.now = 24 * 3600
    assert not cache.has("a")
    assert len(cache) == 0

    # Next window starts at the clear
    cache.add("b")
    clock.now = 47 * 3600
    assert cache.has("b")


def test_shared_cache_stats_and_close():
    clock = FakeClock()
    cache = SharedQuestionCache(clear_interval_hours=1, clock=clock)
    cache.add("a")
    clock.now = 600

    stats = cache.get_stats()
    assert stats["scope"] == "global"
    assert stats["total_entries"] == 1
    assert stats["seconds_until_clear"] == 3000

    cache.close()
    assert cache.get_stats()["closed"] is True
    assert len(cache) == 0


def test_shared_cache_concurrent_check_and_add_admits_once():
    cache = SharedQuestionCache()
    results = []

    def worker():
        results.append(cache.check_and_add("same"))

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
