# FILE: tests/test_validator.py
"""Question validation tests"""
import pytest

from adaptive_quiz.models.questions import DifficultyLevel, GenerationRequest
from adaptive_quiz.services.validator import validate_question
from conftest import make_raw_question


@pytest.fixture
def request_():
    return GenerationRequest(
        subject="mathematics",
        grade=5,
        topic="algebra",
        difficulty_level=DifficultyLevel.MEDIUM
    )


def test_valid_question_is_stamped_from_request(request_):
    """Topic, level and grade come from the request"""
    raw = make_raw_question(text="Solve x + 2 = 6", topic="geometry", level="hard", grade=9)
    question = validate_question(raw, request_)

    assert question is not None
    assert question.question_text == "Solve x + 2 = 6"
    assert question.topic == "algebra"
    assert question.difficulty_level is DifficultyLevel.MEDIUM
    assert question.grade == 5
    assert question.correct_answer in question.options
    assert len(question.options) == 4


def test_generator_id_is_kept(request_):
    question = validate_question(make_raw_question(id="q-17"), request_)
    assert question.id == "q-17"


def test_missing_id_gets_generated(request_):
    first = validate_question(make_raw_question(), request_)
    second = validate_question(make_raw_question(), request_)
    assert first.id
    assert first.id != second.id


@pytest.mark.parametrize("mutate", [
    lambda raw: raw.pop("hint"),
    lambda raw: raw.pop("explanation"),
    lambda raw: raw.pop("questionText"),
    lambda raw: raw.update(options=["1", "2", "3"]),
    lambda raw: raw.update(options=["1", "2", "3", "4", "5"]),
    lambda raw: raw.update(options=["1", "1", "3", "4"]),
    lambda raw: raw.update(correctAnswer="7"),
    lambda raw: raw.update(hint="   "),
    lambda raw: raw.update(options=["1", 2, "3", "4"]),
    lambda raw: raw.update(grade="five"),
    lambda raw: raw.update(grade=True),
    lambda raw: raw.pop("grade"),
    lambda raw: raw.pop("topic"),
    lambda raw: raw.pop("level"),
    lambda raw: raw.update(level=""),
])
def test_invalid_candidates_rejected(request_, mutate):
    raw = make_raw_question()
    mutate(raw)
    assert validate_question(raw, request_) is None


@pytest.mark.parametrize("raw", [None, "text", 42, ["a", "b"]])
def test_non_object_rejected(request_, raw):
    assert validate_question(raw, request_) is None


def test_numeric_grade_accepted(request_):
    question = validate_question(make_raw_question(grade=5.0), request_)
    assert question is not None
    assert question.grade == 5


@pytest.mark.parametrize("placeholder", ["unique-id", "  Unique-ID ", "id", ""])
def test_placeholder_id_is_replaced(request_, placeholder):
    first = validate_question(make_raw_question(id=placeholder), request_)
    second = validate_question(make_raw_question(id=placeholder), request_)

    assert first.id != placeholder.strip()
    assert first.id != second.id
