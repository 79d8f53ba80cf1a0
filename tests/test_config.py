# FILE: tests/test_config.py
"""Settings loading and validation"""
import pytest
from pydantic import ValidationError

from adaptive_quiz.config import Settings, reload_settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.streak_threshold == 7
    assert settings.session_duration_minutes == 30
    assert settings.question_time_limit_seconds == 60
    assert settings.max_retries == 3
    assert settings.dedup_scope == "session"
    assert settings.dedup_clear_hours == 24


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("STREAK_THRESHOLD", "3")
    monkeypatch.setenv("DEDUP_SCOPE", "GLOBAL")
    monkeypatch.setenv("GENERATOR_PROVIDER", "ollama")

    settings = reload_settings()

    assert settings.streak_threshold == 3
    assert settings.dedup_scope == "global"
    assert settings.generator_provider == "ollama"

    monkeypatch.undo()
    reload_settings()


@pytest.mark.parametrize("field,value", [
    ("generator_provider", "anthropic"),
    ("dedup_scope", "tenant"),
    ("dedup_key_policy", "hash"),
    ("generation_batch_size", 9),
    ("streak_threshold", 0),
    ("max_retries", -1),
    ("base_delay_seconds", -0.5),
])
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})
