# FILE: adaptive_quiz/config.py
"""
Configuration management for the adaptive quiz engine
Loads from environment variables with validation
"""
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    # Backend server
    backend_host: str = Field(default="0.0.0.0", alias="BACKEND_HOST")
    backend_port: int = Field(default=8000, alias="BACKEND_PORT")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Question generator
    generator_provider: str = Field(default="openai", alias="GENERATOR_PROVIDER")
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o", alias="OPENAI_MODEL")
    ollama_base_url: str = Field(default="http://localhost:11434", alias="OLLAMA_BASE_URL")
    ollama_model: str = Field(default="llama3.2:3b", alias="OLLAMA_MODEL")
    generator_temperature: float = Field(default=0.7, alias="GENERATOR_TEMPERATURE")
    generator_timeout: int = Field(default=30, alias="GENERATOR_TIMEOUT")
    generation_batch_size: int = Field(
        default=5,
        alias="GENERATION_BATCH_SIZE",
        description="Questions requested per generator call. 1 disables batch mode."
    )

    # Retry / backoff
    max_retries: int = Field(default=3, alias="MAX_RETRIES")
    base_delay_seconds: float = Field(default=2.0, alias="BASE_DELAY_SECONDS")
    max_delay_seconds: float = Field(default=10.0, alias="MAX_DELAY_SECONDS")
    jitter_seconds: float = Field(default=1.0, alias="JITTER_SECONDS")
    rate_limit_delay_seconds: float = Field(default=20.0, alias="RATE_LIMIT_DELAY_SECONDS")
    max_rate_limit_retries: int = Field(default=3, alias="MAX_RATE_LIMIT_RETRIES")

    # Deduplication
    dedup_scope: str = Field(
        default="session",
        alias="DEDUP_SCOPE",
        description="'session' keeps one cache per learner session, "
                    "'global' shares one process-wide cache cleared every DEDUP_CLEAR_HOURS."
    )
    dedup_key_policy: str = Field(
        default="content",
        alias="DEDUP_KEY_POLICY",
        description="'content' keys on normalized question text, 'identifier' on the generator id."
    )
    dedup_clear_hours: int = Field(default=24, alias="DEDUP_CLEAR_HOURS")

    # Progression
    streak_threshold: int = Field(
        default=7,
        alias="STREAK_THRESHOLD",
        description="Consecutive correct answers needed to raise difficulty or change topic"
    )

    # Session timing
    session_duration_minutes: int = Field(default=30, alias="SESSION_DURATION_MINUTES")
    question_time_limit_seconds: int = Field(default=60, alias="QUESTION_TIME_LIMIT_SECONDS")
    feedback_delay_seconds: float = Field(default=1.5, alias="FEEDBACK_DELAY_SECONDS")
    timeout_advance_delay_seconds: float = Field(default=3.0, alias="TIMEOUT_ADVANCE_DELAY_SECONDS")
    auto_advance: bool = Field(default=True, alias="AUTO_ADVANCE")
    finished_session_ttl_seconds: float = Field(
        default=600.0,
        alias="FINISHED_SESSION_TTL_SECONDS",
        description="How long a finished session stays readable before it is evicted"
    )

    # CORS
    cors_origins: List[str] = Field(default=["http://localhost:3000"], alias="CORS_ORIGINS")

    # Validators
    @field_validator("generator_provider")
    @classmethod
    def validate_generator_provider(cls, v):
        v = v.strip().lower()
        if v not in ["openai", "ollama"]:
            raise ValueError("generator_provider must be 'openai' or 'ollama'")
        return v

    @field_validator("dedup_scope")
    @classmethod
    def validate_dedup_scope(cls, v):
        v = v.strip().lower()
        if v not in ["session", "global"]:
            raise ValueError("dedup_scope must be 'session' or 'global'")
        return v

    @field_validator("dedup_key_policy")
    @classmethod
    def validate_dedup_key_policy(cls, v):
        v = v.strip().lower()
        if v not in ["content", "identifier"]:
            raise ValueError("dedup_key_policy must be 'content' or 'identifier'")
        return v

    @field_validator("generation_batch_size")
    @classmethod
    def validate_generation_batch_size(cls, v):
        if not 1 <= v <= 5:
            raise ValueError("generation_batch_size must be between 1 and 5")
        return v

    @field_validator("max_retries", "max_rate_limit_retries")
    @classmethod
    def validate_retry_counts(cls, v):
        if v < 0:
            raise ValueError("retry counts must not be negative")
        return v

    @field_validator("streak_threshold")
    @classmethod
    def validate_streak_threshold(cls, v):
        if v < 1:
            raise ValueError("streak_threshold must be at least 1")
        return v

    @field_validator(
        "base_delay_seconds", "max_delay_seconds", "jitter_seconds",
        "rate_limit_delay_seconds", "feedback_delay_seconds",
        "timeout_advance_delay_seconds", "finished_session_ttl_seconds"
    )
    @classmethod
    def validate_delays(cls, v):
        if v < 0:
            raise ValueError("delays must not be negative")
        return v


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create singleton settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings():
    """Reload settings (useful for testing)"""
    global _settings
    _settings = None
    return get_settings()
