"""
Error taxonomy for the quiz engine
"""
from typing import Optional


class QuizError(Exception):
    """Base class for quiz engine errors"""


class GenerationError(QuizError):
    """A single generator call failed (transport, upstream or unparseable output)"""


class RateLimitedError(GenerationError):
    """Upstream generator is throttling requests"""

    def __init__(self, message: str = "Rate limited", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class GenerationExhausted(QuizError):
    """All generation retries spent without an acceptable question"""

    def __init__(self, attempts: int, last_failure: Optional[str] = None):
        self.attempts = attempts
        self.last_failure = last_failure
        detail = f": {last_failure}" if last_failure else ""
        super().__init__(f"Failed to generate a valid question after {attempts} attempts{detail}")


class InvalidSessionAction(QuizError):
    """Operation is not allowed in the session's current phase"""


class UnknownSession(QuizError, KeyError):
    """No live session with the given id"""

    def __str__(self):
        return f"Unknown session: {self.args[0]}" if self.args else "Unknown session"
