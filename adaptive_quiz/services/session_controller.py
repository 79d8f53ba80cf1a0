# FILE: adaptive_quiz/services/session_controller.py
"""
Adaptive quiz session controller

Finite-state machine driven by discrete events (start, load complete,
submit, timer expiry). Phases:

    idle -> loading -> presenting -> (hint_shown) -> scoring -> loading | reporting
    loading -> error (retry-pending) -> loading

Every timer callback carries the epoch it was scheduled in and is a no-op
once the owning question or load has been superseded.
"""
import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from adaptive_quiz.config import Settings, get_settings
from adaptive_quiz.errors import GenerationExhausted, InvalidSessionAction
from adaptive_quiz.models.attempts import Attempt
from adaptive_quiz.models.questions import DifficultyLevel, GenerationContext, Question
from adaptive_quiz.models.reports import SessionReport
from adaptive_quiz.models.session import (
    QuestionView, SessionPhase, SessionView, SubmissionResult, Transition
)
from adaptive_quiz.services.catalog import topics_for
from adaptive_quiz.services.generation_client import GenerationClient
from adaptive_quiz.services.progression import ProgressionPolicy
from adaptive_quiz.services.report_aggregator import empty_report, export_attempts, fold
from adaptive_quiz.services.timers import AsyncioScheduler, Scheduler, TimerHandle

logger = logging.getLogger(__name__)

# Submissions allowed per question: first try, then one more after the hint
MAX_SUBMISSIONS = 2
_RECENT_QUESTIONS = 20
_ANSWERING = (SessionPhase.PRESENTING, SessionPhase.HINT_SHOWN)


class QuizSession:
    """One learner's adaptive quiz session"""

    def __init__(
        self,
        subject: str,
        grade: int,
        client: GenerationClient,
        settings: Optional[Settings] = None,
        scheduler: Optional[Scheduler] = None,
        session_id: Optional[str] = None,
        policy: Optional[ProgressionPolicy] = None
    ):
        if not 1 <= grade <= 12:
            raise ValueError("grade must be between 1 and 12")

        self.settings = settings or get_settings()
        self.session_id = session_id or str(uuid.uuid4())
        self.subject = subject.strip().lower()
        self.grade = grade
        self.client = client
        self.scheduler = scheduler or AsyncioScheduler()
        self.policy = policy or ProgressionPolicy(
            topics_for(self.subject),
            streak_threshold=self.settings.streak_threshold
        )

        self.phase = SessionPhase.IDLE
        self.report: SessionReport = empty_report()
        self.current_question: Optional[Question] = None
        self.last_error: Optional[str] = None
        self.last_result: Optional[SubmissionResult] = None
        self.finish_reason: Optional[str] = None

        self._attempts: List[Attempt] = []
        self._submissions = 0
        self._hint_shown = False
        self._explanation_shown = False
        self._previous_level: Optional[DifficultyLevel] = None
        self._recent_questions: List[str] = []

        self._started_at: Optional[float] = None
        self._ended_at: Optional[float] = None
        self._session_deadline: Optional[float] = None
        self._question_started_at: Optional[float] = None
        self._question_deadline: Optional[float] = None

        self._question_epoch = 0
        self._load_epoch = 0
        self._load_task: Optional[asyncio.Future] = None
        self._advance_task: Optional[asyncio.Task] = None
        self._question_timer: Optional[TimerHandle] = None
        self._session_timer: Optional[TimerHandle] = None
        self._advance_timer: Optional[TimerHandle] = None

    # --- Lifecycle ---

    async def start(self) -> Optional[Question]:
        """Start the session clock and load the first question"""
        if self._started_at is not None:
            raise InvalidSessionAction("Session already started")

        self._started_at = self.scheduler.now()
        duration = self.settings.session_duration_minutes * 60
        if duration > 0:
            self._session_deadline = self._started_at + duration
            self._session_timer = self.scheduler.call_later(duration, self._on_session_timeout)

        logger.info(
            f"[{self.session_id}] Session started: subject={self.subject}, grade={self.grade}, "
            f"topic={self.policy.current_topic}"
        )
        return await self.load_question()

    def finish(self) -> SessionReport:
        """End the session explicitly; an unanswered question is discarded"""
        if self.phase is not SessionPhase.REPORTING:
            self._finalize("completed")
        return self.report

    def close(self):
        """Cancel everything without recording anything further"""
        if self.phase is not SessionPhase.REPORTING:
            self._finalize("closed")

    # --- Question loading ---

    async def load_question(self) -> Optional[Question]:
        """
        Request the next question for the current topic and difficulty.

        A newer load supersedes this one, in which case None is returned.
        On GenerationExhausted the session moves to the error phase.
        """
        self._ensure_running()
        if self.phase in _ANSWERING:
            raise InvalidSessionAction("A question is awaiting an answer")

        self._cancel_advance()
        if self._load_task is not None and not self._load_task.done():
            logger.info(f"[{self.session_id}] Superseding in-flight question request")
            self._load_task.cancel()

        self._clear_question()
        self._load_epoch += 1
        epoch = self._load_epoch
        self.phase = SessionPhase.LOADING
        self.last_error = None

        topic = self.policy.current_topic
        level = self.policy.current_level
        context = GenerationContext(
            session_id=self.session_id,
            subject=self.subject,
            previous_level=self._previous_level,
            recent_questions=list(self._recent_questions)
        )

        task = asyncio.ensure_future(self.client.request_question(topic, level, self.grade, context))
        self._load_task = task
        try:
            question = await task
        except asyncio.CancelledError:
            if epoch != self._load_epoch:
                logger.debug(f"[{self.session_id}] Superseded load {epoch} cancelled")
                return None
            raise
        except GenerationExhausted as e:
            if epoch != self._load_epoch:
                return None
            self.phase = SessionPhase.ERROR
            self.last_error = str(e)
            logger.warning(f"[{self.session_id}] Question generation failed: {e}")
            return None
        except Exception as e:
            if epoch == self._load_epoch:
                self.phase = SessionPhase.ERROR
                self.last_error = f"Unexpected error while loading question: {e}"
            raise
        finally:
            if self._load_task is task:
                self._load_task = None

        if epoch != self._load_epoch:
            return None

        self._present(question)
        return question

    async def retry(self) -> Optional[Question]:
        """Manual retry after a generation failure"""
        if self.phase is not SessionPhase.ERROR:
            raise InvalidSessionAction(f"Nothing to retry while {self.phase.value}")
        return await self.load_question()

    async def next_question(self) -> Optional[Question]:
        """Continue after feedback or an explanation"""
        if self.phase not in (SessionPhase.SCORING, SessionPhase.ERROR):
            raise InvalidSessionAction(f"Cannot advance while {self.phase.value}")
        return await self.load_question()

    @property
    def ended_at(self) -> Optional[float]:
        """Scheduler time at which the session finished, if it has"""
        return self._ended_at

    @property
    def pending_load(self) -> Optional[asyncio.Task]:
        """Load started by an auto-advance timer, if still running"""
        if self._advance_task is not None and not self._advance_task.done():
            return self._advance_task
        return None

    # --- Answering ---

    def submit(self, answer: str) -> SubmissionResult:
        """Score one submission for the current question"""
        if self.phase not in _ANSWERING:
            raise InvalidSessionAction(f"Cannot submit an answer while {self.phase.value}")

        question = self.current_question
        self._submissions += 1
        is_correct = answer == question.correct_answer

        if is_correct:
            attempt, transition = self._resolve(is_correct=True, timed_out=False)
            result = self._resolved_result(True, attempt, transition)
            if self.settings.auto_advance:
                self._schedule_advance(self.settings.feedback_delay_seconds)
        elif self._submissions < MAX_SUBMISSIONS:
            self._hint_shown = True
            self.phase = SessionPhase.HINT_SHOWN
            result = SubmissionResult(is_correct=False, resolved=False, hint=question.hint)
        else:
            attempt, transition = self._resolve(is_correct=False, timed_out=False)
            result = self._resolved_result(False, attempt, transition)

        self.last_result = result
        return result

    # --- Views ---

    @property
    def attempts(self) -> List[Attempt]:
        return list(self._attempts)

    def export_attempts(self, format: str = "csv") -> Any:
        return export_attempts(self._attempts, format=format)

    def time_remaining(self) -> Optional[float]:
        if self._session_deadline is None:
            return None
        now = self._ended_at if self._ended_at is not None else self.scheduler.now()
        return max(0.0, self._session_deadline - now)

    def question_time_remaining(self) -> Optional[float]:
        if self.phase not in _ANSWERING or self._question_deadline is None:
            return None
        return max(0.0, self._question_deadline - self.scheduler.now())

    def snapshot(self) -> SessionView:
        question = self.current_question if self.phase not in (SessionPhase.LOADING, SessionPhase.ERROR) else None
        revealed = self._explanation_shown and question is not None
        return SessionView(
            session_id=self.session_id,
            subject=self.subject,
            grade=self.grade,
            phase=self.phase,
            topic=self.policy.current_topic,
            difficulty_level=self.policy.current_level,
            streak=self.policy.state.consecutive_correct_streak,
            question=QuestionView.from_question(question) if question is not None else None,
            hint=question.hint if question is not None and self._hint_shown else None,
            explanation=question.explanation if revealed else None,
            correct_answer=question.correct_answer if revealed else None,
            submissions=self._submissions,
            last_error=self.last_error,
            time_remaining=self.time_remaining(),
            question_time_remaining=self.question_time_remaining(),
            attempts_recorded=len(self._attempts),
            topics_completed=list(self.policy.topics_completed)
        )

    # --- Internals ---

    def _ensure_running(self):
        if self._started_at is None:
            raise InvalidSessionAction("Session has not started")
        if self.phase is SessionPhase.REPORTING:
            raise InvalidSessionAction("Session has ended")

    def _present(self, question: Question):
        self.current_question = question
        self.phase = SessionPhase.PRESENTING
        self._submissions = 0
        self._hint_shown = False
        self._explanation_shown = False
        self._question_epoch += 1
        epoch = self._question_epoch
        self._question_started_at = self.scheduler.now()

        limit = self.settings.question_time_limit_seconds
        if limit > 0:
            self._question_deadline = self._question_started_at + limit
            self._question_timer = self.scheduler.call_later(
                limit, lambda: self._on_question_timeout(epoch)
            )

        self._recent_questions.append(question.question_text)
        del self._recent_questions[:-_RECENT_QUESTIONS]
        logger.info(
            f"[{self.session_id}] Presenting {question.id} "
            f"({question.topic}/{question.difficulty_level.value})"
        )

    def _clear_question(self):
        self._cancel_question_timer()
        self.current_question = None
        self._submissions = 0
        self._hint_shown = False
        self._explanation_shown = False
        self._question_started_at = None
        self._question_deadline = None

    def _resolve(self, is_correct: bool, timed_out: bool) -> Tuple[Attempt, Transition]:
        """Record the attempt for the current question and feed policy and report"""
        self._cancel_question_timer()
        self._question_epoch += 1
        question = self.current_question
        elapsed = max(0.0, self.scheduler.now() - self._question_started_at)

        attempt = Attempt(
            question_id=question.id,
            topic=question.topic,
            difficulty_level=question.difficulty_level,
            is_correct=is_correct,
            attempts_needed=max(self._submissions, 1),
            used_hint=self._hint_shown,
            time_taken_seconds=round(elapsed, 3),
            timed_out=timed_out,
            attempted_at=datetime.now(timezone.utc)
        )
        self._attempts.append(attempt)
        self._previous_level = question.difficulty_level

        transition = self.policy.record(attempt)
        report = fold(self.report, attempt)
        if transition is Transition.TOPIC_CHANGE:
            report = report.model_copy(update={"topics_completed": list(self.policy.topics_completed)})
        self.report = report

        self.phase = SessionPhase.SCORING
        self._explanation_shown = True
        self._question_deadline = None

        logger.info(
            f"[{self.session_id}] Recorded attempt {question.id}: correct={is_correct}, "
            f"attempts={attempt.attempts_needed}, timed_out={timed_out}, transition={transition.value}"
        )
        return attempt, transition

    def _resolved_result(self, is_correct: bool, attempt: Attempt, transition: Transition) -> SubmissionResult:
        question = self.current_question
        return SubmissionResult(
            is_correct=is_correct,
            resolved=True,
            hint=question.hint if self._hint_shown else None,
            explanation=question.explanation,
            correct_answer=question.correct_answer,
            attempt=attempt,
            transition=transition
        )

    def _on_question_timeout(self, epoch: int):
        if epoch != self._question_epoch or self.phase not in _ANSWERING:
            logger.debug(f"[{self.session_id}] Ignoring stale question timer (epoch {epoch})")
            return

        self._question_timer = None
        logger.info(f"[{self.session_id}] Question time expired")
        attempt, transition = self._resolve(is_correct=False, timed_out=True)
        self.last_result = self._resolved_result(False, attempt, transition)
        if self.settings.auto_advance:
            self._schedule_advance(self.settings.timeout_advance_delay_seconds)

    def _on_session_timeout(self):
        if self.phase is SessionPhase.REPORTING:
            logger.debug(f"[{self.session_id}] Ignoring session timer after finish")
            return

        self._session_timer = None
        logger.info(f"[{self.session_id}] Session time expired")
        if self.phase in _ANSWERING:
            attempt, transition = self._resolve(is_correct=False, timed_out=True)
            self.last_result = self._resolved_result(False, attempt, transition)
        self._finalize("time_expired")

    def _schedule_advance(self, delay: float):
        self._cancel_advance()
        epoch = self._question_epoch
        self._advance_timer = self.scheduler.call_later(delay, lambda: self._on_advance(epoch))

    def _on_advance(self, epoch: int):
        if epoch != self._question_epoch or self.phase is not SessionPhase.SCORING:
            logger.debug(f"[{self.session_id}] Ignoring stale advance timer (epoch {epoch})")
            return
        self._advance_timer = None
        self._advance_task = asyncio.ensure_future(self.load_question())
        self._advance_task.add_done_callback(self._on_advance_done)

    def _on_advance_done(self, task: asyncio.Task):
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"[{self.session_id}] Auto-advance load failed: {exc}", exc_info=exc)

    def _cancel_question_timer(self):
        if self._question_timer is not None:
            self._question_timer.cancel()
            self._question_timer = None

    def _cancel_advance(self):
        if self._advance_timer is not None:
            self._advance_timer.cancel()
            self._advance_timer = None

    def _finalize(self, reason: str):
        self._cancel_question_timer()
        self._cancel_advance()
        if self._session_timer is not None:
            self._session_timer.cancel()
            self._session_timer = None

        self._question_epoch += 1
        self._load_epoch += 1
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()

        self.phase = SessionPhase.REPORTING
        self.finish_reason = reason
        self._ended_at = self.scheduler.now()
        self._question_deadline = None

        logger.info(
            f"[{self.session_id}] Session finished ({reason}): "
            f"{self.report.correct_answers}/{self.report.total_questions} correct"
        )
