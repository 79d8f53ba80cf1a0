# FILE: adaptive_quiz/services/report_aggregator.py
"""
Report aggregation: folds the attempt log into a SessionReport
"""
import csv
import io
import logging
from typing import Any, Iterable, List, Optional

from adaptive_quiz.models.attempts import Attempt
from adaptive_quiz.models.reports import (
    LevelStat, QuestionRecord, RevisionItem, SessionReport, TopicStat, TopicSummary
)
from adaptive_quiz.services.catalog import display_name

logger = logging.getLogger(__name__)

EXPORT_FIELDS = [
    "question_id", "topic", "difficulty_level", "is_correct", "attempts_needed",
    "used_hint", "time_taken_seconds", "timed_out", "attempted_at"
]


def empty_report() -> SessionReport:
    return SessionReport()


def fold(report: SessionReport, attempt: Attempt) -> SessionReport:
    """Return a new report with one more attempt applied"""
    correct = 1 if attempt.is_correct else 0
    hint = 1 if attempt.used_hint else 0
    timeout = 1 if attempt.timed_out else 0

    previous = report.topic_stats.get(attempt.topic, TopicStat())
    topic_stat = TopicStat(
        total=previous.total + 1,
        correct=previous.correct + correct,
        total_attempts=previous.total_attempts + attempt.attempts_needed,
        total_time=previous.total_time + attempt.time_taken_seconds,
        hints_used=previous.hints_used + hint,
        timeouts=previous.timeouts + timeout
    )

    previous_level = report.level_stats.get(attempt.difficulty_level, LevelStat())
    level_stat = LevelStat(
        total=previous_level.total + 1,
        correct=previous_level.correct + correct
    )

    questions_data = list(report.questions_data)
    questions_data.append(QuestionRecord(
        question_id=attempt.question_id,
        topic=attempt.topic,
        difficulty_level=attempt.difficulty_level,
        attempts_needed=attempt.attempts_needed,
        hint_used=attempt.used_hint,
        time_taken=attempt.time_taken_seconds,
        correct=attempt.is_correct,
        timed_out=attempt.timed_out
    ))

    total_questions = report.total_questions + 1
    time_taken = report.time_taken + attempt.time_taken_seconds

    return SessionReport(
        total_questions=total_questions,
        correct_answers=report.correct_answers + correct,
        hints_used=report.hints_used + hint,
        time_taken=time_taken,
        total_attempts=report.total_attempts + attempt.attempts_needed,
        average_time_per_question=time_taken / total_questions,
        timeouts_expired=report.timeouts_expired + timeout,
        topic_stats={**report.topic_stats, attempt.topic: topic_stat},
        level_stats={**report.level_stats, attempt.difficulty_level: level_stat},
        questions_data=questions_data,
        revision_needed=_revision_needed(questions_data),
        topics_completed=list(report.topics_completed)
    )


def _revision_needed(records: List[QuestionRecord]) -> List[RevisionItem]:
    """(topic, level) pairs with at least one incorrect-final attempt, first occurrence order"""
    seen = set()
    items = []
    for record in records:
        if record.correct:
            continue
        pair = (record.topic, record.difficulty_level)
        if pair not in seen:
            seen.add(pair)
            items.append(RevisionItem(topic=record.topic, difficulty_level=record.difficulty_level))
    return items


def build_report(attempts: Iterable[Attempt]) -> SessionReport:
    """Derive a report from an attempt log"""
    report = empty_report()
    for attempt in attempts:
        report = fold(report, attempt)
    return report


def topic_summary(report: SessionReport, subject: Optional[str] = None) -> List[TopicSummary]:
    """Per-topic accuracy, average time and incorrect counts, labelled for the subject"""
    summaries = []
    for topic, stat in report.topic_stats.items():
        summaries.append(TopicSummary(
            topic=topic,
            display_name=display_name(subject, topic) if subject else topic,
            accuracy=(stat.correct / stat.total * 100) if stat.total else 0.0,
            average_time=(stat.total_time / stat.total) if stat.total else 0.0,
            incorrect=stat.total - stat.correct,
            hints_used=stat.hints_used
        ))
    return summaries


def export_attempts(attempts: Iterable[Attempt], format: str = "csv") -> Any:
    """Export the attempt log as CSV text or a list of dicts"""
    rows = [attempt.model_dump(mode="json") for attempt in attempts]

    if format == "json":
        return rows
    if format != "csv":
        raise ValueError(f"Unsupported export format: {format}")

    if not rows:
        return ""

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS)
    writer.writeheader()

    for row in rows:
        writer.writerow({k: row.get(k, "") for k in EXPORT_FIELDS})

    logger.debug(f"Exported {len(rows)} attempts as CSV")
    return output.getvalue()
