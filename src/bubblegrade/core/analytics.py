"""Student performance analytics.

Responsibilities:
- Summarize a student's exam history (averages, extremes, pass rate,
  grade distribution, recent trend)
- Resolve display names for results from their answer keys
- Load a student's results newest-first, ready for summarizing

summarize() is pure: it never touches the store and never sorts its input.
A malformed record is left out of the summary instead of failing it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Iterable, Literal, Sequence

import structlog

from bubblegrade.db.answer_keys_repository import get_answer_key_by_id
from bubblegrade.db.models import ExamResult
from bubblegrade.db.results_repository import get_results_by_student
from bubblegrade.utils.validators import is_valid_percentage

logger = structlog.get_logger(__name__)

# =============================================================================
# TYPES
# =============================================================================

Trend = Literal["improving", "declining", "stable"]

RECENT_WINDOW = 5
MISSING_GRADE_LABEL = "N/A"
UNKNOWN_EXAM_LABEL = "Unknown Exam"

# (lower bound, band) checked top-down
PERFORMANCE_BANDS = (
    (90, "excellent"),
    (80, "good"),
    (70, "average"),
    (60, "fair"),
)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class PerformanceSummary:
    """Summary of a student's graded exams.

    Scores and rates are rounded to 2 decimals; the trend is decided on the
    unrounded averages.
    """

    total_exams: int
    average_score: float
    highest_score: float
    lowest_score: float
    passed_exams: int
    failed_exams: int
    pass_rate: float
    recent_average: float
    trend: Trend
    grade_distribution: dict[str, int] = field(default_factory=dict)
    excluded_records: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_exams": self.total_exams,
            "average_score": self.average_score,
            "highest_score": self.highest_score,
            "lowest_score": self.lowest_score,
            "passed_exams": self.passed_exams,
            "failed_exams": self.failed_exams,
            "pass_rate": self.pass_rate,
            "recent_average": self.recent_average,
            "trend": self.trend,
            "grade_distribution": dict(self.grade_distribution),
            "excluded_records": self.excluded_records,
        }


# =============================================================================
# SUMMARY
# =============================================================================


def _graded(results: Iterable[ExamResult]) -> tuple[list[ExamResult], int]:
    """Split out graded results with a usable percentage.

    Returns:
        (graded results in input order, number of malformed records skipped)
    """
    graded = []
    excluded = 0
    for result in results:
        if result.percentage is None:
            continue
        if not is_valid_percentage(result.percentage):
            excluded += 1
            logger.warning(
                "analytics.record_excluded",
                result=result.id,
                percentage=result.percentage,
            )
            continue
        graded.append(result)
    return graded, excluded


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def summarize(
    results: Sequence[ExamResult],
    recent_window: int = RECENT_WINDOW,
) -> PerformanceSummary | None:
    """Summarize a student's results.

    Args:
        results: The student's results, expected newest first (by exam_date).
            Only graded results (percentage present) count.
        recent_window: How many of the first graded results make up the
            recent average.

    Returns:
        PerformanceSummary, or None when there is no graded result
    """
    graded, excluded = _graded(results)
    if not graded:
        return None

    scores = [float(r.percentage) for r in graded]
    total = len(graded)
    average = _mean(scores)
    passed = sum(1 for r in graded if r.passed)

    counts: dict[str, int] = {}
    for r in graded:
        label = r.grade or MISSING_GRADE_LABEL
        counts[label] = counts.get(label, 0) + 1

    recent_average = _mean(scores[: max(recent_window, 1)])
    # Equal scores can still produce means a few ulps apart
    if math.isclose(recent_average, average, abs_tol=1e-9):
        trend: Trend = "stable"
    elif recent_average > average:
        trend = "improving"
    else:
        trend = "declining"

    return PerformanceSummary(
        total_exams=total,
        average_score=round(average, 2),
        highest_score=round(max(scores), 2),
        lowest_score=round(min(scores), 2),
        passed_exams=passed,
        failed_exams=total - passed,
        pass_rate=round(passed / total * 100, 2),
        recent_average=round(recent_average, 2),
        trend=trend,
        grade_distribution={label: counts[label] for label in sorted(counts)},
        excluded_records=excluded,
    )


# =============================================================================
# INPUT PREPARATION
# =============================================================================


def resolve_exam_names(
    results: Iterable[ExamResult],
    unknown_label: str = UNKNOWN_EXAM_LABEL,
) -> list[ExamResult]:
    """Return copies of results with exam_name set for display.

    Name order: the answer key's name, then the result's own exam_name,
    then unknown_label. Each answer key is looked up once.
    """
    key_names: dict[str, str | None] = {}
    resolved = []

    for result in results:
        name = None
        if result.answer_key_id:
            if result.answer_key_id not in key_names:
                key = get_answer_key_by_id(result.answer_key_id)
                key_names[result.answer_key_id] = key.name if key else None
            name = key_names[result.answer_key_id]

        resolved.append(replace(result, exam_name=name or result.exam_name or unknown_label))

    return resolved


_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def _exam_date_key(result: ExamResult) -> tuple[bool, datetime]:
    """Sort key on the exam instant in UTC; undated or unparseable sort lowest.

    Naive timestamps are taken as UTC.
    """
    if not result.exam_date:
        return (False, _UNDATED)
    try:
        when = datetime.fromisoformat(result.exam_date.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("analytics.bad_exam_date", result=result.id, exam_date=result.exam_date)
        return (False, _UNDATED)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return (True, when.astimezone(timezone.utc))


def load_student_results(
    student_id: str,
    unknown_label: str = UNKNOWN_EXAM_LABEL,
) -> list[ExamResult]:
    """Load a student's results newest first, with display names resolved.

    Results without an exam_date sort last.
    """
    results = sorted(
        get_results_by_student(student_id),
        key=_exam_date_key,
        reverse=True,
    )
    return resolve_exam_names(results, unknown_label=unknown_label)


def performance_band(percentage: float) -> str:
    """Classify a score: excellent (>=90), good, average, fair (>=60), poor."""
    for lower, band in PERFORMANCE_BANDS:
        if percentage >= lower:
            return band
    return "poor"
