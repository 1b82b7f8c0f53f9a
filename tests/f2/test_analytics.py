"""Tests for student performance analytics (F2)."""

import pytest

from bubblegrade.core.analytics import (
    PerformanceSummary,
    load_student_results,
    performance_band,
    resolve_exam_names,
    summarize,
)
from bubblegrade.db.answer_keys_repository import save_answer_key
from bubblegrade.db.models import ExamResult
from bubblegrade.db.results_repository import get_all_results, save_result
from bubblegrade.db.students_repository import save_student


def _result(idx: int, percentage, grade=None, passed=None, **kwargs) -> ExamResult:
    if passed is None:
        passed = percentage is not None and percentage >= 60
    return ExamResult(
        id=f"r{idx}",
        student_id="student_1",
        percentage=percentage,
        grade=grade,
        passed=passed,
        **kwargs,
    )


def _results(percentages, grades=None) -> list[ExamResult]:
    grades = grades or [None] * len(percentages)
    return [_result(i, p, g) for i, (p, g) in enumerate(zip(percentages, grades))]


class TestSummarize:
    """Tests for summarize()."""

    def test_empty_returns_none(self):
        assert summarize([]) is None

    def test_all_ungraded_returns_none(self):
        assert summarize(_results([None, None])) is None

    def test_reference_history(self):
        """Seven graded exams, newest first; the 60 was recorded as a fail."""
        percentages = [100, 80, 60, 40, 20, 90, 70]
        summary = summarize([_result(i, p, passed=p > 60) for i, p in enumerate(percentages)])

        assert isinstance(summary, PerformanceSummary)
        assert summary.total_exams == 7
        assert summary.average_score == 65.71
        assert summary.highest_score == 100
        assert summary.lowest_score == 20
        assert summary.passed_exams == 4
        assert summary.failed_exams == 3
        assert summary.pass_rate == 57.14
        assert summary.recent_average == 60
        assert summary.trend == "declining"

    def test_improving_trend(self):
        summary = summarize(_results([95, 90, 85, 80, 75, 20, 10]))

        assert summary.trend == "improving"

    def test_fewer_than_window_is_stable(self):
        """With under five graded exams every exam is recent."""
        summary = summarize(_results([50, 70, 90]))

        assert summary.recent_average == summary.average_score == 70
        assert summary.trend == "stable"

    @pytest.mark.parametrize("score,count", [(33.33, 7), (12.34, 6)])
    def test_constant_scores_are_stable(self, score, count):
        """Equal scores stay stable even when the two means differ in the last bits."""
        summary = summarize(_results([score] * count))

        assert summary.recent_average == summary.average_score == score
        assert summary.trend == "stable"

    def test_input_order_not_changed(self):
        """The engine trusts the caller's order."""
        oldest_first = summarize(_results([20, 40, 60, 80, 100, 10]))
        assert oldest_first.recent_average == 60
        assert oldest_first.trend == "improving"

    def test_custom_recent_window(self):
        summary = summarize(_results([100, 0, 0, 0]), recent_window=1)

        assert summary.recent_average == 100
        assert summary.trend == "improving"

    def test_ungraded_results_ignored(self):
        summary = summarize(_results([None, 80, None, 60]))

        assert summary.total_exams == 2
        assert summary.average_score == 70

    def test_passed_counted_as_stored(self):
        """passed is not re-derived from percentage."""
        results = [_result(1, 95, passed=False), _result(2, 30, passed=True)]
        summary = summarize(results)

        assert summary.passed_exams == 1
        assert summary.pass_rate == 50

    def test_grade_distribution_sorted_with_na_bucket(self):
        summary = summarize(
            _results([90, 80, 91, 50, 82, 93], grades=["A", "B", "A", None, "B", "A"])
        )

        assert summary.grade_distribution == {"A": 3, "B": 2, "N/A": 1}
        assert list(summary.grade_distribution) == ["A", "B", "N/A"]

    def test_grade_distribution_independent_of_order(self):
        summary = summarize(_results([50, 82, 90], grades=["C", "B", "A"]))

        assert list(summary.grade_distribution) == ["A", "B", "C"]

    def test_rounding(self):
        summary = summarize(_results([33.333, 66.666, 50]))

        assert summary.average_score == 50.0
        assert summary.highest_score == 66.67
        assert summary.pass_rate == 33.33


class TestMalformedRecords:
    """A bad record is dropped, not fatal."""

    @pytest.mark.parametrize("bad", [150, -5, float("nan"), "88", True])
    def test_bad_percentage_excluded(self, bad):
        results = [_result(1, 80, passed=True), _result(2, bad, passed=False)]
        summary = summarize(results)

        assert summary.total_exams == 1
        assert summary.average_score == 80
        assert summary.excluded_records == 1

    def test_only_bad_records_returns_none(self):
        assert summarize([_result(1, 101, passed=False)]) is None


class TestSummaryToDict:
    def test_to_dict(self):
        data = summarize(_results([80, 60], grades=["B", "D"])).to_dict()

        assert data["total_exams"] == 2
        assert data["trend"] == "stable"
        assert data["grade_distribution"] == {"B": 1, "D": 1}


class TestResolveExamNames:
    """Tests for result display names."""

    def test_answer_key_name_wins(self, db_path, sample_answer_key):
        save_answer_key(sample_answer_key)
        results = [_result(1, 80, answer_key_id="key_midterm", exam_name="Scan 12")]

        assert resolve_exam_names(results)[0].exam_name == "Midterm Exam"

    def test_falls_back_to_own_name(self, db_path):
        results = [_result(1, 80, answer_key_id="key_deleted", exam_name="Scan 12")]

        assert resolve_exam_names(results)[0].exam_name == "Scan 12"

    def test_unknown_exam(self, db_path):
        results = [_result(1, 80, answer_key_id="key_deleted"), _result(2, 70)]

        names = [r.exam_name for r in resolve_exam_names(results)]
        assert names == ["Unknown Exam", "Unknown Exam"]

    def test_inputs_not_mutated(self, db_path, sample_answer_key):
        save_answer_key(sample_answer_key)
        original = _result(1, 80, answer_key_id="key_midterm", exam_name="Scan 12")

        resolve_exam_names([original])

        assert original.exam_name == "Scan 12"


class TestLoadStudentResults:
    def test_newest_first_with_names(self, db_path, make_student, sample_answer_key):
        save_student(make_student())
        save_answer_key(sample_answer_key)
        save_result(_result(1, 50, exam_name="Quiz 1", exam_date="2026-02-01T10:00:00+00:00"))
        save_result(_result(2, 90, answer_key_id="key_midterm", exam_date="2026-03-15T10:00:00+00:00"))
        save_result(_result(3, None, exam_date=None))

        results = load_student_results("student_1")

        assert [r.id for r in results] == ["r2", "r1", "r3"]
        assert [r.exam_name for r in results] == ["Midterm Exam", "Quiz 1", "Unknown Exam"]

    def test_orders_by_instant_across_offsets(self, db_path, make_student):
        """+05:00 noon is 07:00 UTC, earlier than 10:00 UTC the same day."""
        save_student(make_student())
        save_result(_result(1, 70, exam_date=None))
        save_result(
            ExamResult(id="older", student_id="student_1", percentage=60, exam_date="2026-03-15T12:00:00+05:00")
        )
        save_result(
            ExamResult(id="newer", student_id="student_1", percentage=80, exam_date="2026-03-15T10:00:00+00:00")
        )
        save_result(
            ExamResult(id="zulu", student_id="student_1", percentage=90, exam_date="2026-03-16T00:00:00Z")
        )

        results = load_student_results("student_1")

        assert [r.id for r in results] == ["zulu", "newer", "older", "r1"]

    def test_unparseable_date_sorts_last(self, db_path, make_student):
        save_student(make_student())
        save_result(_result(1, 70, exam_date="last tuesday"))
        save_result(_result(2, 80, exam_date="2026-01-05T09:00:00"))

        assert [r.id for r in load_student_results("student_1")] == ["r2", "r1"]

    def test_does_not_write(self, db_path, make_student):
        save_student(make_student())
        save_result(_result(1, 50))

        load_student_results("student_1")

        assert get_all_results()[0].exam_name is None


class TestPerformanceBand:
    @pytest.mark.parametrize(
        "percentage,band",
        [(100, "excellent"), (90, "excellent"), (85, "good"), (70, "average"), (60, "fair"), (59.99, "poor")],
    )
    def test_bands(self, percentage, band):
        assert performance_band(percentage) == band
