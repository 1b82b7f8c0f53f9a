"""Repository functions for exam_results table.

Results are written by the scanning/grading pipeline. The store only checks
shape: the owning student must exist and percentage must be within [0, 100].
"""

from __future__ import annotations

import structlog

from bubblegrade.db.database import get_db
from bubblegrade.db.models import ExamResult, SaveResult, dump_json, load_json, utc_now
from bubblegrade.utils.validators import ValidationError, validate_result

logger = structlog.get_logger(__name__)


def save_result(result: ExamResult) -> SaveResult[ExamResult]:
    """Insert or replace an exam result by id.

    Args:
        result: Result to store. student_id must name an existing student;
            answer_key_id is not checked (display falls back to exam_name).

    Returns:
        SaveResult with the stored record, or success=False with the
        validation errors (nothing written)

    Raises:
        StorageUnavailable: If the database cannot be written
    """
    now = utc_now()
    try:
        validate_result(result)

        with get_db() as conn:
            student = conn.execute(
                "SELECT 1 FROM students WHERE id = ?", (result.student_id,)
            ).fetchone()
            if student is None:
                raise ValidationError(
                    "exam result", [f"Student not found: {result.student_id}"]
                )

            exists = conn.execute(
                "SELECT 1 FROM exam_results WHERE id = ?", (result.id,)
            ).fetchone() is not None

            conn.execute(
                """
                INSERT INTO exam_results (
                    id, student_id, answer_key_id, exam_name, exam_date,
                    percentage, grade, passed, data, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    student_id = excluded.student_id,
                    answer_key_id = excluded.answer_key_id,
                    exam_name = excluded.exam_name,
                    exam_date = excluded.exam_date,
                    percentage = excluded.percentage,
                    grade = excluded.grade,
                    passed = excluded.passed,
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (
                    result.id,
                    result.student_id,
                    result.answer_key_id,
                    result.exam_name,
                    result.exam_date,
                    None if result.percentage is None else float(result.percentage),
                    result.grade,
                    int(result.passed),
                    dump_json(result.data),
                    result.created_at or now,
                    now,
                ),
            )

            row = conn.execute(
                "SELECT * FROM exam_results WHERE id = ?", (result.id,)
            ).fetchone()

    except ValidationError as e:
        logger.info("results.save_rejected", result=result.id, errors=e.errors)
        return SaveResult(success=False, record=None, message=str(e), errors=e.errors)

    record = _row_to_record(row)
    logger.debug("results.saved", result=record.id, student=record.student_id, created=not exists)
    return SaveResult(
        success=True,
        record=record,
        message=f"Result {'updated' if exists else 'saved'} successfully",
        created=not exists,
    )


def get_result_by_id(result_id: str) -> ExamResult | None:
    """Get exam result by ID, None if not found."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM exam_results WHERE id = ?", (result_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_all_results() -> list[ExamResult]:
    """Get all exam results in insertion order."""
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM exam_results ORDER BY rowid").fetchall()

    return [_row_to_record(row) for row in rows]


def get_results_by_student(student_id: str) -> list[ExamResult]:
    """Get all results for a student, in insertion order.

    Callers wanting newest-first must sort by exam_date themselves.
    """
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM exam_results WHERE student_id = ? ORDER BY rowid",
            (student_id,),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def get_results_by_answer_key(answer_key_id: str) -> list[ExamResult]:
    """Get all results graded against an answer key."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM exam_results WHERE answer_key_id = ? ORDER BY rowid",
            (answer_key_id,),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def delete_result(result_id: str) -> bool:
    """Delete exam result by ID.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM exam_results WHERE id = ?", (result_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("results.deleted", result=result_id)

    return deleted


def _row_to_record(row) -> ExamResult:
    """Convert database row to ExamResult."""
    return ExamResult(
        id=row["id"],
        student_id=row["student_id"],
        answer_key_id=row["answer_key_id"],
        exam_name=row["exam_name"],
        exam_date=row["exam_date"],
        percentage=row["percentage"],
        grade=row["grade"],
        passed=bool(row["passed"]),
        data=load_json(row["data"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
