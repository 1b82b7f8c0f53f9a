"""Repository functions for students table.

Provides CRUD operations for students. Deleting a student also deletes
every exam result recorded for them.
"""

from __future__ import annotations

import sqlite3

import structlog

from bubblegrade.db.database import get_db
from bubblegrade.db.models import SaveResult, Student, utc_now
from bubblegrade.utils.validators import ValidationError, validate_student

logger = structlog.get_logger(__name__)


def save_student(student: Student) -> SaveResult[Student]:
    """Insert or replace a student by id.

    Args:
        student: Student to store. If class_id is set it must name an
            existing class.

    Returns:
        SaveResult with the stored record, or success=False with the
        validation errors (nothing written)

    Raises:
        StorageUnavailable: If the database cannot be written
    """
    now = utc_now()
    try:
        validate_student(student)

        with get_db() as conn:
            _check_class_exists(conn, student.class_id)

            exists = conn.execute(
                "SELECT 1 FROM students WHERE id = ?", (student.id,)
            ).fetchone() is not None

            conn.execute(
                """
                INSERT INTO students (
                    id, name, student_id, email, class_id, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    student_id = excluded.student_id,
                    email = excluded.email,
                    class_id = excluded.class_id,
                    updated_at = excluded.updated_at
                """,
                (
                    student.id,
                    student.name.strip(),
                    student.student_id.strip(),
                    (student.email or "").strip() or None,
                    student.class_id or None,
                    student.created_at or now,
                    now,
                ),
            )

            row = conn.execute(
                "SELECT * FROM students WHERE id = ?", (student.id,)
            ).fetchone()

    except ValidationError as e:
        logger.info("students.save_rejected", student=student.id, errors=e.errors)
        return SaveResult(success=False, record=None, message=str(e), errors=e.errors)

    record = _row_to_record(row)
    logger.debug("students.saved", student=record.id, created=not exists)
    return SaveResult(
        success=True,
        record=record,
        message=f"Student {'updated' if exists else 'created'} successfully",
        created=not exists,
    )


def get_student_by_id(record_id: str) -> Student | None:
    """Get student by record ID.

    Returns:
        Student if found, None otherwise
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM students WHERE id = ?", (record_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_all_students() -> list[Student]:
    """Get all students in insertion order."""
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM students ORDER BY rowid").fetchall()

    return [_row_to_record(row) for row in rows]


def get_students_by_class(class_id: str) -> list[Student]:
    """Get all students assigned to a class (empty list if none)."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM students WHERE class_id = ? ORDER BY rowid", (class_id,)
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def delete_student(record_id: str) -> bool:
    """Delete student and all their exam results.

    Both deletes run in the same transaction.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM students WHERE id = ?", (record_id,))
        if cursor.rowcount == 0:
            return False

        results = conn.execute(
            "DELETE FROM exam_results WHERE student_id = ?", (record_id,)
        ).rowcount

    logger.debug("students.deleted", student=record_id, results_deleted=results)
    return True


def _check_class_exists(conn: sqlite3.Connection, class_id: str | None) -> None:
    if not class_id:
        return
    row = conn.execute("SELECT 1 FROM classes WHERE id = ?", (class_id,)).fetchone()
    if row is None:
        raise ValidationError("student", [f"Class not found: {class_id}"])


def _row_to_record(row) -> Student:
    """Convert database row to Student."""
    return Student(
        id=row["id"],
        name=row["name"],
        student_id=row["student_id"],
        email=row["email"],
        class_id=row["class_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
