"""Repository functions for classes table.

Provides CRUD operations for classes. A class that still has students
assigned cannot be deleted.
"""

from __future__ import annotations

import structlog

from bubblegrade.db.database import get_db
from bubblegrade.db.models import SaveResult, SchoolClass, utc_now
from bubblegrade.utils.validators import ValidationError, validate_class

logger = structlog.get_logger(__name__)


class ConstraintViolation(Exception):
    """Raised when a class is deleted while students still reference it."""

    def __init__(self, class_id: str, blocking_count: int):
        self.class_id = class_id
        self.blocking_count = blocking_count
        super().__init__(
            f"This class has {blocking_count} student(s). "
            "Please remove or reassign students before deleting the class."
        )


def save_class(school_class: SchoolClass) -> SaveResult[SchoolClass]:
    """Insert or replace a class by id.

    Args:
        school_class: Class to store. created_at is kept from the stored
            record when the id already exists.

    Returns:
        SaveResult with the stored record, or success=False with the
        validation errors (nothing written)

    Raises:
        StorageUnavailable: If the database cannot be written
    """
    try:
        validate_class(school_class)
    except ValidationError as e:
        logger.info("classes.save_rejected", class_id=school_class.id, errors=e.errors)
        return SaveResult(success=False, record=None, message=str(e), errors=e.errors)

    now = utc_now()
    with get_db() as conn:
        exists = conn.execute(
            "SELECT 1 FROM classes WHERE id = ?", (school_class.id,)
        ).fetchone() is not None

        conn.execute(
            """
            INSERT INTO classes (id, name, section, academic_year, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                section = excluded.section,
                academic_year = excluded.academic_year,
                updated_at = excluded.updated_at
            """,
            (
                school_class.id,
                school_class.name.strip(),
                _clean(school_class.section),
                _clean(school_class.academic_year),
                school_class.created_at or now,
                now,
            ),
        )

        row = conn.execute(
            "SELECT * FROM classes WHERE id = ?", (school_class.id,)
        ).fetchone()

    record = _row_to_record(row)
    logger.debug("classes.saved", class_id=record.id, created=not exists)
    return SaveResult(
        success=True,
        record=record,
        message=f"Class {'updated' if exists else 'created'} successfully",
        created=not exists,
    )


def get_class_by_id(class_id: str) -> SchoolClass | None:
    """Get class by ID.

    Returns:
        SchoolClass if found, None otherwise
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM classes WHERE id = ?", (class_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_all_classes() -> list[SchoolClass]:
    """Get all classes in insertion order."""
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM classes ORDER BY rowid").fetchall()

    return [_row_to_record(row) for row in rows]


def get_class_name(class_id: str | None) -> str | None:
    """Get the display name of a class, or None if unassigned/unknown."""
    if not class_id:
        return None

    with get_db() as conn:
        row = conn.execute(
            "SELECT name FROM classes WHERE id = ?", (class_id,)
        ).fetchone()

    return row["name"] if row else None


def delete_class(class_id: str) -> bool:
    """Delete class by ID.

    Returns:
        True if deleted, False if not found

    Raises:
        ConstraintViolation: If any student is assigned to the class.
            Nothing is deleted.
    """
    with get_db() as conn:
        blocking = conn.execute(
            "SELECT COUNT(*) FROM students WHERE class_id = ?", (class_id,)
        ).fetchone()[0]

        if blocking:
            logger.info("classes.delete_blocked", class_id=class_id, students=blocking)
            raise ConstraintViolation(class_id, blocking)

        cursor = conn.execute("DELETE FROM classes WHERE id = ?", (class_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("classes.deleted", class_id=class_id)

    return deleted


def _clean(value: str | None) -> str | None:
    """Strip optional text, mapping blanks to None."""
    if value is None:
        return None
    return value.strip() or None


def _row_to_record(row) -> SchoolClass:
    """Convert database row to SchoolClass."""
    return SchoolClass(
        id=row["id"],
        name=row["name"],
        section=row["section"],
        academic_year=row["academic_year"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
