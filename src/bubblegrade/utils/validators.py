"""Data validation helpers.

Entity rules checked before any write reaches the database:
- Student: name and student_id required, email optional but well formed
- SchoolClass / AnswerKey: name required
- ExamResult: student_id required, percentage (if present) within [0, 100]
- Settings: values must be plain booleans, strings, numbers or None

Functions:
- validate_email(email) -> bool
- is_valid_percentage(value) -> bool
- validate_student / validate_class / validate_answer_key / validate_result
- validate_settings(values)
"""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bubblegrade.db.models import AnswerKey, ExamResult, SchoolClass, Student

# local-part@domain.tld, no whitespace
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ValidationError(Exception):
    """Raised when an entity is malformed and must not be written."""

    def __init__(self, entity: str, errors: list[str]):
        self.entity = entity
        self.errors = errors
        super().__init__(
            f"Invalid {entity}:\n" + "\n".join(f"  - {e}" for e in errors)
        )


def validate_email(email: str | None) -> bool:
    """Validate email format. Empty, blank or None is valid (optional field).

    Args:
        email: Email address to validate

    Returns:
        True if valid email or empty, False otherwise
    """
    if not email or not email.strip():
        return True
    return bool(EMAIL_PATTERN.match(email.strip()))


def is_valid_percentage(value: Any) -> bool:
    """Check that value is a real number within [0, 100]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if math.isnan(value):
        return False
    return 0 <= value <= 100


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def validate_student(student: Student) -> None:
    """Validate a student before saving.

    Raises:
        ValidationError: With one message per failing field
    """
    errors = []
    if _is_blank(student.id):
        errors.append("id is required")
    if _is_blank(student.name):
        errors.append("Name is required")
    if _is_blank(student.student_id):
        errors.append("Student ID is required")
    if not validate_email(student.email):
        errors.append("Invalid email format")

    if errors:
        raise ValidationError("student", errors)


def validate_class(school_class: SchoolClass) -> None:
    """Validate a class before saving."""
    errors = []
    if _is_blank(school_class.id):
        errors.append("id is required")
    if _is_blank(school_class.name):
        errors.append("Class name is required")

    if errors:
        raise ValidationError("class", errors)


def validate_answer_key(answer_key: AnswerKey) -> None:
    """Validate an answer key before saving."""
    errors = []
    if _is_blank(answer_key.id):
        errors.append("id is required")
    if _is_blank(answer_key.name):
        errors.append("Answer key name is required")
    if not isinstance(answer_key.data, dict):
        errors.append("Answer key data must be a mapping")

    if errors:
        raise ValidationError("answer key", errors)


def validate_result(result: ExamResult) -> None:
    """Validate an exam result before saving.

    The pass threshold belongs to the grading pipeline, so `passed` is only
    checked for type, never against `percentage`.
    """
    errors = []
    if _is_blank(result.id):
        errors.append("id is required")
    if _is_blank(result.student_id):
        errors.append("Student is required")
    if result.percentage is not None and not is_valid_percentage(result.percentage):
        errors.append(f"Percentage must be between 0 and 100 (got {result.percentage!r})")
    if not isinstance(result.passed, bool):
        errors.append("Passed must be true or false")
    if not isinstance(result.data, dict):
        errors.append("Result data must be a mapping")

    if errors:
        raise ValidationError("exam result", errors)


def validate_settings(values: dict[str, Any]) -> None:
    """Validate a settings update: named boolean/enum options only."""
    errors = [
        f"Setting '{name}' must be a boolean, text or number"
        for name, value in values.items()
        if value is not None and not isinstance(value, (bool, str, int, float))
    ]

    if errors:
        raise ValidationError("settings", errors)
