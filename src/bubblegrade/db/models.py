"""Record types stored by the record store.

Field names follow the database columns. Timestamps are ISO-8601 UTC strings.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def utc_now() -> str:
    """Current UTC time as ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def new_record_id(prefix: str) -> str:
    """Generate a fresh record id, e.g. 'student_3f9c2a1b7d4e'.

    Ids are the caller's responsibility; this is the default way to make one.
    """
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


@dataclass
class Student:
    """A student on the teacher's roster."""

    id: str
    name: str
    student_id: str
    email: str | None = None
    class_id: str | None = None  # None = unassigned
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "student_id": self.student_id,
            "email": self.email,
            "class_id": self.class_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class SchoolClass:
    """A class (course group) students can be assigned to."""

    id: str
    name: str
    section: str | None = None
    academic_year: str | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "section": self.section,
            "academic_year": self.academic_year,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class AnswerKey:
    """An answer key. `data` holds the exam definition owned by the scanner."""

    id: str
    name: str
    data: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "data": self.data,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class ExamResult:
    """A graded (or ungraded) sheet for one student."""

    id: str
    student_id: str
    answer_key_id: str | None = None
    exam_name: str | None = None
    exam_date: str | None = None
    percentage: float | None = None  # None = ungraded
    grade: str | None = None
    passed: bool = False  # stored as given, never recomputed
    data: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_graded(self) -> bool:
        return self.percentage is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "answer_key_id": self.answer_key_id,
            "exam_name": self.exam_name,
            "exam_date": self.exam_date,
            "percentage": self.percentage,
            "grade": self.grade,
            "passed": self.passed,
            "data": self.data,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class SaveResult(Generic[T]):
    """Outcome of an upsert."""

    success: bool
    record: T | None
    message: str
    created: bool = False
    errors: list[str] = field(default_factory=list)


def dump_json(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False)


def load_json(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    return json.loads(raw)
