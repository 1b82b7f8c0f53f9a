"""Case-insensitive list filters for students and classes."""

from __future__ import annotations

from typing import Iterable

from bubblegrade.db.models import SchoolClass, Student


def _matches(query: str, *fields: str | None) -> bool:
    return any(query in f.lower() for f in fields if f)


def filter_students(students: Iterable[Student], query: str) -> list[Student]:
    """Keep students whose name, student ID or email contains query.

    An empty query keeps everything.
    """
    needle = query.strip().lower()
    if not needle:
        return list(students)
    return [s for s in students if _matches(needle, s.name, s.student_id, s.email)]


def filter_classes(classes: Iterable[SchoolClass], query: str) -> list[SchoolClass]:
    """Keep classes whose name or section contains query."""
    needle = query.strip().lower()
    if not needle:
        return list(classes)
    return [c for c in classes if _matches(needle, c.name, c.section)]
