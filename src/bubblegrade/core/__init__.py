"""Core logic built on top of the record store.

Modules:
- analytics: Student performance summaries and result display names
- search: Case-insensitive list filters
"""

from bubblegrade.core.analytics import (
    PerformanceSummary,
    load_student_results,
    performance_band,
    resolve_exam_names,
    summarize,
)
from bubblegrade.core.search import filter_classes, filter_students

__all__ = [
    "PerformanceSummary",
    "filter_classes",
    "filter_students",
    "load_student_results",
    "performance_band",
    "resolve_exam_names",
    "summarize",
]
