"""Database module for SQLite persistence.

Provides:
- Database connection management and schema initialization
- Record types (Student, SchoolClass, AnswerKey, ExamResult)
- Repository functions per table, plus settings/profile singletons
"""

from bubblegrade.db.answer_keys_repository import (
    delete_answer_key,
    get_all_answer_keys,
    get_answer_key_by_id,
    save_answer_key,
)
from bubblegrade.db.classes_repository import (
    ConstraintViolation,
    delete_class,
    get_all_classes,
    get_class_by_id,
    get_class_name,
    save_class,
)
from bubblegrade.db.database import StorageUnavailable, get_db, init_db
from bubblegrade.db.models import (
    AnswerKey,
    ExamResult,
    SaveResult,
    SchoolClass,
    Student,
    new_record_id,
)
from bubblegrade.db.results_repository import (
    delete_result,
    get_all_results,
    get_result_by_id,
    get_results_by_answer_key,
    get_results_by_student,
    save_result,
)
from bubblegrade.db.settings_repository import (
    get_profile,
    get_settings,
    save_profile,
    save_settings,
)
from bubblegrade.db.students_repository import (
    delete_student,
    get_all_students,
    get_student_by_id,
    get_students_by_class,
    save_student,
)

__all__ = [
    "AnswerKey",
    "ConstraintViolation",
    "ExamResult",
    "SaveResult",
    "SchoolClass",
    "StorageUnavailable",
    "Student",
    "delete_answer_key",
    "delete_class",
    "delete_result",
    "delete_student",
    "get_all_answer_keys",
    "get_all_classes",
    "get_all_results",
    "get_all_students",
    "get_answer_key_by_id",
    "get_class_by_id",
    "get_class_name",
    "get_db",
    "get_profile",
    "get_result_by_id",
    "get_results_by_answer_key",
    "get_results_by_student",
    "get_settings",
    "get_student_by_id",
    "get_students_by_class",
    "init_db",
    "new_record_id",
    "save_answer_key",
    "save_class",
    "save_profile",
    "save_result",
    "save_settings",
    "save_student",
]
