"""Tests for students repository (F1)."""

import pytest

from bubblegrade.db.classes_repository import save_class
from bubblegrade.db.results_repository import get_all_results, get_result_by_id, save_result
from bubblegrade.db.students_repository import (
    delete_student,
    get_all_students,
    get_student_by_id,
    get_students_by_class,
    save_student,
)


class TestSaveStudent:
    """Tests for student upsert."""

    def test_save_creates_student(self, db_path, make_student):
        """New id is inserted with both timestamps set."""
        result = save_student(make_student())

        assert result.success is True
        assert result.created is True
        assert result.record.name == "Ana Torres"
        assert result.record.created_at
        assert result.record.updated_at

    def test_save_existing_id_replaces(self, db_path, make_student):
        """Saving an existing id updates the record in place."""
        save_student(make_student())
        result = save_student(make_student(name="Ana María Torres"))

        assert result.success is True
        assert result.created is False
        assert len(get_all_students()) == 1
        assert get_student_by_id("student_1").name == "Ana María Torres"

    def test_repeated_save_keeps_created_at(self, db_path, make_student):
        """created_at is stable, updated_at never goes backwards."""
        first = save_student(make_student()).record
        second = save_student(make_student()).record
        third = save_student(make_student()).record

        assert first.created_at == second.created_at == third.created_at
        assert first.updated_at <= second.updated_at <= third.updated_at

    def test_caller_created_at_ignored_on_update(self, db_path, make_student):
        """An update cannot rewrite created_at."""
        original = save_student(make_student()).record
        updated = save_student(make_student(created_at="1999-01-01T00:00:00+00:00")).record

        assert updated.created_at == original.created_at

    def test_missing_name_rejected(self, db_path, make_student):
        """Blank name fails validation and writes nothing."""
        result = save_student(make_student(name="   "))

        assert result.success is False
        assert "Name is required" in result.errors
        assert get_all_students() == []

    def test_missing_student_id_rejected(self, db_path, make_student):
        result = save_student(make_student(student_id=""))

        assert result.success is False
        assert "Student ID is required" in result.errors

    @pytest.mark.parametrize("email", ["not-an-email", "a@b", "a b@c.com"])
    def test_invalid_email_rejected(self, db_path, make_student, email):
        result = save_student(make_student(email=email))

        assert result.success is False
        assert "Invalid email format" in result.errors

    def test_email_optional(self, db_path, make_student):
        result = save_student(make_student(email=None))

        assert result.success is True
        assert result.record.email is None

    def test_unknown_class_rejected(self, db_path, make_student):
        """class_id must reference an existing class."""
        result = save_student(make_student(class_id="class_missing"))

        assert result.success is False
        assert get_student_by_id("student_1") is None

    def test_text_fields_trimmed(self, db_path, make_student):
        result = save_student(make_student(name="  Ana  ", student_id=" S-9 ", email=" "))

        assert result.record.name == "Ana"
        assert result.record.student_id == "S-9"
        assert result.record.email is None

    def test_padded_email_accepted(self, db_path, make_student):
        result = save_student(make_student(email="  ana@example.com\t"))

        assert result.success
        assert result.record.email == "ana@example.com"

    @pytest.mark.parametrize("email", ["", "   ", "\t\n"])
    def test_blank_email_is_optional(self, db_path, make_student, email):
        result = save_student(make_student(email=email))

        assert result.success
        assert result.errors == []


class TestStudentLookups:
    """Tests for student reads."""

    def test_get_by_id_absent_returns_none(self, db_path):
        assert get_student_by_id("nope") is None

    def test_get_all_keeps_insertion_order(self, db_path, make_student):
        """Upserts keep their original position."""
        save_student(make_student("student_b", name="Bruno"))
        save_student(make_student("student_a", name="Alba"))
        save_student(make_student("student_b", name="Bruno R."))

        assert [s.id for s in get_all_students()] == ["student_b", "student_a"]

    def test_get_by_class(self, db_path, make_student, make_class):
        save_class(make_class("class_1"))
        save_class(make_class("class_2", name="Chemistry"))
        save_student(make_student("student_1", class_id="class_1"))
        save_student(make_student("student_2", class_id="class_2"))
        save_student(make_student("student_3", class_id="class_1"))
        save_student(make_student("student_4"))

        ids = [s.id for s in get_students_by_class("class_1")]
        assert ids == ["student_1", "student_3"]

    def test_get_by_class_empty(self, db_path):
        assert get_students_by_class("class_1") == []


class TestDeleteStudent:
    """Tests for cascading student delete."""

    def test_delete_removes_student_and_results(self, db_path, make_student, make_result):
        save_student(make_student("student_1"))
        save_student(make_student("student_2", name="Bruno"))
        save_result(make_result("r1", student_id="student_1"))
        save_result(make_result("r2", student_id="student_1"))
        save_result(make_result("r3", student_id="student_2"))

        assert delete_student("student_1") is True

        assert get_student_by_id("student_1") is None
        assert get_result_by_id("r1") is None
        assert get_result_by_id("r2") is None
        # Other students' results untouched
        assert [r.id for r in get_all_results()] == ["r3"]

    def test_delete_absent_is_noop(self, db_path, make_student, make_result):
        save_student(make_student())
        save_result(make_result("r1"))

        assert delete_student("missing") is False
        assert len(get_all_students()) == 1
        assert len(get_all_results()) == 1
