"""CLI commands for bubblegrade.

Commands:
- classes / class-add / class-delete: Manage classes
- students / student-add / student-delete: Manage the student roster
- stats: Performance summary for one student
- settings / settings-set: View and change app settings
- profile / profile-set: View and edit the teacher profile

The data directory comes from BUBBLEGRADE_DATA_DIR (default: ./data); the
config file is read from config/app_config_v1.yaml inside it.
"""

from __future__ import annotations

import os
from pathlib import Path

import typer
from rich.console import Console

from bubblegrade.config.app_config import config_file_for, load_app_config
from bubblegrade.core.analytics import (
    load_student_results,
    performance_band,
    summarize,
)
from bubblegrade.core.search import filter_classes, filter_students
from bubblegrade.db.classes_repository import (
    ConstraintViolation,
    delete_class,
    get_all_classes,
    get_class_by_id,
    get_class_name,
    save_class,
)
from bubblegrade.db.database import StorageUnavailable, init_db
from bubblegrade.db.models import SchoolClass, Student, new_record_id
from bubblegrade.db.settings_repository import (
    PROFILE_FIELDS,
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
from bubblegrade.utils.validators import ValidationError

app = typer.Typer(
    name="bubblegrade",
    help="Local records and performance statistics for bubble-sheet exams.",
    no_args_is_help=True,
)

console = Console()

BAND_COLORS = {
    "excellent": "green",
    "good": "bright_green",
    "average": "yellow",
    "fair": "dark_orange",
    "poor": "red",
}

TREND_ICONS = {"improving": "📈", "declining": "📉", "stable": "➡️"}


def _open_store() -> None:
    """Point the record store at the configured data directory, or exit."""
    data_dir = Path(os.environ.get("BUBBLEGRADE_DATA_DIR", "data"))
    config = load_app_config(config_path=config_file_for(data_dir))
    try:
        init_db(data_dir / config.storage.db_filename)
    except StorageUnavailable as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _parse_value(raw: str) -> bool | str:
    """Parse a CLI setting value: true/false become booleans."""
    lowered = raw.strip().lower()
    if lowered in ("true", "yes", "on", "1"):
        return True
    if lowered in ("false", "no", "off", "0"):
        return False
    return raw


def _parse_assignments(pairs: list[str]) -> dict[str, str]:
    """Parse KEY=VALUE arguments, exiting on malformed input."""
    values = {}
    for pair in pairs:
        if "=" not in pair:
            console.print(f"[red]✗ Expected KEY=VALUE, got '{pair}'[/red]")
            raise typer.Exit(code=1)
        key, value = pair.split("=", 1)
        values[key.strip()] = value
    return values


# =============================================================================
# CLASSES
# =============================================================================


@app.command(name="classes")
def list_classes(
    search: str = typer.Option("", "-s", "--search", help="Filter by name or section"),
) -> None:
    """List all classes."""
    _open_store()
    classes = filter_classes(get_all_classes(), search)

    if not classes:
        console.print("[yellow]No classes found[/yellow]")
        console.print("  Use: bubblegrade class-add <name>")
        return

    console.print(f"\n[bold]Classes ({len(classes)}):[/bold]\n")
    for c in classes:
        console.print(f"  [bold]{c.name}[/bold]  [dim]{c.id}[/dim]")
        count = len(get_students_by_class(c.id))
        console.print(f"    [dim]students:[/dim] {count} student(s)")
        if c.section:
            console.print(f"    [dim]section:[/dim] {c.section}")
        if c.academic_year:
            console.print(f"    [dim]year:[/dim]    {c.academic_year}")


@app.command(name="class-add")
def class_add(
    name: str = typer.Argument(..., help="Class name"),
    section: str | None = typer.Option(None, "--section", help="Section"),
    academic_year: str | None = typer.Option(None, "--year", help="Academic year, e.g. 2025-2026"),
    class_id: str | None = typer.Option(None, "--id", help="Update the class with this id"),
) -> None:
    """Create a class, or update one with --id."""
    _open_store()

    if class_id and get_class_by_id(class_id) is None:
        console.print(f"[red]✗ Class not found: {class_id}[/red]")
        raise typer.Exit(code=1)

    result = save_class(
        SchoolClass(
            id=class_id or new_record_id("class"),
            name=name,
            section=section,
            academic_year=academic_year,
        )
    )

    if not result.success:
        console.print("[red]✗ Validation error[/red]")
        for error in result.errors:
            console.print(f"  [yellow]• {error}[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {result.message}[/green]")
    console.print(f"  [dim]id:[/dim] {result.record.id}")


@app.command(name="class-delete")
def class_delete(class_id: str = typer.Argument(..., help="Class id")) -> None:
    """Delete a class. Refused while students are assigned to it."""
    _open_store()

    try:
        deleted = delete_class(class_id)
    except ConstraintViolation as e:
        console.print("[red]✗ Cannot delete class[/red]")
        console.print(f"  {e}")
        raise typer.Exit(code=1)

    if not deleted:
        console.print(f"[yellow]Class not found: {class_id}[/yellow]")
        return

    console.print(f"[green]✓ Class {class_id} deleted[/green]")


# =============================================================================
# STUDENTS
# =============================================================================


@app.command(name="students")
def list_students(
    search: str = typer.Option("", "-s", "--search", help="Filter by name, ID or email"),
) -> None:
    """List all students with their class."""
    _open_store()
    students = filter_students(get_all_students(), search)

    if not students:
        console.print("[yellow]No students found[/yellow]")
        console.print("  Use: bubblegrade student-add <name> <student-id>")
        return

    console.print(f"\n[bold]Students ({len(students)}):[/bold]\n")
    for s in students:
        class_name = get_class_name(s.class_id) or "No Class"
        console.print(f"  [bold]{s.name}[/bold]  [dim]{s.id}[/dim]")
        console.print(f"    [dim]ID:[/dim]    {s.student_id}")
        console.print(f"    [dim]class:[/dim] {class_name}")
        if s.email:
            console.print(f"    [dim]email:[/dim] {s.email}")


@app.command(name="student-add")
def student_add(
    name: str = typer.Argument(..., help="Full name"),
    student_id: str = typer.Argument(..., help="Student ID shown on sheets"),
    email: str | None = typer.Option(None, "--email", help="Email (optional)"),
    class_id: str | None = typer.Option(None, "--class", help="Class id (optional)"),
    record_id: str | None = typer.Option(None, "--id", help="Update the student with this id"),
) -> None:
    """Create a student, or update one with --id."""
    _open_store()

    if record_id and get_student_by_id(record_id) is None:
        console.print(f"[red]✗ Student not found: {record_id}[/red]")
        raise typer.Exit(code=1)

    result = save_student(
        Student(
            id=record_id or new_record_id("student"),
            name=name,
            student_id=student_id,
            email=email,
            class_id=class_id,
        )
    )

    if not result.success:
        console.print("[red]✗ Please fix the errors before saving.[/red]")
        for error in result.errors:
            console.print(f"  [yellow]• {error}[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {result.message}[/green]")
    console.print(f"  [dim]id:[/dim] {result.record.id}")


@app.command(name="student-delete")
def student_delete(
    record_id: str = typer.Argument(..., help="Student record id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a student and all their exam results."""
    _open_store()

    student = get_student_by_id(record_id)
    if student is None:
        console.print(f"[yellow]Student not found: {record_id}[/yellow]")
        return

    if not yes:
        typer.confirm(
            f"Delete \"{student.name}\"? This will also delete all their exam results.",
            abort=True,
        )

    delete_student(record_id)
    console.print(f"[green]✓ Student {student.name} deleted[/green]")


@app.command()
def stats(record_id: str = typer.Argument(..., help="Student record id")) -> None:
    """Show performance statistics for a student."""
    _open_store()
    config = load_app_config()

    student = get_student_by_id(record_id)
    if student is None:
        console.print(f"[red]✗ Student not found: {record_id}[/red]")
        raise typer.Exit(code=1)

    results = load_student_results(
        record_id, unknown_label=config.analytics.unknown_exam_label
    )
    summary = summarize(results, recent_window=config.analytics.recent_window)

    console.print(f"\n[bold]{student.name}[/bold]  [dim]ID: {student.student_id}[/dim]")

    if summary is None:
        console.print("[yellow]No statistics available yet[/yellow]")
        return

    console.print(f"  [dim]exams:[/dim]    {summary.total_exams}")
    console.print(f"  [dim]average:[/dim]  {summary.average_score:.2f}%")
    console.print(f"  [dim]highest:[/dim]  {summary.highest_score:.2f}%")
    console.print(f"  [dim]lowest:[/dim]   {summary.lowest_score:.2f}%")
    console.print(
        f"  [dim]passed:[/dim]   {summary.passed_exams}  "
        f"[dim]failed:[/dim] {summary.failed_exams}  "
        f"[dim]pass rate:[/dim] {summary.pass_rate:.2f}%"
    )
    console.print(
        f"  [dim]trend:[/dim]    {TREND_ICONS[summary.trend]} {summary.trend.capitalize()} "
        f"(recent average {summary.recent_average:.2f}%)"
    )

    console.print("\n[bold]Grade distribution:[/bold]")
    for grade, count in summary.grade_distribution.items():
        console.print(f"  {grade}: {count}")

    console.print("\n[bold]Exams:[/bold]")
    for r in results:
        if r.percentage is None:
            console.print(f"  {r.exam_name}  [dim]not graded[/dim]")
            continue
        color = BAND_COLORS[performance_band(r.percentage)]
        mark = "✓" if r.passed else "✗"
        date = (r.exam_date or "")[:10]
        console.print(
            f"  {mark} {r.exam_name}  [{color}]{r.percentage:.2f}%[/{color}]  "
            f"{r.grade or ''}  [dim]{date}[/dim]"
        )


# =============================================================================
# SETTINGS & PROFILE
# =============================================================================


@app.command(name="settings")
def show_settings() -> None:
    """Show current settings."""
    _open_store()
    console.print("\n[bold]Settings:[/bold]")
    for key, value in sorted(get_settings().items()):
        console.print(f"  [dim]{key}:[/dim] {value}")


@app.command(name="settings-set")
def settings_set(
    assignments: list[str] = typer.Argument(..., help="KEY=VALUE pairs, e.g. skip_verify_detection=false"),
) -> None:
    """Change one or more settings."""
    _open_store()
    values = {k: _parse_value(v) for k, v in _parse_assignments(assignments).items()}

    try:
        settings = save_settings(values)
    except ValidationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print("[green]✓ Settings saved[/green]")
    for key in sorted(values):
        console.print(f"  [dim]{key}:[/dim] {settings[key]}")


@app.command(name="profile")
def show_profile() -> None:
    """Show the teacher profile."""
    _open_store()
    profile = get_profile()
    console.print("\n[bold]Profile:[/bold]")
    for key in PROFILE_FIELDS:
        console.print(f"  [dim]{key}:[/dim] {profile[key] or 'Not set'}")


@app.command(name="profile-set")
def profile_set(
    assignments: list[str] = typer.Argument(..., help="FIELD=VALUE pairs, e.g. school='Lincoln High'"),
) -> None:
    """Update teacher profile fields."""
    _open_store()

    try:
        save_profile(_parse_assignments(assignments))
    except ValidationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print("[green]✓ Profile updated successfully![/green]")


if __name__ == "__main__":
    app()
