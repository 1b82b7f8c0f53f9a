"""Repository functions for single-row records (settings, teacher profile).

Both live in the singletons table as one JSON document per key. Reads merge
the stored document over documented defaults, so a missing or partial record
never lacks a field. Writes merge the given fields into the stored document
and persist the result as a whole.
"""

from __future__ import annotations

import sqlite3
from typing import Any

import structlog

from bubblegrade.config.app_config import load_app_config
from bubblegrade.db.database import get_db
from bubblegrade.db.models import dump_json, load_json, utc_now
from bubblegrade.utils.validators import ValidationError, validate_email, validate_settings

logger = structlog.get_logger(__name__)

SETTINGS_KEY = "settings"
PROFILE_KEY = "teacher_profile"

PROFILE_FIELDS = (
    "name",
    "email",
    "school",
    "department",
    "phone",
    "bio",
    "profile_image",
)


def get_settings() -> dict[str, Any]:
    """Get settings merged over defaults.

    Defaults come from the `settings` section of the app config
    (skip_verify_detection=True unless overridden). The first read stores
    them, so later config changes do not alter settings already in use.
    """
    defaults = dict(load_app_config().settings)
    with get_db() as conn:
        if not _exists(conn, SETTINGS_KEY):
            _write(conn, SETTINGS_KEY, defaults)
            logger.info("settings.created", defaults=sorted(defaults))
        stored = _read(conn, SETTINGS_KEY)

    return {**defaults, **stored}


def save_settings(partial: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into stored settings and persist the whole record.

    Args:
        partial: Options to change; other stored options are kept.

    Returns:
        The full settings after the write (merged over defaults)

    Raises:
        ValidationError: If a value is not a boolean/enum option
        StorageUnavailable: If the database cannot be written
    """
    validate_settings(partial)

    defaults = dict(load_app_config().settings)
    with get_db() as conn:
        stored = _read(conn, SETTINGS_KEY) if _exists(conn, SETTINGS_KEY) else defaults
        merged = {**stored, **partial}
        _write(conn, SETTINGS_KEY, merged)

    logger.info("settings.saved", changed=sorted(partial))
    return {**defaults, **merged}


def get_profile() -> dict[str, Any]:
    """Get the teacher profile; unset fields are None."""
    with get_db() as conn:
        stored = _read(conn, PROFILE_KEY)
        updated_at = _read_updated_at(conn, PROFILE_KEY)

    profile: dict[str, Any] = {name: None for name in PROFILE_FIELDS}
    profile.update(stored)
    profile["updated_at"] = updated_at
    return profile


def save_profile(partial: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into the teacher profile and persist it.

    Raises:
        ValidationError: On unknown fields or a malformed email
    """
    errors = [f"Unknown profile field '{name}'" for name in partial if name not in PROFILE_FIELDS]
    if not validate_email(partial.get("email")):
        errors.append("Invalid email format")
    if errors:
        raise ValidationError("profile", errors)

    with get_db() as conn:
        merged = {**_read(conn, PROFILE_KEY), **partial}
        _write(conn, PROFILE_KEY, merged)

    logger.info("profile.saved", changed=sorted(partial))
    return get_profile()


def _exists(conn: sqlite3.Connection, key: str) -> bool:
    return conn.execute("SELECT 1 FROM singletons WHERE key = ?", (key,)).fetchone() is not None


def _read(conn: sqlite3.Connection, key: str) -> dict[str, Any]:
    row = conn.execute("SELECT data FROM singletons WHERE key = ?", (key,)).fetchone()
    return load_json(row["data"]) if row else {}


def _read_updated_at(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute(
        "SELECT updated_at FROM singletons WHERE key = ?", (key,)
    ).fetchone()
    return row["updated_at"] if row else None


def _write(conn: sqlite3.Connection, key: str, data: dict[str, Any]) -> None:
    conn.execute(
        """
        INSERT INTO singletons (key, data, updated_at) VALUES (?, ?, ?)
        ON CONFLICT(key) DO UPDATE SET
            data = excluded.data,
            updated_at = excluded.updated_at
        """,
        (key, dump_json(data), utc_now()),
    )
