"""Repository functions for answer_keys table."""

from __future__ import annotations

import structlog

from bubblegrade.db.database import get_db
from bubblegrade.db.models import AnswerKey, SaveResult, dump_json, load_json, utc_now
from bubblegrade.utils.validators import ValidationError, validate_answer_key

logger = structlog.get_logger(__name__)


def save_answer_key(answer_key: AnswerKey) -> SaveResult[AnswerKey]:
    """Insert or replace an answer key by id.

    The exam definition in `data` is stored as JSON and not interpreted.
    """
    try:
        validate_answer_key(answer_key)
    except ValidationError as e:
        logger.info("answer_keys.save_rejected", answer_key=answer_key.id, errors=e.errors)
        return SaveResult(success=False, record=None, message=str(e), errors=e.errors)

    now = utc_now()
    with get_db() as conn:
        exists = conn.execute(
            "SELECT 1 FROM answer_keys WHERE id = ?", (answer_key.id,)
        ).fetchone() is not None

        conn.execute(
            """
            INSERT INTO answer_keys (id, name, data, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                data = excluded.data,
                updated_at = excluded.updated_at
            """,
            (
                answer_key.id,
                answer_key.name.strip(),
                dump_json(answer_key.data),
                answer_key.created_at or now,
                now,
            ),
        )

        row = conn.execute(
            "SELECT * FROM answer_keys WHERE id = ?", (answer_key.id,)
        ).fetchone()

    record = _row_to_record(row)
    logger.debug("answer_keys.saved", answer_key=record.id, created=not exists)
    return SaveResult(
        success=True,
        record=record,
        message=f"Answer key {'updated' if exists else 'created'} successfully",
        created=not exists,
    )


def get_answer_key_by_id(answer_key_id: str) -> AnswerKey | None:
    """Get answer key by ID, None if not found."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM answer_keys WHERE id = ?", (answer_key_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_all_answer_keys() -> list[AnswerKey]:
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM answer_keys ORDER BY rowid").fetchall()

    return [_row_to_record(row) for row in rows]


def delete_answer_key(answer_key_id: str) -> bool:
    """Delete answer key by ID.

    Results pointing at the key are kept; they fall back to their own
    exam_name for display.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM answer_keys WHERE id = ?", (answer_key_id,)
        )

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("answer_keys.deleted", answer_key=answer_key_id)

    return deleted


def _row_to_record(row) -> AnswerKey:
    """Convert database row to AnswerKey."""
    return AnswerKey(
        id=row["id"],
        name=row["name"],
        data=load_json(row["data"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
