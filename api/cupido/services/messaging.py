from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

from .reveal import shown_name

# table -> optional stored alias column
_MESSAGE_TABLES = {
    "chat_message": None,
    "group_message": "sender_alias",
}


def _table(name: str) -> str:
    if name not in _MESSAGE_TABLES:
        raise ValueError(f"Unknown message table: {name}")
    return name


def append_message(
    db,
    table: str,
    *,
    thread_id: str,
    sender_user_id: str,
    body: str,
    sender_alias: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    table = _table(table)
    now = now or datetime.now(timezone.utc)
    params = {"thread_id": thread_id, "sender_user_id": sender_user_id, "body": body, "created_at": now}
    if _MESSAGE_TABLES[table]:
        params["sender_alias"] = sender_alias or ""
        stmt = f"""
            INSERT INTO {table} (thread_id, sender_user_id, sender_alias, body, created_at)
            VALUES (:thread_id, :sender_user_id, :sender_alias, :body, :created_at)
            RETURNING id
        """
    else:
        stmt = f"""
            INSERT INTO {table} (thread_id, sender_user_id, body, created_at)
            VALUES (:thread_id, :sender_user_id, :body, :created_at)
            RETURNING id
        """
    message_id = db.execute(text(stmt), params).scalar_one()
    row = db.execute(
        text(f"SELECT * FROM {table} WHERE id = :id"),
        {"id": message_id},
    ).mappings().first()
    return dict(row)


def recent_messages(db, table: str, thread_id: str, limit: int) -> list[dict[str, Any]]:
    """Most recent `limit` messages of a thread, oldest first."""
    table = _table(table)
    alias_col = "m.sender_alias" if _MESSAGE_TABLES[table] else "NULL"
    rows = db.execute(
        text(
            f"""
            SELECT recent.*
            FROM (
              SELECT m.id, m.thread_id, m.sender_user_id, {alias_col} AS sender_alias, m.body, m.created_at,
                     p.display_name AS sender_real_name
              FROM {table} m
              LEFT JOIN participant_profile p ON p.identity = m.sender_user_id
              WHERE m.thread_id = :thread_id
              ORDER BY m.id DESC
              LIMIT :limit
            ) recent
            ORDER BY recent.id ASC
            """
        ),
        {"thread_id": thread_id, "limit": int(limit)},
    ).mappings().all()
    return [dict(r) for r in rows]


def message_view(
    row: dict[str, Any],
    *,
    viewer_id: str,
    sender_alias: str,
    sender_real_name: str | None,
    reveal_enabled: bool,
) -> dict[str, Any]:
    sender_id = str(row["sender_user_id"])
    return {
        "id": int(row["id"]),
        "thread_id": str(row["thread_id"]),
        "sender_user_id": sender_id,
        "sender_alias": sender_alias,
        "sender_display_name": shown_name(sender_real_name, sender_alias, reveal_enabled),
        "reveal_enabled": reveal_enabled,
        "is_mine": sender_id == viewer_id,
        "body": row["body"],
        "created_at": row["created_at"],
    }
