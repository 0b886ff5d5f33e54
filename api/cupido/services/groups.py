from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

from ..config import GROUP_MESSAGE_LIMIT
from ..errors import NotInGroup, ThreadNotAccessible
from ..http_helpers import resolve_limit, validate_message_body
from .aliases import make_unique_alias
from .events import log_profile_event
from .messaging import append_message, message_view, recent_messages
from .reveal import is_reveal_enabled, shown_name
from .scoring import dominant_category

logger = logging.getLogger(__name__)

TRIBES: tuple[dict[str, str], ...] = (
    {"key": "romantic", "label": "The Romantics", "description": "Midnight deep talks, handwritten notes and sunset walks."},
    {"key": "adventurous", "label": "The Adventurers", "description": "Spontaneous trips, sunrise hikes and unexplored corners of the city."},
    {"key": "intellectual", "label": "The Thinkers", "description": "Philosophy at 3am, good books and better arguments."},
    {"key": "creative", "label": "The Creatives", "description": "Sketchbooks, playlists and studios full of colour."},
    {"key": "chill", "label": "The Chill Crew", "description": "Cozy blankets, slow mornings and zero obligations."},
    {"key": "social", "label": "The Socialites", "description": "Always room for one more at the table."},
    {"key": "ambitious", "label": "The Visionaries", "description": "Side projects, big plans and future CEOs."},
)


def tribe_id(key: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"cupido:tribe:{key}"))


def tribe_thread_id(key: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"cupido:tribe-thread:{key}"))


def ensure_tribes(db) -> int:
    for order, tribe in enumerate(TRIBES):
        db.execute(
            text(
                """
                INSERT INTO tribe_group (id, group_key, label, description, sort_order)
                VALUES (:id, :group_key, :label, :description, :sort_order)
                ON CONFLICT (group_key) DO NOTHING
                """
            ),
            {
                "id": tribe_id(tribe["key"]),
                "group_key": tribe["key"],
                "label": tribe["label"],
                "description": tribe["description"],
                "sort_order": order,
            },
        )
        db.execute(
            text(
                """
                INSERT INTO group_thread (id, group_id)
                VALUES (:id, :group_id)
                ON CONFLICT (group_id) DO NOTHING
                """
            ),
            {"id": tribe_thread_id(tribe["key"]), "group_id": tribe_id(tribe["key"])},
        )
    return len(TRIBES)


def _get_membership(db, identity: str) -> dict[str, Any] | None:
    row = db.execute(
        text(
            """
            SELECT gm.identity, gm.group_id, gm.group_thread_id, gm.alias, tg.group_key
            FROM group_membership gm
            JOIN tribe_group tg ON tg.id = gm.group_id
            WHERE gm.identity = :identity
            """
        ),
        {"identity": identity},
    ).mappings().first()
    return dict(row) if row else None


def assign_group(db, identity: str, vector: list[int], now: datetime | None = None) -> dict[str, Any] | None:
    now = now or datetime.now(timezone.utc)
    key = dominant_category(vector)
    current = _get_membership(db, identity)

    if key is None:
        if current:
            db.execute(text("DELETE FROM group_membership WHERE identity = :identity"), {"identity": identity})
            log_profile_event(db, identity, "group_changed", {"from": current["group_key"], "to": None})
        return None

    if current and current["group_key"] == key:
        return current

    group_id = tribe_id(key)
    thread_id = tribe_thread_id(key)
    taken = {
        r[0]
        for r in db.execute(
            text("SELECT alias FROM group_membership WHERE group_id = :group_id AND identity != :identity"),
            {"group_id": group_id, "identity": identity},
        ).all()
    }
    alias = make_unique_alias(thread_id, identity, taken)
    db.execute(
        text(
            """
            INSERT INTO group_membership (identity, group_id, group_thread_id, alias, joined_at)
            VALUES (:identity, :group_id, :thread_id, :alias, :now)
            ON CONFLICT (identity)
            DO UPDATE SET
              group_id = excluded.group_id,
              group_thread_id = excluded.group_thread_id,
              alias = excluded.alias,
              joined_at = excluded.joined_at
            """
        ),
        {"identity": identity, "group_id": group_id, "thread_id": thread_id, "alias": alias, "now": now},
    )
    log_profile_event(
        db,
        identity,
        "group_changed",
        {"from": current["group_key"] if current else None, "to": key},
    )
    logger.info("[GROUP] identity=%s tribe=%s previous=%s", identity, key, current["group_key"] if current else None)
    return _get_membership(db, identity)


def list_my_group(db, identity: str) -> dict[str, Any] | None:
    row = db.execute(
        text(
            """
            SELECT
              gm.group_id,
              gm.group_thread_id,
              gm.alias,
              tg.group_key,
              tg.label,
              tg.description,
              p.display_name,
              (SELECT COUNT(1) FROM group_membership m2 WHERE m2.group_id = gm.group_id) AS member_count
            FROM group_membership gm
            JOIN tribe_group tg ON tg.id = gm.group_id
            LEFT JOIN participant_profile p ON p.identity = gm.identity
            WHERE gm.identity = :identity
            """
        ),
        {"identity": identity},
    ).mappings().first()
    if not row:
        return None
    reveal_enabled = is_reveal_enabled(db)
    return {
        "group_id": str(row["group_id"]),
        "group_key": row["group_key"],
        "group_label": row["label"],
        "group_description": row["description"],
        "group_thread_id": str(row["group_thread_id"]),
        "member_count": int(row["member_count"] or 0),
        "reveal_enabled": reveal_enabled,
        "my_alias": row["alias"],
        "my_display_name": shown_name(row["display_name"], row["alias"], reveal_enabled),
    }


def _require_group_thread(db, identity: str, thread_id: str) -> dict[str, Any]:
    membership = _get_membership(db, identity)
    if not membership:
        raise NotInGroup()
    if str(membership["group_thread_id"]) != str(thread_id):
        raise ThreadNotAccessible()
    return membership


def list_group_messages(db, identity: str, thread_id: str, limit: Any = None) -> list[dict[str, Any]]:
    limit = resolve_limit(limit, GROUP_MESSAGE_LIMIT)
    _require_group_thread(db, identity, thread_id)
    reveal_enabled = is_reveal_enabled(db)
    return [
        message_view(
            row,
            viewer_id=identity,
            sender_alias=row["sender_alias"],
            sender_real_name=row.get("sender_real_name"),
            reveal_enabled=reveal_enabled,
        )
        for row in recent_messages(db, "group_message", thread_id, limit)
    ]


def send_group_message(db, identity: str, thread_id: str, body: Any) -> dict[str, Any]:
    body = validate_message_body(body)
    membership = _require_group_thread(db, identity, thread_id)
    row = append_message(
        db,
        "group_message",
        thread_id=str(thread_id),
        sender_user_id=identity,
        body=body,
        sender_alias=membership["alias"],
    )
    real_name = db.execute(
        text("SELECT display_name FROM participant_profile WHERE identity = :identity"),
        {"identity": identity},
    ).scalar()
    return message_view(
        row,
        viewer_id=identity,
        sender_alias=membership["alias"],
        sender_real_name=real_name,
        reveal_enabled=is_reveal_enabled(db),
    )
