from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

from ..config import THREAD_MESSAGE_LIMIT
from ..errors import InvalidRequest, ThreadNotAccessible
from ..http_helpers import normalize_identity, resolve_limit, validate_message_body
from .aliases import make_pair_aliases
from .events import log_chat_event
from .matching import canonical_pair, load_pool
from .messaging import append_message, message_view, recent_messages
from .reveal import is_reveal_enabled, shown_name
from .state_machine import ACTIVE, NONE, thread_state, transition_thread

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 120

_THREAD_SELECT = """
    SELECT
      t.id,
      t.user_a_id,
      t.user_b_id,
      t.user_a_alias,
      t.user_b_alias,
      t.created_at,
      t.revealed_at,
      pa.display_name AS user_a_name,
      pb.display_name AS user_b_name,
      (SELECT m.body FROM chat_message m WHERE m.thread_id = t.id ORDER BY m.id DESC LIMIT 1) AS last_message_body,
      (SELECT m.created_at FROM chat_message m WHERE m.thread_id = t.id ORDER BY m.id DESC LIMIT 1) AS last_message_at
    FROM chat_thread t
    LEFT JOIN participant_profile pa ON pa.identity = t.user_a_id
    LEFT JOIN participant_profile pb ON pb.identity = t.user_b_id
"""


def get_thread_by_id(db, thread_id: str) -> dict[str, Any] | None:
    row = db.execute(text(_THREAD_SELECT + " WHERE t.id = :id"), {"id": thread_id}).mappings().first()
    return dict(row) if row else None


def get_thread_by_pair(db, user_a: str, user_b: str) -> dict[str, Any] | None:
    a, b = canonical_pair(user_a, user_b)
    row = db.execute(
        text(_THREAD_SELECT + " WHERE t.user_a_id = :a AND t.user_b_id = :b"),
        {"a": a, "b": b},
    ).mappings().first()
    return dict(row) if row else None


def thread_summary(row: dict[str, Any], viewer_id: str, reveal_enabled: bool) -> dict[str, Any]:
    a = str(row["user_a_id"])
    b = str(row["user_b_id"])
    viewer_is_a = viewer_id == a
    my_alias = row["user_a_alias"] if viewer_is_a else row["user_b_alias"]
    other_alias = row["user_b_alias"] if viewer_is_a else row["user_a_alias"]
    my_name = row.get("user_a_name") if viewer_is_a else row.get("user_b_name")
    other_name = row.get("user_b_name") if viewer_is_a else row.get("user_a_name")
    preview = row.get("last_message_body")
    if preview and len(preview) > PREVIEW_LENGTH:
        preview = preview[:PREVIEW_LENGTH]
    return {
        "thread_id": str(row["id"]),
        "user_a_id": a,
        "user_b_id": b,
        "other_user_id": b if viewer_is_a else a,
        "created_at": row["created_at"],
        "revealed_at": row.get("revealed_at"),
        "my_alias": my_alias,
        "other_alias": other_alias,
        "reveal_enabled": reveal_enabled,
        "my_display_name": shown_name(my_name, my_alias, reveal_enabled),
        "other_display_name": shown_name(other_name, other_alias, reveal_enabled),
        "last_message_at": row.get("last_message_at"),
        "last_message_preview": preview,
    }


def _require_participant(db, identity: str, thread_id: str) -> dict[str, Any]:
    thread = get_thread_by_id(db, str(thread_id or "").strip())
    if not thread or identity not in {str(thread["user_a_id"]), str(thread["user_b_id"])}:
        raise ThreadNotAccessible()
    return thread


def create_thread_if_mutual(db, identity: str, counterpart_id: Any, now: datetime | None = None) -> dict[str, Any]:
    counterpart = normalize_identity(counterpart_id)
    if counterpart == identity:
        raise InvalidRequest("Cannot open a chat with yourself")

    existing = get_thread_by_pair(db, identity, counterpart)
    if thread_state(existing) == ACTIVE:
        return thread_summary(existing, identity, is_reveal_enabled(db))

    pool = load_pool(db)
    if not pool.get(identity) or not pool.get(counterpart):
        raise InvalidRequest("Both participants must have submitted the quiz")

    is_mutual = pool.is_mutual_top3(identity, counterpart)
    if not is_mutual:
        logger.info("[CHAT] create rejected identity=%s counterpart=%s reason=not_mutual", identity, counterpart)
    transition_thread(NONE, "create", is_mutual)

    now = now or datetime.now(timezone.utc)
    reveal_enabled = is_reveal_enabled(db)
    a, b = canonical_pair(identity, counterpart)
    thread_id = str(uuid.uuid4())
    alias_a, alias_b = make_pair_aliases(thread_id, a, b)
    db.execute(
        text(
            """
            INSERT INTO chat_thread (id, user_a_id, user_b_id, user_a_alias, user_b_alias, created_at, revealed_at)
            VALUES (:id, :a, :b, :alias_a, :alias_b, :now, :revealed_at)
            ON CONFLICT (user_a_id, user_b_id) DO NOTHING
            """
        ),
        {
            "id": thread_id,
            "a": a,
            "b": b,
            "alias_a": alias_a,
            "alias_b": alias_b,
            "now": now,
            "revealed_at": now if reveal_enabled else None,
        },
    )
    row = get_thread_by_pair(db, a, b)
    if row is None:
        raise RuntimeError("chat thread missing after insert")
    if str(row["id"]) == thread_id:
        log_chat_event(db, event_type="thread_created", user_id=identity, thread_id=thread_id, payload={"counterpart": counterpart})
        logger.info("[CHAT] thread created id=%s a=%s b=%s", thread_id, a, b)
    return thread_summary(row, identity, reveal_enabled)


def list_my_threads(db, identity: str) -> list[dict[str, Any]]:
    rows = db.execute(
        text(_THREAD_SELECT + " WHERE t.user_a_id = :identity OR t.user_b_id = :identity"),
        {"identity": identity},
    ).mappings().all()
    reveal_enabled = is_reveal_enabled(db)
    summaries = [thread_summary(dict(r), identity, reveal_enabled) for r in rows]
    summaries.sort(key=lambda s: str(s["last_message_at"] or s["created_at"] or ""), reverse=True)
    return summaries


def list_thread_messages(db, identity: str, thread_id: str, limit: Any = None) -> list[dict[str, Any]]:
    limit = resolve_limit(limit, THREAD_MESSAGE_LIMIT)
    thread = _require_participant(db, identity, thread_id)
    reveal_enabled = is_reveal_enabled(db)
    aliases = {str(thread["user_a_id"]): thread["user_a_alias"], str(thread["user_b_id"]): thread["user_b_alias"]}
    return [
        message_view(
            row,
            viewer_id=identity,
            sender_alias=aliases.get(str(row["sender_user_id"]), ""),
            sender_real_name=row.get("sender_real_name"),
            reveal_enabled=reveal_enabled,
        )
        for row in recent_messages(db, "chat_message", str(thread["id"]), limit)
    ]


def send_thread_message(db, identity: str, thread_id: str, body: Any) -> dict[str, Any]:
    body = validate_message_body(body)
    thread = _require_participant(db, identity, thread_id)
    viewer_is_a = identity == str(thread["user_a_id"])
    alias = thread["user_a_alias"] if viewer_is_a else thread["user_b_alias"]
    real_name = thread.get("user_a_name") if viewer_is_a else thread.get("user_b_name")
    row = append_message(db, "chat_message", thread_id=str(thread["id"]), sender_user_id=identity, body=body)
    return message_view(
        row,
        viewer_id=identity,
        sender_alias=alias,
        sender_real_name=real_name,
        reveal_enabled=is_reveal_enabled(db),
    )
