import json
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text


def log_profile_event(
    db,
    user_id: str | None,
    event_type: str,
    payload: dict[str, Any] | None = None,
) -> None:
    payload = payload or {}
    db.execute(
        text(
            """
            INSERT INTO profile_event (id, user_id, event_type, payload, created_at)
            VALUES (:id, :user_id, :event_type, :payload, :created_at)
            """
        ),
        {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "event_type": event_type,
            "payload": json.dumps(payload),
            "created_at": datetime.now(timezone.utc),
        },
    )


def log_chat_event(
    db,
    *,
    event_type: str,
    user_id: str | None = None,
    thread_id: str | None = None,
    payload: dict[str, Any] | None = None,
) -> None:
    payload = payload or {}
    db.execute(
        text(
            """
            INSERT INTO chat_event (id, user_id, thread_id, event_type, payload, created_at)
            VALUES (:id, :user_id, :thread_id, :event_type, :payload, :created_at)
            """
        ),
        {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "thread_id": thread_id,
            "event_type": event_type,
            "payload": json.dumps(payload),
            "created_at": datetime.now(timezone.utc),
        },
    )
