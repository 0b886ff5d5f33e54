from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import text

from .events import log_chat_event

logger = logging.getLogger(__name__)


class RevealNotifier:
    """In-process fan-out of reveal flag changes to subscriber callables."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._version: int | None = None
        self._subscribers: dict[int, Callable[[dict[str, Any]], None]] = {}
        self._next_id = 0

    @property
    def version(self) -> int | None:
        with self._lock:
            return self._version

    def subscribe(self, callback: Callable[[dict[str, Any]], None]) -> Callable[[], None]:
        with self._lock:
            token = self._next_id
            self._next_id += 1
            self._subscribers[token] = callback

        def _unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return _unsubscribe

    def publish(self, state: dict[str, Any]) -> None:
        with self._lock:
            self._version = int(state.get("version") or 0)
            callbacks = list(self._subscribers.values())
        for callback in callbacks:
            try:
                callback(state)
            except Exception:
                logger.exception("[REVEAL] subscriber callback failed")

    def reset(self) -> None:
        with self._lock:
            self._version = None
            self._subscribers.clear()


notifier = RevealNotifier()


def ensure_app_settings(db) -> None:
    db.execute(
        text(
            """
            INSERT INTO app_setting (id, reveal_enabled, reveal_version, profile_generation)
            VALUES (1, :reveal_enabled, 0, 0)
            ON CONFLICT (id) DO NOTHING
            """
        ),
        {"reveal_enabled": False},
    )


def get_reveal_state(db) -> dict[str, Any]:
    row = db.execute(
        text("SELECT reveal_enabled, reveal_toggled_at, reveal_version FROM app_setting WHERE id = 1")
    ).mappings().first()
    if not row:
        return {"reveal_enabled": False, "toggled_at": None, "version": 0}
    return {
        "reveal_enabled": bool(row["reveal_enabled"]),
        "toggled_at": row["reveal_toggled_at"],
        "version": int(row["reveal_version"] or 0),
    }


def is_reveal_enabled(db) -> bool:
    return get_reveal_state(db)["reveal_enabled"]


def shown_name(display_name: str | None, alias: str, reveal_enabled: bool) -> str:
    if reveal_enabled and display_name:
        return display_name
    return alias


def set_reveal_enabled(db, enabled: bool, now: datetime | None = None) -> tuple[dict[str, Any], bool]:
    """Flip the global flag. Returns (state, changed); callers publish after commit."""
    now = now or datetime.now(timezone.utc)
    ensure_app_settings(db)
    current = get_reveal_state(db)
    if current["reveal_enabled"] == bool(enabled):
        return current, False

    db.execute(
        text(
            """
            UPDATE app_setting
            SET reveal_enabled = :enabled,
                reveal_toggled_at = :now,
                reveal_version = reveal_version + 1
            WHERE id = 1
            """
        ),
        {"enabled": bool(enabled), "now": now},
    )
    if enabled:
        db.execute(
            text("UPDATE chat_thread SET revealed_at = :now WHERE revealed_at IS NULL"),
            {"now": now},
        )
    state = get_reveal_state(db)
    log_chat_event(db, event_type="reveal_toggled", payload={"reveal_enabled": bool(enabled), "version": state["version"]})
    logger.info("[REVEAL] reveal_enabled=%s version=%s", state["reveal_enabled"], state["version"])
    return state, True


def reveal_changes_since(db, since_version: int | None) -> dict[str, Any]:
    """Current state plus whether it moved past `since_version`. Never blocks."""
    state = get_reveal_state(db)
    changed = since_version is not None and state["version"] != since_version
    return {**state, "changed": changed}
