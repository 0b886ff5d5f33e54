from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

from ..errors import InvalidRequest
from ..http_helpers import sanitize_contact_handle, sanitize_profile_payload
from .events import log_profile_event
from .groups import assign_group, list_my_group
from .matching import PROFILE_COLUMNS, build_pool, compute_matches
from .scoring import CATEGORIES, compute_scores, dominant_category, score_vector

logger = logging.getLogger(__name__)


def _decode_json(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return None
    return value


def bump_profile_generation(db) -> None:
    db.execute(text("UPDATE app_setting SET profile_generation = profile_generation + 1 WHERE id = 1"))


def get_profile(db, identity: str) -> dict[str, Any] | None:
    row = db.execute(
        text(
            f"""
            SELECT {PROFILE_COLUMNS}, answers, created_at, updated_at
            FROM participant_profile
            WHERE identity = :identity
            """
        ),
        {"identity": identity},
    ).mappings().first()
    if not row:
        return None
    vector = score_vector(dict(row))
    answers = _decode_json(row["answers"])
    return {
        "user_id": row["identity"],
        "display_name": row["display_name"],
        "contact_handle": row["contact_handle"],
        "gender": row["gender"],
        "preference": row["preference"],
        "course_code": row["course_code"],
        "study_year": row["study_year"],
        "scores": dict(zip(CATEGORIES, vector)),
        "dominant_category": dominant_category(vector),
        "answers": answers if isinstance(answers, list) else [],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def upsert_profile(db, identity: str, payload: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    data = sanitize_profile_payload(payload)
    scores = compute_scores(data["answers"])
    now = now or datetime.now(timezone.utc)

    columns = ", ".join(CATEGORIES)
    values = ", ".join(f":{c}" for c in CATEGORIES)
    updates = ",\n              ".join(f"{c} = excluded.{c}" for c in CATEGORIES)
    db.execute(
        text(
            f"""
            INSERT INTO participant_profile
              (identity, display_name, contact_handle, gender, preference, course_code, study_year,
               {columns}, answers, created_at, updated_at)
            VALUES
              (:identity, :display_name, :contact_handle, :gender, :preference, :course_code, :study_year,
               {values}, :answers, :now, :now)
            ON CONFLICT (identity)
            DO UPDATE SET
              display_name = excluded.display_name,
              contact_handle = excluded.contact_handle,
              gender = excluded.gender,
              preference = excluded.preference,
              course_code = excluded.course_code,
              study_year = excluded.study_year,
              {updates},
              answers = excluded.answers,
              updated_at = excluded.updated_at
            """
        ),
        {
            "identity": identity,
            "display_name": data["display_name"],
            "contact_handle": data["contact_handle"],
            "gender": data["gender"],
            "preference": data["preference"],
            "course_code": data["course_code"],
            "study_year": data["study_year"],
            "answers": json.dumps(data["answers"]),
            "now": now,
            **scores,
        },
    )
    bump_profile_generation(db)

    vector = [scores[c] for c in CATEGORIES]
    assign_group(db, identity, vector, now=now)
    matches = compute_matches(db, identity, pool=build_pool(db))
    log_profile_event(db, identity, "profile_submitted", {"scores": scores})
    logger.info("[PROFILE] upserted identity=%s dominant=%s", identity, dominant_category(vector))

    return {
        "profile": get_profile(db, identity),
        "matches": matches,
        "group": list_my_group(db, identity),
    }


def update_contact_handle(db, identity: str, handle: Any) -> None:
    contact_handle = sanitize_contact_handle(handle)
    result = db.execute(
        text(
            """
            UPDATE participant_profile
            SET contact_handle = :contact_handle, updated_at = :now
            WHERE identity = :identity
            """
        ),
        {"identity": identity, "contact_handle": contact_handle, "now": datetime.now(timezone.utc)},
    )
    if not result.rowcount:
        raise InvalidRequest("Profile not found; submit the quiz first")
    # Cached pools carry display fields.
    bump_profile_generation(db)
    log_profile_event(db, identity, "contact_updated", {"has_handle": contact_handle is not None})
