from typing import Any

from .config import (
    CONTACT_HANDLE_MAX_LENGTH,
    COURSE_CODE_MAX_LENGTH,
    DISPLAY_NAME_MAX_LENGTH,
    GENDERS,
    IDENTITY_MAX_LENGTH,
    MESSAGE_MAX_LENGTH,
    PREFERENCES,
    QUESTION_COUNT,
    STUDY_YEARS,
)
from .errors import InvalidRequest
from .services.scoring import normalize_category


def normalize_identity(value: Any) -> str:
    identity = str(value or "").strip()
    if not identity:
        raise InvalidRequest("Participant identity required")
    if len(identity) > IDENTITY_MAX_LENGTH:
        raise InvalidRequest(f"Participant identity must be {IDENTITY_MAX_LENGTH} characters or fewer")
    return identity


def sanitize_contact_handle(raw: Any) -> str | None:
    if raw is None:
        return None
    handle = str(raw).strip().lstrip("@").strip()
    if not handle:
        return None
    if len(handle) > CONTACT_HANDLE_MAX_LENGTH:
        raise InvalidRequest(f"contact_handle must be {CONTACT_HANDLE_MAX_LENGTH} characters or fewer")
    return handle


def sanitize_answers(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        raise InvalidRequest("answers must be an array")
    if len(raw) != QUESTION_COUNT:
        raise InvalidRequest(f"answers must contain exactly {QUESTION_COUNT} entries")
    answers: list[str] = []
    for value in raw:
        category = normalize_category(value)
        if category is None:
            raise InvalidRequest("Every question must be answered")
        answers.append(category)
    return answers


def sanitize_profile_payload(payload: dict[str, Any]) -> dict[str, Any]:
    display_name = str(payload.get("display_name") or "").strip()
    if not display_name:
        raise InvalidRequest("display_name is required")
    if len(display_name) > DISPLAY_NAME_MAX_LENGTH:
        raise InvalidRequest(f"display_name must be {DISPLAY_NAME_MAX_LENGTH} characters or fewer")

    gender = str(payload.get("gender") or "").strip().lower()
    if gender not in GENDERS:
        raise InvalidRequest("gender must be one of: m, f")

    preference = str(payload.get("preference") or "").strip().lower()
    if preference not in PREFERENCES:
        raise InvalidRequest("preference must be one of: m, f, mf")

    course_code = str(payload.get("course_code") or "").strip()
    if not course_code:
        raise InvalidRequest("course_code is required")
    if len(course_code) > COURSE_CODE_MAX_LENGTH:
        raise InvalidRequest(f"course_code must be {COURSE_CODE_MAX_LENGTH} characters or fewer")

    study_year = str(payload.get("study_year") or "").strip().lower()
    if study_year not in STUDY_YEARS:
        raise InvalidRequest("study_year must be one of: " + ", ".join(STUDY_YEARS))

    return {
        "display_name": display_name,
        "contact_handle": sanitize_contact_handle(payload.get("contact_handle")),
        "gender": gender,
        "preference": preference,
        "course_code": course_code,
        "study_year": study_year,
        "answers": sanitize_answers(payload.get("answers")),
    }


def validate_message_body(raw: Any) -> str:
    body = str(raw or "").strip()
    if not body:
        raise InvalidRequest("Message body required")
    if len(body) > MESSAGE_MAX_LENGTH:
        raise InvalidRequest(f"Message must be {MESSAGE_MAX_LENGTH} characters or fewer")
    return body


def resolve_limit(raw: Any, server_max: int) -> int:
    if raw is None:
        return server_max
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        raise InvalidRequest("limit must be an integer")
    if limit < 1:
        raise InvalidRequest("limit must be at least 1")
    return min(limit, server_max)
