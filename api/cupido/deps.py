import hmac

from fastapi import Header, HTTPException

from . import config
from .http_helpers import normalize_identity


def validate_admin_token(token: str | None, admin_token: str | None) -> None:
    if not admin_token or not token or not hmac.compare_digest(token, admin_token):
        raise HTTPException(status_code=401, detail="Invalid admin token")


def current_identity(x_participant_id: str | None = Header(default=None, alias="X-Participant-Id")) -> str:
    return normalize_identity(x_participant_id)


def require_operator(x_admin_token: str | None = Header(default=None, alias="X-Admin-Token")) -> None:
    validate_admin_token(x_admin_token, config.ADMIN_TOKEN)
