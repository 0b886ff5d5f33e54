from typing import Any, Optional

from fastapi import APIRouter

from ..database import SessionLocal
from ..services.reveal import reveal_changes_since

router = APIRouter()


@router.get("/settings/reveal")
def get_reveal_setting(since_version: Optional[int] = None) -> dict[str, Any]:
    """Current reveal state; `changed` tells a poller whether its version is stale."""
    with SessionLocal() as db:
        return reveal_changes_since(db, since_version)
