import logging
from typing import Any

from fastapi import APIRouter, Depends

from ..database import SessionLocal
from ..deps import require_operator
from ..schemas import RevealToggleRequest
from ..services.reveal import get_reveal_state, notifier, set_reveal_enabled

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/admin/reveal", dependencies=[Depends(require_operator)])
def admin_get_reveal() -> dict[str, Any]:
    with SessionLocal() as db:
        return get_reveal_state(db)


@router.post("/admin/reveal", dependencies=[Depends(require_operator)])
def admin_set_reveal(payload: RevealToggleRequest) -> dict[str, Any]:
    with SessionLocal() as db:
        state, changed = set_reveal_enabled(db, payload.reveal_enabled)
        db.commit()
    if changed:
        notifier.publish(state)
    else:
        logger.info("[REVEAL] toggle ignored, already reveal_enabled=%s", state["reveal_enabled"])
    return {**state, "changed": changed}
