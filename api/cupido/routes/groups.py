from typing import Any, Optional

from fastapi import APIRouter, Depends

from ..config import RL_MESSAGE_SEND_LIMIT, RL_WINDOW_SECONDS
from ..database import SessionLocal
from ..deps import current_identity
from ..schemas import SendMessageRequest
from ..services.groups import list_group_messages, list_my_group, send_group_message
from ..services.rate_limit import rate_limit_dependency

router = APIRouter()

RL_GROUP_MESSAGE = rate_limit_dependency("group_message", RL_MESSAGE_SEND_LIMIT, RL_WINDOW_SECONDS)


@router.get("/groups/me")
def get_my_group(identity: str = Depends(current_identity)) -> dict[str, Any]:
    with SessionLocal() as db:
        group = list_my_group(db, identity)
    return {"group": group}


@router.get("/groups/threads/{thread_id}/messages")
def list_tribe_messages(
    thread_id: str,
    limit: Optional[int] = None,
    identity: str = Depends(current_identity),
) -> dict[str, Any]:
    with SessionLocal() as db:
        messages = list_group_messages(db, identity, thread_id, limit)
    return {"messages": messages}


@router.post("/groups/threads/{thread_id}/messages")
def send_tribe_message(
    thread_id: str,
    payload: SendMessageRequest,
    identity: str = Depends(current_identity),
    _: None = RL_GROUP_MESSAGE,
) -> dict[str, Any]:
    with SessionLocal() as db:
        message = send_group_message(db, identity, thread_id, payload.body)
        db.commit()
    return {"message": message}
