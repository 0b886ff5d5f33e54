from typing import Any, Optional

from fastapi import APIRouter, Depends

from ..config import RL_MESSAGE_SEND_LIMIT, RL_THREAD_CREATE_LIMIT, RL_WINDOW_SECONDS
from ..database import SessionLocal
from ..deps import current_identity
from ..schemas import CreateThreadRequest, SendMessageRequest
from ..services.chat import create_thread_if_mutual, list_my_threads, list_thread_messages, send_thread_message
from ..services.rate_limit import rate_limit_dependency

router = APIRouter()

RL_THREAD_CREATE = rate_limit_dependency("thread_create", RL_THREAD_CREATE_LIMIT, RL_WINDOW_SECONDS)
RL_THREAD_MESSAGE = rate_limit_dependency("thread_message", RL_MESSAGE_SEND_LIMIT, RL_WINDOW_SECONDS)


@router.post("/chat/threads")
def create_chat_thread(
    payload: CreateThreadRequest,
    identity: str = Depends(current_identity),
    _: None = RL_THREAD_CREATE,
) -> dict[str, Any]:
    with SessionLocal() as db:
        thread = create_thread_if_mutual(db, identity, payload.counterpart_id)
        db.commit()
    return {"thread": thread}


@router.get("/chat/threads")
def list_chat_threads(identity: str = Depends(current_identity)) -> dict[str, Any]:
    with SessionLocal() as db:
        threads = list_my_threads(db, identity)
    return {"threads": threads}


@router.get("/chat/threads/{thread_id}/messages")
def list_chat_messages(
    thread_id: str,
    limit: Optional[int] = None,
    identity: str = Depends(current_identity),
) -> dict[str, Any]:
    with SessionLocal() as db:
        messages = list_thread_messages(db, identity, thread_id, limit)
    return {"messages": messages}


@router.post("/chat/threads/{thread_id}/messages")
def send_chat_message(
    thread_id: str,
    payload: SendMessageRequest,
    identity: str = Depends(current_identity),
    _: None = RL_THREAD_MESSAGE,
) -> dict[str, Any]:
    with SessionLocal() as db:
        message = send_thread_message(db, identity, thread_id, payload.body)
        db.commit()
    return {"message": message}
