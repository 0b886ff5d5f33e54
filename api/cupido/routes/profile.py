from typing import Any

from fastapi import APIRouter, Depends

from ..config import RL_PROFILE_SUBMIT_LIMIT, RL_WINDOW_SECONDS
from ..database import SessionLocal
from ..deps import current_identity
from ..schemas import ContactHandleRequest, UpsertProfileRequest
from ..services.profiles import get_profile, update_contact_handle, upsert_profile
from ..services.rate_limit import rate_limit_dependency

router = APIRouter()

RL_PROFILE_SUBMIT = rate_limit_dependency("profile_submit", RL_PROFILE_SUBMIT_LIMIT, RL_WINDOW_SECONDS)


@router.put("/profiles/me")
def put_my_profile(
    payload: UpsertProfileRequest,
    identity: str = Depends(current_identity),
    _: None = RL_PROFILE_SUBMIT,
) -> dict[str, Any]:
    with SessionLocal() as db:
        result = upsert_profile(db, identity, payload.model_dump())
        db.commit()
    return result


@router.get("/profiles/me")
def get_my_profile(identity: str = Depends(current_identity)) -> dict[str, Any]:
    with SessionLocal() as db:
        profile = get_profile(db, identity)
    return {"profile": profile}


@router.patch("/profiles/me/contact")
def patch_my_contact(payload: ContactHandleRequest, identity: str = Depends(current_identity)) -> dict[str, Any]:
    with SessionLocal() as db:
        update_contact_handle(db, identity, payload.contact_handle)
        db.commit()
    return {"status": "ok"}
