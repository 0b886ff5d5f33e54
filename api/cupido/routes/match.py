from typing import Any

from fastapi import APIRouter, Depends

from ..database import SessionLocal
from ..deps import current_identity
from ..services.matching import compute_matches

router = APIRouter()


@router.get("/matches")
def get_my_matches(identity: str = Depends(current_identity)) -> dict[str, Any]:
    with SessionLocal() as db:
        matches = compute_matches(db, identity)
        db.commit()
    return {"matches": matches}
