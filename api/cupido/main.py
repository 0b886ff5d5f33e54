import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from . import models  # noqa: F401  (registers tables on Base.metadata)
from .config import ALLOWED_ORIGINS, LOG_LEVEL
from .database import Base, SessionLocal, engine
from .errors import install_error_handlers
from .routes import include_modular_routers
from .services.groups import ensure_tribes
from .services.matching import invalidate_pool_cache
from .services.reveal import ensure_app_settings, get_reveal_state, notifier

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(title="Cupido Match API")
include_modular_routers(app)
install_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def wait_for_db(max_attempts: int = 20, delay_seconds: float = 1.5) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            logger.warning("[STARTUP] database not ready, retrying in %ss", delay_seconds)
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


def init_schema() -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        ensure_app_settings(db)
        ensure_tribes(db)
        db.commit()
        state = get_reveal_state(db)
    invalidate_pool_cache()
    notifier.publish(state)


@app.on_event("startup")
def on_startup() -> None:
    wait_for_db()
    init_schema()
    logger.info("[STARTUP] schema ready")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
