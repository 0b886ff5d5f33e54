import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="cupido-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'cupido.db')}"
os.environ["ADMIN_TOKEN"] = "test-admin-token"

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from cupido import models  # noqa: F401
from cupido.database import Base, SessionLocal, engine
from cupido.services.groups import ensure_tribes
from cupido.services.matching import invalidate_pool_cache
from cupido.services.rate_limit import limiter
from cupido.services.reveal import ensure_app_settings, notifier

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}


def answers_for(**counts: int) -> list[str]:
    out: list[str] = []
    for category, n in counts.items():
        out.extend([category] * n)
    assert len(out) == 7, "quiz has exactly 7 questions"
    return out


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        ensure_app_settings(db)
        ensure_tribes(db)
        db.commit()
    invalidate_pool_cache()
    notifier.reset()
    limiter.reset()
    yield


@pytest.fixture
def db():
    with SessionLocal() as session:
        yield session


@pytest.fixture
def client():
    import cupido.main as m

    return TestClient(m.app)


@pytest.fixture
def submit(client):
    def _submit(identity: str, answers: list[str], gender: str = "m", preference: str = "f", name: str | None = None):
        resp = client.put(
            "/profiles/me",
            headers={"X-Participant-Id": identity},
            json={
                "display_name": name or f"Real {identity}",
                "contact_handle": f"@{identity}_ig",
                "gender": gender,
                "preference": preference,
                "course_code": "LEI",
                "study_year": "year_2",
                "answers": answers,
            },
        )
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _submit


def headers(identity: str) -> dict[str, str]:
    return {"X-Participant-Id": identity}
