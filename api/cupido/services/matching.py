from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

from ..config import MATCH_TOP_N
from ..errors import InvalidRequest
from .scoring import CATEGORIES, compatibility, score_vector

logger = logging.getLogger(__name__)


@dataclass
class MatchCandidate:
    user_id: str
    matched_user_id: str
    score_total: int
    discovery_index: int


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    return tuple(sorted((user_a, user_b)))


def _normalize_gender(value: Any) -> str | None:
    if value is None:
        return None
    v = str(value).strip().lower()
    return v or None


def preference_includes(preference: Any, gender: Any) -> bool:
    pref = _normalize_gender(preference)
    g = _normalize_gender(gender)
    if not pref or g not in {"m", "f"}:
        return False
    if pref == "mf":
        return True
    return pref == g


def mutually_interested(p: dict[str, Any], q: dict[str, Any]) -> bool:
    return preference_includes(q.get("preference"), p.get("gender")) and preference_includes(
        p.get("preference"), q.get("gender")
    )


class MatchPool:
    """Snapshot of every profile in discovery order with memoized rankings."""

    def __init__(self, profiles: list[dict[str, Any]], top_n: int = MATCH_TOP_N) -> None:
        self.top_n = top_n
        self.profiles = list(profiles)
        self.by_id: dict[str, dict[str, Any]] = {}
        self._index: dict[str, int] = {}
        self._vectors: dict[str, list[int]] = {}
        for idx, p in enumerate(self.profiles):
            uid = str(p["identity"])
            self.by_id[uid] = p
            self._index[uid] = idx
            self._vectors[uid] = score_vector(p)
        self._ranked: dict[str, list[MatchCandidate]] = {}
        self._lock = threading.Lock()

    def get(self, identity: str) -> dict[str, Any] | None:
        return self.by_id.get(identity)

    def vector(self, identity: str) -> list[int]:
        return self._vectors.get(identity) or [0] * len(CATEGORIES)

    def eligible_candidates(self, identity: str) -> list[dict[str, Any]]:
        me = self.by_id.get(identity)
        if not me:
            return []
        return [p for p in self.profiles if p["identity"] != identity and mutually_interested(me, p)]

    def score(self, a: str, b: str) -> int:
        return compatibility(self.vector(a), self.vector(b))

    def rank(self, identity: str) -> list[MatchCandidate]:
        with self._lock:
            cached = self._ranked.get(identity)
        if cached is not None:
            return cached

        candidates = [
            MatchCandidate(
                user_id=identity,
                matched_user_id=p["identity"],
                score_total=self.score(identity, p["identity"]),
                discovery_index=self._index[p["identity"]],
            )
            for p in self.eligible_candidates(identity)
        ]
        # sorted() is stable, so equal scores keep discovery order.
        candidates = sorted(candidates, key=lambda c: -c.score_total)[: self.top_n]
        with self._lock:
            self._ranked[identity] = candidates
        return candidates

    def top_ids(self, identity: str) -> list[str]:
        return [c.matched_user_id for c in self.rank(identity)]

    def is_mutual_top3(self, a: str, b: str) -> bool:
        if a == b or a not in self.by_id or b not in self.by_id:
            return False
        return b in self.top_ids(a) and a in self.top_ids(b)


PROFILE_COLUMNS = (
    "id, identity, display_name, contact_handle, gender, preference, course_code, study_year, "
    + ", ".join(CATEGORIES)
)


def fetch_profiles(db) -> list[dict[str, Any]]:
    rows = db.execute(
        text(f"SELECT {PROFILE_COLUMNS} FROM participant_profile ORDER BY id ASC")
    ).mappings().all()
    return [dict(r) for r in rows]


def fetch_profile_generation(db) -> int:
    row = db.execute(text("SELECT profile_generation FROM app_setting WHERE id = 1")).mappings().first()
    return int((row or {}).get("profile_generation") or 0)


_pool_cache: dict[str, Any] = {"generation": None, "pool": None}
_pool_cache_lock = threading.Lock()


def invalidate_pool_cache() -> None:
    with _pool_cache_lock:
        _pool_cache["generation"] = None
        _pool_cache["pool"] = None


def build_pool(db) -> MatchPool:
    return MatchPool(fetch_profiles(db))


def load_pool(db) -> MatchPool:
    """Pool for read paths, reused until the next profile write.

    Write paths must call build_pool() instead: a pool built from uncommitted
    rows must never be cached.
    """
    generation = fetch_profile_generation(db)
    with _pool_cache_lock:
        if _pool_cache["generation"] == generation and _pool_cache["pool"] is not None:
            return _pool_cache["pool"]
    pool = build_pool(db)
    with _pool_cache_lock:
        _pool_cache["generation"] = generation
        _pool_cache["pool"] = pool
    logger.debug("[MATCH] pool rebuilt generation=%s profiles=%s", generation, len(pool.profiles))
    return pool


def persist_match_edges(db, pool: MatchPool, identity: str, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    db.execute(
        text(
            """
            UPDATE match_edge
            SET mutual_top3 = :false_value, updated_at = :now
            WHERE (user_a_id = :identity OR user_b_id = :identity)
              AND mutual_top3 = :true_value
            """
        ),
        {"identity": identity, "now": now, "true_value": True, "false_value": False},
    )

    params = []
    for candidate in pool.eligible_candidates(identity):
        other = candidate["identity"]
        a, b = canonical_pair(identity, other)
        params.append(
            {
                "a": a,
                "b": b,
                "score_ab": pool.score(a, b),
                "score_ba": pool.score(b, a),
                "mutual": pool.is_mutual_top3(a, b),
                "now": now,
            }
        )
    if not params:
        return 0

    db.execute(
        text(
            """
            INSERT INTO match_edge (user_a_id, user_b_id, score_ab, score_ba, mutual_top3, created_at, updated_at)
            VALUES (:a, :b, :score_ab, :score_ba, :mutual, :now, :now)
            ON CONFLICT (user_a_id, user_b_id)
            DO UPDATE SET
              score_ab = excluded.score_ab,
              score_ba = excluded.score_ba,
              mutual_top3 = excluded.mutual_top3,
              updated_at = excluded.updated_at
            """
        ),
        params,
    )
    return len(params)


def fetch_thread_ids_by_counterpart(db, identity: str) -> dict[str, str]:
    rows = db.execute(
        text(
            """
            SELECT id, user_a_id, user_b_id
            FROM chat_thread
            WHERE user_a_id = :identity OR user_b_id = :identity
            """
        ),
        {"identity": identity},
    ).mappings().all()
    out: dict[str, str] = {}
    for r in rows:
        other = r["user_b_id"] if r["user_a_id"] == identity else r["user_a_id"]
        out[str(other)] = str(r["id"])
    return out


def compute_matches(db, identity: str, pool: MatchPool | None = None) -> list[dict[str, Any]]:
    pool = pool or load_pool(db)
    if not pool.get(identity):
        raise InvalidRequest("Profile not found; submit the quiz first")

    ranked = pool.rank(identity)
    persist_match_edges(db, pool, identity)
    threads = fetch_thread_ids_by_counterpart(db, identity)

    matches = []
    for rank, candidate in enumerate(ranked, start=1):
        other = pool.get(candidate.matched_user_id) or {}
        matches.append(
            {
                "user_id": candidate.matched_user_id,
                "display_name": other.get("display_name"),
                "contact_handle": other.get("contact_handle"),
                "gender": other.get("gender"),
                "preference": other.get("preference"),
                "course_code": other.get("course_code"),
                "study_year": other.get("study_year"),
                "compatibility": candidate.score_total,
                "is_mutual_top3": pool.is_mutual_top3(identity, candidate.matched_user_id),
                "rank": rank,
                "thread_id": threads.get(candidate.matched_user_id),
            }
        )
    logger.info(
        "[MATCH] computed identity=%s candidates=%s mutual=%s",
        identity,
        len(matches),
        sum(1 for m in matches if m["is_mutual_top3"]),
    )
    return matches
