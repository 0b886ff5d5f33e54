from __future__ import annotations

import math
from typing import Any, Iterable

from ..config import COMPATIBILITY_EXPONENT, QUESTION_COUNT, SCORE_INCREMENT
from ..errors import InvalidRequest

# Declaration order is the dominant-category tie-break.
CATEGORIES: tuple[str, ...] = (
    "romantic",
    "adventurous",
    "intellectual",
    "creative",
    "chill",
    "social",
    "ambitious",
)


def normalize_category(value: Any) -> str | None:
    if value is None:
        return None
    v = str(value).strip().lower()
    if not v:
        return None
    if v not in CATEGORIES:
        raise InvalidRequest(f"Unknown answer category: {value}")
    return v


def compute_scores(answers: Iterable[Any]) -> dict[str, int]:
    scores = {category: 0 for category in CATEGORIES}
    for answer in answers:
        category = normalize_category(answer)
        if category:
            scores[category] += SCORE_INCREMENT
    return scores


def score_vector(row: dict[str, Any]) -> list[int]:
    out = []
    for category in CATEGORIES:
        try:
            out.append(int(row.get(category) or 0))
        except (TypeError, ValueError):
            out.append(0)
    return out


def max_spread() -> int:
    return QUESTION_COUNT * SCORE_INCREMENT


def max_distance() -> float:
    return math.sqrt(len(CATEGORIES) * max_spread() ** 2)


def euclidean_distance(a: list[int], b: list[int]) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compatibility(a: list[int], b: list[int], exponent: float = COMPATIBILITY_EXPONENT) -> int:
    """Compatibility percentage (0-100) between two score vectors.

    A vector summing to zero carries no signal and scores 0 against anything,
    itself included.
    """
    if len(a) != len(CATEGORIES) or len(b) != len(CATEGORIES):
        raise ValueError("score vectors must have one entry per category")
    if sum(a) <= 0 or sum(b) <= 0:
        return 0
    limit = max_distance()
    if limit <= 0:
        return 0
    ratio = min(1.0, euclidean_distance(a, b) / limit)
    pct = 100.0 * (1.0 - ratio ** exponent)
    return max(0, min(100, _round_half_up(pct)))


def dominant_category(vector: list[int]) -> str | None:
    best: str | None = None
    best_value = 0
    for category, value in zip(CATEGORIES, vector):
        if value > best_value:
            best = category
            best_value = value
    return best
