import pytest

from cupido.errors import InvalidRequest
from cupido.services.scoring import (
    CATEGORIES,
    compatibility,
    compute_scores,
    dominant_category,
    max_distance,
    max_spread,
)


def _vec(**values: int) -> list[int]:
    return [values.get(c, 0) for c in CATEGORIES]


def test_compute_scores_adds_two_per_answer():
    scores = compute_scores(["romantic", "Romantic", "chill", "social", "social", "social", "ambitious"])
    assert scores == {
        "romantic": 4,
        "adventurous": 0,
        "intellectual": 0,
        "creative": 0,
        "chill": 2,
        "social": 6,
        "ambitious": 2,
    }
    assert sum(scores.values()) == max_spread()


def test_compute_scores_rejects_unknown_category():
    with pytest.raises(InvalidRequest):
        compute_scores(["romantic", "sporty"])


def test_max_distance_matches_quiz_shape():
    assert max_spread() == 14
    assert max_distance() == pytest.approx(37.0405, abs=1e-3)


def test_compatibility_identical_vectors_is_100():
    v = _vec(romantic=6, creative=4, chill=4)
    assert compatibility(v, v) == 100


def test_compatibility_is_symmetric():
    a = _vec(romantic=10, adventurous=4)
    b = _vec(intellectual=6, chill=8)
    assert compatibility(a, b) == compatibility(b, a)


def test_compatibility_known_values():
    a = _vec(romantic=14)
    assert compatibility(a, _vec(romantic=12, adventurous=2)) == 79
    assert compatibility(a, _vec(romantic=10, adventurous=4)) == 68
    assert compatibility(a, _vec(romantic=8, adventurous=6)) == 59
    assert compatibility(a, _vec(adventurous=14)) == 31


def test_compatibility_is_bounded():
    a = _vec(romantic=14)
    b = _vec(ambitious=14)
    assert 0 <= compatibility(a, b) <= 100


def test_compatibility_zero_vector_scores_zero():
    zero = _vec()
    assert compatibility(zero, zero) == 0
    assert compatibility(zero, _vec(chill=14)) == 0
    assert compatibility(_vec(chill=14), zero) == 0


def test_compatibility_rejects_wrong_length():
    with pytest.raises(ValueError):
        compatibility([1, 2, 3], _vec(chill=14))


def test_dominant_category_tie_breaks_by_declaration_order():
    assert dominant_category(_vec(social=6, adventurous=6, chill=2)) == "adventurous"
    assert dominant_category(_vec(ambitious=8, romantic=6)) == "ambitious"
    assert dominant_category(_vec()) is None
