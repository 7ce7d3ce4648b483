import pytest

from notegraph.graph.similarity import (
    calculate_similarity,
    containment_similarity,
    find_similar_pairs,
    is_similar,
    jaro_winkler_similarity,
    ngram_similarity,
    token_overlap_similarity,
    tokenize,
)


@pytest.mark.parametrize("text", ["a", "Machine Learning", "인공지능", "[[odd]] text!"])
def test_identical_strings_score_one(text: str) -> None:
    similarity = calculate_similarity(text, text)
    assert similarity.score == 1.0
    assert similarity.jaro_winkler == 1.0
    assert similarity.ngram == 1.0
    assert similarity.token_overlap == 1.0
    assert similarity.containment == 1.0


def test_unrelated_strings_score_zero() -> None:
    similarity = calculate_similarity("abc", "xyz")
    assert similarity.score == pytest.approx(0.0)


def test_jaro_winkler_reference_values() -> None:
    assert jaro_winkler_similarity("MARTHA", "MARHTA") == pytest.approx(0.9611, abs=1e-3)
    assert jaro_winkler_similarity("DWAYNE", "DUANE") == pytest.approx(0.84, abs=1e-3)
    assert jaro_winkler_similarity("", "abc") == 0.0


def test_ngram_similarity_uses_dice_coefficient() -> None:
    # night: ni ig gh ht / nacht: na ac ch ht
    assert ngram_similarity("night", "nacht") == pytest.approx(0.25)
    assert ngram_similarity("Night", "night") == 1.0


def test_ngram_similarity_short_strings_use_whole_string() -> None:
    assert ngram_similarity("a", "A") == 1.0
    assert ngram_similarity("a", "ab") == 0.0


def test_tokenize_splits_on_punctuation_and_lowercases() -> None:
    assert tokenize("Deep-Learning, Basics!") == ["deep", "learning", "basics"]


def test_tokenize_strips_korean_particles() -> None:
    assert tokenize("인공지능은 서울에서 학교로") == ["인공지능", "서울", "학교"]
    # single syllables are left alone
    assert tokenize("의") == ["의"]


def test_token_overlap_similarity() -> None:
    assert token_overlap_similarity("machine learning", "learning machine") == 1.0
    assert token_overlap_similarity("Deep Learning", "deep-learning basics") == pytest.approx(2 / 3)
    assert token_overlap_similarity("인공지능은", "인공지능") == 1.0


def test_containment_similarity() -> None:
    assert containment_similarity("Machine Learning", "machine learning basics") == pytest.approx(
        16 / 23
    )
    assert containment_similarity("abc", "xyz") == 0.0


def test_composite_uses_default_weights_for_weak_containment() -> None:
    similarity = calculate_similarity("ai", "ai tools")

    assert similarity.containment == pytest.approx(0.25)
    assert similarity.score == pytest.approx(
        0.4 * similarity.jaro_winkler + 0.3 * similarity.ngram + 0.3 * similarity.token_overlap
    )


def test_composite_weights_strong_containment() -> None:
    similarity = calculate_similarity("Machine Learning", "Machine Learning Notes")

    assert similarity.containment > 0.5
    assert similarity.score == pytest.approx(
        0.3 * similarity.jaro_winkler
        + 0.2 * similarity.ngram
        + 0.2 * similarity.token_overlap
        + 0.3 * similarity.containment
    )


def test_scores_stay_within_bounds() -> None:
    pairs = [("Machine Learning", "machine-learning"), ("서울에서", "서울"), ("a", "b")]
    for s1, s2 in pairs:
        similarity = calculate_similarity(s1, s2)
        for value in similarity.model_dump().values():
            assert 0.0 <= value <= 1.0


def test_is_similar_for_case_variants() -> None:
    assert is_similar("Machine Learning", "machine learning")
    assert not is_similar("Machine Learning", "Quantum Physics")


def test_find_similar_pairs_sorted_by_score() -> None:
    strings = ["Machine Learning", "Quantum Physics", "machine learning", "Machine-Learning"]
    pairs = find_similar_pairs(strings)

    assert {(i, j) for i, j, _ in pairs} == {(0, 2), (0, 3), (2, 3)}
    scores = [similarity.score for _, _, similarity in pairs]
    assert scores == sorted(scores, reverse=True)
