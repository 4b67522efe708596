from __future__ import annotations

import pytest

from services.keyphrase import (
    DEFAULT_STOPWORDS,
    KeyPhrase,
    build_candidates,
    count_occurrences,
    extract_key_phrases,
    first_occurrence,
    score_tokens,
    tokenize_words,
)


def test_tokenize_keeps_apostrophes_inside_words() -> None:
    assert tokenize_words("It’s 'quoted', here!") == ["it's", "quoted", "here"]
    assert tokenize_words(None) == []


def test_candidates_never_start_or_end_with_stopword() -> None:
    words = tokenize_words("The quick fox and the lazy fox")
    candidates = build_candidates(words, max_n=3)
    assert candidates
    for gram in candidates:
        assert gram[0] not in DEFAULT_STOPWORDS
        assert gram[-1] not in DEFAULT_STOPWORDS
    assert ("fox", "and", "the") not in candidates


def test_score_tokens_degree_plus_frequency_over_frequency() -> None:
    scores = score_tokens([("quick",), ("quick", "fox"), ("fox",)])
    # quick: freq 2, degree 1; fox: freq 2, degree 1
    assert scores == {"quick": 1.5, "fox": 1.5}


def test_extract_key_phrases_scores_and_order() -> None:
    result = extract_key_phrases("The quick fox and the lazy fox.")
    assert result == [
        KeyPhrase(phrase="quick fox", score=3.0, count=1),
        KeyPhrase(phrase="lazy fox", score=3.0, count=1),
        KeyPhrase(phrase="fox", score=1.5, count=2),
        KeyPhrase(phrase="quick", score=1.5, count=1),
        KeyPhrase(phrase="lazy", score=1.5, count=1),
    ]


def test_extract_key_phrases_min_count_filters() -> None:
    result = extract_key_phrases("The quick fox and the lazy fox.", min_count=2)
    assert [kp.phrase for kp in result] == ["fox"]


def test_extract_key_phrases_only_stopwords_is_empty() -> None:
    assert extract_key_phrases("and the of it") == []
    assert extract_key_phrases("") == []


def test_extract_key_phrases_rejects_bad_max_n() -> None:
    with pytest.raises(ValueError):
        extract_key_phrases("some text", max_n=0)


@pytest.mark.parametrize(
    ("text", "phrase", "expected"),
    [
        ("category cat", "cat", 1),
        ("Cat, CAT and cat.", "cat", 3),
        ("the cat's toy", "cat", 0),
        ("New   York is new york", "new york", 2),
        ("Don't stop. don’t!", "don't", 2),
        ("anything", "", 0),
    ],
)
def test_count_occurrences_whole_word(text: str, phrase: str, expected: int) -> None:
    assert count_occurrences(text, phrase) == expected


@pytest.mark.parametrize(
    ("text", "phrase", "expected"),
    [
        ("The  New\nYork times", "new york", "New York"),
        ("category Cat", "cat", "Cat"),
        ("Don’t stop", "don't", "Don’t"),
        ("category", "cat", None),
        ("anything", "", None),
    ],
)
def test_first_occurrence_recovers_written_form(text: str, phrase: str, expected: str | None) -> None:
    assert first_occurrence(text, phrase) == expected
