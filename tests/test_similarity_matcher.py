"""Tests for the lexical cache matcher."""

import pytest

from conftest import make_record
from multi_ai.entities import MatchMethod
from multi_ai.services import SimilarityMatcher


def test_exact_match_short_circuits_fuzzy_pass():
    history = [
        make_record("3", "what is a semantic catch"),
        make_record("2", "What is a semantic cache?"),
        make_record("1", "what is a semantic cache"),
    ]
    matcher = SimilarityMatcher()

    match = matcher.find_lexical_match("what is a SEMANTIC cache!", history)

    assert match is not None
    assert match.method is MatchMethod.EXACT
    assert match.record.id == "2"
    assert match.score == 1.0
    assert matcher.fuzzy_passes == 0


def test_fuzzy_match_when_no_exact():
    history = [make_record("1", "what is the capital of france")]
    matcher = SimilarityMatcher()

    match = matcher.find_lexical_match("what is the capitol of france", history)

    assert match is not None
    assert match.method is MatchMethod.LEXICAL
    assert match.score >= 0.8
    assert matcher.fuzzy_passes == 1


def test_threshold_is_inclusive():
    history = [make_record("1", "abcdf")]

    match = SimilarityMatcher(threshold=0.8).find_lexical_match("abcde", history)

    assert match is not None
    assert match.score == pytest.approx(0.8)


def test_ties_go_to_most_recent():
    history = [
        make_record("2", "abcdx"),
        make_record("1", "abcdy"),
    ]

    match = SimilarityMatcher().find_lexical_match("abcde", history)

    assert match is not None
    assert match.record.id == "2"


def test_no_match_below_threshold():
    history = [make_record("1", "tell me a joke about cats")]

    assert SimilarityMatcher().find_lexical_match("how tall is mount everest", history) is None


def test_empty_history():
    assert SimilarityMatcher().find_lexical_match("anything", []) is None


def test_rejects_out_of_range_threshold():
    with pytest.raises(ValueError):
        SimilarityMatcher(threshold=1.5)
