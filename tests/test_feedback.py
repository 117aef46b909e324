from collections import Counter

import numpy as np
import pytest

from wordlebits.feedback import (
    LengthMismatchError,
    consistent_with,
    feedback_matrix,
    feedback_names,
    is_reachable,
    int_to_pattern,
    pattern_to_int,
    score_pattern,
    words_to_array,
)


def test_self_feedback_is_all_correct(words):
    for w in words:
        assert score_pattern(w, w) == [2, 2, 2, 2, 2]


def test_duplicate_letter_cases():
    assert score_pattern("allot", "total") == [1, 1, 0, 1, 1]
    assert score_pattern("abbey", "cabin") == [1, 0, 2, 0, 0]
    assert score_pattern("press", "spree") == [1, 1, 1, 1, 0]


def test_speed_against_abide_regression():
    # the first 'e' takes the answer's only 'e'; the second gets nothing
    assert score_pattern("speed", "abide") == [0, 0, 1, 0, 1]


def test_correct_takes_priority_over_earlier_present():
    # 'e' at position 4 is correct, so the leading 'e' cannot be present
    assert score_pattern("eerie", "crane") == [0, 0, 1, 0, 2]


def test_tag_counts_never_exceed_answer_counts(words):
    for g in words:
        for a in words:
            patt = score_pattern(g, a)
            for letter in set(g):
                hits = sum(1 for ch, p in zip(g, patt) if ch == letter and p > 0)
                assert hits == min(Counter(g)[letter], Counter(a)[letter])


def test_encoding_is_most_significant_first():
    assert pattern_to_int([2, 2, 2, 2, 2]) == 242
    assert pattern_to_int([0, 0, 0, 0, 0]) == 0
    assert pattern_to_int([0, 0, 0, 0, 1]) == 1
    assert pattern_to_int([1, 0, 0, 0, 0]) == 81
    assert int_to_pattern(1) == [0, 0, 0, 0, 1]
    assert int_to_pattern(pattern_to_int([1, 0, 2, 1, 0])) == [1, 0, 2, 1, 0]


def test_invalid_patterns_and_codes():
    with pytest.raises(ValueError):
        pattern_to_int([0, 1, 3, 0, 0])
    with pytest.raises(ValueError):
        pattern_to_int([0, 1, 2])
    with pytest.raises(ValueError):
        int_to_pattern(243)
    with pytest.raises(ValueError):
        int_to_pattern(-1)


def test_length_mismatch_is_a_value_error():
    with pytest.raises(LengthMismatchError):
        score_pattern("cat", "crane")
    with pytest.raises(ValueError):
        score_pattern("crane", "crates")


def test_rejects_non_lowercase_and_non_alpha():
    with pytest.raises(ValueError):
        score_pattern("CRANE", "crane")
    with pytest.raises(ValueError):
        score_pattern("cr4ne", "crane")
    with pytest.raises(TypeError):
        score_pattern(12345, "crane")


def test_feedback_names_mapping():
    assert feedback_names(242) == ["correct"] * 5
    assert feedback_names([0, 1, 2, 0, 0]) == ["absent", "present", "correct", "absent", "absent"]


def test_consistent_with_delegates_to_scoring():
    patt = score_pattern("allot", "total")
    assert consistent_with("total", "allot", patt)
    assert not consistent_with("tally", "allot", patt)


def test_feedback_matrix_matches_scalar_codec(words, answers):
    codes = feedback_matrix(words_to_array(words), words_to_array(answers))
    assert codes.shape == (len(words), len(answers))
    assert codes.dtype == np.uint8
    for i, g in enumerate(words):
        for j, a in enumerate(answers):
            assert codes[i, j] == pattern_to_int(score_pattern(g, a))


def test_other_word_lengths():
    assert score_pattern("banana", "cabana", word_length=6) == [1, 2, 0, 2, 2, 2]
    codes = feedback_matrix(words_to_array(["banana"], 6), words_to_array(["cabana"], 6))
    assert codes.dtype == np.uint16
    assert int(codes[0, 0]) == pattern_to_int([1, 2, 0, 2, 2, 2], word_length=6)


def test_scored_patterns_are_reachable(words):
    for g in words:
        for a in words:
            assert is_reachable(g, score_pattern(g, a))


def test_unreachable_patterns():
    # a present copy of "e" cannot follow an absent one
    assert not is_reachable("speed", [0, 0, 0, 1, 0])
    assert is_reachable("speed", [0, 0, 1, 0, 1])
    # the only other position left is already green
    assert not is_reachable("crane", [2, 2, 2, 2, 1])
    # four presents of "a" but only one slot not holding an "a"
    assert not is_reachable("aaaab", [1, 1, 1, 1, 0])
    assert is_reachable("aaaab", [2, 2, 2, 1, 0])
    assert is_reachable("aabbb", [1, 1, 1, 1, 0])
