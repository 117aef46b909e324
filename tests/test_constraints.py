import pytest

from wordlebits.constraints import (
    ConstraintDatabase,
    analyze,
    constraints_from_feedback,
    constraints_from_history,
    filter_candidates,
    word_satisfies,
)
from wordlebits.feedback import score_pattern
from wordlebits.letter_constraints import LetterConstraint


def test_pruning_after_allot_pattern():
    words = ["total", "stoal", "allot", "tally", "alloy", "atoll"]
    guess = "allot"
    target = "total"
    patt = score_pattern(guess, target)  # [1,1,0,1,1]

    remaining = filter_candidates(words, [(guess, patt)])

    # "total" and "stoal" are consistent; others are not.
    assert "total" in remaining
    assert "stoal" in remaining
    assert "allot" not in remaining
    assert "tally" not in remaining
    assert "alloy" not in remaining
    assert "atoll" not in remaining


def test_pruning_is_monotonic_with_more_feedback():
    words = ["total", "stoal", "bleed", "blend"]
    patt1 = score_pattern("allot", "total")
    rem1 = set(filter_candidates(words, [("allot", patt1)]))
    patt2 = score_pattern("stoal", "total")
    rem2 = set(filter_candidates(words, [("allot", patt1), ("stoal", patt2)]))
    assert rem2.issubset(rem1)


def test_analyze_speed_abide():
    infos = analyze("speed", "abide").letter_infos
    assert infos["e"] == LetterConstraint(frozenset(), frozenset({2, 3}), 1, True)
    assert infos["d"] == LetterConstraint(frozenset(), frozenset({4}), 1, False)
    assert infos["s"] == LetterConstraint(frozenset(), frozenset(), 0, True)
    assert infos["p"] == LetterConstraint(frozenset(), frozenset(), 0, True)
    assert set(infos) == {"s", "p", "e", "d"}


def test_green_plus_gray_fixes_exact_count():
    infos = constraints_from_feedback("geese", score_pattern("geese", "crane"))
    # only the last 'e' is correct, the other two are absent
    assert infos["e"] == LetterConstraint(frozenset({4}), frozenset({1, 2}), 1, True)


def test_single_green_keeps_lower_bound():
    # one correct 'e' says nothing about further e's in the answer
    analysis = analyze("crane", "geese")
    assert analysis.letter_infos["e"].exact is False
    assert analysis.satisfied_by("geese")


def test_structural_path_matches_brute_force(words):
    for g in words:
        for a in words:
            structural = analyze(g, a).filter_words(words)
            brute = filter_candidates(words, [(g, score_pattern(g, a))])
            assert structural == brute, (g, a)


def test_history_merge_matches_brute_force(words):
    for a in words:
        history = [(g, score_pattern(g, a)) for g in ("crane", "speed", "tally")]
        merged = constraints_from_history(history)
        assert merged.filter_words(words) == filter_candidates(words, history)


def test_contradictory_history_raises():
    with pytest.raises(ValueError):
        constraints_from_history([("crane", [0, 0, 0, 0, 0]), ("slate", [0, 0, 0, 0, 2])])


def test_constraint_database_matches_structural(words):
    db = ConstraintDatabase.build(words)
    assert len(db) == 26 * 1104
    for g in ("speed", "eerie", "allot"):
        for a in words:
            analysis = analyze(g, a)
            assert db.filter_words(analysis) == analysis.filter_words(words)


def test_constraint_database_computes_unlisted_descriptors(words):
    db = ConstraintDatabase.build(words, constraints=[], letters="")
    info = LetterConstraint(frozenset(), frozenset(), 3, True)
    assert db.filter_words(constraints_from_history([])) == words
    assert [words[i] for i in db.lookup("e", info)] == [w for w in words if word_satisfies(w, {"e": info})]
    assert len(db) == 1
