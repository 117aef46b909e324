import numpy as np
import pytest

from wordlebits.bitset import Bitset
from wordlebits.candidate_index import CandidateIndex
from wordlebits.constraints import analyze, filter_candidates
from wordlebits.feedback import pattern_to_int, score_pattern


def test_buckets_partition_the_answer_set(index):
    everything = set(range(index.n_answers))
    for g in index.guesses:
        seen = set()
        for bs in index.buckets(g).values():
            members = set(bs)
            assert members
            assert not (members & seen)
            seen |= members
        assert seen == everything


def test_bucket_codes_match_codec(index):
    for g in index.guesses:
        for code, bs in index.buckets(g).items():
            for a in bs:
                assert pattern_to_int(score_pattern(g, index.answers[a])) == code


def test_lookup_contains_the_answer(index):
    for g in index.guesses:
        for a, answer in enumerate(index.answers):
            assert a in index.lookup(g, answer)


def test_bitset_filter_matches_brute_force_and_structural(index):
    for g in index.guesses:
        for answer in index.answers:
            patt = score_pattern(g, answer)
            via_bits = index.to_words(index.filter([(g, patt)]))
            assert via_bits == filter_candidates(index.answers, [(g, patt)])
            assert via_bits == analyze(g, answer).filter_words(index.answers)


def test_four_word_end_to_end():
    vocab = ["crane", "trace", "react", "cater"]
    idx = CandidateIndex.build(vocab, vocab, workers=1)
    code = pattern_to_int(score_pattern("crane", "trace"))
    remaining = idx.to_words(idx.apply(idx.all_answers(), "crane", code))
    assert remaining == filter_candidates(vocab, [("crane", score_pattern("crane", "trace"))])
    assert remaining == analyze("crane", "trace").filter_words(vocab)
    assert "trace" in remaining


def test_build_does_not_depend_on_chunking(words, answers, index):
    other = CandidateIndex.build(words, answers, workers=1, chunk_size=1000)
    assert np.array_equal(other.codes, index.codes)
    for g in words:
        assert other.buckets(g) == index.buckets(g)


def test_missing_code_gives_empty_set(index):
    # four correct letters plus one present can never happen
    impossible = pattern_to_int([2, 2, 2, 2, 1])
    bs = index.bucket("crane", impossible)
    assert isinstance(bs, Bitset)
    assert bs.size == index.n_answers and len(bs) == 0


def test_codes_are_read_only(index):
    with pytest.raises(ValueError):
        index.codes[0, 0] = 0


def test_callers_code_matrix_stays_writeable():
    codes = np.zeros((1, 1), dtype=np.uint8)
    idx = CandidateIndex(["crane"], ["slate"], codes, [{0: Bitset.from_indices(1, [0])}])
    codes[0, 0] = 0
    assert codes.flags.writeable
    assert not idx.codes.flags.writeable


def test_empty_answer_vocabulary():
    idx = CandidateIndex.build(["crane", "slate"], [], workers=1)
    assert idx.codes.shape == (2, 0)
    assert idx.buckets("crane") == {}
    assert len(idx.filter([("crane", [0, 0, 0, 0, 0])])) == 0


def test_unknown_words_raise(index):
    with pytest.raises(KeyError):
        index.buckets("zzzzz")
    with pytest.raises(IndexError):
        index.lookup(0, len(index.answers))
