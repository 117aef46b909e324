import numpy as np
import pytest

from wordlebits.bitset import Bitset, SizeMismatchError


def test_from_indices_membership_and_count():
    bs = Bitset.from_indices(100, [1, 5, 64, 99, 5])
    assert len(bs) == 4
    assert list(bs) == [1, 5, 64, 99]
    assert 64 in bs and 63 not in bs
    assert 100 not in bs and -1 not in bs


def test_add_tracks_count_incrementally():
    bs = Bitset(70)
    for i in (3, 69, 3, 0):
        bs.add(i)
    assert len(bs) == 3
    assert list(bs.indices()) == [0, 3, 69]
    with pytest.raises(IndexError):
        bs.add(70)


def test_full_and_empty_sets():
    assert list(Bitset.full(70)) == list(range(70))
    assert len(Bitset.full(64)) == 64
    assert len(Bitset.full(0)) == 0
    assert len(Bitset(0) & Bitset.full(0)) == 0


def test_intersection_algebra():
    a = Bitset.from_indices(130, range(0, 130, 2))
    b = Bitset.from_indices(130, range(0, 130, 3))
    c = Bitset.from_indices(130, [0, 6, 7, 64, 66, 128])
    assert (a & b) == (b & a)
    assert ((a & b) & c) == (a & (b & c))
    assert (a & a) == a
    assert len(a & b) == len(set(range(0, 130, 2)) & set(range(0, 130, 3)))
    assert list((a & b) & c) == [0, 6, 66]


def test_intersection_of_different_sizes_is_an_error():
    with pytest.raises(SizeMismatchError):
        Bitset.full(10) & Bitset.full(11)


def test_blocks_are_read_only():
    bs = Bitset.from_indices(10, [1])
    with pytest.raises(ValueError):
        bs.blocks[0] = 0


def test_out_of_range_indices_rejected():
    with pytest.raises(IndexError):
        Bitset.from_indices(10, [10])


def test_blocks_with_bits_past_size_are_rejected():
    blocks = np.zeros(2, dtype=np.uint64)
    blocks[1] = np.uint64(1) << np.uint64(10)
    with pytest.raises(ValueError):
        Bitset(70, blocks)
    blocks[1] = np.uint64(1) << np.uint64(5)
    assert list(Bitset(70, blocks)) == [69]
