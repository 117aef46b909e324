import numpy as np

from wordlebits.cache import load_index, load_or_build, save_index


def test_round_trip(tmp_path, index):
    path = save_index(index, tmp_path / "index.npz")
    restored = load_index(path, index.guesses, index.answers)
    assert restored is not None
    assert restored.guesses == index.guesses
    assert restored.answers == index.answers
    assert np.array_equal(restored.codes, index.codes)
    for g in index.guesses:
        assert restored.buckets(g) == index.buckets(g)


def test_missing_file_returns_none(tmp_path):
    assert load_index(tmp_path / "nope.npz") is None


def test_corrupt_file_falls_back_to_rebuild(tmp_path, words, answers):
    path = tmp_path / "index.npz"
    path.write_bytes(b"not a numpy archive")
    assert load_index(path) is None

    built = load_or_build(words, answers, path, workers=1)
    assert built.n_answers == len(answers)
    # the rebuilt index replaced the corrupt file
    assert load_index(path, words, answers) is not None


def test_vocabulary_mismatch_is_a_miss(tmp_path, index):
    path = save_index(index, tmp_path / "index.npz")
    assert load_index(path, index.guesses, index.answers[:-1]) is None
    assert load_index(path, index.guesses[::-1], index.answers) is None


def test_load_or_build_without_cache(words, answers):
    built = load_or_build(words, answers, None, workers=1)
    assert built.n_guesses == len(words)


def test_damaged_archive_bytes_fall_back_to_rebuild(tmp_path, index):
    raw = save_index(index, tmp_path / "index.npz").read_bytes()
    damaged = tmp_path / "damaged.npz"
    for offset in range(0, len(raw), max(1, len(raw) // 120)):
        flipped = bytearray(raw)
        flipped[offset] ^= 0xFF
        damaged.write_bytes(bytes(flipped))
        restored = load_index(damaged, index.guesses, index.answers)
        # a flip the archive checksums cannot see must still give the same index
        if restored is not None:
            assert np.array_equal(restored.codes, index.codes)


def test_stray_bucket_bits_are_a_miss(tmp_path, index):
    path = save_index(index, tmp_path / "index.npz")
    with np.load(path) as data:
        arrays = {k: data[k] for k in data.files}
    arrays["bucket_blocks"] = arrays["bucket_blocks"].copy()
    arrays["bucket_blocks"][0, -1] |= np.uint64(1) << np.uint64(63)
    np.savez_compressed(path, **arrays)
    assert load_index(path, index.guesses, index.answers) is None
