"""
cache.py

Snapshot of a CandidateIndex on disk (numpy .npz). Loading never fails
hard: an absent, unreadable, stale or mismatching file means "rebuild".
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence

import numpy as np

from wordlebits.bitset import Bitset
from wordlebits.candidate_index import Buckets, CandidateIndex
from wordlebits.config import WORD_LENGTH

logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = 1


def save_index(index: CandidateIndex, path: str | Path) -> Path:
    """Write `index` (vocabularies, code matrix and every bucket) to `path`."""
    path = Path(path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    n_blocks = (index.n_answers + 63) // 64
    bucket_guess: List[int] = []
    bucket_code: List[int] = []
    blocks: List[np.ndarray] = []
    for g in range(index.n_guesses):
        for code, bs in sorted(index.buckets(g).items()):
            bucket_guess.append(g)
            bucket_code.append(code)
            blocks.append(bs.blocks)

    with open(path, "wb") as f:
        np.savez_compressed(
            f,
            version=np.array(CACHE_FORMAT_VERSION),
            word_length=np.array(index.word_length),
            guesses=np.array(index.guesses, dtype=str),
            answers=np.array(index.answers, dtype=str),
            codes=index.codes,
            bucket_guess=np.array(bucket_guess, dtype=np.int64),
            bucket_code=np.array(bucket_code, dtype=np.int64),
            bucket_blocks=np.array(blocks, dtype=np.uint64).reshape(len(blocks), n_blocks),
        )
    logger.info("Saved candidate index (%d buckets) to %s", len(blocks), path)
    return path


def load_index(
    path: str | Path,
    guesses: Sequence[str] | None = None,
    answers: Sequence[str] | None = None,
) -> CandidateIndex | None:
    """
    Restore an index written by `save_index`.

    Returns None when the file is missing or cannot be decoded, when it was
    written by another format version, or when its vocabularies differ from
    the `guesses` / `answers` given.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No cache at %s", path)
        return None
    try:
        with np.load(path, allow_pickle=False) as data:
            version = int(data["version"])
            if version != CACHE_FORMAT_VERSION:
                logger.warning("Cache %s has format version %d, expected %d; ignoring", path, version, CACHE_FORMAT_VERSION)
                return None
            word_length = int(data["word_length"])
            cached_guesses = [str(w) for w in data["guesses"]]
            cached_answers = [str(w) for w in data["answers"]]
            codes = np.array(data["codes"])
            bucket_guess = data["bucket_guess"]
            bucket_code = data["bucket_code"]
            bucket_blocks = data["bucket_blocks"]
    except Exception as e:  # zipfile, zlib and numpy each raise their own decode errors
        logger.warning("Could not read cache %s (%s); recomputing", path, e)
        return None

    if guesses is not None and list(guesses) != cached_guesses:
        logger.warning("Cache %s was built for a different guess list; recomputing", path)
        return None
    if answers is not None and list(answers) != cached_answers:
        logger.warning("Cache %s was built for a different answer list; recomputing", path)
        return None

    n_answers = len(cached_answers)
    buckets: List[Buckets] = [{} for _ in cached_guesses]
    try:
        for g, code, blocks in zip(bucket_guess, bucket_code, bucket_blocks):
            buckets[int(g)][int(code)] = Bitset(n_answers, np.array(blocks, dtype=np.uint64))
        index = CandidateIndex(cached_guesses, cached_answers, codes, buckets, word_length)
    except (ValueError, IndexError, TypeError) as e:
        logger.warning("Cache %s is inconsistent (%s); recomputing", path, e)
        return None
    logger.info("Loaded candidate index from %s", path)
    return index


def load_or_build(
    guesses: Sequence[str],
    answers: Sequence[str],
    cache_path: str | Path | None,
    *,
    word_length: int = WORD_LENGTH,
    workers: int | None = None,
    progress: bool = False,
) -> CandidateIndex:
    """Cached index when valid, else a fresh build (saved back when a path is given)."""
    if cache_path is not None:
        index = load_index(cache_path, guesses, answers)
        if index is not None:
            return index
    index = CandidateIndex.build(guesses, answers, word_length=word_length, workers=workers, progress=progress)
    if cache_path is not None:
        try:
            save_index(index, cache_path)
        except OSError as e:
            logger.warning("Could not write cache %s: %s", cache_path, e)
    return index
