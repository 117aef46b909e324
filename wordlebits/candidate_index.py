"""
candidate_index.py

For every guess, the answer vocabulary partitioned by feedback code, each
bucket stored as a Bitset over answer indices. Built once, then shared
read-only by the filtering and search code.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from wordlebits.bitset import Bitset
from wordlebits.config import DEFAULT_CHUNK_SIZE, WORD_LENGTH, default_workers
from wordlebits.feedback import feedback_matrix, pattern_to_int, words_to_array

logger = logging.getLogger(__name__)

Buckets = Dict[int, Bitset]


def bucket_row(row: np.ndarray) -> Buckets:
    """Group answer indices by code; one Bitset per code present in `row`."""
    n = row.shape[0]
    if n == 0:
        return {}
    order = np.argsort(row, kind="stable")
    ordered = row[order]
    cuts = np.flatnonzero(np.diff(ordered)) + 1
    starts = np.concatenate(([0], cuts))
    groups = np.split(order, cuts)
    return {int(ordered[s]): Bitset.from_indices(n, g) for s, g in zip(starts, groups)}


class CandidateIndex:
    """
    guesses[g], answers[a]   the two vocabularies
    codes[g, a]              feedback code of guess g against answer a
    buckets(g)[code]         Bitset of answers producing `code` for guess g
    """

    def __init__(
        self,
        guesses: Sequence[str],
        answers: Sequence[str],
        codes: np.ndarray,
        buckets: List[Buckets],
        word_length: int = WORD_LENGTH,
    ) -> None:
        if codes.shape != (len(guesses), len(answers)):
            raise ValueError(f"code matrix shape {codes.shape} does not match {len(guesses)}x{len(answers)}")
        if len(buckets) != len(guesses):
            raise ValueError("need one bucket map per guess")
        self.guesses: List[str] = list(guesses)
        self.answers: List[str] = list(answers)
        self.word_length = word_length
        self._codes = codes.view()
        self._codes.flags.writeable = False
        self._buckets = buckets
        self._guess_ids = {w: i for i, w in enumerate(self.guesses)}
        self._answer_ids = {w: i for i, w in enumerate(self.answers)}

    @classmethod
    def build(
        cls,
        guesses: Sequence[str],
        answers: Sequence[str],
        *,
        word_length: int = WORD_LENGTH,
        workers: int | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        progress: bool = False,
    ) -> "CandidateIndex":
        """
        Compute feedback for every guess/answer pair and bucket it.

        Guesses are split into chunks processed on a thread pool; chunks are
        independent and reassembled in guess order, so the result does not
        depend on scheduling.
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        guesses = list(guesses)
        answers = list(answers)
        g_arr = words_to_array(guesses, word_length)
        a_arr = words_to_array(answers, word_length)
        workers = workers or default_workers()

        starts = list(range(0, len(guesses), chunk_size))

        def work(start: int) -> Tuple[np.ndarray, List[Buckets]]:
            block = feedback_matrix(g_arr[start:start + chunk_size], a_arr)
            return block, [bucket_row(row) for row in block]

        logger.info("Indexing %d guesses against %d answers (%d workers)", len(guesses), len(answers), workers)
        t0 = time.perf_counter()
        rows: List[np.ndarray] = []
        buckets: List[Buckets] = []
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = pool.map(work, starts)
            for block, block_buckets in tqdm(results, total=len(starts), desc="index", unit="chunk", disable=not progress):
                rows.append(block)
                buckets.extend(block_buckets)

        if rows:
            codes = np.concatenate(rows, axis=0)
        else:
            codes = feedback_matrix(g_arr, a_arr)
        index = cls(guesses, answers, codes, buckets, word_length)
        logger.info("Built %d buckets in %.2fs", index.num_buckets, time.perf_counter() - t0)
        return index

    # ---------- Lookups ----------

    @property
    def codes(self) -> np.ndarray:
        return self._codes

    @property
    def n_guesses(self) -> int:
        return len(self.guesses)

    @property
    def n_answers(self) -> int:
        return len(self.answers)

    @property
    def num_buckets(self) -> int:
        return sum(len(b) for b in self._buckets)

    def guess_id(self, guess: str | int) -> int:
        if isinstance(guess, (int, np.integer)):
            if guess < 0 or guess >= len(self.guesses):
                raise IndexError(f"guess index out of range: {guess}")
            return int(guess)
        try:
            return self._guess_ids[guess]
        except KeyError:
            raise KeyError(f"unknown guess: {guess}") from None

    def answer_id(self, answer: str | int) -> int:
        if isinstance(answer, (int, np.integer)):
            if answer < 0 or answer >= len(self.answers):
                raise IndexError(f"answer index out of range: {answer}")
            return int(answer)
        try:
            return self._answer_ids[answer]
        except KeyError:
            raise KeyError(f"unknown answer: {answer}") from None

    def buckets(self, guess: str | int) -> Buckets:
        return self._buckets[self.guess_id(guess)]

    def bucket(self, guess: str | int, code: int) -> Bitset:
        """Answers producing `code` for `guess`; empty when no answer does."""
        bs = self._buckets[self.guess_id(guess)].get(int(code))
        return bs if bs is not None else Bitset(self.n_answers)

    def lookup(self, guess: str | int, answer: str | int) -> Bitset:
        """Answers indistinguishable from `answer` after playing `guess`."""
        g = self.guess_id(guess)
        a = self.answer_id(answer)
        return self._buckets[g][int(self._codes[g, a])]

    def bucket_sizes(self, guess: str | int) -> Dict[int, int]:
        return {code: len(bs) for code, bs in self.buckets(guess).items()}

    # ---------- Bitset-path filtering ----------

    def all_answers(self) -> Bitset:
        return Bitset.full(self.n_answers)

    def apply(self, candidates: Bitset, guess: str | int, feedback: int | Sequence[int]) -> Bitset:
        """Intersect `candidates` with the bucket for (guess, feedback)."""
        if not isinstance(feedback, (int, np.integer)):
            feedback = pattern_to_int(feedback, self.word_length)
        return candidates & self.bucket(guess, int(feedback))

    def filter(self, history: Sequence[Tuple[str | int, int | Sequence[int]]]) -> Bitset:
        result = self.all_answers()
        for guess, feedback in history:
            result = self.apply(result, guess, feedback)
        return result

    def to_words(self, candidates: Bitset) -> List[str]:
        return [self.answers[i] for i in candidates]
