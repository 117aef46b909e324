"""
search.py

Finds the guess, or the pair of guesses, that leaves the fewest candidate
answers, scored over every possible answer.

Scoring a guess sequence (g1, g2, ...) for one answer: start from the bucket
of g1 that contains the answer, then intersect with the matching bucket of
each later guess. If before an intersection the running set has at most
`short_circuit` members, the answer counts as 1 and the traversal stops.
The `average` metric is the mean over answers, `worst` the maximum.

Two interchangeable backends compute the same numbers:
    bitset  per-answer Bitset intersections on the CandidateIndex buckets
    matrix  vectorised numpy over the index's code matrix

Searches run on a thread pool. The index is only read; the one piece of
shared mutable state is the BestTracker, updated under a lock. Ties are
broken by position in the guess list (lowest first), so results never
depend on thread scheduling.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple, TypeVar

import numpy as np
from tqdm import tqdm

from wordlebits.candidate_index import CandidateIndex
from wordlebits.config import BACKENDS, METRICS, SHORT_CIRCUIT, default_workers

logger = logging.getLogger(__name__)

AVERAGE, WORST = METRICS

T = TypeVar("T")


@dataclass(frozen=True)
class SearchResult:
    guesses: Tuple[str, ...]
    score: float
    metric: str
    evaluated: int = 0


class BestTracker:
    """
    Running minimum shared between workers.

    `offer` does the read-compare-write under one lock. Candidates are
    ordered by (score, order), where `order` is the candidate's position in
    the iteration, so equal scores resolve to the earliest candidate.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._score = math.inf
        self._order: Tuple[int, ...] | None = None
        self._payload = None
        self._evaluated = 0

    def offer(self, score: float, order: Tuple[int, ...], payload=None, evaluated: int = 1) -> bool:
        with self._lock:
            self._evaluated += evaluated
            if self._order is None or (score, order) < (self._score, self._order):
                self._score = score
                self._order = order
                self._payload = payload
                return True
            return False

    @property
    def evaluated(self) -> int:
        return self._evaluated

    def best(self):
        """(score, order, payload), or None if nothing was offered."""
        with self._lock:
            if self._order is None:
                return None
            return self._score, self._order, self._payload


# ---------- Scoring ----------

def _check(metric: str | None, backend: str) -> None:
    if metric is not None and metric not in METRICS:
        raise ValueError(f"metric must be one of {METRICS}, got {metric!r}")
    if backend not in BACKENDS:
        raise ValueError(f"backend must be one of {BACKENDS}, got {backend!r}")


def _remaining_bitset(index: CandidateIndex, ids: Sequence[int], short_circuit: int) -> np.ndarray:
    # answers sharing the same code tuple end in the same candidate set
    keys = index.codes[list(ids)].T.tolist()
    first, rest = ids[0], ids[1:]
    first_buckets = index.buckets(first)
    memo: Dict[Tuple[int, ...], int] = {}
    out = np.empty(len(keys), dtype=np.int64)
    for a, key in enumerate(keys):
        key = tuple(key)
        r = memo.get(key)
        if r is None:
            cands = first_buckets[key[0]]
            solved = False
            for g, code in zip(rest, key[1:]):
                if len(cands) <= short_circuit:
                    solved = True
                    break
                cands = cands & index.bucket(g, code)
            r = 1 if solved else len(cands)
            memo[key] = r
        out[a] = r
    return out


def _group_sizes(key: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    _, inverse, counts = np.unique(key, return_inverse=True, return_counts=True)
    return inverse.reshape(-1), counts[inverse.reshape(-1)]


def _remaining_matrix(index: CandidateIndex, ids: Sequence[int], short_circuit: int) -> np.ndarray:
    codes = index.codes
    n_codes = 3 ** index.word_length
    key, sizes = _group_sizes(codes[ids[0]].astype(np.int64))
    solved = np.zeros(index.n_answers, dtype=bool)
    for g in ids[1:]:
        solved |= sizes <= short_circuit
        key, sizes = _group_sizes(key * n_codes + codes[g].astype(np.int64))
    return np.where(solved, 1, sizes)


def remaining_counts(
    index: CandidateIndex,
    sequence: Sequence[str | int],
    *,
    backend: str = "bitset",
    short_circuit: int = SHORT_CIRCUIT,
) -> np.ndarray:
    """Per answer, how many candidates remain after playing `sequence`."""
    _check(None, backend)
    if not sequence:
        raise ValueError("sequence must contain at least one guess")
    ids = [index.guess_id(g) for g in sequence]
    if index.n_answers == 0:
        return np.zeros(0, dtype=np.int64)
    if backend == "matrix":
        return _remaining_matrix(index, ids, short_circuit)
    return _remaining_bitset(index, ids, short_circuit)


def score_sequence(
    index: CandidateIndex,
    sequence: Sequence[str | int],
    metric: str = AVERAGE,
    *,
    backend: str = "bitset",
    short_circuit: int = SHORT_CIRCUIT,
) -> float:
    """Average or worst-case remaining candidates; math.inf for an empty answer set."""
    _check(metric, backend)
    counts = remaining_counts(index, sequence, backend=backend, short_circuit=short_circuit)
    if counts.size == 0:
        return math.inf
    if metric == WORST:
        return int(counts.max())
    return float(counts.sum()) / counts.size


# ---------- Guess filtering ----------

def letter_mask(word: str) -> int:
    """26-bit mask with bit i set when letter chr(97 + i) occurs in `word`."""
    mask = 0
    for ch in word:
        mask |= 1 << (ord(ch) - 97)
    return mask


def distinct_letter_guesses(guesses: Sequence[str], word_length: int) -> List[int]:
    """Indices of the guesses whose letters are all different."""
    return [i for i, w in enumerate(guesses) if bin(letter_mask(w)).count("1") == word_length]


# ---------- Searches ----------

def parallel_min_by(
    items: Sequence[T],
    key: Callable[[T], float],
    *,
    workers: int | None = None,
    progress: bool = False,
    desc: str = "scan",
) -> Tuple[T, float] | None:
    """
    Item with the smallest key, evaluated on a thread pool.

    Each worker offers its value to a shared BestTracker; ties go to the item
    that comes first in `items`. Returns None for an empty sequence.
    """
    if not items:
        return None
    tracker = BestTracker()

    def work(pos: int) -> None:
        tracker.offer(key(items[pos]), (pos,), items[pos])

    with ThreadPoolExecutor(max_workers=workers or default_workers()) as pool:
        futures = [pool.submit(work, pos) for pos in range(len(items))]
        for fut in tqdm(as_completed(futures), total=len(futures), desc=desc, unit="guess", disable=not progress):
            fut.result()

    score, _, item = tracker.best()
    return item, score


def _resolve_candidates(index: CandidateIndex, candidates: Sequence[str | int] | None) -> List[int]:
    if candidates is None:
        return list(range(index.n_guesses))
    return [index.guess_id(c) for c in candidates]


def best_single_guess(
    index: CandidateIndex,
    metric: str = AVERAGE,
    *,
    candidates: Sequence[str | int] | None = None,
    workers: int | None = None,
    backend: str = "bitset",
    progress: bool = False,
) -> SearchResult | None:
    """Best first guess over `candidates` (default: the whole guess list)."""
    _check(metric, backend)
    ids = _resolve_candidates(index, candidates)
    if index.n_answers == 0 or not ids:
        return None

    logger.info("Scoring %d guesses against %d answers (%s)", len(ids), index.n_answers, metric)
    t0 = time.perf_counter()
    found = parallel_min_by(
        ids,
        lambda g: score_sequence(index, (g,), metric, backend=backend),
        workers=workers,
        progress=progress,
        desc="best",
    )
    g, score = found
    logger.info("Best guess %s (%s) in %.2fs", index.guesses[g], score, time.perf_counter() - t0)
    return SearchResult((index.guesses[g],), score, metric, len(ids))


def best_guess_pair(
    index: CandidateIndex,
    metric: str = WORST,
    *,
    candidates: Sequence[str | int] | None = None,
    workers: int | None = None,
    backend: str = "bitset",
    short_circuit: int = SHORT_CIRCUIT,
    progress: bool = False,
) -> SearchResult | None:
    """
    Best pair of guesses with no letter in common.

    Only guesses made of distinct letters take part. Every unordered pair
    {i, j}, i < j, of that list is considered; pairs whose letter masks
    intersect are skipped without scoring. The outer loop is split per i
    across the pool; each task keeps its own minimum and merges it into the
    shared tracker once.
    """
    _check(metric, backend)
    ids = _resolve_candidates(index, candidates)
    pool_ids = [ids[k] for k in distinct_letter_guesses([index.guesses[g] for g in ids], index.word_length)]
    n = len(pool_ids)
    if index.n_answers == 0 or n < 2:
        return None
    masks = [letter_mask(index.guesses[g]) for g in pool_ids]
    total_pairs = n * (n - 1) // 2
    logger.info("Filtered down to %d guesses with distinct letters (%d pairs)", n, total_pairs)

    tracker = BestTracker()

    def scan(i: int) -> int:
        best_score, best_j, evaluated = math.inf, -1, 0
        for j in range(i + 1, n):
            if masks[i] & masks[j]:
                continue
            s = score_sequence(index, (pool_ids[i], pool_ids[j]), metric, backend=backend, short_circuit=short_circuit)
            evaluated += 1
            if best_j < 0 or s < best_score:
                best_score, best_j = s, j
        if best_j >= 0:
            tracker.offer(best_score, (i, best_j), (pool_ids[i], pool_ids[best_j]), evaluated)
        return n - 1 - i

    t0 = time.perf_counter()
    with ThreadPoolExecutor(max_workers=workers or default_workers()) as pool:
        futures = [pool.submit(scan, i) for i in range(n - 1)]
        with tqdm(total=total_pairs, desc="pairs", unit="pair", disable=not progress) as bar:
            for fut in as_completed(futures):
                bar.update(fut.result())
                if progress:
                    current = tracker.best()
                    if current is not None:
                        g1, g2 = current[2]
                        bar.set_description(f"best: {index.guesses[g1]}, {index.guesses[g2]} ({current[0]})")

    found = tracker.best()
    if found is None:
        logger.info("No letter-disjoint pair among %d guesses", n)
        return None
    score, _, (g1, g2) = found
    logger.info(
        "Best pair %s, %s (%s) after %d scored pairs in %.2fs",
        index.guesses[g1], index.guesses[g2], score, tracker.evaluated, time.perf_counter() - t0,
    )
    return SearchResult((index.guesses[g1], index.guesses[g2]), score, metric, tracker.evaluated)
