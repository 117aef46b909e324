"""
starting_word/eval.py

Score candidate first guesses by how well they split the answer set,
straight from the CandidateIndex bucket sizes.

Metrics per guess:
- exp_remaining: expected remaining candidates after the first feedback
- entropy: information gain (higher is better)
- worst_case: size of the largest bucket (lower is better)
- partitions: number of distinct feedback patterns induced

Usage:
  python -m solver.solver_cli rank --top 20 --out starting_word_results.csv
"""

from __future__ import annotations

from math import log2
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import pandas as pd
from tqdm import tqdm

from wordlebits.candidate_index import CandidateIndex

COLUMNS = ["guess", "exp_remaining", "entropy", "worst_case", "partitions"]


def _metrics_from_counts(counts: Sequence[int], total: int) -> Tuple[float, float, int, int]:
    """
    Given bucket sizes and the total number of targets,
    compute (exp_remaining, entropy, worst_case, partitions).
    """
    if total <= 0:
        raise ValueError("total must be positive")
    exp_remaining = sum(c * c for c in counts) / total
    entropy = 0.0
    for c in counts:
        p = c / total
        if p > 0.0:
            entropy -= p * log2(p)
    worst_case = max(counts) if counts else 0
    return exp_remaining, entropy, worst_case, len(counts)


def evaluate_first_guesses(
    index: CandidateIndex,
    guesses: Sequence[str] | None = None,
    *,
    progress: bool = False,
) -> List[Dict[str, float]]:
    """
    Evaluate each candidate first guess against the full answer set.

    Returns
    -------
    list[dict]
        Sorted (best first) records with keys
        'guess', 'exp_remaining', 'entropy', 'worst_case', 'partitions'.
        Empty when the index has no answers.
    """
    total = index.n_answers
    if total == 0:
        return []
    pool = list(guesses) if guesses is not None else index.guesses

    results: List[Dict[str, float]] = []
    for g in tqdm(pool, desc="rank", unit="guess", disable=not progress):
        counts = list(index.bucket_sizes(g).values())
        exp_remaining, entropy, worst_case, partitions = _metrics_from_counts(counts, total)
        results.append(
            {
                "guess": g,
                "exp_remaining": float(exp_remaining),
                "entropy": float(entropy),
                "worst_case": int(worst_case),
                "partitions": int(partitions),
            }
        )

    # Sort: primary = exp_remaining asc, secondary = worst_case asc, tertiary = -entropy desc
    results.sort(key=lambda r: (r["exp_remaining"], r["worst_case"], -r["entropy"]))
    return results


def print_top(results: List[Dict[str, float]], k: int = 20) -> None:
    print(f"\nTop {k} starting words by expected remaining:")
    print(f"{'rank':>4}  {'guess':<8}  {'exp_rem':>8}  {'entropy':>8}  {'worst':>5}  {'parts':>6}")
    for idx, r in enumerate(results[:k], start=1):
        print(
            f"{idx:>4}  {r['guess']:<8}  {r['exp_remaining']:>8.2f}  {r['entropy']:>8.3f}  {int(r['worst_case']):>5}  {int(r['partitions']):>6}"
        )


def write_csv(results: List[Dict[str, float]], path: str | Path) -> None:
    pd.DataFrame(results, columns=COLUMNS).to_csv(path, index=False)
