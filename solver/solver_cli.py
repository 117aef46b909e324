"""
solver/solver_cli.py

Offline analysis commands over a guess list and an answer list:

  best        exhaustive best single guess (average or worst-case remaining)
  pair        best pair of letter-disjoint guesses
  rank        table of first guesses (expected remaining, entropy, worst, partitions)
  filter      candidates left after given guesses and feedback
  demo        feedback and letter constraints for one guess/answer, cross-checked
  precompute  write the letter-constraint hint database as JSON

Feedback accepted as: 'gybby', '21001', or a Python-like list '[0, 0, 2, 2, 2]'.
Word lists are plain text, one word per line, or a '.csv' with a 'word' column;
--answers-csv takes the answers from the rows of a CSV that have a 'day' value.

Run:
  python -m solver.solver_cli best --guesses io/guesses.txt --answers io/answers.txt
  python -m solver.solver_cli pair --metric worst --workers 8
  python -m solver.solver_cli filter --guess crane --feedback bbygb
"""
from __future__ import annotations

import argparse
import logging
import re
import sys
from typing import List

from starting_word.eval import evaluate_first_guesses, print_top, write_csv
from wordlebits import config
from wordlebits.cache import load_or_build
from wordlebits.candidate_index import CandidateIndex
from wordlebits.constraints import ConstraintDatabase, analyze, constraints_from_history
from wordlebits.data_utils import load_word_lists
from wordlebits.feedback import feedback_names, is_reachable, pattern_to_int, score_pattern
from wordlebits.letter_constraints import write_hint_database
from wordlebits.log import setup_logging
from wordlebits.search import best_guess_pair, best_single_guess

logger = logging.getLogger("wordlebits.cli")


def parse_feedback(s: str, word_length: int = config.WORD_LENGTH) -> List[int]:
    """Parse a feedback string into a list of ints [0/1/2].
    Accepted forms:
      - letters: g/y/b  (green/yellow/black)
      - digits:  2/1/0
      - list:   [0, 1, 2, 2, 0]
    Raises ValueError on invalid input.
    """
    s = s.strip().lower()
    # List-like form: [0,1,2,2,0]
    if s.startswith("[") and s.endswith("]"):
        nums = re.findall(r"[012]", s)
        if len(nums) != word_length:
            raise ValueError(f"list form must contain exactly {word_length} 0/1/2 values")
        return [int(x) for x in nums]

    # letters or digits
    mapping = {"g": 2, "y": 1, "b": 0, "2": 2, "1": 1, "0": 0}
    if len(s) != word_length:
        raise ValueError(f"feedback must be length {word_length} (gybgy / 21001 / [0,1,2,2,0])")
    try:
        return [mapping[ch] for ch in s]
    except KeyError as e:
        raise ValueError("feedback must use only g/y/b or 2/1/0") from e


def _load_index(args) -> CandidateIndex:
    guesses, answers = load_word_lists(args.guesses, args.answers, answers_csv=args.answers_csv, word_length=args.word_length)
    cache_path = None if args.no_cache else (args.cache or config.default_cache_path())
    return load_or_build(
        guesses.words(),
        answers.words(),
        cache_path,
        word_length=args.word_length,
        workers=args.workers,
        progress=args.progress,
    )


def _limited(index: CandidateIndex, limit: int | None) -> List[str] | None:
    return index.guesses[:limit] if limit is not None else None


def cmd_best(args) -> int:
    index = _load_index(args)
    result = best_single_guess(
        index,
        args.metric,
        candidates=_limited(index, args.limit_guesses),
        workers=args.workers,
        backend=args.backend,
        progress=args.progress,
    )
    if result is None:
        print("No answers to score against.")
        return 0
    best = result.guesses[0]
    n = index.n_answers
    print("\n=== RESULTS ===")
    print(f"Best starting word: {best}")
    print(f"{args.metric.capitalize()} remaining words: {result.score:.2f}")
    print(f"Reduction: {100.0 * (1.0 - result.score / n):.1f}%")

    print("\nTesting with example answers:")
    for a in sorted({0, n // 4, n // 2, 3 * n // 4, n - 1}):
        remaining = len(index.lookup(best, a))
        print(f"Answer: {index.answers[a]} -> {remaining} remaining ({100.0 * (1.0 - remaining / n):.1f}% reduction)")
    return 0


def cmd_pair(args) -> int:
    index = _load_index(args)
    result = best_guess_pair(
        index,
        args.metric,
        candidates=_limited(index, args.limit_guesses),
        workers=args.workers,
        backend=args.backend,
        progress=args.progress,
    )
    if result is None:
        print("No letter-disjoint guess pair to score.")
        return 0
    g1, g2 = result.guesses
    print(f"Done, best guess pair: {g1}, {g2} ({args.metric}: {result.score}) after {result.evaluated} pairs")
    return 0


def cmd_rank(args) -> int:
    index = _load_index(args)
    results = evaluate_first_guesses(index, _limited(index, args.limit_guesses), progress=args.progress)
    print_top(results, k=args.top)
    if args.out:
        write_csv(results, args.out)
        print(f"Wrote results to {args.out}")
    return 0


def cmd_filter(args) -> int:
    if len(args.guess) != len(args.feedback):
        raise ValueError("give one --feedback per --guess")
    history = [(g.lower(), parse_feedback(fb, args.word_length)) for g, fb in zip(args.guess, args.feedback)]
    for (g, p), fb in zip(history, args.feedback):
        if not is_reachable(g, p, args.word_length):
            raise ValueError(f"feedback {fb!r} cannot occur for guess {g!r}")
    index = _load_index(args)
    remaining = index.to_words(index.filter([(g, pattern_to_int(p, args.word_length)) for g, p in history]))

    structural = constraints_from_history(history, args.word_length).filter_words(index.answers)
    if sorted(structural) != sorted(remaining):
        logger.error("bitset and structural filters disagree (%d vs %d)", len(remaining), len(structural))
        return 3

    print(f"Remaining candidates: {len(remaining)}")
    if len(remaining) <= args.show:
        print("Candidates:", ", ".join(remaining))
    return 0


def cmd_demo(args) -> int:
    _, answers = load_word_lists(args.guesses, args.answers, answers_csv=args.answers_csv, word_length=args.word_length)
    words = answers.words()
    pattern = score_pattern(args.guess, args.answer, args.word_length)
    print(f"Guess: {args.guess}  Answer: {args.answer}")
    print("Feedback:", " ".join(feedback_names(pattern, args.word_length)))

    analysis = analyze(args.guess, args.answer, args.word_length)
    print(analysis)

    db = ConstraintDatabase.build(words, word_length=args.word_length)
    traditional = sorted(analysis.filter_words(words))
    via_bitsets = sorted(db.filter_words(analysis))
    if traditional == via_bitsets:
        print("Bitset method matches traditional method")
    else:
        print("Bitset method differs from traditional method")
        return 3

    print(f"- Total constraints precomputed: {len(db)}")
    print(f"- Total candidate words: {len(words)}")
    print(f"- Words remaining after filtering: {len(via_bitsets)}")
    if words:
        print(f"- Reduction: {100.0 * (1.0 - len(via_bitsets) / len(words)):.1f}%")
    return 0


def cmd_precompute(args) -> int:
    db = write_hint_database(args.out, args.word_length, args.max_frequency)
    meta = db["metadata"]
    print(f"Wrote {meta['total_hints']} hints to {args.out}")
    print("Frequency distribution:")
    for freq, count in meta["frequency_counts"].items():
        print(f"  Frequency {freq}: {count} hints")
    print(f"Exact frequency: {meta['exact_count']} hints")
    print(f"Minimum frequency: {meta['total_hints'] - meta['exact_count']} hints")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Wordle guess analysis over bitset-indexed candidate sets")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--guesses", default=config.DEFAULT_GUESSES_PATH, help="Guess list, one word per line")
    common.add_argument("--answers", default=config.DEFAULT_ANSWERS_PATH, help="Answer list, one word per line")
    common.add_argument(
        "--answers-csv",
        default=None,
        help="CSV with 'word' and 'day' columns; rows with a day are the answers (overrides --answers)",
    )
    common.add_argument("--word-length", type=int, default=config.WORD_LENGTH)
    common.add_argument("--workers", type=int, default=None, help="Worker threads (default: $WORDLEBITS_WORKERS or CPU count)")
    common.add_argument("--cache", default=None, help="Candidate index cache file (default: $WORDLEBITS_CACHE or io/candidate_index.npz)")
    common.add_argument("--no-cache", action="store_true", help="Always rebuild the candidate index")
    common.add_argument(
        "--progress",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Show progress bars (use --no-progress to disable)",
    )

    search = argparse.ArgumentParser(add_help=False)
    search.add_argument("--backend", choices=config.BACKENDS, default="bitset")
    search.add_argument("--limit-guesses", type=int, default=None, help="Consider only the first K guesses (for speed)")

    p = sub.add_parser("best", parents=[common, search], help="best single guess")
    p.add_argument("--metric", choices=config.METRICS, default="average")
    p.set_defaults(func=cmd_best)

    p = sub.add_parser("pair", parents=[common, search], help="best letter-disjoint guess pair")
    p.add_argument("--metric", choices=config.METRICS, default="worst")
    p.set_defaults(func=cmd_pair)

    p = sub.add_parser("rank", parents=[common], help="rank first guesses")
    p.add_argument("--top", type=int, default=20, help="How many top rows to print")
    p.add_argument("--out", default=None, help="Optional CSV output path")
    p.add_argument("--limit-guesses", type=int, default=None, help="Rank only the first K guesses")
    p.set_defaults(func=cmd_rank)

    p = sub.add_parser("filter", parents=[common], help="candidates consistent with feedback")
    p.add_argument("--guess", action="append", required=True, help="Guess word (repeatable)")
    p.add_argument("--feedback", action="append", required=True, help="Feedback for the matching --guess")
    p.add_argument("--show", type=int, default=20, help="List candidates when at most this many remain")
    p.set_defaults(func=cmd_filter)

    p = sub.add_parser("demo", parents=[common], help="constraint analysis for one guess/answer")
    p.add_argument("--guess", required=True)
    p.add_argument("--answer", required=True)
    p.set_defaults(func=cmd_demo)

    p = sub.add_parser("precompute", help="write the letter-constraint hint database")
    p.add_argument("--out", default=config.DEFAULT_HINTS_PATH)
    p.add_argument("--word-length", type=int, default=config.WORD_LENGTH)
    p.add_argument("--max-frequency", type=int, default=None, help="Frequency cap (default: ceil(L/2))")
    p.set_defaults(func=cmd_precompute)
    return ap


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        return args.func(args)
    except FileNotFoundError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except (ValueError, KeyError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
