"""
config.py

Default settings shared by the library and the command line.
Environment variables override the module defaults; CLI flags override both.
"""

from __future__ import annotations

import os
from pathlib import Path

WORD_LENGTH = 5

# Running candidate counts at or below this are treated as solved by one more guess.
SHORT_CIRCUIT = 2

DEFAULT_GUESSES_PATH = "io/guesses.txt"
DEFAULT_ANSWERS_PATH = "io/answers.txt"
DEFAULT_CACHE_PATH = "io/candidate_index.npz"
DEFAULT_HINTS_PATH = "wordle_hints.json"

# Guesses per task when building the candidate index.
DEFAULT_CHUNK_SIZE = 256

METRICS = ("average", "worst")
BACKENDS = ("bitset", "matrix")


def default_workers() -> int:
    """Worker count for thread pools: $WORDLEBITS_WORKERS, else the CPU count."""
    raw = os.environ.get("WORDLEBITS_WORKERS")
    if raw:
        try:
            n = int(raw)
        except ValueError:
            raise ValueError(f"WORDLEBITS_WORKERS must be an integer, got {raw!r}") from None
        if n <= 0:
            raise ValueError("WORDLEBITS_WORKERS must be positive")
        return n
    return os.cpu_count() or 1


def default_cache_path() -> Path:
    return Path(os.environ.get("WORDLEBITS_CACHE", DEFAULT_CACHE_PATH))
