"""
letter_constraints.py

Per-letter knowledge implied by feedback, and the exhaustive enumeration of
every valid descriptor for a word length. The enumeration does not depend on
any word list, so it can be precomputed once and shipped as a hint database.
"""

from __future__ import annotations

import hashlib
import json
import logging
import math
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

from wordlebits.config import WORD_LENGTH

logger = logging.getLogger(__name__)

HINT_DB_VERSION = "1.0"


@dataclass(frozen=True)
class LetterConstraint:
    """
    What is known about one letter of the answer.

    must_positions : positions that hold the letter
    cant_positions : positions that do not hold the letter
    frequency      : occurrence count (exact if `exact`, else a lower bound)
    """

    must_positions: frozenset = frozenset()
    cant_positions: frozenset = frozenset()
    frequency: int = 0
    exact: bool = False

    def __post_init__(self) -> None:
        # normalise any iterable of positions so equality stays structural
        object.__setattr__(self, "must_positions", frozenset(self.must_positions))
        object.__setattr__(self, "cant_positions", frozenset(self.cant_positions))

    def is_valid(self, word_length: int = WORD_LENGTH) -> bool:
        if self.frequency < 0:
            return False
        if self.frequency == 0 and (self.must_positions or not self.exact):
            return False
        if len(self.must_positions) > self.frequency:
            return False
        if self.must_positions & self.cant_positions:
            return False
        return all(0 <= p < word_length for p in self.must_positions | self.cant_positions)

    @property
    def in_target(self) -> bool:
        return self.frequency > 0

    def canonical(self) -> str:
        must = " ".join(str(p) for p in sorted(self.must_positions))
        cant = " ".join(str(p) for p in sorted(self.cant_positions))
        exact = "true" if self.exact else "false"
        return f"must:[{must}],cant:[{cant}],freq:{self.frequency},exact:{exact}"

    def digest(self) -> str:
        """Stable content-derived identifier (first 8 bytes of sha256, hex)."""
        return hashlib.sha256(self.canonical().encode("utf-8")).hexdigest()[:16]

    def merge(self, other: "LetterConstraint") -> "LetterConstraint":
        """
        Conjunction of two descriptors about the same letter.

        Raises ValueError when no word can satisfy both.
        """
        must = self.must_positions | other.must_positions
        cant = self.cant_positions | other.cant_positions
        if must & cant:
            raise ValueError("contradictory constraints: a position is both required and excluded")

        if self.exact and other.exact:
            if self.frequency != other.frequency:
                raise ValueError("contradictory constraints: different exact frequencies")
            frequency, exact = self.frequency, True
        elif self.exact or other.exact:
            fixed, bound = (self, other) if self.exact else (other, self)
            if fixed.frequency < bound.frequency:
                raise ValueError("contradictory constraints: exact frequency below lower bound")
            frequency, exact = fixed.frequency, True
        else:
            frequency, exact = max(self.frequency, other.frequency, len(must)), False

        if len(must) > frequency:
            raise ValueError("contradictory constraints: more required positions than occurrences")
        return LetterConstraint(must, cant, frequency, exact)

    def to_dict(self) -> dict:
        return {
            "must_be_in_positions": sorted(self.must_positions),
            "cant_be_in_positions": sorted(self.cant_positions),
            "frequency": self.frequency,
            "frequency_is_exact": self.exact,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "LetterConstraint":
        return cls(
            frozenset(d.get("must_be_in_positions") or ()),
            frozenset(d.get("cant_be_in_positions") or ()),
            int(d["frequency"]),
            bool(d["frequency_is_exact"]),
        )


def default_max_frequency(word_length: int = WORD_LENGTH) -> int:
    """Frequency cap for the enumeration: ceil(L / 2), i.e. 3 for five-letter words."""
    if word_length <= 0:
        raise ValueError("word_length must be positive")
    return math.ceil(word_length / 2)


def max_letter_frequency(words: Iterable[str]) -> int:
    """Largest number of times any single letter occurs in any one word."""
    best = 0
    for w in words:
        if w:
            best = max(best, max(Counter(w).values()))
    return best


def _positions(bits: int, word_length: int) -> frozenset:
    return frozenset(p for p in range(word_length) if bits & (1 << p))


def generate_all_letter_constraints(
    word_length: int = WORD_LENGTH,
    max_frequency: int | None = None,
) -> List[LetterConstraint]:
    """
    Every valid descriptor for `word_length` with frequency <= `max_frequency`.

    Order is deterministic (frequency, exactness, must mask, cant mask) and
    structurally equal descriptors appear once.
    """
    if max_frequency is None:
        max_frequency = default_max_frequency(word_length)
    if max_frequency < 0:
        raise ValueError("max_frequency must be non-negative")

    out: List[LetterConstraint] = []
    seen = set()
    n_masks = 1 << word_length
    for freq in range(max_frequency + 1):
        for exact in (False, True):
            for must_bits in range(n_masks):
                if bin(must_bits).count("1") > freq:
                    continue
                must = _positions(must_bits, word_length)
                for cant_bits in range(n_masks):
                    if must_bits & cant_bits:
                        continue
                    info = LetterConstraint(must, _positions(cant_bits, word_length), freq, exact)
                    if info.is_valid(word_length) and info not in seen:
                        seen.add(info)
                        out.append(info)
    return out


def build_hint_database(word_length: int = WORD_LENGTH, max_frequency: int | None = None) -> dict:
    """JSON-ready database of all descriptors plus digest -> position map."""
    if max_frequency is None:
        max_frequency = default_max_frequency(word_length)
    infos = generate_all_letter_constraints(word_length, max_frequency)
    logger.info("Generated %d valid letter constraints", len(infos))

    hash_to_index = {}
    for i, info in enumerate(infos):
        hash_to_index.setdefault(info.digest(), i)
    if len(hash_to_index) != len(infos):
        logger.warning("digest collisions detected: %d descriptors, %d digests", len(infos), len(hash_to_index))
    else:
        logger.info("No digest collisions - %d unique digests", len(hash_to_index))

    freq_counts = Counter(info.frequency for info in infos)
    return {
        "letter_constraints": [info.to_dict() for info in infos],
        "hash_to_index": hash_to_index,
        "metadata": {
            "version": HINT_DB_VERSION,
            "description": "Precomputed Wordle letter constraints",
            "total_hints": len(infos),
            "word_length": word_length,
            "max_frequency": max_frequency,
            "frequency_counts": {str(k): freq_counts[k] for k in sorted(freq_counts)},
            "exact_count": sum(1 for info in infos if info.exact),
        },
    }


def write_hint_database(path: str | Path, word_length: int = WORD_LENGTH, max_frequency: int | None = None) -> dict:
    db = build_hint_database(word_length, max_frequency)
    path = Path(path)
    path.write_text(json.dumps(db, indent=2), encoding="utf-8")
    logger.info("Wrote %d hints to %s", db["metadata"]["total_hints"], path)
    return db


def read_hint_database(path: str | Path) -> List[LetterConstraint]:
    with open(path, encoding="utf-8") as f:
        db = json.load(f)
    return [LetterConstraint.from_dict(d) for d in db["letter_constraints"]]
