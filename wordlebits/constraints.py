"""
constraints.py

Structural constraint engine: derives per-letter constraints from feedback
and tests words against them directly. It is the independent reference for
the bitset filtering in candidate_index.py; the two must always agree.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np

from wordlebits.bitset import Bitset
from wordlebits.config import WORD_LENGTH
from wordlebits.feedback import CORRECT, PRESENT, pattern_to_int, score_pattern
from wordlebits.letter_constraints import LetterConstraint, generate_all_letter_constraints

logger = logging.getLogger(__name__)

History = List[Tuple[str, List[int]]]


class WordAnalysis:
    """Letter constraints implied by one or more (guess, pattern) observations."""

    def __init__(self, letter_infos: Dict[str, LetterConstraint], guesses: Sequence[str] = ()) -> None:
        self.letter_infos = dict(letter_infos)
        self.guesses = list(guesses)

    def satisfied_by(self, word: str) -> bool:
        return word_satisfies(word, self.letter_infos)

    def filter_words(self, candidates: Iterable[str]) -> List[str]:
        return filter_words(candidates, self.letter_infos)

    def __str__(self) -> str:
        lines = [f"Guesses: {', '.join(self.guesses)}", "Letter constraints:"]
        for letter in sorted(self.letter_infos):
            info = self.letter_infos[letter]
            if not info.in_target:
                lines.append(f"  {letter}: not in target word")
                continue
            freq = str(info.frequency) if info.exact else f"at least {info.frequency}"
            line = f"  {letter}: appears {freq} times"
            if info.must_positions:
                line += f" | must be in positions: {sorted(info.must_positions)}"
            if info.cant_positions:
                line += f" | can't be in positions: {sorted(info.cant_positions)}"
            lines.append(line)
        return "\n".join(lines)


def constraints_from_feedback(guess: str, pattern: Sequence[int], word_length: int = WORD_LENGTH) -> Dict[str, LetterConstraint]:
    """
    One LetterConstraint per distinct letter of `guess`.

    - correct positions -> must_positions
    - present/absent positions of a letter that is in the answer -> cant_positions
    - any absent tag caps the frequency at the number of correct+present tags
    - a letter with only absent tags gets frequency 0 (exact)
    """
    pattern_to_int(pattern, word_length)
    if len(guess) != word_length:
        raise ValueError(f"guess must have length {word_length}")

    must: Dict[str, set] = {}
    cant: Dict[str, set] = {}
    hits: Counter = Counter()
    saw_absent = set()
    for i, (ch, p) in enumerate(zip(guess, pattern)):
        must.setdefault(ch, set())
        cant.setdefault(ch, set())
        if p == CORRECT:
            must[ch].add(i)
            hits[ch] += 1
        elif p == PRESENT:
            cant[ch].add(i)
            hits[ch] += 1
        else:
            cant[ch].add(i)
            saw_absent.add(ch)

    out: Dict[str, LetterConstraint] = {}
    for ch in must:
        k = hits[ch]
        if k == 0:
            out[ch] = LetterConstraint(frozenset(), frozenset(), 0, True)
        else:
            out[ch] = LetterConstraint(frozenset(must[ch]), frozenset(cant[ch]), k, ch in saw_absent)
    return out


def analyze(guess: str, answer: str, word_length: int = WORD_LENGTH) -> WordAnalysis:
    """Constraints a player learns by playing `guess` when the answer is `answer`."""
    pattern = score_pattern(guess, answer, word_length)
    return WordAnalysis(constraints_from_feedback(guess, pattern, word_length), [guess])


def constraints_from_history(history: History, word_length: int = WORD_LENGTH) -> WordAnalysis:
    """Merge the constraints of every (guess, pattern) pair; raises ValueError if they contradict."""
    merged: Dict[str, LetterConstraint] = {}
    for guess, pattern in history:
        for ch, info in constraints_from_feedback(guess, pattern, word_length).items():
            merged[ch] = merged[ch].merge(info) if ch in merged else info
    return WordAnalysis(merged, [g for g, _ in history])


def letter_satisfies(word: str, letter: str, info: LetterConstraint) -> bool:
    freq = word.count(letter)
    if info.exact or info.frequency == 0:
        if freq != info.frequency:
            return False
    elif freq < info.frequency:
        return False
    for pos in info.must_positions:
        if word[pos] != letter:
            return False
    for pos in info.cant_positions:
        if word[pos] == letter:
            return False
    return True


def word_satisfies(word: str, letter_infos: Dict[str, LetterConstraint]) -> bool:
    return all(letter_satisfies(word, letter, info) for letter, info in letter_infos.items())


def filter_words(candidates: Iterable[str], letter_infos: Dict[str, LetterConstraint]) -> List[str]:
    return [w for w in candidates if word_satisfies(w, letter_infos)]


def filter_candidates(words: List[str], history: History) -> List[str]:
    """
    Keep only candidates that match *all* (guess, pattern) pairs in history.
    Uses score_pattern directly, so it serves as the brute-force reference.
    """
    candidates = []
    for w in words:
        ok = True
        for guess, patt in history:
            if score_pattern(guess, w, len(w)) != list(patt):
                ok = False
                break
        if ok:
            candidates.append(w)
    return candidates


def average_remaining_structural(guess: str, answers: List[str], word_length: int = WORD_LENGTH) -> float:
    """
    Average number of answers left after `guess`, computed the slow way
    (analyze + filter for every answer). Used to cross-check the search engine.
    """
    if not answers:
        return float("inf")
    total = 0
    for answer in answers:
        total += len(analyze(guess, answer, word_length).filter_words(answers))
    return total / len(answers)


class ConstraintDatabase:
    """
    Precomputed bitsets, one per (letter, LetterConstraint), over a fixed word list.

    Each bitset depends only on its own letter, so filtering by an analysis is
    an intersection of one bitset per letter.
    """

    def __init__(self, words: List[str], bitsets: Dict[Tuple[str, LetterConstraint], Bitset], word_length: int = WORD_LENGTH) -> None:
        self.words = list(words)
        self.word_length = word_length
        self._bitsets = dict(bitsets)
        self._masks, self._counts = _letter_tables(self.words, word_length)

    @classmethod
    def build(
        cls,
        words: List[str],
        constraints: List[LetterConstraint] | None = None,
        *,
        word_length: int = WORD_LENGTH,
        letters: str = "abcdefghijklmnopqrstuvwxyz",
    ) -> "ConstraintDatabase":
        if constraints is None:
            constraints = generate_all_letter_constraints(word_length)
        db = cls(words, {}, word_length)
        for letter in letters:
            for info in constraints:
                key = (letter, info)
                if key not in db._bitsets:
                    db._bitsets[key] = db._compute(letter, info)
        logger.info("Built %d constraint bitsets over %d words", len(db._bitsets), len(words))
        return db

    def __len__(self) -> int:
        return len(self._bitsets)

    def _compute(self, letter: str, info: LetterConstraint) -> Bitset:
        li = ord(letter) - 97
        masks = self._masks[:, li]
        counts = self._counts[:, li]
        must = sum(1 << p for p in info.must_positions)
        cant = sum(1 << p for p in info.cant_positions)
        ok = ((masks & must) == must) & ((masks & cant) == 0)
        if info.exact or info.frequency == 0:
            ok &= counts == info.frequency
        else:
            ok &= counts >= info.frequency
        return Bitset.from_indices(len(self.words), np.flatnonzero(ok))

    def lookup(self, letter: str, info: LetterConstraint) -> Bitset:
        """Bitset for (letter, info); descriptors outside the enumeration are computed and kept."""
        key = (letter, info)
        bs = self._bitsets.get(key)
        if bs is None:
            logger.debug("constraint %s for %r not precomputed, computing", info.canonical(), letter)
            bs = self._compute(letter, info)
            self._bitsets[key] = bs
        return bs

    def filter(self, analysis: WordAnalysis) -> Bitset:
        result = Bitset.full(len(self.words))
        for letter, info in analysis.letter_infos.items():
            result = result & self.lookup(letter, info)
        return result

    def filter_words(self, analysis: WordAnalysis) -> List[str]:
        return [self.words[i] for i in self.filter(analysis)]


def _letter_tables(words: List[str], word_length: int) -> Tuple[np.ndarray, np.ndarray]:
    """Per word and letter: bitmask of positions holding the letter, and its count."""
    masks = np.zeros((len(words), 26), dtype=np.int64)
    counts = np.zeros((len(words), 26), dtype=np.int64)
    for i, w in enumerate(words):
        if len(w) != word_length:
            raise ValueError(f"word {w!r} does not have length {word_length}")
        for pos, ch in enumerate(w):
            li = ord(ch) - 97
            masks[i, li] |= 1 << pos
            counts[i, li] += 1
    return masks, counts
