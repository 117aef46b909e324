"""
Feedback codec for Wordle-style games.

Tags per position:
    0 = absent  (letter not in the answer OR over-used relative to answer counts)
    1 = present (letter in the answer but at a different position)
    2 = correct (letter matches the answer at that position)

A pattern is encoded as a base-3 number with position 0 as the most
significant digit, so codes live in [0, 3**L).
"""

from __future__ import annotations

from collections import Counter
from typing import Sequence

import numpy as np

from wordlebits.config import WORD_LENGTH

ABSENT, PRESENT, CORRECT = 0, 1, 2

# Wire contract for any rendering layer.
TAG_NAMES = {ABSENT: "absent", PRESENT: "present", CORRECT: "correct"}


class LengthMismatchError(ValueError):
    """A word does not have the configured word length."""


def _check_word(word: str, name: str, word_length: int) -> None:
    if not isinstance(word, str):
        raise TypeError(f"{name} must be a string")
    if len(word) != word_length:
        raise LengthMismatchError(
            f"{name} {word!r} has length {len(word)}, expected {word_length}"
        )
    if not word.isalpha() or not word.isascii():
        raise ValueError(f"{name} must be alphabetic: {word!r}")
    if not word.islower():
        raise ValueError(f"{name} must be lowercase: {word!r}")


def score_pattern(guess: str, answer: str, word_length: int = WORD_LENGTH) -> list[int]:
    """
    Compute the feedback for `guess` against `answer`.

    Duplicate handling (two-pass rule)
    ----------------------------------
    1) Exact matches are tagged correct first and each consumes one
       occurrence of its letter from the answer's pool.
    2) Remaining positions are visited left to right: a letter still available
       in the pool is tagged present (and consumed), otherwise absent.

    Raises
    ------
    LengthMismatchError, ValueError, TypeError
    """
    _check_word(guess, "guess", word_length)
    _check_word(answer, "answer", word_length)

    pattern = [ABSENT] * word_length
    remaining = Counter(answer)

    # Pass 1: correct letters take priority
    for i, (g, a) in enumerate(zip(guess, answer)):
        if g == a:
            pattern[i] = CORRECT
            remaining[g] -= 1

    # Pass 2: present where the pool still has the letter
    for i, g in enumerate(guess):
        if pattern[i] == ABSENT and remaining[g] > 0:
            pattern[i] = PRESENT
            remaining[g] -= 1

    return pattern


def pattern_to_int(pattern: Sequence[int], word_length: int = WORD_LENGTH) -> int:
    """Encode a pattern of tags into its base-3 code (position 0 most significant)."""
    if not isinstance(pattern, (list, tuple)):
        raise TypeError("pattern must be a list or tuple of integers in {0,1,2}")
    if len(pattern) != word_length:
        raise ValueError(f"pattern must have length {word_length}")
    value = 0
    for p in pattern:
        if not isinstance(p, (int, np.integer)) or p not in (0, 1, 2):
            raise ValueError("pattern elements must be integers in {0,1,2}")
        value = value * 3 + int(p)
    return value


def int_to_pattern(code: int, word_length: int = WORD_LENGTH) -> list[int]:
    """Decode a base-3 code back into its tags, most significant digit first."""
    code = int(code)
    if code < 0 or code >= 3 ** word_length:
        raise ValueError(f"code must be in [0, {3 ** word_length}), got {code}")
    digits = [0] * word_length
    for i in range(word_length - 1, -1, -1):
        code, digits[i] = divmod(code, 3)
    return digits


def feedback_names(feedback: int | Sequence[int], word_length: int = WORD_LENGTH) -> list[str]:
    """Map a code or a pattern to its display names ("absent"/"present"/"correct")."""
    if isinstance(feedback, (int, np.integer)):
        pattern = int_to_pattern(int(feedback), word_length)
    else:
        pattern = list(feedback)
        pattern_to_int(pattern, word_length)  # validates
    return [TAG_NAMES[p] for p in pattern]


def is_reachable(guess: str, pattern: Sequence[int], word_length: int = WORD_LENGTH) -> bool:
    """
    True if some answer produces `pattern` for `guess`.

    Two things rule a pattern out. Presents are handed out left to right, so
    a present copy of a letter can never follow an absent copy of the same
    letter. Each present also needs its own copy of the letter in the answer,
    on a non-correct position where the guess has a different letter; the
    presents are matched to such positions one by one.
    """
    _check_word(guess, "guess", word_length)
    pattern_to_int(pattern, word_length)
    free = [i for i in range(word_length) if pattern[i] != CORRECT]
    seen_absent = set()
    needs = []
    for i in free:
        if pattern[i] == ABSENT:
            seen_absent.add(guess[i])
        elif guess[i] in seen_absent:
            return False
        else:
            needs.append(guess[i])

    holder: dict[int, int] = {}

    def place(k: int, tried: set) -> bool:
        for pos in free:
            if guess[pos] == needs[k] or pos in tried:
                continue
            tried.add(pos)
            if pos not in holder or place(holder[pos], tried):
                holder[pos] = k
                return True
        return False

    return all(place(k, set()) for k in range(len(needs)))


def consistent_with(word: str, guess: str, pattern: Sequence[int], word_length: int = WORD_LENGTH) -> bool:
    """
    True if `word`, taken as the answer, would produce `pattern` for `guess`.

    Delegates to `score_pattern` so the two never diverge.
    """
    pattern_to_int(pattern, word_length)
    return score_pattern(guess, word, word_length) == list(pattern)


# ---------- Vectorised codec ----------

def code_dtype(word_length: int = WORD_LENGTH) -> np.dtype:
    """Smallest unsigned dtype able to hold every code for this word length."""
    n_codes = 3 ** word_length
    if n_codes <= 1 << 8:
        return np.dtype(np.uint8)
    if n_codes <= 1 << 16:
        return np.dtype(np.uint16)
    return np.dtype(np.uint32)


def words_to_array(words: Sequence[str], word_length: int = WORD_LENGTH) -> np.ndarray:
    """Convert words to an (n, L) int8 array of letter indices 0..25."""
    arr = np.zeros((len(words), word_length), dtype=np.int8)
    for i, w in enumerate(words):
        _check_word(w, "word", word_length)
        arr[i] = [ord(c) - 97 for c in w]
    return arr


def feedback_matrix(guess_letters: np.ndarray, answer_letters: np.ndarray) -> np.ndarray:
    """
    Codes for every (guess, answer) pair, shape (G, A).

    Inputs come from `words_to_array`. Same two-pass semantics as
    `score_pattern`: a non-correct position i gets present when the answer's
    non-correct occurrences of that letter exceed the presents already handed
    to the same letter at earlier positions.
    """
    G, L = guess_letters.shape
    A = answer_letters.shape[0]
    if answer_letters.shape[1] != L:
        raise LengthMismatchError("guess and answer arrays have different word lengths")

    g = guess_letters[:, None, :]   # (G, 1, L)
    a = answer_letters[None, :, :]  # (1, A, L)
    correct = g == a                # (G, A, L)
    open_answer = ~correct          # answer slots not consumed by a correct tag

    tags = np.where(correct, CORRECT, ABSENT).astype(np.int64)
    present = np.zeros((G, A, L), dtype=bool)
    for i in range(L):
        letter = guess_letters[:, i][:, None, None]                   # (G, 1, 1)
        pool = np.sum((a == letter) & open_answer, axis=2)            # (G, A)
        same_earlier = guess_letters[:, :i] == guess_letters[:, i:i + 1]  # (G, i)
        used = np.sum(present[:, :, :i] & same_earlier[:, None, :], axis=2)
        present[:, :, i] = ~correct[:, :, i] & (pool > used)
    tags[present] = PRESENT

    weights = 3 ** np.arange(L - 1, -1, -1, dtype=np.int64)
    return (tags @ weights).astype(code_dtype(L))
