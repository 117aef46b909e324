from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import pandas as pd

from wordlebits.config import WORD_LENGTH
from wordlebits.feedback import LengthMismatchError

logger = logging.getLogger(__name__)


class WordVocab:
    def __init__(self, words: List[str], word_length: int = WORD_LENGTH) -> None:
        if not isinstance(words, list):
            raise TypeError("`words` must be a list of strings")
        if not words:
            raise ValueError("no words provided")
        if not all(isinstance(w, str) for w in words):
            raise TypeError("all items in `words` must be str")
        for w in words:
            if len(w) != word_length:
                raise LengthMismatchError(f"word {w!r} has length {len(w)}, expected {word_length}")
            if not w.isascii() or not w.isalpha() or not w.islower():
                raise ValueError(f"word {w!r} must be lowercase a-z")

        # Enforce uniqueness (first occurrence policy is handled by the loaders)
        if len(set(words)) != len(words):
            raise ValueError("duplicate words detected; input to WordVocab must be deduplicated")

        self.word_length = word_length
        self._words: List[str] = list(words)
        self._index = {w: i for i, w in enumerate(self._words)}

    # ---------- Construction helpers ----------

    @classmethod
    def from_text(cls, path: str | Path, *, word_length: int = WORD_LENGTH, dedupe: bool = True) -> "WordVocab":
        """
        Load a plain text list, one word per line.

        Lines are stripped and blank lines skipped. Every remaining word must
        have `word_length` letters; a wrong length is a data error, not
        something to filter out silently.

        Raises
        ------
        FileNotFoundError, LengthMismatchError, ValueError
        """
        words: List[str] = []
        seen = set()
        with open(path, encoding="utf-8") as f:
            for line in f:
                w = line.strip()
                if not w:
                    continue
                if dedupe:
                    if w in seen:
                        continue
                    seen.add(w)
                words.append(w)
        logger.debug("read %d words from %s", len(words), path)
        return cls(words, word_length)

    @classmethod
    def from_csv(
        cls,
        path: str | Path,
        column: str = "word",
        *,
        word_length: int = WORD_LENGTH,
        require: str | None = None,
    ) -> "WordVocab":
        """
        Load the words of one CSV column.

        Values are stripped and lowercased. Rows of the wrong length or with
        non-letters are skipped and later duplicates dropped. With `require`,
        only rows where that column is filled in are kept (e.g. the 'day'
        column of an answer history).

        Raises
        ------
        FileNotFoundError, KeyError, ValueError
        """
        df = pd.read_csv(path)
        missing = [c for c in (column, require) if c is not None and c not in df.columns]
        if missing:
            raise KeyError(f"column(s) {missing} not found in {path}")
        if require is not None:
            df = df[df[require].notna()]

        words = df[column].dropna().astype(str).str.strip().str.lower()
        words = words[(words.str.len() == word_length) & words.str.fullmatch(r"[a-z]+")]
        words = words.drop_duplicates().tolist()
        if not words:
            raise ValueError(f"no {word_length}-letter words in column {column!r} of {path}")
        logger.debug("read %d words from %s", len(words), path)
        return cls(words, word_length)

    # ---------- Basic protocol ----------

    def __len__(self) -> int:
        """Number of words in the vocabulary."""
        return len(self._words)

    def __iter__(self):
        return iter(self._words)

    def words(self) -> List[str]:
        """Return a copy of the internal word list (to avoid external mutation)."""
        return list(self._words)

    def contains(self, word: str) -> bool:
        """Return True iff `word` exists in the vocabulary (case-sensitive)."""
        return word in self._index

    __contains__ = contains

    def index_of(self, word: str) -> int:
        """Return the index for `word`; raise KeyError if unknown."""
        try:
            return self._index[word]
        except KeyError:
            raise KeyError(f"unknown word: {word}") from None

    def word_at(self, idx: int) -> str:
        """Return the word at position `idx`; raise IndexError if out of bounds."""
        if idx < 0 or idx >= len(self._words):
            raise IndexError(f"index out of range: {idx}")
        return self._words[idx]

    def to_indices(self, words: List[str]) -> List[int]:
        """Convert a list of words to indices; raise KeyError on the first missing."""
        return [self.index_of(w) for w in words]

    def to_words(self, indices) -> List[str]:
        """Convert indices to words; raise IndexError on the first invalid index."""
        return [self.word_at(int(i)) for i in indices]
