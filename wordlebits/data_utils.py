from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

from wordlebits.config import WORD_LENGTH
from wordlebits.vocab import WordVocab

logger = logging.getLogger(__name__)


def read_word_list(path: str | Path, *, word_length: int = WORD_LENGTH) -> WordVocab:
    """A '.csv' file is read from its 'word' column, anything else as plain text."""
    if Path(path).suffix.lower() == ".csv":
        return WordVocab.from_csv(path, word_length=word_length)
    return WordVocab.from_text(path, word_length=word_length)


def load_answer_vocab(csv_path: str | Path, *, word_length: int = WORD_LENGTH) -> WordVocab:
    """
    Load only the official answers from a CSV with 'word' and 'day' columns.
    Keeps rows where 'day' is not null.
    """
    return WordVocab.from_csv(csv_path, word_length=word_length, require="day")


def load_word_lists(
    guesses_path: str | Path,
    answers_path: str | Path | None = None,
    *,
    answers_csv: str | Path | None = None,
    word_length: int = WORD_LENGTH,
) -> Tuple[WordVocab, WordVocab]:
    """
    Load the guess and answer vocabularies.

    `answers_csv`, when given, takes the place of `answers_path`: the answers
    are then the rows of that CSV with a 'day' value.

    A missing file raises FileNotFoundError; there is no fallback source.
    Answers that are not valid guesses are allowed but logged.
    """
    guesses = read_word_list(guesses_path, word_length=word_length)
    if answers_csv is not None:
        answers = load_answer_vocab(answers_csv, word_length=word_length)
    elif answers_path is not None:
        answers = read_word_list(answers_path, word_length=word_length)
    else:
        raise ValueError("need an answer list or an answer CSV")
    missing = [w for w in answers if w not in guesses]
    if missing:
        logger.warning("%d answers are not in the guess list (e.g. %s)", len(missing), missing[0])
    logger.info("Loaded %d guesses and %d answers", len(guesses), len(answers))
    return guesses, answers
