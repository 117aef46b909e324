import pytest

from wordlebits.candidate_index import CandidateIndex

# Small vocabulary with duplicate-letter words and letter-disjoint pairs.
WORDS = [
    "crane", "slate", "abide", "speed", "total",
    "allot", "stoal", "bleed", "blend", "pious",
    "dwarf", "mucky", "eerie", "geese", "tally",
]
ANSWERS = ["crane", "slate", "abide", "speed", "total", "stoal", "bleed", "blend", "geese", "tally"]


@pytest.fixture(scope="session")
def words():
    return list(WORDS)


@pytest.fixture(scope="session")
def answers():
    return list(ANSWERS)


@pytest.fixture(scope="session")
def index():
    return CandidateIndex.build(WORDS, ANSWERS, workers=2, chunk_size=4)
