"""Internal value types shared by the extraction stages."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Sentence:
    """A qualifying sentence with its document position and content tokens."""

    text: str
    index: int
    tokens: Tuple[str, ...]


@dataclass(frozen=True)
class ThemeCluster:
    """Sentences grouped under a shared vocabulary term."""

    theme: str
    sentences: Tuple[Sentence, ...]


@dataclass(frozen=True)
class ScoredSentence:
    sentence: Sentence
    score: float
