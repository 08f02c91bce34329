import re
from typing import List, Set

STEM_WORDS = 6
NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")


def question_stem(question: str) -> str:
    """First six words of the lowercased question with punctuation removed"""
    return " ".join(NON_ALNUM_RE.sub("", question.lower()).split()[:STEM_WORDS])


class DedupContext:
    """Seen keys for one generation run.

    Questions are compared by stem, where a stem that equals, contains or is
    contained in an accepted stem counts as a repeat. Flashcards are compared
    by exact normalized key.
    """

    def __init__(self) -> None:
        self._stems: List[str] = []
        self._keys: Set[str] = set()

    def claim_question(self, question: str) -> bool:
        """Record the question's stem; False when it repeats an accepted one"""
        stem = question_stem(question)
        for existing in self._stems:
            if stem in existing or existing in stem:
                return False
        self._stems.append(stem)
        return True

    def seen(self, key: str) -> bool:
        return key in self._keys

    def claim(self, key: str) -> bool:
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    @property
    def stems(self) -> List[str]:
        return list(self._stems)
