"""
Narrow NLP capability used by the extraction engine, with a spaCy implementation
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Protocol

import structlog

from docbrain.config import get_settings
from docbrain.errors import ToolkitUnavailableError

logger = structlog.get_logger(__name__)

# spaCy labels treated as topic-bearing entities
ENTITY_LABELS = frozenset({
    "PERSON", "NORP", "FAC", "ORG", "GPE", "LOC",
    "PRODUCT", "EVENT", "WORK_OF_ART", "LAW",
})
LEADING_DROP_POS = frozenset({"DET", "PRON"})


class LanguageToolkit(Protocol):
    def split_sentences(self, text: str) -> List[str]: ...

    def noun_phrases(self, text: str) -> List[str]: ...

    def named_entities(self, text: str) -> List[str]: ...

    def clear_cache(self) -> None: ...


class SpacyToolkit:
    """LanguageToolkit backed by a loaded spaCy pipeline."""

    def __init__(self, nlp, parse_cache_size: int = 4) -> None:
        self._nlp = nlp
        # topic extraction asks for phrases and entities of the same text back to back
        self._parse = lru_cache(maxsize=parse_cache_size)(self._nlp)

    @classmethod
    def load(cls, model_name: str, max_length: int | None = None) -> "SpacyToolkit":
        try:
            import spacy

            nlp = spacy.load(model_name)
        except (ImportError, OSError) as e:
            raise ToolkitUnavailableError(f"spaCy model '{model_name}' could not be loaded: {e}") from e
        if max_length:
            nlp.max_length = max(nlp.max_length, max_length)
        logger.info("spacy_model_loaded", model=model_name, pipes=list(nlp.pipe_names))
        return cls(nlp)

    def split_sentences(self, text: str) -> List[str]:
        if not text:
            return []
        return [s.text.strip() for s in self._parse(text).sents if s.text.strip()]

    def noun_phrases(self, text: str) -> List[str]:
        if not text:
            return []
        phrases = []
        for chunk in self._parse(text).noun_chunks:
            tokens = list(chunk)
            while tokens and tokens[0].pos_ in LEADING_DROP_POS:
                tokens = tokens[1:]
            if tokens:
                phrases.append(chunk.doc[tokens[0].i:tokens[-1].i + 1].text)
        return phrases

    def named_entities(self, text: str) -> List[str]:
        if not text:
            return []
        return [ent.text for ent in self._parse(text).ents if ent.label_ in ENTITY_LABELS]

    def clear_cache(self) -> None:
        """Forget the parses cached during one extraction"""
        self._parse.cache_clear()


@lru_cache(maxsize=1)
def get_toolkit() -> SpacyToolkit:
    """Process-wide toolkit, loaded on first use"""
    settings = get_settings()
    return SpacyToolkit.load(settings.spacy_model, max_length=settings.max_text_chars)
