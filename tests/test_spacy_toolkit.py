"""
Tests for the spaCy toolkit; tests needing a real model skip when it is not installed
"""
import random
import re
from types import SimpleNamespace

import pytest

from docbrain.errors import ToolkitUnavailableError
from docbrain.services.nlp.extractor import extract_content
from docbrain.services.nlp.toolkit import SpacyToolkit

from conftest import ML_TEXT


def fake_pipeline(text):
    """Stands in for a loaded spaCy pipeline: punctuation sentences, no chunks or entities"""
    sents = [SimpleNamespace(text=s) for s in re.split(r"(?<=[.!?])\s+", text)]
    return SimpleNamespace(sents=sents, noun_chunks=[], ents=[])


@pytest.fixture(scope="module")
def spacy_toolkit():
    try:
        return SpacyToolkit.load("en_core_web_sm")
    except ToolkitUnavailableError as e:
        pytest.skip(str(e))


class TestSpacyToolkit:
    def test_missing_model(self):
        with pytest.raises(ToolkitUnavailableError):
            SpacyToolkit.load("no_such_model_xx")

    def test_split_sentences(self, spacy_toolkit):
        sentences = spacy_toolkit.split_sentences(
            "Machine learning is a subset of artificial intelligence. It improves with experience."
        )
        assert len(sentences) == 2

    def test_noun_phrases_drop_determiners(self, spacy_toolkit):
        phrases = spacy_toolkit.noun_phrases("The neural network learns a representation.")
        assert "neural network" in phrases
        assert not any(p.lower().startswith("the ") for p in phrases)

    def test_named_entities(self, spacy_toolkit):
        entities = spacy_toolkit.named_entities("Alan Turing worked in Manchester for many years.")
        assert "Alan Turing" in entities

    def test_empty_text(self, spacy_toolkit):
        assert spacy_toolkit.split_sentences("") == []
        assert spacy_toolkit.noun_phrases("") == []
        assert spacy_toolkit.named_entities("") == []

    def test_full_extraction(self, spacy_toolkit):
        result = extract_content(ML_TEXT, toolkit=spacy_toolkit, rng=random.Random(2))
        assert result.stats.total_sentences > 0
        assert result.stats.total_questions == len(result.questions)
        assert len(result.topics) <= 15


class TestParseCache:
    def test_repeated_text_parsed_once(self):
        toolkit = SpacyToolkit(fake_pipeline)
        toolkit.noun_phrases("Entropy is a measure of disorder.")
        toolkit.named_entities("Entropy is a measure of disorder.")
        info = toolkit._parse.cache_info()
        assert (info.hits, info.misses) == (1, 1)

    def test_cache_empty_after_extraction(self):
        """Parsed documents are not kept on the shared toolkit between calls"""
        toolkit = SpacyToolkit(fake_pipeline)
        result = extract_content(ML_TEXT, toolkit=toolkit, rng=random.Random(1))
        assert result.stats.total_sentences > 0
        assert toolkit._parse.cache_info().currsize == 0
