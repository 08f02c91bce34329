"""
Shared fixtures: a regex-based toolkit so the engine can be tested without a spaCy model
"""
import re

import pytest

from docbrain.middleware.rate_limit import limiter


class RegexToolkit:
    """Minimal LanguageToolkit: punctuation sentence splits, copula subjects as noun phrases"""

    SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")
    SUBJECT_RE = re.compile(
        r"^(?:the\s+|a\s+|an\s+)?(.+?)\s+(?:is|are|works|provides|refers)\b", re.I
    )

    def __init__(self, entities=()):
        self.entities = list(entities)

    def split_sentences(self, text):
        return [s.strip() for s in self.SENTENCE_END_RE.split(text) if s.strip()]

    def noun_phrases(self, text):
        phrases = []
        for sentence in self.split_sentences(text):
            m = self.SUBJECT_RE.match(sentence)
            if m:
                phrases.append(m.group(1))
        return phrases

    def named_entities(self, text):
        found = sorted((text.find(e), e) for e in self.entities if e in text)
        return [e for _, e in found]

    def clear_cache(self):
        pass


ML_TEXT = """Machine learning is a subset of artificial intelligence.
Deep learning is a family of methods based on layered neural networks.
Neural networks are a class of models inspired by the structure of the brain.

Gradient descent works by repeatedly adjusting parameters to reduce the error because smaller errors mean better predictions.
Alan Turing proposed an influential test for machine intelligence in 1950.
Training data is used for fitting the parameters of a predictive model.

12

Google provides large datasets and tools for researchers in the field of machine learning.
Overfitting refers to a model that memorises noise instead of learning general patterns.
A convolutional network consists of stacked filters that detect local features in images.
Researchers normalise inputs in order to speed up the convergence of training.
"""


@pytest.fixture
def toolkit():
    return RegexToolkit(entities=["Alan Turing", "Google"])


@pytest.fixture
def ml_text():
    return ML_TEXT


@pytest.fixture(autouse=True)
def disable_rate_limits():
    limiter.enabled = False
    yield
    limiter.enabled = True
