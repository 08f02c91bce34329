"""
Tests for topic extraction
"""
from docbrain.services.nlp.text import normalize_text, segment_sentences
from docbrain.services.nlp.topics import extract_topics, score_noun_phrases, unique_entities

from conftest import RegexToolkit


class TestUniqueEntities:
    def test_case_insensitive_first_wins(self):
        """The first spelling of an entity is kept"""
        assert unique_entities(["Google", "google", " IBM ", "AI", "GOOGLE"]) == ["Google", "IBM"]

    def test_empty(self):
        assert unique_entities([]) == []


class TestScoreNounPhrases:
    def test_frequent_phrase_ranks_first(self):
        """Repeated phrases outscore single mentions"""
        scored = score_noun_phrases(["Data", "data", "model", "it"], sentence_count=10)
        assert [item["phrase"] for item in scored] == ["data", "model"]
        assert scored[0]["count"] == 2

    def test_filters(self):
        """Stop words, short strings and phrases over four words are dropped"""
        scored = score_noun_phrases(
            ["which", "ok", "a very long noun phrase here", "gradient descent"], sentence_count=3
        )
        assert [item["phrase"] for item in scored] == ["gradient descent"]

    def test_ties_keep_discovery_order(self):
        """Equal scores keep the order phrases were first seen"""
        scored = score_noun_phrases(["beta", "alpha", "gamma"], sentence_count=5)
        assert [item["phrase"] for item in scored] == ["beta", "alpha", "gamma"]


class TestExtractTopics:
    def test_entities_then_phrases(self, toolkit, ml_text):
        """Entities come first, noun phrases follow title-cased"""
        text = normalize_text(ml_text)
        topics = extract_topics(text, segment_sentences(text, toolkit), toolkit)
        assert topics[:2] == ["Alan Turing", "Google"]
        assert "Machine Learning" in topics
        assert "Gradient Descent" in topics

    def test_entity_not_repeated_as_phrase(self, toolkit, ml_text):
        """A phrase already present as an entity is skipped"""
        text = normalize_text(ml_text)
        topics = extract_topics(text, segment_sentences(text, toolkit), toolkit)
        assert len({t.lower() for t in topics}) == len(topics)

    def test_at_most_fifteen(self, ml_text):
        """Long entity lists are cut at fifteen topics"""
        entities = [f"Entity{i}" for i in range(30)]
        text = " ".join(entities) + ". " + normalize_text(ml_text)
        toolkit = RegexToolkit(entities=entities)
        topics = extract_topics(text, segment_sentences(text, toolkit), toolkit)
        assert len(topics) == 15
        assert topics[0] == "Entity0"
