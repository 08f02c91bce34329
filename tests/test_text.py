"""
Tests for normalization, tokenization and sentence segmentation
"""
import pytest

from docbrain.errors import ExtractionInputError
from docbrain.services.nlp.text import (
    capitalise,
    ensure_period,
    normalize_text,
    segment_sentences,
    strip_period,
    title_case,
    tokenize,
    truncate,
)


class TestNormalizeText:
    def test_line_endings(self):
        """Windows and old Mac line endings become newlines"""
        assert normalize_text("a\r\nb\rc") == "a\nb\nc"

    def test_blank_runs_collapsed(self):
        """Three or more newlines collapse to a paragraph break"""
        assert normalize_text("first\n\n\n\nsecond") == "first\n\nsecond"

    def test_page_numbers_removed(self):
        """Lines holding only a short number are page numbers"""
        cleaned = normalize_text("Intro text\n 42 \nBody text")
        assert "42" not in cleaned
        assert cleaned.startswith("Intro text")
        assert cleaned.endswith("Body text")

    def test_years_kept(self):
        """Four digit lines are content, not page numbers"""
        assert normalize_text("Intro\n2024\nBody") == "Intro\n2024\nBody"

    def test_spaces_collapsed_and_trimmed(self):
        """Runs of spaces and tabs become one space and the ends are trimmed"""
        assert normalize_text("  too    many\t\tspaces  ") == "too many spaces"

    def test_page_number_between_paragraphs(self, ml_text):
        """A page number surrounded by blank lines leaves only whitespace behind"""
        cleaned = normalize_text(ml_text)
        assert "\n12\n" not in cleaned
        assert "predictive model.\n" in cleaned

    def test_non_text_rejected(self):
        """Non-string input raises a TypeError subclass"""
        with pytest.raises(ExtractionInputError):
            normalize_text(None)
        with pytest.raises(TypeError):
            normalize_text(b"bytes are not text")


class TestLexicalHelpers:
    def test_tokenize_drops_stop_words_and_short_words(self):
        """Only lowercased content words longer than two characters survive"""
        assert tokenize("The Machine learns quickly, as we do it") == ["machine", "learns", "quickly"]

    def test_tokenize_keeps_duplicates(self):
        """Repeated words are kept for term frequency"""
        assert tokenize("network network network") == ["network", "network", "network"]

    def test_capitalise_and_title_case(self):
        """First letter only versus every word"""
        assert capitalise("machine learning") == "Machine learning"
        assert title_case("machine learning") == "Machine Learning"
        assert title_case("newton's law") == "Newton's Law"
        assert capitalise("") == ""

    def test_period_helpers(self):
        """Terminal period handling"""
        assert strip_period("A sentence. ") == "A sentence"
        assert ensure_period("A sentence") == "A sentence."
        assert ensure_period("A question?") == "A question?"

    def test_truncate_cuts_at_word_boundary(self):
        """Long text is cut at the last whole word and marked with an ellipsis"""
        text = "alpha beta gamma delta epsilon zeta"
        result = truncate(text, 20)
        assert result == "alpha beta gamma…"
        assert truncate("short", 20) == "short"


class TestSegmentSentences:
    def test_filters_short_and_few_word_sentences(self, toolkit):
        """Fragments under 25 characters or 5 words are dropped"""
        text = "Too short. Supercalifragilisticexpialidocious antidisestablishment. " \
               "This sentence is long enough and has plenty of words."
        sentences = segment_sentences(text, toolkit)
        assert [s.text for s in sentences] == ["This sentence is long enough and has plenty of words."]

    def test_indices_and_tokens(self, toolkit, ml_text):
        """Indices follow document order among qualifying sentences"""
        sentences = segment_sentences(normalize_text(ml_text), toolkit)
        assert len(sentences) == 10
        assert [s.index for s in sentences] == list(range(10))
        assert sentences[0].tokens == ("machine", "learning", "subset", "artificial", "intelligence")

    def test_internal_whitespace_collapsed(self, toolkit):
        """Line breaks inside a sentence become single spaces"""
        sentences = segment_sentences("Neural networks are\ntrained with   many examples.", toolkit)
        assert sentences[0].text == "Neural networks are trained with many examples."

    def test_overlong_sentences_dropped(self, toolkit):
        """Sentences over 800 characters are not content sentences"""
        long_sentence = " ".join(["word"] * 200) + "."
        assert segment_sentences(long_sentence, toolkit) == []

    def test_empty_text(self, toolkit):
        """No text gives no sentences"""
        assert segment_sentences("", toolkit) == []
