"""
Pipeline entry: raw document text in, study material out
"""
from __future__ import annotations

import random
from typing import Optional

import structlog

from docbrain.config import get_settings
from docbrain.models import ExtractionResult, ExtractionStats
from docbrain.services.logging import log_performance
from docbrain.services.nlp.dedup import DedupContext
from docbrain.services.nlp.flashcards import generate_flashcards
from docbrain.services.nlp.questions import generate_questions
from docbrain.services.nlp.summary import generate_summary
from docbrain.services.nlp.text import normalize_text, segment_sentences
from docbrain.services.nlp.toolkit import LanguageToolkit, get_toolkit
from docbrain.services.nlp.topics import extract_topics

logger = structlog.get_logger(__name__)


@log_performance("extract_content")
def extract_content(text: str, toolkit: Optional[LanguageToolkit] = None,
                    rng: Optional[random.Random] = None) -> ExtractionResult:
    """Run every extraction stage once over text.

    The toolkit defaults to the process-wide spaCy pipeline and rng to a
    Random seeded from MCQ_SEED (unseeded when unset). The shuffle of MCQ
    options is the only randomness, so a seeded rng makes the whole result
    reproducible.
    """
    cleaned = normalize_text(text)
    toolkit = toolkit or get_toolkit()
    rng = rng or random.Random(get_settings().mcq_seed)

    try:
        sentences = segment_sentences(cleaned, toolkit)
        topics = extract_topics(cleaned, sentences, toolkit) if sentences else []
        summary, sections = generate_summary(sentences)
        questions = generate_questions(sentences, topics, toolkit, rng=rng, context=DedupContext())
    finally:
        # the toolkit is shared across requests
        toolkit.clear_cache()
    flashcards = generate_flashcards(sentences, topics, questions, context=DedupContext())

    logger.info(
        "content_extracted",
        sentences=len(sentences),
        topics=len(topics),
        sections=len(sections),
        questions=len(questions),
        flashcards=len(flashcards),
    )
    return ExtractionResult(
        summary=summary,
        summary_sections=sections,
        questions=questions,
        flashcards=flashcards,
        topics=topics,
        stats=ExtractionStats(
            total_sentences=len(sentences),
            total_questions=len(questions),
            total_flashcards=len(flashcards),
            total_topics=len(topics),
            character_count=len(cleaned),
            word_count=len(cleaned.split()),
        ),
    )
