import math
from typing import List, Sequence, Tuple

from docbrain.models import SummarySection
from docbrain.services.nlp.text import ensure_period
from docbrain.services.nlp.themes import cluster_sentences, score_sentences
from docbrain.services.nlp.types import Sentence

EMPTY_SUMMARY = "The document did not contain enough text to generate a summary."
SHORT_DOCUMENT_SENTENCES = 5


def sentences_per_section(cluster_size: int) -> int:
    return max(2, min(5, math.ceil(cluster_size * 0.6)))


def generate_summary(sentences: Sequence[Sentence]) -> Tuple[str, List[SummarySection]]:
    """Build the flat summary text and its themed sections"""
    if not sentences:
        return EMPTY_SUMMARY, []

    if len(sentences) <= SHORT_DOCUMENT_SENTENCES:
        text = " ".join(ensure_period(s.text) for s in sentences)
        return text, [SummarySection(heading="Overview", content=text)]

    sections: List[SummarySection] = []
    for cluster in cluster_sentences(sentences):
        ranked = sorted(score_sentences(cluster.sentences), key=lambda x: x.score, reverse=True)
        top = ranked[:sentences_per_section(len(cluster.sentences))]
        # narrative order inside the section
        top.sort(key=lambda x: x.sentence.index)
        sections.append(SummarySection(
            heading=cluster.theme,
            content=" ".join(ensure_period(item.sentence.text) for item in top),
        ))

    return "\n\n".join(s.content for s in sections), sections
