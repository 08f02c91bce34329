import math
from typing import Dict, List, Sequence

from docbrain.services.nlp.text import capitalise, is_stop_word, title_case
from docbrain.services.nlp.toolkit import LanguageToolkit
from docbrain.services.nlp.types import Sentence

MAX_TOPICS = 15
MAX_TOPIC_CANDIDATES = 20
MAX_PHRASE_WORDS = 4


def unique_entities(entities: Sequence[str]) -> List[str]:
    """Trimmed entity strings longer than two characters, first spelling wins"""
    seen = set()
    out = []
    for e in entities:
        e = e.strip()
        key = e.lower()
        if len(e) > 2 and key not in seen:
            seen.add(key)
            out.append(e)
    return out


def score_noun_phrases(noun_phrases: Sequence[str], sentence_count: int) -> List[Dict]:
    freq: Dict[str, int] = {}
    for np_ in noun_phrases:
        key = np_.lower().strip()
        if len(key) > 2 and len(key.split()) <= MAX_PHRASE_WORDS and not is_stop_word(key):
            freq[key] = freq.get(key, 0) + 1

    total = sum(freq.values()) or 1
    scored = [
        {
            "phrase": phrase,
            "count": count,
            "score": (count / total) * math.log(1 + sentence_count / (count + 1)),
        }
        for phrase, count in freq.items()
    ]
    scored.sort(key=lambda x: x["score"], reverse=True)
    return scored


def extract_topics(text: str, sentences: Sequence[Sentence], toolkit: LanguageToolkit) -> List[str]:
    """Entities first in discovery order, then the most salient noun phrases."""
    taken = set()
    result: List[str] = []
    for entity in unique_entities(toolkit.named_entities(text)):
        taken.add(entity.lower())
        result.append(capitalise(entity))

    for item in score_noun_phrases(toolkit.noun_phrases(text), len(sentences)):
        if len(result) >= MAX_TOPIC_CANDIDATES:
            break
        if item["phrase"] not in taken:
            taken.add(item["phrase"])
            result.append(title_case(item["phrase"]))

    return result[:MAX_TOPICS]
