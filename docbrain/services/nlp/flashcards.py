import re
from typing import List, Optional, Sequence

from docbrain.models import Flashcard, Question, difficulty_rank
from docbrain.services.nlp.dedup import DedupContext
from docbrain.services.nlp.text import capitalise, ensure_period, lower_first, strip_period, truncate
from docbrain.services.nlp.types import Sentence

DEFINITION_CARD_LIMIT = 20
TOPIC_CARD_LIMIT = 30
PROCESS_CARD_LIMIT = 35
TOTAL_CARD_LIMIT = 40
QUESTION_CARD_SOURCE = 8
BACK_MAX_CHARS = 220
QUESTION_KEY_CHARS = 30

DEFINITION_CARD_RE = re.compile(r"^(.{3,60}?)\s+(?:is|are)\s+(?:a|an|the)\s+(.{15,}?)\.?\s*$", re.I)
BEST_SENTENCE_RE = re.compile(r"\b(?:is a|are a|refers? to|defined as)\b", re.I)
PROCESS_CUE_RE = re.compile(r"\b(?:used\s+(?:for|to|in)|works?\s+by|process|method)\b", re.I)
CAUSAL_CUE_RE = re.compile(r"\b(?:because|therefore|in\s+order\s+to)\b", re.I)
CARD_SUBJECT_RE = re.compile(r"^(.{5,50}?)\s+(?:is|are|can|works?|provides?|enables?)", re.I)

CATEGORY_CUES = (
    ("definition", re.compile(r"\b(?:is a|are a|refers? to|defined as|known as|means)\b", re.I)),
    ("process", re.compile(r"\b(?:process|step|method|procedure|technique|algorithm|approach)\b", re.I)),
    ("comparison", re.compile(r"\b(?:compared|unlike|whereas|difference|versus|vs)\b", re.I)),
    ("example", re.compile(r"\b(?:example|instance|such as|e\.g\.|for instance)\b", re.I)),
    ("key concept", re.compile(r"\b(?:important|significant|critical|essential|key|fundamental)\b", re.I)),
)
BASIC_CUE_RE = re.compile(r"\b(?:is a|are a|means|defined as)\b", re.I)
ADVANCED_CUE_RE = re.compile(r"\b(?:because|therefore|consequently|results? in)\b", re.I)


def condense(sentence: str, term: str) -> str:
    """The part of the sentence that defines term, or the truncated sentence"""
    safe = re.escape(term.lower())
    patterns = (
        re.compile(safe + r"\s+(?:is|are)\s+(?:a|an|the)?\s*(.+?)\s*\.?\s*$", re.I),
        re.compile(safe + r"\s+(?:refers?\s+to|means|is defined as)\s+(.+?)\s*\.?\s*$", re.I),
    )
    for pat in patterns:
        m = pat.search(sentence)
        if m and len(m.group(1)) > 10:
            return ensure_period(capitalise(m.group(1).strip()))
    return ensure_period(truncate(sentence.strip(), BACK_MAX_CHARS))


def categorise_card(sentence: str) -> str:
    for category, cue in CATEGORY_CUES:
        if cue.search(sentence):
            return category
    return "key fact"


def assign_difficulty(sentence: str) -> str:
    if BASIC_CUE_RE.search(sentence):
        return "basic"
    if ADVANCED_CUE_RE.search(sentence):
        return "advanced"
    return "intermediate"


# -------------------- STRATEGIES --------------------

def definition_cards(sentences: Sequence[Sentence], context: DedupContext, cards: List[Flashcard]) -> None:
    for sentence in sentences:
        m = DEFINITION_CARD_RE.match(sentence.text)
        if m:
            term = m.group(1).strip()
            if len(term) > 2 and context.claim(term.lower()):
                cards.append(Flashcard(
                    front=capitalise(term),
                    back=condense(sentence.text, term),
                    category="definition",
                    difficulty="basic",
                    topic=capitalise(term),
                ))
        if len(cards) >= DEFINITION_CARD_LIMIT:
            break


def topic_cards(sentences: Sequence[Sentence], topics: Sequence[str],
                context: DedupContext, cards: List[Flashcard]) -> None:
    for topic in topics:
        key = topic.lower()
        if context.seen(key):
            continue
        candidates = [s.text for s in sentences if key in s.text.lower() and len(s.text) > 30]
        if not candidates:
            continue
        best = next((c for c in candidates if BEST_SENTENCE_RE.search(c)), candidates[0])
        context.claim(key)
        cards.append(Flashcard(
            front=capitalise(topic),
            back=condense(best, topic),
            category=categorise_card(best),
            difficulty=assign_difficulty(best),
            topic=capitalise(topic),
        ))
        if len(cards) >= TOPIC_CARD_LIMIT:
            break


def process_cards(sentences: Sequence[Sentence], context: DedupContext, cards: List[Flashcard]) -> None:
    for sentence in sentences:
        if len(cards) >= PROCESS_CARD_LIMIT:
            break
        is_process = bool(PROCESS_CUE_RE.search(sentence.text))
        if not is_process and not CAUSAL_CUE_RE.search(sentence.text):
            continue
        m = CARD_SUBJECT_RE.match(sentence.text)
        if not m:
            continue
        subject = strip_period(m.group(1).strip())
        if not context.claim(subject.lower()):
            continue
        cards.append(Flashcard(
            front=f"How does {lower_first(subject)} work?" if is_process
            else f"Why is {lower_first(subject)} important?",
            back=ensure_period(truncate(sentence.text.strip(), BACK_MAX_CHARS)),
            category="process" if is_process else "key concept",
            difficulty="intermediate",
            topic=capitalise(subject),
        ))


def question_cards(questions: Sequence[Question], context: DedupContext, cards: List[Flashcard]) -> None:
    for q in questions[:QUESTION_CARD_SOURCE]:
        if len(cards) >= TOTAL_CARD_LIMIT:
            break
        if q.question_format == "mcq":
            continue
        if not context.claim(q.question.lower()[:QUESTION_KEY_CHARS]):
            continue
        cards.append(Flashcard(
            front=q.question,
            back=q.answer,
            category=q.type or "key fact",
            difficulty=q.difficulty,
            topic=q.topic or "General",
        ))


def generate_flashcards(sentences: Sequence[Sentence], topics: Sequence[str], questions: Sequence[Question],
                        context: Optional[DedupContext] = None) -> List[Flashcard]:
    """Definition, topic, process and question cards in that order, easiest first."""
    context = context or DedupContext()
    cards: List[Flashcard] = []
    definition_cards(sentences, context, cards)
    topic_cards(sentences, topics, context, cards)
    process_cards(sentences, context, cards)
    question_cards(questions, context, cards)
    return sorted(cards, key=difficulty_rank)
