"""
Rule-based exam question generation.

Every sentence is offered to an ordered table of question rules; the first rule
whose pattern matches builds a short-answer question from the captured subject
and predicate. Multiple-choice variants, synthesis questions and entity
comprehension questions are layered on top, and every candidate goes through
the run's DedupContext before it is accepted.
"""
from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import structlog

from docbrain.models import McqOption, Question, difficulty_rank
from docbrain.services.nlp.dedup import DedupContext
from docbrain.services.nlp.text import capitalise, ensure_period, lower_first, strip_period
from docbrain.services.nlp.toolkit import LanguageToolkit
from docbrain.services.nlp.topics import unique_entities
from docbrain.services.nlp.types import Sentence

logger = structlog.get_logger(__name__)

MIN_QA_CHARS = 10
MAX_MCQ_QUESTIONS = 5
MAX_DISTRACTOR_TOPICS = 6
SYNTHESIS_MIN_SENTENCES = 9
OVERVIEW_TOPICS = 8
MAX_ENTITY_QUESTIONS = 6

DEFINITION_CUE_RE = re.compile(r"\b(?:is a|are a|refers? to|defined as)\b", re.I)
DEFINITION_SHAPE_RE = re.compile(r"^.{5,80}\s+(?:is|are)\s+(?:a|an|the)\s+.{15,}", re.I)
DEFINED_SUBJECT_RE = re.compile(r"^(.{5,60}?)\s+(?:is|are)\s+(?:a|an|the)\s+", re.I)
DISTRACTOR_CUE_RE = re.compile(r"\b(?:is|are|refers|means)\b", re.I)
DISTRACTOR_DEFINITION_RE = re.compile(r"\b(?:is|are)\s+(?:a|an|the)\s+(.{15,80}?)(?:\.|,|$)", re.I)

GENERIC_DISTRACTORS = (
    "A storage format used only by relational databases",
    "A physical hardware component found inside computers",
    "A purely theoretical result with no practical use",
    "A manual procedure followed during quality inspections",
)


def _supporting(sentences: Sequence[Sentence], needle: str, exclude: str, limit: int = 2) -> List[str]:
    """Other sentences mentioning the needle, in document order"""
    needle = needle.lower()
    found = [s.text for s in sentences if needle in s.text.lower() and s.text != exclude]
    return found[:limit]


def _joined(texts: Sequence[str]) -> str:
    return " ".join(ensure_period(t) for t in texts)


# -------------------- RULE BUILDERS --------------------

def _build_definition_is(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    subject = strip_period(m.group(1).strip())
    verb, article = m.group(2).lower(), m.group(3).lower()
    definition = strip_period(m.group(4).strip())
    statement = ensure_period(f"{capitalise(subject)} {verb} {article} {definition}")
    related = _supporting(sentences, subject, m.string)
    solution = (
        f"**Step 1: Identify the concept.** \"{subject}\" is one of the key terms in this material.\n\n"
        f"**Step 2: State the definition.** {statement}\n\n"
        f"**Step 3: Explain its significance.** Later ideas in the material build on this definition."
    )
    if related:
        solution += f"\n\n**Related statements:** {_joined(related)}"
    return Question(
        question=f"Define \"{subject}\" and explain its significance.",
        answer=statement,
        solution=solution,
        difficulty="basic",
        type="definition",
        topic=subject,
    )


def _build_definition_refers(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    subject = strip_period(m.group(1).strip())
    definition = strip_period(m.group(2).strip())
    return Question(
        question=f"What does the term \"{subject}\" refer to?",
        answer=ensure_period(capitalise(definition)),
        solution=(
            f"**Term:** {subject}\n\n"
            f"**Meaning:** \"{subject}\" refers to {ensure_period(definition)}\n\n"
            f"**Takeaway:** Knowing this term makes the surrounding concepts easier to follow."
        ),
        difficulty="basic",
        type="definition",
        topic=subject,
    )


def _build_provides_verb(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    subject = strip_period(m.group(1).strip())
    verb = re.sub(r"s$", "", m.group(2).strip().lower())
    obj = strip_period(m.group(3).strip())
    statement = ensure_period(f"{capitalise(subject)} {verb}s {obj}")
    related = _supporting(sentences, subject, m.string, limit=1)
    solution = (
        f"**What it {verb}s:** {statement}\n\n"
        f"**Why it matters:** This capability shapes how {lower_first(subject)} is used and what it makes possible."
    )
    if related:
        solution += f"\n\n**Context:** {_joined(related)}"
    return Question(
        question=f"Explain what {lower_first(subject)} {verb}s and why this is important.",
        answer=statement,
        solution=solution,
        difficulty="intermediate",
        type="explanation",
        topic=subject,
    )


def _build_purpose_of(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    subject = strip_period(m.group(1).strip())
    purpose = strip_period(m.group(2).strip())
    return Question(
        question=f"What is the primary purpose of {lower_first(subject)}, and how does it achieve this goal?",
        answer=ensure_period(f"The purpose of {lower_first(subject)} is {purpose}"),
        solution=(
            f"**Primary purpose:** {ensure_period(capitalise(purpose))}\n\n"
            f"**How it is achieved:** {capitalise(subject)} is organised around mechanisms that serve this purpose.\n\n"
            f"**Relevance:** The purpose explains why {lower_first(subject)} is designed the way it is."
        ),
        difficulty="intermediate",
        type="explanation",
        topic=subject,
    )


def _build_used_for(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    subject = strip_period(m.group(1).strip())
    preposition = m.group(2).lower()
    usage = strip_period(m.group(3).strip())
    statement = ensure_period(f"{capitalise(subject)} is used {preposition} {usage}")
    return Question(
        question=f"How is {lower_first(subject)} used in practice? Provide specific applications.",
        answer=statement,
        solution=(
            f"**Application:** {statement}\n\n"
            f"**Practical significance:** This shows how the idea is put to work outside the theory."
        ),
        difficulty="intermediate",
        type="application",
        topic=subject,
    )


def _build_process_by(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    subject = strip_period(m.group(1).strip())
    process = strip_period(m.group(2).strip())
    related = _supporting(sentences, subject, m.string)
    solution = (
        f"**Process overview:** {ensure_period(capitalise(process))}\n\n"
        f"**Key mechanism:** {capitalise(subject)} operates by {ensure_period(process)}\n\n"
        f"**Step-by-step breakdown:**\n"
        f"1. Identify what {lower_first(subject)} starts from.\n"
        f"2. Follow the mechanism described above.\n"
        f"3. Connect the mechanism to the result it produces."
    )
    if related:
        solution += f"\n\n**Further details:** {_joined(related)}"
    return Question(
        question=f"Describe the process by which {lower_first(subject)} operates. What are the key mechanisms?",
        answer=ensure_period(f"{capitalise(subject)} works by {process}"),
        solution=solution,
        difficulty="advanced",
        type="process",
        topic=subject,
    )


def _build_because(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    effect = strip_period(m.group(1).strip())
    cause = strip_period(m.group(2).strip())
    return Question(
        question=f"Why does {lower_first(effect)}? Explain the underlying reasoning.",
        answer=ensure_period(f"Because {cause}"),
        solution=(
            f"**Cause:** {ensure_period(capitalise(cause))}\n\n"
            f"**Effect:** {ensure_period(capitalise(effect))}\n\n"
            f"**Reasoning:** The stated condition ({cause}) leads directly to the outcome "
            f"({lower_first(effect)})."
        ),
        difficulty="advanced",
        type="analytical",
        topic=None,
    )


def _build_consists_of(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    subject = strip_period(m.group(1).strip())
    components = strip_period(m.group(2).strip())
    return Question(
        question=f"List and explain the components that make up {lower_first(subject)}.",
        answer=ensure_period(f"{capitalise(subject)} consists of {components}"),
        solution=(
            f"**Components of {subject}:** {ensure_period(capitalise(components))}\n\n"
            f"**Why this matters:** Breaking the concept into its parts makes it easier to study and apply."
        ),
        difficulty="intermediate",
        type="factual",
        topic=subject,
    )


def _build_subset_of(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    child = strip_period(m.group(1).strip())
    parent = strip_period(m.group(2).strip())
    siblings = _supporting(sentences, parent, m.string)
    solution = (
        f"**Classification:** {capitalise(child)} is a subfield of {ensure_period(parent)}\n\n"
        f"**Relationship:** {capitalise(child)} narrows its focus while keeping the foundations of {parent}."
    )
    if siblings:
        solution += f"\n\n**Related areas:** {_joined(siblings)}"
    return Question(
        question=f"What broader field does {lower_first(child)} belong to, and how does it relate to that field?",
        answer=ensure_period(f"{capitalise(child)} is a subfield of {parent}"),
        solution=solution,
        difficulty="basic",
        type="definition",
        topic=child,
    )


def _build_concerned_with(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    subject = strip_period(m.group(1).strip())
    focus = strip_period(m.group(2).strip())
    return Question(
        question=f"What is the primary focus of {lower_first(subject)}? Describe its scope and areas of concern.",
        answer=ensure_period(f"{capitalise(subject)} is concerned with {focus}"),
        solution=(
            f"**Scope:** {capitalise(subject)} focuses on {ensure_period(focus)}\n\n"
            f"**Areas of concern:** The problems it addresses all follow from this focus."
        ),
        difficulty="intermediate",
        type="explanation",
        topic=subject,
    )


def _build_in_order_to(m: re.Match, sentences: Sequence[Sentence]) -> Question:
    action = strip_period(m.group(1).strip())
    goal = strip_period(m.group(2).strip())
    return Question(
        question=f"What is the goal of {lower_first(action)}?",
        answer=ensure_period(f"The goal is to {goal}"),
        solution=(
            f"**Goal:** To {ensure_period(goal)}\n\n"
            f"**Approach:** {ensure_period(capitalise(action))}\n\n"
            f"**Reasoning:** The action was chosen specifically to reach this goal."
        ),
        difficulty="intermediate",
        type="explanation",
        topic=None,
    )


# -------------------- RULE TABLE --------------------

@dataclass(frozen=True)
class QuestionRule:
    name: str
    pattern: re.Pattern
    build: Callable[[re.Match, Sequence[Sentence]], Question]


def _rule(name: str, regex: str, build) -> QuestionRule:
    return QuestionRule(name=name, pattern=re.compile(regex, re.I), build=build)


DEFINITION_IS_RE = re.compile(r"^(.{5,80}?)\s+(is|are)\s+(a|an|the)\s+(.{15,}?)\.?\s*$", re.I)

# Order is precedence: the first matching rule owns the sentence.
QUESTION_RULES = (
    QuestionRule("definition_is", DEFINITION_IS_RE, _build_definition_is),
    _rule("definition_refers",
          r"^(.{5,80}?)\s+(?:refers?\s+to|is\s+defined\s+as|is\s+known\s+as|means)\s+(.{15,}?)\.?\s*$",
          _build_definition_refers),
    _rule("provides_verb",
          r"^(.{5,70}?)\s+(provides?|enables?|allows?|facilitates?|offers?|ensures?|supports?|delivers?)\s+(.{15,}?)\.?\s*$",
          _build_provides_verb),
    _rule("purpose_of",
          r"^(?:the\s+)?(?:purpose|goal|aim|objective|role|function)\s+of\s+(.{5,70}?)\s+is\s+(.{15,}?)\.?\s*$",
          _build_purpose_of),
    _rule("used_for",
          r"^(.{5,70}?)\s+(?:is|are)\s+used\s+(for|to|in)\s+(.{15,}?)\.?\s*$",
          _build_used_for),
    _rule("process_by",
          r"^(.{5,70}?)\s+(?:works?\s+by|operates?\s+by|functions?\s+by|achieves?\s+this\s+by)\s+(.{15,}?)\.?\s*$",
          _build_process_by),
    _rule("because",
          r"^(.{15,120}?)\s+because\s+(.{15,}?)\.?\s*$",
          _build_because),
    _rule("consists_of",
          r"^(.{5,70}?)\s+(?:consists?\s+of|is\s+composed\s+of|is\s+made\s+up\s+of|comprises?|includes?)\s+(.{15,}?)\.?\s*$",
          _build_consists_of),
    _rule("subset_of",
          r"^(.{5,70}?)\s+(?:is\s+a\s+(?:subset|type|kind|form|branch|part|category|subfield|area)\s+of)\s+(.{5,}?)\.?\s*$",
          _build_subset_of),
    _rule("concerned_with",
          r"^(.{5,70}?)\s+(?:is\s+)?(?:concerned\s+with|focused\s+on|deals?\s+with|involves?)\s+(.{15,}?)\.?\s*$",
          _build_concerned_with),
    _rule("in_order_to",
          r"^(.{10,100}?)\s+in\s+order\s+to\s+(.{10,}?)\.?\s*$",
          _build_in_order_to),
)


def first_matching_rule(text: str) -> Optional[QuestionRule]:
    for rule in QUESTION_RULES:
        if rule.pattern.match(text):
            return rule
    return None


def _acceptable(q: Question, context: DedupContext) -> bool:
    if len(q.question) <= MIN_QA_CHARS or len(q.answer) <= MIN_QA_CHARS:
        return False
    return context.claim_question(q.question)


# -------------------- PHASES --------------------

def pattern_questions(sentences: Sequence[Sentence], context: DedupContext) -> List[Question]:
    questions = []
    for sentence in sentences:
        rule = first_matching_rule(sentence.text)
        if rule is None:
            continue
        try:
            q = rule.build(rule.pattern.match(sentence.text), sentences)
        except Exception as e:
            logger.debug("question_rule_failed", rule=rule.name, sentence_index=sentence.index, error=str(e))
            continue
        if _acceptable(q, context):
            questions.append(q)
    return questions


def find_distractors(subject: str, topics: Sequence[str], sentences: Sequence[Sentence]) -> List[str]:
    """Definitions of other topics found in the document, padded with generic fillers"""
    subject_key = subject.lower()
    other_topics = [t for t in topics if t.lower() != subject_key][:MAX_DISTRACTOR_TOPICS]
    distractors: List[str] = []
    for topic in other_topics:
        key = topic.lower()
        source = next(
            (s.text for s in sentences if key in s.text.lower() and DISTRACTOR_CUE_RE.search(s.text)),
            None,
        )
        if source:
            m = DISTRACTOR_DEFINITION_RE.search(source)
            if m:
                distractors.append(capitalise(strip_period(m.group(1).strip())))
        if len(distractors) >= 3:
            break
    while len(distractors) < 3:
        distractors.append(GENERIC_DISTRACTORS[len(distractors)])
    return distractors[:3]


def build_mcq(subject: str, correct_answer: str, topics: Sequence[str],
              sentences: Sequence[Sentence], rng: random.Random) -> Question:
    options = [(correct_answer, True)] + [
        (ensure_period(d), False) for d in find_distractors(subject, topics, sentences)
    ]
    rng.shuffle(options)
    labelled = [
        McqOption(letter=chr(65 + i), text=text, correct=correct)
        for i, (text, correct) in enumerate(options)
    ]
    right = next(o for o in labelled if o.correct)
    wrong_lines = "\n".join(
        f"- Option {o.letter}: describes a different concept, not {lower_first(subject)}."
        for o in labelled if not o.correct
    )
    return Question(
        question=f"Which of the following best describes \"{subject}\"?",
        answer=f"{right.letter}) {correct_answer}",
        solution=(
            f"**Correct answer: {right.letter}**\n\n"
            f"**Explanation:** {capitalise(subject)} is defined as: {correct_answer}\n\n"
            f"**Why the other options are wrong:**\n{wrong_lines}"
        ),
        difficulty="basic",
        type="definition",
        question_format="mcq",
        topic=subject,
        options=labelled,
    )


def mcq_questions(sentences: Sequence[Sentence], topics: Sequence[str],
                  rng: random.Random, context: DedupContext) -> List[Question]:
    shaped = [s for s in sentences if DEFINITION_SHAPE_RE.match(s.text)]
    questions = []
    for sentence in shaped[:MAX_MCQ_QUESTIONS]:
        m = DEFINITION_IS_RE.match(sentence.text)
        if not m:
            continue
        subject = strip_period(m.group(1).strip())
        correct = ensure_period(f"A {strip_period(m.group(4).strip())}")
        mcq = build_mcq(subject, correct, topics, sentences, rng)
        if context.claim_question(mcq.question):
            questions.append(mcq)
    return questions


def synthesis_questions(sentences: Sequence[Sentence], topics: Sequence[str],
                        context: DedupContext) -> List[Question]:
    questions = []

    subjects: List[str] = []
    for s in sentences:
        m = DEFINED_SUBJECT_RE.match(s.text)
        if m:
            subject = strip_period(m.group(1).strip())
            if subject.lower() not in (x.lower() for x in subjects):
                subjects.append(subject)
        if len(subjects) >= 2:
            break

    if len(subjects) == 2:
        a, b = subjects
        q = (f"Compare and contrast {a.lower()} and {b.lower()}. "
             f"What are their key similarities and differences?")
        if context.claim_question(q):
            a_support = [s.text for s in sentences if a.lower() in s.text.lower()][:2]
            b_support = [s.text for s in sentences if b.lower() in s.text.lower()][:2]
            questions.append(Question(
                question=q,
                answer=(f"Both {a.lower()} and {b.lower()} are related concepts, "
                        f"but they differ in scope and application."),
                solution=(
                    f"**{capitalise(a)}:**\n{_joined(a_support) or 'See the source material.'}\n\n"
                    f"**{capitalise(b)}:**\n{_joined(b_support) or 'See the source material.'}\n\n"
                    f"**Similarities:** Both belong to the same subject area covered by the material.\n\n"
                    f"**Differences:** They differ in focus, method and typical applications."
                ),
                difficulty="advanced",
                type="analytical",
            ))

    overview = ("Summarize the main concepts covered in this document "
                "and explain how they relate to each other.")
    if context.claim_question(overview):
        listed = ", ".join(topics[:OVERVIEW_TOPICS]) or "the concepts outlined in the summary"
        questions.append(Question(
            question=overview,
            answer=f"The document covers: {listed}.",
            solution=(
                f"**Main concepts:** {listed}.\n\n"
                f"**Relationships:** The definitions lay the groundwork, and the applied concepts "
                f"show how those definitions are used.\n\n"
                f"**Approach:** Study the definitions first, then trace where each one reappears."
            ),
            difficulty="advanced",
            type="analytical",
        ))
    return questions


def entity_questions(sentences: Sequence[Sentence], toolkit: LanguageToolkit,
                     context: DedupContext) -> List[Question]:
    entities = unique_entities(toolkit.named_entities(". ".join(s.text for s in sentences)))
    questions = []
    for topic in entities[:MAX_ENTITY_QUESTIONS]:
        q = f"What is the role and significance of {topic} as discussed in the material?"
        if not context.claim_question(q):
            continue
        key = topic.lower()
        candidates = [s.text for s in sentences if key in s.text.lower()]
        best = next((c for c in candidates if DEFINITION_CUE_RE.search(c)), None)
        best = best or (candidates[0] if candidates else None)
        if best is None:
            continue
        additional = [c for c in candidates if c != best][:2]
        solution = f"**Definition or role:** {ensure_period(best)}"
        if additional:
            solution += f"\n\n**Further details:** {_joined(additional)}"
        solution += f"\n\n**Significance:** {topic} is part of the foundation needed for the more advanced ideas."
        questions.append(Question(
            question=q,
            answer=ensure_period(best),
            solution=solution,
            difficulty="intermediate",
            type="explanation",
            topic=topic,
        ))
    return questions


def generate_questions(sentences: Sequence[Sentence], topics: Sequence[str], toolkit: LanguageToolkit,
                       rng: Optional[random.Random] = None,
                       context: Optional[DedupContext] = None) -> List[Question]:
    rng = rng or random.Random()
    context = context or DedupContext()

    questions = pattern_questions(sentences, context)
    questions += mcq_questions(sentences, topics, rng, context)
    if len(sentences) >= SYNTHESIS_MIN_SENTENCES:
        questions += synthesis_questions(sentences, topics, context)
    questions += entity_questions(sentences, toolkit, context)

    logger.debug("questions_generated", count=len(questions), stems=len(context.stems))
    return sorted(questions, key=difficulty_rank)
