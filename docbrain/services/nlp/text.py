import re
from typing import List

from docbrain.errors import ExtractionInputError
from docbrain.services.nlp.toolkit import LanguageToolkit
from docbrain.services.nlp.types import Sentence


# -------------------- CLEANING / NORMALIZATION --------------------

BLANK_RUN_RE = re.compile(r"\n{3,}")
PAGE_NUMBER_LINE_RE = re.compile(r"^[ \t]*\d{1,3}[ \t]*$", re.MULTILINE)
MULTI_SPACE_RE = re.compile(r"[ \t]{2,}")

def normalize_text(raw_text: str) -> str:
    if not isinstance(raw_text, str):
        raise ExtractionInputError(f"expected text, got {type(raw_text).__name__}")
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    text = BLANK_RUN_RE.sub("\n\n", text)
    text = PAGE_NUMBER_LINE_RE.sub("", text)
    text = MULTI_SPACE_RE.sub(" ", text)
    return text.strip()


# -------------------- LEXICAL HELPERS --------------------

STOPWORDS = frozenset("""
the a an is are was were be been being have has had do does did will would could
should may might shall can need dare ought used to of in for on with at by from
as into through during before after above below between out off over under again further then
once here there when where why how all both each few more most other some such no nor
not only own same so than too very just because but and or if while although that
which who whom this these those it its they them their what about also many much well
back even still new one two first last long great little old right big high
different small large next early young important public bad good make made like use her him
his she he we you me my our your
""".split())

WORD_SPLIT_RE = re.compile(r"\W+", re.ASCII)
TRAILING_PERIOD_RE = re.compile(r"\.\s*$")
TERMINAL_PUNCT_RE = re.compile(r"[.!?]$")
TRAILING_PARTIAL_WORD_RE = re.compile(r"\s+\S*$")

def is_stop_word(word: str) -> bool:
    return word.lower() in STOPWORDS

def tokenize(text: str) -> List[str]:
    """Lowercased content words longer than two characters, in order, duplicates kept"""
    return [w for w in WORD_SPLIT_RE.split(text.lower()) if len(w) > 2 and w not in STOPWORDS]

def capitalise(s: str) -> str:
    if not s:
        return s
    return s[0].upper() + s[1:]

def title_case(s: str) -> str:
    return re.sub(r"(?<!\S)([a-z])", lambda m: m.group(1).upper(), s)

def strip_period(s: str) -> str:
    return TRAILING_PERIOD_RE.sub("", s).strip()

def ensure_period(s: str) -> str:
    s = s.strip()
    if not TERMINAL_PUNCT_RE.search(s):
        s += "."
    return s

def truncate(text: str, max_len: int = 250) -> str:
    if len(text) <= max_len:
        return text
    return TRAILING_PARTIAL_WORD_RE.sub("", text[:max_len]) + "…"

def lower_first(s: str) -> str:
    if not s:
        return s
    return s[0].lower() + s[1:]


# -------------------- SENTENCES --------------------

MIN_SENTENCE_CHARS = 25
MAX_SENTENCE_CHARS = 800
MIN_SENTENCE_WORDS = 5

def segment_sentences(text: str, toolkit: LanguageToolkit) -> List[Sentence]:
    """Split normalized text into sentences long enough to carry content.

    Headers, captions and fragments fall out through the length and word-count
    filter; an empty list is a valid outcome.
    """
    out: List[Sentence] = []
    for raw in toolkit.split_sentences(text):
        s = " ".join(raw.split())
        if not MIN_SENTENCE_CHARS <= len(s) <= MAX_SENTENCE_CHARS:
            continue
        if len(s.split()) < MIN_SENTENCE_WORDS:
            continue
        out.append(Sentence(text=s, index=len(out), tokens=tuple(tokenize(s))))
    return out
