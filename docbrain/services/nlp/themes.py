import re
from typing import Dict, List, Sequence

import numpy as np
from sklearn.feature_extraction.text import CountVectorizer

from docbrain.services.nlp.text import capitalise
from docbrain.services.nlp.types import ScoredSentence, Sentence, ThemeCluster


# -------------------- THEMATIC CLUSTERING --------------------

MIN_SENTENCES_TO_CLUSTER = 4
MAX_THEME_CLUSTERS = 6
MAX_THEME_DOC_SHARE = 0.6

def cluster_sentences(sentences: Sequence[Sentence]) -> List[ThemeCluster]:
    """Group sentences under the most widely shared vocabulary terms.

    Terms that occur in at least two sentences but in no more than 60% of them
    are tried in order of document frequency; each one claims its still
    unassigned sentences when at least two remain. Whatever is left over ends
    up in a final catch-all cluster, so every sentence lands in exactly one.
    """
    if len(sentences) < MIN_SENTENCES_TO_CLUSTER:
        return [ThemeCluster(theme="Overview", sentences=tuple(sentences))]

    term_sentences: Dict[str, List[int]] = {}
    for pos, sentence in enumerate(sentences):
        for term in dict.fromkeys(sentence.tokens):
            term_sentences.setdefault(term, []).append(pos)

    max_df = len(sentences) * MAX_THEME_DOC_SHARE
    theme_terms = [
        (term, positions)
        for term, positions in term_sentences.items()
        if 2 <= len(positions) <= max_df
    ]
    theme_terms.sort(key=lambda item: len(item[1]), reverse=True)

    clusters: List[ThemeCluster] = []
    assigned = set()
    for term, positions in theme_terms:
        unassigned = [p for p in positions if p not in assigned]
        if len(unassigned) < 2:
            continue
        assigned.update(unassigned)
        clusters.append(ThemeCluster(
            theme=capitalise(term),
            sentences=tuple(sentences[p] for p in unassigned),
        ))
        if len(clusters) >= MAX_THEME_CLUSTERS:
            break

    remaining = tuple(s for p, s in enumerate(sentences) if p not in assigned)
    if remaining:
        clusters.append(ThemeCluster(
            theme="Overview" if not clusters else "Additional Details",
            sentences=remaining,
        ))
    return clusters


# -------------------- SENTENCE SCORING --------------------

DEFINITION_CUE_RE = re.compile(r"\b(?:is a|are a|refers? to|defined as|known as|means)\b", re.I)

def position_bias(position: int, total: int) -> float:
    rel = position / total
    if rel < 0.15:
        return 1.4
    if rel > 0.9:
        return 1.2
    return 1.0

def length_bias(text: str) -> float:
    n = len(text)
    if 60 <= n <= 250:
        return 1.3
    if 250 < n <= 400:
        return 1.1
    return 0.85

def _tfidf_means(sentences: Sequence[Sentence]) -> np.ndarray:
    n = len(sentences)
    vectorizer = CountVectorizer(analyzer=list)
    try:
        counts = vectorizer.fit_transform([s.tokens for s in sentences])
    except ValueError:
        # empty vocabulary: no sentence has a content token
        return np.zeros(n)
    tf = np.asarray(counts.sum(axis=0)).ravel()
    df = np.asarray((counts > 0).sum(axis=0)).ravel()
    weights = tf * np.log((n + 1) / (df + 1))
    lengths = np.asarray(counts.sum(axis=1)).ravel().astype(float)
    totals = np.asarray(counts @ weights).ravel()
    return np.divide(totals, lengths, out=np.zeros(n), where=lengths > 0)

def score_sentences(sentences: Sequence[Sentence]) -> List[ScoredSentence]:
    """Rank a set of sentences (one cluster) by TF-IDF weight and shape heuristics"""
    if not sentences:
        return []
    base = _tfidf_means(sentences)
    total = len(sentences)
    scored = []
    for pos, sentence in enumerate(sentences):
        score = float(base[pos])
        score *= position_bias(pos, total)
        score *= length_bias(sentence.text)
        if DEFINITION_CUE_RE.search(sentence.text):
            score *= 1.3
        scored.append(ScoredSentence(sentence=sentence, score=score))
    return scored
