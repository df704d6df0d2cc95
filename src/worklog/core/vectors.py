"""
TF-IDF vector model and similarity functions.

TF is max-normalized (count / max count in the document), IDF is
smoothed as ln(N / DF) + 1 so it never reaches zero. With a single
document every IDF is 1.0 and weights reduce to TF.

SCALING NOTE: similarity_matrix materializes a dense N x N matrix (and a
dense N x V term matrix). Fine for low thousands of items per run.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

from .tokenizer import tokenize


@dataclass
class TermVector:
    """Sparse TF-IDF vector with precomputed L2 magnitude."""

    weights: dict[str, float] = field(default_factory=dict)
    magnitude: float = 0.0

    @classmethod
    def from_weights(cls, weights: dict[str, float]) -> TermVector:
        return cls(
            weights=weights,
            magnitude=math.sqrt(sum(w * w for w in weights.values())),
        )


def term_frequency(tokens: Sequence[str]) -> dict[str, float]:
    """Raw counts divided by the document's maximum count."""
    counts = Counter(tokens)
    if not counts:
        return {}
    max_count = max(counts.values())
    return {term: count / max_count for term, count in counts.items()}


def inverse_document_frequency(documents: Sequence[Sequence[str]]) -> dict[str, float]:
    """IDF(t) = ln(N / DF(t)) + 1 over the given corpus."""
    doc_count = len(documents)
    doc_freq: Counter = Counter()
    for doc in documents:
        doc_freq.update(set(doc))
    return {
        term: math.log(doc_count / df) + 1.0
        for term, df in doc_freq.items()
    }


def tfidf_vector(tf: dict[str, float], idf: dict[str, float]) -> TermVector:
    # Terms missing from the IDF table get the minimum weight of 1.
    return TermVector.from_weights({
        term: freq * idf.get(term, 1.0) for term, freq in tf.items()
    })


def build_vectors(documents: Sequence[Sequence[str]]) -> list[TermVector]:
    """TF-IDF vectors for a tokenized corpus, IDF computed over that corpus."""
    idf = inverse_document_frequency(documents)
    return [tfidf_vector(term_frequency(doc), idf) for doc in documents]


def cosine_similarity(a: TermVector, b: TermVector) -> float:
    """Cosine of two term vectors; 0.0 when either is a zero vector."""
    if a.magnitude == 0 or b.magnitude == 0:
        return 0.0

    # Fixed summation order keeps sim(a, b) == sim(b, a) exactly
    shared = sorted(a.weights.keys() & b.weights.keys())
    dot = sum(a.weights[t] * b.weights[t] for t in shared)
    return min(1.0, max(0.0, dot / (a.magnitude * b.magnitude)))


def overlap_similarity(a: Iterable[str], b: Iterable[str]) -> float:
    """|A & B| / |A | B| over keyword sets; 0.0 if either is empty."""
    set_a = set(a)
    set_b = set(b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def similarity_matrix(vectors: Sequence[TermVector]) -> np.ndarray:
    """
    Pairwise cosine similarity for a list of vectors.

    Returns:
        Symmetric (N, N) float64 array with values in [0, 1] and an
        exact 1.0 diagonal. Rows for zero vectors are 0 off the diagonal.
    """
    n = len(vectors)
    if n == 0:
        return np.zeros((0, 0))

    vocab: dict[str, int] = {}
    for vec in vectors:
        for term in vec.weights:
            vocab.setdefault(term, len(vocab))

    dense = np.zeros((n, max(len(vocab), 1)))
    for i, vec in enumerate(vectors):
        if vec.magnitude == 0:
            continue
        for term, weight in vec.weights.items():
            dense[i, vocab[term]] = weight / vec.magnitude

    sims = dense @ dense.T
    # Mirror the upper triangle so sim(i, j) == sim(j, i) bit for bit
    upper = np.triu(sims, k=1)
    sims = upper + upper.T
    np.clip(sims, 0.0, 1.0, out=sims)
    np.fill_diagonal(sims, 1.0)
    return sims


def document_tokens(texts: Iterable[str]) -> list[list[str]]:
    return [tokenize(text) for text in texts]


def extract_key_terms(texts: Sequence[str], top_n: int = 10) -> list[str]:
    """
    Corpus-wide key terms: each document's TF-IDF weight summed per term.

    Ties keep first-appearance order.
    """
    documents = document_tokens(texts)
    idf = inverse_document_frequency(documents)

    scores: dict[str, float] = {}
    for doc in documents:
        for term, freq in term_frequency(doc).items():
            scores[term] = scores.get(term, 0.0) + freq * idf.get(term, 1.0)

    ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
    return [term for term, _ in ranked[:top_n]]
