"""Text similarity metrics in [0, 1]: lexical overlap (Jaccard) and term-vector cosine.

A missing text never raises: ``None`` or empty input simply yields 0.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

import numpy as np

from jira_predictor.core.config import SIMILARITY_TOLERANCE
from jira_predictor.core.errors import ConfigurationError, SimilarityRangeError

from .vectorizer import DEFAULT_VECTORIZER, TermVectorizer

logger = logging.getLogger(__name__)


class TextsSimilarity(Protocol):
    def similarity(self, text_a: str | None, text_b: str | None) -> float: ...


def check_range(value: float, tolerance: float = SIMILARITY_TOLERANCE) -> float:
    """Clamp drift within ``tolerance`` back into [0, 1]; raise ``SimilarityRangeError`` beyond it."""
    if np.isnan(value) or value < -tolerance or value > 1 + tolerance:
        raise SimilarityRangeError(value)
    return min(max(value, 0.0), 1.0)


class JaccardTextsSimilarity:
    def __init__(self, vectorizer: TermVectorizer | None = None):
        self.vectorizer = vectorizer or DEFAULT_VECTORIZER

    def similarity(self, text_a: str | None, text_b: str | None) -> float:
        terms_a = set(self.vectorizer.tokens(text_a))
        terms_b = set(self.vectorizer.tokens(text_b))
        if not terms_a or not terms_b:
            return 0.0
        union = terms_a | terms_b
        if not union:
            return 0.0
        return len(terms_a & terms_b) / len(union)


class CosineTextsSimilarity:
    """Cosine of L1-normalized term-frequency vectors built over both texts' vocabulary."""

    def __init__(self, vectorizer: TermVectorizer | None = None):
        self.vectorizer = vectorizer or DEFAULT_VECTORIZER

    def vectors(self, text_a: str | None, text_b: str | None) -> tuple[np.ndarray, np.ndarray]:
        freq_a = self.vectorizer.term_frequencies(text_a)
        freq_b = self.vectorizer.term_frequencies(text_b)
        terms = sorted(set(freq_a) | set(freq_b))
        v1 = np.array([freq_a.get(t, 0) for t in terms], dtype=float)
        v2 = np.array([freq_b.get(t, 0) for t in terms], dtype=float)
        return _l1_normalize(v1), _l1_normalize(v2)

    def raw_similarity(self, text_a: str | None, text_b: str | None) -> float:
        """Unchecked cosine; raises ``SimilarityRangeError`` when the result leaves [0, 1]."""
        if not text_a or not text_b:
            return 0.0
        v1, v2 = self.vectors(text_a, text_b)
        norm = np.linalg.norm(v1) * np.linalg.norm(v2)
        if norm == 0:
            return 0.0
        return check_range(float(np.dot(v1, v2) / norm))

    def similarity(self, text_a: str | None, text_b: str | None) -> float:
        try:
            return self.raw_similarity(text_a, text_b)
        except SimilarityRangeError as exc:
            logger.error("Cosine similarity rejected, using 0: %s", exc)
            return 0.0


def _l1_normalize(vector: np.ndarray) -> np.ndarray:
    total = np.abs(vector).sum()
    if total == 0:
        return vector
    return vector / total


class CombinedTextsSimilarity:
    """Mean of several metrics."""

    def __init__(self, metrics: list[TextsSimilarity]):
        if not metrics:
            raise ValueError("CombinedTextsSimilarity needs at least one metric")
        self.metrics = list(metrics)

    def similarity(self, text_a: str | None, text_b: str | None) -> float:
        return sum(m.similarity(text_a, text_b) for m in self.metrics) / len(self.metrics)


class SimilarityKind(Enum):
    JACCARD = "jaccard"
    COSINE = "cosine"
    BOTH = "both"


def make_texts_similarity(kind: SimilarityKind | str, vectorizer: TermVectorizer | None = None) -> TextsSimilarity:
    try:
        kind = SimilarityKind(kind)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown text metric {kind!r}") from exc
    if kind is SimilarityKind.JACCARD:
        return JaccardTextsSimilarity(vectorizer)
    if kind is SimilarityKind.COSINE:
        return CosineTextsSimilarity(vectorizer)
    return CombinedTextsSimilarity([JaccardTextsSimilarity(vectorizer), CosineTextsSimilarity(vectorizer)])


def similarity(kind: SimilarityKind | str, text_a: str | None, text_b: str | None) -> float:
    return make_texts_similarity(kind).similarity(text_a, text_b)
