"""Relevance threshold filtering."""

import math
from typing import Protocol, runtime_checkable

from docindex.errors import ThresholdRangeError
from docindex.models import RerankedResult, SearchResult


def validate_threshold(threshold: float) -> float:
    """Return ``threshold`` if it lies in [0.0, 1.0], otherwise raise."""
    try:
        value = float(threshold)
    except (TypeError, ValueError) as e:
        raise ThresholdRangeError(f"Threshold must be a number, got {threshold!r}") from e
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise ThresholdRangeError(f"Threshold must be in [0.0, 1.0], got {threshold}")
    return value


@runtime_checkable
class RelevanceFilter(Protocol):
    """Drops results scoring below a threshold."""

    def filter(self, results: list[SearchResult], threshold: float) -> list[SearchResult]:
        """Filter search results by similarity."""
        ...

    def filter_reranked(self, results: list[RerankedResult], threshold: float) -> list[RerankedResult]:
        """Filter reranked results by rerank score."""
        ...


class ThresholdRelevanceFilter:
    """Keeps results whose score is at least the threshold, preserving order."""

    def filter(self, results: list[SearchResult], threshold: float) -> list[SearchResult]:
        threshold = validate_threshold(threshold)
        return [r for r in results if r.similarity >= threshold]

    def filter_reranked(self, results: list[RerankedResult], threshold: float) -> list[RerankedResult]:
        threshold = validate_threshold(threshold)
        return [r for r in results if r.rerank_score >= threshold]
