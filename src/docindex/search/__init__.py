"""Query path: similarity search, reranking, filtering and RAG."""

from docindex.search.rag import RagOrchestrator, collect_sources
from docindex.search.relevance import RelevanceFilter, ThresholdRelevanceFilter, validate_threshold
from docindex.search.reranker import LlmReranker, Reranker, parse_relevance_score
from docindex.search.semantic import SemanticSearch
from docindex.search.similarity import cosine_similarity, cosine_similarity_matrix, normalize

__all__ = [
    "SemanticSearch",
    "Reranker",
    "LlmReranker",
    "parse_relevance_score",
    "RelevanceFilter",
    "ThresholdRelevanceFilter",
    "validate_threshold",
    "RagOrchestrator",
    "collect_sources",
    "cosine_similarity",
    "cosine_similarity_matrix",
    "normalize",
]
