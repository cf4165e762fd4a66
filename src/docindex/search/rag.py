"""Retrieval-augmented answering."""

import logging
from typing import Optional

from docindex.config import RagSettings
from docindex.models import Chunk, RagAnswer, RagStats, RerankedResult, SearchResult, SourceInfo
from docindex.protocols import LlmService
from docindex.search.relevance import RelevanceFilter, ThresholdRelevanceFilter, validate_threshold
from docindex.search.reranker import LlmReranker, Reranker
from docindex.search.semantic import SemanticSearch

logger = logging.getLogger(__name__)

RAG_SYSTEM_PROMPT = """\
You are an assistant that answers questions using only the provided document fragments.
If the fragments do not contain the answer, say explicitly that the context is insufficient.
Answer clearly and to the point."""

PLAIN_SYSTEM_PROMPT = """\
You are a helpful assistant. Answer the user's question clearly and in a structured way."""


def collect_sources(results: list[RerankedResult]) -> list[SourceInfo]:
    """Distinct documents in ranking order, each with its first chunk's index."""
    sources: dict[int, SourceInfo] = {}
    for result in results:
        doc = result.document
        if doc.id in sources:
            continue
        sources[doc.id] = SourceInfo(
            document_path=doc.file_path,
            document_name=doc.file_name,
            document_type=doc.file_type,
            chunk_index=result.chunk.chunk_index,
        )
    return list(sources.values())


class RagOrchestrator:
    """Search, optionally rerank and filter, then answer from the context.

    Stages: search, pre-filter (rerank + threshold only), rerank, filter
    (threshold only), top-k selection, context assembly, answer. The
    candidate count after each stage is reported in :class:`RagStats`.
    """

    def __init__(
        self,
        search: SemanticSearch,
        llm: LlmService,
        reranker: Optional[Reranker] = None,
        relevance_filter: Optional[RelevanceFilter] = None,
        settings: Optional[RagSettings] = None,
    ):
        self.search = search
        self.llm = llm
        self.reranker = reranker or LlmReranker(llm)
        self.relevance_filter = relevance_filter or ThresholdRelevanceFilter()
        self.settings = settings or RagSettings()

    def pre_filter_threshold(self, threshold: float) -> float:
        return min(threshold * self.settings.pre_filter_factor, self.settings.pre_filter_cap)

    def answer_with_rag(
        self,
        question: str,
        top_k: int = 5,
        enable_reranking: bool = False,
        relevance_threshold: Optional[float] = None,
        rerank_top_k: Optional[int] = None,
    ) -> RagAnswer:
        """Answer ``question`` grounded on the best matching chunks.

        Args:
            question: The user's question
            top_k: Number of chunks used as context
            enable_reranking: Rescore candidates with the reranker
            relevance_threshold: Minimum score in [0.0, 1.0] a chunk needs;
                applied to rerank scores when reranking, else to similarity
            rerank_top_k: Candidates fetched for reranking; defaults to
                ``top_k * rerank_pool_factor``

        Raises:
            ThresholdRangeError: for a threshold outside [0.0, 1.0]
            ApiError: if the question cannot be embedded or answered
        """
        if relevance_threshold is not None:
            relevance_threshold = validate_threshold(relevance_threshold)
        filtering = relevance_threshold is not None

        # Searching
        if enable_reranking:
            if rerank_top_k is not None:
                search_top_k = rerank_top_k
            else:
                search_top_k = top_k * self.settings.rerank_pool_factor
        else:
            search_top_k = top_k
        candidates: list[SearchResult] = self.search.search(question, search_top_k)
        initial_count = len(candidates)

        # PreFiltering: cheap similarity cut before paying for rerank calls
        after_pre_filter_count = None
        if enable_reranking:
            if filtering:
                candidates = self.relevance_filter.filter(
                    candidates, self.pre_filter_threshold(relevance_threshold)
                )
            after_pre_filter_count = len(candidates)

        # Reranking
        after_rerank_count = None
        if enable_reranking:
            ranked = self.reranker.rerank(question, candidates)
            after_rerank_count = len(ranked)
            if filtering:
                ranked = self.relevance_filter.filter_reranked(ranked, relevance_threshold)
        else:
            if filtering:
                candidates = self.relevance_filter.filter(candidates, relevance_threshold)
            ranked = [RerankedResult(search_result=r, rerank_score=r.similarity) for r in candidates]
        after_filter_count = len(ranked)

        # Selecting
        selected = ranked[:top_k]

        stats = RagStats(
            initial_count=initial_count,
            after_pre_filter_count=after_pre_filter_count,
            after_rerank_count=after_rerank_count,
            after_filter_count=after_filter_count,
            final_count=len(selected),
            reranking_enabled=enable_reranking,
            filtering_enabled=filtering,
        )
        logger.debug(f"RAG stats: {stats}")

        # ContextAssembly
        chunks = [r.chunk for r in selected]
        context = self.build_context(chunks)
        sources = collect_sources(selected)

        # Answering
        user_message = f"Question:\n{question}\n\nDocumentation:\n{context}"
        answer = self.llm.generate_answer(RAG_SYSTEM_PROMPT, user_message)

        return RagAnswer(
            question=question,
            context_chunks=chunks,
            answer=answer,
            stats=stats,
            sources=sources,
        )

    def answer_without_rag(self, question: str) -> str:
        """Ask the model directly, with no retrieved context."""
        return self.llm.generate_answer(PLAIN_SYSTEM_PROMPT, f"Question:\n{question}")

    def build_context(self, chunks: list[Chunk]) -> str:
        if not chunks:
            return self.settings.empty_context
        return self.settings.context_separator.join(chunk.content for chunk in chunks)
