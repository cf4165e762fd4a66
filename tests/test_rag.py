"""Tests for the retrieval-augmented answering pipeline."""

import pytest

from docindex.chunkers import ChunkConfig
from docindex.config import RagSettings
from docindex.errors import ThresholdRangeError
from docindex.indexing import DocumentIndexer
from docindex.search import RagOrchestrator, SemanticSearch, collect_sources
from docindex.search.rag import PLAIN_SYSTEM_PROMPT, RAG_SYSTEM_PROMPT


@pytest.fixture
def pets(tmp_path, store, embedder):
    """Index with one cat and one dog document."""
    root = tmp_path / "pets"
    root.mkdir()
    (root / "cat.txt").write_text("A cat sat", encoding="utf-8")
    (root / "dog.txt").write_text("A dog ran", encoding="utf-8")
    DocumentIndexer(store, embedder, ChunkConfig(20, 0)).index_directory(root)
    return root


@pytest.fixture
def rag(store, embedder, llm):
    return RagOrchestrator(SemanticSearch(store, embedder), llm)


class TestAnswerWithRag:
    def test_plain_retrieval(self, rag, llm, pets):
        result = rag.answer_with_rag("feline animal", top_k=1)

        assert result.answer == "stub answer"
        assert [c.content for c in result.context_chunks] == ["A cat sat"]
        assert [s.document_name for s in result.sources] == ["cat.txt"]
        assert result.sources[0].chunk_index == 0

        stats = result.stats
        assert stats.initial_count == 1
        assert stats.after_pre_filter_count is None
        assert stats.after_rerank_count is None
        assert stats.after_filter_count == 1
        assert stats.final_count == 1
        assert not stats.reranking_enabled
        assert not stats.filtering_enabled

        system_prompt, user_message = llm.calls[-1]
        assert system_prompt == RAG_SYSTEM_PROMPT
        assert "feline animal" in user_message
        assert "A cat sat" in user_message

    def test_threshold_on_similarity(self, rag, pets):
        # cat scores 1.0 against the query, dog 0.5
        result = rag.answer_with_rag("feline animal", top_k=2, relevance_threshold=0.9)

        assert result.stats.initial_count == 2
        assert result.stats.after_filter_count == 1
        assert result.stats.filtering_enabled
        assert [s.document_name for s in result.sources] == ["cat.txt"]

    def test_rerank_then_filter(self, rag, llm, pets):
        llm.scores = {"A dog ran": "0.2", "A cat sat": "0.95"}

        result = rag.answer_with_rag(
            "feline animal", top_k=1, enable_reranking=True, relevance_threshold=0.5
        )

        stats = result.stats
        assert stats.initial_count == 2  # rerank pool defaults to top_k * 2
        assert stats.after_pre_filter_count == 2
        assert stats.after_rerank_count == 2
        assert stats.after_filter_count == 1
        assert stats.final_count == 1
        assert stats.reranking_enabled and stats.filtering_enabled
        assert [c.content for c in result.context_chunks] == ["A cat sat"]

    def test_pre_filter_saves_rerank_calls(self, rag, llm, pets, add_document):
        add_document("/elsewhere/noise.txt", [("quarterly spreadsheet totals", [0.0, 1.0, -1.0])])

        result = rag.answer_with_rag(
            "feline animal", top_k=2, enable_reranking=True, relevance_threshold=0.5
        )

        assert result.stats.initial_count == 3
        # min(0.5 * 0.5, 0.1) = 0.1 drops the negatively scored chunk
        assert result.stats.after_pre_filter_count == 2
        assert len(llm.rerank_calls) == 2
        assert all("spreadsheet" not in call for call in llm.rerank_calls)

    def test_rerank_without_threshold(self, rag, llm, pets):
        llm.scores = {"A dog ran": "0.8", "A cat sat": "0.3"}

        result = rag.answer_with_rag("feline animal", top_k=2, enable_reranking=True)

        assert result.stats.after_pre_filter_count == 2
        assert not result.stats.filtering_enabled
        # rerank order wins over similarity order
        assert [c.content for c in result.context_chunks] == ["A dog ran", "A cat sat"]
        assert [s.document_name for s in result.sources] == ["dog.txt", "cat.txt"]

    def test_explicit_rerank_pool(self, rag, pets):
        result = rag.answer_with_rag("feline animal", top_k=1, enable_reranking=True, rerank_top_k=1)
        assert result.stats.initial_count == 1

    def test_zero_rerank_pool_is_honoured(self, rag, llm, pets):
        result = rag.answer_with_rag("feline animal", top_k=1, enable_reranking=True, rerank_top_k=0)
        assert result.stats.initial_count == 0
        assert result.context_chunks == []
        assert llm.rerank_calls == []

    def test_dropped_rerank_candidates(self, rag, llm, pets):
        llm.scores = {"A dog ran": "no idea", "A cat sat": "0.7"}
        result = rag.answer_with_rag("feline animal", top_k=2, enable_reranking=True)
        assert result.stats.after_rerank_count == 1
        assert result.stats.final_count == 1

    @pytest.mark.parametrize("threshold", [1.5, -0.1])
    def test_invalid_threshold_fails_before_any_call(self, rag, embedder, llm, pets, threshold):
        calls_before = len(embedder.calls)
        with pytest.raises(ThresholdRangeError):
            rag.answer_with_rag("feline animal", relevance_threshold=threshold)
        assert len(embedder.calls) == calls_before
        assert llm.calls == []

    def test_empty_index(self, rag, llm):
        result = rag.answer_with_rag("anything at all", top_k=3)

        assert result.context_chunks == []
        assert result.sources == []
        assert result.stats.final_count == 0
        assert "No context found." in llm.calls[-1][1]

    def test_answer_returned_unmodified(self, store, embedder, llm, pets):
        llm.answer = "  The context is insufficient.  \n"
        result = RagOrchestrator(SemanticSearch(store, embedder), llm).answer_with_rag("dogs?")
        assert result.answer == "  The context is insufficient.  \n"


class TestContextAndSources:
    def test_context_separator(self, rag, make_result):
        chunks = [make_result(1, "first", 0.9).chunk, make_result(2, "second", 0.8).chunk]
        assert rag.build_context(chunks) == "first\n\n----\n\nsecond"

    def test_custom_settings(self, store, embedder, llm, make_result):
        settings = RagSettings(context_separator=" | ", empty_context="(nothing)")
        rag = RagOrchestrator(SemanticSearch(store, embedder), llm, settings=settings)
        assert rag.build_context([make_result(1, "a", 0.9).chunk, make_result(2, "b", 0.8).chunk]) == "a | b"
        assert rag.build_context([]) == "(nothing)"

    def test_pre_filter_threshold(self, rag):
        assert rag.pre_filter_threshold(0.8) == pytest.approx(0.1)
        assert rag.pre_filter_threshold(0.1) == pytest.approx(0.05)

    def test_sources_are_distinct_documents_in_rank_order(self, make_result, as_reranked):
        results = [
            make_result(5, "b first", 0.9, document_id=2, path="/docs/b.md", chunk_index=3),
            make_result(1, "a", 0.8, document_id=1, path="/docs/a.md", chunk_index=0),
            make_result(6, "b second", 0.7, document_id=2, path="/docs/b.md", chunk_index=4),
        ]

        sources = collect_sources(as_reranked(results, [0.9, 0.8, 0.7]))

        assert [(s.document_path, s.chunk_index) for s in sources] == [("/docs/b.md", 3), ("/docs/a.md", 0)]
        assert sources[0].document_type == ".md"
        assert sources[0].document_name == "b.md"


class TestAnswerWithoutRag:
    def test_plain_mode(self, rag, llm, embedder):
        assert rag.answer_without_rag("what is a cat?") == "stub answer"
        system_prompt, user_message = llm.calls[0]
        assert system_prompt == PLAIN_SYSTEM_PROMPT
        assert "what is a cat?" in user_message
        assert embedder.calls == []
