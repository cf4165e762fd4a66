"""Tests for exact semantic search."""

import pytest

from docindex.errors import ApiError, DimensionMismatchError
from docindex.search import SemanticSearch


@pytest.fixture
def corpus(add_document):
    """Five chunks in two documents with known vectors."""
    add_document("/docs/a.md", [("north", [1.0, 0.0]), ("mostly north", [0.9, 0.1]), ("east", [0.0, 1.0])])
    add_document("/docs/b.md", [("diagonal", [0.5, 0.5]), ("south", [-1.0, 0.0])])


@pytest.fixture
def search_for(store, table_embedder):
    def make(table):
        return SemanticSearch(store, table_embedder(table))

    return make


class TestSemanticSearch:
    def test_top_three_in_descending_order(self, store, corpus, search_for):
        results = search_for({"q": [1.0, 0.0]}).search("q", 3)

        assert [r.content for r in results] == ["north", "mostly north", "diagonal"]
        scores = [r.similarity for r in results]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == pytest.approx(1.0)
        assert results[2].document.file_path == "/docs/b.md"

    def test_top_k_larger_than_corpus(self, store, corpus, search_for):
        results = search_for({"q": [1.0, 0.0]}).search("q", 50)
        assert len(results) == 5
        assert results[-1].content == "south"
        assert results[-1].similarity == pytest.approx(-1.0)

    def test_ties_broken_by_chunk_id(self, store, add_document, search_for):
        add_document("/docs/z.md", [("first stored", [0.0, 2.0])])
        add_document("/docs/a.md", [("second stored", [0.0, 1.0]), ("third stored", [0.0, 3.0])])

        results = search_for({"q": [0.0, 1.0]}).search("q", 3)

        assert [r.content for r in results] == ["first stored", "second stored", "third stored"]
        ids = [r.chunk.id for r in results]
        assert ids == sorted(ids)

    def test_non_positive_top_k(self, store, corpus, search_for):
        search = search_for({"q": [1.0, 0.0]})
        assert search.search("q", 0) == []
        assert search.search("q", -1) == []

    def test_empty_index(self, store, search_for):
        assert search_for({"q": [1.0, 0.0]}).search("q", 5) == []

    def test_withdrawn_chunk_is_skipped(self, store, corpus, monkeypatch, search_for):
        search = search_for({"q": [1.0, 0.0]})
        withdrawn = search.search("q", 2)[1].chunk.id
        original = store.get_chunk_with_document
        monkeypatch.setattr(
            store,
            "get_chunk_with_document",
            lambda chunk_id: None if chunk_id == withdrawn else original(chunk_id),
        )

        results = search.search("q", 3)

        assert [r.content for r in results] == ["north", "diagonal", "east"]

    def test_other_models_are_ignored(self, store, corpus, add_document, search_for):
        add_document("/docs/c.md", [("other model", [1.0, 0.0, 0.0])], model_name="other")
        results = search_for({"q": [1.0, 0.0]}).search("q", 10)
        assert len(results) == 5
        assert all(r.document.file_path != "/docs/c.md" for r in results)

    def test_query_dimension_mismatch(self, store, corpus, search_for):
        with pytest.raises(DimensionMismatchError):
            search_for({"q": [1.0, 0.0, 0.0]}).search("q", 3)

    def test_embedding_failure_propagates(self, store, corpus, failing_embedder):
        with pytest.raises(ApiError):
            SemanticSearch(store, failing_embedder).search("boom", 3)
