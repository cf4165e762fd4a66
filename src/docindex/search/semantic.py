"""Exact semantic search over all stored embeddings."""

import logging
from typing import Optional

import numpy as np

from docindex.models import SearchResult
from docindex.protocols import EmbeddingProvider
from docindex.search.similarity import cosine_similarity_matrix
from docindex.storage import DocumentStore

logger = logging.getLogger(__name__)


class SemanticSearch:
    """Brute-force cosine search.

    Every query scans all stored vectors of the embedder's model, so cost
    grows linearly with the number of indexed chunks.
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        model_name: Optional[str] = None,
    ):
        self.store = store
        self.embedder = embedder
        # Only vectors from the query's model are comparable with it.
        self.model_name = model_name or embedder.model_name

    def search(self, query: str, top_k: int = 10) -> list[SearchResult]:
        """Return the ``top_k`` chunks most similar to ``query``.

        Results are ordered by similarity, highest first; equal scores are
        ordered by ascending chunk id.

        Raises:
            ApiError: if the query cannot be embedded
            DimensionMismatchError: if stored vectors do not match the query
        """
        if top_k <= 0:
            return []

        query_vector = self.embedder.embed(query)
        chunk_ids, matrix = self.store.load_embeddings(self.model_name)
        if chunk_ids.size == 0:
            logger.debug("Search over an empty index")
            return []

        scores = cosine_similarity_matrix(query_vector, matrix)
        # lexsort uses the last key as primary: score descending, then id ascending.
        order = np.lexsort((chunk_ids, -scores))

        results: list[SearchResult] = []
        for position in order:
            chunk_id = int(chunk_ids[position])
            joined = self.store.get_chunk_with_document(chunk_id)
            if joined is None:
                # Deleted by a concurrent reindex after the scan.
                logger.debug(f"Chunk {chunk_id} withdrawn during search, skipping")
                continue
            chunk, document = joined
            results.append(
                SearchResult(chunk=chunk, document=document, similarity=float(scores[position]))
            )
            if len(results) >= top_k:
                break

        logger.debug(f"Search {query!r}: {len(results)} of {chunk_ids.size} chunks returned")
        return results
