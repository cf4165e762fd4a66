"""Result types produced by search, reranking, RAG and indexing."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from docindex.models.document import Chunk, Document


@dataclass(frozen=True)
class SearchResult:
    """A chunk joined with its owning document and its query similarity."""

    chunk: Chunk
    document: Document
    similarity: float

    @property
    def content(self) -> str:
        return self.chunk.content


@dataclass(frozen=True)
class RerankedResult:
    """A search result re-scored by a reranker."""

    search_result: SearchResult
    rerank_score: float

    @property
    def original_similarity(self) -> float:
        return self.search_result.similarity

    @property
    def chunk(self) -> Chunk:
        return self.search_result.chunk

    @property
    def document(self) -> Document:
        return self.search_result.document

    @property
    def content(self) -> str:
        return self.search_result.content


@dataclass(frozen=True)
class SourceInfo:
    """Provenance of an answer.

    Holds copies of the identifying fields rather than a reference to the
    document, so it stays valid after the document is removed from the index.
    """

    document_path: str
    document_name: str
    document_type: str
    chunk_index: int


@dataclass(frozen=True)
class RagStats:
    """Candidate counts after each RAG pipeline stage."""

    initial_count: int
    after_pre_filter_count: Optional[int]
    after_rerank_count: Optional[int]
    after_filter_count: int
    final_count: int
    reranking_enabled: bool
    filtering_enabled: bool


@dataclass
class RagAnswer:
    """An answer together with the context it was grounded on."""

    question: str
    context_chunks: list[Chunk]
    answer: str
    stats: Optional[RagStats] = None
    sources: list[SourceInfo] = field(default_factory=list)


class IndexOutcome(str, Enum):
    INDEXED = "indexed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class IndexSummary:
    """Final report of an indexing run."""

    total: int = 0
    indexed: int = 0
    skipped: int = 0
    failed: int = 0
    chunks: int = 0
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def processed(self) -> int:
        return self.indexed + self.skipped + self.failed
