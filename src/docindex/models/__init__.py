"""Data models for DocIndex."""

from docindex.models.document import (
    Chunk,
    ChunkInfo,
    Document,
    Embedding,
    FileInfo,
    IndexStats,
)
from docindex.models.results import (
    IndexOutcome,
    IndexSummary,
    RagAnswer,
    RagStats,
    RerankedResult,
    SearchResult,
    SourceInfo,
)

__all__ = [
    "Document",
    "Chunk",
    "ChunkInfo",
    "Embedding",
    "FileInfo",
    "IndexStats",
    "SearchResult",
    "RerankedResult",
    "SourceInfo",
    "RagStats",
    "RagAnswer",
    "IndexOutcome",
    "IndexSummary",
]
