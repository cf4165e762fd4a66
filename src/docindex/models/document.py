"""Core data models for documents, chunks and embeddings."""

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class FileInfo:
    """A file discovered on disk that is eligible for indexing."""

    path: str
    name: str
    size_bytes: int
    last_modified_ms: int
    extension: str


@dataclass
class Document:
    """One indexed file."""

    file_path: str
    file_name: str
    file_size_bytes: int
    last_modified_ms: int
    content_hash: str
    indexed_at_ms: int
    file_type: str
    id: Optional[int] = None


@dataclass(frozen=True)
class ChunkInfo:
    """A span of text produced by a chunker, before it is persisted."""

    content: str
    start_char: int
    end_char: int
    chunk_index: int


@dataclass
class Chunk:
    """A persisted span of a document's text."""

    document_id: int
    chunk_index: int
    content: str
    start_char: int
    end_char: int
    created_at_ms: int
    token_count: Optional[int] = None
    id: Optional[int] = None


@dataclass
class Embedding:
    """The vector for one chunk under one model."""

    chunk_id: int
    vector: np.ndarray
    model_name: str
    created_at_ms: int

    @property
    def dimension(self) -> int:
        return int(self.vector.shape[0])


@dataclass(frozen=True)
class IndexStats:
    """Row counts of the index."""

    documents: int
    chunks: int
    embeddings: int
