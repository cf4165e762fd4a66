"""Protocol definitions for extensible components."""

from docindex.protocols.chunker import ChunkingStrategy
from docindex.protocols.embedder import EmbeddingProvider
from docindex.protocols.llm import LlmService

__all__ = ["ChunkingStrategy", "EmbeddingProvider", "LlmService"]
