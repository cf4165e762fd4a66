"""Chunking strategies for DocIndex."""

from docindex.chunkers.fixed_chunker import ChunkConfig, TextChunker
from docindex.chunkers.streaming_chunker import StreamingChunker

__all__ = ["ChunkConfig", "TextChunker", "StreamingChunker"]
