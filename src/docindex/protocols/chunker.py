"""Protocol for text chunking strategies."""

from typing import Protocol, runtime_checkable

from docindex.models import ChunkInfo


@runtime_checkable
class ChunkingStrategy(Protocol):
    """Protocol for text chunking strategies.

    Implementations must return chunks in increasing ``chunk_index`` and
    ``start_char`` order, covering the whole text without gaps.
    """

    def chunk(self, text: str) -> list[ChunkInfo]:
        """Split text into positioned chunks."""
        ...
