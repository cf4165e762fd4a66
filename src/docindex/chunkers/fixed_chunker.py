"""Fixed-size character chunking with overlap."""

from dataclasses import dataclass

from docindex.errors import ChunkingError
from docindex.models import ChunkInfo


@dataclass(frozen=True)
class ChunkConfig:
    """Chunk geometry, in characters."""

    chunk_size: int = 512
    overlap_size: int = 50

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ChunkingError(f"chunk_size must be positive, got {self.chunk_size}")
        if not 0 <= self.overlap_size < self.chunk_size:
            raise ChunkingError(
                f"overlap_size must be in [0, {self.chunk_size}), got {self.overlap_size}"
            )

    @property
    def step(self) -> int:
        """Distance between the starts of consecutive chunks."""
        return self.chunk_size - self.overlap_size


class TextChunker:
    """Split a whole string into overlapping fixed-size windows.

    Chunk ``i + 1`` starts ``chunk_size - overlap_size`` characters after
    chunk ``i``. The last chunk ends at the end of the text and may be
    shorter than ``chunk_size``.
    """

    def __init__(self, config: ChunkConfig | None = None):
        self.config = config or ChunkConfig()

    def chunk(self, text: str) -> list[ChunkInfo]:
        """Split text into chunks with position information.

        Args:
            text: The text content to chunk

        Returns:
            List of ChunkInfo objects, empty for empty text
        """
        if not text:
            return []

        size = self.config.chunk_size
        step = self.config.step
        length = len(text)

        chunks = []
        start = 0
        index = 0
        while True:
            end = min(start + size, length)
            chunks.append(
                ChunkInfo(
                    content=text[start:end],
                    start_char=start,
                    end_char=end,
                    chunk_index=index,
                )
            )
            if end >= length:
                break
            start += step
            index += 1

        return chunks
