"""Chunking of text streams without loading the whole source in memory."""

import io
from typing import Iterator, TextIO

from docindex.chunkers.fixed_chunker import ChunkConfig
from docindex.models import ChunkInfo


class StreamingChunker:
    """Streaming counterpart of :class:`TextChunker`.

    Reads the source through a buffer of ``2 * chunk_size`` characters and
    yields exactly the same chunks ``TextChunker.chunk`` would return for
    the full text.
    """

    def __init__(self, config: ChunkConfig | None = None):
        self.config = config or ChunkConfig()

    def chunk(self, text: str) -> list[ChunkInfo]:
        """Chunk an in-memory string through the streaming path."""
        return list(self.chunk_stream(io.StringIO(text)))

    def chunk_stream(self, reader: TextIO) -> Iterator[ChunkInfo]:
        """Yield chunks while reading from ``reader``.

        The reader is owned by the caller and is not closed here.
        """
        size = self.config.chunk_size
        step = self.config.step
        capacity = size * 2

        buffer = ""
        start = 0  # first unconsumed character in buffer
        position = 0  # offset of buffer[start] in the source
        index = 0
        last_end = 0

        while True:
            data = reader.read(capacity - len(buffer))
            if not data:
                remaining = buffer[start:]
                # Skip a tail that lies entirely inside the previous chunk.
                if remaining and (index == 0 or position + len(remaining) > last_end):
                    yield ChunkInfo(
                        content=remaining,
                        start_char=position,
                        end_char=position + len(remaining),
                        chunk_index=index,
                    )
                return

            buffer += data

            while len(buffer) - start >= size:
                content = buffer[start : start + size]
                last_end = position + size
                yield ChunkInfo(
                    content=content,
                    start_char=position,
                    end_char=last_end,
                    chunk_index=index,
                )
                start += step
                position += step
                index += 1

                # More than half of the buffer consumed: compact.
                if start > size:
                    buffer = buffer[start:]
                    start = 0
