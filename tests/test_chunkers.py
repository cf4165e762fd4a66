"""Tests for the eager and streaming fixed-size chunkers."""

import io
import random
import string

import pytest

from docindex.chunkers import ChunkConfig, StreamingChunker, TextChunker
from docindex.errors import ChunkingError
from docindex.protocols import ChunkingStrategy


def reconstruct(chunks) -> str:
    """Concatenate the non-overlapping part of each chunk."""
    text = ""
    for chunk in chunks:
        text += chunk.content[len(text) - chunk.start_char :]
    return text


def as_tuples(chunks):
    return [(c.content, c.start_char, c.end_char, c.chunk_index) for c in chunks]


class TrickleReader:
    """A reader that returns at most ``step`` characters per read."""

    def __init__(self, text: str, step: int = 3):
        self.text = text
        self.step = step
        self.position = 0

    def read(self, size: int = -1) -> str:
        n = self.step if size < 0 else min(size, self.step)
        data = self.text[self.position : self.position + n]
        self.position += len(data)
        return data


CONFIGS = [(1, 0), (4, 3), (5, 0), (7, 3), (10, 2), (20, 0), (512, 50)]


class TestChunkConfig:
    """Chunk geometry validation."""

    @pytest.mark.parametrize("size,overlap", [(0, 0), (-5, 0), (10, 10), (10, 11), (10, -1)])
    def test_invalid_geometry_rejected(self, size, overlap):
        with pytest.raises(ChunkingError):
            ChunkConfig(size, overlap)

    def test_chunking_error_is_value_error(self):
        with pytest.raises(ValueError):
            ChunkConfig(3, 3)

    def test_defaults(self):
        config = ChunkConfig()
        assert (config.chunk_size, config.overlap_size) == (512, 50)
        assert config.step == 462


class TestTextChunker:
    """Whole-string chunking."""

    def test_empty_text(self):
        assert TextChunker().chunk("") == []

    def test_short_text_is_one_chunk(self):
        chunks = TextChunker(ChunkConfig(10, 2)).chunk("hello")
        assert as_tuples(chunks) == [("hello", 0, 5, 0)]

    def test_text_of_exactly_chunk_size(self):
        chunks = TextChunker(ChunkConfig(5, 1)).chunk("abcde")
        assert as_tuples(chunks) == [("abcde", 0, 5, 0)]

    def test_final_short_chunk_is_kept(self):
        text = "0123456789" * 2 + "abcde"
        chunks = TextChunker(ChunkConfig(10, 0)).chunk(text)
        assert as_tuples(chunks) == [
            ("0123456789", 0, 10, 0),
            ("0123456789", 10, 20, 1),
            ("abcde", 20, 25, 2),
        ]

    def test_consecutive_chunks_overlap_by_configured_size(self):
        text = "".join(random.Random(1).choices(string.ascii_letters, k=100))
        chunks = TextChunker(ChunkConfig(20, 5)).chunk(text)
        for previous, current in zip(chunks, chunks[1:]):
            assert current.start_char == previous.start_char + 15
            assert current.chunk_index == previous.chunk_index + 1
            if len(current.content) >= 5:
                assert previous.content[-5:] == current.content[:5]
        assert chunks[-1].end_char == len(text)

    def test_no_chunk_lies_inside_its_predecessor(self):
        # 10 chars, window 4, step 3 ends exactly at the text end.
        chunks = TextChunker(ChunkConfig(4, 1)).chunk("0123456789")
        assert [(c.start_char, c.end_char) for c in chunks] == [(0, 4), (3, 7), (6, 10)]

    def test_offsets_index_into_source(self):
        text = "The quick brown fox jumps over the lazy dog"
        for chunk in TextChunker(ChunkConfig(8, 3)).chunk(text):
            assert text[chunk.start_char : chunk.end_char] == chunk.content

    def test_satisfies_protocol(self):
        assert isinstance(TextChunker(), ChunkingStrategy)
        assert isinstance(StreamingChunker(), ChunkingStrategy)


class TestStreamingChunker:
    """Streaming chunking must match the eager chunker exactly."""

    @pytest.mark.parametrize("size,overlap", CONFIGS)
    def test_coverage_and_equivalence(self, size, overlap):
        rng = random.Random(size * 1000 + overlap)
        config = ChunkConfig(size, overlap)
        for length in list(range(0, 3 * size + 2)) + [rng.randint(0, 5000) for _ in range(5)]:
            text = "".join(rng.choices(string.ascii_letters + " \n", k=length))
            eager = TextChunker(config).chunk(text)
            streamed = StreamingChunker(config).chunk(text)
            assert reconstruct(eager) == text
            assert as_tuples(streamed) == as_tuples(eager), (size, overlap, length)

    @pytest.mark.parametrize("size,overlap", CONFIGS)
    def test_short_reads(self, size, overlap):
        config = ChunkConfig(size, overlap)
        text = "".join(random.Random(7).choices(string.ascii_lowercase, k=3 * size + 7))
        streamed = list(StreamingChunker(config).chunk_stream(TrickleReader(text)))
        assert as_tuples(streamed) == as_tuples(TextChunker(config).chunk(text))

    def test_empty_stream(self):
        assert list(StreamingChunker().chunk_stream(io.StringIO(""))) == []

    def test_tail_after_last_full_window(self):
        chunks = StreamingChunker(ChunkConfig(4, 0)).chunk("abcdefghij")
        assert as_tuples(chunks) == [("abcd", 0, 4, 0), ("efgh", 4, 8, 1), ("ij", 8, 10, 2)]

    def test_reader_is_not_closed(self):
        reader = io.StringIO("some text")
        list(StreamingChunker(ChunkConfig(4, 1)).chunk_stream(reader))
        assert not reader.closed
