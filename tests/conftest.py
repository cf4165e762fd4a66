"""Shared fixtures: a temporary store and deterministic embedding / LLM stubs."""

import re
from pathlib import Path

import numpy as np
import pytest

from docindex.errors import ApiError, ErrorKind
from docindex.ingesters import file_extension
from docindex.models import Chunk, ChunkInfo, Document, RerankedResult, SearchResult
from docindex.search.reranker import RERANK_SYSTEM_PROMPT
from docindex.storage import DocumentStore, now_ms

STUB_MODEL = "stub-model"

# Words sharing an axis are treated as synonyms.
KEYWORD_AXES = {
    "cat": 0,
    "cats": 0,
    "feline": 0,
    "kitten": 0,
    "dog": 1,
    "dogs": 1,
    "canine": 1,
    "puppy": 1,
}


class KeywordEmbedder:
    """Bag-of-synonyms embedder: [cat-ness, dog-ness, 1.0].

    The constant last component keeps every vector non-zero. Texts
    containing ``fail_on`` raise a network ApiError.
    """

    model_name = STUB_MODEL

    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.calls: list[str] = []

    def embed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise ApiError(ErrorKind.NETWORK, "connection refused", attempts=3)
        vector = np.zeros(3, dtype=np.float32)
        for word in re.findall(r"[a-z]+", text.lower()):
            axis = KEYWORD_AXES.get(word)
            if axis is not None:
                vector[axis] += 1.0
        vector[2] = 1.0
        return vector

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        return [self.embed(text) for text in texts]


class TableEmbedder:
    """Returns a fixed vector per query text."""

    model_name = STUB_MODEL

    def __init__(self, table: dict[str, list[float]]):
        self.table = table

    def embed(self, text: str) -> np.ndarray:
        return np.asarray(self.table[text], dtype=np.float32)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        return [self.embed(text) for text in texts]


class ScriptedLlm:
    """LLM stub.

    Rerank prompts are answered from ``scores``: the first key found in the
    user message selects the reply (an exception value is raised instead).
    Every other prompt gets ``answer``.
    """

    def __init__(self, scores: dict[str, object] | None = None, answer: str = "stub answer"):
        self.scores = scores or {}
        self.answer = answer
        self.calls: list[tuple[str, str]] = []

    @property
    def rerank_calls(self) -> list[str]:
        return [user for system, user in self.calls if system == RERANK_SYSTEM_PROMPT]

    def generate_answer(self, system_prompt: str, user_message: str) -> str:
        self.calls.append((system_prompt, user_message))
        if system_prompt != RERANK_SYSTEM_PROMPT:
            return self.answer
        for needle, reply in self.scores.items():
            if needle in user_message:
                if isinstance(reply, Exception):
                    raise reply
                return str(reply)
        return "0.5"


@pytest.fixture
def store(tmp_path):
    """Initialized store in a temporary directory."""
    document_store = DocumentStore(tmp_path / "index.db")
    document_store.initialize()
    return document_store


@pytest.fixture
def embedder():
    return KeywordEmbedder()


@pytest.fixture
def failing_embedder():
    """Fails for any text containing "boom"."""
    return KeywordEmbedder(fail_on="boom")


@pytest.fixture
def table_embedder():
    """Factory: ``table_embedder({"query": [..vector..]})``."""
    return TableEmbedder


@pytest.fixture
def llm():
    return ScriptedLlm()


@pytest.fixture
def add_document(store):
    """Store a document whose chunks have explicit vectors.

    Chunks are laid end to end: ``add(path, [(text, vector), ...])``.
    """

    def add(
        path: str,
        pieces: list[tuple[str, list[float]]],
        model_name: str = STUB_MODEL,
        content_hash: str = "hash",
        last_modified_ms: int = 1_000,
    ) -> Document:
        chunks = []
        offset = 0
        for index, (text, _) in enumerate(pieces):
            chunks.append(ChunkInfo(text, offset, offset + len(text), index))
            offset += len(text)
        document = Document(
            file_path=path,
            file_name=Path(path).name,
            file_size_bytes=offset,
            last_modified_ms=last_modified_ms,
            content_hash=content_hash,
            indexed_at_ms=now_ms(),
            file_type=file_extension(Path(path).name),
        )
        vectors = [np.asarray(vector, dtype=np.float32) for _, vector in pieces]
        store.replace_document(document, chunks, vectors, model_name)
        return document

    return add


@pytest.fixture
def make_result():
    """Build a SearchResult without a store."""

    def make(
        chunk_id: int,
        content: str,
        similarity: float,
        document_id: int = 1,
        path: str = "/docs/notes.md",
        chunk_index: int = 0,
    ) -> SearchResult:
        chunk = Chunk(
            id=chunk_id,
            document_id=document_id,
            chunk_index=chunk_index,
            content=content,
            start_char=0,
            end_char=len(content),
            created_at_ms=0,
        )
        document = Document(
            id=document_id,
            file_path=path,
            file_name=Path(path).name,
            file_size_bytes=len(content),
            last_modified_ms=0,
            content_hash="hash",
            indexed_at_ms=0,
            file_type=file_extension(Path(path).name),
        )
        return SearchResult(chunk=chunk, document=document, similarity=similarity)

    return make


@pytest.fixture
def as_reranked():
    def convert(results: list[SearchResult], scores: list[float]) -> list[RerankedResult]:
        return [RerankedResult(search_result=r, rerank_score=s) for r, s in zip(results, scores)]

    return convert
