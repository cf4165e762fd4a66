"""SQLite-backed storage for the document index."""

import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

import numpy as np

from docindex.errors import DimensionMismatchError, IntegrityError
from docindex.models import Chunk, ChunkInfo, Document, Embedding, IndexStats
from docindex.storage.schema import SCHEMA

logger = logging.getLogger(__name__)

# Vectors are stored as little-endian 32-bit floats.
VECTOR_DTYPE = np.dtype("<f4")


def now_ms() -> int:
    return int(time.time() * 1000)


def vector_to_blob(vector: np.ndarray) -> bytes:
    return np.asarray(vector, dtype=VECTOR_DTYPE).tobytes()


def blob_to_vector(blob: bytes) -> np.ndarray:
    return np.frombuffer(blob, dtype=VECTOR_DTYPE)


def _row_to_document(row: sqlite3.Row, prefix: str = "") -> Document:
    return Document(
        id=row[f"{prefix}id"],
        file_path=row[f"{prefix}file_path"],
        file_name=row[f"{prefix}file_name"],
        file_size_bytes=row[f"{prefix}file_size"],
        last_modified_ms=row[f"{prefix}last_modified"],
        content_hash=row[f"{prefix}content_hash"],
        indexed_at_ms=row[f"{prefix}indexed_at"],
        file_type=row[f"{prefix}file_type"],
    )


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        id=row["id"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        content=row["content"],
        start_char=row["start_char"],
        end_char=row["end_char"],
        token_count=row["token_count"],
        created_at_ms=row["created_at"],
    )


class DocumentStore:
    """SQLite-backed storage for documents, chunks and embeddings.

    Every operation opens its own connection, so one store can be shared by
    threads. Write transactions are serialised by an in-process lock; reads
    never take it.
    """

    def __init__(self, path: Path | str, timeout: float = 30.0):
        self.path = Path(path)
        self.timeout = timeout
        self._write_lock = threading.Lock()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """A write transaction: all statements commit together or not at all."""
        with self._write_lock:
            with self.connection() as conn:
                conn.execute("BEGIN IMMEDIATE")
                yield conn

    def initialize(self) -> None:
        """Create schema if not exists."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._write_lock, self.connection() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(SCHEMA)

    # Documents

    def find_document_by_path(self, path: str) -> Optional[Document]:
        """Look up a document by its unique file path."""
        with self.connection() as conn:
            row = conn.execute(
                "SELECT * FROM documents WHERE file_path = ?", (path,)
            ).fetchone()
            return _row_to_document(row) if row else None

    def list_documents(self) -> list[Document]:
        with self.connection() as conn:
            cursor = conn.execute("SELECT * FROM documents ORDER BY file_path")
            return [_row_to_document(row) for row in cursor]

    @staticmethod
    def _upsert_document(conn: sqlite3.Connection, doc: Document) -> int:
        # ON CONFLICT ... DO UPDATE keeps the row id stable across reindexing.
        conn.execute(
            """INSERT INTO documents
               (file_path, file_name, file_size, last_modified, content_hash, indexed_at, file_type)
               VALUES (?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(file_path) DO UPDATE SET
                   file_name = excluded.file_name,
                   file_size = excluded.file_size,
                   last_modified = excluded.last_modified,
                   content_hash = excluded.content_hash,
                   indexed_at = excluded.indexed_at,
                   file_type = excluded.file_type""",
            (
                doc.file_path,
                doc.file_name,
                doc.file_size_bytes,
                doc.last_modified_ms,
                doc.content_hash,
                doc.indexed_at_ms,
                doc.file_type,
            ),
        )
        row = conn.execute(
            "SELECT id FROM documents WHERE file_path = ?", (doc.file_path,)
        ).fetchone()
        return row["id"]

    def save_document(self, doc: Document) -> int:
        """Insert or update a document by file path and return its id.

        Updating an existing document drops its chunks and embeddings.
        """
        with self.transaction() as conn:
            doc_id = self._upsert_document(conn, doc)
            conn.execute("DELETE FROM chunks WHERE document_id = ?", (doc_id,))
        doc.id = doc_id
        return doc_id

    def delete_document(self, document_id: int) -> None:
        """Delete a document; chunks and embeddings cascade."""
        with self.transaction() as conn:
            conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))

    def delete_document_by_path(self, path: str) -> bool:
        """Delete the document stored for ``path``. Returns False if absent."""
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM documents WHERE file_path = ?", (path,))
            return cursor.rowcount > 0

    # Chunks and embeddings

    @staticmethod
    def _insert_chunks(conn: sqlite3.Connection, chunks: Sequence[Chunk]) -> list[int]:
        chunk_ids = []
        for chunk in chunks:
            cursor = conn.execute(
                """INSERT INTO chunks
                   (document_id, chunk_index, content, start_char, end_char, token_count, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    chunk.document_id,
                    chunk.chunk_index,
                    chunk.content,
                    chunk.start_char,
                    chunk.end_char,
                    chunk.token_count,
                    chunk.created_at_ms,
                ),
            )
            chunk.id = cursor.lastrowid
            chunk_ids.append(cursor.lastrowid)
        return chunk_ids

    @staticmethod
    def _insert_embeddings(conn: sqlite3.Connection, embeddings: Sequence[Embedding]) -> None:
        conn.executemany(
            """INSERT INTO embeddings (chunk_id, embedding, model_name, dimension, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            [
                (
                    e.chunk_id,
                    vector_to_blob(e.vector),
                    e.model_name,
                    e.dimension,
                    e.created_at_ms,
                )
                for e in embeddings
            ],
        )

    def save_chunks(self, chunks: Sequence[Chunk]) -> list[int]:
        """Store chunks and return their IDs."""
        with self.transaction() as conn:
            return self._insert_chunks(conn, chunks)

    def save_embeddings(self, embeddings: Sequence[Embedding]) -> None:
        """Store embeddings for already persisted chunks."""
        with self.transaction() as conn:
            self._insert_embeddings(conn, embeddings)

    def replace_document(
        self,
        doc: Document,
        chunks: Sequence[ChunkInfo],
        vectors: Sequence[np.ndarray],
        model_name: str,
    ) -> int:
        """Atomically store a document with its full chunk and embedding set.

        Any previous chunks of the same file path are removed in the same
        transaction, so readers see either the old set or the new one.

        Returns:
            The document id (unchanged when the path was already indexed)
        """
        if len(chunks) != len(vectors):
            raise ValueError(f"{len(chunks)} chunks but {len(vectors)} vectors")

        created_at = doc.indexed_at_ms
        with self.transaction() as conn:
            doc_id = self._upsert_document(conn, doc)
            conn.execute("DELETE FROM chunks WHERE document_id = ?", (doc_id,))
            rows = [
                Chunk(
                    document_id=doc_id,
                    chunk_index=info.chunk_index,
                    content=info.content,
                    start_char=info.start_char,
                    end_char=info.end_char,
                    created_at_ms=created_at,
                )
                for info in chunks
            ]
            chunk_ids = self._insert_chunks(conn, rows)
            self._insert_embeddings(
                conn,
                [
                    Embedding(
                        chunk_id=chunk_id,
                        vector=np.asarray(vector, dtype=np.float32),
                        model_name=model_name,
                        created_at_ms=created_at,
                    )
                    for chunk_id, vector in zip(chunk_ids, vectors)
                ],
            )
        doc.id = doc_id
        return doc_id

    def count_chunks(self, document_id: int) -> int:
        with self.connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM chunks WHERE document_id = ?", (document_id,)
            ).fetchone()
            return row["n"]

    def count_chunks_without_model(self, document_id: int, model_name: str) -> int:
        """Chunks of a document with no embedding from ``model_name``."""
        with self.connection() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS n FROM chunks c
                LEFT JOIN embeddings e ON e.chunk_id = c.id AND e.model_name = ?
                WHERE c.document_id = ? AND e.chunk_id IS NULL
                """,
                (model_name, document_id),
            ).fetchone()
            return row["n"]

    def load_embeddings(self, model_name: Optional[str] = None) -> tuple[np.ndarray, np.ndarray]:
        """Full scan of stored vectors.

        Returns:
            ``(chunk_ids, matrix)`` where ``matrix[i]`` is the vector of
            ``chunk_ids[i]``; shapes ``(n,)`` and ``(n, dim)``.
        """
        query = "SELECT chunk_id, embedding, dimension FROM embeddings"
        params: tuple = ()
        if model_name is not None:
            query += " WHERE model_name = ?"
            params = (model_name,)
        query += " ORDER BY chunk_id"

        chunk_ids: list[int] = []
        vectors: list[np.ndarray] = []
        with self.connection() as conn:
            for row in conn.execute(query, params):
                vector = blob_to_vector(row["embedding"])
                if vector.shape[0] != row["dimension"]:
                    raise IntegrityError(
                        f"Embedding for chunk {row['chunk_id']} has {vector.shape[0]} values, "
                        f"recorded dimension is {row['dimension']}"
                    )
                chunk_ids.append(row["chunk_id"])
                vectors.append(vector)

        if not vectors:
            return np.empty(0, dtype=np.int64), np.empty((0, 0), dtype=np.float32)

        dimensions = {v.shape[0] for v in vectors}
        if len(dimensions) > 1:
            raise DimensionMismatchError(
                f"Stored embeddings have mixed dimensions {sorted(dimensions)}; "
                "restrict the scan to one model"
            )
        return np.asarray(chunk_ids, dtype=np.int64), np.vstack(vectors)

    def get_chunk_with_document(self, chunk_id: int) -> Optional[tuple[Chunk, Document]]:
        """Join a chunk with its owning document; None if either is gone."""
        with self.connection() as conn:
            row = conn.execute(
                """SELECT c.*,
                          d.id AS d_id, d.file_path AS d_file_path, d.file_name AS d_file_name,
                          d.file_size AS d_file_size, d.last_modified AS d_last_modified,
                          d.content_hash AS d_content_hash, d.indexed_at AS d_indexed_at,
                          d.file_type AS d_file_type
                   FROM chunks c JOIN documents d ON d.id = c.document_id
                   WHERE c.id = ?""",
                (chunk_id,),
            ).fetchone()
            if row is None:
                return None
            return _row_to_chunk(row), _row_to_document(row, prefix="d_")

    # Maintenance

    def get_stats(self) -> IndexStats:
        with self.connection() as conn:
            counts = conn.execute(
                """SELECT (SELECT COUNT(*) FROM documents) AS documents,
                          (SELECT COUNT(*) FROM chunks) AS chunks,
                          (SELECT COUNT(*) FROM embeddings) AS embeddings"""
            ).fetchone()
            return IndexStats(
                documents=counts["documents"],
                chunks=counts["chunks"],
                embeddings=counts["embeddings"],
            )

    def clear_all(self) -> None:
        """Remove every document, chunk and embedding."""
        with self.transaction() as conn:
            conn.execute("DELETE FROM embeddings")
            conn.execute("DELETE FROM chunks")
            conn.execute("DELETE FROM documents")

    def find_orphans(self) -> list[int]:
        """Ids of chunks that have no embedding."""
        with self.connection() as conn:
            cursor = conn.execute(
                """SELECT c.id FROM chunks c
                   LEFT JOIN embeddings e ON e.chunk_id = c.id
                   WHERE e.chunk_id IS NULL ORDER BY c.id"""
            )
            return [row["id"] for row in cursor]

    def check_integrity(self) -> None:
        """Raise IntegrityError if any chunk is missing its embedding."""
        orphans = self.find_orphans()
        if orphans:
            raise IntegrityError(f"{len(orphans)} chunk(s) without embedding, e.g. {orphans[:5]}")

    def set_metadata(self, key: str, value: str) -> None:
        """Store a metadata key-value pair."""
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                (key, value),
            )

    def get_metadata(self, key: str) -> Optional[str]:
        """Retrieve a metadata value by key."""
        with self.connection() as conn:
            row = conn.execute(
                "SELECT value FROM metadata WHERE key = ?", (key,)
            ).fetchone()
            return row["value"] if row else None
