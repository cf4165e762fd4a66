"""Incremental indexing of a file tree into the document store."""

import logging
import sqlite3
import threading
import weakref
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from docindex.chunkers import ChunkConfig, StreamingChunker, TextChunker
from docindex.errors import ApiError, ChunkingError
from docindex.ingesters import FolderScanner
from docindex.models import ChunkInfo, Document, FileInfo, IndexOutcome, IndexSummary
from docindex.protocols import EmbeddingProvider
from docindex.storage import DocumentStore, now_ms
from docindex.utils.binary import is_binary_file
from docindex.utils.hashing import file_sha256

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

# Per-file failures that are logged and counted instead of aborting the run.
RECOVERABLE_ERRORS = (OSError, UnicodeDecodeError, ApiError, ChunkingError, sqlite3.OperationalError)


class DocumentIndexer:
    """Keep the store in sync with the eligible files under a directory.

    A file is re-chunked and re-embedded only when its content hash or
    modification time differs from the stored document, or when some of its
    chunks lack a vector from the current embedding model. All rows of one
    document are written in a single transaction, and embedding requests
    are made before that transaction starts.
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        config: Optional[ChunkConfig] = None,
        scanner: Optional[FolderScanner] = None,
        streaming: bool = True,
        max_workers: int = 1,
    ):
        self.store = store
        self.embedder = embedder
        self.config = config or ChunkConfig()
        self.scanner = scanner or FolderScanner()
        self.streaming = streaming
        self.max_workers = max(1, max_workers)
        # Entries vanish once no thread holds a reference to the lock.
        self._path_locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._path_locks_guard = threading.Lock()

    def _lock_for(self, path: str) -> threading.Lock:
        with self._path_locks_guard:
            lock = self._path_locks.get(path)
            if lock is None:
                lock = self._path_locks[path] = threading.Lock()
            return lock

    def index_directory(
        self,
        root: Path | str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> IndexSummary:
        """Index every eligible file under ``root``.

        Args:
            root: Directory to index
            on_progress: Called with ``(processed, total)`` after each file,
                whether it was indexed, skipped or failed

        Returns:
            Counts of indexed, skipped and failed files
        """
        files = self.scanner.scan(root)
        summary = IndexSummary(total=len(files))
        logger.info(f"Found {len(files)} files to check under {root}")

        def record(info: FileInfo, outcome: IndexOutcome, chunks: int, error: Optional[str]) -> None:
            if outcome is IndexOutcome.INDEXED:
                summary.indexed += 1
                summary.chunks += chunks
            elif outcome is IndexOutcome.SKIPPED:
                summary.skipped += 1
            else:
                summary.failed += 1
                summary.failures[info.path] = error or "unknown error"
            if on_progress is not None:
                on_progress(summary.processed, summary.total)

        if self.max_workers == 1:
            for info in files:
                record(info, *self._index_guarded(info))
        else:
            # Results are recorded on this thread only, so progress stays ordered.
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = {pool.submit(self._index_guarded, info): info for info in files}
                for future in as_completed(futures):
                    record(futures[future], *future.result())

        self.store.set_metadata("last_indexed_root", str(Path(root).resolve()))
        self.store.set_metadata("last_indexed_at", datetime.now().isoformat())
        self.store.set_metadata("embedding_model", self.embedder.model_name)

        logger.info(
            f"Indexing finished: {summary.indexed} indexed, {summary.skipped} unchanged, "
            f"{summary.failed} failed, {summary.chunks} chunks written"
        )
        return summary

    def _index_guarded(self, info: FileInfo) -> tuple[IndexOutcome, int, Optional[str]]:
        try:
            outcome, chunks = self.index_file(info)
            return outcome, chunks, None
        except RECOVERABLE_ERRORS as e:
            logger.error(f"Error indexing {info.path}: {e}")
            return IndexOutcome.FAILED, 0, str(e)

    def index_file(self, info: FileInfo) -> tuple[IndexOutcome, int]:
        """Index one file unless it is unchanged since the last run.

        Returns:
            The outcome and the number of chunks written
        """
        with self._lock_for(info.path):
            content_hash = file_sha256(info.path)
            existing = self.store.find_document_by_path(info.path)
            if (
                existing is not None
                and existing.content_hash == content_hash
                and existing.last_modified_ms == info.last_modified_ms
                and self.store.count_chunks_without_model(existing.id, self.embedder.model_name) == 0
            ):
                logger.debug(f"Unchanged: {info.path}")
                return IndexOutcome.SKIPPED, 0

            if is_binary_file(info.path):
                logger.warning(f"Skipping binary content: {info.path}")
                if existing is not None:
                    self.store.delete_document(existing.id)
                    logger.info(f"  Dropped stale chunks of {info.path}")
                return IndexOutcome.SKIPPED, 0

            chunks = self.chunk_file(info.path)
            vectors = self.embedder.embed_batch([c.content for c in chunks])

            document = Document(
                file_path=info.path,
                file_name=info.name,
                file_size_bytes=info.size_bytes,
                last_modified_ms=info.last_modified_ms,
                content_hash=content_hash,
                indexed_at_ms=now_ms(),
                file_type=info.extension,
            )
            self.store.replace_document(document, chunks, vectors, self.embedder.model_name)

            action = "Reindexed" if existing is not None else "Indexed"
            logger.info(f"  {action} {info.path} ({len(chunks)} chunks)")
            return IndexOutcome.INDEXED, len(chunks)

    def chunk_file(self, path: Path | str) -> list[ChunkInfo]:
        """Chunk a file's text. Newlines are kept as stored, so offsets match the file."""
        with open(path, encoding="utf-8", errors="replace", newline="") as f:
            if self.streaming:
                return list(StreamingChunker(self.config).chunk_stream(f))
            return TextChunker(self.config).chunk(f.read())

    def remove(self, path: Path | str) -> bool:
        """Drop a file from the index. Returns False if it was not indexed."""
        candidates = [str(Path(path).resolve()), str(path)]
        for candidate in dict.fromkeys(candidates):
            with self._lock_for(candidate):
                if self.store.delete_document_by_path(candidate):
                    logger.info(f"Removed {candidate} from the index")
                    return True
        return False
