"""Indexing pipeline: scan, hash, chunk, embed, store."""

from docindex.indexing.indexer import DocumentIndexer, ProgressCallback

__all__ = ["DocumentIndexer", "ProgressCallback"]
