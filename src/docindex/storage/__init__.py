"""Persistent storage for the document index."""

from docindex.storage.store import DocumentStore, blob_to_vector, now_ms, vector_to_blob

__all__ = ["DocumentStore", "blob_to_vector", "vector_to_blob", "now_ms"]
