"""DocIndex - local semantic search and retrieval-augmented answering over a file tree."""

__version__ = "0.1.0"
