"""Protocol for embedding model providers."""

from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding model providers.

    Allows swapping between a remote embedding service (Ollama), local
    models (sentence-transformers) or test stubs. The vector dimension is
    whatever the backend returns; providers never pad or truncate.
    """

    @property
    def model_name(self) -> str:
        """Return identifier for the model used."""
        ...

    def embed(self, text: str) -> np.ndarray:
        """Generate the embedding for one text as a 1-D float32 array."""
        ...

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for several texts, in input order."""
        ...
