"""In-process embedding provider using sentence-transformers."""

import logging

import numpy as np
from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    """Local alternative to the Ollama embedder; no server required.

    Vectors are L2-normalized by the model, so stored scores compare
    directly with cosine similarity. An index built with this provider is
    only searchable with the same model name.
    """

    DEFAULT_MODEL = "all-MiniLM-L6-v2"

    def __init__(self, model_name: str | None = None, batch_size: int = 32, device: str | None = None):
        self._model_name = model_name or self.DEFAULT_MODEL
        self.batch_size = batch_size
        self.device = device
        self._model: SentenceTransformer | None = None

    @property
    def model(self) -> SentenceTransformer:
        """Load the model on first use."""
        if self._model is None:
            logger.info(f"Loading sentence-transformers model {self._model_name}")
            self._model = SentenceTransformer(self._model_name, device=self.device)
        return self._model

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimension(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    def embed(self, text: str) -> np.ndarray:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Encode texts in batches of ``batch_size``; one float32 row per text."""
        if not texts:
            return []

        matrix = self.model.encode(
            texts,
            batch_size=self.batch_size,
            convert_to_numpy=True,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return [np.asarray(row, dtype=np.float32) for row in matrix]
