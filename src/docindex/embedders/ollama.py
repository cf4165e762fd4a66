"""Embedding provider backed by an Ollama server."""

import logging
from typing import Optional

import numpy as np
import requests

from docindex.errors import ApiError, ErrorKind
from docindex.utils.http import Timeout, post_json
from docindex.utils.retry import call_with_retry

logger = logging.getLogger(__name__)


class OllamaEmbedder:
    """Embedding provider calling Ollama's ``/api/embeddings`` endpoint.

    Each text is one request. Transient failures are retried with capped
    exponential backoff; after the last attempt an :class:`ApiError` is
    raised and the caller decides what to skip.
    """

    DEFAULT_MODEL = "nomic-embed-text:latest"
    DEFAULT_URL = "http://localhost:11434"

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        model_name: str | None = None,
        timeout: Timeout = (30.0, 60.0),
        retries: int = 3,
        backoff_base: float = 1.0,
        backoff_max: float = 8.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._model_name = model_name or self.DEFAULT_MODEL
        self.timeout = timeout
        self.retries = retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.session = session or requests.Session()

    @property
    def model_name(self) -> str:
        """Return identifier for the model used."""
        return self._model_name

    def embed(self, text: str) -> np.ndarray:
        """Embed one text.

        Raises:
            ApiError: after all retries are exhausted, or at once for a
                malformed response.
        """
        return call_with_retry(
            lambda: self._request(text),
            retries=self.retries,
            base=self.backoff_base,
            cap=self.backoff_max,
            what=f"Embedding request to {self.base_url}",
        )

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Embed texts one by one, in order."""
        return [self.embed(text) for text in texts]

    def _request(self, text: str) -> np.ndarray:
        url = f"{self.base_url}/api/embeddings"
        response = post_json(
            self.session,
            url,
            {"model": self._model_name, "prompt": text},
            self.timeout,
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise ApiError(ErrorKind.MALFORMED, f"{url} returned invalid JSON") from e

        values = payload.get("embedding") if isinstance(payload, dict) else None
        if not isinstance(values, list) or not values:
            raise ApiError(ErrorKind.MALFORMED, f"{url} response has no 'embedding' list")
        try:
            vector = np.asarray(values, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise ApiError(ErrorKind.MALFORMED, f"{url} returned non-numeric embedding") from e
        if vector.ndim != 1:
            raise ApiError(ErrorKind.MALFORMED, f"{url} returned a {vector.ndim}-D embedding")
        return vector

    def close(self) -> None:
        self.session.close()
