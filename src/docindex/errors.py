"""Exception types for DocIndex."""

from enum import Enum
from typing import Optional


class DocIndexError(Exception):
    """Base class for all DocIndex errors."""


class ErrorKind(str, Enum):
    """Classification of a failed call to an external service."""

    NETWORK = "network"  # connection refused, DNS, timeout
    HTTP = "http"  # non-2xx status
    MALFORMED = "malformed"  # 2xx with a payload we cannot use


class ApiError(DocIndexError):
    """An embedding or chat request that failed after all retries."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        attempts: int = 1,
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.attempts = attempts

    @property
    def retryable(self) -> bool:
        """Whether another attempt could plausibly succeed."""
        if self.kind is ErrorKind.NETWORK:
            return True
        if self.kind is ErrorKind.HTTP:
            return self.status_code is None or self.status_code >= 500 or self.status_code == 429
        return False

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            return f"[{self.kind.value} {self.status_code}] {base}"
        return f"[{self.kind.value}] {base}"


class DimensionMismatchError(DocIndexError, ValueError):
    """Two vectors of different length were compared."""


class ThresholdRangeError(DocIndexError, ValueError):
    """A relevance threshold outside [0.0, 1.0]."""


class ChunkingError(DocIndexError, ValueError):
    """Invalid chunk size / overlap combination."""


class ScoreParseError(DocIndexError, ValueError):
    """No relevance score could be read from an LLM response."""


class IntegrityError(DocIndexError):
    """The stored index violates the document/chunk/embedding ownership model."""
