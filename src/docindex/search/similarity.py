"""Vector similarity functions."""

import numpy as np

from docindex.errors import DimensionMismatchError


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Compute cosine similarity between two vectors.

    Returns 0.0 when either vector has zero norm.

    Raises:
        DimensionMismatchError: if the vectors differ in length
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        raise DimensionMismatchError(f"Vectors must have the same dimension: {a.shape[0]} != {b.shape[0]}")

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    value = float(np.dot(a, b) / (norm_a * norm_b))
    # Rounding can push |value| marginally past 1.
    return max(-1.0, min(1.0, value))


def cosine_similarity_matrix(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of ``query`` against every row of ``matrix``.

    Rows with zero norm, or a zero query, score 0.0.
    """
    query = np.asarray(query, dtype=np.float64)
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.shape[0] == 0:
        return np.empty(0, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[1] != query.shape[0]:
        raise DimensionMismatchError(
            f"Query has dimension {query.shape[0]}, stored vectors have {matrix.shape[-1]}"
        )

    query_norm = np.linalg.norm(query)
    row_norms = np.linalg.norm(matrix, axis=1)
    denominators = row_norms * query_norm
    dots = matrix @ query

    scores = np.zeros(matrix.shape[0], dtype=np.float64)
    nonzero = denominators > 0
    scores[nonzero] = dots[nonzero] / denominators[nonzero]
    return np.clip(scores, -1.0, 1.0)


def normalize(vector: np.ndarray) -> np.ndarray:
    """Scale a vector to unit length; zero vectors are returned unchanged."""
    vector = np.asarray(vector)
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector / norm
