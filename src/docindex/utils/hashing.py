"""Content hashing for change detection."""

import hashlib
from pathlib import Path

BUFFER_SIZE = 8192


def file_sha256(path: Path | str, buffer_size: int = BUFFER_SIZE) -> str:
    """Hex SHA-256 of a file, read in fixed-size blocks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(buffer_size), b""):
            digest.update(block)
    return digest.hexdigest()
