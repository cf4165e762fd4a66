"""Binary content detection."""

from pathlib import Path

SAMPLE_SIZE = 8192


def is_binary_content(content: bytes, sample_size: int = SAMPLE_SIZE) -> bool:
    """Detect if content is binary by checking for null bytes and non-text chars.

    Args:
        content: Raw file content
        sample_size: Number of bytes to sample from the start

    Returns:
        True if content appears to be binary
    """
    if not content:
        return False

    sample = content[:sample_size]

    # Check for null bytes (strong binary indicator)
    if b"\x00" in sample:
        return True

    # UTF-8 text is allowed to have high bytes; only count control characters.
    text_chars = set(range(32, 256)) | {9, 10, 12, 13}
    non_text = sum(1 for byte in sample if byte not in text_chars)

    # If more than 30% non-text, treat as binary
    return (non_text / len(sample)) > 0.30


def is_binary_file(path: Path | str, sample_size: int = SAMPLE_SIZE) -> bool:
    """Sniff the first bytes of a file."""
    with open(path, "rb") as f:
        return is_binary_content(f.read(sample_size), sample_size)
