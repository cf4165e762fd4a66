"""Utility functions for DocIndex."""

from docindex.utils.binary import is_binary_content, is_binary_file
from docindex.utils.hashing import file_sha256
from docindex.utils.ignore import DEFAULT_EXCLUDE_PATTERNS, IgnoreRules
from docindex.utils.retry import call_with_retry

__all__ = [
    "is_binary_content",
    "is_binary_file",
    "file_sha256",
    "IgnoreRules",
    "DEFAULT_EXCLUDE_PATTERNS",
    "call_with_retry",
]
