"""File discovery for DocIndex."""

from docindex.ingesters.folder_ingester import (
    MAX_FILE_SIZE,
    SPECIAL_FILE_NAMES,
    SUPPORTED_EXTENSIONS,
    FolderScanner,
    file_extension,
    file_info,
)

__all__ = [
    "FolderScanner",
    "file_info",
    "file_extension",
    "SUPPORTED_EXTENSIONS",
    "SPECIAL_FILE_NAMES",
    "MAX_FILE_SIZE",
]
