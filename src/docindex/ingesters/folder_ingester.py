"""Discovery of indexable files in a local folder."""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from docindex.models import FileInfo
from docindex.utils.ignore import IgnoreRules

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = frozenset({
    ".md", ".txt", ".rst", ".kt", ".java", ".js", ".ts", ".jsx", ".tsx",
    ".py", ".rs", ".go", ".cpp", ".c", ".h", ".hpp", ".cs",
    ".rb", ".php", ".swift", ".scala", ".clj", ".sh", ".yaml", ".yml",
    ".json", ".xml", ".html", ".css",
    ".sql", ".toml", ".ini", ".conf", ".cfg",
})

# Files indexed by name even though their extension is not listed above.
SPECIAL_FILE_NAMES = frozenset({
    ".editorconfig",
    ".eslintrc", ".eslintrc.json", ".eslintrc.yml", ".eslintrc.yaml",
    ".prettierrc", ".prettierrc.json", ".prettierrc.yml", ".prettierrc.yaml",
    "dockerfile", "makefile",
    "openapi.yaml", "openapi.yml", "swagger.json",
    "prisma.schema", "schema.sql",
})

MAX_FILE_SIZE = 10 * 1024 * 1024


def file_extension(name: str) -> str:
    """Lower-cased extension including the dot, or "" when there is none."""
    dot = name.rfind(".")
    return name[dot:].lower() if dot >= 0 else ""


class FolderScanner:
    """Find indexable files under a root directory."""

    def __init__(
        self,
        ignore: Optional[IgnoreRules] = None,
        extensions: Iterable[str] = SUPPORTED_EXTENSIONS,
        special_names: Iterable[str] = SPECIAL_FILE_NAMES,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.ignore = ignore if ignore is not None else IgnoreRules.defaults()
        self.extensions = frozenset(e.lower() for e in extensions)
        self.special_names = frozenset(n.lower() for n in special_names)
        self.max_file_size = max_file_size

    def is_eligible(self, name: str, size: int) -> bool:
        allowed = file_extension(name) in self.extensions or name.lower() in self.special_names
        return allowed and size <= self.max_file_size

    def scan(self, root: Path | str) -> list[FileInfo]:
        """Return eligible files under ``root``, sorted by path.

        Args:
            root: Directory to scan recursively

        Raises:
            NotADirectoryError: if root is not an existing directory
        """
        root_path = Path(root).resolve()
        if not root_path.is_dir():
            raise NotADirectoryError(f"Directory does not exist: {root}")

        files: list[FileInfo] = []
        for dirpath, dirnames, filenames in os.walk(root_path):
            current = Path(dirpath)
            rel_dir = current.relative_to(root_path)

            # Prune ignored directories so os.walk never descends into them.
            dirnames[:] = sorted(
                d for d in dirnames
                if not self.ignore.is_ignored((rel_dir / d).as_posix(), is_dir=True)
            )

            for filename in sorted(filenames):
                rel_path = (rel_dir / filename).as_posix()
                if self.ignore.is_ignored(rel_path):
                    continue

                full_path = current / filename
                try:
                    stat = full_path.stat()
                except OSError as e:
                    logger.warning(f"Cannot stat {full_path}: {e}")
                    continue

                if not full_path.is_file() or not self.is_eligible(filename, stat.st_size):
                    continue

                files.append(
                    FileInfo(
                        path=str(full_path),
                        name=filename,
                        size_bytes=stat.st_size,
                        last_modified_ms=stat.st_mtime_ns // 1_000_000,
                        extension=file_extension(filename),
                    )
                )

        files.sort(key=lambda f: f.path)
        return files


def file_info(path: Path | str) -> FileInfo:
    """Build a FileInfo for a single file, without eligibility checks."""
    full_path = Path(path).resolve()
    stat = full_path.stat()
    return FileInfo(
        path=str(full_path),
        name=full_path.name,
        size_bytes=stat.st_size,
        last_modified_ms=stat.st_mtime_ns // 1_000_000,
        extension=file_extension(full_path.name),
    )
