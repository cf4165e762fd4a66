""".gitignore-style path exclusion."""

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable

# Excluded from every indexing run unless re-included with "!pattern".
DEFAULT_EXCLUDE_PATTERNS = [
    # Version control
    ".git/",
    ".svn/",
    ".hg/",
    # Dependencies
    "node_modules/",
    "vendor/",
    ".venv/",
    "venv/",
    "env/",
    "__pycache__/",
    ".pytest_cache/",
    ".mypy_cache/",
    ".ruff_cache/",
    ".tox/",
    "*.egg-info/",
    # Build output
    "build/",
    "dist/",
    "target/",
    "out/",
    "bin/",
    "obj/",
    ".gradle/",
    ".idea/",
    ".vscode/",
    ".vs/",
    # Caches and temporary files
    ".cache/",
    ".tmp/",
    "tmp/",
    "temp/",
    "*.tmp",
    "*.log",
    "*.swp",
    "*.swo",
    "*~",
    # Data files
    "*.db",
    "*.sqlite",
    "*.sqlite3",
    "*.dump",
    "*.backup",
]


@dataclass(frozen=True)
class IgnoreRule:
    """One compiled ignore pattern."""

    pattern: str
    regex: re.Pattern
    negated: bool
    dir_only: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        return self.regex.match(rel_path) is not None


def _translate(glob: str) -> str:
    """Translate a glob (without anchoring) into a regex body."""
    out = []
    i = 0
    n = len(glob)
    while i < n:
        c = glob[i]
        if c == "*":
            if glob[i : i + 2] == "**":
                at_start = i == 0 or glob[i - 1] == "/"
                at_end = i + 2 == n or glob[i + 2] == "/"
                if at_start and at_end:
                    if i + 2 == n:
                        out.append(".*")
                        i += 2
                    else:
                        out.append("(?:.*/)?")
                        i += 3
                    continue
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            j = glob.find("]", i + 1)
            if j == -1:
                out.append(re.escape(c))
                i += 1
                continue
            body = glob[i + 1 : j]
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append(f"[{body.replace(chr(92), chr(92) * 2)}]")
            i = j + 1
        elif c == "\\" and i + 1 < n:
            out.append(re.escape(glob[i + 1]))
            i += 2
        else:
            out.append(re.escape(c))
            i += 1
    return "".join(out)


def compile_pattern(line: str) -> IgnoreRule | None:
    """Compile one ignore-file line; returns None for blanks and comments."""
    pattern = line.rstrip("\n").rstrip()
    if not pattern or pattern.startswith("#"):
        return None

    negated = pattern.startswith("!")
    if negated:
        pattern = pattern[1:]
    elif pattern.startswith("\\!") or pattern.startswith("\\#"):
        pattern = pattern[1:]

    dir_only = pattern.endswith("/")
    body = pattern.rstrip("/")
    if not body:
        return None

    # A slash at the start or in the middle anchors the pattern at the root.
    anchored = "/" in body
    body = body.lstrip("/")

    prefix = "^" if anchored else "^(?:.*/)?"
    regex = re.compile(prefix + _translate(body) + "$")
    return IgnoreRule(pattern=line.strip(), regex=regex, negated=negated, dir_only=dir_only)


class IgnoreRules:
    """An ordered set of ignore patterns; the last matching pattern wins."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.rules: list[IgnoreRule] = []
        self.extend(patterns)

    @classmethod
    def defaults(cls) -> "IgnoreRules":
        return cls(DEFAULT_EXCLUDE_PATTERNS)

    @staticmethod
    def read_patterns(path: Path | str) -> list[str]:
        """Read patterns from an ignore file, empty if it does not exist."""
        ignore_file = Path(path)
        if not ignore_file.is_file():
            return []
        return ignore_file.read_text(encoding="utf-8", errors="replace").splitlines()

    @classmethod
    def from_file(cls, path: Path | str) -> "IgnoreRules":
        return cls(cls.read_patterns(path))

    def extend(self, patterns: Iterable[str]) -> None:
        for line in patterns:
            rule = compile_pattern(line)
            if rule is not None:
                self.rules.append(rule)

    def __len__(self) -> int:
        return len(self.rules)

    def _evaluate(self, rel_path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(rel_path, is_dir):
                ignored = not rule.negated
        return ignored

    def is_ignored(self, rel_path: str | PurePosixPath, is_dir: bool = False) -> bool:
        """Check a path relative to the indexing root.

        A path inside an ignored directory is ignored, whatever later
        patterns say about the path itself.
        """
        parts = PurePosixPath(rel_path).parts
        if not parts:
            return False
        for depth in range(1, len(parts)):
            if self._evaluate("/".join(parts[:depth]), is_dir=True):
                return True
        return self._evaluate("/".join(parts), is_dir)
