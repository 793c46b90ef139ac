"""Ignore-file support (.iconignore, gitignore syntax).

Matching is delegated to pathspec's gitignore implementation, which covers
comments, blank lines, `*`/`**`/`?` globs, root-anchored `/patterns` and
directory-only `dir/` patterns.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pathspec

from .config import LEGACY_IGNORE_FILES

logger = logging.getLogger(__name__)


class IgnoreFilter:
    """Match predicate over paths relative to the workspace root."""

    def __init__(self, lines: list[str] | None = None, source: Path | None = None):
        self.patterns = [
            line.strip() for line in (lines or [])
            if line.strip() and not line.strip().startswith("#")
        ]
        self.source = source
        self._spec = pathspec.GitIgnoreSpec.from_lines(self.patterns)

    @classmethod
    def load(cls, path: str | Path) -> "IgnoreFilter":
        """Parse an ignore file. Missing or unreadable files give an empty filter."""
        p = Path(path)
        if not p.exists():
            return cls(source=p)
        try:
            content = p.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Could not read ignore file %s: %s", p, e)
            return cls(source=p)
        return cls(content.splitlines(), source=p)

    @classmethod
    def for_workspace(cls, root: Path, ignore_file: str = ".iconignore") -> "IgnoreFilter":
        """Load the configured ignore file, falling back to legacy names."""
        for name in [ignore_file, *LEGACY_IGNORE_FILES]:
            candidate = root / name
            if candidate.exists():
                return cls.load(candidate)
        return cls(source=root / ignore_file)

    @property
    def empty(self) -> bool:
        return not self.patterns

    @staticmethod
    def _normalize(relative_path: str | Path) -> str:
        rel = str(relative_path).replace("\\", "/")
        while rel.startswith("./"):
            rel = rel[2:]
        return rel.lstrip("/")

    def matches(self, relative_path: str | Path) -> bool:
        if self.empty:
            return False
        rel = self._normalize(relative_path)
        if not rel:
            return False
        return self._spec.match_file(rel)

    def matches_dir(self, relative_path: str | Path) -> bool:
        """Check a directory, so `dir/` patterns prune it before descending."""
        if self.empty:
            return False
        rel = self._normalize(relative_path).rstrip("/")
        if not rel:
            return False
        return self._spec.match_file(rel) or self._spec.match_file(rel + "/")

    def __len__(self) -> int:
        return len(self.patterns)
