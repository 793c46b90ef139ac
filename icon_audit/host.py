"""Host editor I/O.

Editors integrate by implementing EditorHost. FileSystemHost is the plain
file implementation used by the CLI.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from .errors import IconReadError
from .library import atomic_write

logger = logging.getLogger(__name__)


class EditorHost(Protocol):
    def open_document(self, path: str) -> str:
        """Return the current text of a document."""
        ...

    def apply_edit(self, path: str, line_range: tuple[int, int], text: str) -> None:
        """Replace lines line_range[0]..line_range[1] (1-based, inclusive) with text."""
        ...

    def reveal(self, path: str, line: int) -> None:
        ...


class FileSystemHost:
    """EditorHost over plain files. reveal() records the request instead of showing it."""

    def __init__(self):
        self.revealed: list[tuple[str, int]] = []

    def open_document(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise IconReadError(path, str(e)) from e

    def apply_edit(self, path: str, line_range: tuple[int, int], text: str) -> None:
        content = self.open_document(path)
        lines = content.split("\n")
        start, end = line_range
        if start < 1 or end < start or end > len(lines):
            raise ValueError(f"Line range {line_range} outside {path} ({len(lines)} lines)")
        lines[start - 1:end] = text.split("\n")
        atomic_write(path, "\n".join(lines))

    def reveal(self, path: str, line: int) -> None:
        logger.info("%s:%d", path, line)
        self.revealed.append((path, line))
