"""Base class for source-text detectors."""

from __future__ import annotations

import bisect
import re
from abc import ABC, abstractmethod

from ..config import IconAuditConfig

PREVIEW_LENGTH = 80


def slugify(name: str) -> str:
    slug = name.lower().strip()
    slug = re.sub(r'[^a-z0-9\s_-]', '', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug).strip('-')
    return slug


class SourceText:
    """Source text with O(log n) offset-to-line lookup."""

    def __init__(self, text: str):
        self.text = text
        self._starts = [0] + [m.end() for m in re.finditer(r"\n", text)]
        self._lines: list[str] | None = None

    def line_at(self, index: int) -> int:
        """1-based line number of a character offset."""
        return bisect.bisect_right(self._starts, index)

    def line_text(self, line: int) -> str:
        if self._lines is None:
            self._lines = self.text.split("\n")
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return ""

    def preview(self, line: int) -> str:
        return self.line_text(line).strip()[:PREVIEW_LENGTH]


class BaseDetector(ABC):
    """Base class for all detectors.

    Each detector runs one family of regex patterns over a file's text and
    returns what it found. Detection is pattern based, not a parser: markup
    built dynamically (JSX expressions, template interpolation) is not seen.
    """

    name: str = "base"
    description: str = ""

    def __init__(self, config: IconAuditConfig | None = None):
        self.config = config or IconAuditConfig()

    @abstractmethod
    def detect(self, source: SourceText, path: str) -> list:
        """Run detection against one file. Returns a list of findings."""
        ...
