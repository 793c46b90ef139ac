"""Filesystem walker: finds draft SVG files and source files to index.

The walk is depth-first and lazy (an async generator), so callers can start
parsing the first files before the tree has been fully listed. Directory
listings and file reads run in worker threads via asyncio.to_thread; a
failure on one entry is logged, recorded in `errors`, and skipped.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass
from pathlib import Path

from .config import IconAuditConfig
from .errors import ScanError
from .ignore import IgnoreFilter

logger = logging.getLogger(__name__)

SVG = "svg"
SOURCE = "source"

# Files emitted by the library builder; scanning them would find every
# built icon again as an inline SVG
GENERATED_FILE_NAMES = {"icons.js", "icons.ts", "icon.js", "icon.ts", "variants.js"}
GENERATED_MARKER = "Auto-generated by"


@dataclass(frozen=True)
class Candidate:
    path: Path
    kind: str  # SVG | SOURCE


def is_generated_file(path: Path, text: str | None = None) -> bool:
    if path.name in GENERATED_FILE_NAMES:
        return True
    return bool(text) and GENERATED_MARKER in text[:500]


def _list_dir(path: Path) -> list[tuple[str, str, bool, bool]]:
    with os.scandir(path) as it:
        return sorted(
            (entry.name, entry.path, entry.is_dir(), entry.is_file())
            for entry in it
        )


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


class FileScanner:
    """Walks workspace folders, applying the ignore filter before opening anything."""

    def __init__(
        self,
        root: str | Path,
        config: IconAuditConfig | None = None,
        ignore: IgnoreFilter | None = None,
    ):
        self.root = Path(root)
        self.config = config or IconAuditConfig()
        self.ignore = ignore or IgnoreFilter()
        self.errors: list[ScanError] = []
        self.truncated = False
        self.files_seen = 0

    def classify(self, path: Path) -> str | None:
        suffix = path.suffix.lower()
        if suffix == ".svg":
            return SVG
        if suffix in self.config.source_suffixes:
            return SOURCE
        return None

    def relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def is_ignored(self, path: Path, is_dir: bool = False) -> bool:
        rel = self.relative(path)
        if is_dir:
            return self.ignore.matches_dir(rel)
        return self.ignore.matches(rel)

    def _output_dir(self) -> Path | None:
        out = self.config.output_path(self.root)
        return Path(os.path.realpath(out)) if out else None

    async def scan(
        self,
        roots: Iterable[str | Path] | None = None,
        kinds: Iterable[str] = (SVG, SOURCE),
    ) -> AsyncIterator[Candidate]:
        """Yield one Candidate per matching file under `roots` (default: the workspace root).

        Each call starts a fresh walk.
        """
        wanted = set(kinds)
        self.errors = []
        self.truncated = False
        self.files_seen = 0
        visited: set[str] = set()
        output_dir = self._output_dir()

        for root in (roots or [self.root]):
            root_path = Path(root)
            if not root_path.is_dir():
                logger.debug("Skipping missing scan root %s", root_path)
                continue
            async for candidate in self._walk(root_path, 0, wanted, visited, output_dir):
                yield candidate
                if self.truncated:
                    return

    async def _walk(
        self,
        directory: Path,
        depth: int,
        wanted: set[str],
        visited: set[str],
        output_dir: Path | None,
    ) -> AsyncIterator[Candidate]:
        real = os.path.realpath(directory)
        if real in visited:
            logger.debug("Not following already visited directory %s", directory)
            return
        visited.add(real)

        if depth > self.config.max_depth:
            logger.debug("Max depth reached at %s", directory)
            return

        try:
            entries = await asyncio.to_thread(_list_dir, directory)
        except OSError as e:
            logger.warning("Could not list %s: %s", directory, e)
            self.errors.append(ScanError(str(directory), str(e), getattr(e, "strerror", None)))
            return

        for name, full, is_dir, is_file in entries:
            path = Path(full)
            if is_dir:
                if name in self.config.skip_dirs or self.is_ignored(path, is_dir=True):
                    continue
                async for candidate in self._walk(path, depth + 1, wanted, visited, output_dir):
                    yield candidate
                    if self.truncated:
                        return
                continue

            if not is_file:
                continue
            kind = self.classify(path)
            if kind is None or kind not in wanted:
                continue
            if self.is_ignored(path):
                logger.debug("Ignoring %s", path)
                continue
            if kind == SVG and output_dir and Path(os.path.realpath(path)).parent == output_dir:
                continue

            if self.files_seen >= self.config.max_files:
                self.truncated = True
                logger.warning("File limit (%d) reached; scan truncated", self.config.max_files)
                return
            self.files_seen += 1
            yield Candidate(path, kind)

    async def collect(
        self,
        roots: Iterable[str | Path] | None = None,
        kinds: Iterable[str] = (SVG, SOURCE),
    ) -> list[Candidate]:
        return [c async for c in self.scan(roots, kinds)]

    async def read_text(self, path: str | Path) -> str | None:
        """Read a file without blocking the loop. Returns None (and logs) on failure."""
        p = Path(path)
        try:
            return await asyncio.to_thread(_read, p)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable file %s: %s", p, e)
            self.errors.append(ScanError(str(p), str(e), getattr(e, "strerror", None)))
            return None
