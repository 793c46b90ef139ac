"""Image detector: <img src="*.svg"> references to SVG files."""

from __future__ import annotations

import os
import re
from pathlib import Path, PurePosixPath

from .base import BaseDetector, SourceText
from ..models import SvgReference, UsageSite

_IMG_SVG = re.compile(
    r'<img\b[^>]*?(?<![\w-])src\s*=\s*["\']([^"\']*?\.svg)(?:[?#][^"\']*)?["\'][^>]*>',
    re.IGNORECASE,
)


def resolve_svg_src(src: str, source_file: Path, root: Path | None) -> Path:
    """Resolve an <img> src: relative to the source file, then to the workspace root."""
    if src.startswith(("./", "../")):
        candidate = (source_file.parent / src).resolve()
        if not candidate.exists() and root is not None:
            rooted = root / src.removeprefix("./")
            if rooted.exists():
                return rooted
        return candidate
    if os.path.isabs(src) and Path(src).exists():
        return Path(src)
    if root is not None:
        return root / src.lstrip("/")
    return source_file.parent / src


class ImgReferenceDetector(BaseDetector):
    name = "img"
    description = "<img> tags whose src points at an .svg file"

    def detect(self, source: SourceText, path: str) -> list[UsageSite]:
        if "<img" not in source.text.lower():
            return []

        sites = []
        for m in _IMG_SVG.finditer(source.text):
            line = source.line_at(m.start())
            sites.append(UsageSite(
                file=path,
                line=line,
                preview=source.preview(line),
                referenced_name=PurePosixPath(m.group(1)).stem,
                detector=self.name,
            ))
        return sites

    def references(self, source: SourceText, path: str, root: Path | None = None) -> list[SvgReference]:
        """Same matches as detect(), resolved against the filesystem."""
        refs = []
        for m in _IMG_SVG.finditer(source.text):
            src = m.group(1)
            resolved = resolve_svg_src(src, Path(path), root)
            refs.append(SvgReference(
                name=PurePosixPath(src).stem,
                src=src,
                resolved_path=str(resolved),
                exists=resolved.exists(),
                file=path,
                line=source.line_at(m.start()),
            ))
        return refs
