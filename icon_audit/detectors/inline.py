"""Inline SVG detector: <svg ...>...</svg> blocks embedded in source files."""

from __future__ import annotations

import re
from pathlib import Path

from .base import BaseDetector, SourceText, slugify
from ..models import Icon, IconKind, Location

# Non-greedy: an unclosed <svg> never matches on its own
_INLINE_SVG = re.compile(r"<svg(?![\w-])[^>]*>[\s\S]*?</svg\s*>", re.IGNORECASE)
_OPEN_TAG = re.compile(r"<svg(?![\w-])[^>]*>", re.IGNORECASE)
_ID = re.compile(r'(?<![\w-])id\s*=\s*["\']([^"\']+)["\']')
_ARIA_LABEL = re.compile(r'aria-label\s*=\s*["\']([^"\']+)["\']')
_ICON_CLASS = re.compile(r'(?<![\w-])(?:class|className)\s*=\s*["\']([^"\']*icon[^"\']*)["\']', re.IGNORECASE)
_ASSIGNMENT = re.compile(r'(?:const|let|var)\s+(\w+?)(?:Icon|Svg)\s*=', re.IGNORECASE)


class InlineSvgDetector(BaseDetector):
    name = "inline"
    description = "Inline <svg> markup embedded in source files"

    def icon_name(self, svg: str, source: SourceText, line: int, path: str) -> str:
        """Derive a name: id, aria-label, icon class, preceding assignment, then a synthetic slug."""
        open_tag = _OPEN_TAG.match(svg)
        tag = open_tag.group(0) if open_tag else svg

        m = _ID.search(tag)
        if m:
            return m.group(1)

        m = _ARIA_LABEL.search(tag)
        if m:
            slug = slugify(m.group(1))
            if slug:
                return slug

        m = _ICON_CLASS.search(tag)
        if m:
            for cls in m.group(1).split():
                if "icon" in cls.lower():
                    stripped = re.sub(r"icon-?", "", cls, flags=re.IGNORECASE).strip("-")
                    if stripped:
                        return stripped

        if line > 1:
            m = _ASSIGNMENT.search(source.line_text(line - 1))
            if m and m.group(1):
                return m.group(1).lower()

        stem = slugify(Path(path).stem) or "inline"
        return f"{stem}-svg-{line}"

    def detect(self, source: SourceText, path: str) -> list[Icon]:
        if "<svg" not in source.text.lower():
            return []

        icons = []
        for m in _INLINE_SVG.finditer(source.text):
            svg = m.group(0)
            # Template interpolation: the markup is assembled at runtime
            if "${" in svg:
                continue
            line = source.line_at(m.start())
            end_line = source.line_at(m.end() - 1)
            icons.append(Icon(
                name=self.icon_name(svg, source, line, path),
                kind=IconKind.INLINE_SVG,
                svg=svg,
                location=Location(file=path, line=line, end_line=end_line),
                category="inline",
            ))
        return icons
