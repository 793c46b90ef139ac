"""Data model: icons, usage sites, variants, build states.

Icons are one dataclass tagged by `kind` rather than a class hierarchy.
Consumers switch on `icon.kind`; the kind-specific fields are simply unset
for the kinds that do not use them.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum

from .svg_parser import DEFAULT_VIEWBOX, SvgContent, parse_svg


class IconKind(str, Enum):
    SVG_FILE = "svg_file"
    INLINE_SVG = "inline_svg"
    BUILT_ICON = "built_icon"


class BuildStatus(str, Enum):
    DRAFT = "draft"
    BUILT = "built"
    ORPHANED = "orphaned"


ORIGINAL_VARIANT = "_original"


@dataclass(frozen=True)
class Location:
    file: str
    line: int
    end_line: int | None = None


@dataclass
class Icon:
    """An icon in one of its three forms."""
    name: str
    kind: IconKind
    svg: str
    location: Location | None = None
    # SVG_FILE: folder-relative category; BUILT_ICON: "built"
    category: str = ""
    # BUILT_ICON: the artifact it was read from (icons.js, icons.ts, sprite.svg)
    library_file: str | None = None
    animation: dict | None = None
    _parsed: SvgContent | None = field(default=None, repr=False, compare=False)

    @property
    def key(self) -> str:
        if self.kind == IconKind.SVG_FILE and self.location:
            return self.location.file
        if self.kind == IconKind.INLINE_SVG and self.location:
            return f"{self.location.file}:{self.location.line}"
        if self.kind == IconKind.BUILT_ICON:
            return f"built:{self.name}"
        return f"{self.kind.value}:{self.name}"

    @property
    def path(self) -> str | None:
        return self.location.file if self.location else None

    @property
    def parsed(self) -> SvgContent:
        if self._parsed is None:
            self._parsed = parse_svg(self.svg)
        return self._parsed

    @property
    def colors(self) -> list[str]:
        return self.parsed.colors

    @property
    def view_box(self) -> str:
        return self.parsed.view_box or DEFAULT_VIEWBOX

    @property
    def body(self) -> str:
        return self.parsed.body

    @property
    def supported(self) -> bool:
        return self.parsed.supported

    @property
    def content_hash(self) -> str:
        return hashlib.sha256(self.svg.encode("utf-8")).hexdigest()[:16]

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "kind": self.kind.value,
            "file": self.location.file if self.location else None,
            "line": self.location.line if self.location else None,
            "category": self.category,
            "library_file": self.library_file,
            "view_box": self.view_box,
            "colors": list(self.colors),
            "supported": self.supported,
            "hash": self.content_hash,
        }


@dataclass(frozen=True)
class UsageSite:
    """A place in source code where an icon is referenced by name."""
    file: str
    line: int
    preview: str
    referenced_name: str
    detector: str = ""

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "line": self.line,
            "preview": self.preview,
            "name": self.referenced_name,
            "detector": self.detector,
        }


@dataclass(frozen=True)
class SvgReference:
    """An <img src="*.svg"> occurrence, resolved against the filesystem."""
    name: str
    src: str
    resolved_path: str
    exists: bool
    file: str
    line: int


@dataclass
class Variant:
    """A named color mapping: colors[i] replaces the icon's original colors[i]."""
    name: str
    colors: list[str]

    @property
    def internal(self) -> bool:
        return self.name.startswith("_")


@dataclass(frozen=True)
class BuildState:
    name: str
    status: BuildStatus
    # Built, but the built body drifted from the draft source
    stale: bool = False

    def to_dict(self) -> dict:
        return {"name": self.name, "status": self.status.value, "stale": self.stale}
