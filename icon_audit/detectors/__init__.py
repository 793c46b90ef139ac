"""Source-text detectors: icon usages and inline SVGs."""

from __future__ import annotations

from .base import BaseDetector, SourceText, slugify
from .component import ComponentUsageDetector
from .web_component import WebComponentUsageDetector
from .img import ImgReferenceDetector, resolve_svg_src
from .sprite import SpriteUseDetector
from .inline import InlineSvgDetector
from ..config import IconAuditConfig
from ..models import UsageSite

ALL_USAGE_DETECTORS = [
    ComponentUsageDetector,
    WebComponentUsageDetector,
    ImgReferenceDetector,
    SpriteUseDetector,
]


def run_usage_detectors(
    text: str | SourceText,
    path: str,
    config: IconAuditConfig | None = None,
) -> list[UsageSite]:
    """Run all usage detectors over one file. One site per (line, name)."""
    source = text if isinstance(text, SourceText) else SourceText(text)
    sites: list[UsageSite] = []
    seen: set[tuple[int, str]] = set()
    for detector_cls in ALL_USAGE_DETECTORS:
        for site in detector_cls(config).detect(source, path):
            key = (site.line, site.referenced_name)
            if key not in seen:
                seen.add(key)
                sites.append(site)
    sites.sort(key=lambda s: s.line)
    return sites


def find_usages(sites: list[UsageSite], name: str) -> dict:
    """Filter the flat usage list down to one icon."""
    usages = sorted(
        (s for s in sites if s.referenced_name == name),
        key=lambda s: (s.file, s.line),
    )
    return {"usages": usages, "total": len(usages)}
