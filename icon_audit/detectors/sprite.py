"""Sprite detector: <use href="#icon-x"> references into sprite.svg."""

from __future__ import annotations

import re

from .base import BaseDetector, SourceText
from ..models import UsageSite

_USE_HREF = re.compile(
    r'<use\b[^>]*?(?<![\w-])(?:xlink:)?href\s*=\s*["\']([^"\'#]*)#([^"\']+)["\']',
    re.IGNORECASE,
)


class SpriteUseDetector(BaseDetector):
    name = "sprite"
    description = "Sprite <use> references by symbol id"

    def symbol_to_name(self, symbol_id: str) -> str:
        prefix = self.config.sprite_prefix
        if prefix and symbol_id.startswith(prefix) and len(symbol_id) > len(prefix):
            return symbol_id[len(prefix):]
        return symbol_id

    def detect(self, source: SourceText, path: str) -> list[UsageSite]:
        if "<use" not in source.text:
            return []

        sites = []
        for m in _USE_HREF.finditer(source.text):
            line = source.line_at(m.start())
            sites.append(UsageSite(
                file=path,
                line=line,
                preview=source.preview(line),
                referenced_name=self.symbol_to_name(m.group(2).strip()),
                detector=self.name,
            ))
        return sites
