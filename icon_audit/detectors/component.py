"""Component detector: <Icon name="x" /> usages of the configured icon component."""

from __future__ import annotations

import re

from .base import BaseDetector, SourceText
from ..models import UsageSite


class ComponentUsageDetector(BaseDetector):
    """Finds the icon component referenced by its name attribute.

    Accepts name="x", name='x', name={"x"}, name={'x'} and name={`x`}.
    """

    name = "component"
    description = "Icon component tags referencing an icon by name"

    def _tag_names(self) -> list[str]:
        return [self.config.component_name]

    def _pattern(self) -> re.Pattern:
        tags = "|".join(re.escape(t) for t in self._tag_names() if t)
        attr = re.escape(self.config.name_attribute)
        return re.compile(
            rf'<(?:{tags})\b[^>]*?(?<![\w-]){attr}\s*=\s*\{{?\s*(["\'`])([^"\'`{{}}$]+)\1',
            re.DOTALL,
        )

    def detect(self, source: SourceText, path: str) -> list[UsageSite]:
        if self.config.name_attribute not in source.text:
            return []

        sites = []
        for m in self._pattern().finditer(source.text):
            line = source.line_at(m.start(2))
            sites.append(UsageSite(
                file=path,
                line=line,
                preview=source.preview(line),
                referenced_name=m.group(2).strip(),
                detector=self.name,
            ))
        return sites
