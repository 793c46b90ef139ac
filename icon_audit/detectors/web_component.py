"""Web component detector: <svg-icon name="x"> custom-element usages."""

from __future__ import annotations

from .component import ComponentUsageDetector


class WebComponentUsageDetector(ComponentUsageDetector):
    name = "web_component"
    description = "Custom-element icon tags referencing an icon by name"

    def _tag_names(self) -> list[str]:
        return [self.config.web_component_name]
