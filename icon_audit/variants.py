"""Color variants: positional color substitution against a reference palette.

A variant is an ordered color list; variant.colors[i] replaces the i-th
color of the reference palette. The reference is whatever palette the SVG
currently shows: the `_original` snapshot for pristine markup, or the colors
of the variant that was applied last.

Variant tables are held in memory by VariantStore and written back to
variants.js through library.write_variants_file.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from .errors import MissingOriginalColors
from .library import VARIANTS_FILE, load_variants_file, write_variants_file
from .models import ORIGINAL_VARIANT, Icon, Variant
from .svg_parser import NAMED_COLORS, extract_colors, normalize_color

logger = logging.getLogger(__name__)


def _spellings(color: str) -> list[str]:
    """Hex spellings under which a normalized #rrggbb color can appear."""
    spellings = [color]
    digits = color[1:]
    if len(digits) == 6 and all(digits[i] == digits[i + 1] for i in (0, 2, 4)):
        spellings.append("#" + digits[0] + digits[2] + digits[4])
    return spellings


def substitute_colors(svg: str, reference: list[str], replacement: list[str]) -> str:
    """Replace reference[i] with replacement[i] for i < min(len(reference), len(replacement)).

    Matching is case-insensitive and covers short hex and named spellings.
    All substitutions happen in one pass, so a replacement that equals a later
    reference color is not replaced again.
    """
    mapping: dict[str, str] = {}
    for original, new in zip(reference, replacement):
        key = normalize_color(original) or original.lower()
        mapping.setdefault(key, new)
    if not mapping:
        return svg

    alternatives = []
    for key in mapping:
        if key.startswith("#"):
            for spelling in _spellings(key):
                alternatives.append(re.escape(spelling) + r"(?![0-9a-fA-F])")
            for named, hex_value in NAMED_COLORS.items():
                if hex_value == key:
                    alternatives.append(r"(?<=[\"':\s])" + re.escape(named) + r"(?=[\"';\s])")
        else:
            alternatives.append(re.escape(key))
    alternatives.sort(key=len, reverse=True)
    pattern = re.compile("|".join(alternatives), re.IGNORECASE)

    def _swap(m: re.Match) -> str:
        matched = m.group(0)
        key = normalize_color(matched) or matched.lower()
        return mapping.get(key, matched)

    return pattern.sub(_swap, svg)


class VariantStore:
    """In-memory Variants and colorMappings tables of one variants.js file."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else None
        self.variants: dict[str, dict[str, list[str]]] = {}
        self.color_mappings: dict[str, dict[str, str]] = {}
        self.dirty = False

    @classmethod
    def for_output_dir(cls, output_dir: str | Path | None) -> "VariantStore":
        store = cls(Path(output_dir) / VARIANTS_FILE if output_dir else None)
        store.load()
        return store

    def load(self):
        self.variants, self.color_mappings = load_variants_file(self.path)
        self.dirty = False

    def save(self):
        if self.path is None:
            raise ValueError("VariantStore has no file path")
        write_variants_file(self.path, self.variants, self.color_mappings)
        self.dirty = False
        logger.info("Saved variants for %d icons to %s", len(self.variants), self.path)

    # Variants

    def get_variants(self, icon_name: str, include_internal: bool = False) -> list[Variant]:
        table = self.variants.get(icon_name, {})
        return [
            Variant(name, list(colors)) for name, colors in table.items()
            if include_internal or not name.startswith("_")
        ]

    def get_variant(self, icon_name: str, variant_name: str) -> Variant | None:
        colors = self.variants.get(icon_name, {}).get(variant_name)
        return Variant(variant_name, list(colors)) if colors is not None else None

    def original_for(self, icon_name: str) -> list[str] | None:
        colors = self.variants.get(icon_name, {}).get(ORIGINAL_VARIANT)
        return list(colors) if colors is not None else None

    def save_variant(self, icon_name: str, variant_name: str, colors: list[str]):
        self.variants.setdefault(icon_name, {})[variant_name] = list(colors)
        self.dirty = True

    def delete_variant(self, icon_name: str, variant_name: str) -> bool:
        table = self.variants.get(icon_name)
        if not table or variant_name not in table:
            return False
        del table[variant_name]
        if not table:
            del self.variants[icon_name]
        self.dirty = True
        return True

    def rename_variant(self, icon_name: str, old_name: str, new_name: str) -> bool:
        table = self.variants.get(icon_name)
        if not table or old_name not in table:
            return False
        # Rebuild to keep the entry's position
        self.variants[icon_name] = {
            (new_name if name == old_name else name): colors for name, colors in table.items()
        }
        self.dirty = True
        return True

    def rename_icon(self, old_name: str, new_name: str):
        if old_name in self.variants:
            self.variants[new_name] = self.variants.pop(old_name)
            self.dirty = True
        if old_name in self.color_mappings:
            self.color_mappings[new_name] = self.color_mappings.pop(old_name)
            self.dirty = True

    # Color mappings

    def get_color_mappings(self, icon_name: str) -> dict[str, str]:
        return dict(self.color_mappings.get(icon_name, {}))

    def set_color_mapping(self, icon_name: str, original: str, new: str):
        orig = original.lower()
        replacement = new.lower()
        table = self.color_mappings.setdefault(icon_name, {})
        if orig == replacement:
            table.pop(orig, None)
            if not table:
                del self.color_mappings[icon_name]
        else:
            table[orig] = replacement
        self.dirty = True

    def clear_color_mappings(self, icon_name: str):
        if self.color_mappings.pop(icon_name, None) is not None:
            self.dirty = True

    def remove_icon_data(self, icon_name: str):
        removed = self.variants.pop(icon_name, None) is not None
        removed = self.color_mappings.pop(icon_name, None) is not None or removed
        if removed:
            self.dirty = True


class VariantColorEngine:
    """Computes and applies color variants for icons."""

    def __init__(self, store: VariantStore | None = None):
        self.store = store or VariantStore()

    @staticmethod
    def extract_colors(icon: Icon) -> list[str]:
        return list(icon.colors)

    def ensure_original(self, icon: Icon) -> list[str]:
        """Snapshot the icon's current palette as `_original` unless one exists."""
        original = self.store.original_for(icon.name)
        if original is None:
            original = self.extract_colors(icon)
            self.store.save_variant(icon.name, ORIGINAL_VARIANT, original)
            logger.debug("Captured _original palette for %s: %s", icon.name, original)
        return original

    def save_variant(self, icon: Icon, variant_name: str, colors: list[str]) -> Variant:
        self.ensure_original(icon)
        normalized = [normalize_color(c) or c for c in colors]
        self.store.save_variant(icon.name, variant_name, normalized)
        return Variant(variant_name, normalized)

    def reference_colors(
        self,
        icon_name: str,
        svg: str,
        current: str = ORIGINAL_VARIANT,
        allow_live_fallback: bool = False,
    ) -> list[str]:
        """Palette the markup currently shows: the `current` variant's colors."""
        if current != ORIGINAL_VARIANT:
            applied = self.store.get_variant(icon_name, current)
            if applied is not None:
                return applied.colors

        original = self.store.original_for(icon_name)
        if original is not None:
            return original
        if not allow_live_fallback:
            raise MissingOriginalColors(icon_name)

        # May already reflect an earlier substitution
        logger.warning("No _original palette for %s; deriving colors from current markup", icon_name)
        return extract_colors(svg)

    def apply_variant(
        self,
        icon: Icon | str,
        variant: Variant,
        original: list[str] | None = None,
        *,
        icon_name: str | None = None,
        current: str = ORIGINAL_VARIANT,
        allow_live_fallback: bool = False,
    ) -> str:
        """Return the icon's SVG with `variant` applied by positional substitution.

        `original` overrides the reference palette; otherwise it is looked up in
        the store (see reference_colors).
        """
        svg = icon.svg if isinstance(icon, Icon) else icon
        name = icon_name or (icon.name if isinstance(icon, Icon) else "")
        reference = original if original is not None else self.reference_colors(
            name, svg, current=current, allow_live_fallback=allow_live_fallback,
        )
        return substitute_colors(svg, reference, variant.colors)

    def apply_named(self, icon: Icon, variant_name: str, current: str = ORIGINAL_VARIANT, **kwargs) -> str:
        variant = self.store.get_variant(icon.name, variant_name)
        if variant is None:
            raise KeyError(f"Icon '{icon.name}' has no variant '{variant_name}'")
        return self.apply_variant(icon, variant, current=current, **kwargs)

    def reset(self, icon: Icon | str, applied: Variant, icon_name: str | None = None) -> str:
        """Undo `applied` by replaying `_original` against it."""
        name = icon_name or (icon.name if isinstance(icon, Icon) else "")
        original = self.store.original_for(name)
        if original is None:
            raise MissingOriginalColors(name)
        svg = icon.svg if isinstance(icon, Icon) else icon
        return substitute_colors(svg, applied.colors, original)
