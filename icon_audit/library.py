"""Built icon library artifacts: icons.js / icons.ts, sprite.svg, variants.js.

Reading turns each artifact into a name -> body mapping, independent of its
serialization. Writing covers the two artifacts the engine itself updates:
icon entries in icons.js and the Variants / colorMappings tables in
variants.js. Framework component emitters live elsewhere.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import json5

from .errors import IconReadError
from .svg_parser import DEFAULT_VIEWBOX, parse_svg

logger = logging.getLogger(__name__)

ICONS_FILES = ["icons.js", "icons.ts"]
SPRITE_FILE = "sprite.svg"
VARIANTS_FILE = "variants.js"
LIBRARY_FILES = {*ICONS_FILES, SPRITE_FILE, VARIANTS_FILE}

HEADER = "// Auto-generated by icon-audit\n"

_ICON_ENTRY = re.compile(
    r"export\s+const\s+(\w+)\s*=\s*\{\s*name:\s*['\"]([^'\"]+)['\"]\s*,\s*"
    r"body:\s*`((?:[^`\\]|\\[\s\S])*)`\s*,\s*viewBox:\s*['\"]([^'\"]+)['\"]"
    r"(?:\s*,\s*animation:\s*\{([^}]*)\})?\s*,?\s*\}\s*;?"
)
_SYMBOL = re.compile(r"<symbol\b([^>]*)>([\s\S]*?)</symbol\s*>", re.IGNORECASE)
_ATTR = re.compile(r'([\w:-]+)\s*=\s*["\']([^"\']*)["\']')

_ANIMATION_FIELDS = {
    "type": (r"type:\s*['\"]([^'\"]+)['\"]", str),
    "duration": (r"duration:\s*([\d.]+)", float),
    "timing": (r"timing:\s*['\"]([^'\"]+)['\"]", str),
    "iteration": (r"iteration:\s*['\"]([^'\"]+)['\"]", str),
    "delay": (r"delay:\s*([\d.]+)", float),
    "direction": (r"direction:\s*['\"]([^'\"]+)['\"]", str),
}


@dataclass
class BuiltEntry:
    name: str
    body: str
    view_box: str = DEFAULT_VIEWBOX
    source_file: str = ""
    animation: dict | None = None


@dataclass
class BuiltLibrary:
    output_dir: Path | None = None
    entries: dict[str, BuiltEntry] = field(default_factory=dict)
    sprite_names: set[str] = field(default_factory=set)
    files: list[str] = field(default_factory=list)

    def bodies(self) -> dict[str, str]:
        return {name: entry.body for name, entry in self.entries.items()}

    def __contains__(self, name: str) -> bool:
        return name in self.entries

    def __len__(self) -> int:
        return len(self.entries)


def parse_animation(text: str | None) -> dict | None:
    if not text:
        return None
    result = {}
    for key, (pattern, cast) in _ANIMATION_FIELDS.items():
        m = re.search(pattern, text)
        if m:
            result[key] = cast(m.group(1))
    if "type" not in result:
        return None
    result.setdefault("duration", 1.0)
    result.setdefault("timing", "ease")
    result.setdefault("iteration", "infinite")
    return result


def _unescape_template(text: str) -> str:
    return re.sub(r"\\([\\`$])", r"\1", text)


def parse_icons_module(content: str, source_file: str = "") -> dict[str, BuiltEntry]:
    """Parse `export const x = { name, body, viewBox, animation? }` entries."""
    entries = {}
    for m in _ICON_ENTRY.finditer(content):
        name = m.group(2)
        entries[name] = BuiltEntry(
            name=name,
            body=_unescape_template(m.group(3)),
            view_box=m.group(4),
            source_file=source_file,
            animation=parse_animation(m.group(5)),
        )
    return entries


def parse_sprite(content: str, source_file: str = "") -> dict[str, BuiltEntry]:
    """Parse <symbol id="x" viewBox="..."> entries of a sprite sheet."""
    entries = {}
    for m in _SYMBOL.finditer(content):
        attrs = dict(_ATTR.findall(m.group(1)))
        symbol_id = attrs.get("id")
        if not symbol_id:
            continue
        entries[symbol_id] = BuiltEntry(
            name=symbol_id,
            body=m.group(2).strip(),
            view_box=attrs.get("viewBox", DEFAULT_VIEWBOX),
            source_file=source_file,
        )
    return entries


def _read_artifact(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read library file %s: %s", path, e)
        return None


def load_built_icons(output_dir: str | Path | None) -> BuiltLibrary:
    """Read icons.js (or icons.ts) and sprite.svg from the output directory.

    icons.js entries win over sprite symbols of the same name.
    """
    if not output_dir:
        return BuiltLibrary()

    out = Path(output_dir)
    library = BuiltLibrary(output_dir=out)
    if not out.is_dir():
        logger.debug("Output directory %s does not exist", out)
        return library

    icons_file = next((out / n for n in ICONS_FILES if (out / n).exists()), None)
    if icons_file:
        content = _read_artifact(icons_file)
        if content is not None:
            library.entries.update(parse_icons_module(content, str(icons_file)))
            library.files.append(str(icons_file))

    sprite = out / SPRITE_FILE
    if sprite.exists():
        content = _read_artifact(sprite)
        if content is not None:
            symbols = parse_sprite(content, str(sprite))
            library.sprite_names = set(symbols)
            for name, entry in symbols.items():
                library.entries.setdefault(name, entry)
            library.files.append(str(sprite))

    logger.info("Loaded %d built icons from %s", len(library), out)
    return library


# JS object literals (variants.js)


def js_literal_to_python(text: str):
    """Parse a JS object/array literal (bare or quoted keys, comments, trailing commas)."""
    return json5.loads(text)


def _extract_export(content: str, export_name: str) -> str | None:
    """Return the `{...}` literal assigned to `export const <export_name>`."""
    m = re.search(rf"export\s+const\s+{re.escape(export_name)}\s*=\s*", content)
    if not m:
        return None
    start = content.find("{", m.end())
    if start < 0:
        return None

    depth = 0
    quote = None
    i = start
    while i < len(content):
        ch = content[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return content[start:i + 1]
        i += 1
    return None


def parse_variants_module(content: str | None) -> tuple[dict[str, dict[str, list[str]]], dict[str, dict[str, str]]]:
    """Parse variants.js into (Variants, colorMappings). Broken tables parse as empty."""
    if not content:
        return {}, {}

    tables = []
    for export_name in ("Variants", "colorMappings"):
        literal = _extract_export(content, export_name)
        data: dict = {}
        if literal:
            try:
                data = js_literal_to_python(literal)
            except ValueError as e:
                logger.warning("Could not parse %s in variants file: %s", export_name, e)
                data = {}
        tables.append(data if isinstance(data, dict) else {})

    variants = {
        str(icon): {str(v): [str(c) for c in colors] for v, colors in table.items() if isinstance(colors, list)}
        for icon, table in tables[0].items() if isinstance(table, dict)
    }
    mappings = {
        str(icon): {str(k): str(v) for k, v in table.items()}
        for icon, table in tables[1].items() if isinstance(table, dict)
    }
    return variants, mappings


def load_variants_file(path: str | Path | None):
    if not path or not Path(path).exists():
        return {}, {}
    return parse_variants_module(_read_artifact(Path(path)))


def _js_str(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def render_variants_module(
    variants: dict[str, dict[str, list[str]]],
    color_mappings: dict[str, dict[str, str]] | None = None,
) -> str:
    lines = [
        HEADER.rstrip("\n"),
        "// Variants for icons - edit freely",
        "",
        "// Color mappings per icon: { originalColor: newColor }",
        "export const colorMappings = {",
    ]
    mapping_items = list((color_mappings or {}).items())
    for i, (icon, mapping) in enumerate(mapping_items):
        lines.append(f"  {_js_str(icon)}: {{")
        pairs = list(mapping.items())
        for j, (orig, new) in enumerate(pairs):
            lines.append(f"    {_js_str(orig)}: {_js_str(new)}" + ("," if j < len(pairs) - 1 else ""))
        lines.append("  }" + ("," if i < len(mapping_items) - 1 else ""))
    lines.append("};")
    lines.append("")
    lines.append("export const Variants = {")
    icon_items = list(variants.items())
    for i, (icon, table) in enumerate(icon_items):
        lines.append(f"  {_js_str(icon)}: {{")
        entries = list(table.items())
        for j, (name, colors) in enumerate(entries):
            color_list = ", ".join(_js_str(c) for c in colors)
            lines.append(f"    {_js_str(name)}: [{color_list}]" + ("," if j < len(entries) - 1 else ""))
        lines.append("  }" + ("," if i < len(icon_items) - 1 else ""))
    lines.append("};")
    return "\n".join(lines) + "\n"


# Writing

def atomic_write(path: str | Path, content: str):
    """Write through a temp file and os.replace, falling back to a plain write."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=str(p.parent), suffix=".tmp")
        try:
            os.write(fd, content.encode("utf-8"))
            os.fsync(fd)
        finally:
            os.close(fd)
        os.replace(tmp_path, str(p))
    except OSError:
        if tmp_path:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        try:
            p.write_text(content, encoding="utf-8")
        except OSError as e:
            raise IconReadError(str(p), str(e)) from e


def write_variants_file(path: str | Path, variants: dict, color_mappings: dict | None = None):
    atomic_write(path, render_variants_module(variants, color_mappings))


def _identifier(name: str) -> str:
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", name) if p]
    if not parts:
        return "icon"
    ident = parts[0].lower() + "".join(p[:1].upper() + p[1:] for p in parts[1:])
    return f"_{ident}" if ident[0].isdigit() else ident


def render_icon_entry(name: str, body: str, view_box: str = DEFAULT_VIEWBOX) -> str:
    escaped = body.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
    return (
        f"export const {_identifier(name)} = {{ name: {_js_str(name)}, "
        f"body: `{escaped}`, viewBox: {_js_str(view_box)} }};"
    )


def write_built_icon(output_dir: str | Path, name: str, svg: str) -> Path:
    """Add or replace one icon entry in the output directory's icons module."""
    out = Path(output_dir)
    icons_file = next((out / n for n in ICONS_FILES if (out / n).exists()), out / ICONS_FILES[0])
    content = _read_artifact(icons_file) if icons_file.exists() else None
    if content is None:
        content = HEADER + "\n"

    parsed = parse_svg(svg)
    entry = render_icon_entry(name, parsed.body, parsed.view_box)

    replaced = False

    def _replace(m: re.Match) -> str:
        nonlocal replaced
        if m.group(2) == name and not replaced:
            replaced = True
            return entry
        return m.group(0)

    content = _ICON_ENTRY.sub(_replace, content)
    if not replaced:
        content = content.rstrip("\n") + "\n\n" + entry + "\n"

    atomic_write(icons_file, content)
    logger.info("Wrote icon '%s' to %s", name, icons_file)
    return icons_file


def remove_built_icon(output_dir: str | Path, name: str) -> bool:
    out = Path(output_dir)
    icons_file = next((out / n for n in ICONS_FILES if (out / n).exists()), None)
    if icons_file is None:
        return False
    content = _read_artifact(icons_file)
    if content is None:
        return False

    removed = False

    def _drop(m: re.Match) -> str:
        nonlocal removed
        if m.group(2) == name:
            removed = True
            return ""
        return m.group(0)

    content = _ICON_ENTRY.sub(_drop, content)
    if removed:
        atomic_write(icons_file, re.sub(r"\n{3,}", "\n\n", content))
    return removed
