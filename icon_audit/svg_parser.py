"""Parser for raw SVG markup.

Extracts the three things the rest of icon-audit needs from an SVG string:

- viewBox: taken from the outer <svg> tag, "0 0 24 24" when absent
- body: the inner markup between the outer <svg ...> and </svg> tags
- colors: distinct paint colors in first-seen order

Color extraction runs three patterns in priority order:
1. fill="..." / stroke="..." attributes
2. stop-color attributes and stop-color CSS properties
3. fill / stroke properties inside style="..." attributes

Every color is normalized to 6-digit lowercase hex. The resulting order is
the positional key variants are applied against, so it must be stable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

DEFAULT_VIEWBOX = "0 0 24 24"

NAMED_COLORS = {
    "black": "#000000",
    "white": "#ffffff",
    "red": "#ff0000",
    "green": "#008000",
    "blue": "#0000ff",
    "yellow": "#ffff00",
    "cyan": "#00ffff",
    "magenta": "#ff00ff",
    "orange": "#ffa500",
    "purple": "#800080",
    "pink": "#ffc0cb",
    "gray": "#808080",
    "grey": "#808080",
    "silver": "#c0c0c0",
    "navy": "#000080",
    "teal": "#008080",
    "maroon": "#800000",
    "olive": "#808000",
    "lime": "#00ff00",
    "aqua": "#00ffff",
    "fuchsia": "#ff00ff",
    "brown": "#a52a2a",
    "gold": "#ffd700",
    "indigo": "#4b0082",
    "violet": "#ee82ee",
    "coral": "#ff7f50",
    "crimson": "#dc143c",
    "salmon": "#fa8072",
    "tomato": "#ff6347",
    "turquoise": "#40e0d0",
    "beige": "#f5f5dc",
    "ivory": "#fffff0",
    "khaki": "#f0e68c",
    "lavender": "#e6e6fa",
    "darkgray": "#a9a9a9",
    "darkgrey": "#a9a9a9",
    "lightgray": "#d3d3d3",
    "lightgrey": "#d3d3d3",
    "dimgray": "#696969",
    "whitesmoke": "#f5f5f5",
}

# Paint values that carry no concrete color
_SKIP_VALUES = {"none", "transparent", "currentcolor", "inherit", "initial", "unset"}

_OPEN_TAG = re.compile(r"<svg(?![\w-])[^>]*>", re.IGNORECASE)
_CLOSE_TAG = re.compile(r"</svg\s*>", re.IGNORECASE)
_VIEWBOX = re.compile(r'viewBox\s*=\s*["\']([^"\']+)["\']')

_PAINT_ATTR = re.compile(r'(?<![\w:-])(?:fill|stroke)\s*=\s*["\']([^"\']+)["\']', re.IGNORECASE)
_STOP_COLOR = re.compile(
    r'(?<![\w-])stop-color\s*(?:=\s*["\']([^"\']+)["\']|:\s*([^;"\'}>]+))', re.IGNORECASE
)
_STYLE_ATTR = re.compile(r'style\s*=\s*"([^"]*)"|style\s*=\s*\'([^\']*)\'', re.IGNORECASE)
_STYLE_PAINT = re.compile(r'(?<![\w-])(?:fill|stroke)\s*:\s*([^;]+)', re.IGNORECASE)

_RGB = re.compile(r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")
_HSL = re.compile(r"hsla?\(\s*(\d+)\s*,\s*(\d+)%?\s*,\s*(\d+)%?")


@dataclass
class SvgContent:
    """Result of parsing one SVG string."""
    view_box: str = DEFAULT_VIEWBOX
    body: str = ""
    colors: list[str] = field(default_factory=list)
    supported: bool = True


def rgb_to_hex(r: int, g: int, b: int) -> str:
    def _hex(v: float) -> str:
        return f"{max(0, min(255, round(v))):02x}"
    return f"#{_hex(r)}{_hex(g)}{_hex(b)}"


def hsl_to_hex(h: int, s: int, l: int) -> str:
    s_norm = s / 100
    l_norm = l / 100
    h = h % 360

    chroma = (1 - abs(2 * l_norm - 1)) * s_norm
    x = chroma * (1 - abs((h / 60) % 2 - 1))
    m = l_norm - chroma / 2

    if h < 60:
        r, g, b = chroma, x, 0.0
    elif h < 120:
        r, g, b = x, chroma, 0.0
    elif h < 180:
        r, g, b = 0.0, chroma, x
    elif h < 240:
        r, g, b = 0.0, x, chroma
    elif h < 300:
        r, g, b = x, 0.0, chroma
    else:
        r, g, b = chroma, 0.0, x

    return rgb_to_hex((r + m) * 255, (g + m) * 255, (b + m) * 255)


def normalize_color(value: str | None) -> str | None:
    """Normalize a paint value to #rrggbb, or None if it is not a concrete color."""
    if not value:
        return None

    color = value.strip().lower()
    if color.endswith("!important"):
        color = color[: -len("!important")].strip()

    if not color or color in _SKIP_VALUES or color.startswith("url("):
        return None

    if color in NAMED_COLORS:
        return NAMED_COLORS[color]

    if color.startswith("#"):
        digits = color[1:]
        if not re.fullmatch(r"[0-9a-f]+", digits):
            return None
        if len(digits) == 3:
            return "#" + "".join(ch * 2 for ch in digits)
        if len(digits) == 6:
            return color
        return None

    m = _RGB.match(color)
    if m:
        return rgb_to_hex(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _HSL.match(color)
    if m:
        return hsl_to_hex(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    return None


def extract_colors(svg: str) -> list[str]:
    """Return the distinct normalized colors of an SVG in first-seen order."""
    raw: list[str] = []

    raw.extend(m.group(1) for m in _PAINT_ATTR.finditer(svg))
    raw.extend(m.group(1) or m.group(2) for m in _STOP_COLOR.finditer(svg))
    for m in _STYLE_ATTR.finditer(svg):
        style = m.group(1) if m.group(1) is not None else m.group(2)
        raw.extend(sm.group(1) for sm in _STYLE_PAINT.finditer(style))

    colors: list[str] = []
    seen: set[str] = set()
    for value in raw:
        normalized = normalize_color(value)
        if normalized and normalized not in seen:
            seen.add(normalized)
            colors.append(normalized)
    return colors


def extract_view_box(svg: str) -> str:
    open_tag = _OPEN_TAG.search(svg)
    m = _VIEWBOX.search(open_tag.group(0)) if open_tag else None
    if not m:
        m = _VIEWBOX.search(svg)
    return m.group(1).strip() if m else DEFAULT_VIEWBOX


def parse_svg(svg: str) -> SvgContent:
    """Parse raw SVG text. Malformed markup yields an unsupported, colorless result."""
    view_box = extract_view_box(svg)

    open_tag = _OPEN_TAG.search(svg)
    closes = list(_CLOSE_TAG.finditer(svg))
    if not open_tag or open_tag.group(0).endswith("/>") or not closes:
        return SvgContent(view_box=view_box, body="", colors=[], supported=False)

    last_close = closes[-1]
    if last_close.start() < open_tag.end():
        return SvgContent(view_box=view_box, body="", colors=[], supported=False)

    body = svg[open_tag.end():last_close.start()].strip()
    return SvgContent(
        view_box=view_box,
        body=body,
        colors=extract_colors(svg),
        supported=True,
    )


def wrap_svg(body: str, view_box: str = DEFAULT_VIEWBOX) -> str:
    """Build full SVG markup from a library body."""
    return f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="{view_box}">{body}</svg>'


def normalize_markup(markup: str) -> str:
    """Collapse whitespace so formatting-only differences compare equal."""
    collapsed = re.sub(r">\s+<", "><", markup.strip())
    return re.sub(r"\s+", " ", collapsed)
