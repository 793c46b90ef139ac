"""Tests for SVG markup parsing and color extraction."""

from icon_audit.svg_parser import (
    DEFAULT_VIEWBOX,
    extract_colors,
    hsl_to_hex,
    normalize_color,
    normalize_markup,
    parse_svg,
    wrap_svg,
)


def _sample_svg() -> str:
    return '<svg viewBox="0 0 24 24"><path fill="#FF0000"/><path fill="#00ff00"/></svg>'


def test_two_path_example():
    parsed = parse_svg(_sample_svg())
    assert parsed.supported
    assert parsed.view_box == "0 0 24 24"
    assert parsed.colors == ["#ff0000", "#00ff00"]
    assert parsed.body == '<path fill="#FF0000"/><path fill="#00ff00"/>'


def test_colors_are_stable_and_deduplicated():
    svg = (
        '<svg><path fill="#ABC"/><path stroke="#aabbcc"/>'
        '<path fill="red"/><path fill="#ff0000"/></svg>'
    )
    first = extract_colors(svg)
    assert first == ["#aabbcc", "#ff0000"]
    assert extract_colors(svg) == first


def test_extraction_priority_order():
    # Paint attributes come first, then stop-color, then style properties
    svg = (
        '<svg><stop stop-color="#111111"/>'
        '<path style="fill: #222222; stroke: #333333"/>'
        '<path fill="#444444"/></svg>'
    )
    assert extract_colors(svg) == ["#444444", "#111111", "#222222", "#333333"]


def test_stop_color_css_property():
    svg = '<svg><stop style="stop-color: #123456"/></svg>'
    assert "#123456" in extract_colors(svg)


def test_non_colors_are_skipped():
    svg = (
        '<svg><path fill="none"/><path fill="currentColor"/>'
        '<path fill="url(#grad)"/><path stroke="transparent"/></svg>'
    )
    assert extract_colors(svg) == []


def test_normalize_color_forms():
    assert normalize_color("#FFF") == "#ffffff"
    assert normalize_color("rgb(255, 0, 0)") == "#ff0000"
    assert normalize_color("rgba(0,0,255,0.5)") == "#0000ff"
    assert normalize_color("Black") == "#000000"
    assert normalize_color("#ff0000 !important") == "#ff0000"
    assert normalize_color("#12345") is None
    assert normalize_color("#zzzzzz") is None
    assert normalize_color("") is None


def test_hsl_to_hex():
    assert hsl_to_hex(0, 100, 50) == "#ff0000"
    assert hsl_to_hex(120, 100, 50) == "#00ff00"
    assert normalize_color("hsl(240, 100%, 50%)") == "#0000ff"


def test_attribute_names_must_match_exactly():
    # data-fill is not a paint attribute
    svg = '<svg><path data-fill="#999999" fill="#010101"/></svg>'
    assert extract_colors(svg) == ["#010101"]


def test_missing_viewbox_defaults():
    parsed = parse_svg("<svg><path/></svg>")
    assert parsed.view_box == DEFAULT_VIEWBOX


def test_unclosed_svg_is_unsupported():
    parsed = parse_svg('<svg viewBox="0 0 16 16"><path fill="#ff0000"/>')
    assert not parsed.supported
    assert parsed.body == ""
    assert parsed.colors == []
    assert parsed.view_box == "0 0 16 16"


def test_self_closing_svg_is_unsupported():
    assert not parse_svg('<svg viewBox="0 0 1 1"/>').supported


def test_body_spans_to_last_close_tag():
    svg = "<svg><svg><rect/></svg><circle/></svg>"
    assert parse_svg(svg).body == "<svg><rect/></svg><circle/>"


def test_wrap_svg_round_trips_body():
    parsed = parse_svg(wrap_svg('<path fill="#000000"/>', "0 0 32 32"))
    assert parsed.body == '<path fill="#000000"/>'
    assert parsed.view_box == "0 0 32 32"


def test_normalize_markup_ignores_formatting():
    a = '<path d="M0 0"/>\n    <circle r="1"/>'
    b = '<path d="M0 0"/><circle   r="1"/>'
    assert normalize_markup(a) == normalize_markup(b)
