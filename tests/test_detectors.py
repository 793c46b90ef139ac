"""Tests for source-text detectors."""

from pathlib import Path

from icon_audit.config import IconAuditConfig
from icon_audit.detectors import (
    ComponentUsageDetector,
    ImgReferenceDetector,
    InlineSvgDetector,
    SourceText,
    SpriteUseDetector,
    WebComponentUsageDetector,
    find_usages,
    run_usage_detectors,
    slugify,
)
from icon_audit.models import IconKind


def _sample_source() -> str:
    return "\n".join([
        "import { Icon } from './Icon';",                        # 1
        "export function Toolbar() {",                           # 2
        "  return (",                                             # 3
        "    <div>",                                              # 4
        '      <Icon name="arrow" size={16} />',                  # 5
        "      <Icon name={'close'} />",                          # 6
        "      <Icon name={`menu`} />",                           # 7
        "      <Icon name={iconName} />",                         # 8
        '      <svg-icon name="star"></svg-icon>',                # 9
        '      <img src="./icons/logo.svg" alt="" />',            # 10
        '      <svg><use href="#icon-heart" /></svg>',            # 11
        '      <svg><use xlink:href="sprite.svg#bell" /></svg>',  # 12
        "    </div>",                                             # 13
        "  );",                                                   # 14
        "}",                                                      # 15
    ])


def test_component_detector_quote_styles():
    sites = ComponentUsageDetector().detect(SourceText(_sample_source()), "Toolbar.tsx")
    assert [(s.referenced_name, s.line) for s in sites] == [("arrow", 5), ("close", 6), ("menu", 7)]
    assert sites[0].preview == '<Icon name="arrow" size={16} />'


def test_component_detector_custom_names():
    config = IconAuditConfig(component_name="SvgIcon", name_attribute="icon")
    text = '<SvgIcon icon="cart" />\n<Icon name="arrow" />'
    sites = ComponentUsageDetector(config).detect(SourceText(text), "a.tsx")
    assert [s.referenced_name for s in sites] == ["cart"]


def test_component_detector_multiline_tag():
    text = "<Icon\n  size={20}\n  name=\"search\"\n/>"
    sites = ComponentUsageDetector().detect(SourceText(text), "a.tsx")
    assert [(s.referenced_name, s.line) for s in sites] == [("search", 3)]


def test_component_detector_ignores_similar_tags():
    text = '<IconButton name="nope" />'
    assert ComponentUsageDetector().detect(SourceText(text), "a.tsx") == []


def test_web_component_detector():
    sites = WebComponentUsageDetector().detect(SourceText(_sample_source()), "Toolbar.tsx")
    assert [(s.referenced_name, s.line, s.detector) for s in sites] == [("star", 9, "web_component")]


def test_img_arrow_yields_exactly_one_site():
    text = '<img src="./icons/arrow.svg">'
    sites = run_usage_detectors(text, "index.html")
    assert len(sites) == 1
    assert sites[0].referenced_name == "arrow"
    assert sites[0].line == 1


def test_img_detector_ignores_other_images():
    text = '<img src="photo.png"><img src="/static/a.svg?v=2">'
    sites = ImgReferenceDetector().detect(SourceText(text), "index.html")
    assert [s.referenced_name for s in sites] == ["a"]


def test_img_references_resolve(tmp_path):
    (tmp_path / "src" / "icons").mkdir(parents=True)
    (tmp_path / "src" / "icons" / "arrow.svg").write_text("<svg/>")
    source_file = tmp_path / "src" / "page.html"
    text = '<img src="./icons/arrow.svg">\n<img src="./icons/missing.svg">'

    refs = ImgReferenceDetector().references(SourceText(text), str(source_file), tmp_path)
    assert [(r.name, r.exists, r.line) for r in refs] == [("arrow", True, 1), ("missing", False, 2)]
    assert Path(refs[0].resolved_path) == (tmp_path / "src" / "icons" / "arrow.svg").resolve()


def test_sprite_detector_strips_prefix():
    sites = SpriteUseDetector().detect(SourceText(_sample_source()), "Toolbar.tsx")
    assert [(s.referenced_name, s.line) for s in sites] == [("heart", 11), ("bell", 12)]


def test_run_usage_detectors_merges_and_sorts():
    sites = run_usage_detectors(_sample_source(), "Toolbar.tsx")
    assert [s.referenced_name for s in sites] == [
        "arrow", "close", "menu", "star", "logo", "heart", "bell",
    ]


def test_find_usages_filters_by_name():
    sites = run_usage_detectors('<Icon name="arrow" />\n<Icon name="arrow" />', "b.tsx")
    sites += run_usage_detectors('<Icon name="arrow" />', "a.tsx")
    result = find_usages(sites, "arrow")
    assert result["total"] == 3
    assert [(s.file, s.line) for s in result["usages"]] == [("a.tsx", 1), ("b.tsx", 1), ("b.tsx", 2)]
    assert find_usages(sites, "nope") == {"usages": [], "total": 0}


def _inline_source() -> str:
    return "\n".join([
        "const logoIcon =",                                                    # 1
        '  <svg viewBox="0 0 10 10"><path fill="#ff0000"/></svg>;',            # 2
        '<svg id="brand-mark"><circle fill="#00ff00"/></svg>',                 # 3
        '<svg aria-label="Shopping Cart"><rect/></svg>',                       # 4
        '<svg class="w-4 icon-bell"><rect/></svg>',                            # 5
        "<svg>",                                                               # 6
        "  <rect/>",                                                           # 7
        "</svg>",                                                              # 8
        "const tpl = `<svg>${body}</svg>`;",                                   # 9
    ])


def test_inline_detector_naming():
    icons = InlineSvgDetector().detect(SourceText(_inline_source()), "/w/src/Header.tsx")
    assert [(i.name, i.location.line) for i in icons] == [
        ("logo", 2),
        ("brand-mark", 3),
        ("shopping-cart", 4),
        ("bell", 5),
        ("header-svg-6", 6),
    ]
    assert all(i.kind == IconKind.INLINE_SVG for i in icons)
    assert icons[-1].location.end_line == 8


def test_inline_detector_colors_and_keys():
    icons = InlineSvgDetector().detect(SourceText(_inline_source()), "/w/src/Header.tsx")
    assert icons[0].colors == ["#ff0000"]
    assert icons[0].view_box == "0 0 10 10"
    assert icons[0].key == "/w/src/Header.tsx:2"


def test_inline_detector_skips_unclosed_svg():
    text = '<svg viewBox="0 0 24 24"><path fill="#ff0000"/>\n<div></div>'
    assert InlineSvgDetector().detect(SourceText(text), "a.tsx") == []


def test_inline_detector_ignores_web_component_tag():
    text = '<svg-icon name="x"></svg-icon>'
    assert InlineSvgDetector().detect(SourceText(text), "a.html") == []


def test_source_text_lines():
    source = SourceText("a\nbb\nccc")
    assert source.line_at(0) == 1
    assert source.line_at(2) == 2
    assert source.line_at(5) == 3
    assert source.line_text(2) == "bb"
    assert source.line_text(9) == ""


def test_slugify():
    assert slugify("Shopping Cart!") == "shopping-cart"
    assert slugify("  A--B  ") == "a-b"
