"""Smoke tests for the icon-audit CLI."""

import json

import pytest

from icon_audit.cli import create_parser, main


def _sample_project(root):
    (root / "icons").mkdir()
    (root / "icons" / "arrow.svg").write_text('<svg viewBox="0 0 24 24"><path fill="#ff0000"/></svg>')
    (root / "src").mkdir()
    (root / "src" / "App.tsx").write_text('<Icon name="arrow" />\n')
    (root / ".icon-audit").mkdir()
    (root / ".icon-audit" / "config.json").write_text(json.dumps({"output_directory": "dist"}))
    return root


def test_parser_subcommands():
    parser = create_parser()
    args = parser.parse_args(["--state", "s.json", "show", "arrow", "--status", "draft"])
    assert args.command == "show"
    assert args.state == "s.json"
    assert args.pattern == "arrow"

    args = parser.parse_args(["variants", "logo", "--save", "dark", "#000000", "#111111"])
    assert args.save == ["dark", "#000000", "#111111"]


def test_scan_status_show_report(tmp_path, capsys):
    root = _sample_project(tmp_path)
    state = str(root / ".icon-audit" / "state.json")

    main(["--state", state, "scan", str(root), "--format", "json"])
    printed = capsys.readouterr().out
    out = json.loads(printed[printed.index("\n{") + 1:])
    assert out["stats"]["by_kind"]["svg_file"] == 1
    assert out["build_states"]["arrow"]["status"] == "draft"

    main(["--state", state, "status", "--json"])
    assert json.loads(capsys.readouterr().out)["total"] == 1

    main(["--state", state, "show", "arrow"])
    assert "arrow" in capsys.readouterr().out

    main(["--state", state, "report", "--output", str(root / "docs")])
    assert (root / "docs" / "icon-inventory.md").exists()


def test_usages_json(tmp_path, capsys):
    root = _sample_project(tmp_path)
    main(["usages", "arrow", "--root", str(root), "--json"])
    out = json.loads(capsys.readouterr().out)
    assert out["total"] == 1
    assert out["usages"][0]["line"] == 1


def test_variants_save_and_apply(tmp_path, capsys):
    root = _sample_project(tmp_path)
    main(["variants", "arrow", "--root", str(root), "--save", "dark", "#000000"])
    assert (root / "dist" / "variants.js").exists()
    capsys.readouterr()

    main(["variants", "arrow", "--root", str(root), "--apply", "dark"])
    assert 'fill="#000000"' in capsys.readouterr().out


def test_build_then_scan_reports_built(tmp_path, capsys):
    root = _sample_project(tmp_path)
    main(["build", "arrow", "--root", str(root)])
    assert (root / "dist" / "icons.js").exists()


def test_unknown_icon_exits_with_error(tmp_path, capsys):
    root = _sample_project(tmp_path)
    with pytest.raises(SystemExit) as exc:
        main(["variants", "nope", "--root", str(root)])
    assert exc.value.code == 1
    assert "Could not find icon 'nope'" in capsys.readouterr().err


def test_status_without_scan(tmp_path, capsys):
    main(["--state", str(tmp_path / "state.json"), "status"])
    assert "No scan data" in capsys.readouterr().out


def test_unbuild_and_clear_mappings(tmp_path, capsys):
    root = _sample_project(tmp_path)
    main(["build", "arrow", "--root", str(root)])
    main(["variants", "arrow", "--root", str(root), "--clear-mappings"])
    assert "Cleared color mappings for arrow" in capsys.readouterr().out

    main(["unbuild", "arrow", "ghost", "--root", str(root)])
    out = capsys.readouterr().out
    assert "Removed arrow from the library" in out
    assert "ghost was not built" in out
    assert "name: 'arrow'" not in (root / "dist" / "icons.js").read_text()
