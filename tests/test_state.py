"""Tests for the persisted scan snapshot and config loading."""

import json

import pytest

from icon_audit.config import IconAuditConfig, config_from_dict, load_config
from icon_audit.errors import ConfigError
from icon_audit.models import BuildState, BuildStatus, Icon, IconKind, Location, UsageSite
from icon_audit.state import _empty_state, load_state, merge_scan, save_state


def _sample_icons(fill: str = "#ff0000") -> list[Icon]:
    return [
        Icon("arrow", IconKind.SVG_FILE, f'<svg><path fill="{fill}"/></svg>', Location("/w/arrow.svg", 1)),
        Icon("close", IconKind.SVG_FILE, "<svg><path/></svg>", Location("/w/close.svg", 1)),
        Icon("arrow", IconKind.BUILT_ICON, "<svg><path/></svg>", category="built"),
    ]


def _sample_build_states() -> dict:
    return {
        "arrow": BuildState("arrow", BuildStatus.BUILT, stale=True),
        "close": BuildState("close", BuildStatus.DRAFT),
    }


def test_merge_scan_first_run():
    state = _empty_state()
    usages = [UsageSite("/w/App.tsx", 3, '<Icon name="arrow" />', "arrow", "component")]
    diff = merge_scan(state, _sample_icons(), usages, _sample_build_states(), root="/w")

    assert diff == {"new": 3, "removed": 0, "changed": 0, "total": 3}
    assert state["scan_count"] == 1
    assert state["root"] == "/w"
    assert state["usages"][0]["name"] == "arrow"
    stats = state["stats"]
    assert stats["by_kind"] == {"svg_file": 2, "inline_svg": 0, "built_icon": 1}
    assert stats["by_status"] == {"draft": 1, "built": 1, "orphaned": 0}
    assert stats["stale"] == 1
    assert stats["built_pct"] == 50.0
    assert stats["unused"] == 0


def test_merge_scan_diff():
    state = _empty_state()
    merge_scan(state, _sample_icons(), [], _sample_build_states())
    first_seen = state["icons"]["/w/arrow.svg"]["first_seen"]

    icons = _sample_icons(fill="#0000ff")[:1] + [
        Icon("star", IconKind.SVG_FILE, "<svg/>", Location("/w/star.svg", 1)),
    ]
    diff = merge_scan(state, icons, [], {})

    assert diff == {"new": 1, "removed": 2, "changed": 1, "total": 2}
    assert state["icons"]["/w/arrow.svg"]["first_seen"] == first_seen
    assert state["scan_count"] == 2


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / ".icon-audit" / "state.json"
    state = _empty_state()
    merge_scan(state, _sample_icons(), [], _sample_build_states())
    save_state(state, path)

    loaded = load_state(path)
    assert set(loaded["icons"]) == set(state["icons"])
    assert loaded["stats"]["total"] == 3


def test_corrupted_state_falls_back_to_backup(tmp_path):
    path = tmp_path / "state.json"
    state = _empty_state()
    merge_scan(state, _sample_icons(), [], {})
    save_state(state, path)
    save_state(state, path)  # second save leaves a .bak copy

    path.write_text("{ not json")
    loaded = load_state(path)
    assert loaded["stats"]["total"] == 3


def test_corrupted_state_without_backup_starts_fresh(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{ not json")
    assert load_state(path)["icons"] == {}


def test_missing_state_is_empty(tmp_path):
    state = load_state(tmp_path / "nope.json")
    assert state["scan_count"] == 0
    assert state["last_scan"] is None


def test_config_defaults_when_missing(tmp_path):
    config = load_config(project_dir=tmp_path)
    assert config == IconAuditConfig()
    assert ".tsx" in config.source_suffixes


def test_config_from_file(tmp_path):
    path = tmp_path / ".icon-audit" / "config.json"
    path.parent.mkdir()
    path.write_text(json.dumps({
        "svg_folders": ["assets/icons"],
        "output_directory": "src/icons",
        "debounce_seconds": 1,
        "someFutureKey": True,
    }))
    config = load_config(project_dir=tmp_path)
    assert config.svg_folders == ["assets/icons"]
    assert config.output_path(tmp_path) == tmp_path / "src" / "icons"
    assert config.debounce_seconds == 1.0
    assert isinstance(config.debounce_seconds, float)


def test_config_type_errors():
    with pytest.raises(ConfigError):
        config_from_dict({"svg_folders": "icons"})
    with pytest.raises(ConfigError):
        config_from_dict({"max_files": "many"})
    with pytest.raises(ConfigError):
        config_from_dict({"max_files": True})
    with pytest.raises(ConfigError):
        config_from_dict(["not", "a", "dict"])


def test_config_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{")
    with pytest.raises(ConfigError):
        load_config(path)
