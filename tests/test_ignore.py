"""Tests for ignore-file matching."""

from icon_audit.ignore import IgnoreFilter


def _sample_filter() -> IgnoreFilter:
    return IgnoreFilter([
        "# comment",
        "",
        "*.draft.svg",
        "/legacy/",
        "vendor/**",
        "**/tmp",
        "!keep.draft.svg",
    ])


def test_comments_and_blanks_dropped():
    f = _sample_filter()
    assert len(f) == 5
    assert not f.empty


def test_glob_matches_anywhere():
    f = _sample_filter()
    assert f.matches("icons/arrow.draft.svg")
    assert f.matches("arrow.draft.svg")
    assert not f.matches("icons/arrow.svg")


def test_negation():
    assert not _sample_filter().matches("icons/keep.draft.svg")


def test_root_anchored_directory():
    f = _sample_filter()
    assert f.matches_dir("legacy")
    assert f.matches("legacy/old.svg")
    assert not f.matches_dir("src/legacy")


def test_double_star():
    f = _sample_filter()
    assert f.matches("vendor/a/b/c.svg")
    assert f.matches_dir("src/deep/tmp")


def test_path_normalization():
    f = _sample_filter()
    assert f.matches("./icons/x.draft.svg")
    assert f.matches("icons\\x.draft.svg")


def test_empty_filter_matches_nothing():
    f = IgnoreFilter()
    assert f.empty
    assert not f.matches("anything.svg")
    assert not f.matches_dir("node_modules")


def test_load_missing_file(tmp_path):
    f = IgnoreFilter.load(tmp_path / ".iconignore")
    assert f.empty


def test_for_workspace_prefers_configured_name(tmp_path):
    (tmp_path / ".iconignore").write_text("a.svg\n")
    (tmp_path / ".bezierignore").write_text("b.svg\n")
    f = IgnoreFilter.for_workspace(tmp_path)
    assert f.matches("a.svg")
    assert not f.matches("b.svg")


def test_for_workspace_falls_back_to_legacy_name(tmp_path):
    (tmp_path / ".bezierignore").write_text("b.svg\n")
    f = IgnoreFilter.for_workspace(tmp_path)
    assert f.matches("b.svg")
    assert f.source == tmp_path / ".bezierignore"
