"""Tests for the icon registry: upserts, name index, generations."""

from icon_audit.models import Icon, IconKind, Location
from icon_audit.registry import IconRegistry


def _file_icon(path: str, name: str | None = None, fill: str = "#000000") -> Icon:
    return Icon(
        name=name or path.rsplit("/", 1)[-1].removesuffix(".svg"),
        kind=IconKind.SVG_FILE,
        svg=f'<svg viewBox="0 0 24 24"><path fill="{fill}"/></svg>',
        location=Location(file=path, line=1),
    )


def _inline_icon(path: str, line: int, name: str) -> Icon:
    return Icon(
        name=name,
        kind=IconKind.INLINE_SVG,
        svg='<svg><circle fill="#ffffff"/></svg>',
        location=Location(file=path, line=line, end_line=line),
    )


def _built_icon(name: str) -> Icon:
    return Icon(name=name, kind=IconKind.BUILT_ICON, svg='<svg><rect/></svg>', category="built")


def test_keys_per_kind():
    assert _file_icon("/w/arrow.svg").key == "/w/arrow.svg"
    assert _inline_icon("/w/App.tsx", 12, "logo").key == "/w/App.tsx:12"
    assert _built_icon("arrow").key == "built:arrow"


def test_upsert_is_idempotent():
    reg = IconRegistry()
    events = []
    reg.subscribe(events.append)

    assert reg.upsert(_file_icon("/w/arrow.svg")) is True
    assert reg.upsert(_file_icon("/w/arrow.svg")) is False
    assert len(reg) == 1
    assert [e.type for e in events] == ["changed"]


def test_upsert_replaces_changed_content():
    reg = IconRegistry()
    reg.upsert(_file_icon("/w/arrow.svg"))
    assert reg.upsert(_file_icon("/w/arrow.svg", fill="#ff0000")) is True
    assert reg.by_name("arrow").colors == ["#ff0000"]
    assert len(reg) == 1


def test_name_lookup_prefers_drafts():
    reg = IconRegistry()
    reg.upsert(_built_icon("arrow"))
    reg.upsert(_file_icon("/w/arrow.svg"))
    assert reg.by_name("arrow").kind == IconKind.SVG_FILE
    assert reg.by_name("arrow", IconKind.BUILT_ICON).kind == IconKind.BUILT_ICON
    assert reg.by_name("missing") is None


def test_same_name_different_kinds_coexist():
    reg = IconRegistry()
    reg.upsert(_file_icon("/w/logo.svg"))
    reg.upsert(_inline_icon("/w/App.tsx", 3, "logo"))
    reg.upsert(_built_icon("logo"))
    assert len(reg) == 3
    assert reg.names() == {"logo"}
    assert reg.collisions == []


def test_collision_in_one_generation_is_recorded():
    reg = IconRegistry()
    gen = reg.begin_generation()
    reg.upsert(_file_icon("/w/a/arrow.svg"))
    reg.upsert(_file_icon("/w/b/arrow.svg"))
    reg.end_generation(gen, kinds=[IconKind.SVG_FILE])

    # Last writer wins the name; the loser stays reachable by path
    assert reg.by_name("arrow").path == "/w/b/arrow.svg"
    assert reg.by_path("/w/a/arrow.svg") is not None
    assert len(reg.collisions) == 1
    col = reg.collisions[0]
    assert (col.name, col.previous_key, col.new_key) == ("arrow", "/w/a/arrow.svg", "/w/b/arrow.svg")


def test_generation_prunes_unseen_entries():
    reg = IconRegistry()
    gen = reg.begin_generation()
    reg.upsert(_file_icon("/w/arrow.svg"))
    reg.upsert(_file_icon("/w/close.svg"))
    reg.end_generation(gen, kinds=[IconKind.SVG_FILE])

    gen = reg.begin_generation()
    reg.upsert(_file_icon("/w/arrow.svg"))
    pruned = reg.end_generation(gen, kinds=[IconKind.SVG_FILE])

    assert pruned == ["/w/close.svg"]
    assert reg.by_name("close") is None
    assert reg.by_name("arrow") is not None


def test_generation_pruning_scoped_by_kind():
    reg = IconRegistry()
    reg.upsert(_built_icon("arrow"))
    reg.upsert(_inline_icon("/w/App.tsx", 4, "logo"))

    gen = reg.begin_generation()
    reg.upsert(_file_icon("/w/arrow.svg"))
    reg.end_generation(gen, kinds=[IconKind.SVG_FILE])

    assert len(reg) == 3


def test_generation_pruning_scoped_by_folder():
    reg = IconRegistry()
    reg.upsert(_file_icon("/w/a/one.svg"))
    reg.upsert(_file_icon("/w/b/two.svg"))

    gen = reg.begin_generation()
    reg.end_generation(gen, kinds=[IconKind.SVG_FILE], within="/w/a")

    assert reg.by_name("one") is None
    assert reg.by_name("two") is not None


def test_remove_path_drops_inline_icons_and_references():
    reg = IconRegistry()
    reg.upsert(_inline_icon("/w/App.tsx", 3, "logo"))
    reg.upsert(_inline_icon("/w/App.tsx", 9, "star"))
    reg.upsert(_file_icon("/w/arrow.svg"))

    removed = reg.remove_path("/w/App.tsx")
    assert removed == ["/w/App.tsx:3", "/w/App.tsx:9"]
    assert [i.name for i in reg.all()] == ["arrow"]


def test_name_falls_back_after_removal():
    reg = IconRegistry()
    reg.upsert(_file_icon("/w/a/arrow.svg"))
    reg.upsert(_file_icon("/w/b/arrow.svg"))
    reg.remove("/w/b/arrow.svg")
    assert reg.by_name("arrow").path == "/w/a/arrow.svg"


def test_icons_in_file_sorted_by_line():
    reg = IconRegistry()
    reg.upsert(_inline_icon("/w/App.tsx", 9, "star"))
    reg.upsert(_inline_icon("/w/App.tsx", 3, "logo"))
    assert [i.name for i in reg.icons_in_file("/w/App.tsx")] == ["logo", "star"]


def test_listener_errors_do_not_break_upsert():
    reg = IconRegistry()

    def _broken(event):
        raise RuntimeError("boom")

    reg.subscribe(_broken)
    assert reg.upsert(_file_icon("/w/arrow.svg")) is True


def test_unsubscribe_and_dispose():
    reg = IconRegistry()
    events = []
    unsubscribe = reg.subscribe(events.append)
    reg.refresh()
    unsubscribe()
    reg.refresh()
    assert len(events) == 1

    reg.upsert(_file_icon("/w/arrow.svg"))
    reg.dispose()
    assert len(reg) == 0
    assert reg.by_name("arrow") is None


def test_all_lists_only_the_collision_winner():
    reg = IconRegistry()
    gen = reg.begin_generation()
    reg.upsert(_file_icon("/w/a/arrow.svg", fill="#ff0000"))
    reg.upsert(_file_icon("/w/b/arrow.svg", fill="#00ff00"))
    reg.end_generation(gen, kinds=[IconKind.SVG_FILE])

    assert [i.path for i in reg.all(IconKind.SVG_FILE)] == ["/w/b/arrow.svg"]
    assert len(reg.all(include_shadowed=True)) == 2
