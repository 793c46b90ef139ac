"""CLI entry point for icon-audit."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .errors import IconAuditError
from .utils import c, print_box, print_table, progress_bar, setup_logging


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="icon-audit",
        description="icon-audit: SVG icon inventory, usage index and build-state checker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  icon-audit scan .
  icon-audit status
  icon-audit show arrow
  icon-audit show --status orphaned
  icon-audit usages arrow
  icon-audit variants logo --apply dark
  icon-audit variants logo --save dark "#000000" "#111111"
  icon-audit build arrow
  icon-audit watch .
  icon-audit report --output ./docs/
""",
    )
    parser.add_argument("--config", type=str, default=None, help="Config file path")
    parser.add_argument("--state", type=str, default=None, help="State file path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-file activity")

    sub = parser.add_subparsers(dest="command", required=True)

    # scan: index the workspace and store a snapshot
    p_scan = sub.add_parser("scan", help="Scan a workspace for SVG icons and their usages")
    p_scan.add_argument("root", nargs="?", default=".", help="Workspace root (default: .)")
    p_scan.add_argument("--format", type=str, default="summary",
                        choices=["summary", "json", "markdown"],
                        help="Output format (default: summary)")

    # status: show inventory dashboard
    p_status = sub.add_parser("status", help="Show inventory dashboard from the last scan")
    p_status.add_argument("--json", action="store_true")

    # show: list icons
    p_show = sub.add_parser("show", help="List icons by name, category or file")
    p_show.add_argument("pattern", nargs="?", default=None, help="Filter: name, category or path fragment")
    p_show.add_argument("--kind", choices=["svg_file", "inline_svg", "built_icon", "all"], default="all")
    p_show.add_argument("--status", choices=["draft", "built", "orphaned", "stale", "all"], default="all")

    # usages: where an icon is referenced
    p_usages = sub.add_parser("usages", help="Find every place an icon is referenced")
    p_usages.add_argument("name", help="Icon name")
    p_usages.add_argument("--root", type=str, default=".")
    p_usages.add_argument("--json", action="store_true")

    # variants: list, apply or save color variants
    p_var = sub.add_parser("variants", help="List, apply or save color variants of an icon")
    p_var.add_argument("name", help="Icon name")
    p_var.add_argument("--root", type=str, default=".")
    p_var.add_argument("--apply", type=str, default=None, metavar="VARIANT",
                       help="Print the icon's SVG with VARIANT applied")
    p_var.add_argument("--save", type=str, nargs="+", default=None, metavar=("VARIANT", "COLOR"),
                       help="Save a variant: its name, then colors in palette order")
    p_var.add_argument("--live-fallback", action="store_true",
                       help="Use the markup's current colors when no _original palette exists")
    p_var.add_argument("--clear-mappings", action="store_true",
                       help="Forget the color mappings recorded for the icon")

    # build: write a draft icon into the library
    p_build = sub.add_parser("build", help="Write draft icon(s) into the built library")
    p_build.add_argument("names", nargs="+", help="Icon name(s)")
    p_build.add_argument("--root", type=str, default=".")

    # unbuild: drop icons from the library
    p_unbuild = sub.add_parser("unbuild", help="Remove icon(s) and their variants from the built library")
    p_unbuild.add_argument("names", nargs="+", help="Icon name(s)")
    p_unbuild.add_argument("--root", type=str, default=".")

    # rename: rewrite usage sites
    p_rename = sub.add_parser("rename", help="Rename an icon in every usage site")
    p_rename.add_argument("old", help="Current icon name")
    p_rename.add_argument("new", help="New icon name")
    p_rename.add_argument("--root", type=str, default=".")

    # watch: keep the index current
    p_watch = sub.add_parser("watch", help="Watch a workspace and re-index on change")
    p_watch.add_argument("root", nargs="?", default=".", help="Workspace root (default: .)")

    # report: markdown inventory
    p_report = sub.add_parser("report", help="Generate a markdown icon inventory")
    p_report.add_argument("--output", type=str, default=None, help="Output directory")

    return parser


def _get_state_path(args, root: Path | None = None) -> Path:
    from .state import get_state_path

    p = getattr(args, "state", None)
    return Path(p) if p else get_state_path(root)


def _open_workspace(args, root: str):
    from .config import load_config
    from .workspace import IconWorkspace

    root_path = Path(root).resolve()
    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, project_dir=root_path)
    return IconWorkspace(root_path, config).init()


def cmd_scan(args):
    """Scan the workspace and merge the result into the state file."""
    from .state import load_state, save_state, merge_scan

    print(c("\nicon-audit scan\n", "bold"))

    ws = _open_workspace(args, args.root)
    asyncio.run(ws.scan_all())
    print(c(f"  Root: {ws.root}", "dim"))
    print(c(f"  Files scanned: {ws.scanner.files_seen}", "dim"))
    if ws.scanner.truncated:
        print(c(f"  File limit reached ({ws.config.max_files}); results are partial", "yellow"))
    print()

    sp = _get_state_path(args, ws.root)
    state = load_state(sp)
    diff = merge_scan(
        state,
        ws.get_all_icons(),
        ws.registry.usages,
        ws.build_states(),
        root=str(ws.root),
        collisions=ws.registry.collisions,
    )
    save_state(state, sp)

    if args.format == "json":
        print(json.dumps({
            "diff": diff,
            "stats": state["stats"],
            "icons": list(state["icons"].values()),
            "build_states": state["build_states"],
        }, indent=2))
    elif args.format == "markdown":
        from .formatters.markdown import generate_markdown
        print(generate_markdown(state))
    else:
        _print_scan_summary(state, diff, ws)
    ws.dispose()


def _print_scan_summary(state, diff, ws):
    from .scoring import KIND_NAMES, STATUS_NAMES

    stats = state["stats"]
    lines = ["icon-audit scan results", ""]
    for kind, label in KIND_NAMES.items():
        lines.append(f"{label + ':':<22} {stats['by_kind'].get(kind, 0):4d}")
    lines.append("")
    for status, label in STATUS_NAMES.items():
        lines.append(f"{label + ':':<22} {stats['by_status'].get(status, 0):4d}")
    lines.append(f"{'Stale:':<22} {stats['stale']:4d}")
    lines.append("")
    lines.append(f"Usages: {stats['usages']}  Built: {stats['built_pct']}%")
    print_box(lines)

    if diff["new"]:
        print(c(f"\n  +{diff['new']} new icons", "yellow"))
    if diff["changed"]:
        print(c(f"  ~{diff['changed']} changed", "yellow"))
    if diff["removed"]:
        print(c(f"  -{diff['removed']} removed", "dim"))
    for col in ws.registry.collisions:
        print(c(f"  Duplicate name '{col.name}': {col.new_key} replaces {col.previous_key}", "yellow"))
    for err in ws.scanner.errors:
        print(c(f"  Skipped {err.path}: {err.message}", "red"))
    print()


def cmd_status(args):
    """Show the inventory dashboard."""
    from .scoring import KIND_NAMES, STATUS_NAMES
    from .state import load_state

    state = load_state(_get_state_path(args))
    if not state.get("last_scan"):
        print(c("  No scan data. Run: icon-audit scan <root>", "yellow"))
        return

    stats = state["stats"]
    if getattr(args, "json", False):
        print(json.dumps(stats, indent=2))
        return

    print(c("\nicon-audit status\n", "bold"))

    pct = stats["built_pct"]
    color = "green" if pct >= 80 else ("yellow" if pct >= 40 else "red")
    print(f"  Built: {c(progress_bar(pct), color)} {pct}%")
    print(f"  {stats['total']} icons · {stats['usages']} usages"
          f" · {stats['stale']} stale · {stats['unused']} unused built icons\n")

    rows = [[label, str(stats["by_kind"].get(kind, 0))] for kind, label in KIND_NAMES.items()]
    rows += [[label, str(stats["by_status"].get(status, 0))] for status, label in STATUS_NAMES.items()]
    print_table(["Category", "Count"], rows, [22, 6])
    print(c(f"\n  Last scan: {state['last_scan']} ({state.get('scan_count', 0)} scans)", "dim"))
    print()


def cmd_show(args):
    """Show icons, optionally filtered."""
    from .state import load_state

    state = load_state(_get_state_path(args))
    if not state.get("icons"):
        print(c("  No scan data. Run: icon-audit scan <root>", "yellow"))
        return

    build_states = state.get("build_states", {})
    icons = list(state["icons"].values())

    if args.kind != "all":
        icons = [i for i in icons if i["kind"] == args.kind]
    if args.status == "stale":
        icons = [i for i in icons if build_states.get(i["name"], {}).get("stale")]
    elif args.status != "all":
        icons = [i for i in icons if build_states.get(i["name"], {}).get("status") == args.status]
    if args.pattern:
        pat = args.pattern.lower()
        icons = [i for i in icons if (
            pat in i["name"].lower() or
            pat in (i.get("category") or "").lower() or
            pat in (i.get("file") or "").lower()
        )]

    if not icons:
        print(c(f"  No icons found matching '{args.pattern or 'all'}'", "yellow"))
        return

    print(c(f"\n  {len(icons)} icons:\n", "bold"))

    status_marks = {"draft": "○", "built": "●", "orphaned": "◌"}
    rows = []
    for icon in sorted(icons, key=lambda i: (i["kind"], i["name"])):
        bs = build_states.get(icon["name"], {})
        mark = status_marks.get(bs.get("status"), "?")
        if bs.get("stale"):
            mark += "!"
        where = icon.get("file") or icon.get("library_file") or ""
        if icon.get("line") and icon["kind"] == "inline_svg":
            where = f"{where}:{icon['line']}"
        rows.append([mark, icon["kind"], icon["name"], ", ".join(icon.get("colors", [])), where])

    print_table(["St", "Kind", "Name", "Colors", "Location"], rows, [2, 10, 24, 24, 50])
    print()


def cmd_usages(args):
    """List usage sites of one icon (live scan)."""
    ws = _open_workspace(args, args.root)
    asyncio.run(ws.scan_icon_usages())
    result = ws.find_usages(args.name)

    if args.json:
        print(json.dumps({
            "total": result["total"],
            "usages": [u.to_dict() for u in result["usages"]],
        }, indent=2))
        return

    if not result["total"]:
        print(c(f"  No usages of '{args.name}' found", "yellow"))
        return

    print(c(f"\n  {result['total']} usages of {args.name}:\n", "bold"))
    rows = []
    for site in result["usages"]:
        rel = Path(site.file).relative_to(ws.root) if Path(site.file).is_relative_to(ws.root) else site.file
        rows.append([f"{rel}:{site.line}", site.detector, site.preview])
    print_table(["Location", "Via", "Line"], rows, [40, 13, 60])
    print()


def cmd_variants(args):
    """List, apply or save color variants."""
    ws = _open_workspace(args, args.root)
    asyncio.run(ws.scan_all())
    icon = ws.require_icon(args.name)
    engine = ws.variants

    if args.save:
        variant_name, colors = args.save[0], args.save[1:]
        if not colors:
            print(c("  --save needs at least one color", "red"), file=sys.stderr)
            sys.exit(1)
        variant = ws.save_variant(args.name, variant_name, colors)
        ws.save_variants()
        print(c(f"  Saved variant '{variant.name}' for {icon.name}: {', '.join(variant.colors)}", "green"))
        return

    if args.clear_mappings:
        engine.store.clear_color_mappings(icon.name)
        if engine.store.dirty:
            ws.save_variants()
        print(c(f"  Cleared color mappings for {icon.name}", "green"))
        return

    if args.apply:
        variant = engine.store.get_variant(icon.name, args.apply)
        if variant is None:
            print(c(f"  Icon '{icon.name}' has no variant '{args.apply}'", "red"), file=sys.stderr)
            sys.exit(1)
        print(engine.apply_variant(icon, variant, allow_live_fallback=args.live_fallback))
        return

    print(c(f"\n  {icon.name} ({icon.kind.value})\n", "bold"))
    print(f"  Colors: {', '.join(icon.colors) or c('none', 'dim')}")
    variants = engine.store.get_variants(icon.name, include_internal=True)
    if not variants:
        print(c("  No variants saved", "dim"))
    for variant in variants:
        label = c(variant.name, "dim") if variant.internal else c(variant.name, "cyan")
        print(f"    {label}: {', '.join(variant.colors)}")
    mappings = engine.store.get_color_mappings(icon.name)
    for original, new in mappings.items():
        print(c(f"    {original} -> {new}", "dim"))
    print()


def cmd_build(args):
    """Write draft icons into icons.js."""
    ws = _open_workspace(args, args.root)

    async def _build():
        await ws.scan_folder()
        await ws.scan_inline_svgs()
        await ws.load_built_icons()
        return [await ws.build_icon(name) for name in args.names]

    written = asyncio.run(_build())
    for name, path in zip(args.names, written):
        print(c(f"  Built {name} -> {path}", "green"))


def cmd_unbuild(args):
    """Remove icons from icons.js and forget their variants."""
    ws = _open_workspace(args, args.root)
    removed = asyncio.run(ws.remove_from_built(args.names))
    for name in removed:
        print(c(f"  Removed {name} from the library", "green"))
    for name in sorted(set(args.names) - set(removed)):
        print(c(f"  {name} was not built", "yellow"))


def cmd_rename(args):
    """Rewrite every usage of an icon to a new name."""
    from .host import FileSystemHost

    ws = _open_workspace(args, args.root)
    asyncio.run(ws.scan_icon_usages())
    edits = ws.rename_references(args.old, args.new, FileSystemHost())
    if ws.variants.store.dirty and ws.output_dir is not None:
        ws.save_variants()
    if edits:
        print(c(f"  Renamed {args.old} -> {args.new} in {edits} places", "green"))
    else:
        print(c(f"  No usages of '{args.old}' found", "yellow"))


def cmd_watch(args):
    """Scan once, then keep re-indexing until interrupted."""
    ws = _open_workspace(args, args.root)

    def _on_event(event):
        if event.type == "refresh":
            return
        for key in event.keys:
            print(c(f"  {event.type}: {key}", "dim"))

    async def _watch():
        await ws.scan_all()
        print(c(f"  Indexed {len(ws.registry)} icons; watching {ws.root} (Ctrl+C to stop)", "bold"))
        ws.registry.subscribe(_on_event)
        async with ws.watch():
            while True:
                await asyncio.sleep(3600)

    try:
        asyncio.run(_watch())
    finally:
        ws.dispose()


def cmd_report(args):
    """Generate the markdown inventory."""
    from .state import load_state
    from .formatters.markdown import generate_markdown

    state = load_state(_get_state_path(args))
    if not state.get("last_scan"):
        print(c("  No scan data. Run: icon-audit scan <root>", "yellow"))
        return

    md = generate_markdown(state)
    if args.output:
        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)
        (output_dir / "icon-inventory.md").write_text(md, encoding="utf-8")
        print(c(f"  Written: {output_dir / 'icon-inventory.md'}", "green"))
    else:
        print(md)


def main(argv: list[str] | None = None):
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    commands = {
        "scan": cmd_scan,
        "status": cmd_status,
        "show": cmd_show,
        "usages": cmd_usages,
        "variants": cmd_variants,
        "build": cmd_build,
        "unbuild": cmd_unbuild,
        "rename": cmd_rename,
        "watch": cmd_watch,
        "report": cmd_report,
    }

    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(1)
    except (FileNotFoundError, IconAuditError) as e:
        print(c(f"  Error: {e}", "red", sys.stderr), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
