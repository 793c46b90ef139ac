"""Markdown formatter: generates a human-readable icon inventory."""

from __future__ import annotations

from ..scoring import KIND_NAMES, STATUS_NAMES


def generate_markdown(state: dict) -> str:
    """Generate a markdown icon inventory from state."""
    icons = list(state.get("icons", {}).values())
    stats = state.get("stats", {})
    build_states = state.get("build_states", {})
    root = state.get("root") or "unknown"

    lines = [
        "# Icon Inventory",
        "",
        f"**Workspace**: `{root}`",
        f"**Total icons**: {stats.get('total', 0)}",
        f"**Built**: {stats.get('built_pct', 0)}%",
        "",
        "## Summary",
        "",
        "| Kind | Count |",
        "|------|-------|",
    ]
    for kind, label in KIND_NAMES.items():
        lines.append(f"| {label} | {stats.get('by_kind', {}).get(kind, 0)} |")
    lines.append("")

    lines.append("| Build status | Count |")
    lines.append("|--------------|-------|")
    for status, label in STATUS_NAMES.items():
        lines.append(f"| {label} | {stats.get('by_status', {}).get(status, 0)} |")
    lines.append(f"| Stale | {stats.get('stale', 0)} |")
    lines.append("")

    usage_counts: dict[str, int] = {}
    for usage in state.get("usages", []):
        usage_counts[usage["name"]] = usage_counts.get(usage["name"], 0) + 1

    # Draft and built icons, grouped by category
    by_category: dict[str, list[dict]] = {}
    for icon in icons:
        if icon["kind"] == "built_icon":
            continue
        by_category.setdefault(icon["category"] or "uncategorized", []).append(icon)

    lines.append("## Icons")
    lines.append("")
    for category, members in sorted(by_category.items()):
        lines.append(f"### {category}")
        lines.append("")
        for icon in sorted(members, key=lambda i: i["name"]):
            bs = build_states.get(icon["name"], {})
            mark = "x" if bs.get("status") == "built" else " "
            notes = []
            if bs.get("stale"):
                notes.append("stale")
            if not icon.get("supported", True):
                notes.append("unsupported markup")
            if icon.get("colors"):
                notes.append(", ".join(icon["colors"]))
            used = usage_counts.get(icon["name"], 0)
            suffix = f" ({'; '.join(notes)})" if notes else ""
            lines.append(f"- [{mark}] **{icon['name']}**: used {used}x{suffix}")
        lines.append("")

    orphans = sorted(name for name, bs in build_states.items() if bs.get("status") == "orphaned")
    if orphans:
        lines.append("## Orphaned Built Icons")
        lines.append("")
        for name in orphans:
            lines.append(f"- {name} (used {usage_counts.get(name, 0)}x)")
        lines.append("")

    collisions = state.get("collisions", [])
    if collisions:
        lines.append("## Name Collisions")
        lines.append("")
        lines.append("| Name | Kind | Kept | Replaced |")
        lines.append("|------|------|------|----------|")
        for col in collisions:
            lines.append(f"| {col['name']} | {col['kind']} | `{col['new']}` | `{col['previous']}` |")
        lines.append("")

    return "\n".join(lines)
