"""Inventory summary: counts per icon kind and build status.

The built percentage is the share of draft icon names that already have
an entry in the built library.
"""

from __future__ import annotations

KIND_NAMES = {
    "svg_file": "SVG files",
    "inline_svg": "Inline SVGs",
    "built_icon": "Built icons",
}

STATUS_NAMES = {
    "draft": "Draft (not built)",
    "built": "Built",
    "orphaned": "Orphaned (no source)",
}


def compute_summary(icons: list[dict], build_states: list[dict], usages: list[dict] | None = None) -> dict:
    """Compute inventory metrics from snapshot dicts.

    Returns:
        {
            "total": int,
            "by_kind": {"svg_file": N, "inline_svg": N, "built_icon": N},
            "by_status": {"draft": N, "built": N, "orphaned": N},
            "stale": int,
            "unsupported": int,
            "usages": int,
            "unused": int,       # built icons with no usage site
            "built_pct": float,
        }
    """
    by_kind = {kind: 0 for kind in KIND_NAMES}
    unsupported = 0
    for icon in icons:
        by_kind[icon["kind"]] = by_kind.get(icon["kind"], 0) + 1
        if not icon.get("supported", True):
            unsupported += 1

    by_status = {status: 0 for status in STATUS_NAMES}
    stale = 0
    for state in build_states:
        by_status[state["status"]] = by_status.get(state["status"], 0) + 1
        if state.get("stale"):
            stale += 1

    usages = usages or []
    used_names = {u["name"] for u in usages}
    built_names = {i["name"] for i in icons if i["kind"] == "built_icon"}
    unused = len(built_names - used_names)

    # Orphans have no draft, so they don't count toward the draft total
    drafts = by_status["draft"] + by_status["built"]
    built_pct = round(by_status["built"] / drafts * 100, 1) if drafts > 0 else 0.0

    return {
        "total": len(icons),
        "by_kind": by_kind,
        "by_status": by_status,
        "stale": stale,
        "unsupported": unsupported,
        "usages": len(usages),
        "unused": unused,
        "built_pct": built_pct,
    }
