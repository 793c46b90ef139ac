"""Build-state reconciliation: draft icons vs. the built library.

Pure functions; nothing here holds state between runs.
"""

from __future__ import annotations

from collections.abc import Mapping

from .models import BuildState, BuildStatus, IconKind
from .registry import IconRegistry
from .svg_parser import normalize_markup

DRAFT_KINDS = (IconKind.SVG_FILE, IconKind.INLINE_SVG)


def _same_body(draft_body: str, built_body: str) -> bool:
    return normalize_markup(draft_body) == normalize_markup(built_body)


def reconcile(registry: IconRegistry, built: Mapping[str, str]) -> dict[str, BuildState]:
    """Classify every icon name as draft, built (possibly stale) or orphaned.

    `built` maps library names to their body markup (inner SVG content).
    """
    states: dict[str, BuildState] = {}

    drafts = {}
    for kind in DRAFT_KINDS:
        for name in sorted(registry.names(kind)):
            # A draft file beats an inline SVG of the same name
            if name not in drafts:
                drafts[name] = registry.by_name(name, kind)

    for name, icon in drafts.items():
        if name not in built:
            states[name] = BuildState(name, BuildStatus.DRAFT)
            continue
        stale = icon.supported and not _same_body(icon.body, built[name])
        states[name] = BuildState(name, BuildStatus.BUILT, stale=stale)

    for name in built:
        if name not in drafts:
            states[name] = BuildState(name, BuildStatus.ORPHANED)

    return states


def summarize(states: Mapping[str, BuildState]) -> dict[str, int]:
    counts = {status.value: 0 for status in BuildStatus}
    counts["stale"] = 0
    for state in states.values():
        counts[state.status.value] += 1
        if state.stale:
            counts["stale"] += 1
    return counts
