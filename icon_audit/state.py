"""Persistent scan snapshot for icon-audit (.icon-audit/state.json).

Keeps the last scan's icons, usages and build states so that `status`,
`show` and `report` work without rescanning, and so consecutive scans can
be diffed.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from .models import BuildState, Icon, UsageSite
from .scoring import compute_summary

logger = logging.getLogger(__name__)

CURRENT_VERSION = 1


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _json_default(obj):
    if isinstance(obj, set):
        return sorted(obj)
    if isinstance(obj, Path):
        return str(obj)
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable: {obj!r}")


def _empty_state() -> dict:
    return {
        "version": CURRENT_VERSION,
        "created": _now(),
        "last_scan": None,
        "scan_count": 0,
        "root": None,
        "icons": {},
        "usages": [],
        "build_states": {},
        "collisions": [],
        "stats": {},
    }


def get_state_path(project_dir: Path | None = None) -> Path:
    """Get the state file path for a project directory."""
    base = project_dir or Path.cwd()
    return base / ".icon-audit" / "state.json"


def _backup_path(p: Path) -> Path:
    return p.with_suffix(".json.bak")


def load_state(path: Path | None = None) -> dict:
    """Load state from disk, falling back to the .bak copy, then to empty state."""
    p = path or get_state_path()
    if not p.exists():
        return _empty_state()

    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        backup = _backup_path(p)
        if backup.exists():
            try:
                data = json.loads(backup.read_text(encoding="utf-8"))
                logger.warning("State file corrupted (%s); using backup %s", e, backup)
                return data
            except (json.JSONDecodeError, UnicodeDecodeError, OSError):
                pass
        logger.warning("State file corrupted (%s). Starting fresh.", e)
        return _empty_state()


def save_state(state: dict, path: Path | None = None):
    """Recompute stats and save to disk atomically, keeping the previous file as .bak."""
    _recompute_stats(state)
    p = path or get_state_path()
    p.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(state, indent=2, default=_json_default) + "\n"

    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=str(p.parent), suffix=".tmp")
        try:
            os.write(fd, content.encode("utf-8"))
            os.fsync(fd)
        finally:
            os.close(fd)

        if p.exists():
            try:
                shutil.copy2(str(p), str(_backup_path(p)))
            except OSError as e:
                logger.debug("Could not back up %s: %s", p, e)

        os.replace(tmp_path, str(p))
    except OSError:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        p.write_text(content, encoding="utf-8")


def _recompute_stats(state: dict):
    state["stats"] = compute_summary(
        list(state.get("icons", {}).values()),
        list(state.get("build_states", {}).values()),
        state.get("usages", []),
    )


def merge_scan(
    state: dict,
    icons: list[Icon],
    usages: list[UsageSite],
    build_states: dict[str, BuildState],
    root: str = "",
    collisions: list | None = None,
) -> dict:
    """Replace the snapshot with a fresh scan. Returns the diff against the previous one."""
    now = _now()
    state["last_scan"] = now
    state["scan_count"] = state.get("scan_count", 0) + 1
    if root:
        state["root"] = root

    previous = state.get("icons", {})
    current: dict[str, dict] = {}
    new_count = changed = 0

    for icon in icons:
        entry = icon.to_dict()
        old = previous.get(entry["key"])
        if old is None:
            entry["first_seen"] = now
            new_count += 1
        else:
            entry["first_seen"] = old.get("first_seen", now)
            if old.get("hash") != entry["hash"]:
                changed += 1
        entry["last_seen"] = now
        current[entry["key"]] = entry

    removed = sum(1 for key in previous if key not in current)

    state["icons"] = current
    state["usages"] = [u.to_dict() for u in usages]
    state["build_states"] = {name: bs.to_dict() for name, bs in sorted(build_states.items())}
    state["collisions"] = [
        {"name": col.name, "kind": col.kind, "previous": col.previous_key, "new": col.new_key}
        for col in (collisions or [])
    ]
    _recompute_stats(state)

    return {
        "new": new_count,
        "removed": removed,
        "changed": changed,
        "total": len(current),
    }
