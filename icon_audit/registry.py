"""In-memory icon registry: the single source of truth for scan results.

Entries are keyed by location (see Icon.key) and indexed by name per kind
and by file path. Full scans are bracketed by begin_generation() /
end_generation(): every upsert stamps the entry with the current generation,
and end_generation() prunes whatever the scan did not observe.

Only the scan pipeline and the change watcher mutate the registry, always
from the event-loop thread, so no locking is done here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .errors import NameCollision
from .models import Icon, IconKind, SvgReference, UsageSite

logger = logging.getLogger(__name__)

# Lookup order when by_name() is called without a kind
_NAME_LOOKUP_ORDER = [IconKind.SVG_FILE, IconKind.INLINE_SVG, IconKind.BUILT_ICON]


@dataclass
class RegistryEvent:
    type: str  # "changed" | "removed" | "refresh"
    keys: list[str] = field(default_factory=list)


Listener = Callable[[RegistryEvent], None]


def _norm_path(path: str | Path) -> str:
    return str(Path(path))


class IconRegistry:
    def __init__(self):
        self.generation = 0
        self.collisions: list[NameCollision] = []
        self._entries: dict[str, Icon] = {}
        self._stamps: dict[str, int] = {}
        self._by_name: dict[IconKind, dict[str, str]] = {kind: {} for kind in IconKind}
        self._by_path: dict[str, set[str]] = {}
        self._active: int | None = None
        self._listeners: list[Listener] = []
        self._usages: list[UsageSite] = []
        self._references: dict[str, list[SvgReference]] = {}

    # Listeners

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _emit(self, event: RegistryEvent):
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Registry listener failed on %s event", event.type)

    def refresh(self):
        """Tell consumers to re-read without any entry having changed."""
        self._emit(RegistryEvent("refresh"))

    # Generations

    def begin_generation(self) -> int:
        self.generation += 1
        self._active = self.generation
        return self.generation

    def end_generation(
        self,
        generation: int,
        kinds: Iterable[IconKind] | None = None,
        within: str | Path | None = None,
    ) -> list[str]:
        """Prune entries not stamped by `generation`. Returns the pruned keys.

        `kinds` and `within` restrict pruning to what the scan actually covered,
        so a draft-file scan never drops inline or built icons.
        """
        kind_set = set(kinds) if kinds is not None else set(IconKind)
        prefix = _norm_path(within) if within else None

        stale = []
        for key, icon in self._entries.items():
            if icon.kind not in kind_set or self._stamps.get(key, 0) >= generation:
                continue
            if prefix and not (icon.path and _is_within(icon.path, prefix)):
                continue
            stale.append(key)

        for key in stale:
            self._drop(key)

        covered = {k.value for k in kind_set}
        self.collisions = [
            col for col in self.collisions
            if col.kind not in covered or col.generation >= generation
        ]

        if self._active == generation:
            self._active = None

        if stale:
            logger.debug("Generation %d pruned %d stale entries", generation, len(stale))
            self._emit(RegistryEvent("removed", stale))
        return stale

    @property
    def scanning(self) -> bool:
        return self._active is not None

    # Mutation

    def upsert(self, icon: Icon) -> bool:
        """Insert or replace an icon. Returns False when nothing visible changed."""
        key = icon.key
        stamp = self._active if self._active is not None else self.generation
        existing = self._entries.get(key)

        self._check_collision(icon, key, stamp)

        if existing is not None and existing.content_hash == icon.content_hash and existing.name == icon.name:
            self._stamps[key] = stamp
            self._by_name[icon.kind][icon.name] = key
            return False

        if existing is not None:
            self._unindex(key, existing)

        self._entries[key] = icon
        self._stamps[key] = stamp
        self._by_name[icon.kind][icon.name] = key
        if icon.path:
            self._by_path.setdefault(_norm_path(icon.path), set()).add(key)

        self._emit(RegistryEvent("changed", [key]))
        return True

    def _check_collision(self, icon: Icon, key: str, stamp: int):
        other_key = self._by_name[icon.kind].get(icon.name)
        if not other_key or other_key == key or other_key not in self._entries:
            return
        if self._stamps.get(other_key) != stamp:
            return
        collision = NameCollision(
            name=icon.name,
            kind=icon.kind.value,
            previous_key=other_key,
            new_key=key,
            generation=stamp,
        )
        self.collisions.append(collision)
        logger.warning(
            "Duplicate %s icon name '%s': %s replaces %s",
            icon.kind.value, icon.name, key, other_key,
        )

    def remove(self, key: str) -> Icon | None:
        icon = self._drop(key)
        if icon is not None:
            self._emit(RegistryEvent("removed", [key]))
        return icon

    def remove_path(self, path: str | Path) -> list[str]:
        """Remove every icon backed by `path` (the file icon and its inline SVGs)."""
        keys = sorted(self._by_path.get(_norm_path(path), set()))
        for key in keys:
            self._drop(key)
        self._references.pop(_norm_path(path), None)
        if keys:
            self._emit(RegistryEvent("removed", keys))
        return keys

    def _drop(self, key: str) -> Icon | None:
        icon = self._entries.pop(key, None)
        self._stamps.pop(key, None)
        if icon is not None:
            self._unindex(key, icon)
        return icon

    def _unindex(self, key: str, icon: Icon):
        names = self._by_name[icon.kind]
        if names.get(icon.name) == key:
            del names[icon.name]
            # Fall back to another entry still carrying the name, if any
            for other_key, other in self._entries.items():
                if other_key != key and other.kind == icon.kind and other.name == icon.name:
                    names[icon.name] = other_key
                    break
        if icon.path:
            keys = self._by_path.get(_norm_path(icon.path))
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._by_path[_norm_path(icon.path)]

    # Queries

    def by_key(self, key: str) -> Icon | None:
        return self._entries.get(key)

    def by_name(self, name: str, kind: IconKind | None = None) -> Icon | None:
        kinds = [kind] if kind is not None else _NAME_LOOKUP_ORDER
        for k in kinds:
            key = self._by_name[k].get(name)
            if key and key in self._entries:
                return self._entries[key]
        return None

    def by_path(self, path: str | Path) -> Icon | None:
        keys = self._by_path.get(_norm_path(path))
        if not keys:
            return None
        icons = [self._entries[k] for k in keys if k in self._entries]
        icons.sort(key=lambda i: (i.kind != IconKind.SVG_FILE, i.location.line if i.location else 0))
        return icons[0] if icons else None

    def icons_in_file(self, path: str | Path) -> list[Icon]:
        keys = self._by_path.get(_norm_path(path), set())
        return sorted(
            (self._entries[k] for k in keys if k in self._entries),
            key=lambda i: i.location.line if i.location else 0,
        )

    def all(self, kind: IconKind | None = None, include_shadowed: bool = False) -> list[Icon]:
        """Icons that hold their name. Collision losers only with `include_shadowed`."""
        return [
            icon for key, icon in self._entries.items()
            if (kind is None or icon.kind == kind)
            and (include_shadowed or self._by_name[icon.kind].get(icon.name) == key)
        ]

    def names(self, kind: IconKind | None = None) -> set[str]:
        if kind is not None:
            return set(self._by_name[kind])
        return {name for names in self._by_name.values() for name in names}

    def files_under(self, directory: str | Path) -> set[str]:
        """Indexed files (icons, references or usages) below `directory`."""
        prefix = _norm_path(directory)
        files = set(self._by_path) | set(self._references) | {_norm_path(s.file) for s in self._usages}
        return {f for f in files if f != prefix and _is_within(f, prefix)}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    # Usage sites and <img> references

    @property
    def usages(self) -> list[UsageSite]:
        return list(self._usages)

    def set_usages(self, sites: list[UsageSite]):
        self._usages = list(sites)
        self._emit(RegistryEvent("refresh"))

    def replace_usages_for(self, path: str | Path, sites: list[UsageSite]):
        """Swap the usage sites of one file, leaving all others untouched."""
        p = _norm_path(path)
        self._usages = [s for s in self._usages if _norm_path(s.file) != p] + list(sites)
        self._emit(RegistryEvent("refresh"))

    @property
    def references(self) -> dict[str, list[SvgReference]]:
        return {path: list(refs) for path, refs in self._references.items()}

    def set_references(self, path: str | Path, refs: list[SvgReference]):
        if refs:
            self._references[_norm_path(path)] = list(refs)
        else:
            self._references.pop(_norm_path(path), None)

    def clear_references(self):
        self._references.clear()

    # Lifecycle

    def dispose(self):
        self._listeners.clear()
        self._entries.clear()
        self._stamps.clear()
        self._by_name = {kind: {} for kind in IconKind}
        self._by_path.clear()
        self._usages = []
        self._references.clear()
        self.collisions = []
        self._active = None


def _is_within(path: str, prefix: str) -> bool:
    p = _norm_path(path)
    return p == prefix or p.startswith(prefix.rstrip("/\\") + "/") or p.startswith(prefix.rstrip("/\\") + "\\")
