"""Workspace facade: owns the registry and runs the scan pipeline.

One IconWorkspace per workspace root, constructed explicitly and bracketed by
init() / dispose(). Full scans collect their results first and only write
them to the registry if no newer scan of the same kind started meanwhile.
"""

from __future__ import annotations

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from pathlib import Path

from .config import LEGACY_IGNORE_FILES, IconAuditConfig
from .detectors import (
    ImgReferenceDetector,
    InlineSvgDetector,
    SourceText,
    find_usages,
    run_usage_detectors,
)
from .errors import IconNotFound, OutputNotConfigured, SvgParseError, WorkspaceNotFound
from .host import EditorHost
from .ignore import IgnoreFilter
from .library import LIBRARY_FILES, BuiltLibrary, load_built_icons, remove_built_icon, write_built_icon
from .models import BuildState, Icon, IconKind, Location, SvgReference, UsageSite, Variant
from .reconcile import reconcile
from .registry import IconRegistry
from .scanner import SOURCE, SVG, FileScanner, is_generated_file
from .svg_parser import wrap_svg
from .variants import VariantColorEngine, VariantStore
from .watcher import ChangeWatcher, start_observer

logger = logging.getLogger(__name__)


class IconWorkspace:
    def __init__(
        self,
        root: str | Path,
        config: IconAuditConfig | None = None,
        registry: IconRegistry | None = None,
    ):
        self.root = Path(root).resolve()
        self.config = config or IconAuditConfig()
        self.registry = registry or IconRegistry()
        self.ignore = IgnoreFilter()
        self.scanner = FileScanner(self.root, self.config, self.ignore)
        self.library = BuiltLibrary()
        self.variants = VariantColorEngine(VariantStore())
        self._tokens: dict[str, int] = {}
        self._initialized = False

    # Lifecycle

    def init(self) -> "IconWorkspace":
        if not self.root.is_dir():
            raise WorkspaceNotFound(str(self.root))
        self.reload_ignore()
        self.variants.store = VariantStore.for_output_dir(self.output_dir)
        self._initialized = True
        return self

    def dispose(self):
        self.registry.dispose()
        self.library = BuiltLibrary()
        self._initialized = False

    def _ensure_init(self):
        if not self._initialized:
            self.init()

    @property
    def output_dir(self) -> Path | None:
        return self.config.output_path(self.root)

    def reload_ignore(self):
        self.ignore = IgnoreFilter.for_workspace(self.root, self.config.ignore_file)
        self.scanner.ignore = self.ignore
        if not self.ignore.empty:
            logger.debug("Loaded %d ignore patterns from %s", len(self.ignore), self.ignore.source)

    # Staleness tokens

    def _begin(self, scan_kind: str) -> int:
        token = self._tokens.get(scan_kind, 0) + 1
        self._tokens[scan_kind] = token
        return token

    def _is_current(self, scan_kind: str, token: int) -> bool:
        return self._tokens.get(scan_kind) == token

    # Draft SVG files

    def _svg_roots(self) -> list[tuple[Path, str]]:
        """(folder, category prefix) pairs to scan for draft files."""
        roots = []
        for folder in self.config.svg_folders:
            full = self.root / folder
            if full.is_dir():
                roots.append((full, folder.strip("/")))
        return roots or [(self.root, "")]

    def _resolve(self, path: str | Path) -> Path:
        """Absolute form of `path`; relative paths are taken from the workspace root."""
        p = Path(path)
        return (p if p.is_absolute() else self.root / p).resolve()

    def _is_draft_location(self, path: Path) -> bool:
        out = self.output_dir
        if out is not None and path.is_relative_to(out.resolve()):
            return False
        return any(path.is_relative_to(folder) for folder, _ in self._svg_roots())

    def _category_for(self, path: Path) -> str:
        for folder, prefix in self._svg_roots():
            try:
                rel = path.parent.relative_to(folder).as_posix()
            except ValueError:
                continue
            if prefix:
                return prefix if rel == "." else f"{prefix}/{rel}"
            return "root" if rel == "." else rel
        return "root"

    async def _load_svg_file(self, path: Path) -> Icon | None:
        text = await self.scanner.read_text(path)
        if text is None:
            return None
        icon = Icon(
            name=path.stem,
            kind=IconKind.SVG_FILE,
            svg=text,
            location=Location(file=str(path), line=1),
            category=self._category_for(path),
        )
        if not icon.supported:
            logger.info("Unsupported SVG markup in %s; kept without colors", path)
        return icon

    async def scan_folder(self, path: str | Path | None = None) -> list[Icon]:
        """Full rescan of draft .svg files (whole workspace or one folder)."""
        self._ensure_init()
        token = self._begin(SVG)
        folder = self._resolve(path) if path else None
        roots = [folder] if folder else [f for f, _ in self._svg_roots()]

        icons = []
        async for candidate in self.scanner.scan(roots, kinds=[SVG]):
            icon = await self._load_svg_file(candidate.path)
            if icon is not None:
                icons.append(icon)

        if not self._is_current(SVG, token):
            logger.debug("Discarding superseded folder scan")
            return []

        generation = self.registry.begin_generation()
        for icon in icons:
            self.registry.upsert(icon)
        self.registry.end_generation(
            generation,
            kinds=[IconKind.SVG_FILE],
            within=folder,
        )
        logger.info("Found %d SVG files", len(icons))
        return icons

    # Inline SVGs and <img> references

    async def _read_source(self, path: Path) -> SourceText | None:
        if is_generated_file(path):
            return None
        text = await self.scanner.read_text(path)
        if text is None or is_generated_file(path, text):
            return None
        return SourceText(text)

    def _index_inline(self, source: SourceText, path: Path) -> tuple[list[Icon], list[SvgReference]]:
        icons = InlineSvgDetector(self.config).detect(source, str(path))
        refs = ImgReferenceDetector(self.config).references(source, str(path), self.root)
        return icons, refs

    async def scan_inline_svgs(self) -> list[Icon]:
        self._ensure_init()
        token = self._begin("inline")

        icons: list[Icon] = []
        references: dict[str, list[SvgReference]] = {}
        async for candidate in self.scanner.scan(kinds=[SOURCE]):
            source = await self._read_source(candidate.path)
            if source is None:
                continue
            found, refs = self._index_inline(source, candidate.path)
            icons.extend(found)
            if refs:
                references[str(candidate.path)] = refs
            # Regex scanning is CPU bound; let other tasks run between files
            await asyncio.sleep(0)

        if not self._is_current("inline", token):
            logger.debug("Discarding superseded inline scan")
            return []

        generation = self.registry.begin_generation()
        for icon in icons:
            self.registry.upsert(icon)
        self.registry.end_generation(generation, kinds=[IconKind.INLINE_SVG])
        self.registry.clear_references()
        for file, refs in references.items():
            self.registry.set_references(file, refs)
        logger.info("Found %d inline SVGs, %d files with SVG references", len(icons), len(references))
        return icons

    # Usages

    async def scan_icon_usages(self) -> list[UsageSite]:
        self._ensure_init()
        token = self._begin("usages")

        sites: list[UsageSite] = []
        async for candidate in self.scanner.scan(kinds=[SOURCE]):
            source = await self._read_source(candidate.path)
            if source is None:
                continue
            sites.extend(run_usage_detectors(source, str(candidate.path), self.config))
            await asyncio.sleep(0)

        if not self._is_current("usages", token):
            logger.debug("Discarding superseded usage scan")
            return []

        self.registry.set_usages(sites)
        logger.info("Found %d icon usages", len(sites))
        return sites

    # Built library

    async def load_built_icons(self) -> BuiltLibrary:
        self._ensure_init()
        token = self._begin("built")
        library = await asyncio.to_thread(load_built_icons, self.output_dir)
        if not self._is_current("built", token):
            return self.library

        self._apply_library(library)
        return library

    def _apply_library(self, library: BuiltLibrary):
        self.library = library
        generation = self.registry.begin_generation()
        for entry in library.entries.values():
            self.registry.upsert(Icon(
                name=entry.name,
                kind=IconKind.BUILT_ICON,
                svg=wrap_svg(entry.body, entry.view_box),
                category="built",
                library_file=Path(entry.source_file).name if entry.source_file else None,
                animation=entry.animation,
            ))
        self.registry.end_generation(generation, kinds=[IconKind.BUILT_ICON])
        if self.variants.store.dirty:
            logger.warning("Keeping unsaved variant edits; variants.js not reloaded")
        else:
            self.variants.store = VariantStore.for_output_dir(self.output_dir)

    async def scan_all(self):
        """Reload the ignore file, then rescan everything."""
        self._ensure_init()
        self.reload_ignore()
        await self.scan_folder()
        await self.scan_inline_svgs()
        await self.load_built_icons()
        await self.scan_icon_usages()

    # Queries

    def get_all_icons(self, kind: IconKind | None = None) -> list[Icon]:
        return self.registry.all(kind)

    def get_icon_by_name(self, name: str, kind: IconKind | None = None) -> Icon | None:
        return self.registry.by_name(name, kind)

    def get_icon_by_path(self, path: str | Path) -> Icon | None:
        return self.registry.by_path(Path(path).resolve())

    def require_icon(self, name: str) -> Icon:
        icon = self.get_icon_by_name(name)
        if icon is None:
            raise IconNotFound(name)
        return icon

    def find_usages(self, name: str) -> dict:
        return find_usages(self.registry.usages, name)

    def get_svg_references(self) -> dict[str, list[SvgReference]]:
        return self.registry.references

    def build_states(self) -> dict[str, BuildState]:
        return reconcile(self.registry, self.library.bodies())

    def refresh(self):
        self.registry.refresh()

    # Incremental updates

    def _is_ignore_file(self, path: Path) -> bool:
        return path.parent == self.root and path.name in {self.config.ignore_file, *LEGACY_IGNORE_FILES}

    def _is_library_file(self, path: Path) -> bool:
        out = self.output_dir
        return out is not None and path.parent == out.resolve() and path.name in LIBRARY_FILES

    def should_watch(self, path: str) -> bool:
        p = Path(path)
        if self._is_ignore_file(p) or self._is_library_file(p):
            return True
        try:
            rel_parts = p.relative_to(self.root).parts
        except ValueError:
            return False
        if any(part in self.config.skip_dirs for part in rel_parts):
            return False
        if self.scanner.classify(p) is not None:
            return True
        # Directories: moved in, or deleted/moved away with indexed files below
        return p.is_dir() or bool(self.registry.files_under(p))

    async def process_changes(self, paths: list[str]):
        """Re-index only the given paths (one debounced watcher batch)."""
        self._ensure_init()
        reload_library = False
        full_rescan = False

        for raw in paths:
            path = Path(raw)
            if self._is_ignore_file(path):
                full_rescan = True
                continue
            if self._is_library_file(path):
                reload_library = True
                continue
            if not path.exists():
                self.handle_delete(raw, refresh=False)
                continue
            if path.is_dir():
                await self._reindex_directory(path)
                continue
            if self.scanner.is_ignored(path):
                self._forget(path)
                continue
            await self._reindex_file(path, self.scanner.classify(path))

        if full_rescan:
            logger.info("Ignore file changed; rescanning workspace")
            await self.scan_all()
        elif reload_library:
            await self.load_built_icons()
        self.registry.refresh()

    async def _reindex_file(self, path: Path, kind: str | None):
        if kind == SVG:
            if not self._is_draft_location(path):
                self._forget(path)
                return
            icon = await self._load_svg_file(path)
            if icon is not None:
                self.registry.upsert(icon)
        elif kind == SOURCE:
            await self._reindex_source(path)

    async def _reindex_directory(self, path: Path):
        if self.scanner.is_ignored(path, is_dir=True):
            return
        async for candidate in self.scanner.scan([path]):
            await self._reindex_file(candidate.path, candidate.kind)

    async def _reindex_source(self, path: Path):
        source = await self._read_source(path)
        if source is None:
            self._forget(path)
            return

        icons, refs = self._index_inline(source, path)
        new_keys = {icon.key for icon in icons}
        for old in self.registry.icons_in_file(path):
            if old.kind == IconKind.INLINE_SVG and old.key not in new_keys:
                self.registry.remove(old.key)
        for icon in icons:
            self.registry.upsert(icon)
        self.registry.set_references(path, refs)
        self.registry.replace_usages_for(path, run_usage_detectors(source, str(path), self.config))

    def _forget(self, path: Path):
        self.registry.remove_path(path)
        self.registry.set_references(path, [])
        self.registry.replace_usages_for(path, [])

    def handle_delete(self, raw: str, refresh: bool = True):
        """Immediate removal for a deleted file or directory."""
        path = Path(raw)
        if self._is_ignore_file(path):
            self.reload_ignore()
        elif self._is_library_file(path):
            self._apply_library(load_built_icons(self.output_dir))
        else:
            self._forget(path)
            # A deleted directory takes everything below it along
            for file in sorted(self.registry.files_under(path)):
                self._forget(Path(file))
        if refresh:
            self.registry.refresh()

    @asynccontextmanager
    async def watch(self):
        """Watch the workspace for changes while the context is open."""
        self._ensure_init()
        loop = asyncio.get_running_loop()
        watcher = ChangeWatcher(
            on_batch=self.process_changes,
            on_delete=self.handle_delete,
            on_refresh=self.registry.refresh,
            delay=self.config.debounce_seconds,
            accept=self.should_watch,
        )
        observer = start_observer(self.root, watcher, loop)
        try:
            yield watcher
        finally:
            watcher.close()
            observer.stop()
            await asyncio.to_thread(observer.join)

    # Variants and library writes

    def save_variant(self, name: str, variant_name: str, colors: list[str]) -> Variant:
        icon = self.require_icon(name)
        return self.variants.save_variant(icon, variant_name, colors)

    def apply_variant(self, name: str, variant_name: str, current: str = "_original") -> str:
        icon = self.require_icon(name)
        return self.variants.apply_named(icon, variant_name, current=current)

    def save_variants(self):
        if self.output_dir is None:
            raise OutputNotConfigured()
        if self.variants.store.path is None:
            self.variants.store.path = self.output_dir / "variants.js"
        self.variants.store.save()

    async def build_icon(self, name: str) -> Path:
        """Write a draft icon into the library and reload it."""
        if self.output_dir is None:
            raise OutputNotConfigured()
        icon = self.get_icon_by_name(name, IconKind.SVG_FILE) or self.get_icon_by_name(name, IconKind.INLINE_SVG)
        if icon is None:
            raise IconNotFound(name)
        if not icon.supported:
            raise SvgParseError(f"Cannot build '{name}': malformed SVG in {icon.path}")
        written = await asyncio.to_thread(write_built_icon, self.output_dir, icon.name, icon.svg)
        await self.load_built_icons()
        return written

    async def remove_from_built(self, names: list[str]) -> list[str]:
        """Drop icons from the library along with their variants. Returns the removed names."""
        if self.output_dir is None:
            raise OutputNotConfigured()
        removed = []
        for name in names:
            if await asyncio.to_thread(remove_built_icon, self.output_dir, name):
                self.variants.store.remove_icon_data(name)
                removed.append(name)
            else:
                logger.warning("Icon '%s' is not in the built library", name)
        if self.variants.store.dirty:
            self.save_variants()
        await self.load_built_icons()
        return removed

    def rename_references(self, old: str, new: str, host: EditorHost) -> int:
        """Rewrite every usage site of `old` to reference `new`. Returns the edit count."""
        pattern = re.compile(rf"(?<=[\"'`#/\-]){re.escape(old)}(?=[\"'`.\s])")
        edits = 0
        by_file: dict[str, set[int]] = {}
        for site in self.find_usages(old)["usages"]:
            by_file.setdefault(site.file, set()).add(site.line)

        for file, lines in by_file.items():
            text = host.open_document(file).split("\n")
            for line in sorted(lines):
                original = text[line - 1]
                updated = pattern.sub(new, original)
                if updated != original:
                    host.apply_edit(file, (line, line), updated)
                    text[line - 1] = updated
                    edits += 1

        self.variants.store.rename_icon(old, new)
        self.registry.set_usages([
            UsageSite(s.file, s.line, s.preview, new, s.detector) if s.referenced_name == old else s
            for s in self.registry.usages
        ])
        return edits
