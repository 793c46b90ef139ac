"""Project configuration (.icon-audit/config.json).

All keys are optional; a missing file yields the defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_EXTENSIONS = ["tsx", "jsx", "ts", "js", "vue", "svelte", "astro", "html"]

DEFAULT_SKIP_DIRS = [
    "node_modules", ".git", "dist", "build", ".next", ".nuxt", "coverage", ".svelte-kit",
]

# Older tool names for the ignore file, probed when the configured one is absent
LEGACY_IGNORE_FILES = [".bezierignore", ".msignore", ".sageboxignore"]


@dataclass
class IconAuditConfig:
    svg_folders: list[str] = field(default_factory=list)
    source_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_EXTENSIONS))
    output_directory: str = ""
    component_name: str = "Icon"
    name_attribute: str = "name"
    web_component_name: str = "svg-icon"
    sprite_prefix: str = "icon-"
    ignore_file: str = ".iconignore"
    debounce_seconds: float = 0.8
    max_files: int = 5000
    max_depth: int = 20
    skip_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_SKIP_DIRS))

    @property
    def source_suffixes(self) -> set[str]:
        return {"." + ext.lstrip(".").lower() for ext in self.source_extensions}

    def output_path(self, root: Path) -> Path | None:
        if not self.output_directory:
            return None
        return root / self.output_directory

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def get_config_path(project_dir: Path | None = None) -> Path:
    base = project_dir or Path.cwd()
    return base / ".icon-audit" / "config.json"


def config_from_dict(data: dict) -> IconAuditConfig:
    """Build a config from a dict, ignoring unknown keys and type-checking known ones."""
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a JSON object")

    defaults = IconAuditConfig()
    kwargs = {}
    for f in fields(IconAuditConfig):
        if f.name not in data:
            continue
        value = data[f.name]
        expected = getattr(defaults, f.name)
        if isinstance(expected, list):
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"'{f.name}' must be a list of strings")
        elif isinstance(expected, bool):
            if not isinstance(value, bool):
                raise ConfigError(f"'{f.name}' must be a boolean")
        elif isinstance(expected, (int, float)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"'{f.name}' must be a number")
            value = type(expected)(value)
        elif not isinstance(value, str):
            raise ConfigError(f"'{f.name}' must be a string")
        kwargs[f.name] = value

    unknown = set(data) - {f.name for f in fields(IconAuditConfig)}
    if unknown:
        logger.debug("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))

    return IconAuditConfig(**kwargs)


def load_config(path: Path | None = None, project_dir: Path | None = None) -> IconAuditConfig:
    """Load config from disk, or return defaults when the file does not exist."""
    p = path or get_config_path(project_dir)
    if not p.exists():
        return IconAuditConfig()

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {p}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read {p}: {e}") from e

    return config_from_dict(data)
