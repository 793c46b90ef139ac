"""Error taxonomy for icon-audit.

Scan-time failures are isolated per file or per icon: the pipeline logs them
and keeps going. Only the command layer turns the precondition errors below
into a user-visible message.
"""

from __future__ import annotations

from dataclasses import dataclass


class IconAuditError(Exception):
    """Base class for all icon-audit errors."""


class IconReadError(IconAuditError, OSError):
    """A file could not be read or written."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not access {path}: {reason}" if reason else f"Could not access {path}")


class SvgParseError(IconAuditError):
    """Malformed SVG markup (typically a missing closing tag)."""


class ConfigError(IconAuditError):
    """Invalid configuration file contents."""


class MissingOriginalColors(IconAuditError):
    """A variant was applied to an icon with no `_original` color snapshot."""

    def __init__(self, icon_name: str):
        self.icon_name = icon_name
        super().__init__(
            f"Icon '{icon_name}' has no _original colors; save a variant first "
            f"or pass allow_live_fallback=True"
        )


# Command-layer preconditions

class WorkspaceNotFound(IconAuditError):
    def __init__(self, path: str = ""):
        super().__init__(f"No workspace folder: {path}" if path else "No workspace folder")


class OutputNotConfigured(IconAuditError):
    def __init__(self):
        super().__init__("Output path not configured (set output_directory in .icon-audit/config.json)")


class IconNotFound(IconAuditError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Could not find icon '{name}'")


@dataclass
class ScanError:
    """A per-file failure recorded during a scan."""
    path: str
    message: str
    code: str | None = None


@dataclass
class NameCollision:
    """Two icons of the same kind claimed one name in a single generation.

    The later one wins; this record is kept for reporting.
    """
    name: str
    kind: str
    previous_key: str
    new_key: str
    generation: int = 0
