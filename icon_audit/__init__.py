"""icon-audit: SVG icon inventory, usage index and build-state reconciliation."""

__version__ = "0.1.0"

from .models import BuildState, BuildStatus, Icon, IconKind, Location, UsageSite, Variant
from .registry import IconRegistry
from .workspace import IconWorkspace
