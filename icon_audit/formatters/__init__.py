"""Output formatters for icon-audit."""

from .markdown import generate_markdown
