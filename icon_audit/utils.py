"""Shared utilities: colors, output formatting, logging setup."""

from __future__ import annotations

import io
import logging
import os
import sys

# Force UTF-8 output on Windows to handle box chars
if sys.platform == "win32" and hasattr(sys.stdout, "buffer"):
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding="utf-8", errors="replace")

COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "cyan": "\033[36m",
    "magenta": "\033[35m",
}

LEVEL_COLORS = {
    logging.DEBUG: "dim",
    logging.INFO: "dim",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


def _use_color(stream=None) -> bool:
    stream = stream or sys.stdout
    return os.environ.get("NO_COLOR") is None and hasattr(stream, "isatty") and stream.isatty()


def c(text: str, color: str, stream=None) -> str:
    if not _use_color(stream):
        return str(text)
    return f"{COLORS.get(color, '')}{text}{COLORS['reset']}"


def log(msg: str):
    print(c(msg, "dim", sys.stderr), file=sys.stderr)


class ColorFormatter(logging.Formatter):
    """Colors whole records by level, through c()."""

    def format(self, record: logging.LogRecord) -> str:
        return c(super().format(record), LEVEL_COLORS.get(record.levelno, "dim"), sys.stderr)


def setup_logging(verbose: bool = False):
    """Send icon_audit log records to stderr. Called once by the CLI."""
    handler = logging.StreamHandler(sys.stderr)
    fmt = "  %(levelname)s %(name)s: %(message)s" if verbose else "  %(message)s"
    handler.setFormatter(ColorFormatter(fmt))

    logger = logging.getLogger("icon_audit")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
    return logger


def print_table(headers: list[str], rows: list[list[str]], widths: list[int] | None = None):
    if not rows:
        return
    if not widths:
        widths = [max(len(str(h)), *(len(str(r[i])) for r in rows)) for i, h in enumerate(headers)]
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(c(header_line, "bold"))
    try:
        print(c("─" * (sum(widths) + 2 * (len(widths) - 1)), "dim"))
    except UnicodeEncodeError:
        print(c("-" * (sum(widths) + 2 * (len(widths) - 1)), "dim"))
    for row in rows:
        print("  ".join(str(v)[:w].ljust(w) for v, w in zip(row, widths)))


def print_box(lines: list[str], width: int = 45):
    """Print a box around lines of text."""
    try:
        print("┌" + "─" * width + "┐")
        for line in lines:
            padded = line.ljust(width - 2)[:width - 2]
            print(f"│ {padded} │")
        print("└" + "─" * width + "┘")
    except UnicodeEncodeError:
        # Terminals that can't render box chars
        print("+" + "-" * width + "+")
        for line in lines:
            padded = line.ljust(width - 2)[:width - 2]
            print(f"| {padded} |")
        print("+" + "-" * width + "+")


def progress_bar(pct: float, length: int = 30) -> str:
    filled = round(pct / 100 * length)
    try:
        "█".encode(sys.stdout.encoding or "utf-8")
        return "█" * filled + "░" * (length - filled)
    except (UnicodeEncodeError, LookupError):
        return "#" * filled + "." * (length - filled)
