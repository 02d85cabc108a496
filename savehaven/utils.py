"""Shared utility functions."""

from __future__ import annotations

from datetime import date, datetime

from savehaven.errors import ParseError

ILLEGAL_FILENAME_CHARS = '<>:"/\\|?*'


def format_size(size_bytes: int) -> str:
    """Format byte count to human-readable string."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def sanitize_filename(name: str) -> str:
    """Make a platform or title usable as a single directory name."""
    for ch in ILLEGAL_FILENAME_CHARS:
        name = name.replace(ch, "_")
    name = name.replace("\n", " ").replace("\r", "").strip()
    while "  " in name:
        name = name.replace("  ", " ")
    while "__" in name:
        name = name.replace("__", "_")
    return name.strip(". ")


def parse_release_date(text: str, formats: list[str]) -> date | None:
    """Parse a release date using the first matching format. Empty input means unknown."""
    text = text.strip()
    if not text:
        return None
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ParseError(f"Invalid release date '{text}' (expected {' or '.join(formats)})")
