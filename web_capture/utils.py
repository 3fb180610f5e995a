"""Utility helpers for string normalization and path handling."""

from __future__ import annotations

import re

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
UNSAFE_FILENAME_PATTERN = re.compile(r"[/\\\x00]")


def slugify(value: str, fallback: str = "page") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def safe_filename(value: str, fallback: str = "page") -> str:
    """Keep a title readable while making sure it names a single file."""
    cleaned = UNSAFE_FILENAME_PATTERN.sub("_", value).strip()
    if cleaned in ("", ".", ".."):
        return fallback
    return cleaned
