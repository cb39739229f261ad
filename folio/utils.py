"""Utility functions for Folio.

String, path and date helpers shared by the loader, renderer and writer.

Key functions:
    slugify: Convert filenames or text to URL slugs.
    strip_date_prefix: Drop a YYYY-MM-DD- prefix from a filename stem.
    first_paragraph: Plain-text excerpt of a Markdown body.
    is_content_file: Check if a path is a Markdown/MDX content file.
    is_hidden_path: Check if a path has _ or . prefixed components.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

CONTENT_SUFFIXES = (".md", ".mdx")

_FENCE_BLOCK_RE = re.compile(r"^(```|~~~).*?^\1", re.DOTALL | re.MULTILINE)
_ESM_LINE_RE = re.compile(r"^(?:import|export)\s.*$", re.MULTILINE)


def strip_date_prefix(name: str) -> str:
    """Drop a leading YYYY-MM-DD- prefix from a filename stem.

    Examples:
        >>> strip_date_prefix("2024-04-04-vault-plugin")
        'vault-plugin'
    """
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        return "-".join(parts[3:])
    return name


def slugify(name: str) -> str:
    """Convert a filename stem (or any text) to a URL-friendly slug.

    Drops a date prefix, lowercases, and collapses anything outside
    a-z0-9 into single hyphens. Returns an empty string when nothing
    usable is left.

    Args:
        name: Filename stem or text.

    Returns:
        URL-friendly slug.
    """
    cleaned = strip_date_prefix(name)
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    return cleaned.strip("-").lower()


def first_paragraph(text: str, limit: int = 160) -> str:
    """Extract and clean the first prose paragraph from a Markdown body.

    Skips headings, fenced code, MDX import/export lines, images and
    component blocks. Strips inline tags and Markdown link syntax, collapses
    whitespace and truncates to the limit.

    Args:
        text: Markdown body.
        limit: Maximum character length of result.

    Returns:
        Cleaned first paragraph, or an empty string.
    """
    text = _FENCE_BLOCK_RE.sub("", text)
    text = _ESM_LINE_RE.sub("", text)
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    for para in paragraphs:
        if para.startswith(("#", "![", "<", "---", "|", ">")):
            continue
        para = re.sub(r"<[^>]+>", "", para)
        para = re.sub(r"!?\[([^\]]*)\]\([^)]*\)", r"\1", para)
        para = re.sub(r"[*_`]", "", para)
        collapsed = " ".join(para.split())
        if len(collapsed) > limit:
            return collapsed[: limit - 1].rstrip() + "…"
        return collapsed
    return ""


def is_content_file(path: Path) -> bool:
    """Check if a path is a Markdown or MDX content file."""
    return path.suffix.lower() in CONTENT_SUFFIXES


def is_hidden_path(path: Path) -> bool:
    """Check if any component of a relative path starts with _ or a dot.

    Args:
        path: Path relative to the content directory.

    Returns:
        True if the path should be skipped during discovery.
    """
    return any(part.startswith(("_", ".")) for part in path.parts)


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path))
    path.mkdir(parents=True, exist_ok=True)
